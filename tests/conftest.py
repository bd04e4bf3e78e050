"""Pytest configuration and fixtures for mcp_agent tests."""

import copy
import sys
from pathlib import Path

import pytest

from mcp_agent.catalog import QualifiedTool, Tool
from mcp_agent.errors import WorkerNotReady
from mcp_agent.model import ModelResponse

WORKERS_DIR = Path(__file__).parent / "workers"

DATABASE = [sys.executable, "-m", "mcp_agent.servers.database"]
EMAIL = [sys.executable, "-m", "mcp_agent.servers.email"]


def script(name: str) -> list[str]:
    """Command that runs one of the test workers in tests/workers/."""
    return [sys.executable, str(WORKERS_DIR / f"{name}.py")]


def tool_use(name: str, tool_input: dict, block_id: str = "toolu_01") -> ModelResponse:
    return ModelResponse(
        stop_reason="tool_use",
        content=[
            {"type": "text", "text": "Let me look that up."},
            {"type": "tool_use", "id": block_id, "name": name, "input": tool_input},
        ],
    )


def final(text: str) -> ModelResponse:
    return ModelResponse(stop_reason="end_turn", content=[{"type": "text", "text": text}])


class ScriptedModel:
    """ModelClient that replays canned responses and records every request."""

    def __init__(self, responses: list[ModelResponse]):
        self.responses = list(responses)
        self.calls: list[dict] = []

    async def create(self, system, messages, tools):
        self.calls.append({
            "system": system,
            "messages": copy.deepcopy(list(messages)),
            "tools": list(tools),
        })
        if not self.responses:
            raise AssertionError("ScriptedModel ran out of responses")
        return self.responses.pop(0)


class FakeManager:
    """In-process stand-in for ProcessManager: tools answer from a dict."""

    def __init__(self, tools: dict[str, dict[str, object]]):
        # {"worker": {"tool": payload-or-exception}}
        self.tools = tools
        self.calls: list[tuple[str, str, dict]] = []

    def get_all_tools(self) -> list[QualifiedTool]:
        return [
            QualifiedTool(worker, Tool(name=tool, description=f"{tool} on {worker}"))
            for worker, tools in self.tools.items()
            for tool in tools
        ]

    async def call_tool(self, worker, tool, arguments):
        self.calls.append((worker, tool, arguments))
        if worker not in self.tools:
            raise WorkerNotReady(worker)
        payload = self.tools[worker][tool]
        if isinstance(payload, Exception):
            raise payload
        return {"content": [{"type": "text", "text": payload}]}

    def health(self):
        return {name: {"ready": True, "toolCount": len(tools)} for name, tools in self.tools.items()}


@pytest.fixture
def scripted_worker() -> list[str]:
    return script("scripted")
