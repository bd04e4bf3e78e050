"""
Bridge between workers and LangChain.

Converts the manager's aggregated catalog into LangChain StructuredTools,
so the same worker processes can back a LangChain/LangGraph agent.

Usage:
    from mcp_agent.bridge import to_langchain_tools

    tools = to_langchain_tools(manager)
    # e.g. create_react_agent(llm, tools)
"""

from __future__ import annotations

import json
from typing import Any

from langchain_core.tools import StructuredTool

from mcp_agent.catalog import QualifiedTool
from mcp_agent.errors import ToolServerError
from mcp_agent.manager import ProcessManager


def to_langchain_tool(
    manager: ProcessManager,
    qualified: QualifiedTool,
    description_override: str | None = None,
) -> StructuredTool:
    """
    Create a LangChain StructuredTool that proxies to a worker tool.

    The returned tool is async-only: invoking it sends a tools/call request
    through ``manager`` and returns the tool's text payload.

    Args:
        manager: The ProcessManager running the worker
        qualified: The tool to expose, as returned by get_all_tools()
        description_override: Optional override for the tool description
    """
    worker, tool_name = qualified.worker, qualified.tool.name
    description = (
        description_override
        or qualified.tool.description
        or f"Tool {tool_name} on {worker}"
    )

    async def _call_worker(**kwargs: Any) -> str:
        """Proxy call to the worker."""
        try:
            result = await manager.call_tool(worker, tool_name, kwargs)
        except ToolServerError as e:
            return f"Error calling {worker}/{tool_name}: {e}"
        return _result_text(result)

    return StructuredTool.from_function(
        coroutine=_call_worker,
        name=qualified.identifier,
        description=description,
        args_schema=qualified.tool.input_schema,
    )


def to_langchain_tools(manager: ProcessManager) -> list[StructuredTool]:
    """LangChain wrappers for every tool of every ready worker."""
    return [to_langchain_tool(manager, qt) for qt in manager.get_all_tools()]


def _result_text(result: Any) -> str:
    content = result.get("content") if isinstance(result, dict) else None
    if content:
        texts = [b.get("text", "") for b in content if isinstance(b, dict) and b.get("type") == "text"]
        if texts:
            return "\n".join(texts)
    if isinstance(result, str):
        return result
    return json.dumps(result, indent=2)
