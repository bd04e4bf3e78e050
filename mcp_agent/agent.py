"""
Agent loop: repeated model calls with tool use in between.

One call to ToolUseAgent.converse() handles one user message:

    user message → model ─┬─ final text ────────────────→ reply
                          └─ tool_use → worker → result ─┘ (repeat)

Every tool invocation of the run is recorded as a ToolActivityRecord and
returned with the reply.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

from mcp_agent.catalog import split_identifier
from mcp_agent.errors import MalformedResponse, ToolLoopExceeded, ToolResultParseError
from mcp_agent.manager import ProcessManager
from mcp_agent.model import ModelClient, ModelResponse

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOOL_ROUNDS = 10

FALLBACK_MESSAGE = "I apologize, but I encountered an issue processing your request."

SYSTEM_PROMPT = """You are a helpful customer support agent. You have access to customer database and email systems through MCP tools.

When helping customers:
1. Search for their information using search_customer
2. Get order details if they ask about orders
3. Send confirmation emails when appropriate
4. Be friendly and professional

Available tools:
- database_search_customer: Search for customer by email
- database_get_order_details: Get order information
- email_send_email: Send emails to customers"""


@dataclass
class ToolActivityRecord:
    """One tool invocation within a single conversation turn."""
    server: str
    tool: str
    input: dict[str, Any]
    timestamp: str
    result: Any = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ConversationResult:
    message: str
    tool_activity: list[ToolActivityRecord] = field(default_factory=list)
    conversation_history: list[dict[str, Any]] = field(default_factory=list)


class ToolUseAgent:
    """
    Drives the model/tool exchange for one conversation turn at a time.

    The agent holds no per-conversation state; concurrent converse() calls
    are independent and only share the manager's workers.
    """

    def __init__(
        self,
        manager: ProcessManager,
        model: ModelClient,
        system_prompt: str = SYSTEM_PROMPT,
        max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
    ):
        self.manager = manager
        self.model = model
        self.system_prompt = system_prompt
        self.max_tool_rounds = max_tool_rounds

    async def converse(
        self,
        user_message: str,
        history: list[dict[str, Any]] | None = None,
    ) -> ConversationResult:
        """
        Answer ``user_message`` given the prior ``history``.

        The caller's history list is not modified.

        Raises:
            ToolServerError: a tool call failed; the run is abandoned.
            ModelInvocationError: the model API failed.
            ToolLoopExceeded: the model asked for tools too many times.
        """
        history = list(history or [])
        messages = history + [{"role": "user", "content": user_message}]
        tools = [qt.to_model_tool() for qt in self.manager.get_all_tools()]
        activity: list[ToolActivityRecord] = []

        response = await self.model.create(self.system_prompt, messages, tools)
        rounds = 0

        while response.wants_tool:
            tool_use = response.first_block("tool_use")
            if tool_use is None:
                logger.warning("Model stopped for tool_use without a tool_use block")
                break

            rounds += 1
            if rounds > self.max_tool_rounds:
                raise ToolLoopExceeded(self.max_tool_rounds)

            record, result_text = await self._run_tool(tool_use)
            activity.append(record)

            messages.append({"role": "assistant", "content": response.content})
            messages.append({
                "role": "user",
                "content": [{
                    "type": "tool_result",
                    "tool_use_id": tool_use["id"],
                    "content": result_text,
                }],
            })

            response = await self.model.create(self.system_prompt, messages, tools)

        reply = self._final_text(response)
        return ConversationResult(
            message=reply,
            tool_activity=activity,
            conversation_history=history + [
                {"role": "user", "content": user_message},
                {"role": "assistant", "content": reply},
            ],
        )

    async def _run_tool(self, tool_use: dict[str, Any]) -> tuple[ToolActivityRecord, str]:
        worker, tool_name = split_identifier(tool_use["name"])
        arguments = tool_use.get("input") or {}
        record = ToolActivityRecord(
            server=worker,
            tool=tool_name,
            input=arguments,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
        logger.info(f"Calling {worker}:{tool_name} {arguments}")

        result = await self.manager.call_tool(worker, tool_name, arguments)
        text = self._result_text(worker, result)
        try:
            record.result = json.loads(text)
        except json.JSONDecodeError as e:
            raise ToolResultParseError(
                worker, f"{worker}/{tool_name} returned non-JSON text: {e.msg}", text
            ) from e
        return record, text

    @staticmethod
    def _result_text(worker: str, result: Any) -> str:
        """The text of the first content block of a tools/call result."""
        try:
            block = result["content"][0]
            text = block["text"]
        except (KeyError, IndexError, TypeError):
            raise MalformedResponse(
                worker, f"Tool result from {worker} has no text content", result
            ) from None
        if not isinstance(text, str):
            raise MalformedResponse(worker, f"Tool result text from {worker} is not a string", result)
        return text

    @staticmethod
    def _final_text(response: ModelResponse) -> str:
        block = response.first_block("text")
        if block is None or "text" not in block:
            return FALLBACK_MESSAGE
        return block["text"]
