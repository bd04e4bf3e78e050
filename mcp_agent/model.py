"""
Model client: the language model behind the agent loop.

The loop only needs one operation: send the system instruction, the tool
catalog and the conversation, get back a stop reason and content blocks.
AnthropicModel implements it over the Anthropic Messages API; tests drive
the loop with a scripted ModelClient instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

from anthropic import APIError, AsyncAnthropic

from mcp_agent.errors import ModelInvocationError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_MAX_TOKENS = 4096


@dataclass
class ModelResponse:
    """Provider-neutral view of one model reply."""
    stop_reason: str | None
    content: list[dict[str, Any]] = field(default_factory=list)

    @property
    def wants_tool(self) -> bool:
        return self.stop_reason == "tool_use"

    def first_block(self, block_type: str) -> dict[str, Any] | None:
        return next((b for b in self.content if b.get("type") == block_type), None)


class ModelClient(Protocol):
    async def create(
        self,
        system: str,
        messages: Sequence[dict[str, Any]],
        tools: Sequence[dict[str, Any]],
    ) -> ModelResponse:
        ...


class AnthropicModel:
    """ModelClient backed by anthropic.AsyncAnthropic."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        *,
        api_key: str | None = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout: float = 120.0,
        max_retries: int = 2,
        client: AsyncAnthropic | None = None,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self._client = client or AsyncAnthropic(
            api_key=api_key, timeout=timeout, max_retries=max_retries
        )

    async def create(
        self,
        system: str,
        messages: Sequence[dict[str, Any]],
        tools: Sequence[dict[str, Any]],
    ) -> ModelResponse:
        params: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": system,
            "messages": list(messages),
        }
        if tools:
            params["tools"] = list(tools)

        try:
            message = await self._client.messages.create(**params)
        except APIError as e:
            status = getattr(e, "status_code", "unknown")
            logger.error(f"Anthropic API error ({status}): {e}")
            raise ModelInvocationError(f"API error ({status}): {e}", status) from e

        content = [block.model_dump(exclude_none=True) for block in message.content]
        logger.debug(f"Model stop_reason={message.stop_reason} blocks="
                     f"{[b.get('type') for b in content]}")
        return ModelResponse(stop_reason=message.stop_reason, content=content)
