"""Tests for the Anthropic model adapter."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest
from anthropic import APIError
from anthropic.types import TextBlock, ToolUseBlock

from mcp_agent.errors import ModelInvocationError
from mcp_agent.model import AnthropicModel, ModelResponse


def fake_client(create: AsyncMock) -> SimpleNamespace:
    return SimpleNamespace(messages=SimpleNamespace(create=create))


class TestAnthropicModel:

    @pytest.mark.asyncio
    async def test_blocks_become_plain_dicts(self):
        message = SimpleNamespace(
            stop_reason="tool_use",
            content=[
                TextBlock(type="text", text="Checking."),
                ToolUseBlock(type="tool_use", id="toolu_1", name="email_send_email", input={"to": "a@b.c"}),
            ],
        )
        create = AsyncMock(return_value=message)
        model = AnthropicModel("claude-test", max_tokens=512, client=fake_client(create))

        response = await model.create("system prompt", [{"role": "user", "content": "hi"}], [
            {"name": "email_send_email", "description": "", "input_schema": {"type": "object"}},
        ])

        assert response.wants_tool
        assert response.first_block("text")["text"] == "Checking."
        tool_use = response.first_block("tool_use")
        assert (tool_use["id"], tool_use["name"], tool_use["input"]) == (
            "toolu_1", "email_send_email", {"to": "a@b.c"},
        )
        assert all(isinstance(block, dict) for block in response.content)
        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "claude-test"
        assert kwargs["max_tokens"] == 512
        assert kwargs["system"] == "system prompt"
        assert kwargs["tools"][0]["name"] == "email_send_email"

    @pytest.mark.asyncio
    async def test_tools_omitted_when_catalog_empty(self):
        create = AsyncMock(return_value=SimpleNamespace(stop_reason="end_turn", content=[]))
        model = AnthropicModel(client=fake_client(create))

        response = await model.create("s", [], [])

        assert "tools" not in create.call_args.kwargs
        assert not response.wants_tool

    @pytest.mark.asyncio
    async def test_api_error_is_wrapped(self):
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        create = AsyncMock(side_effect=APIError("overloaded", request, body=None))
        model = AnthropicModel(client=fake_client(create))

        with pytest.raises(ModelInvocationError, match="overloaded"):
            await model.create("s", [], [])


class TestModelResponse:

    def test_first_block_missing(self):
        assert ModelResponse(stop_reason="end_turn").first_block("text") is None
