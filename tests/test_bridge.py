"""Tests for the LangChain bridge."""

import json

import pytest

from conftest import DATABASE, EMAIL
from mcp_agent.bridge import to_langchain_tool, to_langchain_tools
from mcp_agent.manager import ProcessManager


class TestBridge:

    @pytest.mark.asyncio
    async def test_catalog_becomes_structured_tools(self):
        async with ProcessManager() as manager:
            await manager.start_worker("database", DATABASE)
            await manager.start_worker("email", EMAIL)

            tools = to_langchain_tools(manager)

        assert [t.name for t in tools] == [
            "database_search_customer",
            "database_get_order_details",
            "email_send_email",
        ]
        assert tools[0].description == "Search for a customer by email address"

    @pytest.mark.asyncio
    async def test_tool_invocation_reaches_worker(self):
        async with ProcessManager() as manager:
            await manager.start_worker("database", DATABASE)
            [search, _] = to_langchain_tools(manager)

            text = await search.ainvoke({"email": "john.doe@example.com"})

        assert json.loads(text)["id"] == "CUST-12345"

    @pytest.mark.asyncio
    async def test_worker_failure_is_returned_as_text(self):
        async with ProcessManager() as manager:
            await manager.start_worker("database", DATABASE)
            qualified = manager.get_all_tools()[0]
            tool = to_langchain_tool(manager, qualified, description_override="Lookup")
            await manager.stop_worker("database")

            text = await tool.ainvoke({"email": "john.doe@example.com"})

        assert tool.description == "Lookup"
        assert text.startswith("Error calling database/search_customer")
