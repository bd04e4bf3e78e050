"""Tests for the worker-side stdio server and the shipped workers."""

import io
import json

import pytest

from mcp_agent.server import StdioToolServer, ToolHandler
from mcp_agent.servers import database, email


class BoomTool(ToolHandler):
    name = "boom"
    description = "Always fails"

    def handle(self, arguments):
        raise RuntimeError("kaboom")


def run(server_factory, *requests) -> list[dict]:
    """Feed requests through a server and return the parsed responses."""
    lines = [r if isinstance(r, str) else json.dumps(r) for r in requests]
    stdin = io.StringIO("\n".join(lines) + "\n")
    stdout = io.StringIO()
    server = server_factory()
    server._stdin, server._stdout = stdin, stdout
    server.run()
    return [json.loads(line) for line in stdout.getvalue().splitlines()]


def call(request_id, name, arguments=None):
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": "tools/call",
        "params": {"name": name, "arguments": arguments or {}},
    }


class TestStdioToolServer:

    def test_tools_list_shape(self):
        [response] = run(database.build_server, {"jsonrpc": "2.0", "id": 1, "method": "tools/list", "params": {}})

        assert response["id"] == 1
        tools = response["result"]["tools"]
        assert [t["name"] for t in tools] == ["search_customer", "get_order_details"]
        assert set(tools[0]) == {"name", "description", "inputSchema"}

    def test_tools_call_wraps_result_as_text(self):
        [response] = run(database.build_server, call(2, "get_order_details", {"orderId": "ORD-003"}))

        content = response["result"]["content"]
        assert content[0]["type"] == "text"
        assert json.loads(content[0]["text"])["trackingNumber"] == "TRK-5555555555"

    def test_one_response_per_request_in_order(self):
        responses = run(
            database.build_server,
            {"jsonrpc": "2.0", "id": 1, "method": "ping", "params": {}},
            "",
            call(2, "search_customer", {"email": "jane.smith@example.com"}),
        )
        assert [r["id"] for r in responses] == [1, 2]
        assert responses[0]["result"]["status"] == "ok"

    def test_unknown_tool(self):
        [response] = run(database.build_server, call(3, "nope"))
        assert response["error"]["code"] == -32602

    def test_unknown_method(self):
        [response] = run(database.build_server, {"jsonrpc": "2.0", "id": 4, "method": "resources/list"})
        assert response["error"]["code"] == -32601

    def test_parse_error(self):
        [response] = run(database.build_server, "{broken")
        assert response["id"] is None
        assert response["error"]["code"] == -32700

    def test_non_object_request_is_invalid(self):
        responses = run(
            database.build_server,
            "[1]",
            {"jsonrpc": "2.0", "id": 2, "method": "ping", "params": {}},
        )
        assert responses[0]["id"] is None
        assert responses[0]["error"]["code"] == -32600
        assert responses[1]["id"] == 2
        assert responses[1]["result"]["status"] == "ok"

    def test_handler_exception_is_internal_error(self):
        def factory():
            server = StdioToolServer("boom-server")
            server.register(BoomTool())
            return server

        [response] = run(factory, call(5, "boom"))
        assert response["error"] == {"code": -32603, "message": "kaboom"}

    def test_register_requires_name(self):
        class Nameless(ToolHandler):
            def handle(self, arguments):
                return None

        with pytest.raises(ValueError):
            StdioToolServer("x").register(Nameless())


class TestDatabaseWorker:

    def test_search_customer(self):
        result = database.SearchCustomerTool().handle({"email": "john.doe@example.com"})
        assert result["id"] == "CUST-12345"
        assert [o["id"] for o in result["orders"]] == ["ORD-001", "ORD-002"]

    def test_search_customer_not_found(self):
        assert database.SearchCustomerTool().handle({"email": "ghost@example.com"}) == {
            "error": "Customer not found"
        }

    def test_get_order_details_not_found(self):
        assert database.GetOrderDetailsTool().handle({"orderId": "ORD-999"}) == {
            "error": "Order not found"
        }


class TestEmailWorker:

    def test_send_email(self):
        result = email.SendEmailTool().handle({
            "to": "john.doe@example.com",
            "subject": "Your order",
            "body": "It shipped.",
        })
        assert result["sent"] is True
        assert result["to"] == "john.doe@example.com"
        assert result["subject"] == "Your order"
        assert result["messageId"].startswith("MSG-")
