"""Tests for the HTTP request/response contract."""

import json

import pytest
from fastapi.testclient import TestClient

from conftest import FakeManager, ScriptedModel, final, tool_use
from mcp_agent.agent import ToolUseAgent
from mcp_agent.app import create_app
from mcp_agent.config import Settings
from mcp_agent.errors import CallTimeout

CUSTOMER = json.dumps({"id": "CUST-12345"})


def make_client(responses, tools=None) -> TestClient:
    manager = FakeManager(tools or {"database": {"search_customer": CUSTOMER}})
    agent = ToolUseAgent(manager, ScriptedModel(responses))
    return TestClient(create_app(Settings(), manager=manager, agent=agent))


class TestChat:

    @pytest.mark.parametrize("path", ["/chat", "/api/chat"])
    def test_chat_round_trip(self, path):
        client = make_client([
            tool_use("database_search_customer", {"email": "john.doe@example.com"}),
            final("Found your account."),
        ])

        response = client.post(path, json={"message": "find me"})

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Found your account."
        [activity] = data["toolActivity"]
        assert activity["server"] == "database"
        assert activity["tool"] == "search_customer"
        assert activity["input"] == {"email": "john.doe@example.com"}
        assert activity["result"] == {"id": "CUST-12345"}
        assert "timestamp" in activity
        assert data["conversationHistory"] == [
            {"role": "user", "content": "find me"},
            {"role": "assistant", "content": "Found your account."},
        ]

    def test_history_is_carried_forward(self):
        client = make_client([final("Sure.")])
        history = [
            {"role": "user", "content": "hello"},
            {"role": "assistant", "content": "Hi!"},
        ]

        data = client.post("/chat", json={"message": "thanks", "conversationHistory": history}).json()

        assert data["conversationHistory"][:2] == history
        assert len(data["conversationHistory"]) == 4

    @pytest.mark.parametrize("body", [{}, {"message": ""}, {"conversationHistory": []}])
    def test_missing_message_returns_400(self, body):
        client = make_client([])
        response = client.post("/chat", json=body)
        assert response.status_code == 400
        assert response.json() == {"error": "Message is required"}

    def test_tool_failure_returns_500_with_details(self):
        client = make_client(
            [tool_use("database_search_customer", {"email": "x"})],
            tools={"database": {"search_customer": CallTimeout("database", "tools/call", 2, 10.0)}},
        )

        response = client.post("/api/chat", json={"message": "find me"})

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Failed to process message"
        assert "timeout" in data["details"].lower()
        assert "message" not in data


class TestHealth:

    @pytest.mark.parametrize("path", ["/health", "/api/health"])
    def test_health_reports_workers(self, path):
        client = make_client([], tools={
            "database": {"search_customer": "{}", "get_order_details": "{}"},
            "email": {"send_email": "{}"},
        })

        response = client.get(path)

        assert response.status_code == 200
        assert response.json() == {
            "status": "ok",
            "servers": {
                "database": {"ready": True, "toolCount": 2},
                "email": {"ready": True, "toolCount": 1},
            },
        }


class TestLifespan:

    def test_app_starts_and_stops_its_workers(self):
        app = create_app(Settings(anthropic_api_key="test-key"), servers=["database"])
        manager = app.state.manager

        with TestClient(app) as client:
            assert client.get("/health").json()["servers"] == {
                "database": {"ready": True, "toolCount": 2}
            }
            transport = manager.get("database").transport
            assert transport.is_alive()

        assert manager.names() == []
        assert not transport.is_alive()
