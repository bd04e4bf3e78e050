"""
Database worker: customer and order lookup over an in-memory store.

Launch:
    python -m mcp_agent.servers.database

Test manually:
    echo '{"jsonrpc":"2.0","method":"tools/call","params":{"name":"search_customer","arguments":{"email":"john.doe@example.com"}},"id":2}' | python -m mcp_agent.servers.database
"""

from __future__ import annotations

import logging

from mcp_agent.server import StdioToolServer, ToolHandler, configure_worker_logging

logger = logging.getLogger(__name__)

CUSTOMERS = {
    "john.doe@example.com": {
        "id": "CUST-12345",
        "name": "John Doe",
        "email": "john.doe@example.com",
        "tier": "Premium",
        "joinDate": "2023-06-15",
        "orders": [
            {"id": "ORD-001", "status": "Delivered", "date": "2024-11-20"},
            {"id": "ORD-002", "status": "Pending", "date": "2024-11-28"},
        ],
    },
    "jane.smith@example.com": {
        "id": "CUST-67890",
        "name": "Jane Smith",
        "email": "jane.smith@example.com",
        "tier": "Basic",
        "joinDate": "2024-01-10",
        "orders": [
            {"id": "ORD-003", "status": "Shipped", "date": "2024-11-29"},
        ],
    },
}

ORDERS = {
    "ORD-001": {
        "id": "ORD-001",
        "items": ["Laptop Stand", "Wireless Mouse"],
        "total": "$79.99",
        "status": "Delivered",
        "trackingNumber": "TRK-1111111111",
        "estimatedDelivery": "2024-11-22",
    },
    "ORD-002": {
        "id": "ORD-002",
        "items": ["Wireless Headphones", "USB-C Cable"],
        "total": "$89.99",
        "status": "Pending",
        "trackingNumber": "TRK-9876543210",
        "estimatedDelivery": "2024-12-05",
    },
    "ORD-003": {
        "id": "ORD-003",
        "items": ["Mechanical Keyboard"],
        "total": "$129.99",
        "status": "Shipped",
        "trackingNumber": "TRK-5555555555",
        "estimatedDelivery": "2024-12-03",
    },
}


class SearchCustomerTool(ToolHandler):
    name = "search_customer"
    description = "Search for a customer by email address"
    input_schema = {
        "type": "object",
        "properties": {
            "email": {"type": "string", "description": "Customer email address"},
        },
        "required": ["email"],
    }

    def handle(self, arguments: dict) -> dict:
        customer = CUSTOMERS.get(arguments.get("email", ""))
        if customer is None:
            return {"error": "Customer not found"}
        return customer


class GetOrderDetailsTool(ToolHandler):
    name = "get_order_details"
    description = "Get detailed information about a specific order"
    input_schema = {
        "type": "object",
        "properties": {
            "orderId": {"type": "string", "description": "Order ID"},
        },
        "required": ["orderId"],
    }

    def handle(self, arguments: dict) -> dict:
        order = ORDERS.get(arguments.get("orderId", ""))
        if order is None:
            return {"error": "Order not found"}
        return order


def build_server() -> StdioToolServer:
    server = StdioToolServer("database-server")
    server.register(SearchCustomerTool())
    server.register(GetOrderDetailsTool())
    return server


if __name__ == "__main__":
    configure_worker_logging()
    build_server().run()
