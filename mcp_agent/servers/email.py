"""
Email worker: simulated outbound e-mail.

Nothing is delivered; each send is logged to stderr and acknowledged with a
generated message id.

Launch:
    python -m mcp_agent.servers.email
"""

from __future__ import annotations

import logging
import time

from mcp_agent.server import StdioToolServer, ToolHandler, configure_worker_logging

logger = logging.getLogger(__name__)


class SendEmailTool(ToolHandler):
    name = "send_email"
    description = "Send an email to a customer"
    input_schema = {
        "type": "object",
        "properties": {
            "to": {"type": "string", "description": "Recipient email address"},
            "subject": {"type": "string", "description": "Email subject"},
            "body": {"type": "string", "description": "Email body content"},
        },
        "required": ["to", "subject", "body"],
    }

    def handle(self, arguments: dict) -> dict:
        to = arguments.get("to", "")
        subject = arguments.get("subject", "")
        logger.info(f"Email sent to {to}: {subject}")
        return {
            "sent": True,
            "messageId": f"MSG-{int(time.time() * 1000)}",
            "to": to,
            "subject": subject,
        }


def build_server() -> StdioToolServer:
    server = StdioToolServer("email-server")
    server.register(SendEmailTool())
    return server


if __name__ == "__main__":
    configure_worker_logging()
    build_server().run()
