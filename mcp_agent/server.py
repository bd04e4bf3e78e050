"""
Worker base class.

A worker is a standalone process that:
1. Reads JSON-RPC requests from stdin, one per line
2. Dispatches tools/call to registered ToolHandlers
3. Writes JSON-RPC responses to stdout, one per line

Diagnostics go to stderr; stdout carries protocol messages only, and the
first thing written to it must be the answer to the orchestrator's
tools/list handshake. A response line may be at most 1 MiB
(mcp_agent.transport.LINE_LIMIT); the orchestrator fails the calls that
are waiting when a longer line arrives.

To create a worker:

    from mcp_agent.server import StdioToolServer, ToolHandler

    class LookupTool(ToolHandler):
        name = "lookup"
        description = "Look something up"
        input_schema = {
            "type": "object",
            "properties": {"key": {"type": "string", "description": "The key"}},
            "required": ["key"],
        }

        def handle(self, arguments: dict) -> dict:
            return {"key": arguments["key"], "found": False}

    if __name__ == "__main__":
        server = StdioToolServer("lookup-server")
        server.register(LookupTool())
        server.run()
"""

from __future__ import annotations

import json
import logging
import sys
from abc import ABC, abstractmethod
from typing import Any, TextIO

logger = logging.getLogger(__name__)

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class ToolHandler(ABC):
    """
    Base class for a tool implementation.

    Subclasses define what a tool does. The server handles transport.
    """

    # Subclasses must set these
    name: str = ""
    description: str = ""
    input_schema: dict[str, Any] = {"type": "object", "properties": {}}

    @abstractmethod
    def handle(self, arguments: dict[str, Any]) -> Any:
        """
        Execute the tool.

        Returns:
            The tool result; it is JSON-encoded into the response's text block.
        """
        ...

    def get_schema(self) -> dict:
        """Return the tool descriptor for tools/list."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


class JsonRpcError(Exception):
    def __init__(self, code: int, message: str):
        self.code = code
        super().__init__(message)


class StdioToolServer:
    """
    JSON-RPC worker that communicates via stdin/stdout.

    Protocol:
    - One JSON-RPC message per line
    - Supports methods:
        - "tools/list" → {"tools": [descriptor, ...]}
        - "tools/call" → {"content": [{"type": "text", "text": <JSON>}]}
        - "ping"       → health check
    """

    def __init__(self, name: str, stdin: TextIO | None = None, stdout: TextIO | None = None):
        self.name = name
        self._handlers: dict[str, ToolHandler] = {}
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout

    def register(self, handler: ToolHandler) -> None:
        """Register a tool handler."""
        if not handler.name:
            raise ValueError(f"ToolHandler {handler.__class__.__name__} has no name")
        self._handlers[handler.name] = handler
        logger.debug(f"Registered tool: {handler.name}")

    def run(self) -> None:
        """
        Main loop: read requests from stdin, dispatch, write responses to stdout.

        This blocks until stdin is closed (parent process terminates).
        """
        logger.info(f"{self.name} running on stdio with tools {list(self._handlers)}")

        for line in self._stdin:
            line = line.strip()
            if not line:
                continue

            try:
                request = json.loads(line)
            except json.JSONDecodeError as e:
                self._write_error(None, PARSE_ERROR, f"Parse error: {e}")
                continue
            if not isinstance(request, dict):
                self._write_error(None, INVALID_REQUEST, "Invalid Request: expected a JSON object")
                continue

            request_id = request.get("id")
            method = request.get("method", "")
            params = request.get("params") or {}

            try:
                result = self._dispatch(method, params)
                self._write_result(request_id, result)
            except JsonRpcError as e:
                self._write_error(request_id, e.code, str(e))
            except Exception as e:
                logger.exception(f"{method} failed")
                self._write_error(request_id, INTERNAL_ERROR, str(e))

    def _dispatch(self, method: str, params: dict) -> Any:
        """Route a method call to the appropriate handler."""

        if method == "ping":
            return {"status": "ok", "tools": list(self._handlers)}

        if method == "tools/list":
            return {"tools": [h.get_schema() for h in self._handlers.values()]}

        if method == "tools/call":
            tool_name = params.get("name", "")
            arguments = params.get("arguments") or {}

            handler = self._handlers.get(tool_name)
            if not handler:
                raise JsonRpcError(INVALID_PARAMS, f"Unknown tool: {tool_name}")

            result = handler.handle(arguments)
            return {"content": [{"type": "text", "text": json.dumps(result)}]}

        raise JsonRpcError(METHOD_NOT_FOUND, f"Unknown method: '{method}'")

    def _write_result(self, request_id: Any, result: Any) -> None:
        """Write a JSON-RPC success response to stdout."""
        self._write({"jsonrpc": "2.0", "id": request_id, "result": result})

    def _write_error(self, request_id: Any, code: int, message: str) -> None:
        """Write a JSON-RPC error response to stdout."""
        self._write({
            "jsonrpc": "2.0",
            "id": request_id,
            "error": {"code": code, "message": message},
        })

    def _write(self, message: dict) -> None:
        self._stdout.write(json.dumps(message) + "\n")
        self._stdout.flush()


def configure_worker_logging(level: int = logging.INFO) -> None:
    """Send worker logs to stderr; stdout is reserved for the protocol."""
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(levelname)s: %(message)s",
    )
