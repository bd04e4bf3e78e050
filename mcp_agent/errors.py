"""
Exception hierarchy for the orchestrator.

Worker-side failures derive from ToolServerError and carry the worker name.
Agent-loop failures derive from AgentError. Nothing here is retried
internally; callers decide what a failure means for them.
"""

from __future__ import annotations

from typing import Any


class OrchestratorError(Exception):
    """Base class for every error raised by mcp_agent."""


class ToolServerError(OrchestratorError):
    """A worker process failed to start, answer, or stay alive."""

    def __init__(self, worker: str, message: str):
        self.worker = worker
        super().__init__(message)


class StartupTimeout(ToolServerError):
    """The worker did not answer the handshake within the startup bound."""

    def __init__(self, worker: str, timeout: float):
        self.timeout = timeout
        super().__init__(
            worker, f"{worker} server timeout: no handshake after {timeout}s"
        )


class HandshakeParseError(ToolServerError):
    """The worker's first output line was not a tools/list response."""

    def __init__(self, worker: str, line: str, reason: str):
        self.line = line
        super().__init__(
            worker, f"{worker} sent an invalid handshake ({reason}): {line[:200]!r}"
        )


class WorkerNotReady(ToolServerError):
    """No ready worker is registered under this name."""

    def __init__(self, worker: str):
        super().__init__(worker, f"Server {worker} not ready")


class CallTimeout(ToolServerError):
    """No response with the call's id arrived before its deadline."""

    def __init__(self, worker: str, method: str, request_id: int | str, timeout: float):
        self.method = method
        self.request_id = request_id
        self.timeout = timeout
        super().__init__(
            worker,
            f"Tool call timeout: {worker} did not answer {method} "
            f"(id={request_id}) within {timeout}s",
        )


class MalformedResponse(ToolServerError):
    """A response addressed to a call could not be understood."""

    def __init__(self, worker: str, message: str, payload: Any = None):
        self.payload = payload
        super().__init__(worker, message)


class ToolResultParseError(MalformedResponse):
    """A tool's text payload was not valid JSON."""


class ToolCallError(ToolServerError):
    """The worker answered with a JSON-RPC error object."""

    def __init__(self, worker: str, tool: str, error: dict):
        self.tool = tool
        self.error = error
        super().__init__(worker, f"Tool call failed ({worker}/{tool}): {error}")


class WorkerExited(ToolServerError):
    """The worker's output stream closed while calls were pending."""

    def __init__(self, worker: str, returncode: int | None = None):
        self.returncode = returncode
        super().__init__(worker, f"Server {worker} exited (returncode={returncode})")


class AgentError(OrchestratorError):
    """The agent loop could not produce an answer."""


class ModelInvocationError(AgentError):
    """The language-model API call failed."""

    def __init__(self, message: str, status_code: int | str | None = None):
        self.status_code = status_code
        super().__init__(message)


class ToolLoopExceeded(AgentError):
    """The model kept requesting tools past the configured round cap."""

    def __init__(self, max_rounds: int):
        self.max_rounds = max_rounds
        super().__init__(f"Model requested more than {max_rounds} tool rounds")
