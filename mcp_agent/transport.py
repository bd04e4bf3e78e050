"""
Transport layer for worker communication.

Implements:
  - StdioTransport: line-delimited JSON-RPC over a child process's
    stdin/stdout pipes, with stderr forwarded to logging.

Every StdioTransport runs a single reader task once the handshake has been
read. The reader parses each stdout line once and resolves the pending call
whose id matches, so concurrent callers never see each other's traffic.
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable

from mcp_agent.errors import (
    CallTimeout,
    HandshakeParseError,
    MalformedResponse,
    StartupTimeout,
    WorkerExited,
    WorkerNotReady,
)

logger = logging.getLogger(__name__)

# Id reserved for the tools/list handshake; calls are numbered after it.
HANDSHAKE_ID = 1

# Largest single stdout/stderr line a worker may emit.
LINE_LIMIT = 1024 * 1024


@dataclass
class JsonRpcRequest:
    """JSON-RPC 2.0 request."""
    method: str
    params: dict[str, Any]
    id: int | str

    def to_json(self) -> str:
        return json.dumps({
            "jsonrpc": "2.0",
            "id": self.id,
            "method": self.method,
            "params": self.params,
        })


@dataclass
class JsonRpcResponse:
    """JSON-RPC 2.0 response."""
    id: int | str | None
    result: Any = None
    error: dict | None = None

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "JsonRpcResponse":
        return cls(
            id=payload.get("id"),
            result=payload.get("result"),
            error=payload.get("error"),
        )

    @property
    def is_error(self) -> bool:
        return self.error is not None


class Transport(ABC):
    """Abstract transport between the orchestrator and one worker."""

    @abstractmethod
    async def open(self, request: JsonRpcRequest, timeout: float) -> JsonRpcResponse:
        """Start the worker, send the handshake request, return its answer."""
        ...

    @abstractmethod
    async def send(self, request: JsonRpcRequest, timeout: float) -> JsonRpcResponse:
        """Send a request and wait for the response carrying its id."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop the transport and release the worker."""
        ...

    @abstractmethod
    def is_alive(self) -> bool:
        """Check if the transport is active."""
        ...


class StdioTransport(Transport):
    """
    JSON-RPC over stdin/stdout pipes to a subprocess.

    The worker runs as a child process. Requests are written to its stdin,
    one JSON document per line. The first stdout line must be the answer to
    the handshake request; after that, responses may arrive in any order
    and are matched to callers by id.
    """

    def __init__(
        self,
        name: str,
        command: list[str],
        env: dict[str, str] | None = None,
        on_exit: Callable[["StdioTransport"], None] | None = None,
    ):
        """
        Args:
            name: Worker name, used in logs and errors.
            command: Command that launches the worker process.
                     e.g., [sys.executable, "-m", "mcp_agent.servers.email"]
            env: Optional environment variables for the subprocess.
            on_exit: Called once if the worker's stdout closes on its own.
        """
        self.name = name
        self.command = command
        self.env = env
        self.on_exit = on_exit
        self._process: asyncio.subprocess.Process | None = None
        self._request_id = HANDSHAKE_ID
        self._pending: dict[int | str, asyncio.Future] = {}
        self._reader: asyncio.Task | None = None
        self._stderr_pump: asyncio.Task | None = None
        self._closing = False

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process else None

    @property
    def pending_ids(self) -> list[int | str]:
        return list(self._pending)

    async def open(self, request: JsonRpcRequest, timeout: float) -> JsonRpcResponse:
        """
        Launch the worker and read its handshake.

        Raises:
            StartupTimeout: no stdout line within ``timeout`` seconds.
            HandshakeParseError: the first line is not a JSON-RPC object.
        """
        if self.is_alive():
            logger.warning(f"{self.name}: transport already running, stopping first")
            await self.stop()

        logger.info(f"Starting stdio transport for {self.name}: {' '.join(self.command)}")
        self._closing = False
        self._process = await asyncio.create_subprocess_exec(
            *self.command,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=self.env,
            limit=LINE_LIMIT,
        )
        self._stderr_pump = asyncio.create_task(self._forward_stderr())

        await self._write(request)

        try:
            raw = await asyncio.wait_for(self._process.stdout.readline(), timeout)
        except asyncio.TimeoutError:
            raise StartupTimeout(self.name, timeout) from None
        except ValueError as e:
            raise HandshakeParseError(self.name, "", f"line too long: {e}") from e

        line = raw.decode("utf-8", errors="replace").strip()
        if not line:
            raise HandshakeParseError(self.name, line, "no output before exit")
        try:
            payload = json.loads(line)
        except json.JSONDecodeError as e:
            raise HandshakeParseError(self.name, line, f"not JSON: {e.msg}") from e
        if not isinstance(payload, dict):
            raise HandshakeParseError(self.name, line, "not a JSON-RPC object")

        self._reader = asyncio.create_task(self._read_responses())
        return JsonRpcResponse.from_dict(payload)

    async def send(self, request: JsonRpcRequest, timeout: float) -> JsonRpcResponse:
        """
        Write a request and wait for the response carrying its id.

        Raises:
            WorkerNotReady: the transport is not running.
            CallTimeout: no matching response within ``timeout`` seconds.
            MalformedResponse: the matching response is not a JSON-RPC response.
            WorkerExited: the worker closed its stdout first.
        """
        if not self.is_alive() or self._reader is None:
            raise WorkerNotReady(self.name)

        future = asyncio.get_running_loop().create_future()
        self._pending[request.id] = future
        try:
            await self._write(request)
            return await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            raise CallTimeout(self.name, request.method, request.id, timeout) from None
        finally:
            self._pending.pop(request.id, None)

    async def stop(self) -> None:
        """Terminate the worker process; kill it if it ignores SIGTERM."""
        process = self._process
        if process is None:
            return
        self._closing = True

        if process.stdin and not process.stdin.is_closing():
            process.stdin.close()
        if process.returncode is None:
            try:
                process.terminate()
                await asyncio.wait_for(process.wait(), 5)
            except ProcessLookupError:
                pass
            except asyncio.TimeoutError:
                logger.warning(f"{self.name}: did not exit after SIGTERM, killing")
                process.kill()
                await process.wait()

        for task in (self._reader, self._stderr_pump):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._reader = None
        self._stderr_pump = None

        self._fail_pending(WorkerExited(self.name, process.returncode))
        self._process = None
        logger.info(f"Stdio transport for {self.name} stopped")

    def is_alive(self) -> bool:
        """Check if the subprocess is running."""
        return (
            self._process is not None
            and self._process.returncode is None
            and not self._closing
        )

    def next_id(self) -> int:
        """Generate the next request ID."""
        self._request_id += 1
        return self._request_id

    async def _write(self, request: JsonRpcRequest) -> None:
        line = request.to_json() + "\n"
        try:
            self._process.stdin.write(line.encode("utf-8"))
            await self._process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            raise WorkerExited(self.name, self._process.returncode) from e

    async def _read_responses(self) -> None:
        """Demultiplex stdout lines to pending calls until EOF."""
        stdout = self._process.stdout
        try:
            while True:
                try:
                    raw = await stdout.readline()
                except ValueError as e:
                    # The id of an oversized line is unknown, so every waiting call fails.
                    logger.warning(f"{self.name}: dropping oversized output line: {e}")
                    self._fail_pending(MalformedResponse(
                        self.name,
                        f"{self.name} wrote a line longer than {LINE_LIMIT} bytes",
                    ))
                    continue
                if not raw:
                    break
                self.handle_line(raw)
        finally:
            if not self._closing:
                self._handle_exit()

    def handle_line(self, raw: bytes | str) -> None:
        """Parse one stdout line and resolve the pending call it answers."""
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        line = raw.strip()
        if not line:
            return

        try:
            payload = json.loads(line)
        except json.JSONDecodeError:
            logger.warning(f"{self.name}: discarding unparseable line: {line[:200]!r}")
            return
        if not isinstance(payload, dict):
            logger.warning(f"{self.name}: discarding non-object message: {line[:200]!r}")
            return

        request_id = payload.get("id")
        future = self._pending.get(request_id)
        if future is None or future.done():
            logger.debug(f"{self.name}: no pending call for id={request_id!r}, dropping")
            return

        if "result" not in payload and "error" not in payload:
            future.set_exception(MalformedResponse(
                self.name,
                f"Response from {self.name} (id={request_id!r}) has neither result nor error",
                payload,
            ))
        else:
            future.set_result(JsonRpcResponse.from_dict(payload))

    async def _forward_stderr(self) -> None:
        stderr = self._process.stderr
        while True:
            try:
                raw = await stderr.readline()
            except ValueError:
                continue
            if not raw:
                return
            text = raw.decode("utf-8", errors="replace").rstrip()
            if text:
                logger.info(f"{self.name}: {text}")

    def _handle_exit(self) -> None:
        returncode = self._process.returncode if self._process else None
        logger.error(f"{self.name}: output closed, worker exited (returncode={returncode})")
        self._fail_pending(WorkerExited(self.name, returncode))
        self._closing = True
        if self._process and not self._process.stdin.is_closing():
            self._process.stdin.close()
        if self.on_exit is not None:
            self.on_exit(self)

    def _fail_pending(self, error: Exception) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(error)
