"""
Process Manager: launches worker processes and routes tool calls to them.

Usage:
    async with ProcessManager() as manager:
        # Start a worker and discover its tools
        await manager.start_worker(
            "database", [sys.executable, "-m", "mcp_agent.servers.database"]
        )

        # Call a tool
        result = await manager.call_tool(
            "database", "search_customer", {"email": "john.doe@example.com"}
        )

        # Everything the model may call, namespaced by worker
        catalog = manager.get_all_tools()

    # Leaving the block stops every worker process.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from mcp_agent.catalog import SEPARATOR, QualifiedTool, Tool, aggregate
from mcp_agent.errors import HandshakeParseError, ToolCallError, WorkerNotReady
from mcp_agent.transport import HANDSHAKE_ID, JsonRpcRequest, StdioTransport

logger = logging.getLogger(__name__)

DEFAULT_STARTUP_TIMEOUT = 5.0
DEFAULT_CALL_TIMEOUT = 10.0


@dataclass
class WorkerHandle:
    """One running worker as seen by the manager."""
    name: str
    transport: StdioTransport
    ready: bool = False
    tools: list[Tool] = field(default_factory=list)

    def mark_ready(self, tools: list[Tool]) -> None:
        self.tools = list(tools)
        self.ready = True


class ProcessManager:
    """
    Owns the worker processes of one orchestrator.

    Responsibilities:
    - Launch workers as subprocesses and read their tool catalogs
    - Route tool calls to the correct worker
    - Stop every owned process on shutdown, including error paths
    """

    def __init__(
        self,
        startup_timeout: float = DEFAULT_STARTUP_TIMEOUT,
        call_timeout: float = DEFAULT_CALL_TIMEOUT,
    ):
        self.startup_timeout = startup_timeout
        self.call_timeout = call_timeout
        self._workers: dict[str, WorkerHandle] = {}
        # Stops of workers whose output closed on its own.
        self._reaping: set[asyncio.Task] = set()

    async def __aenter__(self) -> "ProcessManager":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop_all()

    async def start_worker(
        self,
        name: str,
        command: list[str],
        env: dict[str, str] | None = None,
    ) -> WorkerHandle:
        """
        Start a worker and discover its tools.

        Returns:
            The ready WorkerHandle.

        Raises:
            StartupTimeout: the worker did not answer tools/list in time.
            HandshakeParseError: the answer was not a tools/list result.
        """
        if SEPARATOR in name:
            raise ValueError(f"Worker name {name!r} must not contain {SEPARATOR!r}")
        if name in self._workers:
            raise ValueError(f"Worker {name!r} is already running")

        transport = StdioTransport(name, command, env, on_exit=self._worker_exited)
        handle = WorkerHandle(name=name, transport=transport)
        self._workers[name] = handle

        request = JsonRpcRequest(method="tools/list", params={}, id=HANDSHAKE_ID)
        try:
            response = await transport.open(request, self.startup_timeout)
            tools = self._parse_tools(name, response.result)
        except BaseException:
            self._workers.pop(name, None)
            await transport.stop()
            raise

        handle.mark_ready(tools)
        logger.info(f"✓ {name} server started with {len(tools)} tools: "
                    f"{[t.name for t in tools]}")
        return handle

    async def start_all(self, workers: Mapping[str, Mapping[str, Any]]) -> None:
        """
        Start every worker in ``workers`` ({name: {"command": [...], "env": ...}}).

        The first failure stops the workers already started and propagates.
        """
        try:
            for name, spec in workers.items():
                await self.start_worker(name, list(spec["command"]), spec.get("env"))
        except BaseException:
            await self.stop_all()
            raise
        logger.info("✓ All servers initialized")

    async def stop_worker(self, name: str) -> None:
        """Stop a worker and forget it."""
        handle = self._workers.pop(name, None)
        if handle is not None:
            await handle.transport.stop()
            logger.info(f"Stopped {name}")

    async def stop_all(self) -> None:
        """Stop all running workers, including ones that already exited."""
        for name in list(self._workers):
            await self.stop_worker(name)
        if self._reaping:
            await asyncio.gather(*self._reaping)

    async def call_tool(
        self,
        worker_name: str,
        tool_name: str,
        arguments: dict[str, Any],
    ) -> Any:
        """
        Call a tool on a specific worker.

        Returns:
            The ``result`` field of the worker's response.

        Raises:
            WorkerNotReady: no ready worker by that name (nothing is sent).
            CallTimeout: no response within the call timeout.
            MalformedResponse: the response could not be understood.
            ToolCallError: the worker answered with a JSON-RPC error.
        """
        handle = self._workers.get(worker_name)
        if handle is None or not handle.ready:
            raise WorkerNotReady(worker_name)

        transport = handle.transport
        request = JsonRpcRequest(
            method="tools/call",
            params={"name": tool_name, "arguments": arguments},
            id=transport.next_id(),
        )
        logger.debug(f"→ {worker_name} id={request.id} {tool_name} {arguments}")

        response = await transport.send(request, self.call_timeout)

        if response.is_error:
            raise ToolCallError(worker_name, tool_name, response.error)
        return response.result

    def get_all_tools(self) -> list[QualifiedTool]:
        """Every tool of every ready worker, namespaced by worker."""
        return aggregate(self._workers.values())

    def get(self, name: str) -> WorkerHandle | None:
        return self._workers.get(name)

    def names(self) -> list[str]:
        return list(self._workers)

    def health(self) -> dict[str, dict[str, Any]]:
        """Readiness and tool count for every worker."""
        return {
            name: {"ready": handle.ready, "toolCount": len(handle.tools)}
            for name, handle in self._workers.items()
        }

    def _worker_exited(self, transport: StdioTransport) -> None:
        handle = self._workers.get(transport.name)
        if handle is not None and handle.transport is transport:
            del self._workers[transport.name]
            logger.error(f"{transport.name} exited; removed from the manager")

        # A closed stdout does not mean the process is gone; stop and reap it.
        task = asyncio.get_running_loop().create_task(transport.stop())
        self._reaping.add(task)
        task.add_done_callback(self._reaping.discard)

    @staticmethod
    def _parse_tools(name: str, result: Any) -> list[Tool]:
        if not isinstance(result, dict) or not isinstance(result.get("tools"), list):
            raise HandshakeParseError(name, repr(result), "result.tools missing")
        try:
            tools = [Tool.from_dict(descriptor) for descriptor in result["tools"]]
        except (KeyError, TypeError, ValueError) as e:
            raise HandshakeParseError(name, repr(result), f"bad tool descriptor: {e}") from e

        names = [t.name for t in tools]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise HandshakeParseError(name, repr(result), f"duplicate tool names: {duplicates}")
        return tools
