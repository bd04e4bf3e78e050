"""
mcp-agent: serve the support agent, or talk to it from the terminal.

Usage:
    # List the tools the workers advertise
    mcp-agent --list

    # One conversation turn, printed with its tool activity
    mcp-agent --message "Where is the order for john.doe@example.com?"

    # Serve the HTTP API (POST /chat, GET /health)
    mcp-agent --port 3000

    # Only start some workers
    mcp-agent --servers database --list
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from mcp_agent.config import Settings, select_workers
from mcp_agent.errors import OrchestratorError
from mcp_agent.manager import ProcessManager

logger = logging.getLogger(__name__)


async def list_tools(settings: Settings, servers: list[str] | None) -> int:
    async with ProcessManager(settings.startup_timeout, settings.call_timeout) as manager:
        await manager.start_all(select_workers(servers))
        catalog = manager.get_all_tools()
        print(f"\nAvailable tools ({len(catalog)}):\n")
        for qt in catalog:
            print(f"  {qt.identifier:<35} {qt.tool.description}")
        print()
    return 0


async def run_once(settings: Settings, servers: list[str] | None, message: str) -> int:
    from mcp_agent.agent import ToolUseAgent
    from mcp_agent.model import AnthropicModel

    if not settings.anthropic_api_key:
        print("\n⚠  ANTHROPIC_API_KEY not set. Cannot invoke the model.")
        print("   Set it in .env or export it, then re-run.")
        return 1

    async with ProcessManager(settings.startup_timeout, settings.call_timeout) as manager:
        await manager.start_all(select_workers(servers))
        model = AnthropicModel(
            settings.model,
            api_key=settings.anthropic_api_key,
            max_tokens=settings.max_tokens,
        )
        agent = ToolUseAgent(manager, model, max_tool_rounds=settings.max_tool_rounds)
        result = await agent.converse(message)

    for record in result.tool_activity:
        print(f"[{record.server}:{record.tool}] {json.dumps(record.input)}")
        print(f"  → {json.dumps(record.result)}")
    print("=" * 60)
    print(result.message)
    print("=" * 60)
    return 0


def serve(settings: Settings, servers: list[str] | None) -> int:
    import uvicorn

    from mcp_agent.app import create_app

    app = create_app(settings, servers=servers)
    print(f"\n🚀 Server running on http://{settings.host}:{settings.port}")
    print(f"📡 API endpoint: http://{settings.host}:{settings.port}/api/chat")
    print(f"💚 Health check: http://{settings.host}:{settings.port}/api/health\n")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level="info")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="mcp-agent",
        description="Customer support agent with stdio tool workers.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  mcp-agent --list
  mcp-agent --message "What is the status of order ORD-002?"
  mcp-agent --host 0.0.0.0 --port 8080
        """,
    )
    parser.add_argument("--list", action="store_true", help="List available tools and exit")
    parser.add_argument("--message", "-m", type=str, help="Run one conversation turn and exit")
    parser.add_argument("--servers", type=str, nargs="*", default=None, help="Which workers to start (default: all)")
    parser.add_argument("--host", type=str, default=None, help="Bind address for the HTTP server")
    parser.add_argument("--port", "-p", type=int, default=None, help="Port for the HTTP server")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug output")

    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        select_workers(args.servers)
    except ValueError as e:
        parser.error(str(e))

    settings = Settings.from_env()
    if args.host:
        settings.host = args.host
    if args.port:
        settings.port = args.port

    try:
        if args.list:
            return asyncio.run(list_tools(settings, args.servers))
        if args.message:
            return asyncio.run(run_once(settings, args.servers, args.message))
        return serve(settings, args.servers)
    except OrchestratorError as e:
        logger.error(f"Failed: {e}")
        return 1
    except KeyboardInterrupt:
        print("\nServers stopped.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
