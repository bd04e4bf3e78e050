"""
MCP support agent: a language-model agent whose tools live in worker
processes.

Architecture:
    ┌──────────────┐     stdio      ┌──────────────┐
    │  Agent loop  │ ──────────── │    Worker     │
    │  + manager   │  JSON-RPC    │  (subprocess) │
    └──────────────┘     pipes     └──────────────┘

Each worker is a standalone process that answers line-delimited JSON-RPC
2.0 requests (tools/list, tools/call) on stdin/stdout.

ProcessManager launches workers, reads their tool catalogs and routes
calls. ToolUseAgent loops model calls and tool calls until the model
answers in plain text. StdioToolServer is the worker-side base class.
"""

__version__ = "0.1.0"

from mcp_agent.catalog import QualifiedTool, Tool, split_identifier
from mcp_agent.manager import ProcessManager, WorkerHandle
from mcp_agent.server import StdioToolServer, ToolHandler


# The agent loop pulls in the model SDK and the bridge needs langchain.
# Lazy imports keep worker processes light.
def __getattr__(name):
    if name in ("ToolUseAgent", "ConversationResult", "ToolActivityRecord"):
        from mcp_agent import agent
        return getattr(agent, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def to_langchain_tools(*args, **kwargs):
    from mcp_agent.bridge import to_langchain_tools as _impl
    return _impl(*args, **kwargs)


__all__ = [
    "ConversationResult",
    "ProcessManager",
    "QualifiedTool",
    "StdioToolServer",
    "Tool",
    "ToolActivityRecord",
    "ToolHandler",
    "ToolUseAgent",
    "WorkerHandle",
    "split_identifier",
    "to_langchain_tools",
]
