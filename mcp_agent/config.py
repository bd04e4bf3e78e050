"""
Runtime configuration.

Values come from the environment (a ``.env`` file in the working directory
is loaded first). Worker definitions are static: add new workers here as
you build them.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass

from dotenv import load_dotenv

from mcp_agent.agent import DEFAULT_MAX_TOOL_ROUNDS
from mcp_agent.manager import DEFAULT_CALL_TIMEOUT, DEFAULT_STARTUP_TIMEOUT
from mcp_agent.model import DEFAULT_MAX_TOKENS, DEFAULT_MODEL

# ============================================================
# WORKER DEFINITIONS
# ============================================================
# name → {"command": [...], "env": {...} | None}
# Names must not contain "_" (it separates worker and tool in tool ids).

WORKERS = {
    "database": {
        "command": [sys.executable, "-m", "mcp_agent.servers.database"],
    },
    "email": {
        "command": [sys.executable, "-m", "mcp_agent.servers.email"],
    },
}


@dataclass
class Settings:
    anthropic_api_key: str | None = None
    model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    host: str = "127.0.0.1"
    port: int = 3000
    startup_timeout: float = DEFAULT_STARTUP_TIMEOUT
    call_timeout: float = DEFAULT_CALL_TIMEOUT
    max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        if dotenv:
            load_dotenv()
        env = os.environ
        return cls(
            anthropic_api_key=env.get("ANTHROPIC_API_KEY"),
            model=env.get("ANTHROPIC_MODEL", DEFAULT_MODEL),
            max_tokens=int(env.get("MAX_TOKENS", DEFAULT_MAX_TOKENS)),
            host=env.get("HOST", "127.0.0.1"),
            port=int(env.get("PORT", 3000)),
            startup_timeout=float(env.get("WORKER_STARTUP_TIMEOUT", DEFAULT_STARTUP_TIMEOUT)),
            call_timeout=float(env.get("TOOL_CALL_TIMEOUT", DEFAULT_CALL_TIMEOUT)),
            max_tool_rounds=int(env.get("MAX_TOOL_ROUNDS", DEFAULT_MAX_TOOL_ROUNDS)),
        )


def select_workers(names: list[str] | None = None) -> dict[str, dict]:
    """The configured workers, optionally restricted to ``names``."""
    if not names:
        return dict(WORKERS)
    unknown = [n for n in names if n not in WORKERS]
    if unknown:
        raise ValueError(f"Unknown servers: {unknown}. Available: {list(WORKERS)}")
    return {n: WORKERS[n] for n in names}
