"""
HTTP front end for the support agent.

Routes are served at the root and again under /api:

    POST /chat     {message, conversationHistory?} → {message, toolActivity, conversationHistory}
    GET  /health   per-worker readiness and tool counts
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mcp_agent import __version__
from mcp_agent.agent import ToolUseAgent
from mcp_agent.config import Settings, select_workers
from mcp_agent.manager import ProcessManager
from mcp_agent.model import AnthropicModel
from mcp_agent.schemas import (
    ChatRequest,
    ChatResponse,
    ErrorResponse,
    HealthResponse,
    ToolActivity,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def chat(body: ChatRequest, request: Request):
    """Answer one user message, calling worker tools as the model asks."""
    if not body.message:
        return _error(400, "Message is required")

    agent: ToolUseAgent = request.app.state.agent
    try:
        result = await agent.converse(body.message, body.conversationHistory)
    except Exception as e:
        logger.exception("Chat error")
        return _error(500, "Failed to process message", str(e))

    return ChatResponse(
        message=result.message,
        toolActivity=[ToolActivity(**r.to_dict()) for r in result.tool_activity],
        conversationHistory=result.conversation_history,
    )


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    manager: ProcessManager = request.app.state.manager
    return HealthResponse(status="ok", servers=manager.health())


def _error(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def create_app(
    settings: Settings | None = None,
    manager: ProcessManager | None = None,
    agent: ToolUseAgent | None = None,
    servers: list[str] | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Without an injected ``manager`` the app owns one: the configured workers
    are started when the app starts (a failure aborts startup) and stopped
    when it shuts down. An injected manager is left to its owner.
    """
    settings = settings or Settings.from_env()
    owns_manager = manager is None
    if manager is None:
        manager = ProcessManager(
            startup_timeout=settings.startup_timeout,
            call_timeout=settings.call_timeout,
        )
    if agent is None:
        model = AnthropicModel(
            settings.model,
            api_key=settings.anthropic_api_key,
            max_tokens=settings.max_tokens,
        )
        agent = ToolUseAgent(manager, model, max_tool_rounds=settings.max_tool_rounds)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if owns_manager:
            await manager.start_all(select_workers(servers))
        try:
            yield
        finally:
            if owns_manager:
                logger.info("Shutting down servers...")
                await manager.stop_all()

    app = FastAPI(
        title="MCP Support Agent",
        description="Customer support agent backed by stdio tool workers",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    app.state.manager = manager
    app.state.agent = agent
    app.include_router(router)
    app.include_router(router, prefix="/api")
    return app
