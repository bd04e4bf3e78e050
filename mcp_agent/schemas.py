"""Pydantic schemas for the HTTP request/response contracts."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Body of POST /chat."""

    message: str | None = None
    conversationHistory: list[dict[str, Any]] = Field(default_factory=list)


class ToolActivity(BaseModel):
    """One tool invocation made while answering."""

    server: str
    tool: str
    input: dict[str, Any]
    timestamp: str
    result: Any = None


class ChatResponse(BaseModel):
    """Reply to POST /chat."""

    message: str
    toolActivity: list[ToolActivity]
    conversationHistory: list[dict[str, Any]]


class ServerStatus(BaseModel):
    ready: bool
    toolCount: int


class HealthResponse(BaseModel):
    """Reply to GET /health."""

    status: str = "ok"
    servers: dict[str, ServerStatus]


class ErrorResponse(BaseModel):
    """Error body returned with 4xx/5xx status codes."""

    error: str
    details: str | None = None
