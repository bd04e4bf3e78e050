"""
Tool catalog: what each worker advertises, and the flattened view the
model sees.

A tool is presented to the model under its qualified identifier,
``<worker>_<tool>``. Worker names never contain the separator, so the
identifier always splits back at its first separator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable

if TYPE_CHECKING:
    from mcp_agent.manager import WorkerHandle

SEPARATOR = "_"


@dataclass(frozen=True)
class Tool:
    """A callable capability advertised by a worker."""
    name: str
    description: str = ""
    input_schema: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )

    @classmethod
    def from_dict(cls, descriptor: dict[str, Any]) -> "Tool":
        """Build a Tool from a tools/list entry ({name, description, inputSchema})."""
        name = descriptor["name"]
        if not isinstance(name, str) or not name:
            raise ValueError(f"Tool descriptor has no usable name: {descriptor!r}")
        schema = descriptor.get("inputSchema") or {"type": "object", "properties": {}}
        return cls(
            name=name,
            description=descriptor.get("description", ""),
            input_schema=schema,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


@dataclass(frozen=True)
class QualifiedTool:
    """A Tool together with the worker that owns it."""
    worker: str
    tool: Tool

    @property
    def identifier(self) -> str:
        return qualify(self.worker, self.tool.name)

    def to_model_tool(self) -> dict[str, Any]:
        """Tool declaration in the shape the Messages API expects."""
        return {
            "name": self.identifier,
            "description": self.tool.description,
            "input_schema": self.tool.input_schema,
        }


def qualify(worker: str, tool_name: str) -> str:
    """Join a worker name and a tool name into a qualified identifier."""
    if SEPARATOR in worker:
        raise ValueError(f"Worker name {worker!r} must not contain {SEPARATOR!r}")
    return f"{worker}{SEPARATOR}{tool_name}"


def split_identifier(identifier: str) -> tuple[str, str]:
    """
    Split a qualified identifier back into (worker, tool_name).

    The first separator is the split point; everything after it belongs to
    the tool name, e.g. ``database_search_customer`` → ``("database",
    "search_customer")``.
    """
    worker, sep, tool_name = identifier.partition(SEPARATOR)
    if not sep or not worker or not tool_name:
        raise ValueError(f"Not a qualified tool identifier: {identifier!r}")
    return worker, tool_name


def aggregate(handles: Iterable["WorkerHandle"]) -> list[QualifiedTool]:
    """
    Flatten the tools of every ready worker, in worker order then
    advertised order. Workers that are not ready contribute nothing.
    """
    catalog: list[QualifiedTool] = []
    seen: set[str] = set()
    for handle in handles:
        if not handle.ready:
            continue
        for tool in handle.tools:
            qualified = QualifiedTool(handle.name, tool)
            if qualified.identifier in seen:
                raise ValueError(f"Duplicate tool identifier: {qualified.identifier}")
            seen.add(qualified.identifier)
            catalog.append(qualified)
    return catalog
