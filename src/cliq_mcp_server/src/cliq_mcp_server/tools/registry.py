"""Tool registry for MCP tool calls."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from cliq_mcp_server.models import ToolDefinition, ToolResult

ToolHandler = Callable[..., ToolResult]

_TOOL_HANDLERS: dict[str, ToolHandler] = {}
_TOOL_DEFINITIONS: list[ToolDefinition] = []
logger = logging.getLogger("cliq_mcp_server.tools")


# ---------------------------------------------------------------------------
# Registry API
# ---------------------------------------------------------------------------


def register_tool(definition: ToolDefinition, handler: ToolHandler) -> None:
    """Register a tool definition and its handler."""
    if definition.name in _TOOL_HANDLERS:
        msg = f"Tool already registered: {definition.name}"
        raise ValueError(msg)
    _TOOL_DEFINITIONS.append(definition)
    _TOOL_HANDLERS[definition.name] = handler


def list_definitions() -> list[ToolDefinition]:
    """Return all registered tool definitions."""
    return list(_TOOL_DEFINITIONS)


def run_tool(name: str, arguments: Mapping[str, Any]) -> ToolResult:
    """Execute a registered tool, converting unexpected exceptions into error results."""
    handler = _TOOL_HANDLERS.get(name)
    if handler is None:
        label = name or "unknown"
        return ToolResult(text=f"Unknown tool: {label}", is_error=True, code="unknown_tool")
    try:
        return handler(**dict(arguments))
    except Exception as exc:  # noqa: BLE001
        logger.exception("Tool failed (%s)", name)
        return ToolResult.failure(str(exc), code="tool_failed")
