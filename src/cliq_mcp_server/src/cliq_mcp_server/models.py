"""Pydantic schemas for tool definitions and rendered tool results."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class ToolDefinition(BaseModel):
    """A tool exposed to MCP clients."""

    name: str
    description: str
    input_schema: dict[str, Any]


class ToolResult(BaseModel):
    """Rendered tool output handed back to the transport."""

    text: str
    is_error: bool = False
    code: str | None = None

    @classmethod
    def success(cls, text: str) -> ToolResult:
        """Build a successful result."""
        return cls(text=text)

    @classmethod
    def failure(cls, message: str, code: str | None = None) -> ToolResult:
        """Build an error result rendered as ``Error: <message>``."""
        return cls(text=f"Error: {message}", is_error=True, code=code)
