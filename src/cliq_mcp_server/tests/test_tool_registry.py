"""Unit tests for the MCP tool registry."""

from __future__ import annotations

from typing import Any

import pytest

from cliq_mcp_server.models import ToolDefinition, ToolResult
from cliq_mcp_server.tools import registry


def _definition(name: str) -> ToolDefinition:
    return ToolDefinition(name=name, description="demo tool", input_schema={"type": "object"})


@pytest.fixture
def clean_registry(monkeypatch: pytest.MonkeyPatch) -> dict[str, Any]:
    """Reset registry state for isolated tests."""
    monkeypatch.setattr(registry, "_TOOL_HANDLERS", {})
    monkeypatch.setattr(registry, "_TOOL_DEFINITIONS", [])
    return registry._TOOL_HANDLERS


def test_register_tool_duplicate_raises(clean_registry: dict[str, Any]) -> None:
    """Reject duplicate tool registrations."""
    definition = _definition("demo")

    def handler() -> ToolResult:
        return ToolResult.success("ok")

    registry.register_tool(definition, handler)
    with pytest.raises(ValueError, match="Tool already registered"):
        registry.register_tool(definition, handler)


def test_list_definitions_returns_copy(clean_registry: dict[str, Any]) -> None:
    """Expose a copy of definitions for callers."""
    definition = _definition("demo")
    registry.register_tool(definition, lambda: ToolResult.success("ok"))

    definitions = registry.list_definitions()

    assert len(definitions) == 1
    assert definitions[0] is definition
    assert definitions is not registry._TOOL_DEFINITIONS


def test_run_tool_unknown_returns_error(clean_registry: dict[str, Any]) -> None:
    """Return an error result when the tool is missing."""
    result = registry.run_tool("missing", {})

    assert result.is_error
    assert result.code == "unknown_tool"
    assert result.text == "Unknown tool: missing"


def test_run_tool_passes_arguments(clean_registry: dict[str, Any]) -> None:
    """Arguments are forwarded as keyword arguments."""
    seen: dict[str, Any] = {}

    def handler(**kwargs: Any) -> ToolResult:  # noqa: ANN401
        seen.update(kwargs)
        return ToolResult.success("done")

    registry.register_tool(_definition("demo"), handler)

    result = registry.run_tool("demo", {"text": "hi", "channelId": "42"})

    assert result == ToolResult.success("done")
    assert seen == {"text": "hi", "channelId": "42"}


def test_run_tool_handles_exceptions(clean_registry: dict[str, Any], caplog: pytest.LogCaptureFixture) -> None:
    """Convert handler exceptions into error results and log them."""

    def handler() -> ToolResult:
        msg = "boom"
        raise RuntimeError(msg)

    registry.register_tool(_definition("demo"), handler)

    with caplog.at_level("ERROR", logger="cliq_mcp_server.tools"):
        result = registry.run_tool("demo", {})

    assert result.is_error
    assert result.code == "tool_failed"
    assert result.text == "Error: boom"
    assert "Tool failed (demo)" in caplog.text


def test_run_tool_rejects_unexpected_arguments(clean_registry: dict[str, Any]) -> None:
    """Unknown argument names surface as a tool failure rather than an exception."""
    registry.register_tool(_definition("demo"), lambda: ToolResult.success("ok"))

    result = registry.run_tool("demo", {"surprise": 1})

    assert result.is_error
    assert result.code == "tool_failed"
