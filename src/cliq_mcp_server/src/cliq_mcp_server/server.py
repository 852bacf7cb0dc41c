"""Stdio MCP server for Zoho Cliq.

Exposes the registered Cliq tools over the Model Context Protocol. Argument validation
against each tool's input schema is left to the ``mcp`` library; tool execution runs in a
worker thread because the Cliq client is blocking, one call at a time.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import TYPE_CHECKING, Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from cliq_mcp_server import tools  # noqa: F401  # register tool modules
from cliq_mcp_server.tools import registry

if TYPE_CHECKING:
    from cliq_mcp_server.models import ToolResult

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cliq_mcp_server")

SERVER_NAME = "cliq-api-integration"

app = Server(SERVER_NAME)

# The resolver and its cache file assume one tool call at a time.
_CALL_LOCK = threading.Lock()


class ToolCallError(Exception):
    """Raised from a tool call so the MCP layer marks the result as an error."""


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


@app.list_tools()
async def list_tools() -> list[Tool]:
    """List the registered tools."""
    return [
        Tool(name=definition.name, description=definition.description, inputSchema=definition.input_schema)
        for definition in registry.list_definitions()
    ]


@app.call_tool()
async def call_tool(name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
    """Run a tool and return its text, raising ToolCallError for error results."""
    result = await asyncio.to_thread(_run_serialized, name, arguments or {})
    if result.is_error:
        logger.info("Tool %s failed (%s)", name, result.code)
        raise ToolCallError(result.text)
    return [TextContent(type="text", text=result.text)]


def _run_serialized(name: str, arguments: dict[str, Any]) -> ToolResult:
    with _CALL_LOCK:
        return registry.run_tool(name, arguments)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def serve() -> None:
    """Serve MCP requests over stdio until the client disconnects."""
    async with stdio_server() as (read_stream, write_stream):
        await app.run(read_stream, write_stream, app.create_initialization_options())


def main() -> None:
    """Run the stdio server."""
    logger.info("Starting %s", SERVER_NAME)
    asyncio.run(serve())


if __name__ == "__main__":
    main()
