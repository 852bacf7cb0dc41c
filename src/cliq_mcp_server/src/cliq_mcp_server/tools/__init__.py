"""Tool modules; importing the package registers every tool."""

from cliq_mcp_server.tools import cliq  # noqa: F401
