"""MCP server exposing Zoho Cliq channel and messaging tools."""
