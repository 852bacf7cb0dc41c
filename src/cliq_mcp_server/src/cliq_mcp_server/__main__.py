"""Allow ``python -m cliq_mcp_server``."""

from cliq_mcp_server.server import main

main()
