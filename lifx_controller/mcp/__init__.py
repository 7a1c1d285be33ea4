"""
LIFX controller MCP server package.

The server can run in stdio mode (default, for Claude Desktop / Cursor)
or SSE/HTTP mode (for network-accessible deployment).

    # stdio
    python -m lifx_controller

    # SSE on LIFX_MCP_PORT (default 8060)
    python -m lifx_controller --sse
"""
