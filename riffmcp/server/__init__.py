"""MCP server side of riffmcp: dispatch, HTTP surface, primary lifecycle."""
