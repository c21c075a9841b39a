"""
riffmcp - single-primary music MCP server with a stdio proxy front end.
"""

__version__ = "0.1.0"
