"""Phone Assistant MCP server: conversational phone calls exposed as MCP tools."""

__version__ = "1.0.0"
