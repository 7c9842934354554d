"""MCP server for Chrome DevTools automation."""

__version__ = '0.1.0'
