"""MCP server exposing the note engine."""

from knote.server.mcp_server import create_mcp_server

__all__ = ["create_mcp_server"]
