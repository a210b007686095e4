"""Tool layer for the Exa MCP server."""

from .search import TOOL_REGISTRY, create_server, main

__all__ = ["TOOL_REGISTRY", "create_server", "main"]
