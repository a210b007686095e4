"""Shared utilities for the Exa MCP server."""

from .env_parser import load_env_file
from .logger import RequestLogger, logger

__all__ = ["RequestLogger", "logger", "load_env_file"]
