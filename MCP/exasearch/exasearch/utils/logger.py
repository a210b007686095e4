"""Per-request lifecycle logging shared by all tools."""

from __future__ import annotations

import logging
import time
from uuid import uuid4

LOG_PREFIX = "[EXA-MCP-DEBUG]"

logger = logging.getLogger("exasearch.requests")


def log(message: str) -> None:
    logger.info("%s %s", LOG_PREFIX, message)


def new_request_id(tool_name: str) -> str:
    return f"{tool_name}-{int(time.time() * 1000)}-{uuid4().hex[:5]}"


class RequestLogger:
    """Writes start, progress and outcome lines tagged with a request id and tool name."""

    def __init__(self, request_id: str, tool_name: str) -> None:
        self.request_id = request_id
        self.tool_name = tool_name

    @classmethod
    def for_tool(cls, tool_name: str) -> "RequestLogger":
        return cls(new_request_id(tool_name), tool_name)

    def _tag(self, message: str) -> str:
        return f"[{self.request_id}] [{self.tool_name}] {message}"

    def log(self, message: str) -> None:
        log(self._tag(message))

    def start(self, query: str) -> None:
        log(self._tag(f'Starting search for query: "{query}"'))

    def error(self, error: object) -> None:
        message = getattr(error, "message", None)
        if not isinstance(message, str):
            message = str(error)
        logger.error("%s %s", LOG_PREFIX, self._tag(f"Error: {message}"))

    def complete(self) -> None:
        log(self._tag("Successfully completed request"))


__all__ = ["LOG_PREFIX", "RequestLogger", "log", "logger", "new_request_id"]
