"""Request, error and response value types for the Exa pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional, Union

from mcp.types import CallToolResult, TextContent

Livecrawl = Literal["always", "fallback", "preferred"]

MISSING_API_KEY_MESSAGE = (
    "Exa API key is required. Provide it via --exa-api-key or the EXA_API_KEY environment variable."
)
EMPTY_BODY_MESSAGE = "Received empty response from Exa API"


@dataclass(frozen=True)
class TextOptions:
    max_characters: Optional[int] = None

    def to_payload(self) -> dict[str, Any]:
        if self.max_characters is None:
            return {}
        return {"maxCharacters": self.max_characters}


@dataclass(frozen=True)
class ContentsOptions:
    text: Union[TextOptions, bool] = True
    livecrawl: Optional[Livecrawl] = None
    subpages: Optional[int] = None
    subpage_target: Optional[tuple[str, ...]] = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "text": self.text.to_payload() if isinstance(self.text, TextOptions) else self.text,
        }
        if self.livecrawl is not None:
            payload["livecrawl"] = self.livecrawl
        if self.subpages is not None:
            payload["subpages"] = self.subpages
        if self.subpage_target:
            payload["subpageTarget"] = list(self.subpage_target)
        return payload


@dataclass(frozen=True)
class SearchRequest:
    """Body of a ``POST /search`` call."""

    query: str
    num_results: int
    contents: ContentsOptions
    type: str = "auto"
    category: Optional[str] = None
    include_domains: Optional[tuple[str, ...]] = None
    exclude_domains: Optional[tuple[str, ...]] = None
    start_published_date: Optional[str] = None
    end_published_date: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "query": self.query,
            "type": self.type,
            "numResults": self.num_results,
            "contents": self.contents.to_payload(),
        }
        if self.category:
            payload["category"] = self.category
        if self.include_domains:
            payload["includeDomains"] = list(self.include_domains)
        if self.exclude_domains:
            payload["excludeDomains"] = list(self.exclude_domains)
        if self.start_published_date:
            payload["startPublishedDate"] = self.start_published_date
        if self.end_published_date:
            payload["endPublishedDate"] = self.end_published_date
        return payload


@dataclass(frozen=True)
class CrawlRequest:
    """Body of a ``POST /contents`` call."""

    ids: tuple[str, ...]
    contents: ContentsOptions

    def to_payload(self) -> dict[str, Any]:
        return {"ids": list(self.ids), "contents": self.contents.to_payload()}


ExaRequest = Union[SearchRequest, CrawlRequest]


@dataclass(frozen=True)
class MissingCredential:
    message: str = MISSING_API_KEY_MESSAGE


@dataclass(frozen=True)
class RequestFailure:
    status: Union[int, Literal["unknown"]]
    message: str


@dataclass(frozen=True)
class InvalidResponse:
    message: str = EMPTY_BODY_MESSAGE


ExaApiError = Union[MissingCredential, RequestFailure, InvalidResponse]
EXA_API_ERRORS = (MissingCredential, RequestFailure, InvalidResponse)


@dataclass(frozen=True)
class ToolContent:
    text: str
    type: Literal["text"] = "text"


@dataclass(frozen=True)
class ToolResponse:
    content: tuple[ToolContent, ...] = field(default_factory=tuple)
    is_error: Optional[bool] = None

    @property
    def text(self) -> str:
        return "\n".join(part.text for part in self.content)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"content": [{"type": part.type, "text": part.text} for part in self.content]}
        if self.is_error:
            data["isError"] = True
        return data

    def to_call_tool_result(self) -> CallToolResult:
        return CallToolResult(
            content=[TextContent(type="text", text=part.text) for part in self.content],
            isError=bool(self.is_error),
        )


def text_response(text: str) -> ToolResponse:
    return ToolResponse(content=(ToolContent(text=text),))


def error_response(text: str) -> ToolResponse:
    return ToolResponse(content=(ToolContent(text=text),), is_error=True)


__all__ = [
    "CrawlRequest",
    "ContentsOptions",
    "EMPTY_BODY_MESSAGE",
    "EXA_API_ERRORS",
    "ExaApiError",
    "ExaRequest",
    "InvalidResponse",
    "Livecrawl",
    "MISSING_API_KEY_MESSAGE",
    "MissingCredential",
    "RequestFailure",
    "SearchRequest",
    "TextOptions",
    "ToolContent",
    "ToolResponse",
    "error_response",
    "text_response",
]
