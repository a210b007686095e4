from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any, Callable, Optional

from curl_cffi import requests as curl_requests

from ..utils.config import DEFAULT_TIMEOUT_MS, current_config
from ..utils.logger import RequestLogger
from ..utils.proxy import get_proxies
from .exa_types import (
    EMPTY_BODY_MESSAGE,
    EXA_API_ERRORS,
    CrawlRequest,
    ExaApiError,
    ExaRequest,
    InvalidResponse,
    MissingCredential,
    RequestFailure,
    SearchRequest,
    ToolResponse,
    error_response,
    text_response,
)

logger = logging.getLogger(__name__)

API_KEY_ENV = "EXA_API_KEY"
SEARCH_PATH = "/search"
CONTENTS_PATH = "/contents"

ExaOutcome = Any
EmptyCheck = Callable[[Any], bool]


def _resolve_api_key(api_key: Optional[str]) -> Optional[str]:
    for candidate in (api_key, os.environ.get(API_KEY_ENV)):
        if candidate and candidate.strip():
            return candidate.strip()
    return None


def _exa_headers(api_key: str) -> dict[str, str]:
    return {
        "accept": "application/json",
        "content-type": "application/json",
        "x-api-key": api_key,
    }


def _error_body_message(response: Any) -> str | None:
    try:
        data = response.json()
    except Exception:
        return None
    if not isinstance(data, dict):
        return None
    for key in ("message", "error"):
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


def classify_request_error(error: BaseException) -> RequestFailure:
    """Map any transport exception to a RequestFailure.

    An attached HTTP response contributes its status code and, when the body
    is JSON with a string ``message`` (or ``error``) field, that text.
    Without a response, or when the response carries no real HTTP status
    (curl_cffi attaches one with ``status_code == 0`` to timeout and connect
    errors), the status is ``"unknown"``.
    """

    fallback = str(error).replace("\n", " ").strip() or type(error).__name__
    response = getattr(error, "response", None)
    if response is None:
        return RequestFailure(status="unknown", message=fallback)

    status = getattr(response, "status_code", None)
    if not isinstance(status, int) or isinstance(status, bool) or status < 100:
        return RequestFailure(status="unknown", message=fallback)
    return RequestFailure(status=status, message=_error_body_message(response) or fallback)


def _decode_body(response: Any) -> Any:
    text = response.text or ""
    if not text.strip():
        return None
    try:
        return json.loads(text)
    except ValueError:
        logger.debug("Exa response body is not JSON: %.200s", text)
        return None


async def perform_exa_post(
    path: str,
    request: ExaRequest,
    *,
    api_key: Optional[str] = None,
    timeout_ms: Optional[int] = None,
) -> ExaOutcome | ExaApiError:
    """Send one POST to the Exa API and return the decoded body or a typed error."""

    resolved_key = _resolve_api_key(api_key)
    if resolved_key is None:
        return MissingCredential()

    effective_timeout_ms = timeout_ms if timeout_ms is not None else DEFAULT_TIMEOUT_MS
    payload = request.to_payload()
    cfg = current_config()
    url = f"{cfg.exa_base_url}{path}"
    proxies = get_proxies(cfg)

    def _send() -> curl_requests.Response:
        logger.debug("HTTP POST url=%s timeout_ms=%s", url, effective_timeout_ms)
        response = curl_requests.post(
            url,
            json=payload,
            headers=_exa_headers(resolved_key),
            proxies=proxies,
            timeout=effective_timeout_ms / 1000,
        )
        response.raise_for_status()
        return response

    loop = asyncio.get_running_loop()
    try:
        response = await loop.run_in_executor(None, _send)
    except Exception as e:
        failure = classify_request_error(e)
        logger.debug("HTTP FAIL path=%s status=%s err=%s", path, failure.status, failure.message)
        return failure

    body = _decode_body(response)
    if body is None:
        return InvalidResponse(EMPTY_BODY_MESSAGE)
    return body


async def perform_exa_search(
    request: SearchRequest,
    *,
    api_key: Optional[str] = None,
    timeout_ms: Optional[int] = None,
) -> ExaOutcome | ExaApiError:
    return await perform_exa_post(SEARCH_PATH, request, api_key=api_key, timeout_ms=timeout_ms)


async def perform_exa_crawl(
    request: CrawlRequest,
    *,
    api_key: Optional[str] = None,
    timeout_ms: Optional[int] = None,
) -> ExaOutcome | ExaApiError:
    return await perform_exa_post(CONTENTS_PATH, request, api_key=api_key, timeout_ms=timeout_ms)


def has_no_results(payload: Any) -> bool:
    if not isinstance(payload, dict):
        return True
    return not payload.get("results")


def count_results(payload: Any) -> int:
    results = payload.get("results") if isinstance(payload, dict) else None
    return len(results) if isinstance(results, list) else 0


def format_results(payload: Any) -> ToolResponse:
    return text_response(json.dumps(payload, indent=2, ensure_ascii=False))


def to_tool_error_response(error: ExaApiError, fallback_message: str) -> ToolResponse:
    match error:
        case MissingCredential(message=message):
            return error_response(message)
        case RequestFailure(status=status, message=message):
            status_label = "unknown status" if status == "unknown" else f"status {status}"
            return error_response(f"Request to Exa failed ({status_label}): {message}")
        case InvalidResponse():
            return error_response(fallback_message)
        case _:
            detail = getattr(error, "message", None)
            return error_response(f"Unexpected error: {detail if isinstance(detail, str) else fallback_message}")


def reconcile(
    outcome: ExaOutcome | ExaApiError,
    *,
    empty_results_message: str,
    error_message: str,
    is_empty: EmptyCheck = has_no_results,
) -> ToolResponse:
    """Turn an executor outcome into the caller-facing ToolResponse."""

    if isinstance(outcome, EXA_API_ERRORS):
        return to_tool_error_response(outcome, error_message)
    if is_empty(outcome):
        return text_response(empty_results_message)
    return format_results(outcome)


async def _run_exa_tool(
    path: str,
    *,
    request_logger: RequestLogger,
    request: ExaRequest,
    api_key: Optional[str],
    request_label: Optional[str],
    empty_results_message: str,
    error_message: str,
    success_log: Callable[[Any], str],
    is_empty: EmptyCheck,
    timeout_ms: Optional[int],
) -> ToolResponse:
    label_suffix = f" for {request_label}" if request_label else ""

    request_logger.log(f"Sending request to Exa API{label_suffix}")
    outcome = await perform_exa_post(path, request, api_key=api_key, timeout_ms=timeout_ms)

    if isinstance(outcome, EXA_API_ERRORS):
        request_logger.error(outcome)
    else:
        request_logger.log(f"Received response from Exa API{label_suffix}")
        if is_empty(outcome):
            request_logger.log("Warning: Empty or invalid response from Exa API")
        else:
            request_logger.log(success_log(outcome))
        request_logger.complete()

    return reconcile(
        outcome,
        empty_results_message=empty_results_message,
        error_message=error_message,
        is_empty=is_empty,
    )


async def run_search_tool(
    *,
    request_logger: RequestLogger,
    request: SearchRequest,
    results_label: str,
    empty_results_message: str,
    error_message: str,
    api_key: Optional[str] = None,
    request_label: Optional[str] = None,
    is_empty: EmptyCheck = has_no_results,
    timeout_ms: Optional[int] = None,
) -> ToolResponse:
    return await _run_exa_tool(
        SEARCH_PATH,
        request_logger=request_logger,
        request=request,
        api_key=api_key,
        request_label=request_label,
        empty_results_message=empty_results_message,
        error_message=error_message,
        success_log=lambda payload: f"Found {count_results(payload)} {results_label}",
        is_empty=is_empty,
        timeout_ms=timeout_ms,
    )


async def run_crawl_tool(
    *,
    request_logger: RequestLogger,
    request: CrawlRequest,
    empty_results_message: str,
    error_message: str,
    api_key: Optional[str] = None,
    request_label: Optional[str] = None,
    success_log: Optional[Callable[[Any], str]] = None,
    is_empty: EmptyCheck = has_no_results,
    timeout_ms: Optional[int] = None,
) -> ToolResponse:
    return await _run_exa_tool(
        CONTENTS_PATH,
        request_logger=request_logger,
        request=request,
        api_key=api_key,
        request_label=request_label,
        empty_results_message=empty_results_message,
        error_message=error_message,
        success_log=success_log or (lambda payload: f"Found {count_results(payload)} results"),
        is_empty=is_empty,
        timeout_ms=timeout_ms,
    )
