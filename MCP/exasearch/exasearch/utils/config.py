"""Runtime configuration and logging bootstrap for the Exa MCP server."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Sequence

from .env_parser import load_env_file

_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"

DEFAULT_BASE_URL = "https://api.exa.ai"
DEFAULT_TIMEOUT_MS = 25_000
DEFAULT_NUM_RESULTS = 5
DEFAULT_MAX_CHARACTERS = 3000

TOOL_NAMES = (
    "web_search_exa",
    "company_research_exa",
    "competitor_finder_exa",
    "crawling_exa",
    "github_search_exa",
    "linkedin_search_exa",
    "research_paper_search_exa",
    "wikipedia_search_exa",
)

_RUNTIME_CONFIG: Optional["AppConfig"] = None
_LOGGING_READY = False


@dataclass(frozen=True)
class AppConfig:
    exa_api_key: Optional[str]
    exa_base_url: str
    timeout_ms: int
    default_num_results: int
    default_max_characters: int
    enabled_tools: tuple[str, ...]
    proxy: Optional[str]
    log_level: str

    @property
    def api_key_configured(self) -> bool:
        return bool(self.exa_api_key)

    @property
    def proxies(self) -> Optional[dict[str, str]]:
        if not self.proxy:
            return None
        return {"http": self.proxy, "https": self.proxy}


def _normalize_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = value.strip()
    return text if text else None


def _normalize_log_level(value: Optional[str]) -> str:
    text = (value or "INFO").strip().upper()
    level = getattr(logging, text, None)
    if isinstance(level, int):
        return text
    print(f"[config] invalid LOG_LEVEL '{value}', fallback to INFO", file=sys.stderr)
    return "INFO"


def _parse_int(
    value: Optional[str],
    *,
    default: int,
    minimum: Optional[int] = None,
    field_name: str,
) -> int:
    if value is None:
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        print(f"[config] invalid integer for {field_name}: '{value}', fallback to {default}", file=sys.stderr)
        return default
    if minimum is not None and parsed < minimum:
        print(
            f"[config] {field_name}={parsed} is below minimum {minimum}, fallback to {default}",
            file=sys.stderr,
        )
        return default
    return parsed


def _parse_tool_list(value: Optional[str], *, field_name: str) -> tuple[str, ...]:
    text = _normalize_optional(value)
    if text is None:
        return TOOL_NAMES
    requested = [item.strip() for item in text.split(",") if item.strip()]
    unknown = [name for name in requested if name not in TOOL_NAMES]
    if unknown:
        print(
            f"[config] unknown tools in {field_name}: {', '.join(unknown)}, ignored",
            file=sys.stderr,
        )
    enabled = tuple(name for name in TOOL_NAMES if name in requested)
    if not enabled:
        print(f"[config] {field_name} selects no known tool, fallback to all tools", file=sys.stderr)
        return TOOL_NAMES
    return enabled


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Exa Search MCP Server")
    parser.add_argument("--exa-api-key", type=str, default=None, help="Exa API key")
    parser.add_argument("--exa-base-url", type=str, default=None, help="Exa API base URL")
    parser.add_argument("--timeout-ms", type=str, default=None, help="Request timeout in milliseconds")
    parser.add_argument("--tools", type=str, default=None, help="Comma separated list of tools to enable")
    parser.add_argument("--proxy", type=str, default=None, help="Outbound proxy, e.g. http://127.0.0.1:7890")
    parser.add_argument("--log-level", type=str, default=None, help="DEBUG/INFO/WARNING/ERROR/CRITICAL")
    return parser


def _pick(
    cli_value: Optional[str],
    env: Mapping[str, str],
    env_key: str,
    default: Optional[str] = None,
) -> Optional[str]:
    if cli_value is not None:
        return cli_value
    return env.get(env_key, default)


def build_config(
    argv: Optional[Sequence[str]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> AppConfig:
    """Build AppConfig from argv and environment variables."""

    env_map: Mapping[str, str] = env if env is not None else os.environ
    parser = _build_parser()
    args, _ = parser.parse_known_args(list(argv) if argv is not None else None)

    exa_api_key = _normalize_optional(_pick(args.exa_api_key, env_map, "EXA_API_KEY"))
    exa_base_url = _normalize_optional(_pick(args.exa_base_url, env_map, "EXA_BASE_URL")) or DEFAULT_BASE_URL
    proxy = _normalize_optional(_pick(args.proxy, env_map, "PROXY"))
    log_level = _normalize_log_level(_pick(args.log_level, env_map, "LOG_LEVEL", "INFO"))

    timeout_ms = _parse_int(
        _pick(args.timeout_ms, env_map, "EXA_TIMEOUT_MS"),
        default=DEFAULT_TIMEOUT_MS,
        minimum=1,
        field_name="EXA_TIMEOUT_MS",
    )
    default_num_results = _parse_int(
        env_map.get("EXA_DEFAULT_NUM_RESULTS"),
        default=DEFAULT_NUM_RESULTS,
        minimum=1,
        field_name="EXA_DEFAULT_NUM_RESULTS",
    )
    default_max_characters = _parse_int(
        env_map.get("EXA_DEFAULT_MAX_CHARACTERS"),
        default=DEFAULT_MAX_CHARACTERS,
        minimum=1,
        field_name="EXA_DEFAULT_MAX_CHARACTERS",
    )
    enabled_tools = _parse_tool_list(
        _pick(args.tools, env_map, "EXA_ENABLED_TOOLS"),
        field_name="EXA_ENABLED_TOOLS",
    )

    return AppConfig(
        exa_api_key=exa_api_key,
        exa_base_url=exa_base_url.rstrip("/"),
        timeout_ms=timeout_ms,
        default_num_results=default_num_results,
        default_max_characters=default_max_characters,
        enabled_tools=enabled_tools,
        proxy=proxy,
        log_level=log_level,
    )


def _make_handler(stream: object) -> logging.Handler:
    handler = logging.StreamHandler(stream)  # type: ignore[arg-type]
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    handler._exasearch_handler = True  # type: ignore[attr-defined]
    return handler


def setup_logging(level_name: str, stream: Optional[object] = None) -> None:
    """Initialize root logging on stderr once; stdout belongs to the MCP transport."""

    global _LOGGING_READY

    level = getattr(logging, level_name.upper(), logging.INFO)
    root = logging.getLogger()

    if stream is None:
        stream = sys.stderr

    if not _LOGGING_READY:
        root.handlers = [h for h in root.handlers if not getattr(h, "_exasearch_handler", False)]
        root.addHandler(_make_handler(stream))
    elif not any(getattr(h, "_exasearch_handler", False) for h in root.handlers):
        root.addHandler(_make_handler(stream))

    root.setLevel(level)
    for handler in root.handlers:
        if getattr(handler, "_exasearch_handler", False):
            handler.setLevel(level)

    _LOGGING_READY = True


def init_runtime(argv: Optional[Sequence[str]] = None) -> AppConfig:
    """Load .env, build runtime config, and setup logging."""

    global _RUNTIME_CONFIG

    load_env_file(_ENV_PATH)
    cfg = build_config(argv=argv, env=os.environ)
    setup_logging(cfg.log_level)
    _RUNTIME_CONFIG = cfg

    logger = logging.getLogger(__name__)
    logger.debug(
        "exa: key=%s base=%s timeout_ms=%s proxy=%s",
        "***" if cfg.exa_api_key else None,
        cfg.exa_base_url,
        cfg.timeout_ms,
        cfg.proxy,
    )
    return cfg


def get_config() -> AppConfig:
    """Return runtime config; requires init_runtime() first."""

    if _RUNTIME_CONFIG is None:
        raise RuntimeError("Runtime config is not initialized. Call init_runtime() before using exasearch modules.")
    return _RUNTIME_CONFIG


def current_config() -> AppConfig:
    """Return runtime config, or one built from the environment when init_runtime() was not called."""

    if _RUNTIME_CONFIG is None:
        return build_config(argv=[], env=os.environ)
    return _RUNTIME_CONFIG


def _reset_runtime_for_tests() -> None:
    """Reset runtime globals for isolated tests."""

    global _RUNTIME_CONFIG, _LOGGING_READY
    _RUNTIME_CONFIG = None
    _LOGGING_READY = False
    root = logging.getLogger()
    root.handlers = [h for h in root.handlers if not getattr(h, "_exasearch_handler", False)]


__all__ = [
    "AppConfig",
    "DEFAULT_BASE_URL",
    "DEFAULT_MAX_CHARACTERS",
    "DEFAULT_NUM_RESULTS",
    "DEFAULT_TIMEOUT_MS",
    "TOOL_NAMES",
    "build_config",
    "current_config",
    "get_config",
    "init_runtime",
    "setup_logging",
]
