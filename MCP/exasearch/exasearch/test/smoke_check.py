"""Local smoke checks for code wiring and config values.

Usage:
  python -m exasearch.test.smoke_check
  python -m exasearch.test.smoke_check --require-key
"""

from __future__ import annotations

import argparse
import asyncio
import json
import re
from typing import Dict, List

from exasearch.tools.exa_core import classify_request_error, reconcile
from exasearch.tools.exa_types import InvalidResponse, MissingCredential
from exasearch.tools.search import TOOL_REGISTRY, create_server
from exasearch.utils.config import get_config, init_runtime


def _is_placeholder_api_key(value: str) -> bool:
    text = (value or "").strip().lower()
    if not text:
        return True
    placeholder_patterns = (
        r"^x+$",
        r"your.*key",
        r"example",
        r"dummy",
        r"placeholder",
    )
    return any(re.search(pattern, text) for pattern in placeholder_patterns)


def _run_core_checks() -> List[str]:
    failures: List[str] = []

    failure = classify_request_error(TimeoutError("Operation timed out"))
    if failure.status != "unknown":
        failures.append("timeout classification failed")

    missing = reconcile(MissingCredential(), empty_results_message="empty", error_message="fallback")
    if not missing.is_error:
        failures.append("missing credential not reported as error")

    invalid = reconcile(InvalidResponse(), empty_results_message="empty", error_message="fallback")
    if invalid.text != "fallback":
        failures.append("invalid response fallback message failed")

    empty = reconcile({"results": []}, empty_results_message="empty", error_message="fallback")
    if empty.text != "empty" or empty.is_error:
        failures.append("empty results message failed")

    return failures


def _run_config_checks(require_key: bool) -> Dict[str, object]:
    cfg = get_config()
    warnings: List[str] = []
    failures: List[str] = []

    key_is_placeholder = _is_placeholder_api_key(cfg.exa_api_key or "")
    if not cfg.exa_api_key:
        warnings.append("EXA_API_KEY is empty; every tool call will report a missing key")
    elif key_is_placeholder:
        warnings.append("EXA_API_KEY looks like a placeholder value")

    if require_key and (not cfg.exa_api_key or key_is_placeholder):
        failures.append("API key strict check failed: provide a real EXA_API_KEY")

    server = create_server(cfg)
    registered = sorted(tool.name for tool in asyncio.run(server.list_tools()))

    return {
        "warnings": warnings,
        "failures": failures,
        "snapshot": {
            "EXA_BASE_URL": cfg.exa_base_url,
            "EXA_API_KEY_set": bool(cfg.exa_api_key),
            "EXA_API_KEY_placeholder": key_is_placeholder,
            "EXA_TIMEOUT_MS": cfg.timeout_ms,
            "PROXY": cfg.proxy,
            "enabled_tools": list(cfg.enabled_tools),
            "registered_tools": registered,
            "known_tools": sorted(TOOL_REGISTRY),
        },
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Exa search local smoke check")
    parser.add_argument(
        "--require-key",
        action="store_true",
        help="Fail if EXA_API_KEY is missing or looks like a placeholder",
    )
    args, rest = parser.parse_known_args()
    init_runtime(argv=rest)

    core_failures = _run_core_checks()
    config_result = _run_config_checks(require_key=args.require_key)
    config_failures = list(config_result["failures"])
    failures = core_failures + config_failures

    result = {
        "success": len(failures) == 0,
        "checks": {
            "core_failures": core_failures,
            "config_failures": config_failures,
            "warnings": config_result["warnings"],
        },
        "config_snapshot": config_result["snapshot"],
    }

    print(json.dumps(result, ensure_ascii=False, indent=2))
    raise SystemExit(0 if result["success"] else 2)


if __name__ == "__main__":
    main()
