"""Minimal .env loader used by the runtime bootstrap."""

from __future__ import annotations

import os
import re
import sys
from pathlib import Path
from typing import Iterator

_ASSIGNMENT_RE = re.compile(r"^(?:export\s+)?([A-Za-z_][A-Za-z0-9_.]*)\s*=(.*)$")
_DOUBLE_QUOTE_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", "\\": "\\", '"': '"'}


def _closing_quote(text: str, quote: str) -> int:
    idx = 0
    while idx < len(text):
        ch = text[idx]
        if ch == "\\":
            idx += 2
            continue
        if ch == quote:
            return idx
        idx += 1
    return -1


def _unescape(text: str, quote: str) -> str:
    if quote == '"':
        return re.sub(r"\\(.)", lambda m: _DOUBLE_QUOTE_ESCAPES.get(m.group(1), m.group(0)), text)
    return re.sub(r"\\([\\'])", r"\1", text)


def _strip_comment(text: str) -> str:
    match = re.search(r"(^|\s)#", text)
    if match:
        text = text[: match.start()]
    return text.strip()


def iter_env_assignments(text: str) -> Iterator[tuple[str, str]]:
    """Yield ``(key, value)`` pairs from .env formatted text.

    Unquoted values lose trailing `` # comments``; single or double quoted
    values keep their contents and may span several lines.
    """

    lines = text.splitlines()
    idx = 0
    while idx < len(lines):
        match = _ASSIGNMENT_RE.match(lines[idx].strip())
        idx += 1
        if not match:
            continue
        key, raw = match.group(1), match.group(2).lstrip()
        if not raw or raw[0] not in ("'", '"'):
            yield key, _strip_comment(raw)
            continue

        quote, buffer = raw[0], raw[1:]
        end = _closing_quote(buffer, quote)
        while end < 0 and idx < len(lines):
            buffer += "\n" + lines[idx]
            idx += 1
            end = _closing_quote(buffer, quote)
        yield key, _unescape(buffer if end < 0 else buffer[:end], quote)


def load_env_file(path: Path) -> None:
    """Set variables from a .env file without overriding the process environment."""

    try:
        text = path.read_text(encoding="utf-8", errors="ignore")
    except FileNotFoundError:
        return
    except OSError as e:
        print(f"[config] failed to read env file '{path}': {e}", file=sys.stderr)
        return

    for key, value in iter_env_assignments(text):
        os.environ.setdefault(key, value)
