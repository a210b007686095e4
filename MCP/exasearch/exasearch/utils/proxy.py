"""Outbound proxy helper."""

from __future__ import annotations

from .config import AppConfig, current_config


def get_proxies(cfg: AppConfig | None = None) -> dict[str, str] | None:
    return (cfg or current_config()).proxies
