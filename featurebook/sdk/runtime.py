"""Shared runtime settings for SDK components sourced from configuration."""

from __future__ import annotations

from typing import Any

from . import configuration

HTTP_TIMEOUT_SECONDS: float = 2.0
MAX_WORKERS: int = 4
REFRESH_WORKERS: int = 2
CACHE_DIR: str = "~/.featurebook_cache"
CACHE_KEY: str = "gb-features.txt"


def _positive_int(value: Any, fallback: int) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return fallback
    return parsed if parsed > 0 else fallback


def _reload_from_config(cfg: Any | None = None) -> None:
    global HTTP_TIMEOUT_SECONDS, MAX_WORKERS, REFRESH_WORKERS, CACHE_DIR, CACHE_KEY

    unified = cfg or configuration.get_unified_config()
    runtime_cfg = unified.runtime
    cache_cfg = unified.cache

    HTTP_TIMEOUT_SECONDS = float(runtime_cfg.http_timeout_seconds)
    MAX_WORKERS = _positive_int(runtime_cfg.max_workers, 4)
    REFRESH_WORKERS = _positive_int(runtime_cfg.refresh_workers, 2)
    CACHE_DIR = str(cache_cfg.cache_dir)
    CACHE_KEY = str(cache_cfg.cache_key)


def reload() -> None:
    """Reload runtime settings from the unified configuration."""

    cfg = configuration.reload()
    _reload_from_config(cfg)


_reload_from_config()


__all__ = [
    "CACHE_DIR",
    "CACHE_KEY",
    "HTTP_TIMEOUT_SECONDS",
    "MAX_WORKERS",
    "REFRESH_WORKERS",
    "reload",
]
