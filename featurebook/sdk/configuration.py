"""Process-wide access to the discovered ``featurebook.yml``.

The file is looked up once in the working directory and cached. Tests and
embedding applications can pin a :class:`UnifiedConfig` with
:func:`runtime_config_override` instead. Lookups may happen from SDK worker
threads, so the cached state sits behind a lock.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator
import logging
import threading

from featurebook.foundation.config import (
    ClientConfig,
    UnifiedConfig,
    apply_env_overrides,
    find_config_file,
    load_config,
)

logger = logging.getLogger(__name__)


class _ConfigState:
    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.override: UnifiedConfig | None = None
        self.cached: UnifiedConfig | None = None
        self.loaded = False
        self.source_path: str | None = None

    def clear_cache(self) -> None:
        with self.lock:
            self.cached = None
            self.loaded = False
            self.source_path = None

    def discover(self) -> UnifiedConfig | None:
        with self.lock:
            if self.loaded:
                return self.cached
            cfg_path = find_config_file()
            try:
                if cfg_path is None:
                    logger.debug("No featurebook config file discovered; using defaults")
                    self.cached = None
                else:
                    self.cached = load_config(cfg_path)
                self.source_path = cfg_path
            finally:
                self.loaded = True
            return self.cached


_STATE = _ConfigState()


def set_runtime_config_override(config: UnifiedConfig | None) -> None:
    """Pin (or with ``None`` release) the configuration every helper returns."""

    with _STATE.lock:
        _STATE.override = config


def reset_runtime_config_cache() -> None:
    """Forget the discovered file so the next lookup searches again."""

    _STATE.clear_cache()


@contextmanager
def runtime_config_override(config: UnifiedConfig | None) -> Iterator[None]:
    with _STATE.lock:
        previous = _STATE.override
    set_runtime_config_override(config)
    try:
        yield
    finally:
        set_runtime_config_override(previous)


def get_runtime_config(path: str | Path | None = None) -> UnifiedConfig | None:
    """Return the explicit file, the override or the discovered file, in that order."""

    if path is not None:
        return load_config(str(path))
    with _STATE.lock:
        if _STATE.override is not None:
            return _STATE.override
    return _STATE.discover()


def get_runtime_config_path() -> str | None:
    """Path of the discovered file; ``None`` under an override or without a file."""

    with _STATE.lock:
        if _STATE.override is not None:
            return None
    _STATE.discover()
    return _STATE.source_path


def get_client_config(path: str | Path | None = None) -> ClientConfig:
    return (get_runtime_config(path) or UnifiedConfig()).client


def get_unified_config(*, reload: bool = False) -> UnifiedConfig:
    """Effective configuration: file (or override) values with env overrides applied."""

    if reload:
        reset_runtime_config_cache()
    return apply_env_overrides(get_runtime_config() or UnifiedConfig())


def reload() -> UnifiedConfig:
    return get_unified_config(reload=True)


__all__ = [
    "get_client_config",
    "get_runtime_config",
    "get_runtime_config_path",
    "get_unified_config",
    "reload",
    "reset_runtime_config_cache",
    "runtime_config_override",
    "set_runtime_config_override",
]
