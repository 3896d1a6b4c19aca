"""Configuration primitives shared across featurebook components."""

from .config import (
    CacheConfig,
    ClientConfig,
    RuntimeConfig,
    UnifiedConfig,
    apply_env_overrides,
    find_config_file,
    load_config,
)

__all__ = [
    "CacheConfig",
    "ClientConfig",
    "RuntimeConfig",
    "UnifiedConfig",
    "apply_env_overrides",
    "find_config_file",
    "load_config",
]
