from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, FrozenSet, Mapping

import yaml  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)


_CLIENT_ALIASES: dict[str, str] = {
    "hostURL": "host_url",
    "api_host": "host_url",
    "endpoint": "host_url",
    "isQaMode": "qa_mode",
    "isEnabled": "enabled",
}


@dataclass
class ClientConfig:
    """Feature source and evaluation toggles for an SDK handle."""

    host_url: str | None = None
    enabled: bool = True
    qa_mode: bool = False
    forced_variations: dict[str, int] | None = None
    log_level: str = "INFO"


@dataclass
class CacheConfig:
    """Local persistence of the last good feature payload."""

    cache_dir: str = "~/.featurebook_cache"
    cache_key: str = "gb-features.txt"


@dataclass
class RuntimeConfig:
    """SDK runtime tuning knobs (timeouts, worker pool)."""

    http_timeout_seconds: float = 2.0
    max_workers: int = 4
    refresh_workers: int = 2


CONFIG_SECTION_NAMES: tuple[str, ...] = ("client", "cache", "runtime")


ENV_EXPORT_OVERRIDES: Dict[str, Dict[str, str | None]] = {
    "client": {
        "host_url": "FEATUREBOOK_HOST_URL",
        "enabled": "FEATUREBOOK_ENABLED",
        "qa_mode": "FEATUREBOOK_QA_MODE",
        "log_level": "FEATUREBOOK_LOG_LEVEL",
    },
    "cache": {
        "cache_dir": "FEATUREBOOK_CACHE_DIR",
        "cache_key": "FEATUREBOOK_CACHE_KEY",
    },
    "runtime": {
        "http_timeout_seconds": "FEATUREBOOK_HTTP_TIMEOUT",
        "max_workers": "FEATUREBOOK_MAX_WORKERS",
        "refresh_workers": "FEATUREBOOK_REFRESH_WORKERS",
    },
}


@dataclass
class UnifiedConfig:
    """Configuration aggregating client, cache and runtime settings."""

    client: ClientConfig = field(default_factory=ClientConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    present_sections: FrozenSet[str] = field(default_factory=frozenset)


CONFIG_FILE_NAMES: tuple[str, ...] = ("featurebook.yml", "featurebook.yaml")

_SECTION_TYPES: dict[str, type] = {
    "client": ClientConfig,
    "cache": CacheConfig,
    "runtime": RuntimeConfig,
}

_SECTION_ALIASES: dict[str, Mapping[str, str]] = {"client": _CLIENT_ALIASES}


def find_config_file(cwd: Path | None = None) -> str | None:
    """Return ``featurebook.yml`` (or ``.yaml``) in ``cwd`` if present."""

    base = Path.cwd() if cwd is None else cwd
    for name in CONFIG_FILE_NAMES:
        candidate = base / name
        if candidate.is_file():
            return str(candidate)
    return None


def _read_document(path: str) -> Mapping[str, Any]:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        logger.error("Unable to open configuration file %s: %s", path, exc)
        raise
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        logger.error("Failed to parse configuration file %s: %s", path, exc)
        raise ValueError(f"Failed to parse configuration file {path}") from exc
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise TypeError(f"{path}: top level must be a mapping of sections")
    return document


def _normalize_aliases(section: str, values: dict[str, Any]) -> dict[str, Any]:
    for alias, canonical in _SECTION_ALIASES.get(section, {}).items():
        if alias not in values:
            continue
        legacy = values.pop(alias)
        if canonical in values:
            continue
        logger.warning(
            "%s: key '%s' is deprecated; use '%s' instead", section, alias, canonical
        )
        values[canonical] = legacy
    return values


def _build_section(section: str, raw: Any) -> Any:
    section_type = _SECTION_TYPES[section]
    if raw is None:
        return section_type()
    if not isinstance(raw, dict):
        raise TypeError(f"{section} section must be a mapping")
    values = _normalize_aliases(section, dict(raw))
    known = {f.name for f in fields(section_type)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise TypeError(f"{section}: unknown keys {', '.join(unknown)}")
    return section_type(**values)


def load_config(path: str) -> UnifiedConfig:
    """Parse a YAML (or JSON) file into :class:`UnifiedConfig`."""

    document = _read_document(path)
    sections = {name: _build_section(name, document.get(name)) for name in CONFIG_SECTION_NAMES}
    present = frozenset(
        name for name in CONFIG_SECTION_NAMES if isinstance(document.get(name), dict)
    )
    return UnifiedConfig(**sections, present_sections=present)


_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _coerce_env(raw: str, current: Any, key: str) -> Any:
    if isinstance(current, bool):
        lowered = raw.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ValueError(f"{key} must be a boolean, got {raw!r}")
    if isinstance(current, int):
        return int(raw)
    if isinstance(current, float):
        return float(raw)
    return raw


def apply_env_overrides(
    unified: UnifiedConfig, environ: Mapping[str, str] | None = None
) -> UnifiedConfig:
    """Return ``unified`` with values from ``ENV_EXPORT_OVERRIDES`` variables applied."""

    env = os.environ if environ is None else environ
    sections: dict[str, Any] = {}
    for section in CONFIG_SECTION_NAMES:
        config_obj = getattr(unified, section)
        changes: dict[str, Any] = {}
        for field_name, key in ENV_EXPORT_OVERRIDES.get(section, {}).items():
            if not key or key not in env:
                continue
            current = getattr(config_obj, field_name)
            try:
                changes[field_name] = _coerce_env(env[key], current, key)
            except ValueError as exc:
                logger.error("Invalid value for %s: %s", key, exc)
                raise
        sections[section] = replace(config_obj, **changes) if changes else config_obj
    return replace(unified, **sections)


__all__ = [
    "CONFIG_FILE_NAMES",
    "CONFIG_SECTION_NAMES",
    "ENV_EXPORT_OVERRIDES",
    "CacheConfig",
    "ClientConfig",
    "RuntimeConfig",
    "UnifiedConfig",
    "apply_env_overrides",
    "find_config_file",
    "load_config",
]
