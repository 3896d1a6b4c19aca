from __future__ import annotations

"""Fluent construction of :class:`FeatureBook` handles."""

from dataclasses import replace
from typing import Any, Mapping

from featurebook.foundation.config import UnifiedConfig

from . import configuration
from .client import FeatureBook, FeatureBookConfig
from .codec import FeaturePayloadCodec
from .context import noop_tracking
from .crypto import DecryptPrimitive
from .disk_cache import DiskCache
from .evaluation import Evaluator
from .http import RemoteFetcher
from .logging_setup import resolve_level
from .models import TrackingCallback


class FeatureBookBuilder:
    """Collect settings step by step and build a handle.

    >>> sdk = (
    ...     FeatureBookBuilder(host_url="https://cdn.example.com/api/features/key")
    ...     .set_qa_mode(True)
    ...     .build()
    ... )
    """

    def __init__(
        self,
        host_url: str | None = None,
        features: bytes | None = None,
        attributes: Any = None,
        tracking_callback: TrackingCallback = noop_tracking,
    ) -> None:
        if host_url is None and features is None:
            raise ValueError("either host_url or features is required")
        self._config = FeatureBookConfig(
            host_url=host_url,
            features=features,
            attributes={} if attributes is None else attributes,
            tracking_callback=tracking_callback,
        )

    @classmethod
    def from_config(
        cls,
        unified: UnifiedConfig | None = None,
        *,
        attributes: Any = None,
        tracking_callback: TrackingCallback = noop_tracking,
    ) -> "FeatureBookBuilder":
        """Seed a builder from ``featurebook.yml`` (or the given config)."""

        cfg = unified or configuration.get_unified_config()
        client = cfg.client
        builder = cls(
            host_url=client.host_url,
            attributes=attributes,
            tracking_callback=tracking_callback,
        )
        builder._config = replace(
            builder._config,
            enabled=client.enabled,
            qa_mode=client.qa_mode,
            forced_variations=client.forced_variations,
            log_level=client.log_level,
            cache_key=cfg.cache.cache_key,
            max_workers=cfg.runtime.max_workers,
        )
        return builder

    @property
    def config(self) -> FeatureBookConfig:
        return self._config

    def _set(self, **changes: Any) -> "FeatureBookBuilder":
        self._config = replace(self._config, **changes)
        return self

    def set_fetcher(self, fetcher: RemoteFetcher) -> "FeatureBookBuilder":
        return self._set(fetcher=fetcher)

    def set_disk_cache(self, disk_cache: DiskCache) -> "FeatureBookBuilder":
        return self._set(disk_cache=disk_cache)

    def set_codec(self, codec: FeaturePayloadCodec) -> "FeatureBookBuilder":
        return self._set(codec=codec)

    def set_evaluator(self, evaluator: Evaluator) -> "FeatureBookBuilder":
        return self._set(evaluator=evaluator)

    def set_decryptor(self, decryptor: DecryptPrimitive) -> "FeatureBookBuilder":
        return self._set(decryptor=decryptor)

    def set_log_level(self, level: int | str) -> "FeatureBookBuilder":
        return self._set(log_level=resolve_level(level))

    def set_forced_variations(self, forced_variations: Mapping[str, int]) -> "FeatureBookBuilder":
        return self._set(forced_variations=dict(forced_variations))

    def set_qa_mode(self, enabled: bool) -> "FeatureBookBuilder":
        return self._set(qa_mode=enabled)

    def set_enabled(self, enabled: bool) -> "FeatureBookBuilder":
        return self._set(enabled=enabled)

    def build(self) -> FeatureBook:
        return FeatureBook(self._config)


__all__ = ["FeatureBookBuilder"]
