from __future__ import annotations

"""Prometheus metrics for the feature refresh pipeline."""

from collections.abc import Sequence
from typing import Dict, Tuple, Type, TypeVar

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    REGISTRY as global_registry,
)
from prometheus_client.metrics import MetricWrapperBase

MetricT = TypeVar("MetricT", bound=MetricWrapperBase)
RegistryKey = Tuple[CollectorRegistry, str]

_METRIC_CACHE: Dict[RegistryKey, MetricWrapperBase] = {}


def _get_or_create(
    cls: Type[MetricT],
    name: str,
    documentation: str,
    labelnames: Sequence[str] | None = None,
    *,
    registry: CollectorRegistry | None = None,
) -> MetricT:
    reg = registry or global_registry
    key = (reg, name)
    existing = _METRIC_CACHE.get(key)
    if existing is not None:
        return existing  # type: ignore[return-value]
    metric = cls(name, documentation, labelnames or (), registry=reg)
    _METRIC_CACHE[key] = metric
    return metric


refresh_total = _get_or_create(
    Counter,
    "featurebook_refresh_total",
    "Feature refresh attempts grouped by outcome",
    ["outcome"],
)

refresh_duration_seconds = _get_or_create(
    Histogram,
    "featurebook_refresh_duration_seconds",
    "Time spent fetching and decoding remote feature payloads",
)

encrypted_install_total = _get_or_create(
    Counter,
    "featurebook_encrypted_install_total",
    "Encrypted feature installations grouped by outcome",
    ["outcome"],
)

disk_cache_errors_total = _get_or_create(
    Counter,
    "featurebook_disk_cache_errors_total",
    "Disk cache operations that failed and were ignored",
    ["op"],
)


def observe_refresh(outcome: str, elapsed_seconds: float | None = None) -> None:
    refresh_total.labels(outcome=outcome).inc()
    if elapsed_seconds is not None:
        refresh_duration_seconds.observe(max(0.0, elapsed_seconds))


def observe_encrypted_install(outcome: str) -> None:
    encrypted_install_total.labels(outcome=outcome).inc()


def observe_disk_cache_error(op: str) -> None:
    disk_cache_errors_total.labels(op=op).inc()


__all__ = [
    "disk_cache_errors_total",
    "encrypted_install_total",
    "observe_disk_cache_error",
    "observe_encrypted_install",
    "observe_refresh",
    "refresh_duration_seconds",
    "refresh_total",
]
