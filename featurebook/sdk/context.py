from __future__ import annotations

"""Immutable snapshot of everything an evaluation needs."""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping

from .models import Feature, TrackingCallback


def _freeze(features: Mapping[str, Feature] | None = None) -> Mapping[str, Feature]:
    return MappingProxyType(dict(features or {}))


def noop_tracking(experiment: Any, result: Any) -> None:
    return None


@dataclass(frozen=True)
class Context:
    """State shared by one SDK handle.

    Instances are never mutated: every update produces a new ``Context`` via
    :meth:`with_features` / :meth:`with_attributes`, and the access controller
    swaps the reference under its write barrier.
    """

    host_url: str | None = None
    features: Mapping[str, Feature] = field(default_factory=_freeze)
    attributes: Any = field(default_factory=dict)
    forced_variations: Mapping[str, int] | None = None
    enabled: bool = True
    qa_mode: bool = False
    tracking_callback: TrackingCallback = noop_tracking

    def __post_init__(self) -> None:
        if not isinstance(self.features, MappingProxyType):
            object.__setattr__(self, "features", _freeze(self.features))

    def with_features(self, features: Mapping[str, Feature]) -> "Context":
        return replace(self, features=_freeze(features))

    def with_attributes(self, attributes: Any) -> "Context":
        return replace(self, attributes=attributes)


__all__ = ["Context", "noop_tracking"]
