from __future__ import annotations

"""Feature definitions and evaluation value objects."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field


class FeatureRule(BaseModel):
    """One conditional override of a feature's default value.

    Rule contents are interpreted only by the evaluation engine. Unknown keys
    are preserved so a decode/encode pass never drops data.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    condition: Optional[dict[str, Any]] = None
    coverage: Optional[float] = None
    force: Any = None
    variations: Optional[list[Any]] = None
    key: Optional[str] = None
    weights: Optional[list[float]] = None
    namespace: Optional[list[Any]] = None
    hash_attribute: Optional[str] = Field(default=None, alias="hashAttribute")

    @property
    def has_force(self) -> bool:
        return "force" in self.model_fields_set


class Feature(BaseModel):
    """A default value plus an ordered sequence of override rules."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    default_value: Any = Field(default=None, alias="defaultValue")
    rules: Optional[list[FeatureRule]] = None


class FeaturesEnvelope(BaseModel):
    """Top-level shape of a plain feature payload served by the API."""

    model_config = ConfigDict(extra="ignore")

    features: Optional[dict[str, Feature]] = None


FeatureMapping = dict[str, Feature]
TrackingCallback = Callable[["Experiment", "ExperimentResult"], None]


class FeatureSource(str, Enum):
    """Provenance of a feature evaluation result."""

    UNKNOWN_FEATURE = "unknownFeature"
    DEFAULT_VALUE = "defaultValue"
    FORCE = "force"
    EXPERIMENT = "experiment"


@dataclass(frozen=True)
class Experiment:
    """An experiment definition handed to the evaluation engine."""

    key: str
    variations: tuple[Any, ...] = ()
    weights: tuple[float, ...] | None = None
    active: bool = True
    coverage: float | None = None
    condition: dict[str, Any] | None = None
    force: int | None = None
    hash_attribute: str = "id"


@dataclass(frozen=True)
class ExperimentResult:
    """Outcome of assigning the current subject to an experiment."""

    in_experiment: bool
    variation_id: int
    value: Any = None
    hash_attribute: str = "id"
    hash_value: Any = None


@dataclass(frozen=True)
class FeatureResult:
    """Outcome of evaluating a single feature key."""

    value: Any
    source: FeatureSource
    experiment: Experiment | None = None
    experiment_result: ExperimentResult | None = None

    @property
    def on(self) -> bool:
        return self.value not in (None, False, "", 0)

    @property
    def off(self) -> bool:
        return not self.on


__all__ = [
    "Experiment",
    "ExperimentResult",
    "Feature",
    "FeatureMapping",
    "FeatureResult",
    "FeatureRule",
    "FeatureSource",
    "FeaturesEnvelope",
    "TrackingCallback",
]
