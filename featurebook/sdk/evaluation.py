from __future__ import annotations

"""Evaluation engine contracts and the built-in evaluator.

The SDK only hands a context snapshot to an evaluator and returns whatever it
produces. :class:`DefaultEvaluator` covers the behavior that does not depend
on targeting or traffic bucketing: unknown keys, default values,
unconditional forced rules, forced variations and the disabled / QA-mode
short-circuits. Rules with a condition, partial coverage or variations, and
experiment bucketing, need a full engine supplied through the builder.
"""

import logging
from typing import Any, Protocol, runtime_checkable

from .context import Context
from .models import (
    Experiment,
    ExperimentResult,
    FeatureResult,
    FeatureRule,
    FeatureSource,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class FeatureEvaluator(Protocol):
    def evaluate_feature(self, context: Context, key: str) -> FeatureResult: ...


@runtime_checkable
class ExperimentEvaluator(Protocol):
    def evaluate_experiment(self, context: Context, experiment: Experiment) -> ExperimentResult: ...


class Evaluator(FeatureEvaluator, ExperimentEvaluator, Protocol):
    """An engine able to evaluate both features and experiments."""


def _is_unconditional_force(rule: FeatureRule) -> bool:
    if not rule.has_force or rule.condition:
        return False
    if rule.coverage is not None and rule.coverage < 1:
        return False
    return not rule.variations


def _hash_value(context: Context, attribute: str) -> Any:
    attributes = context.attributes
    if isinstance(attributes, dict):
        return attributes.get(attribute)
    return None


class DefaultEvaluator:
    """Evaluator for snapshots that need no targeting or bucketing."""

    def evaluate_feature(self, context: Context, key: str) -> FeatureResult:
        feature = context.features.get(key)
        if feature is None:
            logger.debug("Unknown feature %s", key)
            return FeatureResult(value=None, source=FeatureSource.UNKNOWN_FEATURE)

        for rule in feature.rules or ():
            if _is_unconditional_force(rule):
                return FeatureResult(value=rule.force, source=FeatureSource.FORCE)
        return FeatureResult(value=feature.default_value, source=FeatureSource.DEFAULT_VALUE)

    def evaluate_experiment(self, context: Context, experiment: Experiment) -> ExperimentResult:
        variation = 0
        forced = (context.forced_variations or {}).get(experiment.key)
        if forced is not None and context.enabled:
            variation = int(forced)
        elif experiment.force is not None and context.enabled and not context.qa_mode:
            variation = int(experiment.force)

        value = None
        if 0 <= variation < len(experiment.variations):
            value = experiment.variations[variation]
        else:
            variation = 0
            value = experiment.variations[0] if experiment.variations else None
        return ExperimentResult(
            in_experiment=False,
            variation_id=variation,
            value=value,
            hash_attribute=experiment.hash_attribute,
            hash_value=_hash_value(context, experiment.hash_attribute),
        )


__all__ = [
    "DefaultEvaluator",
    "Evaluator",
    "ExperimentEvaluator",
    "FeatureEvaluator",
]
