"""Public API surface for the featurebook package."""

from __future__ import annotations

from .sdk import (
    Context,
    Experiment,
    ExperimentResult,
    Feature,
    FeatureBook,
    FeatureBookBuilder,
    FeatureBookConfig,
    FeatureBookError,
    FeatureResult,
    FeatureSource,
    FileSystemDiskCache,
    HttpFeatureFetcher,
    InMemoryDiskCache,
)

__version__ = "0.1.0"

__all__ = [
    "Context",
    "Experiment",
    "ExperimentResult",
    "Feature",
    "FeatureBook",
    "FeatureBookBuilder",
    "FeatureBookConfig",
    "FeatureBookError",
    "FeatureResult",
    "FeatureSource",
    "FileSystemDiskCache",
    "HttpFeatureFetcher",
    "InMemoryDiskCache",
]
