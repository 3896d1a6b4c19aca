"""Thread-safe feature snapshot SDK."""

from .access import AccessController
from .builder import FeatureBookBuilder
from .client import FeatureBook, FeatureBookConfig
from .codec import FeaturePayloadCodec, JsonFeatureCodec
from .context import Context
from .crypto import AesCbcDecryptor, DecryptPrimitive, PayloadDecryptor
from .disk_cache import DiskCache, FileSystemDiskCache, InMemoryDiskCache
from .evaluation import DefaultEvaluator, Evaluator, ExperimentEvaluator, FeatureEvaluator
from .exceptions import (
    DecryptionError,
    FeatureBookError,
    MalformedLocalDataError,
    MalformedPayloadError,
    MissingEndpointError,
    NoLocalDataError,
    PayloadDecodeError,
    RefreshError,
    TransportError,
)
from .http import HttpFeatureFetcher, RemoteFetcher
from .models import (
    Experiment,
    ExperimentResult,
    Feature,
    FeatureResult,
    FeatureRule,
    FeatureSource,
)
from .pipeline import RefreshOutcome, RefreshPipeline

__all__ = [
    "AccessController",
    "AesCbcDecryptor",
    "Context",
    "DecryptPrimitive",
    "DecryptionError",
    "DefaultEvaluator",
    "DiskCache",
    "Evaluator",
    "Experiment",
    "ExperimentEvaluator",
    "ExperimentResult",
    "Feature",
    "FeatureBook",
    "FeatureBookBuilder",
    "FeatureBookConfig",
    "FeatureBookError",
    "FeatureEvaluator",
    "FeaturePayloadCodec",
    "FeatureResult",
    "FeatureRule",
    "FeatureSource",
    "FileSystemDiskCache",
    "HttpFeatureFetcher",
    "InMemoryDiskCache",
    "JsonFeatureCodec",
    "MalformedLocalDataError",
    "MalformedPayloadError",
    "MissingEndpointError",
    "NoLocalDataError",
    "PayloadDecodeError",
    "PayloadDecryptor",
    "RefreshError",
    "RefreshOutcome",
    "RefreshPipeline",
    "RemoteFetcher",
    "TransportError",
]
