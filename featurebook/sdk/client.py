from __future__ import annotations

"""Public SDK handle."""

import logging
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from . import metrics, runtime
from .access import AccessController
from .codec import FeaturePayloadCodec, JsonFeatureCodec
from .context import Context, noop_tracking
from .crypto import DecryptPrimitive, PayloadDecryptor
from .disk_cache import DiskCache, FileSystemDiskCache
from .evaluation import DefaultEvaluator, Evaluator
from .exceptions import (
    DecryptionError,
    LocalDataError,
    MalformedPayloadError,
    PayloadDecodeError,
)
from .http import HttpFeatureFetcher, RemoteFetcher
from .logging_setup import configure_logging
from .models import (
    Experiment,
    ExperimentResult,
    Feature,
    FeatureResult,
    TrackingCallback,
)
from .pipeline import RefreshOutcome, RefreshPipeline

logger = logging.getLogger(__name__)


@dataclass
class FeatureBookConfig:
    """Everything needed to construct a :class:`FeatureBook`.

    ``host_url`` and ``features`` are interchangeable sources: when an
    explicit payload is supplied the handle never touches the network or the
    disk cache at construction time.
    """

    host_url: str | None = None
    features: bytes | None = None
    attributes: Any = field(default_factory=dict)
    tracking_callback: TrackingCallback = noop_tracking
    enabled: bool = True
    qa_mode: bool = False
    forced_variations: Mapping[str, int] | None = None
    log_level: int | str = "INFO"
    fetcher: RemoteFetcher | None = None
    disk_cache: DiskCache | None = None
    evaluator: Evaluator | None = None
    decryptor: DecryptPrimitive | None = None
    codec: FeaturePayloadCodec | None = None
    cache_key: str | None = None
    max_workers: int | None = None


class FeatureBook:
    """Thread-safe handle over a refreshable feature snapshot.

    Reads (``get_features``, ``evaluate``, ``run`` ...) see a consistent
    snapshot; updates (refresh, ``set_attributes``, encrypted installs) are
    queued writes that replace context fields wholesale.
    """

    def __init__(self, config: FeatureBookConfig) -> None:
        configure_logging(config.log_level)
        self._codec: FeaturePayloadCodec = config.codec or JsonFeatureCodec()
        self._evaluator: Evaluator = config.evaluator or DefaultEvaluator()
        self._decryptor = PayloadDecryptor(config.decryptor, self._codec)
        self._initial_refresh: Future[bool] | None = None

        context = Context(
            host_url=config.host_url,
            attributes=config.attributes,
            forced_variations=config.forced_variations,
            enabled=config.enabled,
            qa_mode=config.qa_mode,
            tracking_callback=config.tracking_callback,
        )
        explicit = None
        if config.features is not None:
            try:
                explicit = self._codec.decode(config.features)
            except PayloadDecodeError as exc:
                raise MalformedPayloadError(str(exc)) from exc
            context = context.with_features(explicit)

        self._access = AccessController(context, max_workers=config.max_workers)
        self._pipeline = RefreshPipeline(
            access=self._access,
            fetcher=config.fetcher or HttpFeatureFetcher(),
            codec=self._codec,
            disk_cache=config.disk_cache or FileSystemDiskCache(runtime.CACHE_DIR),
            endpoint=config.host_url,
            cache_key=config.cache_key,
        )

        if explicit is None:
            self._cold_start()

    @classmethod
    def initialize(cls, config: FeatureBookConfig) -> "FeatureBook":
        return cls(config)

    def _cold_start(self) -> None:
        # The disk seed is enqueued before the network refresh starts, so a
        # fresher remote payload always lands after it.
        try:
            seed = self._pipeline.load_from_cache()
        except LocalDataError as exc:
            logger.info("No usable cached features: %s", exc)
        else:
            self._access.write(lambda ctx: ctx.with_features(seed))
        self._initial_refresh = self.refresh()

    # ------------------------------------------------------------------
    @property
    def initial_refresh(self) -> Future[bool] | None:
        """Future for the cold-start refresh; ``None`` when features were supplied."""

        return self._initial_refresh

    def refresh(self, completion: Callable[[bool], Any] | None = None) -> Future[bool]:
        """Re-fetch features; ``completion(success)`` runs after the context update."""

        future: Future[bool] = Future()

        def _done(outcome: RefreshOutcome) -> None:
            try:
                if completion is not None:
                    completion(outcome.ok)
            finally:
                future.set_result(outcome.ok)

        self._pipeline.refresh(_done)
        return future

    def get_context(self) -> Context:
        return self._access.read(lambda ctx: ctx)

    def get_features(self) -> dict[str, Feature]:
        return self._access.read(lambda ctx: dict(ctx.features))

    def evaluate(self, key: str) -> FeatureResult:
        return self._access.read(lambda ctx: self._evaluator.evaluate_feature(ctx, key))

    def get_feature_value(self, key: str, default: Any) -> Any:
        value = self.evaluate(key).value
        return default if value is None else value

    def is_on(self, key: str) -> bool:
        return self.evaluate(key).on

    def run(self, experiment: Experiment) -> ExperimentResult:
        return self._access.read(
            lambda ctx: self._evaluator.evaluate_experiment(ctx, experiment)
        )

    def set_attributes(self, attributes: Any) -> Future[None]:
        """Replace the evaluation subject's attributes."""

        return self._access.write(lambda ctx: ctx.with_attributes(attributes))

    def set_encrypted_features(
        self,
        encrypted: str,
        key: str,
        decryptor: DecryptPrimitive | None = None,
        *,
        on_error: Callable[[DecryptionError], Any] | None = None,
    ) -> None:
        """Install features from an encrypted token.

        Malformed tokens, bad keys and undecryptable payloads leave the
        snapshot untouched and are not raised; pass ``on_error`` to observe
        why a token was rejected. Decrypted features are never persisted.
        """

        payload_decryptor = self._decryptor
        if decryptor is not None:
            payload_decryptor = PayloadDecryptor(decryptor, self._codec)

        try:
            features = payload_decryptor.decrypt(encrypted, key)
        except DecryptionError as exc:
            metrics.observe_encrypted_install("rejected")
            logger.debug("Ignoring encrypted features: %s", exc)
            if on_error is not None:
                try:
                    on_error(exc)
                except Exception:
                    logger.exception("Encrypted features error callback %r raised", on_error)
            return

        metrics.observe_encrypted_install("installed")
        self._access.write(lambda ctx: ctx.with_features(features))

    # ------------------------------------------------------------------
    def close(self, *, wait: bool = True) -> None:
        self._pipeline.close(wait=wait)
        self._access.close(wait=wait)

    def __enter__(self) -> "FeatureBook":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["FeatureBook", "FeatureBookConfig"]
