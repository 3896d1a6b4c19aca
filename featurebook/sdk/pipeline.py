from __future__ import annotations

"""Fetch -> decode -> persist -> install sequence for remote features."""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable

from . import metrics, runtime
from .access import AccessController
from .codec import FeaturePayloadCodec
from .disk_cache import DiskCache
from .exceptions import (
    FeatureBookError,
    MalformedLocalDataError,
    MalformedPayloadError,
    MissingEndpointError,
    NoLocalDataError,
    PayloadDecodeError,
    RefreshError,
    TransportError,
)
from .http import RemoteFetcher
from .models import FeatureMapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefreshOutcome:
    """Result reported to refresh callers."""

    features: FeatureMapping | None = None
    error: FeatureBookError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


RefreshCallback = Callable[[RefreshOutcome], None]


class RefreshPipeline:
    """Refresh the shared context from the remote source, with disk fallback.

    Failed refreshes never touch the context: the previous snapshot stays
    authoritative. Successful payloads are persisted to the disk cache before
    the context write is enqueued.
    """

    def __init__(
        self,
        *,
        access: AccessController,
        fetcher: RemoteFetcher,
        codec: FeaturePayloadCodec,
        disk_cache: DiskCache,
        endpoint: str | None,
        cache_key: str | None = None,
        max_workers: int | None = None,
    ) -> None:
        self.access = access
        self.fetcher = fetcher
        self.codec = codec
        self.disk_cache = disk_cache
        self.endpoint = endpoint
        self.cache_key = cache_key or runtime.CACHE_KEY
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or runtime.REFRESH_WORKERS,
            thread_name_prefix="featurebook-refresh",
        )

    # ------------------------------------------------------------------
    def refresh(self, completion: RefreshCallback | None = None) -> Future[RefreshOutcome]:
        """Start a refresh; ``completion`` fires after any context write commits."""

        result: Future[RefreshOutcome] = Future()

        def _report(outcome: RefreshOutcome) -> None:
            try:
                if completion is not None:
                    completion(outcome)
            finally:
                result.set_result(outcome)

        if self.endpoint is None:
            self._fail(MissingEndpointError(), _report)
            return result

        try:
            self._executor.submit(self._run, self.endpoint, _report)
        except RuntimeError:
            self._fail(RefreshError("refresh pipeline is closed"), _report)
        return result

    def _run(self, endpoint: str, report: Callable[[RefreshOutcome], None]) -> None:
        started = time.perf_counter()
        try:
            raw = self.fetcher.fetch(endpoint)
        except TransportError as exc:
            self._fail(exc, report, started)
            return
        except Exception as exc:
            self._fail(TransportError(endpoint, str(exc) or type(exc).__name__), report, started)
            return

        try:
            features = self.codec.decode(raw)
        except PayloadDecodeError as exc:
            self._fail(MalformedPayloadError(str(exc)), report, started)
            return
        except Exception as exc:
            logger.exception("Feature codec raised while decoding payload from %s", endpoint)
            self._fail(
                MalformedPayloadError(str(exc) or type(exc).__name__), report, started
            )
            return

        try:
            self.disk_cache.put(self.cache_key, raw)
        except Exception as exc:
            logger.warning("Ignoring disk cache write failure for %s: %s", self.cache_key, exc)
            metrics.observe_disk_cache_error("put")
        metrics.observe_refresh("success", time.perf_counter() - started)
        logger.info("Fetched %d features from %s", len(features), endpoint)

        outcome = RefreshOutcome(features=features)
        try:
            self.access.write_and_then(
                lambda ctx: ctx.with_features(features),
                lambda: report(outcome),
            )
        except RuntimeError as exc:
            logger.warning("Discarding refreshed features: %s", exc)
            report(RefreshOutcome(error=RefreshError(str(exc))))

    def _fail(
        self,
        error: FeatureBookError,
        report: Callable[[RefreshOutcome], None],
        started: float | None = None,
    ) -> None:
        elapsed = None if started is None else time.perf_counter() - started
        metrics.observe_refresh(type(error).__name__, elapsed)
        logger.error("Failed to refresh features: %s", error)
        outcome = RefreshOutcome(error=error)
        if self.access.schedule(report, outcome) is None:
            report(outcome)

    # ------------------------------------------------------------------
    def load_from_cache(self) -> FeatureMapping:
        """Return the cached mapping or raise :class:`NoLocalDataError` / :class:`MalformedLocalDataError`."""

        try:
            raw = self.disk_cache.get(self.cache_key)
        except Exception as exc:
            logger.warning("Disk cache read failed for %s: %s", self.cache_key, exc)
            metrics.observe_disk_cache_error("get")
            raise NoLocalDataError(self.cache_key) from exc
        if raw is None:
            logger.debug("No cached features under %s", self.cache_key)
            raise NoLocalDataError(self.cache_key)
        try:
            return self.codec.decode(raw)
        except PayloadDecodeError as exc:
            logger.error("Failed to parse cached features: %s", exc)
            raise MalformedLocalDataError(self.cache_key, str(exc)) from exc
        except Exception as exc:
            logger.exception("Feature codec raised while decoding cached features")
            raise MalformedLocalDataError(
                self.cache_key, str(exc) or type(exc).__name__
            ) from exc

    def close(self, *, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


__all__ = ["RefreshCallback", "RefreshOutcome", "RefreshPipeline"]
