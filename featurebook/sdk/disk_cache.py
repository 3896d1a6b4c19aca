from __future__ import annotations

"""Key -> bytes persistence used as the durable fallback for feature payloads."""

import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Protocol, runtime_checkable

from . import metrics

logger = logging.getLogger(__name__)


@runtime_checkable
class DiskCache(Protocol):
    """Best-effort storage contract consumed by the refresh pipeline."""

    def get(self, key: str) -> bytes | None:
        """Return the stored bytes for ``key`` or ``None`` when absent."""

    def put(self, key: str, content: bytes) -> None:
        """Overwrite the bytes stored under ``key``."""


def _sanitize_component(value: str) -> str:
    value = value.strip()
    if not value:
        return "_"
    banned = {"/", "\\", ".", ".."}
    if value in banned:
        return "_"
    return "".join(c if c.isalnum() or c in {"-", "_", "."} else "_" for c in value)


class FileSystemDiskCache:
    """One file per key under ``base_dir``.

    Writes go to a temporary file in the same directory and are moved into
    place with :func:`os.replace`, so a reader either sees the previous
    payload or the new one. Read and write failures are logged and reported
    as a miss / ignored write; they never propagate to callers.
    """

    def __init__(self, base_dir: str | os.PathLike[str]) -> None:
        self.base_dir = Path(base_dir).expanduser()
        self._lock = threading.Lock()

    def path_for(self, key: str) -> Path:
        return self.base_dir / _sanitize_component(key)

    def get(self, key: str) -> bytes | None:
        path = self.path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Failed to read cached payload %s: %s", path, exc)
            metrics.observe_disk_cache_error("get")
            return None

    def put(self, key: str, content: bytes) -> None:
        path = self.path_for(key)
        with self._lock:
            try:
                self.base_dir.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(dir=self.base_dir, prefix=".tmp-")
                try:
                    with os.fdopen(fd, "wb") as fh:
                        fh.write(content)
                    os.replace(tmp_name, path)
                except BaseException:
                    Path(tmp_name).unlink(missing_ok=True)
                    raise
            except OSError as exc:
                logger.warning("Failed to write cached payload %s: %s", path, exc)
                metrics.observe_disk_cache_error("put")
                return
        logger.debug("Cached %d bytes under %s", len(content), path)


class InMemoryDiskCache:
    """Process-local substitute for tests and ephemeral handles."""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self._data: dict[str, bytes] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> bytes | None:
        with self._lock:
            return self._data.get(key)

    def put(self, key: str, content: bytes) -> None:
        with self._lock:
            self._data[key] = bytes(content)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data


__all__ = ["DiskCache", "FileSystemDiskCache", "InMemoryDiskCache"]
