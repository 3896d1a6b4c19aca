from __future__ import annotations

"""Reader/writer barrier queue guarding a :class:`Context`.

Every operation takes a ticket in submission order. A read may run once no
write ticket precedes it, so reads overlap freely. A write runs only when it
is at the head of the queue: all earlier reads and writes have finished, and
everything submitted after it waits until it commits.

Reads execute synchronously on the calling thread. Writes execute on a
single writer thread, which keeps them in submission order; continuations run
on a separate callback pool so they may issue reads of their own.
"""

import itertools
import logging
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, TypeVar

from . import runtime
from .context import Context

logger = logging.getLogger(__name__)

T = TypeVar("T")
Mutator = Callable[[Context], Context]

_READ = "read"
_WRITE = "write"


class _Ticket:
    __slots__ = ("kind", "seq")

    def __init__(self, kind: str, seq: int) -> None:
        self.kind = kind
        self.seq = seq

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<_Ticket {self.kind} #{self.seq}>"


class AccessController:
    """Single-writer / multiple-reader discipline over one context."""

    def __init__(
        self,
        context: Context,
        *,
        max_workers: int | None = None,
        name: str = "featurebook",
    ) -> None:
        self._context = context
        self._cond = threading.Condition()
        self._pending: deque[_Ticket] = deque()
        self._seq = itertools.count()
        self._local = threading.local()
        self._closed = False
        self._writer = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"{name}-writer"
        )
        self._callbacks = ThreadPoolExecutor(
            max_workers=max_workers or runtime.MAX_WORKERS,
            thread_name_prefix=f"{name}-callback",
        )

    # ------------------------------------------------------------------
    def _enqueue(self, kind: str) -> _Ticket:
        ticket = _Ticket(kind, next(self._seq))
        self._pending.append(ticket)
        return ticket

    def _ready(self, ticket: _Ticket) -> bool:
        if ticket.kind == _WRITE:
            return self._pending[0] is ticket
        for item in self._pending:
            if item is ticket:
                return True
            if item.kind == _WRITE:
                return False
        raise RuntimeError(f"ticket {ticket!r} is not queued")

    def _finish(self, ticket: _Ticket) -> None:
        with self._cond:
            self._pending.remove(ticket)
            self._cond.notify_all()

    def _in_critical_section(self) -> bool:
        return bool(getattr(self._local, "active", False))

    # ------------------------------------------------------------------
    def read(self, fn: Callable[[Context], T]) -> T:
        """Run ``fn`` against a consistent snapshot and return its result."""

        if self._in_critical_section():
            return fn(self._context)

        with self._cond:
            ticket = self._enqueue(_READ)
            self._cond.wait_for(lambda: self._ready(ticket))
        self._local.active = True
        try:
            return fn(self._context)
        finally:
            self._local.active = False
            self._finish(ticket)

    def write(self, mutator: Mutator) -> Future[None]:
        """Queue ``mutator`` and return without waiting for it to apply."""

        return self.write_and_then(mutator, None)

    def write_and_then(
        self, mutator: Mutator, on_applied: Callable[[], Any] | None
    ) -> Future[None]:
        """Queue ``mutator``; run ``on_applied`` on the callback pool after it commits.

        The returned future resolves once the mutation has committed (or
        failed). A failing mutator leaves the context untouched and skips
        ``on_applied``.
        """

        done: Future[None] = Future()
        with self._cond:
            if self._closed:
                raise RuntimeError("access controller is closed")
            ticket = self._enqueue(_WRITE)
            try:
                # Submitted under the lock so the writer sees tickets in order.
                self._writer.submit(self._run_write, ticket, mutator, on_applied, done)
            except RuntimeError:
                self._pending.remove(ticket)
                self._cond.notify_all()
                raise
        return done

    def _run_write(
        self,
        ticket: _Ticket,
        mutator: Mutator,
        on_applied: Callable[[], Any] | None,
        done: Future[None],
    ) -> None:
        with self._cond:
            self._cond.wait_for(lambda: self._ready(ticket))
        error: BaseException | None = None
        self._local.active = True
        try:
            self._context = mutator(self._context)
        except Exception as exc:
            logger.exception("Context mutation failed; keeping previous snapshot")
            error = exc
        finally:
            self._local.active = False
            self._finish(ticket)

        if error is not None:
            done.set_exception(error)
            return
        done.set_result(None)
        if on_applied is not None:
            self.schedule(on_applied)

    def schedule(self, fn: Callable[..., Any], *args: Any) -> Future[Any] | None:
        """Run ``fn(*args)`` on the callback pool outside the access queue."""

        try:
            return self._callbacks.submit(self._run_callback, fn, *args)
        except RuntimeError:
            logger.warning("Dropping callback %r: access controller is closed", fn)
            return None

    @staticmethod
    def _run_callback(fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return fn(*args)
        except Exception:
            logger.exception("Completion callback %r raised", fn)
            return None

    # ------------------------------------------------------------------
    def drain(self, timeout: float | None = None) -> bool:
        """Block until every queued read and write has finished."""

        with self._cond:
            return self._cond.wait_for(lambda: not self._pending, timeout)

    def close(self, *, wait: bool = True) -> None:
        """Stop accepting writes; queued writes still apply when ``wait`` is true."""

        with self._cond:
            if self._closed:
                return
            self._closed = True
        self._writer.shutdown(wait=wait)
        self._callbacks.shutdown(wait=wait)

    @property
    def closed(self) -> bool:
        return self._closed


__all__ = ["AccessController", "Mutator"]
