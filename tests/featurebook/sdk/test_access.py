import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout

import pytest

from featurebook.sdk.access import AccessController
from featurebook.sdk.context import Context
from featurebook.sdk.models import Feature


@pytest.fixture
def controller():
    ctl = AccessController(Context(attributes=[]), max_workers=4)
    try:
        yield ctl
    finally:
        ctl.close()


def _append(value):
    return lambda ctx: ctx.with_attributes([*ctx.attributes, value])


def test_reads_run_concurrently(controller):
    barrier = threading.Barrier(2, timeout=2)

    def _reader():
        return controller.read(lambda ctx: barrier.wait() is not None)

    with ThreadPoolExecutor(max_workers=2) as pool:
        results = [f.result(timeout=5) for f in [pool.submit(_reader), pool.submit(_reader)]]

    assert results == [True, True]


def test_write_waits_for_earlier_reads(controller):
    entered = threading.Event()
    release = threading.Event()

    def _slow_read(ctx):
        entered.set()
        assert release.wait(5)
        return list(ctx.attributes)

    with ThreadPoolExecutor(max_workers=1) as pool:
        reader = pool.submit(controller.read, _slow_read)
        assert entered.wait(5)
        write = controller.write(_append("x"))
        assert not write.done()
        release.set()
        assert reader.result(timeout=5) == []
        write.result(timeout=5)

    assert controller.read(lambda ctx: ctx.attributes) == ["x"]


def test_reads_after_write_wait_for_commit(controller):
    entered = threading.Event()
    release = threading.Event()

    def _slow_write(ctx):
        entered.set()
        assert release.wait(5)
        return ctx.with_attributes(["written"])

    write = controller.write(_slow_write)
    assert entered.wait(5)
    with ThreadPoolExecutor(max_workers=1) as pool:
        reader = pool.submit(controller.read, lambda ctx: ctx.attributes)
        with pytest.raises(FutureTimeout):
            reader.result(timeout=0.1)
        release.set()
        assert reader.result(timeout=5) == ["written"]
    write.result(timeout=5)


def test_writes_commit_in_submission_order(controller):
    for i in range(50):
        controller.write(_append(i))

    assert controller.read(lambda ctx: ctx.attributes) == list(range(50))


def test_write_and_then_runs_after_commit(controller):
    seen = []
    done = threading.Event()

    def _on_applied():
        seen.append(controller.read(lambda ctx: list(ctx.attributes)))
        done.set()

    controller.write_and_then(_append("applied"), _on_applied)

    assert done.wait(5)
    assert seen == [["applied"]]


def test_nested_read_does_not_deadlock_behind_queued_write(controller):
    def _outer(ctx):
        controller.write(_append("later"))
        return controller.read(lambda inner: list(inner.attributes))

    assert controller.read(_outer) == []
    assert controller.read(lambda ctx: ctx.attributes) == ["later"]


def test_failing_mutator_keeps_snapshot(controller):
    def _boom(ctx):
        raise ValueError("boom")

    failed = controller.write(_boom)
    controller.write(_append("after"))

    with pytest.raises(ValueError):
        failed.result(timeout=5)
    assert controller.read(lambda ctx: ctx.attributes) == ["after"]


def test_concurrent_reads_never_observe_mixed_mappings(controller):
    first = {f"a{i}": Feature(defaultValue=i) for i in range(20)}
    second = {f"b{i}": Feature(defaultValue=i) for i in range(20)}
    controller.write(lambda ctx: ctx.with_features(first))
    stop = threading.Event()
    errors: list[str] = []

    def _reader():
        while not stop.is_set():
            keys = controller.read(lambda ctx: set(ctx.features))
            if keys not in (set(first), set(second)):
                errors.append(f"torn snapshot: {sorted(keys)}")

    threads = [threading.Thread(target=_reader) for _ in range(4)]
    for t in threads:
        t.start()
    last = None
    for i in range(100):
        last = controller.write(lambda ctx, m=(second if i % 2 == 0 else first): ctx.with_features(m))
    last.result(timeout=5)
    stop.set()
    for t in threads:
        t.join(5)

    assert errors == []


def test_drain_and_close(controller):
    controller.write(_append(1))

    assert controller.drain(5)
    controller.close()
    assert controller.closed
    with pytest.raises(RuntimeError):
        controller.write(_append(2))
    assert controller.read(lambda ctx: ctx.attributes) == [1]
