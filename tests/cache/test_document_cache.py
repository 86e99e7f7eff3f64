from __future__ import annotations

import threading
import time

import pytest

from docsift.cache.document_cache import DEFAULT_TTL_SECONDS, DocumentCache


class _FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def test_entries_expire_after_ttl() -> None:
    clock = _FakeClock()
    cache: DocumentCache[str] = DocumentCache(ttl_seconds=1, clock=clock)
    cache.put("doc", "value")

    clock.advance(0.5)
    assert cache.get("doc") == "value"

    clock.advance(1.5)
    assert cache.get("doc") is None
    assert len(cache) == 0


def test_entry_expires_exactly_at_deadline() -> None:
    clock = _FakeClock(now=10.0)
    cache: DocumentCache[str] = DocumentCache(ttl_seconds=5, clock=clock)
    cache.put("doc", "value")

    clock.advance(5)

    assert cache.get("doc") is None


def test_put_refreshes_expiry() -> None:
    clock = _FakeClock()
    cache: DocumentCache[str] = DocumentCache(ttl_seconds=2, clock=clock)
    cache.put("doc", "old")
    clock.advance(1.5)
    cache.put("doc", "new")
    clock.advance(1.5)

    assert cache.get("doc") == "new"


def test_get_or_load_runs_loader_once_per_key() -> None:
    cache: DocumentCache[str] = DocumentCache()
    calls: list[str] = []

    def _loader() -> str:
        calls.append("load")
        return "document"

    assert cache.get_or_load("doc", _loader) == "document"
    assert cache.get_or_load("doc", _loader) == "document"
    assert calls == ["load"]


def test_force_reload_bypasses_cached_value() -> None:
    cache: DocumentCache[int] = DocumentCache()
    counter = iter(range(10))

    first = cache.get_or_load("doc", lambda: next(counter))
    second = cache.get_or_load("doc", lambda: next(counter), force_reload=True)

    assert (first, second) == (0, 1)
    assert cache.get("doc") == 1


def test_loader_failure_is_not_cached() -> None:
    cache: DocumentCache[str] = DocumentCache()

    def _failing_loader() -> str:
        raise RuntimeError("extraction failed")

    with pytest.raises(RuntimeError, match="extraction failed"):
        cache.get_or_load("doc", _failing_loader)

    assert cache.get("doc") is None
    assert cache.get_or_load("doc", lambda: "recovered") == "recovered"


def test_concurrent_loads_share_one_extraction() -> None:
    cache: DocumentCache[object] = DocumentCache()
    calls = 0
    calls_lock = threading.Lock()
    results: list[object] = []

    def _slow_loader() -> object:
        nonlocal calls
        with calls_lock:
            calls += 1
        time.sleep(0.05)
        return object()

    def _worker() -> None:
        results.append(cache.get_or_load("doc", _slow_loader))

    threads = [threading.Thread(target=_worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert calls == 1
    assert len(results) == 8
    assert all(result is results[0] for result in results)


def test_invalidate_and_clear() -> None:
    cache: DocumentCache[str] = DocumentCache()
    cache.put("a", "1")
    cache.put("b", "2")

    assert cache.invalidate("a") is True
    assert cache.invalidate("a") is False
    assert cache.get("b") == "2"

    cache.clear()
    assert len(cache) == 0


def test_ttl_must_be_positive() -> None:
    with pytest.raises(ValueError):
        DocumentCache(ttl_seconds=0)


def test_default_ttl_is_five_minutes() -> None:
    assert DocumentCache().ttl_seconds == DEFAULT_TTL_SECONDS == 300.0


def test_key_locks_are_released_after_loads() -> None:
    cache: DocumentCache[str] = DocumentCache()

    def _failing_loader() -> str:
        raise RuntimeError("boom")

    for index in range(50):
        cache.get_or_load(f"doc-{index}", lambda: "value")
    with pytest.raises(RuntimeError):
        cache.get_or_load("failing", _failing_loader)

    assert cache._key_locks == {}


def test_key_lock_survives_while_callers_wait() -> None:
    cache: DocumentCache[str] = DocumentCache()
    started = threading.Event()
    release = threading.Event()

    def _blocking_loader() -> str:
        started.set()
        release.wait(timeout=5)
        return "value"

    worker = threading.Thread(target=lambda: cache.get_or_load("doc", _blocking_loader))
    worker.start()
    started.wait(timeout=5)

    assert list(cache._key_locks) == ["doc"]

    release.set()
    worker.join()

    assert cache._key_locks == {}
    assert cache.get("doc") == "value"
