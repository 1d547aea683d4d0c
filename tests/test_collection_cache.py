"""Tests for the per-revision-pair collection cache."""

import threading
import time

import pytest

from mr_diffs.diffs.cache import DiffCollectionCache
from mr_diffs.diffs.exceptions import TreeResolutionError
from mr_diffs.diffs.file_collection import DiffFileCollection
from mr_diffs.models import RevisionPair


def test_builds_once_and_returns_same_object(revision_pair):
    cache = DiffCollectionCache()
    calls = []

    def builder():
        calls.append(1)
        return DiffFileCollection(revision_pair, [])

    first = cache.get_or_build(revision_pair, builder)
    second = cache.get_or_build(revision_pair, builder)

    assert first is second
    assert len(calls) == 1
    assert revision_pair in cache
    assert len(cache) == 1


def test_concurrent_callers_share_one_build(revision_pair):
    cache = DiffCollectionCache()
    calls = []
    calls_lock = threading.Lock()
    start = threading.Event()

    def builder():
        with calls_lock:
            calls.append(1)
        time.sleep(0.05)
        return DiffFileCollection(revision_pair, [])

    results = []

    def worker():
        start.wait()
        results.append(cache.get_or_build(revision_pair, builder))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    start.set()
    for thread in threads:
        thread.join()

    assert len(calls) == 1
    assert len(results) == 8
    assert all(result is results[0] for result in results)


def test_different_pairs_build_separately(revision_pair):
    cache = DiffCollectionCache()
    other = RevisionPair(base_tree_id="x", head_tree_id="y")
    a = cache.get_or_build(revision_pair, lambda: DiffFileCollection(revision_pair, []))
    b = cache.get_or_build(other, lambda: DiffFileCollection(other, []))
    assert a is not b
    assert len(cache) == 2


def test_failed_build_is_not_cached(revision_pair):
    cache = DiffCollectionCache()

    def failing():
        raise TreeResolutionError("backend down")

    with pytest.raises(TreeResolutionError):
        cache.get_or_build(revision_pair, failing)
    assert revision_pair not in cache

    collection = cache.get_or_build(revision_pair, lambda: DiffFileCollection(revision_pair, []))
    assert cache.get(revision_pair) is collection


def test_evict_and_clear(revision_pair):
    cache = DiffCollectionCache()
    cache.get_or_build(revision_pair, lambda: DiffFileCollection(revision_pair, []))

    assert cache.evict(revision_pair) is True
    assert cache.evict(revision_pair) is False
    assert revision_pair not in cache

    cache.get_or_build(revision_pair, lambda: DiffFileCollection(revision_pair, []))
    cache.clear()
    assert len(cache) == 0


def test_evict_during_build_keeps_single_builder(revision_pair):
    cache = DiffCollectionCache()
    calls = []
    building = threading.Event()
    release = threading.Event()

    def builder():
        calls.append(1)
        building.set()
        release.wait(timeout=5)
        return DiffFileCollection(revision_pair, [])

    results = []
    first = threading.Thread(target=lambda: results.append(cache.get_or_build(revision_pair, builder)))
    first.start()
    assert building.wait(timeout=5)

    assert cache.evict(revision_pair) is False
    second = threading.Thread(target=lambda: results.append(cache.get_or_build(revision_pair, builder)))
    second.start()
    time.sleep(0.05)
    release.set()
    first.join()
    second.join()

    assert len(calls) == 1
    assert len(results) == 2
    assert results[0] is results[1]
    assert cache.pending_builds() == 0


def test_failed_builds_release_their_locks():
    cache = DiffCollectionCache()

    def failing():
        raise TreeResolutionError("backend down")

    for i in range(5):
        with pytest.raises(TreeResolutionError):
            cache.get_or_build(RevisionPair(base_tree_id=f"b{i}", head_tree_id=f"h{i}"), failing)

    assert cache.pending_builds() == 0
    assert len(cache) == 0
