"""Per-revision-pair cache of built diff collections."""

import threading
from typing import Callable

from loguru import logger

from mr_diffs.diffs.file_collection import DiffFileCollection
from mr_diffs.models import RevisionPair


class _KeyLock:
    """Build lock for one pair plus the number of callers holding or awaiting it."""

    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class DiffCollectionCache:
    """Caches DiffFileCollections with one builder per revision pair.

    The first caller for a pair builds while holding that pair's lock; other
    callers for the same pair wait on the lock and reuse the result. Once an
    entry exists it is returned without locking. A pair's lock lives only while
    some caller is building or waiting, so evict() and clear() never split
    callers of an in-flight build across two locks.
    """

    def __init__(self):
        self._entries: dict[RevisionPair, DiffFileCollection] = {}
        self._key_locks: dict[RevisionPair, _KeyLock] = {}
        self._registry_lock = threading.Lock()

    def _acquire_key(self, revision_pair: RevisionPair) -> _KeyLock:
        with self._registry_lock:
            key_lock = self._key_locks.get(revision_pair)
            if key_lock is None:
                key_lock = _KeyLock()
                self._key_locks[revision_pair] = key_lock
            key_lock.users += 1
            return key_lock

    def _release_key(self, revision_pair: RevisionPair, key_lock: _KeyLock) -> None:
        with self._registry_lock:
            key_lock.users -= 1
            if key_lock.users == 0:
                del self._key_locks[revision_pair]

    def get_or_build(
        self,
        revision_pair: RevisionPair,
        builder: Callable[[], DiffFileCollection],
    ) -> DiffFileCollection:
        """Return the cached collection for a pair, building it once if needed.

        Errors raised by builder propagate and leave nothing cached.
        """
        cached = self._entries.get(revision_pair)
        if cached is not None:
            logger.debug("Diff collection cache hit", head_tree_id=revision_pair.head_tree_id)
            return cached

        key_lock = self._acquire_key(revision_pair)
        try:
            with key_lock.lock:
                cached = self._entries.get(revision_pair)
                if cached is not None:
                    return cached
                collection = builder()
                self._entries[revision_pair] = collection
                return collection
        finally:
            self._release_key(revision_pair, key_lock)

    def get(self, revision_pair: RevisionPair) -> DiffFileCollection | None:
        return self._entries.get(revision_pair)

    def evict(self, revision_pair: RevisionPair) -> bool:
        """Drop one entry. Returns True if it was cached."""
        with self._registry_lock:
            return self._entries.pop(revision_pair, None) is not None

    def clear(self) -> None:
        with self._registry_lock:
            self._entries.clear()

    def pending_builds(self) -> int:
        """Number of pairs with a build in flight."""
        with self._registry_lock:
            return len(self._key_locks)

    def __contains__(self, revision_pair: RevisionPair) -> bool:
        return revision_pair in self._entries

    def __len__(self) -> int:
        return len(self._entries)
