"""Ordered, path-indexed collection of file diffs for one revision pair."""

import os
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Iterator, Optional

from loguru import logger

from mr_diffs.diffs.exceptions import TreeResolutionError
from mr_diffs.diffs.interfaces import BlobDiffEngine, ObjectStore, SubmoduleResolver
from mr_diffs.models import ChangeKind, DiffFileRecord, RevisionPair, TreeChange
from mr_diffs.utils.diff_generator import render_submodule_hunk

PathKey = tuple[Optional[str], Optional[str]]


def _submodule_record(
    change: TreeChange,
    submodule_resolver: SubmoduleResolver,
    engine: BlobDiffEngine,
) -> DiffFileRecord:
    old_commit_id = change.old_blob_id if change.old_is_submodule else None
    new_commit_id = change.new_blob_id if change.new_is_submodule else None
    hunks = [submodule_resolver(change.path, old_commit_id, new_commit_id)]

    # A file replaced by a gitlink (or the reverse) shows the file side as a
    # plain removal or addition next to the pointer.
    is_binary = False
    if change.old_path is not None and not change.old_is_submodule:
        file_diff = engine.diff(change.old_blob_id, None)
        hunks = [*file_diff.hunks, *hunks]
        is_binary = file_diff.is_binary
    elif change.new_path is not None and not change.new_is_submodule:
        file_diff = engine.diff(None, change.new_blob_id)
        hunks = [*hunks, *file_diff.hunks]
        is_binary = file_diff.is_binary

    if change.old_path is not None and change.new_path is not None:
        kind = ChangeKind.SUBMODULE_CHANGED
    else:
        kind = change.change_kind

    return DiffFileRecord(
        old_path=change.old_path,
        new_path=change.new_path,
        change_kind=kind,
        hunks=tuple(hunks),
        is_binary=is_binary,
        submodule_commit_id=new_commit_id if new_commit_id is not None else old_commit_id,
    )


def _blob_record(change: TreeChange, engine: BlobDiffEngine) -> DiffFileRecord:
    blob_diff = engine.diff(change.old_blob_id, change.new_blob_id)
    return DiffFileRecord(
        old_path=change.old_path,
        new_path=change.new_path,
        change_kind=change.change_kind,
        hunks=blob_diff.hunks,
        is_binary=blob_diff.is_binary,
    )


class DiffFileCollection:
    """Diff records for a revision pair, in tree-comparison order."""

    def __init__(self, revision_pair: RevisionPair, files: list[DiffFileRecord]):
        """Initialize the collection and its path indexes.

        Args:
            revision_pair: The compared trees.
            files: Records in comparison order.

        Raises:
            TreeResolutionError: If two records share an (old_path, new_path) pair.
        """
        self.revision_pair = revision_pair
        self._files = tuple(files)
        self._index: dict[PathKey, int] = {}
        self._by_new_path: dict[str, int] = {}
        self._by_old_path: dict[str, int] = {}

        for position, record in enumerate(self._files):
            if record.key in self._index:
                raise TreeResolutionError(
                    f"Duplicate diff entry {record.key} for {revision_pair}"
                )
            self._index[record.key] = position
            if record.new_path is not None:
                self._by_new_path.setdefault(record.new_path, position)
            if record.old_path is not None:
                self._by_old_path.setdefault(record.old_path, position)

    @classmethod
    def build(
        cls,
        revision_pair: RevisionPair,
        store: ObjectStore,
        blob_diff_engine: BlobDiffEngine,
        submodule_resolver: SubmoduleResolver = render_submodule_hunk,
        max_workers: Optional[int] = None,
    ) -> "DiffFileCollection":
        """Compare the two trees and diff every changed file.

        Blob diffs run on a thread pool bounded by max_workers (CPU count by
        default). Submodule pointers are rendered by submodule_resolver and
        never passed to the blob diff engine.

        Raises:
            NotFoundError: If either tree does not exist.
            TreeResolutionError: If the store fails to compare the trees.
        """
        started = time.monotonic()
        changes = store.compare_trees(revision_pair.base_tree_id, revision_pair.head_tree_id)

        def diff_change(change: TreeChange) -> DiffFileRecord:
            if change.is_submodule:
                return _submodule_record(change, submodule_resolver, blob_diff_engine)
            return _blob_record(change, blob_diff_engine)

        if changes:
            workers = min(max_workers or os.cpu_count() or 1, len(changes))
            with ThreadPoolExecutor(max_workers=workers) as executor:
                files = list(executor.map(diff_change, changes))
        else:
            files = []

        logger.info(
            "Built diff collection",
            base_tree_id=revision_pair.base_tree_id,
            head_tree_id=revision_pair.head_tree_id,
            files=len(files),
            elapsed_ms=round((time.monotonic() - started) * 1000, 1),
        )
        return cls(revision_pair, files)

    @property
    def files(self) -> tuple[DiffFileRecord, ...]:
        return self._files

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[DiffFileRecord]:
        return iter(self._files)

    def __getitem__(self, item):
        return self._files[item]

    def paths(self) -> list[PathKey]:
        return [record.key for record in self._files]

    def lookup(self, old_path: Optional[str], new_path: Optional[str]) -> Optional[DiffFileRecord]:
        """Find the record for a path pair.

        Callers often pass the same path for both sides of an added or deleted
        file, so after an exact match we fall back to the new path (or old path)
        as long as the record's other side is absent.

        Returns:
            The DiffFileRecord, or None if the path is not in this diff.
        """
        position = self._index.get((old_path, new_path))
        if position is not None:
            return self._files[position]

        if new_path is not None and new_path in self._by_new_path:
            record = self._files[self._by_new_path[new_path]]
            if record.old_path is None or record.old_path == old_path or old_path is None:
                return record

        if old_path is not None and old_path in self._by_old_path:
            record = self._files[self._by_old_path[old_path]]
            if record.new_path is None or new_path is None:
                return record

        return None

    def __contains__(self, key: PathKey) -> bool:
        return self.lookup(*key) is not None

    def __repr__(self) -> str:
        return f"DiffFileCollection({self.revision_pair!r}, files={len(self._files)})"
