import hashlib
import threading
from typing import Optional

import pytest

from mr_diffs.config import DiffSettings
from mr_diffs.diffs.exceptions import NotFoundError
from mr_diffs.diffs.service import MergeRequestDiffService
from mr_diffs.models import (
    SUBMODULE_MODE,
    BlobDiff,
    ChangeKind,
    DiffLine,
    Hunk,
    LineType,
    MergeRequestRef,
    RequestContext,
    RevisionPair,
    TreeChange,
)

BASE_TREE = "base-tree"
HEAD_TREE = "head-tree"
FILE_MODE = "100644"

SUBMODULE_OLD_COMMIT = "a" * 40
SUBMODULE_NEW_COMMIT = "b" * 40

POPEN_OLD = "require 'fileutils'\n\nmodule Popen\n  def popen(cmd)\n    run(cmd)\n  end\nend\n"
POPEN_NEW = "require 'fileutils'\n\nmodule Popen\n  def popen(cmd, path = nil)\n    run(cmd, path)\n  end\nend\n"


def blob_id(content: bytes) -> str:
    return hashlib.sha1(content).hexdigest()


class FakeObjectStore:
    """In-memory object store with registered tree comparisons."""

    def __init__(self):
        self.blobs: dict[str, bytes] = {}
        self.comparisons: dict[tuple[str, str], list[TreeChange]] = {}
        self.compare_calls = 0
        self.blob_reads = 0
        self.error: Optional[Exception] = None
        self._lock = threading.Lock()

    def add_blob(self, content: bytes) -> str:
        object_id = blob_id(content)
        self.blobs[object_id] = content
        return object_id

    def set_comparison(self, base: str, head: str, changes: list[TreeChange]) -> None:
        self.comparisons[(base, head)] = list(changes)

    def resolve_tree(self, revision: str) -> str:
        known = {tree for pair in self.comparisons for tree in pair}
        if revision not in known:
            raise NotFoundError(f"Revision {revision!r} not found")
        return revision

    def compare_trees(self, base_tree_id: str, head_tree_id: str) -> list[TreeChange]:
        with self._lock:
            self.compare_calls += 1
        if self.error is not None:
            raise self.error
        try:
            return list(self.comparisons[(base_tree_id, head_tree_id)])
        except KeyError:
            raise NotFoundError(f"Trees {base_tree_id}..{head_tree_id} not found") from None

    def read_blob(self, object_id: str) -> bytes:
        with self._lock:
            self.blob_reads += 1
        return self.blobs[object_id]

    # Helpers for building comparisons

    def modified(self, path: str, old: str, new: str) -> TreeChange:
        return TreeChange(
            old_path=path,
            new_path=path,
            old_blob_id=self.add_blob(old.encode()),
            new_blob_id=self.add_blob(new.encode()),
            old_mode=FILE_MODE,
            new_mode=FILE_MODE,
            change_kind=ChangeKind.MODIFIED,
        )

    def added(self, path: str, content: str) -> TreeChange:
        return TreeChange(
            new_path=path,
            new_blob_id=self.add_blob(content.encode()),
            new_mode=FILE_MODE,
            change_kind=ChangeKind.ADDED,
        )

    def deleted(self, path: str, content: str) -> TreeChange:
        return TreeChange(
            old_path=path,
            old_blob_id=self.add_blob(content.encode()),
            old_mode=FILE_MODE,
            change_kind=ChangeKind.DELETED,
        )

    def renamed(self, old_path: str, new_path: str, old: str, new: str) -> TreeChange:
        return TreeChange(
            old_path=old_path,
            new_path=new_path,
            old_blob_id=self.add_blob(old.encode()),
            new_blob_id=self.add_blob(new.encode()),
            old_mode=FILE_MODE,
            new_mode=FILE_MODE,
            change_kind=ChangeKind.RENAMED,
        )

    def submodule(self, path: str, old_commit: str, new_commit: str) -> TreeChange:
        return TreeChange(
            old_path=path,
            new_path=path,
            old_blob_id=old_commit,
            new_blob_id=new_commit,
            old_mode=SUBMODULE_MODE,
            new_mode=SUBMODULE_MODE,
            change_kind=ChangeKind.MODIFIED,
        )


class RecordingEngine:
    """Blob diff engine returning one fixed hunk and recording its calls."""

    def __init__(self):
        self.calls: list[tuple[Optional[str], Optional[str]]] = []
        self._lock = threading.Lock()

    def diff(self, old_blob_id, new_blob_id) -> BlobDiff:
        with self._lock:
            self.calls.append((old_blob_id, new_blob_id))
        return BlobDiff(hunks=(
            Hunk(
                old_start_line=1,
                old_line_count=1,
                new_start_line=1,
                new_line_count=1,
                lines=(
                    DiffLine(type=LineType.DELETION, text="old", old_line=1),
                    DiffLine(type=LineType.ADDITION, text="new", new_line=1),
                ),
            ),
        ))


@pytest.fixture
def revision_pair():
    return RevisionPair(base_tree_id=BASE_TREE, head_tree_id=HEAD_TREE)


@pytest.fixture
def fake_store():
    return FakeObjectStore()


@pytest.fixture
def sample_store(fake_store):
    """Store with one change of every kind, including a submodule bump."""
    fake_store.set_comparison(BASE_TREE, HEAD_TREE, [
        fake_store.modified("files/ruby/popen.rb", POPEN_OLD, POPEN_NEW),
        fake_store.added("files/ruby/version.rb", "VERSION = '1.0'\n"),
        fake_store.deleted("files/ruby/legacy.rb", "puts 'legacy'\n"),
        fake_store.renamed("docs/README.txt", "docs/README.md", "# Readme\n", "# Readme\nMore\n"),
        fake_store.submodule("gitlab-grack", SUBMODULE_OLD_COMMIT, SUBMODULE_NEW_COMMIT),
    ])
    return fake_store


@pytest.fixture
def merge_request(revision_pair):
    return MergeRequestRef(id=42, project_id=7, iid=3, revision_pair=revision_pair)


@pytest.fixture
def context():
    return RequestContext(actor_id=1, access_verified=True)


@pytest.fixture
def service(sample_store):
    return MergeRequestDiffService(sample_store, settings=DiffSettings(max_workers=2))


@pytest.fixture
def make_many_files(fake_store, revision_pair):
    """Factory registering `count` modified text files between the two trees."""
    def _make(count: int) -> FakeObjectStore:
        fake_store.set_comparison(revision_pair.base_tree_id, revision_pair.head_tree_id, [
            fake_store.modified(f"files/file_{i:03d}.txt", f"line {i}\n", f"line {i} changed\n")
            for i in range(count)
        ])
        return fake_store
    return _make


@pytest.fixture
def recording_engine():
    return RecordingEngine()
