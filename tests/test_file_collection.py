"""Tests for DiffFileCollection construction and lookup."""

import pytest

from mr_diffs.diffs.exceptions import NotFoundError, TreeResolutionError
from mr_diffs.diffs.file_collection import DiffFileCollection
from mr_diffs.models import (
    SUBMODULE_MODE,
    ChangeKind,
    DiffFileRecord,
    Hunk,
    LineType,
    RevisionPair,
    TreeChange,
)
from mr_diffs.utils.diff_generator import LineDiffEngine, render_unified_diff


def _build(store, revision_pair, engine=None, **kwargs):
    return DiffFileCollection.build(
        revision_pair, store, engine or LineDiffEngine(store), **kwargs
    )


class TestBuild:
    def test_keeps_comparison_order(self, sample_store, revision_pair):
        collection = _build(sample_store, revision_pair, max_workers=4)
        assert collection.paths() == [
            ("files/ruby/popen.rb", "files/ruby/popen.rb"),
            (None, "files/ruby/version.rb"),
            ("files/ruby/legacy.rb", None),
            ("docs/README.txt", "docs/README.md"),
            ("gitlab-grack", "gitlab-grack"),
        ]

    def test_change_kinds(self, sample_store, revision_pair):
        collection = _build(sample_store, revision_pair)
        assert [record.change_kind for record in collection] == [
            ChangeKind.MODIFIED,
            ChangeKind.ADDED,
            ChangeKind.DELETED,
            ChangeKind.RENAMED,
            ChangeKind.SUBMODULE_CHANGED,
        ]

    def test_order_is_stable_with_many_workers(self, make_many_files, revision_pair):
        store = make_many_files(50)
        collection = _build(store, revision_pair, max_workers=8)
        assert [record.new_path for record in collection] == [
            f"files/file_{i:03d}.txt" for i in range(50)
        ]

    def test_engine_called_once_per_non_submodule_file(self, sample_store, revision_pair, recording_engine):
        _build(sample_store, revision_pair, engine=recording_engine)
        assert len(recording_engine.calls) == 4
        submodule_ids = {"a" * 40, "b" * 40}
        for old_id, new_id in recording_engine.calls:
            assert old_id not in submodule_ids
            assert new_id not in submodule_ids

    def test_submodule_renders_subproject_commits(self, sample_store, revision_pair):
        collection = _build(sample_store, revision_pair)
        record = collection.lookup("gitlab-grack", "gitlab-grack")

        assert record.change_kind == ChangeKind.SUBMODULE_CHANGED
        assert record.submodule_commit_id == "b" * 40
        assert not record.is_binary
        assert len(record.hunks) == 1
        texts = [line.text for line in record.hunks[0].lines]
        assert texts == [f"Subproject commit {'a' * 40}", f"Subproject commit {'b' * 40}"]
        assert "Subproject commit" in render_unified_diff(record)

    def test_custom_submodule_resolver_is_used(self, sample_store, revision_pair):
        seen = []

        def resolver(path, old_commit_id, new_commit_id):
            seen.append((path, old_commit_id, new_commit_id))
            return Hunk(old_start_line=0, old_line_count=0, new_start_line=0, new_line_count=0)

        _build(sample_store, revision_pair, submodule_resolver=resolver)
        assert seen == [("gitlab-grack", "a" * 40, "b" * 40)]

    def test_file_replaced_by_submodule_keeps_file_lines(self, fake_store, revision_pair):
        change = TreeChange(
            old_path="vendor/lib",
            new_path="vendor/lib",
            old_blob_id=fake_store.add_blob(b"placeholder\nnotes\n"),
            new_blob_id="c" * 40,
            old_mode="100644",
            new_mode=SUBMODULE_MODE,
            change_kind=ChangeKind.MODIFIED,
        )
        fake_store.set_comparison(revision_pair.base_tree_id, revision_pair.head_tree_id, [change])

        record = _build(fake_store, revision_pair).lookup("vendor/lib", "vendor/lib")

        assert record.change_kind == ChangeKind.SUBMODULE_CHANGED
        assert record.submodule_commit_id == "c" * 40
        lines = [(line.type, line.text) for hunk in record.hunks for line in hunk.lines]
        assert lines == [
            (LineType.DELETION, "placeholder"),
            (LineType.DELETION, "notes"),
            (LineType.ADDITION, f"Subproject commit {'c' * 40}"),
        ]

    def test_empty_comparison(self, fake_store, revision_pair):
        fake_store.set_comparison(revision_pair.base_tree_id, revision_pair.head_tree_id, [])
        collection = _build(fake_store, revision_pair)
        assert len(collection) == 0
        assert collection.files == ()

    def test_missing_trees_raise_not_found(self, fake_store):
        with pytest.raises(NotFoundError):
            _build(fake_store, RevisionPair(base_tree_id="gone", head_tree_id="also-gone"))

    def test_store_failure_propagates(self, sample_store, revision_pair):
        sample_store.error = TreeResolutionError("object store unavailable")
        with pytest.raises(TreeResolutionError):
            _build(sample_store, revision_pair)

    def test_rebuilding_gives_equal_content(self, sample_store, revision_pair):
        first = _build(sample_store, revision_pair)
        second = _build(sample_store, revision_pair)
        assert first.files == second.files


class TestLookup:
    @pytest.fixture
    def collection(self, sample_store, revision_pair):
        return _build(sample_store, revision_pair)

    def test_exact_pair(self, collection):
        record = collection.lookup("files/ruby/popen.rb", "files/ruby/popen.rb")
        assert record.new_path == "files/ruby/popen.rb"

    def test_renamed_pair(self, collection):
        record = collection.lookup("docs/README.txt", "docs/README.md")
        assert record.change_kind == ChangeKind.RENAMED

    def test_renamed_with_wrong_old_path(self, collection):
        assert collection.lookup("docs/OTHER.txt", "docs/README.md") is None

    def test_added_file_with_same_path_on_both_sides(self, collection):
        record = collection.lookup("files/ruby/version.rb", "files/ruby/version.rb")
        assert record.change_kind == ChangeKind.ADDED

    def test_deleted_file_with_same_path_on_both_sides(self, collection):
        record = collection.lookup("files/ruby/legacy.rb", "files/ruby/legacy.rb")
        assert record.change_kind == ChangeKind.DELETED

    def test_missing_path(self, collection):
        assert collection.lookup("nope.rb", "nope.rb") is None
        assert ("nope.rb", "nope.rb") not in collection


def test_duplicate_entries_rejected(revision_pair):
    record = DiffFileRecord(old_path="a", new_path="a", change_kind=ChangeKind.MODIFIED)
    with pytest.raises(TreeResolutionError):
        DiffFileCollection(revision_pair, [record, record])
