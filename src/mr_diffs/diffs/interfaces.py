"""Collaborator contracts consumed by the diff collection."""

from typing import Callable, Optional, Protocol

from mr_diffs.models import BlobDiff, Hunk, TreeChange


class ObjectStore(Protocol):
    """Content-addressable store holding the versioned tree."""

    def resolve_tree(self, revision: str) -> str:
        """Return the tree id for a revision. Raises NotFoundError if unknown."""
        ...

    def compare_trees(self, base_tree_id: str, head_tree_id: str) -> list[TreeChange]:
        """Return the changed entries between two trees, in comparison order.

        Raises NotFoundError if either tree does not exist and
        TreeResolutionError if the backend fails.
        """
        ...

    def read_blob(self, blob_id: str) -> bytes:
        ...


class BlobDiffEngine(Protocol):
    """Line-diff primitive for one pair of blobs (either side may be absent)."""

    def diff(self, old_blob_id: Optional[str], new_blob_id: Optional[str]) -> BlobDiff:
        ...


# (path, old_commit_id, new_commit_id) -> rendered hunk
SubmoduleResolver = Callable[[str, Optional[str], Optional[str]], Hunk]
