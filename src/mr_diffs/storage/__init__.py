"""Object store adapters."""

from mr_diffs.storage.git_store import GitObjectStore, parse_diff_tree

__all__ = ["GitObjectStore", "parse_diff_tree"]
