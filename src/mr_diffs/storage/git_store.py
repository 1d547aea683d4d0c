"""Object store backed by a local git repository."""

import subprocess
from pathlib import Path
from typing import Optional

from mr_diffs.diffs.exceptions import NotFoundError, TreeResolutionError
from mr_diffs.models import ChangeKind, TreeChange

NULL_OBJECT_ID = "0" * 40

_STATUS_KINDS = {
    "A": ChangeKind.ADDED,
    "D": ChangeKind.DELETED,
    "M": ChangeKind.MODIFIED,
    "T": ChangeKind.MODIFIED,  # type change, e.g. file <-> symlink or gitlink
    "R": ChangeKind.RENAMED,
}


def _optional_id(object_id: str) -> Optional[str]:
    return None if object_id == NULL_OBJECT_ID else object_id


def _optional_mode(mode: str) -> Optional[str]:
    return None if mode == "000000" else mode


def parse_diff_tree(output: bytes) -> list[TreeChange]:
    """Parse `git diff-tree -r -z` raw output into TreeChange objects.

    Each entry is ":old_mode new_mode old_id new_id status" followed by one
    path, or two paths (source, destination) for renames and copies.
    """
    tokens = output.decode("utf-8", errors="surrogateescape").split("\0")
    changes = []
    idx = 0
    while idx < len(tokens):
        meta = tokens[idx]
        if not meta.startswith(":"):
            idx += 1
            continue
        old_mode, new_mode, old_id, new_id, status = meta[1:].split(" ")
        letter = status[0]
        if letter in ("R", "C"):
            old_path, new_path = tokens[idx + 1], tokens[idx + 2]
            idx += 3
        else:
            old_path = new_path = tokens[idx + 1]
            idx += 2

        if letter == "C":
            # Copies leave the source untouched; show the destination as new
            kind = ChangeKind.ADDED
        else:
            kind = _STATUS_KINDS.get(letter, ChangeKind.MODIFIED)
        if kind == ChangeKind.ADDED:
            old_path = None
        elif kind == ChangeKind.DELETED:
            new_path = None

        changes.append(TreeChange(
            old_path=old_path,
            new_path=new_path,
            old_blob_id=_optional_id(old_id) if old_path is not None else None,
            new_blob_id=_optional_id(new_id) if new_path is not None else None,
            old_mode=_optional_mode(old_mode) if old_path is not None else None,
            new_mode=_optional_mode(new_mode) if new_path is not None else None,
            change_kind=kind,
        ))
    return changes


class GitObjectStore:
    """Reads trees and blobs from a git repository through the git CLI."""

    def __init__(self, repo_path: str, git_binary: str = "git", detect_renames: bool = True):
        """Initialize the store.

        Args:
            repo_path: Path to a git working tree or bare repository.
            git_binary: git executable to invoke.
            detect_renames: Pass -M to diff-tree so renames are reported as such.
        """
        self.repo_path = str(Path(repo_path).resolve())
        self.git_binary = git_binary
        self.detect_renames = detect_renames

    def _run(self, args: list[str]) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(
                [self.git_binary, *args],
                cwd=self.repo_path,
                capture_output=True,
            )
        except OSError as e:
            raise TreeResolutionError(f"Failed to run git in {self.repo_path}: {e}") from e

    def _object_exists(self, object_spec: str) -> bool:
        return self._run(["cat-file", "-e", object_spec]).returncode == 0

    def resolve_tree(self, revision: str) -> str:
        """Resolve a commit-ish or tree-ish to its tree id.

        Raises:
            NotFoundError: If the revision does not exist.
        """
        result = self._run(["rev-parse", "--verify", "--quiet", f"{revision}^{{tree}}"])
        if result.returncode != 0:
            raise NotFoundError(f"Revision {revision!r} not found")
        return result.stdout.decode("utf-8").strip()

    def compare_trees(self, base_tree_id: str, head_tree_id: str) -> list[TreeChange]:
        for tree_id in (base_tree_id, head_tree_id):
            if not self._object_exists(f"{tree_id}^{{tree}}"):
                raise NotFoundError(f"Tree {tree_id!r} not found")

        args = ["diff-tree", "-r", "-z", "--no-commit-id"]
        if self.detect_renames:
            args.append("-M")
        result = self._run([*args, base_tree_id, head_tree_id])
        if result.returncode != 0:
            raise TreeResolutionError(
                f"git diff-tree failed: {result.stderr.decode('utf-8', errors='replace').strip()}"
            )
        return parse_diff_tree(result.stdout)

    def read_blob(self, blob_id: str) -> bytes:
        result = self._run(["cat-file", "blob", blob_id])
        if result.returncode != 0:
            raise TreeResolutionError(
                f"Failed to read blob {blob_id}: "
                f"{result.stderr.decode('utf-8', errors='replace').strip()}"
            )
        return result.stdout
