"""Models for representing merge request file diffs."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

SUBMODULE_MODE = "160000"


class ChangeKind(str, Enum):
    """How a file changed between the two trees."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    SUBMODULE_CHANGED = "submodule_changed"


class LineType(str, Enum):
    """Kind of a single line inside a hunk."""

    CONTEXT = "context"
    ADDITION = "addition"
    DELETION = "deletion"


class RevisionPair(BaseModel):
    """The two tree snapshots being compared."""

    model_config = ConfigDict(frozen=True)

    base_tree_id: str
    head_tree_id: str


class DiffLine(BaseModel):
    """A single line of a hunk with its old/new coordinates."""

    model_config = ConfigDict(frozen=True)

    type: LineType
    text: str
    old_line: Optional[int] = None  # None for additions
    new_line: Optional[int] = None  # None for deletions
    missing_newline: bool = False  # last line of a file without a trailing "\n"

    @property
    def prefix(self) -> str:
        if self.type == LineType.ADDITION:
            return "+"
        if self.type == LineType.DELETION:
            return "-"
        return " "


class Hunk(BaseModel):
    """A contiguous block of changed lines within one file."""

    model_config = ConfigDict(frozen=True)

    old_start_line: int
    old_line_count: int
    new_start_line: int
    new_line_count: int
    lines: tuple[DiffLine, ...] = ()

    @model_validator(mode="after")
    def _check_line_order(self) -> "Hunk":
        if min(self.old_start_line, self.old_line_count, self.new_start_line, self.new_line_count) < 0:
            raise ValueError("hunk ranges must be non-negative")
        for side in ("old_line", "new_line"):
            numbers = [getattr(line, side) for line in self.lines if getattr(line, side) is not None]
            if any(b <= a for a, b in zip(numbers, numbers[1:])):
                raise ValueError(f"{side} numbers must increase within a hunk")
        return self

    @property
    def header(self) -> str:
        return (
            f"@@ -{self.old_start_line},{self.old_line_count} "
            f"+{self.new_start_line},{self.new_line_count} @@"
        )

    def covers_old(self, line: int) -> bool:
        return self.old_start_line <= line < self.old_start_line + self.old_line_count

    def covers_new(self, line: int) -> bool:
        return self.new_start_line <= line < self.new_start_line + self.new_line_count

    def contains(self, old_line: Optional[int], new_line: Optional[int]) -> bool:
        """Return True if every given line number falls inside this hunk."""
        if old_line is not None and not self.covers_old(old_line):
            return False
        if new_line is not None and not self.covers_new(new_line):
            return False
        return True


class DiffFileRecord(BaseModel):
    """The diff of a single file between two trees."""

    model_config = ConfigDict(frozen=True)

    old_path: Optional[str] = None
    new_path: Optional[str] = None
    change_kind: ChangeKind
    hunks: tuple[Hunk, ...] = ()
    is_binary: bool = False
    submodule_commit_id: Optional[str] = None

    @model_validator(mode="after")
    def _check_paths(self) -> "DiffFileRecord":
        kind = self.change_kind
        if kind == ChangeKind.ADDED:
            if self.old_path is not None or self.new_path is None:
                raise ValueError("added files have only a new_path")
        elif kind == ChangeKind.DELETED:
            if self.new_path is not None or self.old_path is None:
                raise ValueError("deleted files have only an old_path")
        else:
            if self.old_path is None or self.new_path is None:
                raise ValueError(f"{kind.value} files need both old_path and new_path")
            if kind != ChangeKind.RENAMED and self.old_path != self.new_path:
                raise ValueError("only renamed files may change path")
        return self

    @property
    def key(self) -> tuple[Optional[str], Optional[str]]:
        return (self.old_path, self.new_path)

    @property
    def file_path(self) -> str:
        return self.new_path if self.new_path is not None else self.old_path


class TreeChange(BaseModel):
    """One changed entry as reported by a tree comparison."""

    model_config = ConfigDict(frozen=True)

    old_path: Optional[str] = None
    new_path: Optional[str] = None
    old_blob_id: Optional[str] = None  # commit id for submodule entries
    new_blob_id: Optional[str] = None
    old_mode: Optional[str] = None
    new_mode: Optional[str] = None
    change_kind: ChangeKind

    @property
    def old_is_submodule(self) -> bool:
        return self.old_mode == SUBMODULE_MODE

    @property
    def new_is_submodule(self) -> bool:
        return self.new_mode == SUBMODULE_MODE

    @property
    def is_submodule(self) -> bool:
        return self.old_is_submodule or self.new_is_submodule

    @property
    def path(self) -> str:
        return self.new_path if self.new_path is not None else self.old_path


class BlobDiff(BaseModel):
    """Output of a blob diff engine for one pair of blobs."""

    model_config = ConfigDict(frozen=True)

    hunks: tuple[Hunk, ...] = Field(default_factory=tuple)
    is_binary: bool = False
