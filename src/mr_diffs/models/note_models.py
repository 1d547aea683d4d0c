"""Models for diff note anchors and note defaults."""

from typing import Optional

from pydantic import BaseModel, ConfigDict

MERGE_REQUEST_NOTEABLE_TYPE = "MergeRequest"


class DiffPosition(BaseModel):
    """File and line coordinates a note is attached to."""

    model_config = ConfigDict(frozen=True)

    old_path: Optional[str] = None
    new_path: Optional[str] = None
    old_line: Optional[int] = None
    new_line: Optional[int] = None


class NoteAnchor(BaseModel):
    """A stored note anchor. ``position`` is None for legacy unanchored notes."""

    model_config = ConfigDict(frozen=True)

    position: Optional[DiffPosition] = None
    commit_id: Optional[str] = None


class NoteAttrs(BaseModel):
    """Defaults for a new diff note created from the current view."""

    model_config = ConfigDict(frozen=True)

    noteable_type: str = MERGE_REQUEST_NOTEABLE_TYPE
    noteable_id: int
    commit_id: Optional[str] = None


class NotePositionResult(BaseModel):
    """Whether new notes may be anchored here, and their default attributes."""

    model_config = ConfigDict(frozen=True)

    disabled: bool
    default_attrs: NoteAttrs
