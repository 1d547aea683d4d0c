"""Decide whether a diff note anchor can still be placed on the current diff."""

from typing import Optional

from mr_diffs.diffs.file_collection import DiffFileCollection
from mr_diffs.models import (
    MERGE_REQUEST_NOTEABLE_TYPE,
    DiffFileRecord,
    DiffPosition,
    NoteAnchor,
    NoteAttrs,
    NotePositionResult,
)


def _lines_resolvable(record: DiffFileRecord, old_line: Optional[int], new_line: Optional[int]) -> bool:
    if old_line is None and new_line is None:
        return True
    return any(hunk.contains(old_line, new_line) for hunk in record.hunks)


class NotePositionResolver:
    """Resolves note anchors against a diff collection for one noteable."""

    def __init__(self, noteable_id: int, noteable_type: str = MERGE_REQUEST_NOTEABLE_TYPE):
        self.noteable_id = noteable_id
        self.noteable_type = noteable_type

    def default_attrs(self, commit_id: Optional[str] = None) -> NoteAttrs:
        return NoteAttrs(
            noteable_type=self.noteable_type,
            noteable_id=self.noteable_id,
            commit_id=commit_id,
        )

    def is_disabled(self, position: Optional[DiffPosition], collection: DiffFileCollection) -> bool:
        """Return True if no new note can be anchored at position.

        Legacy notes without a position are always disabled. Otherwise the path
        must be in the collection and each given line number must fall inside
        one hunk (the same hunk when both are given).
        """
        if position is None:
            return True
        if position.old_path is None and position.new_path is None:
            return True

        record = collection.lookup(position.old_path, position.new_path)
        if record is None:
            return True
        return not _lines_resolvable(record, position.old_line, position.new_line)

    def resolve(self, anchor: Optional[NoteAnchor], collection: DiffFileCollection) -> NotePositionResult:
        if anchor is None:
            anchor = NoteAnchor()
        return NotePositionResult(
            disabled=self.is_disabled(anchor.position, collection),
            default_attrs=self.default_attrs(anchor.commit_id),
        )
