"""Data models for merge request diffs."""

from mr_diffs.models.diff_models import (
    SUBMODULE_MODE,
    BlobDiff,
    ChangeKind,
    DiffFileRecord,
    DiffLine,
    Hunk,
    LineType,
    RevisionPair,
    TreeChange,
)
from mr_diffs.models.note_models import (
    MERGE_REQUEST_NOTEABLE_TYPE,
    DiffPosition,
    NoteAnchor,
    NoteAttrs,
    NotePositionResult,
)
from mr_diffs.models.pagination_models import DiffBatch, PageMetadata, PaginationWindow
from mr_diffs.models.request_models import (
    BatchDiffResult,
    DiffRequest,
    DiffResult,
    DiffViewMode,
    FullDiffResult,
    MergeRequestRef,
    RequestContext,
    RequestMode,
    SinglePathResult,
)

__all__ = [
    "MERGE_REQUEST_NOTEABLE_TYPE",
    "SUBMODULE_MODE",
    "BatchDiffResult",
    "BlobDiff",
    "ChangeKind",
    "DiffBatch",
    "DiffFileRecord",
    "DiffLine",
    "DiffPosition",
    "DiffRequest",
    "DiffResult",
    "DiffViewMode",
    "FullDiffResult",
    "Hunk",
    "LineType",
    "MergeRequestRef",
    "NoteAnchor",
    "NoteAttrs",
    "NotePositionResult",
    "PageMetadata",
    "PaginationWindow",
    "RequestContext",
    "RequestMode",
    "RevisionPair",
    "SinglePathResult",
    "TreeChange",
]
