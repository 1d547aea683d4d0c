"""Merge request diff collections, pagination and note anchoring."""

from mr_diffs.diffs.cache import DiffCollectionCache
from mr_diffs.diffs.exceptions import (
    DiffError,
    FeatureDisabledError,
    InvalidWindowError,
    NotFoundError,
    TreeResolutionError,
)
from mr_diffs.diffs.file_collection import DiffFileCollection
from mr_diffs.diffs.note_position import NotePositionResolver
from mr_diffs.diffs.paginator import DiffBatchPaginator, compute_page_metadata
from mr_diffs.diffs.service import MergeRequestDiffService
from mr_diffs.diffs.view_preference import normalize_view

__all__ = [
    "DiffBatchPaginator",
    "DiffCollectionCache",
    "DiffError",
    "DiffFileCollection",
    "FeatureDisabledError",
    "InvalidWindowError",
    "MergeRequestDiffService",
    "NotFoundError",
    "NotePositionResolver",
    "TreeResolutionError",
    "compute_page_metadata",
    "normalize_view",
]
