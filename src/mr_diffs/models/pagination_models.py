"""Pagination models for batched diff retrieval."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt

from mr_diffs.models.diff_models import DiffFileRecord


class PaginationWindow(BaseModel):
    """Requested page of a diff collection (1-based)."""

    model_config = ConfigDict(frozen=True)

    page: StrictInt = 1
    per_page: StrictInt = 20


class PageMetadata(BaseModel):
    """Where a page sits within the whole collection."""

    model_config = ConfigDict(frozen=True)

    current_page: int
    next_page: Optional[int] = None
    total_pages: int


class DiffBatch(BaseModel):
    """One page of diff files plus its metadata."""

    model_config = ConfigDict(frozen=True)

    diff_files: tuple[DiffFileRecord, ...] = Field(default_factory=tuple)
    pagination: PageMetadata
