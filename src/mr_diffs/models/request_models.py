"""Request, context and result models for the diffs service."""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from mr_diffs.models.diff_models import DiffFileRecord, RevisionPair
from mr_diffs.models.note_models import NoteAttrs
from mr_diffs.models.pagination_models import PageMetadata, PaginationWindow


class DiffViewMode(str, Enum):
    """How the diff is laid out in the UI."""

    INLINE = "inline"
    PARALLEL = "parallel"


class RequestMode(str, Enum):
    """Which view of the collection a request wants."""

    FULL = "full"
    SINGLE_PATH = "single_path"
    BATCH = "batch"


class MergeRequestRef(BaseModel):
    """The merge request a diff request is about."""

    model_config = ConfigDict(frozen=True)

    id: int
    project_id: int
    iid: int
    revision_pair: RevisionPair


class RequestContext(BaseModel):
    """Caller context passed explicitly into every service call."""

    model_config = ConfigDict(frozen=True)

    actor_id: Optional[int] = None
    access_verified: bool = False
    commit_id: Optional[str] = None  # set when viewing a single commit of the MR


class DiffRequest(BaseModel):
    """Logical inbound request."""

    model_config = ConfigDict(frozen=True)

    merge_request: MergeRequestRef
    mode: RequestMode = RequestMode.FULL
    old_path: Optional[str] = None
    new_path: Optional[str] = None
    window: Optional[PaginationWindow] = None
    view_preference: Optional[str] = None


class FullDiffResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["full"] = "full"
    diff_files: tuple[DiffFileRecord, ...] = ()
    view: Optional[DiffViewMode] = None


class SinglePathResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["single_path"] = "single_path"
    diff_file: DiffFileRecord
    diff_notes_disabled: bool
    new_diff_note_attrs: NoteAttrs
    view: Optional[DiffViewMode] = None


class BatchDiffResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["batch"] = "batch"
    diff_files: tuple[DiffFileRecord, ...] = ()
    pagination: PageMetadata
    view: Optional[DiffViewMode] = None


DiffResult = Annotated[
    Union[FullDiffResult, SinglePathResult, BatchDiffResult],
    Field(discriminator="kind"),
]
