"""Request adapter mapping raw parameters to the diffs service.

Authorization and merge request lookup are delegated to callables supplied by
the host application. Every outcome that could reveal whether a merge request
exists (missing, no access, batch switched off) is answered with 404.
"""

from typing import Any, Callable, Optional, Protocol

from loguru import logger
from pydantic import BaseModel, Field

from mr_diffs.diffs.exceptions import (
    FeatureDisabledError,
    InvalidWindowError,
    NotFoundError,
    TreeResolutionError,
)
from mr_diffs.diffs.service import MergeRequestDiffService
from mr_diffs.diffs.view_preference import normalize_view
from mr_diffs.models import (
    BatchDiffResult,
    DiffRequest,
    FullDiffResult,
    MergeRequestRef,
    PaginationWindow,
    RequestContext,
    RequestMode,
    SinglePathResult,
)

HTTP_OK = 200
HTTP_BAD_REQUEST = 400
HTTP_NOT_FOUND = 404
HTTP_SERVER_ERROR = 500

DIFF_VIEW_COOKIE = "diff_view"
DEFAULT_PAGE = 1


class MergeRequestFinder(Protocol):
    def find(self, project_id: Any, iid: Any) -> Optional[MergeRequestRef]:
        ...


# (actor_id, merge_request) -> may the actor read it
AccessChecker = Callable[[Optional[int], MergeRequestRef], bool]


class EndpointResponse(BaseModel):
    """Status, JSON-ready body and cookies to set."""

    status: int
    body: Optional[dict[str, Any]] = None
    cookies: dict[str, str] = Field(default_factory=dict)


def parse_positive_int(raw: Any, default: int) -> int:
    """Parse a request parameter as a positive int, falling back to default."""
    if raw is None or isinstance(raw, bool):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def render_result(result) -> dict[str, Any]:
    """Shape a tagged service result into a JSON-ready payload."""
    if isinstance(result, BatchDiffResult):
        return {
            "diff_files": [f.model_dump(mode="json") for f in result.diff_files],
            "pagination": result.pagination.model_dump(mode="json"),
        }
    if isinstance(result, SinglePathResult):
        return {
            "diff_files": [result.diff_file.model_dump(mode="json")],
            "diff_notes_disabled": result.diff_notes_disabled,
            "new_diff_note_attrs": result.new_diff_note_attrs.model_dump(mode="json"),
        }
    if isinstance(result, FullDiffResult):
        return {"diff_files": [f.model_dump(mode="json") for f in result.diff_files]}
    raise TypeError(f"Unsupported result type: {type(result).__name__}")


class DiffsEndpoint:
    """Actions for showing a merge request's diffs."""

    def __init__(
        self,
        service: MergeRequestDiffService,
        finder: MergeRequestFinder,
        can_read: AccessChecker,
    ):
        self.service = service
        self.finder = finder
        self.can_read = can_read

    def show(self, params: dict[str, Any], actor_id: Optional[int] = None) -> EndpointResponse:
        return self._dispatch(RequestMode.FULL, params, actor_id)

    def diff_for_path(self, params: dict[str, Any], actor_id: Optional[int] = None) -> EndpointResponse:
        return self._dispatch(RequestMode.SINGLE_PATH, params, actor_id)

    def diffs_batch(self, params: dict[str, Any], actor_id: Optional[int] = None) -> EndpointResponse:
        if not self.service.is_batch_enabled():
            return EndpointResponse(status=HTTP_NOT_FOUND)
        return self._dispatch(RequestMode.BATCH, params, actor_id)

    def _window(self, params: dict[str, Any]) -> PaginationWindow:
        return PaginationWindow(
            page=parse_positive_int(params.get("page"), DEFAULT_PAGE),
            per_page=parse_positive_int(
                params.get("per_page"), self.service.settings.default_per_page,
            ),
        )

    def _dispatch(
        self,
        mode: RequestMode,
        params: dict[str, Any],
        actor_id: Optional[int],
    ) -> EndpointResponse:
        merge_request = self.finder.find(params.get("project_id"), params.get("id"))
        if merge_request is None or not self.can_read(actor_id, merge_request):
            return EndpointResponse(status=HTTP_NOT_FOUND)

        request = DiffRequest(
            merge_request=merge_request,
            mode=mode,
            old_path=params.get("old_path"),
            new_path=params.get("new_path"),
            window=self._window(params) if mode == RequestMode.BATCH else None,
            view_preference=params.get("view"),
        )
        context = RequestContext(
            actor_id=actor_id,
            access_verified=True,
            commit_id=params.get("commit_id"),
        )

        try:
            result = self.service.handle(request, context)
        except (NotFoundError, FeatureDisabledError) as e:
            logger.debug("Diff request answered with 404", merge_request_id=merge_request.id, reason=str(e))
            return EndpointResponse(status=HTTP_NOT_FOUND)
        except InvalidWindowError as e:
            return EndpointResponse(status=HTTP_BAD_REQUEST, body={"message": str(e)})
        except TreeResolutionError:
            logger.exception("Diff request failed", merge_request_id=merge_request.id)
            return EndpointResponse(status=HTTP_SERVER_ERROR)

        cookies = {}
        view = normalize_view(params.get("view"))
        if view is not None:
            cookies[DIFF_VIEW_COOKIE] = view.value
        return EndpointResponse(status=HTTP_OK, body=render_result(result), cookies=cookies)
