"""Core entry points for full, single-path and batched merge request diffs."""

from typing import Optional

from loguru import logger

from mr_diffs.config import DiffSettings
from mr_diffs.diffs.cache import DiffCollectionCache
from mr_diffs.diffs.exceptions import FeatureDisabledError, NotFoundError, TreeResolutionError
from mr_diffs.diffs.file_collection import DiffFileCollection
from mr_diffs.diffs.interfaces import BlobDiffEngine, ObjectStore, SubmoduleResolver
from mr_diffs.diffs.note_position import NotePositionResolver
from mr_diffs.diffs.paginator import DiffBatchPaginator
from mr_diffs.diffs.view_preference import normalize_view
from mr_diffs.models import (
    BatchDiffResult,
    DiffPosition,
    DiffRequest,
    DiffResult,
    FullDiffResult,
    MergeRequestRef,
    NoteAnchor,
    PaginationWindow,
    RequestContext,
    RequestMode,
    SinglePathResult,
)
from mr_diffs.utils.diff_generator import LineDiffEngine, render_submodule_hunk


class MergeRequestDiffService:
    """Builds, caches and slices diff collections for merge requests.

    Callers are expected to have checked read access already and to pass the
    outcome in RequestContext.access_verified.
    """

    def __init__(
        self,
        store: ObjectStore,
        blob_diff_engine: Optional[BlobDiffEngine] = None,
        submodule_resolver: SubmoduleResolver = render_submodule_hunk,
        cache: Optional[DiffCollectionCache] = None,
        settings: Optional[DiffSettings] = None,
    ):
        self.store = store
        self.blob_diff_engine = blob_diff_engine or LineDiffEngine(store)
        self.submodule_resolver = submodule_resolver
        self.cache = cache if cache is not None else DiffCollectionCache()
        self.settings = settings or DiffSettings()
        self.paginator = DiffBatchPaginator()

    def is_batch_enabled(self) -> bool:
        return self.settings.is_batch_enabled()

    def _check_access(self, context: RequestContext) -> None:
        if not context.access_verified:
            raise NotFoundError("Merge request not found")

    def collection_for(self, merge_request: MergeRequestRef) -> DiffFileCollection:
        """Return the cached diff collection for a merge request, building it once.

        Raises:
            NotFoundError: If the revision pair does not resolve to two trees.
            TreeResolutionError: If the object store fails.
        """
        revision_pair = merge_request.revision_pair

        def build() -> DiffFileCollection:
            return DiffFileCollection.build(
                revision_pair,
                self.store,
                self.blob_diff_engine,
                submodule_resolver=self.submodule_resolver,
                max_workers=self.settings.max_workers,
            )

        try:
            return self.cache.get_or_build(revision_pair, build)
        except TreeResolutionError as e:
            logger.error(
                "Failed to resolve trees for merge request",
                merge_request_id=merge_request.id,
                base_tree_id=revision_pair.base_tree_id,
                head_tree_id=revision_pair.head_tree_id,
                error=str(e),
            )
            raise

    def full(
        self,
        merge_request: MergeRequestRef,
        context: RequestContext,
        view_preference: Optional[str] = None,
    ) -> FullDiffResult:
        self._check_access(context)
        collection = self.collection_for(merge_request)
        return FullDiffResult(
            diff_files=collection.files,
            view=normalize_view(view_preference),
        )

    def diff_for_path(
        self,
        merge_request: MergeRequestRef,
        context: RequestContext,
        old_path: Optional[str],
        new_path: Optional[str],
        view_preference: Optional[str] = None,
    ) -> SinglePathResult:
        """Return the diff of a single file plus its note defaults.

        Raises:
            NotFoundError: If the path is not part of the diff.
        """
        self._check_access(context)
        collection = self.collection_for(merge_request)

        record = collection.lookup(old_path, new_path)
        if record is None:
            raise NotFoundError(f"Path {new_path or old_path!r} is not in the diff")

        anchor = NoteAnchor(
            position=DiffPosition(old_path=record.old_path, new_path=record.new_path),
            commit_id=context.commit_id,
        )
        notes = NotePositionResolver(noteable_id=merge_request.id).resolve(anchor, collection)

        return SinglePathResult(
            diff_file=record,
            diff_notes_disabled=notes.disabled,
            new_diff_note_attrs=notes.default_attrs,
            view=normalize_view(view_preference),
        )

    def batch(
        self,
        merge_request: MergeRequestRef,
        context: RequestContext,
        window: Optional[PaginationWindow] = None,
        view_preference: Optional[str] = None,
    ) -> BatchDiffResult:
        """Return one page of the diff.

        Raises:
            FeatureDisabledError: If batch loading is switched off.
            InvalidWindowError: If the window is malformed.
        """
        if not self.is_batch_enabled():
            raise FeatureDisabledError("Batch diff loading is disabled")
        self._check_access(context)

        if window is None:
            window = PaginationWindow(page=1, per_page=self.settings.default_per_page)
        collection = self.collection_for(merge_request)
        page = self.paginator.page(collection, window)

        return BatchDiffResult(
            diff_files=page.diff_files,
            pagination=page.pagination,
            view=normalize_view(view_preference),
        )

    def handle(self, request: DiffRequest, context: RequestContext) -> DiffResult:
        """Dispatch a request on its mode and return the matching result variant."""
        if request.mode == RequestMode.BATCH:
            return self.batch(
                request.merge_request, context, request.window, request.view_preference,
            )
        if request.mode == RequestMode.SINGLE_PATH:
            return self.diff_for_path(
                request.merge_request,
                context,
                request.old_path,
                request.new_path,
                request.view_preference,
            )
        return self.full(request.merge_request, context, request.view_preference)
