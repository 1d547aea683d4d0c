"""Page windows over a diff collection."""

import math

from loguru import logger

from mr_diffs.diffs.exceptions import InvalidWindowError
from mr_diffs.diffs.file_collection import DiffFileCollection
from mr_diffs.models import DiffBatch, PageMetadata, PaginationWindow


def _check_positive(name: str, value: int) -> None:
    if value < 1:
        raise InvalidWindowError(f"{name} must be a positive integer, got {value}")


def compute_page_metadata(total_files: int, page: int, per_page: int) -> PageMetadata:
    """Compute page metadata for a collection size.

    total_pages is ceil(total_files / per_page), 0 for an empty collection.
    current_page is clamped to [1, max(total_pages, 1)].
    """
    total_pages = math.ceil(total_files / per_page)
    current_page = max(1, min(page, max(total_pages, 1)))
    next_page = current_page + 1 if current_page < total_pages else None
    return PageMetadata(
        current_page=current_page,
        next_page=next_page,
        total_pages=total_pages,
    )


class DiffBatchPaginator:
    """Stateless paginator: any page can be requested on its own."""

    def page(self, collection: DiffFileCollection, window: PaginationWindow) -> DiffBatch:
        """Return one page of the collection.

        Args:
            collection: Built diff collection.
            window: Requested page and page size.

        Returns:
            DiffBatch with the files for the (clamped) page and its metadata.

        Raises:
            InvalidWindowError: If page or per_page is not a positive integer.
        """
        _check_positive("page", window.page)
        _check_positive("per_page", window.per_page)

        metadata = compute_page_metadata(len(collection), window.page, window.per_page)
        start = (metadata.current_page - 1) * window.per_page
        files = collection.files[start:start + window.per_page]

        logger.debug(
            "Paginated diff collection",
            requested_page=window.page,
            current_page=metadata.current_page,
            total_pages=metadata.total_pages,
            files=len(files),
        )
        return DiffBatch(diff_files=files, pagination=metadata)
