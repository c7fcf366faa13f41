from __future__ import annotations
"""Paginated enumeration of the objects under a key prefix."""
import logging
from typing import Callable, Iterator, Optional

from .errors import RemoteListError, SubsequentListError
from .models import ListingPage

MAX_PAGE_SIZE = 100

LOGGER = logging.getLogger(__name__)


def clamp_page_size(page_size: int) -> int:
    return min(max(int(page_size), 1), MAX_PAGE_SIZE)


class PrefixLister:
    """Lists a prefix one page at a time and follows continuation cursors."""

    def __init__(self, store):
        self._store = store

    def list(
        self,
        bucket: str,
        prefix: str,
        *,
        page_size: int = MAX_PAGE_SIZE,
        cursor: str | None = None,
    ) -> ListingPage:
        """Return a single page of objects under ``prefix``.

        Raises:
            RemoteListError: when the remote listing call fails.
        """

        return self._store.list_objects(
            bucket,
            prefix,
            max_keys=clamp_page_size(page_size),
            cursor=cursor,
        )

    def iter_pages(
        self,
        bucket: str,
        prefix: str,
        *,
        page_size: int = MAX_PAGE_SIZE,
        between_pages: Optional[Callable[[], None]] = None,
    ) -> Iterator[ListingPage]:
        """Yield non-empty pages until the listing is exhausted.

        A failure on the first page is re-raised as-is. A failure on any later
        page is raised as :class:`SubsequentListError` so callers can decide
        whether to treat it as the end of the data.
        """

        cursor: str | None = None
        page_number = 1
        while True:
            try:
                page = self.list(bucket, prefix, page_size=page_size, cursor=cursor)
            except RemoteListError as exc:
                if page_number == 1:
                    raise
                raise SubsequentListError(
                    f"Listing page {page_number} of '{prefix}' failed: {exc}",
                    bucket=bucket,
                    key=prefix,
                ) from exc

            if not page.objects:
                return
            LOGGER.debug(
                "Listed page %d of %s/%s (%d objects)", page_number, bucket, prefix, len(page.objects)
            )
            yield page
            if not page.has_more:
                return
            if between_pages is not None:
                between_pages()
            cursor = page.cursor
            page_number += 1
