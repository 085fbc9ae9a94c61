"""
pagination.py — incremental result pages over one search's id list

The Met search endpoint returns every matching id at once. Pages are built
locally:

  1) one /search per distinct request (ids kept for the latest request)
  2) slice a window [cursor, cursor + page_size)
  3) resolve the window (first pass + one retry for the gaps)
  4) keep window order, drop failed ids and post-filter misses
  5) next_cursor = window end while ids remain

A page can be empty and still have more results after it (every id in the
window failed or was filtered out). Callers keep following next_cursor.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from batch_fetch import BatchFetcher
from met_api import MetAPIError, has_image, text_field
from search_params import SearchRequest, SearchValidationError


logger = logging.getLogger(__name__)

PAGE_SIZE = 20

# Curated highlights shown before any search
FEATURED_ARTWORK_IDS = (
    436535,  # The Great Wave
    459055,  # Bridge Over a Pond of Water Lilies (Monet)
    438817,  # Self-Portrait with a Straw Hat (Van Gogh)
    436105,  # Wheat Field with Cypresses (Van Gogh)
    437133,  # Irises (Van Gogh)
    436528,  # A Pair of Leather Clogs (Van Gogh)
    437894,  # Virgin and Child (Duccio)
    459080,  # Water Lilies (Monet)
)


@dataclass(frozen=True)
class ResultPage:
    records: List[Dict[str, Any]] = field(default_factory=list)
    next_cursor: Optional[int] = None
    total: int = 0

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None


class PaginationCoordinator:
    """Turns a SearchRequest + cursor into ResultPages."""

    def __init__(self, catalog, fetcher: Optional[BatchFetcher] = None, page_size: int = PAGE_SIZE) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.catalog = catalog
        self.fetcher = fetcher or BatchFetcher(catalog)
        self.page_size = int(page_size)

        self._current_key: Optional[Tuple[Any, ...]] = None
        self._current_ids: List[int] = []
        self._department_ids: Optional[Dict[str, int]] = None

    # --------------------------------------------------------
    # Request identity
    # --------------------------------------------------------

    def is_current(self, request: SearchRequest) -> bool:
        """False once a newer request has been loaded; its results are stale."""
        return self._current_key is not None and request.key() == self._current_key

    def _ids_for(self, request: SearchRequest) -> List[int]:
        key = request.key()
        if key != self._current_key:
            ids = self.catalog.search(request.term, request.filters)
            self._current_key = key
            self._current_ids = list(ids or [])
            logger.info("Search %r returned %d id(s)", request.term, len(self._current_ids))
        return self._current_ids

    # --------------------------------------------------------
    # Department cross-check
    # --------------------------------------------------------

    def _department_map(self) -> Optional[Dict[str, int]]:
        """displayName (lower-case) -> departmentId, or None when unavailable."""
        if self._department_ids is not None:
            return self._department_ids
        try:
            departments = self.catalog.list_departments()
        except MetAPIError as exc:
            logger.warning("Department lookup failed, skipping cross-check: %s", exc)
            return None
        self._department_ids = {
            d["displayName"].strip().lower(): d["departmentId"] for d in departments
        }
        return self._department_ids

    def _passes_post_filters(self, record: Dict[str, Any], request: SearchRequest,
                             departments: Optional[Dict[str, int]]) -> bool:
        flt = request.filters
        if flt.has_images is True and not has_image(record):
            return False
        if flt.department_id is not None and departments is not None:
            name = (text_field(record, "department") or "").lower()
            if departments.get(name) != flt.department_id:
                return False
        return True

    # --------------------------------------------------------
    # Pages
    # --------------------------------------------------------

    def load_page(self, request: SearchRequest, cursor: int = 0) -> ResultPage:
        if isinstance(cursor, bool) or not isinstance(cursor, int) or cursor < 0:
            raise SearchValidationError(f"Invalid cursor: {cursor!r}")

        if not request.is_searchable():
            return ResultPage()

        ids = self._ids_for(request)
        total = len(ids)
        if not ids or cursor >= total:
            return ResultPage(records=[], next_cursor=None, total=total)

        end = min(cursor + self.page_size, total)
        window = ids[cursor:end]

        resolved = self.fetcher.fetch_with_retry(window)

        departments = None
        if request.filters.department_id is not None:
            departments = self._department_map()

        records = [
            rec for rec in resolved
            if rec is not None and self._passes_post_filters(rec, request, departments)
        ]

        dropped = len(window) - len(records)
        if dropped:
            logger.debug("Window [%d, %d) dropped %d record(s)", cursor, end, dropped)

        return ResultPage(records=records, next_cursor=end if end < total else None, total=total)

    def iter_pages(self, request: SearchRequest, cursor: int = 0) -> Iterator[ResultPage]:
        """Follow next_cursor until the last page."""
        while True:
            page = self.load_page(request, cursor)
            yield page
            if not page.has_more:
                return
            cursor = page.next_cursor


def load_featured(fetcher: BatchFetcher, ids: Sequence[int] = FEATURED_ARTWORK_IDS) -> List[Dict[str, Any]]:
    """Resolve the curated highlight list, skipping the ones that fail."""
    return [rec for rec in fetcher.fetch_with_retry(list(ids)) if rec is not None]
