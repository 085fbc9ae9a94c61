"""
similarity.py — "similar artworks" for one reference record

Runs a fixed list of heuristic searches derived from the reference
(artist, culture, classification, date window, first tag) and merges their
ids into one ordered, de-duplicated candidate set. Each search runs only while
the set is still short of the limit; a failing search is logged and skipped.
The merged ids are then resolved through the batch fetcher.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Set, Tuple

from batch_fetch import BatchFetcher, is_valid_id
from met_api import MetAPIError, record_id, text_field
from search_params import MIN_YEAR, SearchFilters, SearchValidationError, current_year


logger = logging.getLogger(__name__)

SIMILAR_LIMIT = 12
DATE_WINDOW_YEARS = 50


# ============================================================
# Ordered candidate set
# ============================================================

class OrderedIdSet:
    """Insertion-ordered id set with a size cap and a list of ids it refuses."""

    def __init__(self, limit: int, excluded: Iterable[int] = ()) -> None:
        self.limit = max(0, int(limit))
        self._excluded: Set[int] = set(excluded)
        self._seen: Set[int] = set()
        self._order: List[int] = []

    def add(self, object_id: int) -> bool:
        if self.is_full() or object_id in self._excluded or object_id in self._seen:
            return False
        self._seen.add(object_id)
        self._order.append(object_id)
        return True

    def extend(self, ids: Iterable[int]) -> int:
        """Add ids in order until full; returns how many were inserted."""
        added = 0
        for oid in ids:
            if self.is_full():
                break
            if is_valid_id(oid) and self.add(oid):
                added += 1
        return added

    def is_full(self) -> bool:
        return len(self._order) >= self.limit

    def __contains__(self, object_id: object) -> bool:
        return object_id in self._seen

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[int]:
        return iter(self._order)

    def to_list(self) -> List[int]:
        return list(self._order)


# ============================================================
# Strategies
# ============================================================

# (term, filters) to search for, or None when the reference lacks the field
Query = Optional[Tuple[str, SearchFilters]]


def _by_artist(ref: Dict[str, Any]) -> Query:
    artist = text_field(ref, "artistDisplayName")
    return (artist, SearchFilters(has_images=True)) if artist else None


def _by_culture(ref: Dict[str, Any]) -> Query:
    culture = text_field(ref, "culture")
    if culture and text_field(ref, "department"):
        return culture, SearchFilters(has_images=True)
    return None


def _by_classification(ref: Dict[str, Any]) -> Query:
    classification = text_field(ref, "classification")
    return (classification, SearchFilters(has_images=True)) if classification else None


def _year(value: Any) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def _by_date_window(ref: Dict[str, Any]) -> Query:
    begin = _year(ref.get("objectBeginDate"))
    if begin is None:
        return None
    end = _year(ref.get("objectEndDate"))
    if end is None:
        end = begin

    top = current_year()
    lo = min(max(begin - DATE_WINDOW_YEARS, MIN_YEAR), top)
    hi = min(max(end + DATE_WINDOW_YEARS, MIN_YEAR), top)
    if lo > hi:
        lo, hi = hi, lo
    return "", SearchFilters(date_begin=lo, date_end=hi, has_images=True)


def _by_first_tag(ref: Dict[str, Any]) -> Query:
    tags = ref.get("tags")
    if not isinstance(tags, list) or not tags:
        return None
    first = tags[0]
    term = text_field(first, "term") if isinstance(first, dict) else None
    return (term, SearchFilters(has_images=True)) if term else None


STRATEGIES: Tuple[Tuple[str, Callable[[Dict[str, Any]], Query]], ...] = (
    ("artist", _by_artist),
    ("culture", _by_culture),
    ("classification", _by_classification),
    ("date_window", _by_date_window),
    ("tag", _by_first_tag),
)


# ============================================================
# Recommender
# ============================================================

class SimilarityRecommender:
    def __init__(self, catalog, fetcher: Optional[BatchFetcher] = None) -> None:
        self.catalog = catalog
        self.fetcher = fetcher or BatchFetcher(catalog)

    def candidate_ids(self, reference: Dict[str, Any], limit: int = SIMILAR_LIMIT) -> List[int]:
        """Merged ids from the strategies, in priority order, capped at `limit`."""
        ref_id = record_id(reference)
        candidates = OrderedIdSet(limit, excluded=[ref_id] if ref_id is not None else [])

        for name, strategy in STRATEGIES:
            if candidates.is_full():
                break
            try:
                query = strategy(reference)
                if query is None:
                    continue
                term, filters = query
                ids = self.catalog.search(term, filters)
            except (MetAPIError, SearchValidationError) as exc:
                logger.warning("Similarity strategy %s failed for %s: %s", name, ref_id, exc)
                continue

            added = candidates.extend(ids)
            logger.debug("Similarity strategy %s added %d id(s)", name, added)

        return candidates.to_list()

    def find_similar(self, reference: Dict[str, Any], limit: int = SIMILAR_LIMIT) -> List[Dict[str, Any]]:
        if limit <= 0:
            return []
        ids = self.candidate_ids(reference, limit)
        if not ids:
            return []
        return [rec for rec in self.fetcher.fetch_with_retry(ids) if rec is not None]
