"""
batch_fetch.py — resolve lists of object ids into records

fetch_many(ids) returns a list aligned with `ids`: a record, or None when
that id could not be resolved. One bad id never fails its siblings.

retry_missing(ids, results) re-requests only the positions that are still
None (once) and merges the answers back in place.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, Optional, Sequence

from met_api import MetAPIError
from search_params import SearchValidationError


logger = logging.getLogger(__name__)

MAX_WORKERS = 8

Record = Dict[str, Any]


def is_valid_id(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class BatchFetcher:
    def __init__(self, catalog, max_workers: int = MAX_WORKERS) -> None:
        self.catalog = catalog
        self.max_workers = max(1, int(max_workers))

    def _fetch_one(self, object_id: int) -> Optional[Record]:
        try:
            return self.catalog.fetch_by_id(object_id)
        except (MetAPIError, SearchValidationError) as exc:
            logger.warning("Failed to fetch object %s: %s", object_id, exc)
            return None

    def _fetch_positions(self, ids: Sequence[Any], positions: List[int], out: List[Optional[Record]]) -> None:
        # Same id at several positions is requested once
        by_id: Dict[int, List[int]] = {}
        for pos in positions:
            by_id.setdefault(ids[pos], []).append(pos)
        if not by_id:
            return

        workers = min(self.max_workers, len(by_id))
        with ThreadPoolExecutor(max_workers=workers) as ex:
            futures = {ex.submit(self._fetch_one, oid): oid for oid in by_id}
            for fut in as_completed(futures):
                oid = futures[fut]
                record = fut.result()
                for pos in by_id[oid]:
                    out[pos] = record

    def fetch_many(self, ids: Sequence[Any]) -> List[Optional[Record]]:
        """Fetch every valid id; output has the same length and order as `ids`."""
        out: List[Optional[Record]] = [None] * len(ids)
        positions = [i for i, oid in enumerate(ids) if is_valid_id(oid)]
        self._fetch_positions(ids, positions, out)
        return out

    def retry_missing(self, ids: Sequence[Any], results: Sequence[Optional[Record]]) -> List[Optional[Record]]:
        """Second pass for the valid ids whose result is still None."""
        if len(ids) != len(results):
            raise ValueError("ids and results must have the same length")

        out = list(results)
        positions = [i for i, oid in enumerate(ids) if out[i] is None and is_valid_id(oid)]
        if positions:
            logger.debug("Retrying %d unresolved id(s)", len(positions))
            self._fetch_positions(ids, positions, out)
        return out

    def fetch_with_retry(self, ids: Sequence[Any]) -> List[Optional[Record]]:
        return self.retry_missing(ids, self.fetch_many(ids))
