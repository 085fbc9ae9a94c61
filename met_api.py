"""
met_api.py — Metropolitan Museum of Art Collection API adapter

Provides the catalog interface used by the explorer core:

- MetCatalog.search(term, filters) -> [objectID, ...]      (provider relevance order)
- MetCatalog.search_raw(term, filters) -> {"total", "objectIDs"}
- MetCatalog.fetch_by_id(object_id) -> object record dict
- MetCatalog.list_departments() -> [{"departmentId", "displayName"}, ...]
- has_image(record) / get_best_image_url(record) / extract_year(record)

Data source:
- https://collectionapi.metmuseum.org/public/collection/v1

Notes:
- No API key is used.
- Search returns ids only; every record needs its own /objects/{id} request.
- Transient failures (timeouts, connection errors, 429, 5xx) are retried with
  an increasing delay. Other 4xx are raised at once.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from search_params import SearchFilters, SearchValidationError, sanitize_search_term


logger = logging.getLogger(__name__)


# ============================================================
# Constants
# ============================================================

API_BASE_URL = os.getenv(
    "MET_API_BASE_URL",
    "https://collectionapi.metmuseum.org/public/collection/v1",
)

# Per-request bound; stays below the search debounce and history stabilization delays
REQUEST_TIMEOUT = 0.5

RETRY_ATTEMPTS = 3
RETRY_DELAY = 1.0

# Met search requires q; this matches everything when only filters are set
WILDCARD_TERM = "*"


# ============================================================
# Errors
# ============================================================

class MetAPIError(RuntimeError):
    """Raised when the Met Collection API fails or returns unexpected data."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class TransientProviderError(MetAPIError):
    """Network error, timeout, throttling or 5xx. Safe to retry later."""


class PermanentProviderError(MetAPIError):
    """4xx other than throttling. Retrying will not help."""


class ArtworkNotFound(PermanentProviderError):
    """The object id does not exist (or is no longer published)."""


# ============================================================
# HTTP session
# ============================================================

def _get_session() -> requests.Session:
    """Configured HTTP session."""
    s = requests.Session()
    s.headers.update({"User-Agent": "MetExplorer/1.0", "Accept": "application/json"})
    return s


# ============================================================
# Query parameters
# ============================================================

def _bool_param(value: bool) -> str:
    return "true" if value else "false"


def build_search_params(term: str, filters: Optional[SearchFilters] = None) -> List[Tuple[str, str]]:
    """
    Translate a term + filters into /search query parameters.

    The order is fixed (q first) so identical requests produce identical URLs.
    Raises SearchValidationError when neither a term nor an active filter is given.
    """
    flt = filters or SearchFilters()
    q = sanitize_search_term(term)

    if not q:
        if not flt.is_active():
            raise SearchValidationError("A search term or at least one filter is required")
        q = WILDCARD_TERM

    params: List[Tuple[str, str]] = [("q", q)]

    if flt.department_id is not None:
        params.append(("departmentId", str(flt.department_id)))
    if flt.is_highlight is not None:
        params.append(("isHighlight", _bool_param(flt.is_highlight)))
    if flt.is_on_view is not None:
        params.append(("isOnView", _bool_param(flt.is_on_view)))
    if flt.has_images is not None:
        params.append(("hasImages", _bool_param(flt.has_images)))
    if flt.medium:
        params.append(("medium", flt.medium))
    if flt.geo_location:
        params.append(("geoLocation", flt.geo_location))
    if flt.date_begin is not None and flt.date_end is not None:
        params.append(("dateBegin", str(flt.date_begin)))
        params.append(("dateEnd", str(flt.date_end)))

    return params


def _clean_ids(raw: Any) -> List[int]:
    """Keep positive integer ids in provider order."""
    if not isinstance(raw, list):
        return []
    return [i for i in raw if isinstance(i, int) and not isinstance(i, bool) and i > 0]


# ============================================================
# Catalog client
# ============================================================

class MetCatalog:
    """Thin client over the three Met endpoints used by the explorer."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        base_url: str = API_BASE_URL,
        timeout: float = REQUEST_TIMEOUT,
        retry_attempts: int = RETRY_ATTEMPTS,
        retry_delay: float = RETRY_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.session = session or _get_session()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_attempts = max(1, int(retry_attempts))
        self.retry_delay = retry_delay
        self._sleep = sleep

    def _get_once(self, url: str, params: Optional[List[Tuple[str, str]]]) -> Any:
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.Timeout as exc:
            raise TransientProviderError(f"Timeout after {self.timeout}s for {url}") from exc
        except requests.RequestException as exc:
            raise TransientProviderError(f"Network error for {url}: {exc}") from exc

        status = int(resp.status_code)
        if status == 429 or status >= 500:
            raise TransientProviderError(f"Met API error ({status}) for {url}: {resp.text[:200]}", status)
        if status == 404:
            raise ArtworkNotFound(f"Not found: {url}", status)
        if status >= 400:
            raise PermanentProviderError(f"Met API error ({status}) for {url}: {resp.text[:200]}", status)

        try:
            return resp.json()
        except ValueError as exc:
            raise TransientProviderError(f"Met API returned non-JSON for {url}", status) from exc

    def _get_json(self, path: str, params: Optional[List[Tuple[str, str]]] = None) -> Any:
        # Only transient failures are retried; 404 and other 4xx surface at once
        retrying = retry(
            stop=stop_after_attempt(self.retry_attempts),
            retry=retry_if_exception_type(TransientProviderError),
            wait=wait_incrementing(start=self.retry_delay, increment=self.retry_delay),
            before_sleep=before_sleep_log(logger, logging.DEBUG),
            sleep=self._sleep,
            reraise=True,
        )
        return retrying(self._get_once)(f"{self.base_url}{path}", params)

    # --------------------------------------------------------
    # Endpoints
    # --------------------------------------------------------

    def search_raw(self, term: str, filters: Optional[SearchFilters] = None) -> Dict[str, Any]:
        params = build_search_params(term, filters)
        data = self._get_json("/search", params)
        if not isinstance(data, dict):
            raise TransientProviderError("Search returned an unexpected payload")
        ids = data.get("objectIDs")
        total = data.get("total")
        return {
            "total": total if isinstance(total, int) else len(_clean_ids(ids)),
            "objectIDs": _clean_ids(ids) if ids is not None else None,
        }

    def search(self, term: str, filters: Optional[SearchFilters] = None) -> List[int]:
        """Ordered object ids for a term + filters ([] when nothing matches)."""
        return self.search_raw(term, filters)["objectIDs"] or []

    def fetch_by_id(self, object_id: int) -> Dict[str, Any]:
        if isinstance(object_id, bool) or not isinstance(object_id, int) or object_id <= 0:
            raise SearchValidationError(f"Invalid object id: {object_id!r}")

        data = self._get_json(f"/objects/{object_id}")
        if not isinstance(data, dict) or not data.get("objectID"):
            raise ArtworkNotFound(f"Object {object_id} has no record", 404)
        return data

    def list_departments(self) -> List[Dict[str, Any]]:
        data = self._get_json("/departments")
        items = data.get("departments") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise TransientProviderError("Departments returned an unexpected payload")

        departments: List[Dict[str, Any]] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            dept_id = item.get("departmentId")
            name = item.get("displayName")
            if isinstance(dept_id, int) and isinstance(name, str) and name.strip():
                departments.append({"departmentId": dept_id, "displayName": name.strip()})
        return departments


# ============================================================
# Record helpers
# ============================================================

def record_id(record: Dict[str, Any]) -> Optional[int]:
    oid = record.get("objectID") if isinstance(record, dict) else None
    if isinstance(oid, int) and not isinstance(oid, bool) and oid > 0:
        return oid
    return None


def get_best_image_url(record: Dict[str, Any]) -> Optional[str]:
    """Return the best image URL available for this artwork (small first for grids)."""
    for key in ("primaryImageSmall", "primaryImage"):
        url = record.get(key)
        if isinstance(url, str) and url.strip():
            return url.strip()
    return None


def has_image(record: Dict[str, Any]) -> bool:
    return get_best_image_url(record) is not None


def extract_year(record: Dict[str, Any]) -> Optional[int]:
    """Begin year of the object, when the record carries one."""
    y = record.get("objectBeginDate")
    if isinstance(y, int) and not isinstance(y, bool):
        return y
    return None


def text_field(record: Dict[str, Any], key: str) -> Optional[str]:
    """Non-empty stripped string value or None (Met uses '' for missing)."""
    value = record.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
