"""
search_params.py — validated search input for the Met Collection API

Provides the value objects that travel from the search box to the catalog:

- sanitize_string(value) -> str
- sanitize_search_term(value) -> str            (<= 500 chars)
- SearchFilters(...)                            (validated at construction)
- SearchRequest(term, filters)                  (term + filters, hashable key)
- build_search_request(term, filters) -> SearchRequest

Notes:
- Absent filter = None. `False` is a real value ("hasImages=false") and is
  kept distinct from "not set".
- A request with an empty term and no active filter is not searchable; it
  never reaches the provider.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields
from datetime import date
from typing import Any, Mapping, Optional, Tuple, Union


# ============================================================
# Constants
# ============================================================

MAX_TERM_LENGTH = 500
MAX_TEXT_FILTER_LENGTH = 200
MIN_YEAR = -5000

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_WHITESPACE = re.compile(r"\s+")

# camelCase keys used by the Met API and by URLs
_FILTER_ALIASES = {
    "departmentId": "department_id",
    "geoLocation": "geo_location",
    "dateBegin": "date_begin",
    "dateEnd": "date_end",
    "hasImages": "has_images",
    "isHighlight": "is_highlight",
    "isOnView": "is_on_view",
}


# ============================================================
# Errors
# ============================================================

class SearchValidationError(ValueError):
    """Raised when a term or filter is malformed or out of range."""


# ============================================================
# Sanitizers
# ============================================================

def sanitize_string(value: Any) -> str:
    """Strip control characters and collapse whitespace. Non-strings become ''."""
    if not isinstance(value, str):
        return ""
    s = _CONTROL_CHARS.sub("", value)
    return _WHITESPACE.sub(" ", s).strip()


def sanitize_search_term(value: Any) -> str:
    s = sanitize_string(value)
    if len(s) > MAX_TERM_LENGTH:
        s = s[:MAX_TERM_LENGTH].rstrip()
    return s


def current_year() -> int:
    return date.today().year


def _coerce_int(name: str, value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise SearchValidationError(f"{name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and re.fullmatch(r"\s*-?\d+\s*", value):
        return int(value)
    raise SearchValidationError(f"{name} must be an integer")


def _coerce_bool(name: str, value: Any) -> Optional[bool]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        low = value.strip().lower()
        if low in ("true", "1"):
            return True
        if low in ("false", "0"):
            return False
    raise SearchValidationError(f"{name} must be a boolean")


def _coerce_text(name: str, value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise SearchValidationError(f"{name} must be a string")
    s = sanitize_string(value)
    if len(s) > MAX_TEXT_FILTER_LENGTH:
        raise SearchValidationError(f"{name} must be {MAX_TEXT_FILTER_LENGTH} characters or less")
    return s or None


# ============================================================
# Filters
# ============================================================

@dataclass(frozen=True)
class SearchFilters:
    department_id: Optional[int] = None
    medium: Optional[str] = None
    geo_location: Optional[str] = None
    date_begin: Optional[int] = None
    date_end: Optional[int] = None
    has_images: Optional[bool] = None
    is_highlight: Optional[bool] = None
    is_on_view: Optional[bool] = None

    def __post_init__(self) -> None:
        # Frozen dataclass: normalized values are written back via object.__setattr__
        dept = _coerce_int("department_id", self.department_id)
        if dept is not None and dept <= 0:
            raise SearchValidationError("department_id must be positive")
        object.__setattr__(self, "department_id", dept)

        object.__setattr__(self, "medium", _coerce_text("medium", self.medium))
        object.__setattr__(self, "geo_location", _coerce_text("geo_location", self.geo_location))

        begin = _coerce_int("date_begin", self.date_begin)
        end = _coerce_int("date_end", self.date_end)
        if (begin is None) != (end is None):
            raise SearchValidationError("date_begin and date_end must be given together")
        if begin is not None and end is not None:
            top = current_year()
            for label, year in (("date_begin", begin), ("date_end", end)):
                if year < MIN_YEAR or year > top:
                    raise SearchValidationError(f"{label} must be between {MIN_YEAR} and {top}")
            if begin > end:
                raise SearchValidationError("date_begin must be before or equal to date_end")
        object.__setattr__(self, "date_begin", begin)
        object.__setattr__(self, "date_end", end)

        for name in ("has_images", "is_highlight", "is_on_view"):
            object.__setattr__(self, name, _coerce_bool(name, getattr(self, name)))

    @classmethod
    def from_mapping(cls, raw: Optional[Mapping[str, Any]]) -> "SearchFilters":
        """Build filters from widget values or query-string style dicts."""
        if not raw:
            return cls()
        known = {f.name for f in fields(cls)}
        kwargs: dict = {}
        for key, value in raw.items():
            name = _FILTER_ALIASES.get(key, key)
            if name not in known:
                raise SearchValidationError(f"Unknown filter: {key}")
            kwargs[name] = value
        return cls(**kwargs)

    def is_active(self) -> bool:
        """True when at least one filter narrows the search."""
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None or value is False or value == "":
                continue
            return True
        return False

    def key(self) -> Tuple[Any, ...]:
        return tuple(getattr(self, f.name) for f in fields(self))


# ============================================================
# Request
# ============================================================

@dataclass(frozen=True)
class SearchRequest:
    term: str = ""
    filters: SearchFilters = SearchFilters()

    def __post_init__(self) -> None:
        if self.term is not None and not isinstance(self.term, str):
            raise SearchValidationError("Search term must be a string")
        object.__setattr__(self, "term", sanitize_search_term(self.term or ""))
        if self.filters is None:
            object.__setattr__(self, "filters", SearchFilters())

    def is_searchable(self) -> bool:
        return bool(self.term) or self.filters.is_active()

    def key(self) -> Tuple[str, Tuple[Any, ...]]:
        """Identity of the request; results keyed by an older key are stale."""
        return (self.term, self.filters.key())


def build_search_request(
    term: Optional[str],
    filters: Union[SearchFilters, Mapping[str, Any], None] = None,
) -> SearchRequest:
    if isinstance(filters, SearchFilters):
        flt = filters
    else:
        flt = SearchFilters.from_mapping(filters)
    return SearchRequest(term=term or "", filters=flt)


def filters_from_form(
    department_id: Optional[int] = None,
    medium: str = "",
    geo_location: str = "",
    date_range: Optional[Tuple[int, int]] = None,
    has_images: bool = False,
    is_highlight: bool = False,
    is_on_view: bool = False,
) -> SearchFilters:
    """
    Filters from the explorer's sidebar widgets.

    An unchecked box means "not filtered", not "must be false", so the
    untouched form yields no active filter and the page shows featured
    artworks instead of a catalog-wide search.
    """
    date_begin, date_end = date_range if date_range is not None else (None, None)
    return SearchFilters.from_mapping({
        "department_id": department_id,
        "medium": medium,
        "geo_location": geo_location,
        "date_begin": date_begin,
        "date_end": date_end,
        "has_images": True if has_images else None,
        "is_highlight": True if is_highlight else None,
        "is_on_view": True if is_on_view else None,
    })
