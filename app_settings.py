"""
app_settings.py — runtime settings and logging setup

Defaults live next to the code that uses them (met_api, pagination,
similarity, query_sync, search_history). This module only collects the
environment overrides in one place:

    MET_API_BASE_URL      catalog base URL
    MET_REQUEST_TIMEOUT   seconds per HTTP request
    MET_PAGE_SIZE         records per result page
    MET_SIMILAR_LIMIT     similar artworks shown on the detail page
    MET_DEBOUNCE_SECONDS  search box debounce
    MET_HISTORY_LIMIT     recent searches kept
    MET_LOG_LEVEL         DEBUG / INFO / WARNING / ...
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

import met_api
import pagination
import query_sync
import search_history
import similarity


logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class Settings:
    api_base_url: str = met_api.API_BASE_URL
    request_timeout: float = met_api.REQUEST_TIMEOUT
    page_size: int = pagination.PAGE_SIZE
    similar_limit: int = similarity.SIMILAR_LIMIT
    debounce_seconds: float = query_sync.DEBOUNCE_DELAY
    history_limit: int = search_history.SEARCH_HISTORY_LIMIT
    log_level: str = "INFO"

    @staticmethod
    def from_env() -> "Settings":
        debounce = _env_float("MET_DEBOUNCE_SECONDS", query_sync.DEBOUNCE_DELAY)
        timeout = _env_float("MET_REQUEST_TIMEOUT", met_api.REQUEST_TIMEOUT)
        # A request must never outlast the debounce or the history stabilization
        limit = min(debounce, query_sync.HISTORY_SAVE_DELAY)
        if timeout >= limit:
            fallback = min(met_api.REQUEST_TIMEOUT, limit / 2)
            logger.warning("Request timeout %ss is not below %ss; using %ss", timeout, limit, fallback)
            timeout = fallback
        return Settings(
            api_base_url=os.getenv("MET_API_BASE_URL", met_api.API_BASE_URL),
            request_timeout=timeout,
            page_size=_env_int("MET_PAGE_SIZE", pagination.PAGE_SIZE),
            similar_limit=_env_int("MET_SIMILAR_LIMIT", similarity.SIMILAR_LIMIT),
            debounce_seconds=debounce,
            history_limit=_env_int("MET_HISTORY_LIMIT", search_history.SEARCH_HISTORY_LIMIT),
            log_level=os.getenv("MET_LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(level: str = "INFO") -> None:
    """Attach one stream handler to the root logger (safe to call on every rerun)."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    if any(getattr(h, "_met_explorer", False) for h in root.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._met_explorer = True
    root.addHandler(handler)
