"""
search_history.py — bounded recent-search log

Most recent first, case-insensitive de-duplication (searching "Monet" after
"monet" moves the entry to the front with the new spelling), capped at
SEARCH_HISTORY_LIMIT entries.

Persistence is a local JSON file holding one object per storage name:

    {"metmuseum-search-history-storage": {"history": [{"query": "...", "timestamp": 1712345678.9}, ...]}}

Every mutation is applied in memory first and then written in one go, with no
waiting in between.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional


logger = logging.getLogger(__name__)

SEARCH_HISTORY_LIMIT = 10
STORAGE_NAME = "metmuseum-search-history-storage"


# ============================================================
# Local persistence
# ============================================================

def _read_json_file(path: Path) -> dict:
    """Read JSON file safely (returns dict or {})."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return data if isinstance(data, dict) else {}
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("Could not read %s, starting empty: %s", path, exc)
        return {}


def _clean_entries(raw: Any) -> List[Dict[str, Any]]:
    entries: List[Dict[str, Any]] = []
    if not isinstance(raw, list):
        return entries
    for item in raw:
        if not isinstance(item, dict):
            continue
        query = item.get("query")
        ts = item.get("timestamp")
        if isinstance(query, str) and query.strip():
            entries.append({
                "query": query.strip(),
                "timestamp": float(ts) if isinstance(ts, (int, float)) else 0.0,
            })
    return entries


# ============================================================
# History
# ============================================================

class SearchHistory:
    def __init__(
        self,
        path: Optional[Path] = None,
        limit: int = SEARCH_HISTORY_LIMIT,
        storage_name: str = STORAGE_NAME,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.path = Path(path) if path is not None else None
        self.limit = max(1, int(limit))
        self.storage_name = storage_name
        self._clock = clock
        self._entries: List[Dict[str, Any]] = []

        if self.path is not None:
            stored = _read_json_file(self.path).get(storage_name) or {}
            if isinstance(stored, dict):
                self._entries = _clean_entries(stored.get("history"))[: self.limit]

    def _save(self) -> None:
        if self.path is None:
            return
        data = _read_json_file(self.path)
        data[self.storage_name] = {"history": self._entries}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
        except OSError as exc:
            logger.warning("Could not save search history to %s: %s", self.path, exc)

    def add(self, query: str) -> bool:
        """Put `query` at the front. Returns False for empty input."""
        q = query.strip() if isinstance(query, str) else ""
        if not q:
            return False

        low = q.lower()
        rest = [e for e in self._entries if e["query"].lower() != low]
        self._entries = ([{"query": q, "timestamp": self._clock()}] + rest)[: self.limit]
        self._save()
        return True

    def remove(self, query: str) -> bool:
        low = (query or "").strip().lower()
        kept = [e for e in self._entries if e["query"].lower() != low]
        if len(kept) == len(self._entries):
            return False
        self._entries = kept
        self._save()
        return True

    def clear(self) -> None:
        self._entries = []
        self._save()

    def entries(self) -> List[Dict[str, Any]]:
        return [dict(e) for e in self._entries]

    def queries(self) -> List[str]:
        return [e["query"] for e in self._entries]

    def __len__(self) -> int:
        return len(self._entries)
