"""
app_paths.py — filesystem locations used by the explorer.

Only the recent-search log is written to disk (data/search_history.json,
created on first write). On hosts with an ephemeral filesystem the log
simply starts empty after a restart.
"""

from __future__ import annotations

from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent

DATA_DIR = ROOT_DIR / "data"

SEARCH_HISTORY_FILE = DATA_DIR / "search_history.json"
