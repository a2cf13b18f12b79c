# core/config.py
import os
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Optional

import streamlit as st
from streamlit.errors import StreamlitAPIException

from core.time_utils import parse_canonical

APP_TITLE = "Daily Activity Tracker"
PAGE_ICON = "✅"

SUGGESTION_LIMIT = 5
STATS_WINDOW_DAYS = 30
HEATMAP_START = date(2026, 1, 1)

DEFAULT_COLLECTIONS = {
    "catalog": "activity_catalog",
    "plans": "plans",
    "completions": "completions",
}


def _secret(name: str) -> Optional[Any]:
    try:
        return st.secrets.get(name)
    except (FileNotFoundError, KeyError, StreamlitAPIException):
        return None


def _get(name: str, default: Optional[str] = None) -> Optional[str]:
    val = _secret(name) or os.getenv(name) or os.getenv(name.lower()) or default
    return str(val).strip() if val is not None else None


@dataclass(frozen=True)
class Settings:
    mongo_uri: str = ""
    db_name: str = "daily_tracker"
    user_id: str = "local"
    auth_provider: Optional[str] = None
    log_level: str = "INFO"
    log_file: Optional[str] = None
    heatmap_start: date = HEATMAP_START
    stats_window_days: int = STATS_WINDOW_DAYS
    collections: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_COLLECTIONS))


def load_settings() -> Settings:
    """st.secrets first, then environment, then defaults."""
    start = _get("HEATMAP_START")
    return Settings(
        mongo_uri=_get("MONGO_URI", "") or "",
        db_name=_get("DB_NAME", "daily_tracker"),
        user_id=_get("USER_ID", "local"),
        auth_provider=_get("AUTH_PROVIDER") or None,
        log_level=(_get("LOG_LEVEL", "INFO") or "INFO").upper(),
        log_file=_get("LOG_FILE") or None,
        heatmap_start=parse_canonical(start) if start else HEATMAP_START,
        stats_window_days=int(_get("STATS_WINDOW_DAYS", str(STATS_WINDOW_DAYS))),
        collections={
            "catalog": _get("CATALOG_COLLECTION", DEFAULT_COLLECTIONS["catalog"]),
            "plans": _get("PLANS_COLLECTION", DEFAULT_COLLECTIONS["plans"]),
            "completions": _get("COMPLETIONS_COLLECTION", DEFAULT_COLLECTIONS["completions"]),
        },
    )
