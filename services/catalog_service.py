# services/catalog_service.py
from typing import Iterable, List

from core.config import SUGGESTION_LIMIT
from services.day_store import DayStore


def filter_suggestions(names: Iterable[str], query: str, limit: int = SUGGESTION_LIMIT) -> List[str]:
    q = (query or "").lower()
    hits = [n for n in names if q in n.lower()] if q else list(names)
    return hits[:limit]


def offers_create(names: Iterable[str], query: str) -> bool:
    """True when the query would be a new activity (no case-insensitive exact match)."""
    q = (query or "").strip().lower()
    return bool(q) and not any(n.lower() == q for n in names)


class ActivityCatalog:
    """Previously used activity names, backed by the store's snapshot."""

    def __init__(self, store: DayStore):
        self.store = store

    def names(self) -> List[str]:
        return self.store.get_catalog()

    def sorted_names(self) -> List[str]:
        return sorted(self.names(), key=str.lower)

    def add(self, name: str) -> bool:
        name = (name or "").strip()
        if not name:
            return False
        return bool(self.store.register_activity(name).writes)

    def suggestions(self, query: str, limit: int = SUGGESTION_LIMIT) -> List[str]:
        return filter_suggestions(self.names(), query, limit)

    def offers_create(self, query: str) -> bool:
        return offers_create(self.names(), query)
