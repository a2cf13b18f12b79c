# core/context.py
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class UserContext:
    """Who the session belongs to. `user_id` partitions every collection."""
    user_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None

    @property
    def label(self) -> str:
        return self.email or self.display_name or self.user_id
