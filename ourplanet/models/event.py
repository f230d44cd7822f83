# ourplanet/models/event.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import FrozenSet, Optional


@dataclass(frozen=True)
class Event:
    # identity
    id: str
    title: str

    # ordering / status
    date: datetime
    closed: Optional[datetime] = None

    # membership
    categories: FrozenSet[str] = frozenset()

    # display
    description: str = ""
    link: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.closed is None

    def belongs_to(self, category_id: str) -> bool:
        return category_id in self.categories
