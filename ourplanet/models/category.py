# ourplanet/models/category.py

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Optional, Tuple

from ourplanet.models.event import Event


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    description: str = ""
    link: Optional[str] = None
    events: Tuple[Event, ...] = ()

    @property
    def event_ids(self) -> set[str]:
        return {e.id for e in self.events}

    def with_events(self, extra: Iterable[Event]) -> "Category":
        """Return a copy with ``extra`` appended after the existing events."""
        extra = tuple(extra)
        if not extra:
            return self
        return replace(self, events=self.events + extra)
