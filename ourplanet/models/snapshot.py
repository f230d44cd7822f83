# ourplanet/models/snapshot.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ourplanet.models.category import Category

Snapshot = Tuple[Category, ...]


@dataclass(frozen=True)
class SnapshotUpdate:
    snapshot: Snapshot
    completed: int
    total: int

    @property
    def is_initial(self) -> bool:
        return self.completed == 0

    @property
    def is_final(self) -> bool:
        return self.completed == self.total

    def category(self, category_id: str) -> Optional[Category]:
        for c in self.snapshot:
            if c.id == category_id:
                return c
        return None

    def event_counts(self) -> Dict[str, int]:
        return {c.id: len(c.events) for c in self.snapshot}
