# ourplanet/pipeline/filter.py

from typing import Iterable, List

from ourplanet.models.category import Category
from ourplanet.models.event import Event


def filtered_events(events: Iterable[Event], category: Category) -> List[Event]:
    """
    Events from ``events`` that belong to ``category`` and are not attached to
    it yet, oldest first. Pure: neither argument is modified.
    """
    seen = category.event_ids
    matched: List[Event] = []

    for event in events:
        if not event.belongs_to(category.id) or event.id in seen:
            continue
        seen.add(event.id)
        matched.append(event)

    return sorted(matched, key=lambda e: e.date)
