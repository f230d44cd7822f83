# ourplanet/pipeline/download_pipeline.py

"""
Bounded fan-out / fan-in over per-category event fetches.

Every category gets one fetch task; a semaphore keeps at most
``max_concurrency`` of them in flight. Batches are folded in completion
order by the generator itself, which is the only writer of the category
list, and each fold yields an immutable snapshot.

Every batch is filtered against *all* categories, not just the one it was
fetched for: an event listed under several categories lands in each of them
on whichever batch carries it first.
"""

import asyncio
from typing import AsyncIterator, Awaitable, Callable, Iterable, List, MutableSequence, Tuple

from ourplanet.http.client import limited
from ourplanet.logging.logger import setup_logger
from ourplanet.models.category import Category
from ourplanet.models.event import Event
from ourplanet.models.snapshot import SnapshotUpdate
from ourplanet.pipeline.filter import filtered_events

log = setup_logger(__name__)

DEFAULT_MAX_CONCURRENCY = 2

FetchEvents = Callable[[Category], Awaitable[List[Event]]]


def fold_batch(categories: MutableSequence[Category], events: List[Event]) -> int:
    """Attach ``events`` to every matching category in place. Returns how many were attached."""
    attached = 0
    for i, category in enumerate(categories):
        matched = filtered_events(events, category)
        if matched:
            categories[i] = category.with_events(matched)
            attached += len(matched)
    return attached


async def _fetch_batch(
    sem: asyncio.Semaphore,
    fetch: FetchEvents,
    category: Category,
) -> Tuple[Category, List[Event]]:
    try:
        events = await limited(sem, fetch(category))
    except Exception:
        log.exception("Event fetch for category %s failed; folding an empty batch", category.id)
        events = []
    return category, events


async def merge_scan(
    categories: Iterable[Category],
    fetch: FetchEvents,
    *,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> AsyncIterator[SnapshotUpdate]:
    """
    Yield the initial snapshot, then one update per completed fetch.

    Produces exactly ``len(categories) + 1`` updates; ``completed`` runs
    0, 1, ..., N. Closing the generator early cancels outstanding fetches.
    """
    if max_concurrency <= 0:
        raise ValueError("max_concurrency must be > 0")

    state: List[Category] = list(categories)
    total = len(state)
    completed = 0

    log.info("Starting download of %d categories (max_concurrency=%d)", total, max_concurrency)

    yield SnapshotUpdate(snapshot=tuple(state), completed=0, total=total)

    if not total:
        return

    sem = asyncio.Semaphore(max_concurrency)
    tasks = [
        asyncio.create_task(_fetch_batch(sem, fetch, category))
        for category in state
    ]

    try:
        for fut in asyncio.as_completed(tasks):
            category, events = await fut

            attached = fold_batch(state, events)
            completed += 1

            log.debug(
                "Folded batch for %s: %d fetched, %d attached (%d/%d)",
                category.id, len(events), attached, completed, total,
            )

            yield SnapshotUpdate(snapshot=tuple(state), completed=completed, total=total)
    finally:
        pending = [t for t in tasks if not t.done()]
        for t in pending:
            t.cancel()
        if pending:
            log.info("Cancelled %d outstanding fetch(es)", len(pending))
            await asyncio.gather(*pending, return_exceptions=True)

    log.info("Download finished: %d/%d categories folded", completed, total)
