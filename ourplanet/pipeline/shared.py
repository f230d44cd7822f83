# ourplanet/pipeline/shared.py

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterable, List, Sequence, Union

from ourplanet.logging.logger import setup_logger
from ourplanet.models.category import Category
from ourplanet.models.snapshot import Snapshot, SnapshotUpdate
from ourplanet.pipeline.download_pipeline import (
    DEFAULT_MAX_CONCURRENCY,
    FetchEvents,
    merge_scan,
)
from ourplanet.progress.reporter import ProgressReporter
from ourplanet.progress.sink import ResultSink

log = setup_logger(__name__)

CategorySource = Union[Sequence[Category], Callable[[], Awaitable[List[Category]]]]
SnapshotCallback = Callable[[Snapshot], None]


class SharedDownload:
    """
    One pipeline execution shared by every consumer.

    Snapshot callbacks, sinks and progress reporters all attach to the same
    instance. ``run`` starts the execution on first call; later calls await
    the same task, so each category is fetched once however many consumers
    there are. Late subscribers are replayed the latest update.
    """

    def __init__(
        self,
        categories: CategorySource,
        fetch: FetchEvents,
        *,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ):
        self._categories = categories
        self._fetch = fetch
        self._max_concurrency = max_concurrency

        self._snapshot_callbacks: List[SnapshotCallback] = []
        self._sinks: List[ResultSink] = []
        self._reporters: List[ProgressReporter] = []

        self._task: asyncio.Future | None = None
        self.latest: SnapshotUpdate | None = None
        self.done = False

    # -----------------------------
    # Consumers
    # -----------------------------

    def subscribe_snapshots(self, callback: SnapshotCallback) -> None:
        self._snapshot_callbacks.append(callback)
        if self.latest is not None:
            callback(self.latest.snapshot)

    def subscribe_sink(self, sink: ResultSink) -> None:
        self._sinks.append(sink)
        self.subscribe_snapshots(sink.publish)

    def subscribe_progress(self, reporter: ProgressReporter) -> None:
        self._reporters.append(reporter)
        if self.latest is not None and not self.latest.is_initial:
            reporter.on_progress(self.latest.completed, self.latest.total)
        if self.done:
            reporter.on_complete()

    # -----------------------------
    # Execution
    # -----------------------------

    async def run(self) -> Snapshot:
        if self._task is None:
            self._task = asyncio.ensure_future(self._execute())
        return await asyncio.shield(self._task)

    async def _load_categories(self) -> List[Category]:
        if not callable(self._categories):
            return list(self._categories)
        try:
            return list(await self._categories())
        except Exception:
            log.exception("Loading categories failed; continuing with none")
            return []

    async def _execute(self) -> Snapshot:
        categories = await self._load_categories()

        updates = merge_scan(categories, self._fetch, max_concurrency=self._max_concurrency)
        try:
            async for update in updates:
                self._emit(update)
        finally:
            await updates.aclose()

        for sink in self._sinks:
            sink.flush()

        self.done = True
        for reporter in list(self._reporters):
            try:
                reporter.on_complete()
            except Exception:
                log.exception("Progress reporter %r failed on completion", reporter)

        if self.latest is None:
            return tuple(categories)
        return self.latest.snapshot

    def _emit(self, update: SnapshotUpdate) -> None:
        self.latest = update

        for callback in list(self._snapshot_callbacks):
            try:
                callback(update.snapshot)
            except Exception:
                log.exception("Snapshot subscriber %r failed", callback)

        if update.is_initial:
            return
        for reporter in list(self._reporters):
            try:
                reporter.on_progress(update.completed, update.total)
            except Exception:
                log.exception("Progress reporter %r failed", reporter)


async def run_download(
    categories: CategorySource,
    fetch: FetchEvents,
    *,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    sinks: Iterable[ResultSink] = (),
    reporters: Iterable[ProgressReporter] = (),
) -> Snapshot:
    download = SharedDownload(categories, fetch, max_concurrency=max_concurrency)
    for sink in sinks:
        download.subscribe_sink(sink)
    for reporter in reporters:
        download.subscribe_progress(reporter)
    return await download.run()
