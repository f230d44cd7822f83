# ourplanet/progress/sink.py

import asyncio
from typing import Callable, List

from ourplanet.logging.logger import setup_logger
from ourplanet.models.snapshot import Snapshot

log = setup_logger(__name__)

Subscriber = Callable[[Snapshot], None]


class ResultSink:
    """
    Holds the latest snapshot and hands it to subscribers.

    Publishing inside a running loop schedules a single delivery with
    ``call_soon``; snapshots published before it runs are coalesced and
    subscribers only see the newest one. ``latest`` is always current, and
    ``flush`` delivers a pending snapshot right away.
    """

    def __init__(self) -> None:
        self.latest: Snapshot = ()
        self.published = 0
        self.deliveries = 0
        self._subscribers: List[Subscriber] = []
        self._pending: asyncio.Handle | None = None

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)
        if self.published:
            callback(self.latest)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, snapshot: Snapshot) -> None:
        self.latest = snapshot
        self.published += 1

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._deliver()
            return

        if self._pending is None:
            self._pending = loop.call_soon(self._deliver)

    def flush(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._deliver()

    def _deliver(self) -> None:
        self._pending = None
        self.deliveries += 1
        snapshot = self.latest

        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                log.exception("Snapshot subscriber %r failed", callback)
