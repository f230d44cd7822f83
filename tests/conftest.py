import asyncio
import os
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, List

os.environ.setdefault("OURPLANET_LOG_FILE", "0")

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from ourplanet.config.client import ClientConfig
from ourplanet.models.category import Category
from ourplanet.models.event import Event


def make_event(event_id: str, *categories: str, day: int = 1, closed: bool = False) -> Event:
    return Event(
        id=event_id,
        title=f"Event {event_id}",
        date=datetime(2024, 1, day, tzinfo=timezone.utc),
        closed=datetime(2024, 2, 1, tzinfo=timezone.utc) if closed else None,
        categories=frozenset(categories),
    )


def make_category(category_id: str, name: str | None = None, events=()) -> Category:
    return Category(id=category_id, name=name or category_id.title(), events=tuple(events))


def raw_event(event_id: str, *categories: Any, date: str = "2024-01-01T00:00:00Z", closed=None) -> Dict[str, Any]:
    return {
        "id": event_id,
        "title": f"Event {event_id}",
        "description": "",
        "link": f"https://eonet.gsfc.nasa.gov/api/v2.1/events/{event_id}",
        "categories": [{"id": c, "title": str(c)} for c in categories],
        "closed": closed,
        "geometries": [{"date": date, "type": "Point", "coordinates": [0.0, 0.0]}],
    }


class FakeEonet:
    """In-process stand-in for the EONET API, served by aiohttp."""

    def __init__(
        self,
        categories: List[Dict[str, Any]],
        events: Dict[str, Dict[str, List[Dict[str, Any]]]] | None = None,
        *,
        delay: float = 0.01,
    ):
        self.categories = categories
        # category id -> {"open": [...], "closed": [...]}
        self.events = events or {}
        self.delay = delay
        self.requests: Counter = Counter()
        self.in_flight = 0
        self.max_in_flight = 0

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/api/categories", self.handle_categories)
        app.router.add_get("/api/categories/{id}", self.handle_category_events)
        app.router.add_get("/api/events", self.handle_events)
        return app

    async def handle_categories(self, request: web.Request) -> web.Response:
        self.requests["categories"] += 1
        return web.json_response({"title": "EONET Event Categories", "categories": self.categories})

    async def handle_category_events(self, request: web.Request) -> web.Response:
        category_id = request.match_info["id"]
        status = request.query.get("status", "open")
        self.requests[(category_id, status)] += 1

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1

        events = self.events.get(category_id, {}).get(status, [])
        return web.json_response({"title": category_id, "events": events})

    async def handle_events(self, request: web.Request) -> web.Response:
        status = request.query.get("status", "open")
        self.requests[("events", status)] += 1
        events = [e for by_status in self.events.values() for e in by_status.get(status, [])]
        return web.json_response({"title": "EONET Events", "events": events})


async def serve(app: web.Application, fn):
    """Run ``fn(session, config)`` against ``app`` on a local port."""
    server = TestServer(app)
    await server.start_server()
    try:
        config = ClientConfig(api_base=str(server.make_url("/api")), timeout_seconds=5)
        async with aiohttp.ClientSession() as session:
            return await fn(session, config)
    finally:
        await server.close()


@pytest.fixture
def drought_flood() -> FakeEonet:
    return FakeEonet(
        categories=[
            {"id": "drought", "title": "Drought", "description": "Long lasting absence of precipitation"},
            {"id": "flood", "title": "Floods", "description": "Inundation of water"},
        ],
        events={
            "drought": {"open": [raw_event("EONET_1", "drought")]},
            "flood": {"open": [raw_event("EONET_2", "drought", "flood", date="2024-01-05T00:00:00Z")]},
        },
    )
