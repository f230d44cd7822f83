# ourplanet/api/eonet.py

"""
EONET catalog client.

Every public ``fetch_*`` coroutine is fail-soft: transport, decoding and
validation errors are logged and turn into an empty list.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Mapping
from urllib.parse import quote, urlencode, urlsplit

import aiohttp

from ourplanet.config.client import ClientConfig
from ourplanet.errors import EOError, InvalidJSON, InvalidParameter, InvalidURL
from ourplanet.http.client import fetch_json
from ourplanet.http.headers import build_headers
from ourplanet.logging.logger import setup_logger
from ourplanet.models.category import Category
from ourplanet.models.event import Event
from ourplanet.parse.category import parse_categories
from ourplanet.parse.event import parse_events

log = setup_logger(__name__)

CATEGORIES_ENDPOINT = "/categories"
EVENTS_ENDPOINT = "/events"

# what a failed fetch collapses to
FETCH_ERRORS = (EOError, aiohttp.ClientError, asyncio.TimeoutError)


# -----------------------------
# Request building
# -----------------------------

def encode_query_value(name: str, value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise InvalidParameter(name, value)


def build_url(base: str, endpoint: str, query: Mapping[str, Any] | None = None) -> str:
    parts = urlsplit(base or "")
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise InvalidURL(endpoint)
    if not isinstance(endpoint, str) or any(ch.isspace() for ch in endpoint):
        raise InvalidURL(str(endpoint))

    url = base.rstrip("/") + "/" + endpoint.lstrip("/")

    if query:
        pairs = [(name, encode_query_value(name, value)) for name, value in query.items()]
        url = f"{url}?{urlencode(pairs)}"

    return url


def status_for(closed: bool) -> str:
    return "closed" if closed else "open"


async def request(
    session: aiohttp.ClientSession,
    endpoint: str,
    query: Mapping[str, Any] | None = None,
    *,
    config: ClientConfig,
) -> Dict[str, Any]:
    url = build_url(config.api_base, endpoint, query)
    log.debug("Requesting %s", url)
    return await fetch_json(
        session,
        url,
        build_headers(user_agent=config.user_agent),
        timeout_s=config.timeout_seconds,
    )


def _records(payload: Dict[str, Any], key: str, endpoint: str) -> List[Any]:
    raw = payload.get(key)
    if not isinstance(raw, list):
        raise InvalidJSON(endpoint)
    return raw


# -----------------------------
# Fail-soft fetchers
# -----------------------------

async def fetch_categories(
    session: aiohttp.ClientSession,
    *,
    config: ClientConfig,
) -> List[Category]:
    try:
        payload = await request(session, CATEGORIES_ENDPOINT, config=config)
        categories = parse_categories(_records(payload, "categories", CATEGORIES_ENDPOINT))
    except FETCH_ERRORS as e:
        log.warning("Category fetch failed, continuing with none: %r", e)
        return []

    log.info("Fetched %d categories", len(categories))
    return categories


async def _fetch_event_list(
    session: aiohttp.ClientSession,
    endpoint: str,
    *,
    days: int,
    closed: bool,
    config: ClientConfig,
) -> List[Event]:
    query = {"days": days, "status": status_for(closed)}
    try:
        payload = await request(session, endpoint, query, config=config)
        events = parse_events(_records(payload, "events", endpoint))
    except FETCH_ERRORS as e:
        log.warning("Event fetch failed for %s (%s): %r", endpoint, status_for(closed), e)
        return []

    log.debug("Fetched %d %s events from %s", len(events), status_for(closed), endpoint)
    return events


async def fetch_events(
    session: aiohttp.ClientSession,
    *,
    days: int,
    closed: bool,
    config: ClientConfig,
) -> List[Event]:
    """All events of the last ``days`` days with the given status."""
    return await _fetch_event_list(
        session, EVENTS_ENDPOINT, days=days, closed=closed, config=config,
    )


async def fetch_all_events(
    session: aiohttp.ClientSession,
    *,
    days: int,
    config: ClientConfig,
) -> List[Event]:
    open_events = await fetch_events(session, days=days, closed=False, config=config)
    closed_events = await fetch_events(session, days=days, closed=True, config=config)
    return open_events + closed_events


def category_endpoint(category: Category) -> str:
    return f"{CATEGORIES_ENDPOINT}/{quote(category.id, safe='')}"


async def fetch_category_events(
    session: aiohttp.ClientSession,
    category: Category,
    *,
    days: int,
    closed: bool,
    config: ClientConfig,
) -> List[Event]:
    return await _fetch_event_list(
        session, category_endpoint(category), days=days, closed=closed, config=config,
    )


async def fetch_all_category_events(
    session: aiohttp.ClientSession,
    category: Category,
    *,
    days: int,
    config: ClientConfig,
) -> List[Event]:
    """Open events followed by closed events for one category."""
    open_events = await fetch_category_events(
        session, category, days=days, closed=False, config=config,
    )
    closed_events = await fetch_category_events(
        session, category, days=days, closed=True, config=config,
    )
    log.debug(
        "Category %s: %d open, %d closed events",
        category.id, len(open_events), len(closed_events),
    )
    return open_events + closed_events


class CatalogClient:
    """
    Session-bound client. The category list is fetched at most once and the
    same list is handed to every caller.
    """

    def __init__(self, session: aiohttp.ClientSession, config: ClientConfig | None = None):
        self.session = session
        self.config = config or ClientConfig()
        self._categories: asyncio.Task | None = None

    async def categories(self) -> List[Category]:
        if self._categories is None:
            self._categories = asyncio.ensure_future(
                fetch_categories(self.session, config=self.config)
            )
        return list(await asyncio.shield(self._categories))

    async def category_events(self, category: Category) -> List[Event]:
        return await fetch_all_category_events(
            self.session, category, days=self.config.days, config=self.config,
        )

    async def events(self, days: int | None = None) -> List[Event]:
        return await fetch_all_events(
            self.session, days=days or self.config.days, config=self.config,
        )
