# ourplanet/parse/event.py

from datetime import datetime
from typing import Any, Iterable, List, Optional

from ourplanet.errors import ParseError
from ourplanet.logging.logger import setup_logger
from ourplanet.models.event import Event
from ourplanet.parse.category import clean_id, clean_text
from ourplanet.utils.time import parse_timestamp

log = setup_logger(__name__)


def extract_category_ids(raw_categories: Any) -> frozenset:
    # accepts [{"id": 8, "title": "Wildfires"}] as well as plain ["8"]
    if not isinstance(raw_categories, list):
        return frozenset()

    ids = set()
    for item in raw_categories:
        if isinstance(item, dict):
            item = item.get("id")
        cid = clean_id(item)
        if cid:
            ids.add(cid)
    return frozenset(ids)


def extract_date(raw: dict) -> Optional[datetime]:
    date = parse_timestamp(raw.get("date"))
    if date is not None:
        return date

    geometries = raw.get("geometries")
    if isinstance(geometries, list):
        for geometry in geometries:
            if isinstance(geometry, dict):
                date = parse_timestamp(geometry.get("date"))
                if date is not None:
                    return date
    return None


def parse_event(raw: Any) -> Event:
    if not isinstance(raw, dict):
        raise ParseError("event", f"expected object, got {type(raw).__name__}")

    event_id = clean_id(raw.get("id"))
    if not event_id:
        raise ParseError("event", "missing id")

    title = clean_text(raw.get("title"))
    if not title:
        raise ParseError("event", f"missing title (id={event_id})")

    categories = extract_category_ids(raw.get("categories"))
    if not categories:
        raise ParseError("event", f"no categories (id={event_id})")

    date = extract_date(raw)
    if date is None:
        raise ParseError("event", f"no usable date (id={event_id})")

    closed_raw = raw.get("closed")
    closed = parse_timestamp(closed_raw)
    if closed_raw is not None and closed is None:
        raise ParseError("event", f"bad closed timestamp {closed_raw!r} (id={event_id})")

    return Event(
        id=event_id,
        title=title,
        date=date,
        closed=closed,
        categories=categories,
        description=clean_text(raw.get("description")),
        link=raw.get("link") or None,
    )


def parse_events(raws: Iterable[Any]) -> List[Event]:
    events: List[Event] = []
    dropped = 0

    for raw in raws:
        try:
            events.append(parse_event(raw))
        except ParseError as e:
            dropped += 1
            log.debug("Dropping event record: %s", e)

    if dropped:
        log.warning("Dropped %d malformed event record(s)", dropped)

    log.debug("Parsed %d events", len(events))
    return events
