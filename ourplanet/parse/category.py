# ourplanet/parse/category.py

from typing import Any, Iterable, List

from ourplanet.errors import ParseError
from ourplanet.logging.logger import setup_logger
from ourplanet.models.category import Category

log = setup_logger(__name__)


# -----------------------------
# Normalization helpers
# -----------------------------

def clean_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def clean_id(value: Any) -> str:
    # EONET v2.1 hands out integer category ids; v3 uses slugs
    if isinstance(value, bool) or value is None:
        return ""
    if isinstance(value, (int, str)):
        return str(value).strip()
    return ""


# -----------------------------
# Record -> model
# -----------------------------

def parse_category(raw: Any) -> Category:
    if not isinstance(raw, dict):
        raise ParseError("category", f"expected object, got {type(raw).__name__}")

    category_id = clean_id(raw.get("id"))
    if not category_id:
        raise ParseError("category", "missing id")

    name = clean_text(raw.get("title"))
    if not name:
        raise ParseError("category", f"missing title (id={category_id})")

    return Category(
        id=category_id,
        name=name,
        description=clean_text(raw.get("description")),
        link=raw.get("link") or None,
    )


def parse_categories(raws: Iterable[Any]) -> List[Category]:
    """Parse every record, dropping the malformed ones. Result is sorted by name."""
    categories: List[Category] = []
    dropped = 0

    for raw in raws:
        try:
            categories.append(parse_category(raw))
        except ParseError as e:
            dropped += 1
            log.debug("Dropping category record: %s", e)

    if dropped:
        log.warning("Dropped %d malformed category record(s)", dropped)

    categories.sort(key=lambda c: c.name)
    log.debug("Parsed %d categories", len(categories))
    return categories
