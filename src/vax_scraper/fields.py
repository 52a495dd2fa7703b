"""Conversion of listing table cells into product records."""

import logging
import re
from datetime import datetime

from vax_scraper.models import ProductRecord

logger = logging.getLogger(__name__)

MIN_CELLS = 5

# Cell positions in a listing row; cell 0 holds the checkbox/icon column
CODE_CELL = 1
CATEGORY_CELL = 2
DESCRIPTION_CELL = 3
PRICE_CELL = 4
AVAILABILITY_CELL = 5

# "zł" as written by the site and as it looks after the usual corruption
CURRENCY_SUFFIXES = ("zĹ‚", "zÅ‚", "zÅ", "zł")

_NON_NUMERIC_RE = re.compile(r"[^\d,.]")


def parse_price(text: str) -> float | None:
    """Parse a gross price out of a price cell.

    Args:
        text: Cell text such as "1 234,50 zł" or "12.50 PLN".

    Returns:
        The price, or None if no valid number is left after cleaning.
    """
    for suffix in CURRENCY_SUFFIXES:
        text = text.replace(suffix, "")

    number = _NON_NUMERIC_RE.sub("", text).replace(",", ".")
    if not number:
        return None

    try:
        price = float(number)
    except ValueError:
        logger.debug("Unparseable price: %r", text)
        return None

    return price


def parse_row(cells: list[str], scraped_at: datetime | None = None) -> ProductRecord | None:
    """Build a product record from the cell texts of one listing row.

    The texts are taken as they are; repairing description and availability
    is left to the caller.

    Args:
        cells: Ordered, stripped cell texts of the row.
        scraped_at: Timestamp to stamp the record with (defaults to now).

    Returns:
        A ProductRecord, or None if the row is too short, has no product
        code or has no valid price.
    """
    if len(cells) < MIN_CELLS:
        return None

    product_code = cells[CODE_CELL].strip()
    if not product_code:
        return None

    price = parse_price(cells[PRICE_CELL])
    if price is None:
        return None

    availability = cells[AVAILABILITY_CELL] if len(cells) > AVAILABILITY_CELL else ""

    values = {
        "product_code": product_code,
        "category": cells[CATEGORY_CELL].strip(),
        "description": cells[DESCRIPTION_CELL],
        "gross_price": price,
        "availability": availability,
    }
    if scraped_at is not None:
        values["scraped_at"] = scraped_at

    return ProductRecord(**values)
