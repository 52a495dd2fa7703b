"""Product extraction from a single listing document."""

import logging
from datetime import datetime

from vax_scraper.encoding import clean_description, repair_text
from vax_scraper.fields import parse_row
from vax_scraper.models import ProductRecord
from vax_scraper.rows import extract_rows

logger = logging.getLogger(__name__)


def extract_products(
    html: str, category_id: int | None = None, now: datetime | None = None
) -> list[ProductRecord]:
    """Extract product records from a listing document.

    Rows that cannot be turned into a record are dropped. An empty list is
    a normal outcome, not an error.

    Args:
        html: Listing HTML.
        category_id: Category the document belongs to, used for logging.
        now: Timestamp for the records (defaults to the current time).

    Returns:
        Product records in document order.
    """
    scraped_at = (now or datetime.now()).replace(microsecond=0)
    products = []

    for cells in extract_rows(html):
        record = parse_row(cells, scraped_at)
        if record is None:
            continue
        record.description = clean_description(record.description)
        record.availability = repair_text(record.availability)
        products.append(record)

    if category_id is not None:
        logger.info("Extracted %d products from category %s", len(products), category_id)
    else:
        logger.info("Extracted %d products", len(products))
    return products
