# ==============================================================================
#  Copyright 2025 Matthew Pounsett <matt@conundrum.com>
#
#  Licensed under the Apache License, Version 2.0 (the "License");
#  you may not use this file except in compliance with the License.
#  You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
#  Unless required by applicable law or agreed to in writing, software
#  distributed under the License is distributed on an "AS IS" BASIS,
#  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#  See the License for the specific language governing permissions and
#  limitations under the License.
# ==============================================================================
"""Location of product rows in VAX listing HTML.

The listing markup is not consistent between categories and site updates,
so rows are looked up with a list of matchers tried in order.  The first
matcher that finds anything wins.
"""

import logging
import re
from collections.abc import Callable

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

CURRENCY_MARKERS = ("zł", "pln")

# Phrases the site shows for a category without products
EMPTY_CATEGORY_MARKERS = ("brak produktów", "no products", "wybierz kategorię")

PRICE_MENTION_RE = re.compile(r"\d+[,.]?\d*\s*(?:zł|pln)", re.IGNORECASE)


def _cells(row: Tag) -> list[Tag]:
    return row.find_all("td", recursive=False)


def _table_rows(soup: BeautifulSoup) -> list[Tag]:
    """Rows with more than one cell, skipping the header row of each table."""
    rows = []
    for table in soup.find_all("table"):
        # Rows of nested tables are handled when their own table comes up
        own_rows = [row for row in table.find_all("tr") if row.find_parent("table") is table]
        rows.extend(row for row in own_rows[1:] if len(_cells(row)) > 1)
    return rows


def _priced_rows(soup: BeautifulSoup) -> list[Tag]:
    """Rows with a cell mentioning the currency, wherever they sit."""
    rows = []
    for row in soup.find_all("tr"):
        for cell in _cells(row):
            text = cell.get_text().casefold()
            if any(marker in text for marker in CURRENCY_MARKERS):
                rows.append(row)
                break
    return rows


def _tbody_rows(soup: BeautifulSoup) -> list[Tag]:
    return [row for row in soup.select("tbody tr") if _cells(row)]


def _footable_rows(soup: BeautifulSoup) -> list[Tag]:
    return [row for row in soup.select('table[class*="footable"] tr') if _cells(row)]


ROW_MATCHERS: list[tuple[str, Callable[[BeautifulSoup], list[Tag]]]] = [
    ("table rows", _table_rows),
    ("rows with prices", _priced_rows),
    ("tbody rows", _tbody_rows),
    ("footable rows", _footable_rows),
]


def is_empty_category(html: str) -> bool:
    """Check whether the page says the category has no products."""
    text = html.casefold()
    return any(marker in text for marker in EMPTY_CATEGORY_MARKERS)


def find_rows(soup: BeautifulSoup) -> list[Tag]:
    """Return the rows found by the first matcher that finds any.

    Args:
        soup: Parsed listing document.

    Returns:
        Matching row elements, or an empty list.
    """
    for name, matcher in ROW_MATCHERS:
        rows = matcher(soup)
        if rows:
            logger.info("Found %d rows using matcher: %s", len(rows), name)
            return rows
    return []


def extract_rows(html: str) -> list[list[str]]:
    """Extract the cell texts of every product row in a listing document.

    Args:
        html: Listing HTML as returned by the AJAX endpoint.

    Returns:
        One list of stripped cell texts per row, in document order of the
        winning matcher. Empty if nothing matched.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    rows = find_rows(soup)

    if not rows:
        if is_empty_category(html or ""):
            logger.info("Category appears to be empty or no category selected")
        else:
            mentions = PRICE_MENTION_RE.findall(html or "")
            if mentions:
                logger.warning(
                    "No product rows found, but the page has %d price mentions; "
                    "the listing markup may have changed",
                    len(mentions),
                )
            else:
                logger.info("No product rows found with any matcher")
        return []

    return [[cell.get_text().strip() for cell in _cells(row)] for row in rows]
