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
"""CSV and console output of scraped products."""

import csv
import logging
import sys
from collections.abc import Sequence

from rich.console import Console
from rich.table import Table

from vax_scraper.encoding import truncate_description
from vax_scraper.models import ProductRecord

logger = logging.getLogger(__name__)

CSV_HEADER = [
    "Product Code",
    "Name",
    "zakup",
    "Gross Price (PLN)",
    "Currency",
    "Availability",
    "Scraped At",
]

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Currency words removed from descriptions, corrupted form included
DESCRIPTION_CURRENCY_WORDS = ("zł", "zÅ", "PLN")

TABLE_DESCRIPTION_LENGTH = 50


def _sanitize(text: str, comma: str) -> str:
    """Replace characters that would need CSV quoting."""
    return (
        text.replace(",", comma)
        .replace('"', "'")
        .replace("\r", " ")
        .replace("\n", " ")
    )


def csv_row(product: ProductRecord) -> list[str]:
    """Format one product as a list of CSV cells.

    Args:
        product: Product to format.

    Returns:
        Cells in CSV_HEADER order.
    """
    description = _sanitize(product.description, ".")
    for word in DESCRIPTION_CURRENCY_WORDS:
        description = description.replace(word, "")
    description = " ".join(description.split())

    return [
        _sanitize(product.product_code, "-"),
        _sanitize(product.category, "-"),
        description,
        f"{product.gross_price:.2f}",
        product.price_currency,
        _sanitize(product.availability, " "),
        product.scraped_at.strftime(TIMESTAMP_FORMAT),
    ]


def write_csv(products: Sequence[ProductRecord], output_path: str) -> None:
    """Write products to a comma separated file.

    Args:
        products: Products to write.
        output_path: File path or '-' for stdout.
    """
    if not products:
        logger.warning("No products to save to %s", output_path)
        return

    rows = [CSV_HEADER] + [csv_row(product) for product in products]

    if output_path == "-":
        csv.writer(sys.stdout, lineterminator="\n").writerows(rows)
    else:
        with open(output_path, "w", encoding="utf-8", newline="") as f:
            csv.writer(f, lineterminator="\n").writerows(rows)
        logger.info("Saved %d products to CSV: %s", len(products), output_path)


def print_products_table(products: Sequence[ProductRecord], console: Console) -> None:
    """Print a Rich table of scraped products.

    Args:
        products: Products to show.
        console: Rich console for output.
    """
    if not products:
        console.print("No products found.")
        return

    average = sum(product.gross_price for product in products) / len(products)

    table = Table(
        title="VAX B2B Products",
        caption=f"Total products: {len(products)} | Average price: {average:.2f} PLN",
    )
    table.add_column("Product Code", style="cyan")
    table.add_column("Category")
    table.add_column("Description", style="green")
    table.add_column("Price (PLN)", style="yellow", justify="right")
    table.add_column("Availability", style="blue")

    for product in products:
        table.add_row(
            product.product_code,
            product.category,
            truncate_description(product.description, TABLE_DESCRIPTION_LENGTH),
            f"{product.gross_price:.2f}",
            product.availability,
        )

    console.print(table)
