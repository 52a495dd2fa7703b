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
"""CLI entry point for VAX scraper."""

import argparse
import logging
import sys
from datetime import datetime

from pydantic import ValidationError
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from vax_scraper import __version__
from vax_scraper.config import ScraperConfig
from vax_scraper.output import print_products_table, write_csv
from vax_scraper.scraper import LoginError, ScraperError, VaxScraper

logger = logging.getLogger(__name__)

LATEST_OUTPUT_FILE = "awaxprices.csv"


def default_outputs(now: datetime | None = None) -> list[str]:
    """Return the CSV files written when no output is given.

    Args:
        now: Time used in the timestamped file name (defaults to now).

    Returns:
        A timestamped file name and the fixed "latest" file name.
    """
    stamp = (now or datetime.now()).strftime("%Y-%m-%d_%H-%M-%S")
    return [f"vax_prices_{stamp}.csv", LATEST_OUTPUT_FILE]


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog="vax-scraper",
        description="Log in to the VAX B2B system and export product prices to CSV.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-c",
        "--category",
        action="append",
        dest="categories",
        type=int,
        metavar="CATEGORY_ID",
        help=(
            "Category ID to scrape. Can be specified multiple times; the first "
            "category with products is used. Defaults to the configured category "
            "followed by the fallback categories."
        ),
    )
    parser.add_argument(
        "-o",
        "--output",
        action="append",
        dest="outputs",
        metavar="FILE",
        help=(
            "Output CSV file path. Use '-' for stdout. Can be specified multiple "
            f"times. Defaults to a timestamped file and {LATEST_OUTPUT_FILE}."
        ),
    )
    parser.add_argument(
        "-p",
        "--print",
        action="store_true",
        dest="print_table",
        help="Print a table of results to stdout.",
    )
    parser.add_argument(
        "--config",
        metavar="FILE",
        help="YAML configuration file. VAX_* environment variables override it.",
    )
    parser.add_argument(
        "--log-file",
        metavar="FILE",
        help="Also append log messages to FILE.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity. Use -vv for debug output.",
    )

    return parser.parse_args(args)


def setup_logging(verbosity: int, log_file: str | None = None) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbosity: Verbosity level (0=warning, 1=info, 2+=debug).
        log_file: Optional file that receives the same messages.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("[%(asctime)s] %(levelname)s: %(message)s", "%Y-%m-%d %H:%M:%S")
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        handlers=handlers,
    )


def load_config(path: str | None) -> ScraperConfig:
    """Load the run configuration from a YAML file or the environment."""
    if path:
        return ScraperConfig.from_yaml(path)
    return ScraperConfig.from_env()


def main(args: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parsed_args = parse_args(args)
    setup_logging(parsed_args.verbose, parsed_args.log_file)

    try:
        config = load_config(parsed_args.config)
    except (OSError, ValueError, ValidationError) as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    categories = parsed_args.categories or config.categories()
    outputs = parsed_args.outputs or default_outputs()

    console = Console()
    products = []

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
    )

    try:
        with progress, VaxScraper(config) as scraper:
            login_task = progress.add_task("Logging in to VAX system...", total=1)
            scraper.login()
            progress.update(login_task, completed=1)

            total = len(categories)
            for index, category_id in enumerate(categories, start=1):
                task = progress.add_task(
                    f"[{index}/{total}] Scraping category {category_id}...", total=1
                )
                try:
                    products = scraper.scrape_category(category_id)
                except ScraperError as e:
                    logger.warning("Category %s failed: %s", category_id, e)
                    continue
                finally:
                    progress.update(task, completed=1)

                if products:
                    logger.info("Found %d products in category %s", len(products), category_id)
                    break
                logger.info("No products in category %s", category_id)
    except LoginError as e:
        logger.error("Failed to login to VAX system: %s", e)
        return 1
    except ScraperError as e:
        logger.error("Scraping failed: %s", e)
        return 1

    if not products:
        logger.error(
            "No products found in any of the tested categories: %s. The account may "
            "have no access to product data, the categories may be empty, or the "
            "site structure may have changed.",
            ", ".join(str(category_id) for category_id in categories),
        )
        return 1

    if parsed_args.print_table:
        print_products_table(products, console)

    for output_path in outputs:
        try:
            write_csv(products, output_path)
        except OSError as e:
            logger.error("Cannot write output file %s: %s", output_path, e)
            return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
