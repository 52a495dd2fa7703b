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
"""VAX B2B session handling: login and listing retrieval over httpx."""

import logging
import time

import httpx
from bs4 import BeautifulSoup

from vax_scraper.config import ScraperConfig
from vax_scraper.encoding import decode_document
from vax_scraper.extraction import extract_products
from vax_scraper.models import ProductRecord

logger = logging.getLogger(__name__)

PAGE_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Cache-Control": "max-age=0",
}

# Text found on pages only shown to a logged in user
LOGGED_IN_MARKERS = ("product/list", "Log Out", "Logout")
PRICE_LIST_MARKER = "Gross list price"


class ScraperError(Exception):
    """Base class for scraper failures."""


class LoginError(ScraperError):
    """Raised when logging in to the VAX system fails."""


class RequestFailedError(ScraperError):
    """Raised when a request still fails after all retries."""


def hidden_form_fields(html: str) -> dict[str, str]:
    """Collect the hidden inputs of every form in a page.

    Args:
        html: Page HTML.

    Returns:
        Mapping of input name to value, for inputs that have a name.
    """
    fields = {}
    soup = BeautifulSoup(html, "html.parser")
    for form in soup.find_all("form"):
        for field in form.find_all("input", type="hidden"):
            name = field.get("name")
            if name:
                fields[name] = field.get("value", "")
    return fields


class VaxScraper:
    """Scraper for the VAX B2B product listing."""

    def __init__(
        self,
        config: ScraperConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the scraper with an HTTPX client.

        Args:
            config: Settings for this run (defaults to ScraperConfig.from_env()).
            transport: Optional httpx transport, used instead of the network.
        """
        self.config = config or ScraperConfig.from_env()
        self.logged_in = False
        self.client = httpx.Client(
            timeout=self.config.timeout,
            follow_redirects=True,
            verify=self.config.verify_ssl,
            transport=transport,
            headers={
                "User-Agent": self.config.user_agent,
                "Accept-Language": "pl-PL,pl;q=0.9,en;q=0.8",
            },
        )
        logger.debug("VAX scraper initialized for %s", self.config.base_url)

    def __enter__(self) -> "VaxScraper":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - close the client."""
        self.close()

    def close(self) -> None:
        """Close the httpx client and drop the session cookies."""
        self.client.cookies.clear()
        self.client.close()

    def request(
        self,
        method: str,
        url: str,
        data: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        allow_auth_errors: bool = False,
    ) -> str:
        """Make a request, retrying with a fixed delay on failure.

        Args:
            method: HTTP method.
            url: Target URL.
            data: Form fields to send in the body.
            headers: Extra request headers.
            allow_auth_errors: Accept a 401 response as a valid page.

        Returns:
            The decoded response body.

        Raises:
            RequestFailedError: If every attempt failed.
        """
        retries = self.config.max_retries
        reason = ""

        for attempt in range(1, retries + 1):
            try:
                response = self.client.request(method, url, data=data, headers=headers)
            except httpx.RequestError as e:
                reason = str(e) or type(e).__name__
                logger.warning("Request failed (attempt %d/%d): %s", attempt, retries, reason)
            else:
                status = response.status_code
                if status < 400 or (allow_auth_errors and status == 401):
                    return decode_document(response.content)
                reason = f"HTTP error {status}"
                logger.warning(
                    "HTTP error %d for URL %s (attempt %d/%d)", status, url, attempt, retries
                )

            if attempt < retries:
                time.sleep(self.config.retry_delay)

        raise RequestFailedError(f"Request to {url} failed after {retries} attempts: {reason}")

    def login(self) -> None:
        """Log in to the VAX system.

        Raises:
            LoginError: If the credentials are missing or rejected, or the
                login could not be confirmed.
            RequestFailedError: If the site could not be reached.
        """
        email = self.config.email
        password = self.config.password.get_secret_value()
        if not email or not password:
            raise LoginError("No credentials configured (set VAX_EMAIL and VAX_PASSWORD)")

        logger.info("Attempting to login to VAX system...")
        login_url = self.config.login_url

        # The login page sets the session cookie and may carry a CSRF token
        login_page = self.request("GET", login_url, headers=PAGE_HEADERS, allow_auth_errors=True)
        form = hidden_form_fields(login_page)
        logger.debug("Login form hidden fields: %s", ", ".join(form) or "none")

        form.update(
            {
                "security_username": email,
                "security_password": password,
                "remember_me": "1",
                "login": "1",
            }
        )

        logger.info("Submitting login form with email: %s", email)
        response = self.request(
            "POST",
            login_url,
            data=form,
            headers={**PAGE_HEADERS, "Origin": self.config.base_url, "Referer": login_url},
            allow_auth_errors=True,
        )

        if "security/login" in response and "error" in response:
            raise LoginError("Login failed - invalid credentials or blocked")

        if any(marker in response for marker in LOGGED_IN_MARKERS):
            self.logged_in = True
            logger.info("Successfully logged in to VAX system")
            return

        # No marker on the landing page, check a page that needs a session
        listing = self.request("GET", self.config.product_list_url())
        if PRICE_LIST_MARKER in listing:
            self.logged_in = True
            logger.info("Login verified - can access product pages")
            return

        raise LoginError("Login status unclear - please check credentials")

    def fetch_listing(self, category_id: int) -> str:
        """Fetch the full product listing of a category from the AJAX endpoint.

        Args:
            category_id: VAX product category ID.

        Returns:
            The listing HTML.

        Raises:
            ScraperError: If not logged in or the response is empty.
        """
        if not self.logged_in:
            raise ScraperError("Must be logged in before scraping")

        logger.info("Loading category %s from AJAX endpoint", category_id)
        headers = {
            "X-Requested-With": "XMLHttpRequest",
            "Accept": "application/json, text/html, */*; q=0.01",
            "Referer": self.config.product_list_url(category_id),
        }
        html = self.request(
            "POST",
            self.config.ajax_url,
            data={"productcategoryid": str(category_id)},
            headers=headers,
        )
        if not html.strip():
            raise ScraperError(f"Empty listing response for category {category_id}")

        logger.info("AJAX response received, size: %d characters", len(html))
        return html

    def scrape_category(self, category_id: int) -> list[ProductRecord]:
        """Fetch a category listing and extract its products.

        Args:
            category_id: VAX product category ID.

        Returns:
            Product records, possibly empty.
        """
        html = self.fetch_listing(category_id)
        return extract_products(html, category_id)
