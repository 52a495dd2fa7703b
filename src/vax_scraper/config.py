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
"""Configuration for the VAX scraper."""

import os
from collections.abc import Mapping
from pathlib import Path

import yaml
from furl import furl
from pydantic import BaseModel, Field, SecretStr

DEFAULT_BASE_URL = "https://b2b.waks.pl"
DEFAULT_CATEGORY_ID = 1395
DEFAULT_FALLBACK_CATEGORY_IDS = [1, 2, 3, 5, 10, 20, 50, 100]
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/91.0.4472.124 Safari/537.36"
)

LOGIN_PATH = "/security/login"
AJAX_LIST_PATH = "/product/list/ajax"
PRODUCT_LIST_PATH = "/product/list/page/1"

# Environment variable -> config field
ENV_VARS = {
    "VAX_BASE_URL": "base_url",
    "VAX_EMAIL": "email",
    "VAX_PASSWORD": "password",
    "VAX_CATEGORY_ID": "category_id",
    "VAX_TIMEOUT": "timeout",
    "VAX_MAX_RETRIES": "max_retries",
    "VAX_VERIFY_SSL": "verify_ssl",
}


def _env_values(environ: Mapping[str, str] | None) -> dict[str, str]:
    if environ is None:
        environ = os.environ
    return {field: environ[var] for var, field in ENV_VARS.items() if environ.get(var)}


class ScraperConfig(BaseModel):
    """Settings for one scraper run."""

    base_url: str = DEFAULT_BASE_URL
    email: str = ""
    password: SecretStr = SecretStr("")
    category_id: int = DEFAULT_CATEGORY_ID
    fallback_category_ids: list[int] = Field(
        default_factory=lambda: list(DEFAULT_FALLBACK_CATEGORY_IDS)
    )
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = Field(default=30.0, gt=0)
    max_retries: int = Field(default=3, ge=1)
    retry_delay: float = Field(default=2.0, ge=0)
    verify_ssl: bool = True

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ScraperConfig":
        """Build a configuration from VAX_* environment variables.

        Args:
            environ: Mapping to read instead of os.environ.

        Returns:
            A validated ScraperConfig.
        """
        return cls(**_env_values(environ))

    @classmethod
    def from_yaml(
        cls, path: str | Path, environ: Mapping[str, str] | None = None
    ) -> "ScraperConfig":
        """Load a configuration file, letting VAX_* variables override it.

        Args:
            path: YAML file holding a mapping of config fields.
            environ: Mapping to read instead of os.environ.

        Returns:
            A validated ScraperConfig.

        Raises:
            ValueError: If the file is not valid YAML or does not hold a mapping.
        """
        with open(path, encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Cannot parse configuration file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {path} must contain a mapping")

        return cls(**{**data, **_env_values(environ)})

    def _url(self, path: str) -> furl:
        url = furl(self.base_url)
        url.path = path
        return url

    @property
    def login_url(self) -> str:
        return str(self._url(LOGIN_PATH))

    @property
    def ajax_url(self) -> str:
        return str(self._url(AJAX_LIST_PATH))

    def product_list_url(self, category_id: int | None = None) -> str:
        """URL of the first listing page of a category."""
        url = self._url(PRODUCT_LIST_PATH)
        url.args["productcategoryid"] = str(category_id or self.category_id)
        return str(url)

    def categories(self) -> list[int]:
        """Category IDs to try, the configured one first."""
        ids = [self.category_id]
        ids.extend(i for i in self.fallback_category_ids if i not in ids)
        return ids
