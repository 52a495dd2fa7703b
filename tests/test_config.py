"""Tests for scraper configuration."""

import pytest
from pydantic import ValidationError

from vax_scraper.config import DEFAULT_FALLBACK_CATEGORY_IDS, ScraperConfig


class TestScraperConfig:
    def test_defaults(self):
        config = ScraperConfig()
        assert config.base_url == "https://b2b.waks.pl"
        assert config.category_id == 1395
        assert config.max_retries == 3
        assert config.retry_delay == 2.0
        assert config.verify_ssl is True

    def test_urls(self):
        config = ScraperConfig()
        assert config.login_url == "https://b2b.waks.pl/security/login"
        assert config.ajax_url == "https://b2b.waks.pl/product/list/ajax"
        assert (
            config.product_list_url(5)
            == "https://b2b.waks.pl/product/list/page/1?productcategoryid=5"
        )
        assert config.product_list_url().endswith("productcategoryid=1395")

    def test_categories_start_with_configured_one(self):
        config = ScraperConfig(category_id=2)
        ids = config.categories()
        assert ids[0] == 2
        assert ids.count(2) == 1
        assert set(ids) == set(DEFAULT_FALLBACK_CATEGORY_IDS)

    def test_from_env(self):
        config = ScraperConfig.from_env(
            {
                "VAX_EMAIL": "buyer@example.com",
                "VAX_PASSWORD": "secret",
                "VAX_CATEGORY_ID": "42",
                "VAX_VERIFY_SSL": "false",
                "VAX_TIMEOUT": "",
                "UNRELATED": "x",
            }
        )
        assert config.email == "buyer@example.com"
        assert config.password.get_secret_value() == "secret"
        assert "secret" not in repr(config)
        assert config.category_id == 42
        assert config.verify_ssl is False
        assert config.timeout == 30.0

    def test_from_env_rejects_invalid_values(self):
        with pytest.raises(ValidationError):
            ScraperConfig.from_env({"VAX_MAX_RETRIES": "0"})

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "vax.yaml"
        path.write_text(
            "email: file@example.com\n"
            "password: from-file\n"
            "category_id: 7\n"
            "fallback_category_ids: [8, 9]\n"
            "retry_delay: 0\n",
            encoding="utf-8",
        )
        config = ScraperConfig.from_yaml(path, {"VAX_PASSWORD": "from-env"})
        assert config.email == "file@example.com"
        assert config.password.get_secret_value() == "from-env"
        assert config.categories() == [7, 8, 9]
        assert config.retry_delay == 0

    def test_from_yaml_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert ScraperConfig.from_yaml(path, {}) == ScraperConfig()

    def test_from_yaml_requires_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(ValueError):
            ScraperConfig.from_yaml(path, {})

    def test_from_yaml_rejects_malformed_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("email: [unclosed\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Cannot parse configuration file"):
            ScraperConfig.from_yaml(path, {})
