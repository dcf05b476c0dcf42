"""Tests for scrape settings, browser configuration and targets."""

import json

import pytest
from pydantic import ValidationError

from reviewscraper.browser_config import (
    BrowserConfig,
    DEFAULT_CONFIG,
    FAST_CONFIG,
    USER_AGENTS,
)
from reviewscraper.config import ScrapeSettings
from reviewscraper.errors import InvalidTargetError
from reviewscraper.targets import company_from_url, validate_review_url


class TestScrapeSettings:
    """Test cases for ScrapeSettings."""

    def test_defaults(self):
        settings = ScrapeSettings()
        assert settings.navigation_retries == 3
        assert settings.navigation_backoff == 5.0
        assert settings.consent_timeout == 3.0
        assert settings.pagination_settle == 3.0
        assert settings.inter_page_delay == 2.0
        assert "Access Denied" in settings.blocked_title_markers
        assert settings.max_pages is None
        assert settings.run_deadline is None

    def test_from_env(self, monkeypatch):
        """Test prefixed environment variables override defaults."""
        monkeypatch.setenv("REVIEW_SCRAPER_INTER_PAGE_DELAY", "3.5")
        monkeypatch.setenv("REVIEW_SCRAPER_NAVIGATION_RETRIES", "5")
        monkeypatch.setenv("REVIEW_SCRAPER_CHALLENGE_DETECTION", "false")
        monkeypatch.setenv("REVIEW_SCRAPER_MAX_PAGES", "4")
        monkeypatch.setenv("REVIEW_SCRAPER_BLOCKED_TITLE_MARKERS", "Denied, Captcha")

        settings = ScrapeSettings.from_env()

        assert settings.inter_page_delay == 3.5
        assert settings.navigation_retries == 5
        assert settings.challenge_detection is False
        assert settings.max_pages == 4
        assert settings.blocked_title_markers == ["Denied", "Captcha"]

    def test_from_env_ignores_bad_values(self, monkeypatch):
        monkeypatch.setenv("REVIEW_SCRAPER_NAVIGATION_RETRIES", "many")
        assert ScrapeSettings.from_env().navigation_retries == 3

    def test_from_env_none_deadline(self, monkeypatch):
        monkeypatch.setenv("REVIEW_SCRAPER_RUN_DEADLINE", "none")
        assert ScrapeSettings.from_env().run_deadline is None

    def test_file_round_trip(self, tmp_path):
        path = tmp_path / "settings.json"
        saved = ScrapeSettings(inter_page_delay=0.5, max_pages=3)
        saved.save_to_file(str(path))

        data = json.loads(path.read_text())
        assert data["scrape"]["max_pages"] == 3
        assert ScrapeSettings.from_file(str(path)) == saved

    def test_from_flat_file(self, tmp_path):
        path = tmp_path / "flat.json"
        path.write_text(json.dumps({"navigation_backoff": 1.0, "unknown": True}))
        assert ScrapeSettings.from_file(str(path)).navigation_backoff == 1.0

    def test_missing_file_gives_defaults(self, tmp_path):
        assert ScrapeSettings.from_file(str(tmp_path / "nope.json")) == ScrapeSettings()


class TestBrowserConfig:
    """Test cases for BrowserConfig."""

    def test_default_config(self):
        assert DEFAULT_CONFIG.headless is True
        assert DEFAULT_CONFIG.browser_type == "chromium"
        assert DEFAULT_CONFIG.block_resources == []

    def test_fast_config_keeps_images(self):
        assert "image" not in FAST_CONFIG.block_resources
        assert "font" in FAST_CONFIG.block_resources

    def test_timeout_bounds(self):
        with pytest.raises(ValidationError):
            BrowserConfig(default_timeout=10)

    def test_browser_type_validated(self):
        with pytest.raises(ValidationError):
            BrowserConfig(browser_type="netscape")

    def test_user_agent_selection(self):
        assert BrowserConfig(user_agent="UA/1").get_user_agent() == "UA/1"
        assert BrowserConfig(rotate_user_agent=False).get_user_agent() == USER_AGENTS[0]
        assert BrowserConfig().get_user_agent() in USER_AGENTS

    def test_model_copy_leaves_preset_untouched(self):
        config = DEFAULT_CONFIG.model_copy()
        config.headless = False
        assert DEFAULT_CONFIG.headless is True


class TestTargets:
    """Target URL validation."""

    def test_valid_url(self):
        url = validate_review_url("  https://www.trustpilot.com/review/safeledger.ae ")
        assert url == "https://www.trustpilot.com/review/safeledger.ae"

    @pytest.mark.parametrize("url", [
        None,
        "",
        "   ",
        "ftp://www.trustpilot.com/review/x.com",
        "www.trustpilot.com/review/x.com",
        "https://www.example.com/reviews/x.com",
    ])
    def test_invalid_urls(self, url):
        with pytest.raises(InvalidTargetError):
            validate_review_url(url)

    @pytest.mark.parametrize("url, company", [
        ("https://www.trustpilot.com/review/safeledger.ae", "safeledger.ae"),
        ("https://www.trustpilot.com/review/safeledger.ae?page=2", "safeledger.ae"),
        ("https://uk.trustpilot.com/review/www.example.co.uk/", "www.example.co.uk"),
        ("https://www.trustpilot.com/categories", "Unknown"),
    ])
    def test_company_from_url(self, url, company):
        assert company_from_url(url) == company
