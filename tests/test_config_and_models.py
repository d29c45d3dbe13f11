"""Tests for ScraperRunConfig factories and the result model."""

import argparse

import pytest

from authscraper.errors import LoginFatalError, NavigationError
from authscraper.models import (
    CookieRecord,
    Credentials,
    ExtractedDocument,
    LoginOutcome,
    LoginStatus,
    ScrapeResult,
)
from authscraper.run_config import ScraperRunConfig


class TestRunConfig:

    def test_defaults(self):
        cfg = ScraperRunConfig()
        assert cfg.max_images == 20
        assert cfg.max_links == 50
        assert cfg.max_text_chars == 100_000
        assert cfg.min_post_submit_wait_s == 8.0
        assert cfg.headless is True

    def test_from_env(self):
        cfg = ScraperRunConfig.from_env({
            "SCRAPER_HEADLESS": "false",
            "SCRAPER_MAX_IMAGES": "7",
            "SCRAPER_COOKIE_SETTLE_S": "0.25",
            "SCRAPER_LOCALE": "de-DE",
            "PORT": "9000",
        })
        assert cfg.headless is False
        assert cfg.max_images == 7
        assert cfg.cookie_settle_s == 0.25
        assert cfg.locale == "de-DE"
        assert cfg.port == 9000

    def test_fractional_millisecond_fields(self):
        cfg = ScraperRunConfig.from_env({
            "SCRAPER_KEYSTROKE_BASE_MS": "75.5",
            "SCRAPER_KEYSTROKE_JITTER_MS": "12.5",
            "SCRAPER_THINKING_PAUSE_MIN_MS": "100.25",
            "SCRAPER_THINKING_PAUSE_MAX_MS": "300",
        })
        assert cfg.keystroke_base_ms == 75.5
        assert cfg.keystroke_jitter_ms == 12.5
        assert cfg.thinking_pause_min_ms == 100.25
        assert cfg.thinking_pause_max_ms == 300.0

    def test_invalid_env_value_ignored(self, caplog):
        cfg = ScraperRunConfig.from_env({"SCRAPER_MAX_LINKS": "lots"})
        assert cfg.max_links == 50
        assert "SCRAPER_MAX_LINKS" in caplog.text

    def test_from_cli_args(self):
        args = argparse.Namespace(headed=True, host=None, port=8080,
                                  max_text_chars=500, fast=False)
        cfg = ScraperRunConfig.from_cli_args(args, base=ScraperRunConfig())
        assert cfg.headless is False
        assert cfg.port == 8080
        assert cfg.max_text_chars == 500

    def test_fast_scales_only_delays(self):
        args = argparse.Namespace(fast=True)
        cfg = ScraperRunConfig.from_cli_args(args, base=ScraperRunConfig())
        assert cfg.login_page_settle_s == pytest.approx(2.5 * 0.25)
        assert cfg.field_timeout_ms == 15_000
        assert cfg.max_images == 20

    def test_frozen(self):
        with pytest.raises(AttributeError):
            ScraperRunConfig().max_images = 1


class TestCredentials:

    def test_cookie_from_dict(self):
        cookie = CookieRecord.from_dict({"name": "sid", "value": 1, "domain": "b.c", "path": ""})
        assert cookie == CookieRecord("sid", "1", "b.c", None)

    def test_secrets_not_in_repr(self):
        creds = Credentials(
            email="a@b.c", password="hunter2",
            cookies=(CookieRecord("sid", "topsecret", "b.c"),),
        )
        assert "hunter2" not in repr(creds)
        assert "a@b.c" not in repr(creds)
        assert "topsecret" not in repr(creds.cookies[0])


class TestScrapeResult:

    def test_no_login(self):
        result = ScrapeResult(url="https://example.com/", document=ExtractedDocument(title="t"))
        data = result.to_dict()
        assert data["login_attempted"] is False
        assert data["login_success"] is None
        assert data["platform_detected"] is None
        assert data["requires_2fa"] is None
        assert data["images"] == [] and data["links"] == []

    @pytest.mark.parametrize("outcome, success", [
        (LoginOutcome.authenticated("github"), True),
        (LoginOutcome.rejected("github"), False),
        (LoginOutcome.inconclusive("github"), False),
    ])
    def test_login_success_follows_outcome(self, outcome, success):
        result = ScrapeResult(url="u", login_attempted=True, outcome=outcome)
        assert result.login_success is success
        assert result.requires_2fa is False
        assert result.platform_detected == "github"

    def test_from_fatal_error(self):
        exc = LoginFatalError("Email field not found", login_attempted=True, platform="reddit")
        data = ScrapeResult.from_error("https://reddit.com/", exc).to_dict()
        assert data["success"] is False
        assert data["error"] == "Automatic login failed: Email field not found"
        assert data["login_success"] is False
        assert data["platform_detected"] == "reddit"
        assert data["title"] is None

    def test_from_error_without_login(self):
        data = ScrapeResult.from_error("u", NavigationError("dns")).to_dict()
        assert data["login_attempted"] is False
        assert data["login_success"] is None

    def test_blocking_outcomes(self):
        assert LoginOutcome.two_factor("x").blocks_extraction
        assert LoginOutcome.captcha("x").blocks_extraction
        assert not LoginOutcome.rejected("x").blocks_extraction
        assert LoginOutcome(LoginStatus.FATAL, "x", "r").reason == "r"
