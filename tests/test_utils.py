"""Tests for the polling primitive and URL / text helpers."""

import asyncio
import time

import pytest

from authscraper.utils import (
    absolute_http_url,
    clean_text,
    hostname_of,
    looks_like_login_url,
    poll_until,
    truncate,
    urls_match,
)


# ====================================================================
# poll_until
# ====================================================================

class TestPollUntil:

    def test_returns_first_truthy_value(self):
        calls = []

        async def check():
            calls.append(1)
            return "found" if len(calls) == 3 else None

        result = asyncio.run(poll_until(check, interval_s=0.001, timeout_s=1.0))
        assert result == "found"
        assert len(calls) == 3

    def test_max_attempts_budget(self):
        calls = []

        async def check():
            calls.append(1)
            return False

        result = asyncio.run(poll_until(check, interval_s=0, max_attempts=5))
        assert result is None
        assert len(calls) == 5

    def test_timeout_is_honoured_without_overshoot(self):
        async def never():
            return False

        start = time.monotonic()
        result = asyncio.run(poll_until(never, interval_s=0.05, timeout_s=0.2))
        elapsed = time.monotonic() - start
        assert result is None
        assert 0.19 <= elapsed < 0.2 + 0.05 + 0.1

    def test_checks_once_more_at_the_deadline(self):
        loop_times = []

        async def check():
            loop_times.append(asyncio.get_running_loop().time())
            return False

        async def run():
            start = asyncio.get_running_loop().time()
            await poll_until(check, interval_s=0.08, timeout_s=0.1)
            return start

        start = asyncio.run(run())
        # ticks at ~0, ~0.08, and the final one at the 0.1 deadline
        assert 3 <= len(loop_times) <= 4
        assert loop_times[-1] - start >= 0.095

    def test_budget_required(self):
        async def check():
            return True

        with pytest.raises(ValueError):
            asyncio.run(poll_until(check, interval_s=0.1))


# ====================================================================
# URL helpers
# ====================================================================

class TestUrlsMatch:

    @pytest.mark.parametrize("current, target", [
        ("https://example.com/profile", "https://example.com/profile"),
        ("https://www.example.com/profile", "https://example.com/profile"),
        ("http://example.com/profile", "https://example.com/profile"),
        ("https://example.com/profile/", "https://example.com/profile"),
        ("https://EXAMPLE.com/profile#about", "https://example.com/profile"),
        ("https://example.com/p?b=2&a=1", "https://example.com/p?a=1&b=2"),
        ("https://example.com:443/p", "https://example.com/p"),
        ("https://example.com", "https://example.com/"),
    ])
    def test_equivalent_urls(self, current, target):
        assert urls_match(current, target)

    @pytest.mark.parametrize("current, target", [
        ("https://example.com/profile/edit", "https://example.com/profile"),
        ("https://example.com/profile", "https://example.com/profile/edit"),
        ("https://example.com/p?a=1", "https://example.com/p?a=2"),
        ("https://example.com/p", "https://example.com/p?a=1"),
        ("https://other.com/profile", "https://example.com/profile"),
        ("https://example.com:8443/p", "https://example.com/p"),
        ("about:blank", "https://example.com/"),
        ("", "https://example.com/"),
    ])
    def test_different_pages(self, current, target):
        assert not urls_match(current, target)

    def test_bad_port_does_not_raise(self):
        assert not urls_match("https://example.com:99999/", "https://example.com/")


class TestLoginUrlHeuristic:

    @pytest.mark.parametrize("url", [
        "https://github.com/login",
        "https://www.linkedin.com/uas/login?session_redirect=x",
        "https://accounts.google.com/ServiceLogin",
        "https://login.live.com/",
        "https://www.facebook.com/checkpoint/?next",
        "https://example.com/auth/callback",
    ])
    def test_login_like(self, url):
        assert looks_like_login_url(url)

    @pytest.mark.parametrize("url", [
        "https://github.com/",
        "https://www.linkedin.com/feed/",
        "https://example.com/profile",
    ])
    def test_not_login_like(self, url):
        assert not looks_like_login_url(url)


class TestAbsoluteHttpUrl:

    def test_relative_resolved(self):
        assert absolute_http_url("/img/a.png", "https://example.com/p/q") == \
            "https://example.com/img/a.png"
        assert absolute_http_url("b.png", "https://example.com/p/q") == \
            "https://example.com/p/b.png"

    def test_protocol_relative(self):
        assert absolute_http_url("//cdn.example.com/x.js", "https://example.com/") == \
            "https://cdn.example.com/x.js"

    @pytest.mark.parametrize("value", [
        "", "   ", "javascript:void(0)", "mailto:a@b.c", "tel:123",
        "data:image/png;base64,AAAA", "ftp://example.com/file",
    ])
    def test_non_http_dropped(self, value):
        assert absolute_http_url(value, "https://example.com/") is None


class TestTextHelpers:

    def test_clean_text(self):
        assert clean_text("  a \n\t b   c ") == "a b c"
        assert clean_text("") == ""
        assert clean_text(None) == ""

    def test_truncate(self):
        assert truncate("abcdef", 3) == "abc"
        assert truncate("abc", 10) == "abc"

    def test_hostname_of(self):
        assert hostname_of("https://WWW.Example.com:8080/x") == "example.com"
        assert hostname_of("nonsense") == ""
