"""
Shared fixtures: a scriptable stand-in for Playwright's Page / BrowserContext
and a run config with every delay zeroed.

``FakePage.evaluate`` recognises the named DOM scripts by their source and
answers from ``page.handlers[name]`` (a value or a callable taking the
script argument), falling back to per-script defaults.
"""

import asyncio
from dataclasses import replace

import pytest
from playwright.async_api import Error as PlaywrightError

from authscraper.dom_scripts import SCRIPTS
from authscraper.run_config import ScraperRunConfig

_SCRIPT_BY_SOURCE = {s.source: name for name, s in SCRIPTS.items()}


class FakePage:
    def __init__(self, url="about:blank", html="<html><head></head><body></body></html>"):
        self.url = url
        self.html = html
        self.title_text = ""
        self.main_frame = object()

        self.visible = set()          # selectors IS_VISIBLE answers True for
        self.handlers = {}            # script name -> value or callable(arg)
        self.goto_errors = set()      # URLs whose goto raises

        self.visited = []
        self.clicks = []
        self.presses = []
        self.typed = []               # (selector, text)
        self.evaluated = []           # script names, in call order
        self.event_timeouts = []
        self.content_calls = 0

        self.on_click = None          # callable(selector)
        self.on_goto = None           # callable(url)
        self.press_fails = False

    # -- navigation --------------------------------------------------
    async def goto(self, url, **kwargs):
        self.visited.append(url)
        if url in self.goto_errors:
            raise PlaywrightError(f"net::ERR_NAME_NOT_RESOLVED at {url}")
        self.url = url
        if self.on_goto:
            self.on_goto(url)

    async def wait_for_event(self, event, predicate=None, timeout=None):
        self.event_timeouts.append(timeout)
        await asyncio.sleep(0)
        return self.main_frame

    # -- evaluation --------------------------------------------------
    async def evaluate(self, source, arg=None):
        name = _SCRIPT_BY_SOURCE.get(source)
        if name is None:
            raise PlaywrightError("unknown script")
        self.evaluated.append(name)

        if name in self.handlers:
            handler = self.handlers[name]
            if isinstance(handler, Exception):
                raise handler
            return handler(arg) if callable(handler) else handler
        return self._default(name, arg)

    def _default(self, name, arg):
        if name == "is_visible":
            return arg in self.visible
        if name == "type_text":
            self.typed.append((arg["selector"], arg["text"]))
            return arg["selector"] in self.visible
        if name == "has_body":
            return True
        if name == "scroll_to_bottom":
            return 1000
        if name == "scroll_to_top":
            return True
        if name in ("page_signals", "auth_state"):
            return {"url": self.url}
        if name == "submit_form":
            return False
        return None

    # -- interaction -------------------------------------------------
    async def click(self, selector, **kwargs):
        self.clicks.append(selector)
        if self.on_click:
            self.on_click(selector)

    async def press(self, selector, key, **kwargs):
        if self.press_fails:
            raise PlaywrightError(f"Timeout waiting for {selector}")
        self.presses.append((selector, key))

    # -- reads -------------------------------------------------------
    async def title(self):
        return self.title_text

    async def content(self):
        self.content_calls += 1
        return self.html


class FakeContext:
    def __init__(self, rejected_names=()):
        self.rejected_names = set(rejected_names)
        self.cookies_added = []
        self.init_scripts = []

    async def add_cookies(self, cookies):
        for cookie in cookies:
            if cookie["name"] in self.rejected_names:
                raise PlaywrightError(f"Invalid cookie fields: {cookie['name']}")
            self.cookies_added.append(cookie)

    async def add_init_script(self, script):
        self.init_scripts.append(script)


class FakeSession:
    """Stands in for ``BrowserSession`` in service tests."""

    def __init__(self, page, context=None):
        self.page = page
        self.context = context or FakeContext()
        self.entered = False
        self.closed = False

    def __call__(self, config):
        return self

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.closed = True


@pytest.fixture
def fast_config():
    return replace(
        ScraperRunConfig().scaled(0),
        field_timeout_ms=60,
        multi_step_probe_ms=20,
        submit_probe_ms=20,
        success_probe_ms=20,
        poll_interval_ms=10,
        body_wait_timeout_s=0.1,
        body_poll_interval_s=0.01,
    )


@pytest.fixture
def page():
    return FakePage()


@pytest.fixture
def context():
    return FakeContext()


@pytest.fixture
def session(page):
    return FakeSession(page)
