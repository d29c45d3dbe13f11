"""Tests for the stealth layer and BrowserSession lifecycle with a fake driver."""

import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError

from authscraper import browser as browser_module
from authscraper.browser import BrowserSession
from authscraper.errors import BrowserLaunchError, PageCreationError
from authscraper.run_config import ScraperRunConfig
from authscraper.stealth import apply_evasions, context_options, launch_args


class TestStealth:

    def test_launch_args_hide_automation(self):
        args = launch_args()
        assert "--disable-blink-features=AutomationControlled" in args
        assert "--no-sandbox" in args

    def test_context_options_follow_config(self):
        cfg = ScraperRunConfig(viewport_width=1280, viewport_height=720, locale="de-DE")
        opts = context_options(cfg)
        assert opts["viewport"] == {"width": 1280, "height": 720}
        assert opts["locale"] == "de-DE"
        assert opts["user_agent"] == cfg.user_agent
        assert "Accept-Language" in opts["extra_http_headers"]

    def test_evasions_registered(self, context):
        assert asyncio.run(apply_evasions(context)) is True
        script = context.init_scripts[0]
        assert "webdriver" in script
        assert "__authscraperEvasions" in script

    def test_evasion_failure_is_not_fatal(self):
        class Broken:
            async def add_init_script(self, script):
                raise PlaywrightError("context closed")

        assert asyncio.run(apply_evasions(Broken())) is False


# ---------------------------------------------------------------------------
# Fake driver
# ---------------------------------------------------------------------------

class _Closable:
    def __init__(self, log, name):
        self.log = log
        self.name = name

    async def close(self):
        self.log.append(f"{self.name}.close")


class _Context(_Closable):
    def __init__(self, log, fail_page=False):
        super().__init__(log, "context")
        self.fail_page = fail_page
        self.init_scripts = []
        self.nav_timeout = None

    def set_default_navigation_timeout(self, ms):
        self.nav_timeout = ms

    async def add_init_script(self, script):
        self.init_scripts.append(script)

    async def new_page(self):
        if self.fail_page:
            raise PlaywrightError("Target closed")
        return object()


class _Browser(_Closable):
    def __init__(self, log, context):
        super().__init__(log, "browser")
        self.ctx = context
        self.context_kwargs = None

    async def new_context(self, **kwargs):
        self.context_kwargs = kwargs
        return self.ctx


class _Driver:
    def __init__(self, log, browser, fail_launch=False):
        self.log = log
        self.browser = browser
        self.fail_launch = fail_launch
        self.launch_kwargs = None
        self.chromium = self

    async def launch(self, **kwargs):
        self.launch_kwargs = kwargs
        if self.fail_launch:
            raise PlaywrightError("Executable doesn't exist")
        return self.browser

    async def stop(self):
        self.log.append("driver.stop")


class _Starter:
    def __init__(self, driver):
        self.driver = driver

    async def start(self):
        return self.driver


@pytest.fixture
def driver_log():
    return []


def _install(monkeypatch, driver_log, fail_launch=False, fail_page=False):
    ctx = _Context(driver_log, fail_page=fail_page)
    driver = _Driver(driver_log, _Browser(driver_log, ctx), fail_launch=fail_launch)
    monkeypatch.setattr(browser_module, "async_playwright", lambda: _Starter(driver))
    return driver


class TestBrowserSession:

    def test_lifecycle(self, monkeypatch, driver_log):
        driver = _install(monkeypatch, driver_log)
        cfg = ScraperRunConfig(headless=False, navigation_timeout_ms=12_000)

        async def run():
            async with BrowserSession(cfg) as session:
                assert session.page is not None
                return session

        session = asyncio.run(run())

        assert driver.launch_kwargs["headless"] is False
        assert driver.browser.context_kwargs["user_agent"] == cfg.user_agent
        assert driver.browser.ctx.nav_timeout == 12_000
        assert driver.browser.ctx.init_scripts
        assert driver_log == ["context.close", "browser.close", "driver.stop"]
        assert session.page is None

    def test_launch_failure(self, monkeypatch, driver_log):
        _install(monkeypatch, driver_log, fail_launch=True)

        async def run():
            async with BrowserSession(ScraperRunConfig()):
                pass

        with pytest.raises(BrowserLaunchError):
            asyncio.run(run())
        assert driver_log == ["driver.stop"]

    def test_page_creation_failure_tears_down(self, monkeypatch, driver_log):
        _install(monkeypatch, driver_log, fail_page=True)

        async def run():
            async with BrowserSession(ScraperRunConfig()):
                pass

        with pytest.raises(PageCreationError):
            asyncio.run(run())
        assert driver_log == ["context.close", "browser.close", "driver.stop"]

    def test_close_is_idempotent(self, monkeypatch, driver_log):
        _install(monkeypatch, driver_log)

        async def run():
            session = BrowserSession()
            await session.__aenter__()
            await session.close()
            await session.close()

        asyncio.run(run())
        assert driver_log == ["context.close", "browser.close", "driver.stop"]
