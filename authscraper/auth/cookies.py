"""
Cookie Authentication
=====================
Seeds the browser context with caller-supplied cookies and checks whether
the resulting session is logged in.

Cookies are injected one at a time so a single malformed record only
costs that record.  Values are never logged.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Sequence

from playwright.async_api import BrowserContext
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from ..dom_scripts import AUTH_STATE, try_script
from ..models import CookieRecord
from ..run_config import ScraperRunConfig
from .classifier import auth_state_markers, is_cookie_session_authenticated
from .platforms import PlatformProfile
from .selectors import find_visible

logger = logging.getLogger(__name__)


def to_playwright_cookie(cookie: CookieRecord) -> Dict[str, object]:
    """Map a ``CookieRecord`` to the dict ``BrowserContext.add_cookies`` takes.

    Playwright accepts either ``url`` or ``domain``+``path``.  The URL form
    is used so host-only and dotted domains both work.
    """
    domain = cookie.domain.lstrip(".")
    path = cookie.path or "/"
    return {
        "name": cookie.name,
        "value": cookie.value,
        "url": f"https://{domain}{path}",
        "secure": True,
        "sameSite": "Lax",
    }


async def inject_cookies(
    context: BrowserContext,
    cookies: Sequence[CookieRecord],
    config: ScraperRunConfig,
) -> int:
    """Add *cookies* to *context*.

    Returns:
        How many cookies were accepted.
    """
    logger.info(f"[COOKIE] Setting {len(cookies)} cookies")
    accepted = 0
    for cookie in cookies:
        try:
            await context.add_cookies([to_playwright_cookie(cookie)])
            accepted += 1
            logger.debug(f"[COOKIE] Set cookie: {cookie.name}")
        except PlaywrightError as exc:
            logger.warning(f"[COOKIE] Failed to set cookie {cookie.name}: {exc}")

    logger.info(f"[COOKIE] Set {accepted}/{len(cookies)} cookies successfully")
    if accepted:
        await asyncio.sleep(config.cookie_settle_s)
    return accepted


async def verify_authentication(
    page: Page,
    profile: PlatformProfile,
    config: ScraperRunConfig,
) -> bool:
    """True when the current page shows a logged-in session."""
    logger.info("[COOKIE] Verifying authentication status")

    state = await try_script(page, AUTH_STATE, auth_state_markers(), default=None)
    if is_cookie_session_authenticated(state):
        logger.info("[COOKIE] Authentication verified, user is logged in")
        return True

    if profile.success_indicators:
        found = await find_visible(
            page,
            profile.success_indicators,
            config.success_probe_ms,
            config.poll_interval_ms,
        )
        if found:
            logger.info(f"[COOKIE] Success indicator visible: {found}")
            return True

    logger.warning("[COOKIE] Cookies did not authenticate, user appears logged out")
    return False
