"""
Login Engine
============
Playwright-driven authentication for a single scrape request.

Flow::

    cookies?  → inject → open target → verify ──────────────► AUTHENTICATED
        │ (not verified)
        ▼
    open login page → dismiss overlays → email → [Next step] → password
        → submit (navigation waiter armed first) → wait → dismiss prompts
        → classify → AUTHENTICATED | CREDENTIAL_REJECTED
                     | TWO_FACTOR_REQUIRED | CAPTCHA_REQUIRED | INCONCLUSIVE

A required field that never appears, or a form that cannot be submitted,
ends the flow with a FATAL outcome.  Navigation failures raise
``NavigationError``.

Security:
    - Credentials and cookie values are never logged.
    - Only URLs, selectors and outcomes appear in logs.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from playwright.async_api import BrowserContext
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from ..dom_scripts import CLICK_BUTTON_BY_TEXT, PAGE_SIGNALS, SUBMIT_FORM, try_script
from ..errors import NavigationError
from ..models import Credentials, LoginOutcome, LoginStatus
from ..run_config import ScraperRunConfig
from ..utils import urls_match
from . import platforms
from .classifier import PageSignals, classify, page_signal_markers
from .cookies import inject_cookies, verify_authentication
from .human_input import type_text
from .platforms import PlatformProfile
from .selectors import build_chain, find_visible, first_visible_now

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Button banks
# ---------------------------------------------------------------------------

# "Next" buttons of identifier-first login flows
_NEXT_SELECTORS: List[str] = [
    '#identifierNext',                              # Google
    '#idSIButton9',                                 # Microsoft
    "button[data-testid='ocfEnterTextNextButton']", # Twitter / X
    "input[type='submit'][value='Next']",
    "input[type='submit'][value='Continue']",
]

_NEXT_TEXTS: List[str] = [
    'next', 'continue', 'weiter', 'suivant', 'siguiente',
    'avanti', 'próximo', 'continuar', 'volgende', '次へ',
]

_SIGN_IN_TEXTS: List[str] = ['sign in', 'log in', 'login']

# Cookie banners and consent dialogs on the login page
_OVERLAY_TEXTS: List[str] = [
    'accept', 'accept all', 'agree', 'allow', 'ok', 'got it',
    'close', 'dismiss', 'no thanks', 'reject',
]

# "Save your login info?" and similar prompts after signing in
_INTERSTITIAL_TEXTS: List[str] = [
    'not now', 'skip', 'later', 'remind me later', 'no thanks',
]

_MAX_BUTTON_LABEL = 50


class LoginEngine:
    """Runs the cookie and form login flows against one page.

    Usage::

        engine = LoginEngine(config)
        outcome = await engine.authenticate(page, context, credentials, url)
        if outcome.is_authenticated:
            ...
    """

    def __init__(self, config: Optional[ScraperRunConfig] = None):
        self.config = config or ScraperRunConfig()

    async def authenticate(
        self,
        page: Page,
        context: BrowserContext,
        credentials: Credentials,
        target_url: str,
    ) -> LoginOutcome:
        """Execute the login flow and classify the result.

        Steps:
            1. Cookie authentication (when cookies were supplied)
            2. Navigate to the login page, dismiss overlays
            3. Enter the email / username
            4. Advance identifier-first flows ("Next")
            5. Enter the password
            6. Submit and wait for navigation
            7. Classify the resulting page
            8. Return to the target page on success

        Raises:
            NavigationError: the login or target page could not be opened.
        """
        platform = (
            platforms.canonical_id(credentials.platform)
            if credentials.platform
            else platforms.detect_platform(target_url)
        )
        profile = platforms.resolve(platform)
        logger.info(f"[AUTH] Starting authentication (platform: {platform})")

        # ── Step 1: Cookie authentication ────────────────────────────
        if credentials.cookies:
            if await self._cookie_login(page, context, credentials, profile, target_url):
                logger.info("[AUTH] Cookie authentication successful")
                return LoginOutcome.authenticated(platform, method="cookies")
            logger.warning("[AUTH] Cookies did not authenticate, falling back to form login")

        # ── Step 2: Login page ───────────────────────────────────────
        login_url = self._resolve_login_url(credentials, profile, platform, target_url)
        logger.info(f"[AUTH] Navigating to login page: {login_url[:80]}")
        await self._goto(page, login_url, platform)
        await asyncio.sleep(self.config.login_page_settle_s)
        await self.log_page_state(page, "login_page")
        await self._dismiss_buttons(page, _OVERLAY_TEXTS, "overlay")

        # ── Step 3: Email ────────────────────────────────────────────
        email_chain = build_chain(
            credentials.email_selector,
            profile.email_selectors,
            platforms.GENERIC_EMAIL_SELECTORS,
        )
        email_sel, failure = await self._enter_field(
            page, email_chain, credentials.email, "email",
        )
        if failure:
            return LoginOutcome.fatal(platform, failure)

        password_chain = build_chain(
            credentials.password_selector,
            profile.password_selectors,
            platforms.GENERIC_PASSWORD_SELECTORS,
        )

        # ── Step 4: Identifier-first flows ───────────────────────────
        if platforms.is_multi_step(platform):
            await self._advance_multi_step(page, email_sel, password_chain)

        # ── Step 5: Password ─────────────────────────────────────────
        password_sel, failure = await self._enter_field(
            page, password_chain, credentials.password, "password",
        )
        if failure:
            return LoginOutcome.fatal(platform, failure)

        # ── Step 6: Submit ───────────────────────────────────────────
        wait_s = max(
            credentials.wait_after_login_secs
            if credentials.wait_after_login_secs is not None
            else profile.wait_after_login,
            self.config.min_post_submit_wait_s,
        )
        navigation = self._arm_navigation_waiter(page, wait_s)
        try:
            submit_chain = build_chain(
                credentials.submit_selector,
                profile.submit_selectors,
                platforms.GENERIC_SUBMIT_SELECTORS,
            )
            method = await self._submit(page, submit_chain, password_sel)
            if method is None:
                logger.error("[AUTH] Could not submit login form")
                return LoginOutcome.fatal(platform, "Could not submit login form")
            logger.info(f"[AUTH] Form submitted via {method}")

            # ── Step 7: Post-submit wait ─────────────────────────────
            await self._await_navigation(navigation, wait_s)
        finally:
            _discard(navigation)

        await asyncio.sleep(self.config.post_submit_settle_s)
        await self.log_page_state(page, "after_submit")
        await self._dismiss_buttons(page, _INTERSTITIAL_TEXTS, "interstitial")

        # ── Step 8: Classify ─────────────────────────────────────────
        outcome = await self._classify(page, profile, platform)
        self._log_outcome(outcome)

        # ── Step 9: Back to the target ───────────────────────────────
        if outcome.is_authenticated and not urls_match(page.url, target_url):
            logger.info(f"[AUTH] Navigating to target: {target_url[:80]}")
            await self._goto(page, target_url, platform)
            await asyncio.sleep(self.config.target_settle_s)

        return outcome

    # ------------------------------------------------------------------
    # Cookie flow
    # ------------------------------------------------------------------

    async def _cookie_login(
        self,
        page: Page,
        context: BrowserContext,
        credentials: Credentials,
        profile: PlatformProfile,
        target_url: str,
    ) -> bool:
        logger.info("[AUTH] Attempting cookie-based authentication")
        accepted = await inject_cookies(context, credentials.cookies, self.config)
        if not accepted:
            return False

        logger.info(f"[AUTH] Navigating to verify cookies: {target_url[:80]}")
        await self._goto(page, target_url, profile.platform_id)
        await asyncio.sleep(self.config.cookie_verify_settle_s)
        await self.log_page_state(page, "after_cookies")
        return await verify_authentication(page, profile, self.config)

    # ------------------------------------------------------------------
    # Form flow helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _resolve_login_url(
        credentials: Credentials,
        profile: PlatformProfile,
        platform: str,
        target_url: str,
    ) -> str:
        """Explicit override → profile → well-known URL → the target itself."""
        return (
            credentials.login_url
            or profile.login_url
            or platforms.heuristic_login_url(platform)
            or target_url
        )

    async def _enter_field(
        self,
        page: Page,
        chain: Sequence[str],
        value: str,
        field_name: str,
    ) -> Tuple[Optional[str], str]:
        """Find a field and type *value* into it, retrying once on failure.

        Returns:
            ``(selector, "")`` on success, ``(None, reason)`` otherwise.
        """
        logger.info(f"[AUTH] Entering {field_name}")
        sel = await find_visible(
            page, chain, self.config.field_timeout_ms, self.config.poll_interval_ms,
        )
        if not sel:
            logger.error(f"[AUTH] {field_name.capitalize()} field not found")
            return None, f"{field_name.capitalize()} field not found"

        if not await type_text(page, sel, value, self.config):
            logger.warning(f"[AUTH] Retrying {field_name} entry")
            sel = await find_visible(
                page, chain, self.config.field_timeout_ms, self.config.poll_interval_ms,
            )
            if not sel or not await type_text(page, sel, value, self.config):
                logger.error(f"[AUTH] Failed to enter {field_name}")
                return None, f"Failed to enter {field_name}"

        await asyncio.sleep(self.config.after_typing_settle_s)
        return sel, ""

    async def _advance_multi_step(
        self,
        page: Page,
        email_sel: str,
        password_chain: Sequence[str],
    ) -> None:
        """Press "Next" when the password field is not on screen yet."""
        visible = await find_visible(
            page, password_chain,
            self.config.multi_step_probe_ms, self.config.poll_interval_ms,
        )
        if visible:
            return

        logger.info("[AUTH] Multi-step login detected, advancing")
        advanced = await self._click_first_visible(page, _NEXT_SELECTORS)
        if not advanced:
            label = await self._click_by_text(page, _NEXT_TEXTS, "word")
            advanced = f"text '{label}'" if label else None
        if not advanced:
            advanced = await self._press_enter(page, email_sel)

        if advanced:
            logger.info(f"[AUTH] Clicked 'Next' step: {advanced}")
        else:
            logger.warning("[AUTH] Could not advance to the password step")
        await asyncio.sleep(self.config.next_step_settle_s)

    async def _submit(
        self,
        page: Page,
        chain: Sequence[str],
        password_sel: str,
    ) -> Optional[str]:
        """Submit the form; returns how it was submitted, or None."""
        submit_sel = await find_visible(
            page, chain, self.config.submit_probe_ms, self.config.poll_interval_ms,
        )
        if submit_sel and await self._click(page, submit_sel):
            return f"button {submit_sel}"

        label = await self._click_by_text(page, _SIGN_IN_TEXTS, "word")
        if label:
            return f"button text '{label}'"

        logger.info("[AUTH] No submit button found, pressing Enter")
        pressed = await self._press_enter(page, password_sel)
        if pressed:
            return pressed

        if await try_script(page, SUBMIT_FORM, password_sel, default=False):
            return "native form submission"
        return None

    def _arm_navigation_waiter(self, page: Page, wait_s: float) -> asyncio.Future:
        """Start listening for the main-frame navigation before submitting."""
        return asyncio.ensure_future(
            page.wait_for_event(
                "framenavigated",
                predicate=lambda frame: frame == page.main_frame,
                timeout=wait_s * 1000,
            )
        )

    async def _await_navigation(self, navigation: asyncio.Future, wait_s: float) -> None:
        logger.info(f"[AUTH] Waiting up to {wait_s:.0f}s for post-login navigation")
        done, _ = await asyncio.wait({navigation}, timeout=wait_s)
        if navigation in done:
            exc = navigation.exception()
            if exc is None:
                logger.info("[AUTH] Post-login navigation observed")
            else:
                logger.debug(f"[AUTH] No navigation after submit: {exc}")

    async def _classify(
        self,
        page: Page,
        profile: PlatformProfile,
        platform: str,
    ) -> LoginOutcome:
        raw = await try_script(page, PAGE_SIGNALS, page_signal_markers(), default=None)
        signals = PageSignals.from_script(raw, url=page.url)
        logger.debug(f"[AUTH] Page signals: {signals}")

        success_visible = False
        if profile.success_indicators and not (
            signals.captcha or signals.two_factor or signals.credential_error
        ):
            success_visible = bool(await find_visible(
                page,
                profile.success_indicators,
                self.config.success_probe_ms,
                self.config.poll_interval_ms,
            ))
        return classify(signals, platform, success_visible)

    # ------------------------------------------------------------------
    # Page interaction primitives
    # ------------------------------------------------------------------

    async def _goto(self, page: Page, url: str, platform: str) -> None:
        try:
            await page.goto(
                url,
                timeout=self.config.navigation_timeout_ms,
                wait_until="domcontentloaded",
            )
        except PlaywrightError as exc:
            raise NavigationError(
                f"{url[:120]}: {exc}", login_attempted=True, platform=platform,
            ) from exc

    async def _click(self, page: Page, selector: str) -> bool:
        try:
            await page.click(selector, timeout=5000, no_wait_after=True)
            return True
        except PlaywrightError as exc:
            logger.debug(f"[AUTH] Click on {selector} failed: {exc}")
            return False

    async def _click_first_visible(self, page: Page, selectors: Sequence[str]) -> Optional[str]:
        sel = await first_visible_now(page, selectors)
        if sel and await self._click(page, sel):
            return sel
        return None

    async def _click_by_text(self, page: Page, texts: Sequence[str], mode: str) -> Optional[str]:
        return await try_script(
            page,
            CLICK_BUTTON_BY_TEXT,
            {"texts": list(texts), "mode": mode, "maxLength": _MAX_BUTTON_LABEL},
            default=None,
        )

    async def _press_enter(self, page: Page, selector: str) -> Optional[str]:
        try:
            await page.press(selector, "Enter", timeout=5000, no_wait_after=True)
            return f"Enter on {selector}"
        except PlaywrightError as exc:
            logger.debug(f"[AUTH] Enter on {selector} failed: {exc}")
            return None

    async def _dismiss_buttons(self, page: Page, texts: Sequence[str], kind: str) -> int:
        """Click matching buttons until an attempt dismisses nothing."""
        dismissed = 0
        for _ in range(self.config.max_dismiss_attempts):
            label = await self._click_by_text(page, texts, "word")
            if not label:
                break
            dismissed += 1
            logger.info(f"[AUTH] Dismissed {kind}: '{label}'")
            await asyncio.sleep(self.config.overlay_settle_s)
        return dismissed

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    @staticmethod
    async def log_page_state(page: Page, checkpoint: str) -> None:
        """Debug-log the URL and title at a named checkpoint."""
        if not logger.isEnabledFor(logging.DEBUG):
            return
        try:
            title = await page.title()
        except PlaywrightError:
            title = "<unknown>"
        logger.debug(f"[AUTH] [{checkpoint}] URL: {page.url[:120]}")
        logger.debug(f"[AUTH] [{checkpoint}] Title: {title[:80]}")

    @staticmethod
    def _log_outcome(outcome: LoginOutcome) -> None:
        if outcome.status is LoginStatus.AUTHENTICATED:
            logger.info("[AUTH] ✅ Login successful")
        elif outcome.status is LoginStatus.INCONCLUSIVE:
            logger.warning("[AUTH] Login status unclear")
        elif outcome.status is LoginStatus.CREDENTIAL_REJECTED:
            logger.error("[AUTH] ❌ Login error detected on page")
        elif outcome.status is LoginStatus.TWO_FACTOR_REQUIRED:
            logger.warning("[AUTH] 2FA required")
        elif outcome.status is LoginStatus.CAPTCHA_REQUIRED:
            logger.warning("[AUTH] CAPTCHA challenge detected")


def _discard(future: asyncio.Future) -> None:
    """Cancel a pending waiter, or consume the result of a finished one."""
    if not future.done():
        future.cancel()
    elif not future.cancelled():
        future.exception()
