"""
Scrape Service
==============
One request end to end: open a browser session, log in if credentials
were given, extract the target page, tear the session down.

Login outcomes map onto the result like this:

    AUTHENTICATED           → extract, login_success=True
    CREDENTIAL_REJECTED     → extract the unauthenticated page, login_success=False
    INCONCLUSIVE            → same as CREDENTIAL_REJECTED
    TWO_FACTOR_REQUIRED     → TwoFactorRequiredError, nothing extracted
    CAPTCHA_REQUIRED        → CaptchaRequiredError, nothing extracted
    FATAL                   → LoginFatalError, nothing extracted
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from playwright.async_api import Error as PlaywrightError

from .auth.login_engine import LoginEngine
from .browser import BrowserSession
from .errors import (
    CaptchaRequiredError,
    LoginFatalError,
    ScrapeError,
    TwoFactorRequiredError,
)
from .extraction import ContentExtractor
from .models import Credentials, LoginOutcome, LoginStatus, ScrapeResult
from .run_config import ScraperRunConfig

logger = logging.getLogger(__name__)


def raise_for_outcome(outcome: LoginOutcome) -> None:
    """Turn outcomes that must stop the request into typed errors."""
    if outcome.status is LoginStatus.FATAL:
        raise LoginFatalError(outcome.reason, login_attempted=True, platform=outcome.platform)
    if outcome.blocks_extraction:
        if outcome.status is LoginStatus.TWO_FACTOR_REQUIRED:
            raise TwoFactorRequiredError(platform=outcome.platform)
        raise CaptchaRequiredError(platform=outcome.platform)


async def scrape(
    url: str,
    credentials: Optional[Credentials] = None,
    config: Optional[ScraperRunConfig] = None,
    session_factory: Callable[[ScraperRunConfig], BrowserSession] = BrowserSession,
) -> ScrapeResult:
    """Scrape *url*, logging in first when *credentials* are given.

    Raises:
        ScrapeError: any structural failure, carrying the login metadata
            known at that point.
    """
    cfg = config or ScraperRunConfig()
    cfg.log_summary(url, login=credentials is not None)

    login_attempted = credentials is not None
    outcome: Optional[LoginOutcome] = None

    try:
        async with session_factory(cfg) as session:
            if credentials is not None:
                outcome = await LoginEngine(cfg).authenticate(
                    session.page, session.context, credentials, url,
                )
                raise_for_outcome(outcome)
                if not outcome.is_authenticated:
                    logger.warning(
                        f"[SCRAPE] Login {outcome.status.value}, "
                        f"extracting unauthenticated page"
                    )

            document = await ContentExtractor(cfg).extract(session.page, url)
    except ScrapeError as exc:
        if login_attempted and not exc.login_attempted:
            exc.with_login(
                login_attempted=True,
                platform=outcome.platform if outcome else None,
                requires_2fa=False if outcome else None,
            )
        logger.error(f"[SCRAPE] {exc}")
        raise
    except PlaywrightError as exc:
        logger.error(f"[SCRAPE] Browser error: {exc}")
        raise ScrapeError(
            str(exc),
            login_attempted=login_attempted,
            platform=outcome.platform if outcome else None,
        ) from exc

    return ScrapeResult(
        url=url,
        document=document,
        login_attempted=login_attempted,
        outcome=outcome,
    )


async def scrape_to_result(
    url: str,
    credentials: Optional[Credentials] = None,
    config: Optional[ScraperRunConfig] = None,
    session_factory: Callable[[ScraperRunConfig], BrowserSession] = BrowserSession,
) -> ScrapeResult:
    """Like ``scrape`` but returns failures as an unsuccessful ``ScrapeResult``."""
    try:
        return await scrape(url, credentials, config, session_factory)
    except ScrapeError as exc:
        return ScrapeResult.from_error(url, exc)
