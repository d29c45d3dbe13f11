"""
Auth Scraper
============
Log in to a site with cookies or a simulated login form, then extract the
target page's title, description, text, images and links.

Usage::

    import asyncio
    from authscraper import Credentials, scrape

    result = asyncio.run(scrape(
        "https://github.com/settings/profile",
        Credentials(email="me@example.com", password="..."),
    ))
    print(result.to_dict())
"""

__version__ = "0.1.0"

from .errors import (
    BrowserLaunchError,
    CaptchaRequiredError,
    ContentExtractionError,
    LoginFatalError,
    NavigationError,
    PageCreationError,
    ScrapeError,
    ScriptEvaluationError,
    TwoFactorRequiredError,
)
from .models import (
    CookieRecord,
    Credentials,
    ExtractedDocument,
    LoginOutcome,
    LoginStatus,
    ScrapeResult,
)
from .run_config import ScraperRunConfig
from .service import scrape, scrape_to_result

__all__ = [
    "__version__",
    "scrape",
    "scrape_to_result",
    "ScraperRunConfig",
    "CookieRecord",
    "Credentials",
    "ExtractedDocument",
    "LoginOutcome",
    "LoginStatus",
    "ScrapeResult",
    "ScrapeError",
    "BrowserLaunchError",
    "PageCreationError",
    "NavigationError",
    "ScriptEvaluationError",
    "LoginFatalError",
    "TwoFactorRequiredError",
    "CaptchaRequiredError",
    "ContentExtractionError",
]
