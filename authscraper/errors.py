"""
Scrape Errors
=============
Typed failures raised by the scraper.

Every error carries the login metadata known at the time it was raised
so the HTTP layer can still tell the caller whether a login was attempted,
which platform was detected and whether a second factor was requested.

Hierarchy::

    ScrapeError
    ├── BrowserLaunchError
    ├── PageCreationError
    ├── NavigationError
    ├── ScriptEvaluationError
    ├── LoginFatalError
    ├── TwoFactorRequiredError
    ├── CaptchaRequiredError
    └── ContentExtractionError
"""

from __future__ import annotations

from typing import Optional


class ScrapeError(Exception):
    """Base class for all scraper failures."""

    prefix = "Scrape failed"

    def __init__(
        self,
        detail: str = "",
        *,
        login_attempted: bool = False,
        platform: Optional[str] = None,
        requires_2fa: Optional[bool] = None,
    ):
        self.detail = detail
        self.login_attempted = login_attempted
        self.platform = platform
        self.requires_2fa = requires_2fa
        super().__init__(self.message)

    @property
    def message(self) -> str:
        if self.detail:
            return f"{self.prefix}: {self.detail}"
        return self.prefix

    def with_login(
        self,
        *,
        login_attempted: bool,
        platform: Optional[str],
        requires_2fa: Optional[bool] = None,
    ) -> "ScrapeError":
        """Attach login metadata (used when an error crosses the login step)."""
        self.login_attempted = login_attempted
        if platform is not None:
            self.platform = platform
        if requires_2fa is not None:
            self.requires_2fa = requires_2fa
        return self


class BrowserLaunchError(ScrapeError):
    prefix = "Failed to launch browser"


class PageCreationError(ScrapeError):
    prefix = "Failed to create new page"


class NavigationError(ScrapeError):
    prefix = "Navigation failed"


class ScriptEvaluationError(ScrapeError):
    prefix = "JavaScript evaluation failed"


class LoginFatalError(ScrapeError):
    """The login flow could not be completed (field never found, no submit)."""

    prefix = "Automatic login failed"


class TwoFactorRequiredError(ScrapeError):
    """A second factor was requested after submitting credentials.

    This is a detection, not a crash: the caller gets an actionable status
    instead of content scraped from a half-authenticated page.
    """

    prefix = "2FA is required, cannot proceed automatically"

    def __init__(self, detail: str = "", **kwargs):
        kwargs.setdefault("login_attempted", True)
        kwargs["requires_2fa"] = True
        super().__init__(detail, **kwargs)


class CaptchaRequiredError(ScrapeError):
    """A CAPTCHA challenge blocked the login. Captchas are never solved."""

    prefix = "CAPTCHA challenge detected, cannot proceed automatically"

    def __init__(self, detail: str = "", **kwargs):
        kwargs.setdefault("login_attempted", True)
        kwargs.setdefault("requires_2fa", False)
        super().__init__(detail, **kwargs)


class ContentExtractionError(ScrapeError):
    prefix = "Failed to extract content"
