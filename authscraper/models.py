"""
Data Model
==========
Plain containers passed between the authentication engine, the extraction
pipeline and the outer surfaces (HTTP, CLI).

Credentials and cookies live only for the duration of one scrape request;
nothing here is ever written to disk.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


# ---------------------------------------------------------------------------
# Request side
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CookieRecord:
    """A single cookie used to seed the browser session before navigation."""
    name: str
    value: str
    domain: str
    path: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CookieRecord":
        return cls(
            name=str(data["name"]),
            value=str(data["value"]),
            domain=str(data["domain"]),
            path=data.get("path") or None,
        )

    def __repr__(self) -> str:
        # Cookie values are session secrets
        return f"CookieRecord(name={self.name!r}, domain={self.domain!r}, path={self.path!r})"


@dataclass(frozen=True)
class Credentials:
    """Per-request login material plus optional overrides of the catalog."""
    email: str
    password: str
    platform: Optional[str] = None

    login_url: Optional[str] = None
    email_selector: Optional[str] = None
    password_selector: Optional[str] = None
    submit_selector: Optional[str] = None

    wait_after_login_secs: Optional[float] = None
    cookies: Tuple[CookieRecord, ...] = ()

    def __repr__(self) -> str:
        return (
            f"Credentials(email=<redacted>, platform={self.platform!r}, "
            f"login_url={self.login_url!r}, cookies={len(self.cookies)})"
        )


# ---------------------------------------------------------------------------
# Login outcome
# ---------------------------------------------------------------------------

class LoginStatus(str, Enum):
    """Terminal states of the authentication engine."""
    AUTHENTICATED = "authenticated"
    CREDENTIAL_REJECTED = "credential_rejected"
    TWO_FACTOR_REQUIRED = "two_factor_required"
    CAPTCHA_REQUIRED = "captcha_required"
    INCONCLUSIVE = "inconclusive"
    FATAL = "fatal"


@dataclass(frozen=True)
class LoginOutcome:
    """Tagged result handed from the authentication engine to the pipeline.

    Build through the named constructors so that ``reason`` is only set
    where it means something.
    """
    status: LoginStatus
    platform: str
    reason: str = ""
    method: str = "form"  # "cookies" | "form"

    @classmethod
    def authenticated(cls, platform: str, method: str = "form") -> "LoginOutcome":
        return cls(LoginStatus.AUTHENTICATED, platform, method=method)

    @classmethod
    def rejected(cls, platform: str, reason: str = "") -> "LoginOutcome":
        return cls(LoginStatus.CREDENTIAL_REJECTED, platform, reason)

    @classmethod
    def two_factor(cls, platform: str) -> "LoginOutcome":
        return cls(LoginStatus.TWO_FACTOR_REQUIRED, platform)

    @classmethod
    def captcha(cls, platform: str) -> "LoginOutcome":
        return cls(LoginStatus.CAPTCHA_REQUIRED, platform)

    @classmethod
    def inconclusive(cls, platform: str) -> "LoginOutcome":
        return cls(LoginStatus.INCONCLUSIVE, platform)

    @classmethod
    def fatal(cls, platform: str, reason: str) -> "LoginOutcome":
        return cls(LoginStatus.FATAL, platform, reason)

    @property
    def is_authenticated(self) -> bool:
        return self.status is LoginStatus.AUTHENTICATED

    @property
    def blocks_extraction(self) -> bool:
        """2FA and captcha must be reported, never scraped through."""
        return self.status in (
            LoginStatus.TWO_FACTOR_REQUIRED,
            LoginStatus.CAPTCHA_REQUIRED,
        )


# ---------------------------------------------------------------------------
# Extraction side
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ImageRef:
    src: str
    alt: str = ""


@dataclass(frozen=True)
class LinkRef:
    href: str
    text: str = ""


@dataclass(frozen=True)
class ExtractedDocument:
    """Structured content read from one page."""
    title: Optional[str] = None
    description: Optional[str] = None
    text: Optional[str] = None
    images: Tuple[ImageRef, ...] = ()
    links: Tuple[LinkRef, ...] = ()


@dataclass
class ScrapeResult:
    """The unit returned to callers (HTTP, CLI)."""
    url: str
    document: Optional[ExtractedDocument] = None
    login_attempted: bool = False
    outcome: Optional[LoginOutcome] = None
    success: bool = True
    error: Optional[str] = None

    # Populated on error paths where no outcome object exists
    platform: Optional[str] = None
    requires_2fa_hint: Optional[bool] = None

    @property
    def login_success(self) -> Optional[bool]:
        if not self.login_attempted:
            return None
        return bool(self.outcome and self.outcome.is_authenticated)

    @property
    def platform_detected(self) -> Optional[str]:
        if self.outcome:
            return self.outcome.platform
        return self.platform

    @property
    def requires_2fa(self) -> Optional[bool]:
        if self.outcome:
            return self.outcome.status is LoginStatus.TWO_FACTOR_REQUIRED
        return self.requires_2fa_hint

    @classmethod
    def from_error(cls, url: str, exc) -> "ScrapeResult":
        """Build a failed result from a ``ScrapeError``."""
        return cls(
            url=url,
            success=False,
            error=str(exc),
            login_attempted=getattr(exc, "login_attempted", False),
            platform=getattr(exc, "platform", None),
            requires_2fa_hint=getattr(exc, "requires_2fa", None),
        )

    def to_dict(self) -> dict:
        """Convert to the response dictionary used by the HTTP surface."""
        doc = self.document or ExtractedDocument()
        return {
            'title': doc.title,
            'description': doc.description,
            'url': self.url,
            'text': doc.text,
            'images': [{'src': i.src, 'alt': i.alt} for i in doc.images],
            'links': [{'href': l.href, 'text': l.text} for l in doc.links],
            'success': self.success,
            'error': self.error,
            'login_attempted': self.login_attempted,
            'login_success': self.login_success,
            'platform_detected': self.platform_detected,
            'requires_2fa': self.requires_2fa,
        }
