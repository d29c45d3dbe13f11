"""
Platform Catalog
================
Static per-site login configuration: where the login form lives, which
selectors find its fields, how long to wait after submitting and which
elements prove the session is authenticated.

The table is built once at import and exposed read-only.  Lookups are
case-insensitive; unknown ids and unknown hostnames fall back to the
generic profile.

Adding a platform:
    Add a ``PlatformProfile`` to ``_CATALOG`` (and its domain to
    ``_DOMAIN_FRAGMENTS`` if it should be auto-detected).  Nothing else in
    the engine needs to change.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from ..utils import hostname_of

logger = logging.getLogger(__name__)

GENERIC = "generic"


@dataclass(frozen=True)
class PlatformProfile:
    platform_id: str
    login_url: str
    email_selectors: Tuple[str, ...]
    password_selectors: Tuple[str, ...]
    submit_selectors: Tuple[str, ...]
    wait_after_login: float = 5.0
    success_indicators: Tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Generic fallback
# ---------------------------------------------------------------------------

GENERIC_EMAIL_SELECTORS: Tuple[str, ...] = (
    "input[type='email']",
    "input[name='email']",
    "input[id='email']",
    "input[name='username']",
    "input[id='username']",
    "input[autocomplete='username']",
    "input[type='text'][name*='user' i]",
    "input[type='text'][name*='login' i]",
    "input[placeholder*='email' i]",
    "input[placeholder*='username' i]",
)

GENERIC_PASSWORD_SELECTORS: Tuple[str, ...] = (
    "input[type='password']",
    "input[name='password']",
    "input[id='password']",
    "input[autocomplete='current-password']",
)

GENERIC_SUBMIT_SELECTORS: Tuple[str, ...] = (
    "button[type='submit']",
    "input[type='submit']",
    "form button:not([type='button'])",
)

GENERIC_PROFILE = PlatformProfile(
    platform_id=GENERIC,
    login_url="",
    email_selectors=GENERIC_EMAIL_SELECTORS,
    password_selectors=GENERIC_PASSWORD_SELECTORS,
    submit_selectors=GENERIC_SUBMIT_SELECTORS,
    wait_after_login=5.0,
)


# ---------------------------------------------------------------------------
# Known platforms
# ---------------------------------------------------------------------------

_PROFILES = (
    PlatformProfile(
        platform_id="linkedin",
        login_url="https://www.linkedin.com/login",
        email_selectors=(
            "#username",
            "input[name='session_key']",
            "input[id='username']",
        ),
        password_selectors=(
            "#password",
            "input[name='session_password']",
            "input[id='password']",
        ),
        submit_selectors=(
            "button[type='submit']",
            "button[data-litms-control-urn*='login-submit']",
            ".login__form_action_container button",
        ),
        wait_after_login=8,
        success_indicators=(".global-nav__me", ".feed-identity-module"),
    ),
    PlatformProfile(
        platform_id="facebook",
        login_url="https://www.facebook.com/login",
        email_selectors=(
            "#email",
            "input[name='email']",
            "input[type='text'][name='email']",
        ),
        password_selectors=(
            "#pass",
            "input[name='pass']",
            "input[type='password'][name='pass']",
        ),
        submit_selectors=(
            "button[name='login']",
            "button[type='submit']",
            "#loginbutton",
        ),
        wait_after_login=6,
        success_indicators=("[aria-label='Your profile']", "[data-pagelet='LeftRail']"),
    ),
    PlatformProfile(
        platform_id="twitter",
        login_url="https://twitter.com/i/flow/login",
        email_selectors=(
            "input[name='text']",
            "input[autocomplete='username']",
            "input[name='session[username_or_email]']",
        ),
        password_selectors=(
            "input[name='password']",
            "input[type='password']",
            "input[autocomplete='current-password']",
        ),
        submit_selectors=(
            "[role='button'][data-testid*='LoginForm_Login_Button']",
            "button[type='submit']",
            "[data-testid='LoginForm_Login_Button']",
        ),
        wait_after_login=7,
        success_indicators=(
            "[data-testid='SideNav_AccountSwitcher_Button']",
            "[aria-label='Home timeline']",
        ),
    ),
    PlatformProfile(
        platform_id="github",
        login_url="https://github.com/login",
        email_selectors=("#login_field", "input[name='login']"),
        password_selectors=("#password", "input[name='password']"),
        submit_selectors=(
            "input[type='submit'][value='Sign in']",
            "input[name='commit']",
        ),
        wait_after_login=5,
        success_indicators=("[aria-label='Global navigation']", ".Header-link--user"),
    ),
    PlatformProfile(
        platform_id="instagram",
        login_url="https://www.instagram.com/accounts/login/",
        email_selectors=(
            "input[name='username']",
            "input[aria-label='Phone number, username, or email']",
        ),
        password_selectors=("input[name='password']", "input[type='password']"),
        submit_selectors=("button[type='submit']",),
        wait_after_login=6,
        success_indicators=("[aria-label='Home']", "svg[aria-label='Home']"),
    ),
    PlatformProfile(
        platform_id="reddit",
        login_url="https://www.reddit.com/login/",
        email_selectors=("#loginUsername", "input[name='username']"),
        password_selectors=("#loginPassword", "input[name='password']"),
        submit_selectors=("button[type='submit']", ".AnimatedForm__submitButton"),
        wait_after_login=5,
        success_indicators=("[id*='USER_DROPDOWN']", "button[aria-label*='User']"),
    ),
)

_ALIASES = {"x": "twitter"}

_CATALOG: Mapping[str, PlatformProfile] = MappingProxyType(
    {p.platform_id: p for p in _PROFILES}
)

# Login pages for platforms the catalog does not carry selectors for
_HEURISTIC_LOGIN_URLS: Mapping[str, str] = MappingProxyType({
    "google": "https://accounts.google.com/ServiceLogin",
    "linkedin": "https://www.linkedin.com/uas/login",
    "reddit": "https://www.reddit.com/login/",
    "github": "https://github.com/login",
    "facebook": "https://www.facebook.com/login/",
    "twitter": "https://twitter.com/i/flow/login",
    "instagram": "https://www.instagram.com/accounts/login/",
    "microsoft": "https://login.live.com/",
})

# Ordered: first match wins
_DOMAIN_FRAGMENTS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("google.com", "gmail.com"), "google"),
    (("linkedin.com",), "linkedin"),
    (("reddit.com",), "reddit"),
    (("github.com",), "github"),
    (("facebook.com",), "facebook"),
    (("twitter.com", "x.com"), "twitter"),
    (("instagram.com",), "instagram"),
    (("live.com", "microsoftonline.com"), "microsoft"),
)

# Platforms that show the password field only after the identifier step
MULTI_STEP_PLATFORMS = frozenset({"google", "linkedin", "twitter", "facebook", "microsoft"})


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def canonical_id(platform: Optional[str]) -> str:
    """Normalise a platform id: lower-case, aliases folded, blank → generic."""
    key = (platform or "").strip().lower()
    if not key:
        return GENERIC
    return _ALIASES.get(key, key)


def detect_platform(url: str) -> str:
    """Derive the platform id from the target URL's hostname.

    A fragment matches when the hostname equals it or is a subdomain of it,
    so ``dropbox.com`` never counts as ``x.com``.
    """
    host = hostname_of(url)
    if not host:
        return GENERIC
    for fragments, platform in _DOMAIN_FRAGMENTS:
        for fragment in fragments:
            if host == fragment or host.endswith("." + fragment):
                return platform
    return GENERIC


def resolve(platform_or_hostname: Optional[str]) -> PlatformProfile:
    """Look up a profile by platform id, alias, hostname or URL.

    Unknown values return ``GENERIC_PROFILE``.
    """
    key = canonical_id(platform_or_hostname)
    profile = _CATALOG.get(key)
    if profile is not None:
        return profile

    # Hostname or URL: detect, then look up again
    if "." in key:
        probe = key if "://" in key else f"https://{key}"
        detected = detect_platform(probe)
        profile = _CATALOG.get(detected)
        if profile is not None:
            return profile

    return GENERIC_PROFILE


def heuristic_login_url(platform: str) -> Optional[str]:
    """Well-known login page for *platform*, if one is known."""
    return _HEURISTIC_LOGIN_URLS.get(canonical_id(platform))


def catalog() -> Mapping[str, PlatformProfile]:
    """Read-only view of every catalogued profile, keyed by platform id."""
    return _CATALOG


def is_multi_step(platform: str) -> bool:
    return canonical_id(platform) in MULTI_STEP_PLATFORMS
