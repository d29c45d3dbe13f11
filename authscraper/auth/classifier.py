"""
Outcome Classification
======================
Decides what happened after the login form was submitted.

The page is probed once with the ``PAGE_SIGNALS`` script using the marker
lists below; ``classify`` then applies the priority rules to the returned
booleans.  Captcha text must appear as a whole word or phrase
(so "protected by reCAPTCHA" does not count) and a challenge element must be
visible and outside the invisible-reCAPTCHA badge.  First match wins:

    1. captcha markers            → CAPTCHA_REQUIRED
    2. second-factor markers      → TWO_FACTOR_REQUIRED
    3. credential-error markers   → CREDENTIAL_REJECTED
    4. success indicator visible  → AUTHENTICATED
    5. no login inputs left AND (identity element visible OR URL no
       longer login-like)         → AUTHENTICATED
    6. otherwise                  → INCONCLUSIVE
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..models import LoginOutcome
from ..utils import looks_like_login_url

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Marker banks
# ---------------------------------------------------------------------------

CAPTCHA_TEXT = (
    "captcha",
    "verify you're human",
    "verify you are human",
    "i'm not a robot",
    "i am not a robot",
    "are you a robot",
    "security check",
    "prove you're not a robot",
)

CAPTCHA_ELEMENTS = (
    "iframe[src*='recaptcha']",
    "iframe[title*='recaptcha' i]",
    ".g-recaptcha",
    "#recaptcha",
    ".h-captcha",
    "iframe[src*='hcaptcha']",
    ".cf-turnstile",
    "iframe[src*='challenges.cloudflare.com']",
    "#funcaptcha",
    "iframe[src*='arkoselabs']",
    "#arkose",
)

# Invisible reCAPTCHA and its badge ride along on ordinary pages
CAPTCHA_EXCLUDED = (
    ".grecaptcha-badge",
    "iframe[src*='size=invisible']",
    "[data-size='invisible']",
)

TWO_FACTOR_TEXT = (
    "verification code",
    "two-factor",
    "two factor",
    "2-step verification",
    "2-step",
    "authenticator app",
    "enter the code",
    "security code",
    "one-time code",
    "one-time password",
)

TWO_FACTOR_INPUTS = (
    "input[autocomplete='one-time-code']",
    "input[maxlength='6'][inputmode='numeric']",
    "input[maxlength='6'][type='tel']",
    "input[maxlength='6'][type='number']",
    "input[maxlength='6'][pattern]",
    "input[name*='otp' i]",
    "input[id*='otp' i]",
    "input[name*='totp' i]",
    "input[name='approvals_code']",
    "input[name*='verificationCode' i]",
)

ERROR_TEXT = (
    "incorrect password",
    "wrong password",
    "password is incorrect",
    "password was incorrect",
    "invalid password",
    "invalid username",
    "invalid email",
    "invalid credentials",
    "invalid login",
    "incorrect username",
    "incorrect email",
    "couldn't find your account",
    "couldn't find your",
    "doesn't match our records",
    "login failed",
)

ERROR_ELEMENTS = (
    "[role='alert']",
    "#login_error",
    ".login-error", ".login_error",
    "#error-message", ".error-message",
    ".alert-danger", ".alert-error",
    "#usernameError", "#passwordError",
    "[data-testid='error-message']",
    ".form__label--error",
    ".flash-error",
)

LOGIN_FIELDS = (
    "input[type='password']",
    "form[action*='login'] input[type='text']",
    "form[action*='login'] input[type='email']",
)

IDENTITY_ELEMENTS = (
    "[aria-label*='profile' i]",
    "[aria-label*='account' i]",
    "[aria-label*='user menu' i]",
    "[data-testid*='user' i]",
    "[data-testid*='profile' i]",
    ".avatar",
    ".user-avatar",
    "img[alt*='avatar' i]",
    "img[alt*='profile' i]",
)

LOGGED_IN_TEXT = (
    "sign out", "signout", "log out", "logout",
    "my account", "dashboard", "notifications",
)

LOGGED_OUT_TEXT = (
    "sign in", "signin", "log in", "login",
    "create account", "join now", "sign up",
)


def page_signal_markers() -> Dict[str, Any]:
    """Argument for the ``PAGE_SIGNALS`` script."""
    return {
        "captchaText": list(CAPTCHA_TEXT),
        "captchaElements": list(CAPTCHA_ELEMENTS),
        "captchaExcluded": list(CAPTCHA_EXCLUDED),
        "twoFactorText": list(TWO_FACTOR_TEXT),
        "twoFactorInputs": list(TWO_FACTOR_INPUTS),
        "errorText": list(ERROR_TEXT),
        "errorElements": list(ERROR_ELEMENTS),
        "loginFields": list(LOGIN_FIELDS),
        "identityElements": list(IDENTITY_ELEMENTS),
    }


def auth_state_markers() -> Dict[str, Any]:
    """Argument for the ``AUTH_STATE`` script."""
    return {
        "identityElements": list(IDENTITY_ELEMENTS),
        "loggedInText": list(LOGGED_IN_TEXT),
        "loggedOutText": list(LOGGED_OUT_TEXT),
    }


# ---------------------------------------------------------------------------
# Decision
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PageSignals:
    """Booleans read from the page after submitting the login form."""
    url: str = ""
    captcha_text: bool = False
    captcha_element: bool = False
    two_factor_text: bool = False
    two_factor_input: bool = False
    error_text: bool = False
    error_element: bool = False
    login_fields_visible: bool = False
    identity_visible: bool = False

    @classmethod
    def from_script(cls, raw: Optional[Dict[str, Any]], url: str = "") -> "PageSignals":
        raw = raw or {}
        return cls(
            url=raw.get("url") or url,
            captcha_text=bool(raw.get("captchaText")),
            captcha_element=bool(raw.get("captchaElement")),
            two_factor_text=bool(raw.get("twoFactorText")),
            two_factor_input=bool(raw.get("twoFactorInput")),
            error_text=bool(raw.get("errorText")),
            error_element=bool(raw.get("errorElement")),
            login_fields_visible=bool(raw.get("loginFieldsVisible")),
            identity_visible=bool(raw.get("identityVisible")),
        )

    @property
    def captcha(self) -> bool:
        return self.captcha_text or self.captcha_element

    @property
    def two_factor(self) -> bool:
        return self.two_factor_text or self.two_factor_input

    @property
    def credential_error(self) -> bool:
        return self.error_text or self.error_element


def classify(
    signals: PageSignals,
    platform: str,
    success_indicator_visible: bool = False,
) -> LoginOutcome:
    """Apply the priority rules to *signals*."""
    if signals.captcha:
        return LoginOutcome.captcha(platform)
    if signals.two_factor:
        return LoginOutcome.two_factor(platform)
    if signals.credential_error:
        return LoginOutcome.rejected(platform, "Credential error shown on page")
    if success_indicator_visible:
        return LoginOutcome.authenticated(platform)

    if not signals.login_fields_visible and (
        signals.identity_visible or not looks_like_login_url(signals.url)
    ):
        return LoginOutcome.authenticated(platform)

    return LoginOutcome.inconclusive(platform)


def is_cookie_session_authenticated(state: Optional[Dict[str, Any]]) -> bool:
    """Decide from an ``AUTH_STATE`` result whether injected cookies worked.

    An identity element is conclusive; otherwise logged-in wording must be
    present without logged-out wording.
    """
    if not state:
        return False
    if state.get("identityVisible"):
        return True
    return bool(state.get("loggedInText")) and not state.get("loggedOutText")
