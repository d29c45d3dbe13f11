"""
Authentication
==============
Everything needed to turn credentials into a logged-in browser page.

Architecture:
    - ``platforms``   : read-only catalog of per-site login profiles
    - ``selectors``   : ordered selector chains and the visibility probe
    - ``human_input`` : keystroke-by-keystroke typing
    - ``cookies``     : cookie injection and session verification
    - ``classifier``  : post-submit outcome rules
    - ``LoginEngine`` : the cookie → form login state machine
"""

from .login_engine import LoginEngine
from .platforms import PlatformProfile, detect_platform, resolve

__all__ = [
    "LoginEngine",
    "PlatformProfile",
    "detect_platform",
    "resolve",
]
