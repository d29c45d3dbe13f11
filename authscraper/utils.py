"""
Utility Functions
Polling primitive, URL comparison and text helpers shared by the
authentication engine and the extraction pipeline.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Awaitable, Callable, Optional, TypeVar
from urllib.parse import parse_qsl, urlencode, urljoin, urlparse

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Polling
# ---------------------------------------------------------------------------

async def poll_until(
    check: Callable[[], Awaitable[Optional[T]]],
    *,
    interval_s: float,
    timeout_s: Optional[float] = None,
    max_attempts: Optional[int] = None,
) -> Optional[T]:
    """Call *check* until it returns a truthy value or the budget runs out.

    The budget is a wall-clock ``timeout_s``, a ``max_attempts`` count, or
    both (whichever is exhausted first).  The last check runs at the
    deadline itself, so a result is never missed by returning early and the
    call never overshoots the deadline by more than one interval.

    Returns:
        The first truthy value returned by *check*, or None.
    """
    if timeout_s is None and max_attempts is None:
        raise ValueError("poll_until needs a timeout_s or max_attempts budget")

    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_s if timeout_s is not None else None
    attempts = 0

    while True:
        result = await check()
        if result:
            return result
        attempts += 1
        if max_attempts is not None and attempts >= max_attempts:
            return None

        if deadline is None:
            await asyncio.sleep(interval_s)
            continue

        remaining = deadline - loop.time()
        if remaining <= 0:
            return None
        await asyncio.sleep(min(interval_s, remaining))


# ---------------------------------------------------------------------------
# URL helpers
# ---------------------------------------------------------------------------

# URL path fragments that indicate a login / auth page
LOGIN_PATH_INDICATORS = (
    '/login', '/signin', '/sign-in', '/sign_in', '/logon',
    '/sso/', '/saml/', '/auth/', '/oauth', '/session',
    '/flow/login', '/accounts/login', '/servicelogin',
    '/checkpoint', '/challenge', '/uas/login',
)


def hostname_of(url: str) -> str:
    """Lower-cased hostname of *url* without a leading ``www.``."""
    try:
        host = (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""
    if host.startswith('www.'):
        host = host[4:]
    return host


def _comparable(url: str) -> Optional[tuple]:
    """Reduce a URL to the parts that decide whether two URLs are the same page."""
    if not url:
        return None
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return None
    if not parsed.netloc:
        return None

    host = hostname_of(url)
    try:
        port = parsed.port
    except ValueError:
        return None
    if port in (80, 443):
        port = None

    path = re.sub(r'/+', '/', parsed.path or '/')
    if path != '/' and path.endswith('/'):
        path = path.rstrip('/')

    query = urlencode(sorted(parse_qsl(parsed.query, keep_blank_values=True)))
    return host, port, path, query


def urls_match(current: str, target: str) -> bool:
    """True when *current* already shows the page *target* points at.

    Scheme is ignored (http→https upgrades), the host is compared without
    ``www.``, the path without a trailing slash, the query as a sorted set of
    parameters, and the fragment not at all.
    """
    a = _comparable(current)
    b = _comparable(target)
    return a is not None and a == b


def looks_like_login_url(url: str) -> bool:
    """Heuristic: does the URL path look like a login / auth step?"""
    try:
        parsed = urlparse(url.lower())
    except ValueError:
        return False
    path = (parsed.path or '/') + ('/' if not parsed.path.endswith('/') else '')
    host = parsed.hostname or ''
    if host.startswith(('login.', 'accounts.', 'auth.', 'sso.', 'signin.')):
        return True
    return any(ind in path for ind in LOGIN_PATH_INDICATORS)


def absolute_http_url(value: str, base_url: str) -> Optional[str]:
    """Resolve *value* against *base_url*; keep only http(s) results."""
    if not value:
        return None
    value = value.strip()
    if not value or value.lower().startswith(('javascript:', 'mailto:', 'tel:', 'data:')):
        return None
    try:
        resolved = urljoin(base_url, value) if base_url else value
        scheme = urlparse(resolved).scheme
    except ValueError:
        return None
    if scheme not in ('http', 'https'):
        return None
    return resolved


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------

def clean_text(text: str) -> str:
    """Collapse runs of whitespace and trim."""
    if not text:
        return ""
    return re.sub(r'\s+', ' ', text).strip()


def truncate(text: str, limit: int) -> str:
    if limit is None or limit < 0 or len(text) <= limit:
        return text
    return text[:limit]
