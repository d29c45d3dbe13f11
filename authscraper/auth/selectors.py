"""
Selector Resolution
===================
Visibility probe over an ordered selector chain.

Explicit selectors from the request come first, then the platform
profile's, then the generic fallbacks.  Earlier selectors win when several
match at the same time.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from playwright.async_api import Page

from ..dom_scripts import IS_VISIBLE, try_script
from ..utils import poll_until

logger = logging.getLogger(__name__)


def build_chain(explicit: Optional[str], *fallbacks: Iterable[str]) -> List[str]:
    """Concatenate selector sources into one de-duplicated, ordered chain."""
    chain: List[str] = []
    seen = set()
    sources = [[explicit] if explicit else []] + [list(f) for f in fallbacks]
    for source in sources:
        for sel in source:
            sel = (sel or "").strip()
            if sel and sel not in seen:
                seen.add(sel)
                chain.append(sel)
    return chain


async def first_visible_now(page: Page, selectors: Sequence[str]) -> Optional[str]:
    """One probe tick: the first selector whose element is visible right now.

    Invalid selectors and evaluation errors count as "not visible".
    """
    for sel in selectors:
        if await try_script(page, IS_VISIBLE, sel, default=False):
            return sel
    return None


async def find_visible(
    page: Page,
    selectors: Sequence[str],
    timeout_ms: int,
    interval_ms: int = 250,
) -> Optional[str]:
    """Wait up to *timeout_ms* for any selector in the chain to become visible.

    Returns:
        The winning selector, or None when the budget elapsed.  Absence is
        not an error here; the caller decides whether it is fatal.
    """
    if not selectors:
        return None

    logger.debug(f"[AUTH] Probing {len(selectors)} selectors for {timeout_ms}ms")
    found = await poll_until(
        lambda: first_visible_now(page, selectors),
        interval_s=interval_ms / 1000,
        timeout_s=timeout_ms / 1000,
    )
    if found:
        logger.debug(f"[AUTH] Visible: {found}")
    return found
