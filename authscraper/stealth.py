"""
Stealth Layer
=============
Browser fingerprint overrides applied before the first navigation.

Two halves:
    - ``launch_args()`` / ``context_options()``: launch flags and context
      arguments (user agent, viewport, locale, timezone, Accept-Language).
    - ``apply_evasions()``: an init script registered on the context that
      hides the usual automation tells in every page and frame.

Evasion is best effort.  A failure is logged and the scrape continues
with whatever disguise is in place.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from playwright.async_api import BrowserContext
from playwright.async_api import Error as PlaywrightError

from .run_config import ScraperRunConfig

logger = logging.getLogger(__name__)


# Registered with add_init_script; runs before any page script
_EVASION_JS = """
(() => {
    if (window.__authscraperEvasions) return;
    Object.defineProperty(window, '__authscraperEvasions', { value: true, enumerable: false });

    try {
        Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
    } catch (e) {}

    try {
        Object.defineProperty(navigator, 'plugins', {
            get: () => [
                { name: 'Chrome PDF Plugin', filename: 'internal-pdf-viewer',
                  description: 'Portable Document Format', length: 1 },
                { name: 'Chrome PDF Viewer', filename: 'mhjfbmdgcfjbbpaeojofohoefgiehjai',
                  description: 'Portable Document Format', length: 1 },
            ],
        });
    } catch (e) {}

    try {
        Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
    } catch (e) {}

    if (!window.chrome) window.chrome = {};
    if (!window.chrome.runtime) window.chrome.runtime = {};

    try {
        const originalQuery = window.navigator.permissions.query;
        window.navigator.permissions.query = (parameters) => (
            parameters && parameters.name === 'notifications'
                ? Promise.resolve({ state: Notification.permission })
                : originalQuery.call(window.navigator.permissions, parameters)
        );
    } catch (e) {}

    try {
        const getParameter = WebGLRenderingContext.prototype.getParameter;
        WebGLRenderingContext.prototype.getParameter = function (parameter) {
            if (parameter === 37445) return 'Intel Open Source Technology Center';
            if (parameter === 37446) return 'Mesa DRI Intel(R) HD Graphics 4000 (IVB GT2)';
            return getParameter.call(this, parameter);
        };
    } catch (e) {}
})();
"""


def launch_args() -> List[str]:
    """Chromium flags for a headless server launch."""
    return [
        '--no-sandbox',
        '--disable-dev-shm-usage',
        '--disable-blink-features=AutomationControlled',
        '--disable-extensions',
        '--disable-gpu',
    ]


def context_options(config: ScraperRunConfig) -> Dict[str, Any]:
    """Keyword arguments for ``Browser.new_context``."""
    return {
        "user_agent": config.user_agent,
        "viewport": {"width": config.viewport_width, "height": config.viewport_height},
        "locale": config.locale,
        "timezone_id": config.timezone_id,
        "extra_http_headers": {"Accept-Language": "en-US,en;q=0.9"},
    }


async def apply_evasions(context: BrowserContext) -> bool:
    """Register the evasion init script on *context*.

    Safe to call more than once: the script skips itself when it already
    ran in a page.

    Returns:
        True if the script was registered.
    """
    try:
        await context.add_init_script(_EVASION_JS)
    except PlaywrightError as exc:
        logger.warning(f"[STEALTH] Could not register evasion script: {exc}")
        return False
    logger.debug("[STEALTH] Evasion script registered")
    return True
