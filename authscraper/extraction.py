"""
Content Extraction
==================
Reads structured content from the (possibly authenticated) page.

Pipeline, each step a precondition for the next:
    1. Make sure the browser shows the target page
    2. Wait for ``document.body``
    3. Scroll until the document height stops growing (lazy content)
    4. Parse ``page.content()`` with BeautifulSoup + lxml:
       title, meta description, cleaned body text, images, links
"""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import List, Optional

from bs4 import BeautifulSoup, Comment
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from .dom_scripts import HAS_BODY, SCROLL_TO_BOTTOM, SCROLL_TO_TOP, try_script
from .errors import ContentExtractionError, NavigationError
from .models import ExtractedDocument, ImageRef, LinkRef
from .run_config import ScraperRunConfig
from .utils import absolute_http_url, clean_text, poll_until, truncate, urls_match

logger = logging.getLogger(__name__)

_BS_PARSER = "lxml"

# Never part of the readable text
TEXT_STRIP_TAGS = (
    'script', 'style', 'noscript', 'nav', 'header', 'footer', 'svg',
    'button', 'input', 'select', 'textarea',
)


# ---------------------------------------------------------------------------
# HTML → ExtractedDocument
# ---------------------------------------------------------------------------

def parse_document(
    html: str,
    base_url: str,
    config: Optional[ScraperRunConfig] = None,
    title: Optional[str] = None,
) -> ExtractedDocument:
    """Parse rendered HTML into an ``ExtractedDocument``.

    Args:
        html: Rendered page source.
        base_url: URL the page was loaded from; relative URLs resolve
            against it (or against ``<base href>`` when present).
        config: Caps for text, images and links.
        title: Title reported by the browser; the ``<title>`` tag is used
            when it is empty.
    """
    cfg = config or ScraperRunConfig()
    soup = BeautifulSoup(html or "", _BS_PARSER)

    base_tag = soup.find('base', href=True)
    if base_tag:
        base_url = absolute_http_url(base_tag['href'], base_url) or base_url

    return ExtractedDocument(
        title=clean_text(title or "") or _extract_title(soup),
        description=_extract_meta_description(soup),
        text=_extract_text(soup, cfg.max_text_chars),
        images=tuple(_extract_images(soup, base_url, cfg.max_images)),
        links=tuple(_extract_links(soup, base_url, cfg.max_links, cfg.max_link_text_chars)),
    )


def _extract_title(soup: BeautifulSoup) -> Optional[str]:
    title_tag = soup.find('title')
    if title_tag and title_tag.get_text():
        return clean_text(title_tag.get_text())
    return None


def _extract_meta_description(soup: BeautifulSoup) -> Optional[str]:
    meta = soup.find('meta', attrs={'name': 'description'})
    if meta and meta.get('content') is not None:
        return meta['content']
    return None


def _extract_text(soup: BeautifulSoup, max_chars: int) -> Optional[str]:
    """Visible body text with non-content elements removed."""
    # Work on a copy so links and images still see the full tree
    text_soup = copy.deepcopy(soup)
    for comment in text_soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()
    for element in text_soup.find_all(TEXT_STRIP_TAGS):
        element.decompose()

    body = text_soup.find('body')
    if body is None:
        return None
    return truncate(clean_text(body.get_text(separator=' ')), max_chars)


def _extract_images(soup: BeautifulSoup, base_url: str, limit: int) -> List[ImageRef]:
    images: List[ImageRef] = []
    for img in soup.find_all('img'):
        if len(images) >= limit:
            break
        src = (
            absolute_http_url(img.get('src', ''), base_url)
            or absolute_http_url(img.get('data-src', ''), base_url)
        )
        if src:
            images.append(ImageRef(src=src, alt=img.get('alt', '') or ''))
    return images


def _extract_links(
    soup: BeautifulSoup,
    base_url: str,
    limit: int,
    max_text: int,
) -> List[LinkRef]:
    links: List[LinkRef] = []
    for anchor in soup.find_all('a', href=True):
        if len(links) >= limit:
            break
        href = absolute_http_url(anchor['href'], base_url)
        if not href:
            continue
        text = truncate(clean_text(anchor.get_text(separator=' ')), max_text)
        links.append(LinkRef(href=href, text=text))
    return links


# ---------------------------------------------------------------------------
# Browser side
# ---------------------------------------------------------------------------

class ContentExtractor:
    """Drives the page into an extractable state, then parses it."""

    def __init__(self, config: Optional[ScraperRunConfig] = None):
        self.config = config or ScraperRunConfig()

    async def extract(self, page: Page, target_url: str) -> ExtractedDocument:
        """
        Raises:
            NavigationError: the target page could not be opened.
            ContentExtractionError: no body appeared or the DOM was unreadable.
        """
        if not urls_match(page.url, target_url):
            logger.info(f"[EXTRACT] Navigating to: {target_url[:80]}")
            try:
                await page.goto(
                    target_url,
                    timeout=self.config.navigation_timeout_ms,
                    wait_until="domcontentloaded",
                )
            except PlaywrightError as exc:
                raise NavigationError(f"Failed to navigate: {exc}") from exc
            await asyncio.sleep(self.config.target_settle_s)

        await self._wait_for_body(page)
        await self._scroll_for_lazy_content(page)

        try:
            html = await page.content()
        except PlaywrightError as exc:
            raise ContentExtractionError(str(exc)) from exc
        try:
            title = await page.title()
        except PlaywrightError:
            title = None

        document = parse_document(html, page.url, self.config, title=title)
        logger.info(
            f"[EXTRACT] {page.url[:70]} | title='{(document.title or '')[:50]}', "
            f"chars={len(document.text or ''):,}, images={len(document.images)}, "
            f"links={len(document.links)}"
        )
        return document

    async def _wait_for_body(self, page: Page) -> None:
        found = await poll_until(
            lambda: try_script(page, HAS_BODY, default=False),
            interval_s=self.config.body_poll_interval_s,
            timeout_s=self.config.body_wait_timeout_s,
        )
        if not found:
            raise ContentExtractionError("Timeout waiting for body element")

    async def _scroll_for_lazy_content(self, page: Page) -> int:
        """Scroll to the bottom until the height is stable; returns scroll count."""
        last_height = -1
        scrolls = 0

        async def height_is_stable() -> bool:
            nonlocal last_height, scrolls
            height = await try_script(page, SCROLL_TO_BOTTOM, default=None)
            scrolls += 1
            if height is None or height == last_height:
                return True
            last_height = height
            return False

        await poll_until(
            height_is_stable,
            interval_s=self.config.scroll_interval_s,
            max_attempts=self.config.max_scroll_iterations,
        )
        await try_script(page, SCROLL_TO_TOP)
        await asyncio.sleep(self.config.scroll_top_settle_s)
        logger.debug(f"[EXTRACT] Lazy-load scrolls: {scrolls}, height={last_height}")
        return scrolls
