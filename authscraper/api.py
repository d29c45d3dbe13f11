"""FastAPI application factory.

Routes
------
    GET  /health : liveness probe, plain ``OK``
    POST /scrape : scrape one URL, optionally logging in first

A failed scrape answers 500 with ``success: false``, a readable ``error``
and whatever login metadata was known when it failed.

The scrape coroutine is looked up on ``app.state.scrape`` so tests can
substitute it.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field

from . import __version__
from .errors import ScrapeError
from .models import CookieRecord, Credentials, ScrapeResult
from .run_config import ScraperRunConfig
from .service import scrape

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Request / response schemas
# ---------------------------------------------------------------------------

class CookieIn(BaseModel):
    name: str
    value: str
    domain: str
    path: Optional[str] = None


class LoginIn(BaseModel):
    email: str
    password: str
    platform: Optional[str] = None
    login_url: Optional[str] = None
    email_selector: Optional[str] = None
    password_selector: Optional[str] = None
    submit_selector: Optional[str] = None
    wait_after_login_secs: Optional[float] = Field(default=None, ge=0)
    cookies: Optional[List[CookieIn]] = None

    def to_credentials(self) -> Credentials:
        return Credentials(
            email=self.email,
            password=self.password,
            platform=self.platform or None,
            login_url=self.login_url or None,
            email_selector=self.email_selector or None,
            password_selector=self.password_selector or None,
            submit_selector=self.submit_selector or None,
            wait_after_login_secs=self.wait_after_login_secs,
            cookies=tuple(
                CookieRecord(name=c.name, value=c.value, domain=c.domain, path=c.path)
                for c in (self.cookies or [])
            ),
        )


class ScrapeRequest(BaseModel):
    url: str
    login: Optional[LoginIn] = None


class ImageOut(BaseModel):
    src: str
    alt: str = ""


class LinkOut(BaseModel):
    href: str
    text: str = ""


class ScrapeResponse(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    url: str
    text: Optional[str] = None
    images: List[ImageOut] = []
    links: List[LinkOut] = []
    success: bool
    error: Optional[str] = None
    login_attempted: bool = False
    login_success: Optional[bool] = None
    platform_detected: Optional[str] = None
    requires_2fa: Optional[bool] = None


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

def create_app(config: Optional[ScraperRunConfig] = None) -> FastAPI:
    """Return a configured FastAPI application instance."""
    app = FastAPI(
        title="Auth Scraper API",
        description="Scrape a page, logging in with cookies or a login form first.",
        version=__version__,
    )
    app.state.config = config or ScraperRunConfig.from_env()
    app.state.scrape = scrape

    @app.get("/health", response_class=PlainTextResponse)
    async def health() -> str:
        return "OK"

    @app.post("/scrape", response_model=ScrapeResponse)
    async def scrape_route(body: ScrapeRequest, request: Request):
        state = request.app.state
        credentials = body.login.to_credentials() if body.login else None
        logger.info(
            f"[API] Scrape request: {body.url[:80]} "
            f"(login={'yes' if credentials else 'no'})"
        )
        try:
            result = await state.scrape(body.url, credentials, state.config)
        except ScrapeError as exc:
            logger.error(f"[API] Scrape failed: {exc}")
            failed = ScrapeResult.from_error(body.url, exc)
            return JSONResponse(status_code=500, content=failed.to_dict())
        return result.to_dict()

    return app


# Module-level instance used by uvicorn:
#   uvicorn authscraper.api:app
app = create_app()
