"""
Unified Run Configuration
=========================
Single source of truth for every scraper timeout, settle delay, cap and
browser flag.

The authentication engine, the extraction pipeline, the browser session
and the outer surfaces (CLI, HTTP) all read from this object.  CLI flags
and environment variables populate it; nothing else hard-codes a number.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Optional

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Canonical defaults: the ONLY place these numbers live
# ---------------------------------------------------------------------------
_DEFAULTS = {
    # Browser
    "headless": True,
    "user_agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/129.0.0.0 Safari/537.36"
    ),
    "viewport_width": 1920,
    "viewport_height": 1080,
    "locale": "en-US",
    "timezone_id": "America/New_York",
    "navigation_timeout_ms": 30_000,

    # Selector probes
    "field_timeout_ms": 15_000,      # email / password field visibility
    "multi_step_probe_ms": 2_000,    # password already visible after email?
    "submit_probe_ms": 3_000,
    "success_probe_ms": 3_000,
    "poll_interval_ms": 250,

    # Settle delays (seconds)
    "cookie_settle_s": 1.0,          # after injecting cookies
    "cookie_verify_settle_s": 3.0,   # after navigating with cookies
    "login_page_settle_s": 2.5,
    "after_typing_settle_s": 0.6,
    "next_step_settle_s": 3.0,
    "post_submit_settle_s": 2.0,
    "target_settle_s": 2.0,
    "overlay_settle_s": 1.0,
    "min_post_submit_wait_s": 8.0,   # lower bound for navigation wait after submit
    "max_dismiss_attempts": 3,

    # Human input cadence (milliseconds)
    "keystroke_base_ms": 60.0,
    "keystroke_jitter_ms": 40.0,
    "thinking_pause_chance": 0.08,
    "thinking_pause_min_ms": 250.0,
    "thinking_pause_max_ms": 600.0,

    # Extraction
    "body_wait_timeout_s": 10.0,
    "body_poll_interval_s": 0.5,
    "max_scroll_iterations": 5,
    "scroll_interval_s": 1.5,
    "scroll_top_settle_s": 0.5,
    "max_text_chars": 100_000,
    "max_images": 20,
    "max_links": 50,
    "max_link_text_chars": 200,

    # HTTP service
    "host": "0.0.0.0",
    "port": 8000,
}

# Fields scaled by ``scaled()``: pure waiting time, never caps or probes
_DELAY_FIELDS = (
    "cookie_settle_s", "cookie_verify_settle_s", "login_page_settle_s",
    "after_typing_settle_s", "next_step_settle_s", "post_submit_settle_s",
    "target_settle_s", "overlay_settle_s", "min_post_submit_wait_s",
    "scroll_interval_s", "scroll_top_settle_s",
    "keystroke_base_ms", "keystroke_jitter_ms",
    "thinking_pause_min_ms", "thinking_pause_max_ms",
)


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ScraperRunConfig:
    """
    Unified configuration consumed by every scraper subsystem.

    Populate via:
      - ``ScraperRunConfig()``                 → all defaults
      - ``ScraperRunConfig(max_images=5)``     → override one value
      - ``ScraperRunConfig.from_env()``        → SCRAPER_* environment variables
      - ``ScraperRunConfig.from_cli_args(ns)`` → argparse Namespace
    """

    # ---- Browser ----
    headless: bool = _DEFAULTS["headless"]
    user_agent: str = _DEFAULTS["user_agent"]
    viewport_width: int = _DEFAULTS["viewport_width"]
    viewport_height: int = _DEFAULTS["viewport_height"]
    locale: str = _DEFAULTS["locale"]
    timezone_id: str = _DEFAULTS["timezone_id"]
    navigation_timeout_ms: int = _DEFAULTS["navigation_timeout_ms"]

    # ---- Selector probes ----
    field_timeout_ms: int = _DEFAULTS["field_timeout_ms"]
    multi_step_probe_ms: int = _DEFAULTS["multi_step_probe_ms"]
    submit_probe_ms: int = _DEFAULTS["submit_probe_ms"]
    success_probe_ms: int = _DEFAULTS["success_probe_ms"]
    poll_interval_ms: int = _DEFAULTS["poll_interval_ms"]

    # ---- Settle delays ----
    cookie_settle_s: float = _DEFAULTS["cookie_settle_s"]
    cookie_verify_settle_s: float = _DEFAULTS["cookie_verify_settle_s"]
    login_page_settle_s: float = _DEFAULTS["login_page_settle_s"]
    after_typing_settle_s: float = _DEFAULTS["after_typing_settle_s"]
    next_step_settle_s: float = _DEFAULTS["next_step_settle_s"]
    post_submit_settle_s: float = _DEFAULTS["post_submit_settle_s"]
    target_settle_s: float = _DEFAULTS["target_settle_s"]
    overlay_settle_s: float = _DEFAULTS["overlay_settle_s"]
    min_post_submit_wait_s: float = _DEFAULTS["min_post_submit_wait_s"]
    max_dismiss_attempts: int = _DEFAULTS["max_dismiss_attempts"]

    # ---- Human input ----
    keystroke_base_ms: float = _DEFAULTS["keystroke_base_ms"]
    keystroke_jitter_ms: float = _DEFAULTS["keystroke_jitter_ms"]
    thinking_pause_chance: float = _DEFAULTS["thinking_pause_chance"]
    thinking_pause_min_ms: float = _DEFAULTS["thinking_pause_min_ms"]
    thinking_pause_max_ms: float = _DEFAULTS["thinking_pause_max_ms"]

    # ---- Extraction ----
    body_wait_timeout_s: float = _DEFAULTS["body_wait_timeout_s"]
    body_poll_interval_s: float = _DEFAULTS["body_poll_interval_s"]
    max_scroll_iterations: int = _DEFAULTS["max_scroll_iterations"]
    scroll_interval_s: float = _DEFAULTS["scroll_interval_s"]
    scroll_top_settle_s: float = _DEFAULTS["scroll_top_settle_s"]
    max_text_chars: int = _DEFAULTS["max_text_chars"]
    max_images: int = _DEFAULTS["max_images"]
    max_links: int = _DEFAULTS["max_links"]
    max_link_text_chars: int = _DEFAULTS["max_link_text_chars"]

    # ---- HTTP service ----
    host: str = _DEFAULTS["host"]
    port: int = _DEFAULTS["port"]

    # -----------------------------------------------------------------------
    # Factory helpers
    # -----------------------------------------------------------------------
    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "ScraperRunConfig":
        """Build config from ``SCRAPER_*`` environment variables.

        Every field can be overridden as ``SCRAPER_<FIELD_NAME>``; ``PORT``
        and ``HOST`` are also honoured for container deployments.
        """
        env = os.environ if environ is None else environ
        overrides = {}
        for f in fields(cls):
            raw = env.get(f"SCRAPER_{f.name.upper()}")
            if raw is None and f.name in ("port", "host"):
                raw = env.get(f.name.upper())
            if raw is None or raw == "":
                continue
            default = _DEFAULTS[f.name]
            try:
                if isinstance(default, bool):
                    overrides[f.name] = _env_bool(raw)
                elif isinstance(default, int):
                    overrides[f.name] = int(raw)
                elif isinstance(default, float):
                    overrides[f.name] = float(raw)
                else:
                    overrides[f.name] = raw
            except ValueError:
                logger.warning(f"[CONFIG] Ignoring invalid SCRAPER_{f.name.upper()}={raw!r}")
        return cls(**overrides)

    @classmethod
    def from_cli_args(cls, args, base: Optional["ScraperRunConfig"] = None) -> "ScraperRunConfig":
        """Build config from an argparse Namespace (``__main__.py``)."""
        cfg = base or cls.from_env()
        updates = {}
        if getattr(args, "headed", False):
            updates["headless"] = False
        if getattr(args, "host", None):
            updates["host"] = args.host
        if getattr(args, "port", None):
            updates["port"] = args.port
        if getattr(args, "max_text_chars", None):
            updates["max_text_chars"] = args.max_text_chars
        cfg = replace(cfg, **updates)
        if getattr(args, "fast", False):
            cfg = cfg.scaled(0.25)
        return cfg

    def scaled(self, factor: float) -> "ScraperRunConfig":
        """Return a copy with every pure delay multiplied by *factor*."""
        return replace(
            self, **{name: getattr(self, name) * factor for name in _DELAY_FIELDS}
        )

    # -----------------------------------------------------------------------
    # Logging helper
    # -----------------------------------------------------------------------
    def log_summary(self, url: str, login: bool = False) -> None:
        """Emit a structured summary to the logger."""
        logger.info("=" * 60)
        logger.info("SCRAPE RUN CONFIG")
        logger.info("=" * 60)
        logger.info(f"  URL:              {url}")
        logger.info(f"  Headless:         {self.headless}")
        logger.info(f"  Viewport:         {self.viewport_width}x{self.viewport_height}")
        logger.info(f"  Login:            {'requested' if login else 'none'}")
        logger.info(f"  Field Timeout:    {self.field_timeout_ms}ms")
        logger.info(f"  Post-submit Wait: >= {self.min_post_submit_wait_s}s")
        logger.info(
            f"  Caps:             text={self.max_text_chars}, "
            f"images={self.max_images}, links={self.max_links}"
        )
        logger.info("=" * 60)
