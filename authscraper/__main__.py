#!/usr/bin/env python3
"""
Command-line entry point
========================
Scrape one URL and print the JSON result, or run the HTTP service.

All tuning flows through ``ScraperRunConfig``; credentials come from flags
or from the ``SCRAPER_EMAIL`` / ``SCRAPER_PASSWORD`` environment variables
(a ``.env`` file is honoured).

Run with:
    python -m authscraper https://github.com/settings/profile --platform github
    python -m authscraper --serve --port 8000
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Load .env file (credentials, config) before anything reads the environment
_env_path = Path(__file__).resolve().parent.parent / '.env'
if _env_path.exists():
    load_dotenv(_env_path)
else:
    load_dotenv()  # tries CWD

from .models import CookieRecord, Credentials
from .run_config import ScraperRunConfig
from .service import scrape_to_result

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s | %(levelname)s | %(message)s',
        datefmt='%H:%M:%S',
        stream=sys.stderr,
    )


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='authscraper',
        description='Log in to a site (cookies or login form) and scrape a page.',
    )
    parser.add_argument('url', nargs='?', help='Page to scrape')
    parser.add_argument('--output', '-o', type=str, metavar='PATH',
                        help='Write the JSON result to a file instead of stdout')
    parser.add_argument('--headed', action='store_true', help='Show the browser window')
    parser.add_argument('--fast', action='store_true',
                        help='Shorten every settle delay (for cooperative test sites)')
    parser.add_argument('--max-text-chars', type=int, help='Cap on extracted body text')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')

    # ── Authentication flags ──────────────────────────────────────
    auth_group = parser.add_argument_group(
        'Authentication',
        'Credentials fall back to SCRAPER_EMAIL / SCRAPER_PASSWORD env vars.')
    auth_group.add_argument('--email', type=str, help='Login email or username')
    auth_group.add_argument('--password', type=str, help='Login password')
    auth_group.add_argument('--platform', type=str,
                            help='Platform id (linkedin, github, x, ...); default: from URL')
    auth_group.add_argument('--login-url', type=str, metavar='URL',
                            help='Login page URL (overrides the catalog)')
    auth_group.add_argument('--email-selector', type=str, metavar='CSS')
    auth_group.add_argument('--password-selector', type=str, metavar='CSS')
    auth_group.add_argument('--submit-selector', type=str, metavar='CSS')
    auth_group.add_argument('--wait-after-login', type=float, metavar='SECS',
                            help='Post-submit wait (never below the configured minimum)')
    auth_group.add_argument('--cookies-file', type=str, metavar='PATH',
                            help='JSON list of {name, value, domain, path} cookies')

    # ── Service flags ─────────────────────────────────────────────
    serve_group = parser.add_argument_group('Service', 'Run the HTTP API instead')
    serve_group.add_argument('--serve', action='store_true', help='Start the HTTP service')
    serve_group.add_argument('--host', type=str, help='Bind address (default: 0.0.0.0)')
    serve_group.add_argument('--port', type=int, help='Port (default: $PORT or 8000)')
    return parser


def load_cookies_file(path: str) -> List[CookieRecord]:
    """Read a JSON cookie list; accepts a bare list or ``{"cookies": [...]}``."""
    data = json.loads(Path(path).read_text(encoding='utf-8'))
    if isinstance(data, dict):
        data = data.get('cookies', [])
    return [CookieRecord.from_dict(c) for c in data]


def credentials_from_args(args, environ: Optional[dict] = None) -> Optional[Credentials]:
    """Resolve credentials: CLI flags → env vars.  None means "no login"."""
    env = os.environ if environ is None else environ
    email = args.email or env.get('SCRAPER_EMAIL', '')
    password = args.password or env.get('SCRAPER_PASSWORD', '')
    cookies = load_cookies_file(args.cookies_file) if args.cookies_file else []

    if not (email and password) and not cookies:
        if email or password:
            logger.warning("[AUTH] Credentials incomplete, scraping without login")
        return None

    return Credentials(
        email=email,
        password=password,
        platform=args.platform,
        login_url=args.login_url,
        email_selector=args.email_selector,
        password_selector=args.password_selector,
        submit_selector=args.submit_selector,
        wait_after_login_secs=args.wait_after_login,
        cookies=tuple(cookies),
    )


# ---------------------------------------------------------------------------
# Modes
# ---------------------------------------------------------------------------

def _serve(cfg: ScraperRunConfig) -> None:
    import uvicorn
    from .api import create_app

    logger.info(f"[API] Listening on {cfg.host}:{cfg.port}")
    uvicorn.run(create_app(cfg), host=cfg.host, port=cfg.port)


def _scrape_once(url: str, args, cfg: ScraperRunConfig) -> int:
    if not url.startswith(('http://', 'https://')):
        url = 'https://' + url

    credentials = credentials_from_args(args)
    result = asyncio.run(scrape_to_result(url, credentials, cfg))
    payload = json.dumps(result.to_dict(), indent=2, ensure_ascii=False)

    if args.output:
        Path(args.output).write_text(payload, encoding='utf-8')
        logger.info(f"Saved result to {args.output}")
    else:
        print(payload)
    return 0 if result.success else 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    cfg = ScraperRunConfig.from_cli_args(args)

    if args.serve:
        _serve(cfg)
        return 0
    if not args.url:
        parser.error('a URL is required unless --serve is given')
    return _scrape_once(args.url, args, cfg)


if __name__ == '__main__':
    sys.exit(main())
