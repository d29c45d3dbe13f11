"""
Human Input
===========
Character-by-character typing with randomised cadence.

The delays are planned here so they can be seeded and inspected; one
page-side script then replays them, dispatching the keyboard and input
events a real keystroke produces so reactive frameworks register the value.
"""

from __future__ import annotations

import logging
import random
from typing import List, Optional

from playwright.async_api import Page

from ..dom_scripts import TYPE_TEXT, run_script
from ..errors import ScriptEvaluationError
from ..run_config import ScraperRunConfig

logger = logging.getLogger(__name__)


def plan_keystroke_delays(
    text: str,
    config: Optional[ScraperRunConfig] = None,
    rng: Optional[random.Random] = None,
) -> List[int]:
    """Milliseconds to wait before each character of *text*.

    Base delay plus uniform jitter, with an occasional longer pause.
    """
    cfg = config or ScraperRunConfig()
    rng = rng or random.Random()
    delays = []
    for _ in text:
        delay = cfg.keystroke_base_ms + rng.uniform(0, cfg.keystroke_jitter_ms)
        if rng.random() < cfg.thinking_pause_chance:
            delay += rng.uniform(cfg.thinking_pause_min_ms, cfg.thinking_pause_max_ms)
        delays.append(int(delay))
    return delays


async def type_text(
    page: Page,
    selector: str,
    text: str,
    config: Optional[ScraperRunConfig] = None,
    rng: Optional[random.Random] = None,
) -> bool:
    """Type *text* into the field at *selector*.

    Returns:
        True once every character was entered.  False when the field is
        missing, hidden, detached mid-typing, or the evaluation failed.
        Never raises.
    """
    cfg = config or ScraperRunConfig()
    arg = {
        "selector": selector,
        "text": text,
        "delays": plan_keystroke_delays(text, cfg, rng),
        "pauses": {
            "scroll": int(400 * cfg.keystroke_base_ms / 60),
            "focus": int(150 * cfg.keystroke_base_ms / 60),
            "finish": int(250 * cfg.keystroke_base_ms / 60),
        },
    }
    try:
        typed = await run_script(page, TYPE_TEXT, arg)
    except ScriptEvaluationError as exc:
        logger.warning(f"[AUTH] Typing into {selector} failed: {exc.detail}")
        return False

    if not typed:
        logger.warning(f"[AUTH] Field {selector} vanished or is hidden")
        return False
    logger.debug(f"[AUTH] Typed {len(text)} chars into {selector}")
    return True
