"""Tests for selector chains, the visibility probe and human-like typing."""

import asyncio
import random
import time
from dataclasses import replace

from playwright.async_api import Error as PlaywrightError

from authscraper.auth.human_input import plan_keystroke_delays, type_text
from authscraper.auth.selectors import build_chain, find_visible
from authscraper.run_config import ScraperRunConfig


class TestBuildChain:

    def test_explicit_first_then_sources_in_order(self):
        chain = build_chain("#mine", ["#a", "#b"], ["#c"])
        assert chain == ["#mine", "#a", "#b", "#c"]

    def test_duplicates_dropped_keeping_first_position(self):
        chain = build_chain("#b", ["#a", "#b"], ["#a", "#c"])
        assert chain == ["#b", "#a", "#c"]

    def test_blank_explicit_ignored(self):
        assert build_chain(None, ["#a"]) == ["#a"]
        assert build_chain("  ", ["#a"]) == ["#a"]


class TestFindVisible:

    def test_earlier_selector_wins_when_both_visible(self, page):
        page.visible = {"#second", "#first"}
        found = asyncio.run(find_visible(page, ["#first", "#second"], 100, 10))
        assert found == "#first"

        found = asyncio.run(find_visible(page, ["#second", "#first"], 100, 10))
        assert found == "#second"

    def test_skips_hidden_candidates(self, page):
        page.visible = {"#c"}
        assert asyncio.run(find_visible(page, ["#a", "#b", "#c"], 100, 10)) == "#c"

    def test_element_appearing_later_is_found(self, page):
        ticks = []

        def visible(selector):
            ticks.append(selector)
            return len(ticks) > 4 and selector == "#late"

        page.handlers["is_visible"] = visible
        assert asyncio.run(find_visible(page, ["#late"], 500, 10)) == "#late"

    def test_not_found_after_exactly_the_timeout(self, page):
        start = time.monotonic()
        found = asyncio.run(find_visible(page, ["#missing"], 200, 50))
        elapsed = time.monotonic() - start
        assert found is None
        assert 0.19 <= elapsed < 0.2 + 0.05 + 0.1

    def test_evaluation_errors_count_as_invisible(self, page):
        page.handlers["is_visible"] = PlaywrightError("Execution context was destroyed")
        assert asyncio.run(find_visible(page, ["#a"], 50, 10)) is None

    def test_empty_chain(self, page):
        assert asyncio.run(find_visible(page, [], 1000, 10)) is None
        assert page.evaluated == []


class TestKeystrokePlan:

    def test_one_delay_per_character(self):
        delays = plan_keystroke_delays("hunter2", rng=random.Random(1))
        assert len(delays) == 7

    def test_delays_within_base_plus_jitter(self):
        cfg = replace(ScraperRunConfig(), thinking_pause_chance=0.0)
        delays = plan_keystroke_delays("x" * 200, cfg, random.Random(7))
        assert all(60 <= d <= 100 for d in delays)
        assert len(set(delays)) > 1

    def test_thinking_pauses(self):
        cfg = replace(ScraperRunConfig(), thinking_pause_chance=1.0)
        delays = plan_keystroke_delays("abc", cfg, random.Random(3))
        assert all(60 + 250 <= d <= 100 + 600 for d in delays)

    def test_seeded_plans_repeat(self):
        a = plan_keystroke_delays("password", rng=random.Random(42))
        b = plan_keystroke_delays("password", rng=random.Random(42))
        assert a == b


class TestTypeText:

    def test_passes_text_and_plan_to_page(self, page, fast_config):
        seen = {}

        def typer(arg):
            seen.update(arg)
            return True

        page.handlers["type_text"] = typer
        ok = asyncio.run(type_text(page, "#email", "me@example.com", fast_config))
        assert ok is True
        assert seen["selector"] == "#email"
        assert seen["text"] == "me@example.com"
        assert len(seen["delays"]) == len("me@example.com")

    def test_missing_or_detached_field_returns_false(self, page, fast_config):
        page.handlers["type_text"] = False
        assert asyncio.run(type_text(page, "#gone", "abc", fast_config)) is False

    def test_evaluation_error_returns_false(self, page, fast_config):
        page.handlers["type_text"] = PlaywrightError("Target closed")
        assert asyncio.run(type_text(page, "#email", "abc", fast_config)) is False
