"""
Page-side DOM Scripts
=====================
Every snippet the scraper evaluates inside the page lives here as a named,
versioned ``DomScript``.

The Python side never inspects a script body: it passes a JSON argument
and reads a JSON result.  All decisions (priority rules, verification,
retries) are made in Python from those results.

Bump ``version`` whenever a script's argument or result shape changes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from .errors import ScriptEvaluationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DomScript:
    """A named page-side function expression taking one JSON argument."""
    name: str
    version: int
    source: str

    def __repr__(self) -> str:
        return f"DomScript({self.name}@v{self.version})"


# Shared visibility test, spliced into scripts that need it
_VISIBLE_FN = """
    const isVisible = (el) => {
        if (!el || !el.isConnected) return false;
        const style = window.getComputedStyle(el);
        if (style.display === 'none' || style.visibility === 'hidden') return false;
        if (parseFloat(style.opacity || '1') <= 0) return false;
        const rect = el.getBoundingClientRect();
        return rect.width > 0 && rect.height > 0;
    };
"""

_LABEL_MATCH_FN = """
    const escapeRe = (s) => s.replace(/[.*+?^${}()|[\\]\\\\]/g, '\\\\$&');
    const labelMatches = (label, text, mode) => {
        if (mode === 'exact') return label === text;
        if (mode === 'contains') return label.includes(text);
        return new RegExp('(^|\\\\W)' + escapeRe(text) + '($|\\\\W)').test(label);
    };
"""


# ---------------------------------------------------------------------------
# Selector probes
# ---------------------------------------------------------------------------

IS_VISIBLE = DomScript("is_visible", 1, """
(selector) => {
""" + _VISIBLE_FN + """
    try {
        return isVisible(document.querySelector(selector));
    } catch (e) {
        return false;
    }
}
""")

HAS_BODY = DomScript("has_body", 1, """
() => !!document.body
""")


# ---------------------------------------------------------------------------
# Input simulation
# ---------------------------------------------------------------------------

# arg: {selector, text, delays: [ms per char], pauses: {scroll, focus, finish}}
TYPE_TEXT = DomScript("type_text", 2, """
async ({selector, text, delays, pauses}) => {
""" + _VISIBLE_FN + """
    const sleep = (ms) => new Promise(r => setTimeout(r, ms));
    const field = document.querySelector(selector);
    if (!isVisible(field)) return false;

    field.scrollIntoView({ behavior: 'smooth', block: 'center' });
    await sleep(pauses.scroll);
    field.focus();
    field.click();
    await sleep(pauses.focus);

    // React / Vue track the native setter, not the value property
    const proto = field instanceof HTMLTextAreaElement
        ? HTMLTextAreaElement.prototype : HTMLInputElement.prototype;
    const descriptor = Object.getOwnPropertyDescriptor(proto, 'value');
    const setValue = (v) => descriptor && descriptor.set
        ? descriptor.set.call(field, v) : (field.value = v);

    setValue('');
    field.dispatchEvent(new Event('focus', { bubbles: true }));
    field.dispatchEvent(new Event('input', { bubbles: true }));

    for (let i = 0; i < text.length; i++) {
        await sleep(delays[i] || 0);
        if (!field.isConnected) return false;
        const ch = text.charAt(i);
        field.dispatchEvent(new KeyboardEvent('keydown', { key: ch, bubbles: true, cancelable: true }));
        field.dispatchEvent(new KeyboardEvent('keypress', { key: ch, bubbles: true, cancelable: true }));
        setValue(field.value + ch);
        field.dispatchEvent(new InputEvent('input', { data: ch, inputType: 'insertText', bubbles: true }));
        field.dispatchEvent(new KeyboardEvent('keyup', { key: ch, bubbles: true }));
    }

    await sleep(pauses.finish);
    if (!field.isConnected) return false;
    field.dispatchEvent(new Event('change', { bubbles: true }));
    field.dispatchEvent(new Event('blur', { bubbles: true }));
    return true;
}
""")

# arg: {texts: [...], mode: 'word'|'exact'|'contains', maxLength}
# returns the clicked label or null
CLICK_BUTTON_BY_TEXT = DomScript("click_button_by_text", 1, """
({texts, mode, maxLength}) => {
""" + _VISIBLE_FN + _LABEL_MATCH_FN + """
    const candidates = document.querySelectorAll(
        'button, input[type="submit"], input[type="button"], ' +
        'a[role="button"], div[role="button"], span[role="button"]'
    );
    for (const btn of candidates) {
        const label = (btn.innerText || btn.textContent || btn.value ||
                       btn.getAttribute('aria-label') || '').trim().toLowerCase();
        if (!label || label.length > maxLength || !isVisible(btn)) continue;
        if (texts.some(t => labelMatches(label, t, mode))) {
            btn.click();
            return label;
        }
    }
    return null;
}
""")

# arg: selector of a field inside the form (may be null)
SUBMIT_FORM = DomScript("submit_form", 1, """
(selector) => {
    const field = selector ? document.querySelector(selector) : null;
    const form = (field && field.form) || document.querySelector('form');
    if (!form) return false;
    if (typeof form.requestSubmit === 'function') {
        form.requestSubmit();
    } else {
        form.submit();
    }
    return true;
}
""")


# ---------------------------------------------------------------------------
# Page classification
# ---------------------------------------------------------------------------

# arg: marker lists (see auth/classifier.py); returns raw booleans + URL
PAGE_SIGNALS = DomScript("page_signals", 2, """
(markers) => {
""" + _VISIBLE_FN + _LABEL_MATCH_FN + """
    const all = (sel) => { try { return Array.from(document.querySelectorAll(sel)); } catch (e) { return []; } };
    const anyVisible = (sels) => sels.some(sel => all(sel).some(isVisible));
    const anyVisibleWithText = (sels) => sels.some(sel => all(sel).some(
        el => isVisible(el) && (el.innerText || '').trim().length > 0));
    const within = (el, sels) => sels.some(sel => { try { return !!el.closest(sel); } catch (e) { return false; } });
    const anyChallenge = (sels, excluded) => sels.some(sel => all(sel).some(
        el => isVisible(el) && !within(el, excluded)));
    const text = ((document.body && document.body.innerText) || '').toLowerCase();
    const hasText = (list) => list.some(t => text.includes(t));
    const hasPhrase = (list) => list.some(t => labelMatches(text, t, 'word'));

    return {
        url: window.location.href,
        captchaText: hasPhrase(markers.captchaText),
        captchaElement: anyChallenge(markers.captchaElements, markers.captchaExcluded || []),
        twoFactorText: hasText(markers.twoFactorText),
        twoFactorInput: anyVisible(markers.twoFactorInputs),
        errorText: hasText(markers.errorText),
        errorElement: anyVisibleWithText(markers.errorElements),
        loginFieldsVisible: anyVisible(markers.loginFields),
        identityVisible: anyVisible(markers.identityElements),
    };
}
""")

# arg: {identityElements, loggedInText, loggedOutText}
AUTH_STATE = DomScript("auth_state", 1, """
(markers) => {
""" + _VISIBLE_FN + """
    const all = (sel) => { try { return Array.from(document.querySelectorAll(sel)); } catch (e) { return []; } };
    const text = ((document.body && document.body.innerText) || '').toLowerCase();
    return {
        url: window.location.href,
        identityVisible: markers.identityElements.some(sel => all(sel).some(isVisible)),
        loggedInText: markers.loggedInText.some(t => text.includes(t)),
        loggedOutText: markers.loggedOutText.some(t => text.includes(t)),
    };
}
""")


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

SCROLL_TO_BOTTOM = DomScript("scroll_to_bottom", 1, """
() => {
    const height = document.body ? document.body.scrollHeight : 0;
    window.scrollTo(0, height);
    return height;
}
""")

SCROLL_TO_TOP = DomScript("scroll_to_top", 1, """
() => { window.scrollTo(0, 0); return true; }
""")


SCRIPTS: Dict[str, DomScript] = {
    s.name: s for s in (
        IS_VISIBLE, HAS_BODY, TYPE_TEXT, CLICK_BUTTON_BY_TEXT, SUBMIT_FORM,
        PAGE_SIGNALS, AUTH_STATE, SCROLL_TO_BOTTOM, SCROLL_TO_TOP,
    )
}


# ---------------------------------------------------------------------------
# Evaluation helpers
# ---------------------------------------------------------------------------

async def run_script(page: Page, script: DomScript, arg: Any = None) -> Any:
    """Evaluate *script* and return its JSON result.

    Raises:
        ScriptEvaluationError: the page rejected or failed the evaluation.
    """
    try:
        if arg is None:
            return await page.evaluate(script.source)
        return await page.evaluate(script.source, arg)
    except PlaywrightError as exc:
        raise ScriptEvaluationError(f"{script.name}: {exc}") from exc


async def try_script(page: Page, script: DomScript, arg: Any = None, default: Any = None) -> Any:
    """Like ``run_script`` but absorbs the failure, logging it at debug level.

    Used for probes where a failed evaluation simply means "no".
    """
    try:
        return await run_script(page, script, arg)
    except ScriptEvaluationError as exc:
        logger.debug(f"[DOM] {exc}")
        return default
