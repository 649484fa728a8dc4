# locator_heal/browser/playwright_page.py
from __future__ import annotations

"""Playwright page adapter
-------------------------
Implements the read-only PageQueries capability on top of an async
Playwright Page, plus a small session helper used by the CLI.

Capture (`describe`) and matching (`text_candidates`) share one text rule:
an element's own text nodes, or its full text when it has none of its own.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional, Sequence

from playwright.async_api import ElementHandle, Page, async_playwright

from locator_heal.core.models import ElementInfo, TextCandidate
from locator_heal.core.page import attribute_selector
from locator_heal.utils.config import Settings, get_settings
from locator_heal.utils.logger import get_logger

log = get_logger(__name__)


_TEXT_HELPERS_JS = """
  const collapse = (s) => (s || '').replace(/\\s+/g, ' ').trim();
  const ownText = (el) => collapse(
    Array.from(el.childNodes)
      .filter((n) => n.nodeType === Node.TEXT_NODE)
      .map((n) => n.textContent || '')
      .join('')
  );
  const fullText = (el) => collapse(el.textContent);
"""

# Elements and their texts come out of one evaluation so they cannot drift
# apart if the DOM changes while we look.
_TEXT_CANDIDATES_JS = """
(css) => {
%s
  const els = Array.from(document.querySelectorAll(css));
  const full = new Map(els.map((el) => [el, fullText(el)]));
  const elements = [];
  const rows = [];
  for (const el of els) {
    let text = ownText(el);
    let fromChildren = false;
    if (!text) {
      text = full.get(el);
      // a wrapper whose queried descendant holds the same text is not a candidate
      if (!text || els.some((o) => o !== el && el.contains(o) && full.get(o) === text)) continue;
      fromChildren = true;
    }
    elements.push(el);
    rows.push({ tag: el.tagName.toLowerCase(), text, fromChildren });
  }
  return { elements, rows };
}
""" % _TEXT_HELPERS_JS

_DESCRIBE_JS = """
(el) => {
%s
  const cssPath = (start) => {
    const parts = [];
    let node = start;
    while (node && node !== document.body && node.nodeType === Node.ELEMENT_NODE) {
      let sel = node.tagName.toLowerCase();
      if (node.id) {
        parts.unshift('#' + node.id);
        break;
      }
      const parent = node.parentElement;
      if (parent) {
        const same = Array.from(parent.children).filter((c) => c.tagName === node.tagName);
        if (same.length > 1) sel += ':nth-of-type(' + (same.indexOf(node) + 1) + ')';
      }
      parts.unshift(sel);
      node = parent;
    }
    return parts.join(' > ');
  };
  const attr = (name) => el.getAttribute(name) || undefined;
  const text = ownText(el) || fullText(el);
  const classes = typeof el.className === 'string' ? el.className.split(/\\s+/).filter(Boolean) : [];
  return {
    tagName: el.tagName.toLowerCase(),
    text: text || undefined,
    testId: attr('data-testid'),
    ariaRole: attr('role'),
    ariaLabel: attr('aria-label'),
    cssPath: cssPath(el),
    elementId: el.id || undefined,
    classes: classes,
    name: attr('name'),
    placeholder: attr('placeholder'),
    href: attr('href'),
    inputType: attr('type'),
  };
}
""" % _TEXT_HELPERS_JS


class PlaywrightPage:
    """PageQueries over `playwright.async_api.Page`."""

    def __init__(self, page: Page, *, testid_attribute: str = "data-testid") -> None:
        self.page = page
        self.testid_attribute = testid_attribute

    async def find(self, selector: str) -> Sequence[ElementHandle]:
        return await self.page.query_selector_all(selector)

    async def find_by_attribute(self, attribute: str, value: str) -> Sequence[ElementHandle]:
        return await self.page.query_selector_all(attribute_selector(attribute, value))

    async def find_by_role(self, role: Optional[str], name: str) -> Sequence[ElementHandle]:
        if role:
            return await self.page.get_by_role(role, name=name, exact=True).element_handles()  # type: ignore[arg-type]
        return await self.page.query_selector_all(attribute_selector("aria-label", name))

    async def text_candidates(self, tag: Optional[str] = None) -> Sequence[TextCandidate]:
        css = tag or "body *"
        snapshot = await self.page.evaluate_handle(_TEXT_CANDIDATES_JS, css)
        try:
            rows_handle = await snapshot.get_property("rows")
            elements_handle = await snapshot.get_property("elements")
            rows = await rows_handle.json_value()
            props = await elements_handle.get_properties()
            await rows_handle.dispose()
            await elements_handle.dispose()
        finally:
            await snapshot.dispose()

        indexed = sorted(((int(k), h) for k, h in props.items() if k.isdigit()), key=lambda kv: kv[0])
        if len(indexed) != len(rows):
            raise RuntimeError(f"text snapshot for {css!r} has {len(indexed)} element(s) but {len(rows)} text row(s)")

        out: List[TextCandidate] = []
        for (_, handle), row in zip(indexed, rows):
            out.append(
                TextCandidate(
                    element=handle.as_element(),
                    text=row["text"],
                    tag=row.get("tag"),
                    from_children=bool(row.get("fromChildren")),
                )
            )
        log.debug(f"Collected {len(out)} text candidate(s) for {css!r}")
        return out

    async def describe(self, element: Any) -> ElementInfo:
        data = await element.evaluate(_DESCRIBE_JS)
        if self.testid_attribute != "data-testid":
            data["testId"] = await element.get_attribute(self.testid_attribute) or None
        return ElementInfo.model_validate({k: v for k, v in data.items() if v is not None})


@asynccontextmanager
async def open_page(url: str, settings: Optional[Settings] = None) -> AsyncIterator[PlaywrightPage]:
    """Launch the configured browser, load `url` and yield an adapter for it."""
    s = settings or get_settings()
    async with async_playwright() as pw:
        browser_type = getattr(pw, s.BROWSER_TYPE.value)
        browser = await browser_type.launch(**s.playwright_launch_kwargs())
        try:
            page = await browser.new_page()
            log.info(f"Opening {url}")
            await page.goto(url, wait_until="domcontentloaded", timeout=s.PAGE_LOAD_TIMEOUT)
            yield PlaywrightPage(page, testid_attribute=s.TESTID_ATTRIBUTE)
        finally:
            await browser.close()
