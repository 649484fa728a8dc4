# locator_heal/core/page.py
from __future__ import annotations

"""Page query capability
-----------------------
The only view of the browser the strategies get. Any automation backend can
be plugged in by implementing these read-only queries; see
locator_heal.browser.playwright_page for the Playwright one.
"""

from typing import Any, Optional, Protocol, Sequence, runtime_checkable

from locator_heal.core.models import ElementInfo, TextCandidate


@runtime_checkable
class PageQueries(Protocol):
    async def find(self, selector: str) -> Sequence[Any]:
        """All elements matching a native selector."""
        ...

    async def find_by_attribute(self, attribute: str, value: str) -> Sequence[Any]:
        """Elements whose `attribute` equals `value` exactly."""
        ...

    async def find_by_role(self, role: Optional[str], name: str) -> Sequence[Any]:
        """Elements with the given ARIA role (any role if None) and exact accessible name."""
        ...

    async def text_candidates(self, tag: Optional[str] = None) -> Sequence[TextCandidate]:
        """
        Elements with visible text, optionally limited to one tag. Text is the
        element's own text nodes, else its full text (flagged `from_children`)
        unless a queried descendant already carries that same text.
        """
        ...

    async def describe(self, element: Any) -> ElementInfo:
        """Snapshot an element's identifying attributes."""
        ...


def quote_selector_value(value: str) -> str:
    """Escape a value for use inside a double-quoted selector attribute."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def attribute_selector(attribute: str, value: str) -> str:
    return f'[{attribute}="{quote_selector_value(value)}"]'


def role_selector(role: str, name: str) -> str:
    # trailing `s` = exact, case-sensitive name match in Playwright's role engine
    return f'role={role}[name="{quote_selector_value(name)}"s]'


def text_selector(text: str, tag: Optional[str] = None, *, contains: bool = False) -> str:
    """
    `:text-is()` compares against the element's own text nodes, so an element
    whose text lives in its children is addressed with `:has-text()` instead.
    """
    value = quote_selector_value(" ".join(text.split()))
    if not tag:
        return f'text="{value}"'
    if contains:
        return f'{tag}:has-text("{value}")'
    return f'{tag}:text-is("{value}")'
