# locator_heal/strategies/aria.py
from __future__ import annotations

from typing import Optional

from locator_heal.core.models import ElementInfo, StrategyResult
from locator_heal.core.page import PageQueries, attribute_selector, role_selector
from locator_heal.strategies.base import HealingStrategy


class AriaStrategy(HealingStrategy):
    """
    Recover by accessible name, narrowed by ARIA role when one was recorded.
    The name must match exactly; a role alone is never enough.
    """

    name = "aria-label"
    priority = 20

    def __init__(self, confidence: float = 0.9, **kwargs) -> None:
        super().__init__(**kwargs)
        self.confidence = confidence

    async def heal(
        self,
        original_selector: str,
        stored_info: Optional[ElementInfo],
        page: PageQueries,
    ) -> StrategyResult:
        if stored_info is None or not stored_info.aria_label:
            return self.decline("no recorded aria label")

        role = stored_info.aria_role or None
        label = stored_info.aria_label
        matches = await page.find_by_role(role, label)
        what = f"role={role} name={label!r}" if role else f"aria-label={label!r}"
        element, declined = self.single(matches, what)
        if declined is not None:
            return declined

        selector = role_selector(role, label) if role else attribute_selector("aria-label", label)
        return self.match(
            selector=selector,
            confidence=self.confidence,
            element=element,
            details=f"unique element with {what}",
        )
