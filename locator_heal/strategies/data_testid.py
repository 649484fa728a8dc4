# locator_heal/strategies/data_testid.py
from __future__ import annotations

"""
data-testid strategy: test ids are purpose-built, stable identifiers, so this
runs first and reports the highest confidence.
"""

from typing import Optional

from locator_heal.core.models import ElementInfo, StrategyResult
from locator_heal.core.page import PageQueries, attribute_selector
from locator_heal.strategies.base import HealingStrategy


class DataTestIdStrategy(HealingStrategy):
    name = "data-testid"
    priority = 10

    def __init__(self, attribute: str = "data-testid", confidence: float = 1.0, **kwargs) -> None:
        super().__init__(**kwargs)
        self.attribute = attribute
        self.confidence = confidence

    async def heal(
        self,
        original_selector: str,
        stored_info: Optional[ElementInfo],
        page: PageQueries,
    ) -> StrategyResult:
        test_id = stored_info.test_id if stored_info is not None else None
        if not test_id:
            return self.decline("no recorded test id")

        matches = await page.find_by_attribute(self.attribute, test_id)
        element, declined = self.single(matches, f'{self.attribute}="{test_id}"')
        if declined is not None:
            return declined

        return self.match(
            selector=attribute_selector(self.attribute, test_id),
            confidence=self.confidence,
            element=element,
            details=f"unique element with {self.attribute}={test_id!r}",
        )
