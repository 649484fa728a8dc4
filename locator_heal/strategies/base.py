# locator_heal/strategies/base.py
from __future__ import annotations

"""Base class for healing strategies"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from locator_heal.core.models import ElementInfo, StrategyResult
from locator_heal.core.page import PageQueries


class HealingStrategy(ABC):
    """
    One recovery technique driven by a single attribute signal.

    Subclasses set `name` (stable identity) and `priority` (lower runs first)
    and must not keep state between `heal` calls.
    """

    name: str = ""
    priority: int = 100

    def __init__(self, *, name: Optional[str] = None, priority: Optional[int] = None) -> None:
        if name is not None:
            self.name = name
        if priority is not None:
            self.priority = priority
        if not self.name:
            raise ValueError(f"{self.__class__.__name__} needs a non-empty name")

    @abstractmethod
    async def heal(
        self,
        original_selector: str,
        stored_info: Optional[ElementInfo],
        page: PageQueries,
    ) -> StrategyResult:
        """Propose a replacement for `original_selector`, or decline."""

    def decline(self, details: str) -> StrategyResult:
        return StrategyResult.declined(f"{self.name}: {details}")

    def match(self, selector: str, confidence: float, element: Any, details: str) -> StrategyResult:
        return StrategyResult.matched(
            selector=selector,
            confidence=max(0.0, min(1.0, confidence)),
            element=element,
            details=f"{self.name}: {details}",
        )

    def single(self, matches: Any, what: str) -> tuple[Optional[Any], Optional[StrategyResult]]:
        """
        Enforce the exactly-one rule shared by every strategy.
        Returns (element, None) on a unique match, else (None, decline).
        """
        count = len(matches)
        if count == 0:
            return None, self.decline(f"no element with {what}")
        if count > 1:
            return None, self.decline(f"{count} elements with {what}, refusing to guess")
        return matches[0], None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r} priority={self.priority}>"
