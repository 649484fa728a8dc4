# locator_heal/strategies/text.py
from __future__ import annotations

"""
Text strategy
-------------
Matches on the element's visible text. Text is the least stable signal,
so this runs last and scores lowest.

1) exact match after normalization (whitespace collapsed, case-folded);
   exactly one hit wins, several hits decline without trying anything else
2) no exact hit: SequenceMatcher ratio against every candidate; exactly one
   candidate at or above `fuzzy_threshold` wins, scaled by its ratio

The winning candidate's selector is resolved once more on the page and must
match exactly one element, so a selector the page would not honour is never
reported as a heal.
"""

from difflib import SequenceMatcher
from typing import Optional, Sequence

from locator_heal.core.models import ElementInfo, StrategyResult, TextCandidate, normalize_text
from locator_heal.core.page import PageQueries, text_selector
from locator_heal.strategies.base import HealingStrategy


def text_similarity(a: str, b: str) -> float:
    """Similarity of two already-normalized strings in [0, 1]."""
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    return SequenceMatcher(None, a, b).ratio()


class TextStrategy(HealingStrategy):
    name = "text"
    priority = 30

    def __init__(self, confidence: float = 0.75, fuzzy_threshold: float = 0.85, **kwargs) -> None:
        super().__init__(**kwargs)
        if not 0.0 <= fuzzy_threshold <= 1.0:
            raise ValueError("fuzzy_threshold must be within [0, 1]")
        self.confidence = confidence
        self.fuzzy_threshold = fuzzy_threshold

    async def heal(
        self,
        original_selector: str,
        stored_info: Optional[ElementInfo],
        page: PageQueries,
    ) -> StrategyResult:
        if stored_info is None:
            return self.decline("no recorded text")
        target = stored_info.normalized_text
        if not target:
            return self.decline("no recorded text")

        candidates = await page.text_candidates(stored_info.tag_name or None)

        exact = [c for c in candidates if normalize_text(c.text) == target]
        if len(exact) > 1:
            return self.decline(f"{len(exact)} elements with text {target!r}, refusing to guess")
        if exact:
            return await self._confirm(page, exact[0], self.confidence, f"exact text match {target!r}")

        hit = self._fuzzy(target, candidates)
        if isinstance(hit, StrategyResult):
            return hit
        ratio, candidate = hit
        return await self._confirm(
            page,
            candidate,
            self.confidence * ratio,
            f"fuzzy text match {target!r} -> {normalize_text(candidate.text)!r} ({ratio:.0%})",
        )

    def _fuzzy(self, target: str, candidates: Sequence[TextCandidate]) -> tuple[float, TextCandidate] | StrategyResult:
        scored = []
        for c in candidates:
            ratio = text_similarity(target, normalize_text(c.text))
            if ratio >= self.fuzzy_threshold:
                scored.append((ratio, c))

        if not scored:
            return self.decline(f"no element with text close to {target!r}")
        if len(scored) > 1:
            return self.decline(
                f"{len(scored)} elements within fuzzy threshold {self.fuzzy_threshold:.2f} of {target!r}, refusing to guess"
            )
        return scored[0]

    async def _confirm(self, page: PageQueries, hit: TextCandidate, confidence: float, details: str) -> StrategyResult:
        selector = text_selector(hit.text, hit.tag, contains=hit.from_children)
        element, declined = self.single(await page.find(selector), f"selector {selector!r}")
        if declined is not None:
            return declined
        return self.match(selector=selector, confidence=confidence, element=element, details=details)
