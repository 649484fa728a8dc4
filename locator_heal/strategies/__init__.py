"""
Healing strategies, highest priority first:
data-testid > aria-label > text.
"""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

from .base import HealingStrategy
from .data_testid import DataTestIdStrategy
from .aria import AriaStrategy
from .text import TextStrategy, text_similarity

if TYPE_CHECKING:
    from locator_heal.utils.config import Settings

__all__ = [
    "HealingStrategy",
    "DataTestIdStrategy",
    "AriaStrategy",
    "TextStrategy",
    "text_similarity",
    "default_strategies",
]


def default_strategies(settings: Optional["Settings"] = None) -> list[HealingStrategy]:
    """Built-in strategies, tuned from settings when given."""
    if settings is None:
        return [DataTestIdStrategy(), AriaStrategy(), TextStrategy()]
    return [
        DataTestIdStrategy(attribute=settings.TESTID_ATTRIBUTE, confidence=settings.TESTID_CONFIDENCE),
        AriaStrategy(confidence=settings.ARIA_CONFIDENCE),
        TextStrategy(confidence=settings.TEXT_CONFIDENCE, fuzzy_threshold=settings.TEXT_FUZZY_THRESHOLD),
    ]
