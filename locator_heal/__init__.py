"""
locator-heal
------------
Self-healing element locators: when a selector stops matching, recover a
replacement from the element metadata recorded the last time it worked.
"""

from locator_heal.core.errors import (
    DuplicateStrategyError,
    HealingConfigError,
    HealingError,
    StoreError,
    UnknownStrategyError,
)
from locator_heal.core.manager import (
    HealingStats,
    SelfHealingManager,
    get_manager,
    heal_selector,
    reset_manager,
)
from locator_heal.core.models import (
    AttemptStatus,
    ElementInfo,
    HealedMapping,
    HealingOutcome,
    StrategyAttempt,
    StrategyResult,
    TextCandidate,
    normalize_text,
)
from locator_heal.core.orchestrator import HealingOrchestrator
from locator_heal.core.page import PageQueries
from locator_heal.core.registry import StrategyInfo, StrategyRegistry
from locator_heal.core.store import FileSelectorStore, InMemorySelectorStore, SelectorStore
from locator_heal.strategies import (
    AriaStrategy,
    DataTestIdStrategy,
    HealingStrategy,
    TextStrategy,
    default_strategies,
)

__version__ = "0.1.0"

__all__ = [
    "AriaStrategy",
    "AttemptStatus",
    "DataTestIdStrategy",
    "DuplicateStrategyError",
    "ElementInfo",
    "FileSelectorStore",
    "HealedMapping",
    "HealingConfigError",
    "HealingError",
    "HealingOrchestrator",
    "HealingOutcome",
    "HealingStats",
    "HealingStrategy",
    "InMemorySelectorStore",
    "PageQueries",
    "SelectorStore",
    "SelfHealingManager",
    "StoreError",
    "StrategyAttempt",
    "StrategyInfo",
    "StrategyRegistry",
    "StrategyResult",
    "TextCandidate",
    "TextStrategy",
    "UnknownStrategyError",
    "default_strategies",
    "get_manager",
    "heal_selector",
    "normalize_text",
    "reset_manager",
]
