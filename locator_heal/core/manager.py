# locator_heal/core/manager.py
from __future__ import annotations

"""Self-healing manager
----------------------
Public entry point. Wires settings, the strategy registry, the orchestrator
and the selector store together, and keeps a bounded history of outcomes for
statistics. Never writes to the store on its own: callers persist through
`remember` once they accept a healed element.
"""

import threading
from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional

from pydantic import BaseModel, Field

from locator_heal.core.models import (
    AttemptStatus,
    ElementInfo,
    HealedMapping,
    HealingOutcome,
    StrategyAttempt,
    StrategyResult,
)
from locator_heal.core.orchestrator import HealingOrchestrator
from locator_heal.core.page import PageQueries
from locator_heal.core.registry import StrategyInfo, StrategyRegistry
from locator_heal.core.store import SelectorStore, store_from_settings
from locator_heal.strategies import HealingStrategy, default_strategies
from locator_heal.utils.config import Settings, get_settings
from locator_heal.utils.logger import get_logger
from locator_heal.utils.timing import Deadline, Stopwatch

__all__ = [
    "SelfHealingManager",
    "HealingStats",
    "StrategyStats",
    "HealingRecord",
    "get_manager",
    "reset_manager",
    "heal_selector",
    "CACHE_STRATEGY",
]

_UNSET: Any = object()

# attempt / outcome name used when a remembered healed mapping answers
CACHE_STRATEGY = "cache"


# ---------- Stats models ----------


class HealingRecord(BaseModel):
    ts: str
    original_selector: str
    resolved: bool
    strategy: Optional[str] = None
    selector: Optional[str] = None
    confidence: Optional[float] = None
    timed_out: bool = False
    elapsed_ms: int = 0
    attempts: List[StrategyAttempt] = Field(default_factory=list)


class StrategyStats(BaseModel):
    attempts: int = 0
    successes: int = 0
    faults: int = 0
    avg_confidence: float = 0.0


class HealingStats(BaseModel):
    total_attempts: int = 0
    healed: int = 0
    unresolved: int = 0
    timed_out: int = 0
    success_rate: float = 0.0
    avg_confidence: float = 0.0
    avg_healing_ms: float = 0.0
    by_strategy: Dict[str, StrategyStats] = Field(default_factory=dict)
    recent: List[HealingRecord] = Field(default_factory=list)


# ---------- Manager ----------


class SelfHealingManager:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        store: Optional[SelectorStore] = None,
        registry: Optional[StrategyRegistry] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.log = get_logger(__name__)
        self.registry = registry if registry is not None else StrategyRegistry(default_strategies(self.settings))
        for name in self.settings.DISABLED_STRATEGIES:
            self.registry.disable(name)
        self.store: SelectorStore = store if store is not None else store_from_settings(self.settings)
        self.orchestrator = HealingOrchestrator(self.registry)
        self._enabled = self.settings.HEAL_ENABLED
        self._history: Deque[HealingRecord] = deque(maxlen=self.settings.HISTORY_LIMIT)
        self._history_lock = threading.Lock()

    # ---------- Configuration ----------

    def is_enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = bool(enabled)

    def register_strategy(self, strategy: HealingStrategy, *, enabled: bool = True) -> None:
        self.registry.register(strategy, enabled=enabled)

    def list_strategies(self) -> List[StrategyInfo]:
        return self.registry.list()

    # ---------- Healing ----------

    async def heal(
        self,
        selector: str,
        page: PageQueries,
        *,
        stored_info: Optional[ElementInfo] = _UNSET,
        timeout_ms: Optional[int] = None,
        use_cache: bool = True,
    ) -> HealingOutcome:
        """
        Try to recover a replacement for `selector`, which just failed to match.

        A healed mapping remembered for `selector` is tried first and wins if
        its selector still matches exactly one element; a stale mapping is
        reported as a declined `cache` attempt and left for the caller to
        replace. `stored_info` defaults to whatever the store has for
        `selector`; pass None explicitly to heal with no recorded metadata.
        `timeout_ms` overrides HEAL_TIMEOUT_MS (0 = no deadline).
        """
        if not self._enabled:
            return HealingOutcome.unresolved(selector, details="self-healing is disabled")

        mapping = self.store.get_mapping(selector) if use_cache else None
        cache_attempt: Optional[StrategyAttempt] = None
        if mapping is not None:
            cache_attempt, cached = await self._try_mapping(selector, mapping, page)
            if cached is not None:
                return self._remember_outcome(cached)

        info = self.store.get(selector) if stored_info is _UNSET else stored_info
        if info is None:
            self.log.debug(f"No recorded element info for {selector!r}")

        budget = self.settings.HEAL_TIMEOUT_MS if timeout_ms is None else timeout_ms
        deadline = Deadline.after_ms(budget) if budget > 0 else None

        outcome = await self.orchestrator.heal(selector, info, page, deadline=deadline)
        if cache_attempt is not None:
            outcome = outcome.model_copy(
                update={
                    "attempts": (cache_attempt, *outcome.attempts),
                    "elapsed_ms": outcome.elapsed_ms + cache_attempt.elapsed_ms,
                }
            )
        return self._remember_outcome(outcome)

    async def _try_mapping(
        self, selector: str, mapping: HealedMapping, page: PageQueries
    ) -> tuple[StrategyAttempt, Optional[HealingOutcome]]:
        with Stopwatch() as sw:
            try:
                elements = await page.find(mapping.selector)
            except Exception as e:
                self.log.warning(f"Cached selector {mapping.selector!r} for {selector!r} faulted: {e!r}")
                attempt = StrategyAttempt(
                    strategy=CACHE_STRATEGY,
                    status=AttemptStatus.faulted,
                    details=f"{type(e).__name__}: {e}",
                    elapsed_ms=sw.elapsed_ms(),
                )
                return attempt, None

        if len(elements) != 1:
            self.log.info(f"Cached selector {mapping.selector!r} for {selector!r} matched {len(elements)} element(s)")
            attempt = StrategyAttempt(
                strategy=CACHE_STRATEGY,
                status=AttemptStatus.declined,
                details=f"cached selector {mapping.selector!r} matched {len(elements)} element(s)",
                elapsed_ms=sw.elapsed_ms(),
            )
            return attempt, None

        details = f"cached mapping from {mapping.strategy} (used {mapping.use_count} time(s))"
        attempt = StrategyAttempt(
            strategy=CACHE_STRATEGY, status=AttemptStatus.matched, details=details, elapsed_ms=sw.elapsed_ms()
        )
        result = StrategyResult.matched(
            mapping.selector, confidence=mapping.confidence or 0.0, element=elements[0], details=details
        )
        outcome = HealingOutcome.healed(selector, CACHE_STRATEGY, result, (attempt,), elapsed_ms=sw.elapsed_ms())
        self.log.info(outcome.summary())
        return attempt, outcome

    def _remember_outcome(self, outcome: HealingOutcome) -> HealingOutcome:
        with self._history_lock:
            self._history.append(_record(outcome))
        return outcome

    async def capture_element_info(self, selector: str, page: PageQueries) -> Optional[ElementInfo]:
        """Snapshot the element a working selector matches; None unless exactly one matches."""
        try:
            elements = await page.find(selector)
            if len(elements) != 1:
                self.log.debug(f"Not capturing {selector!r}: {len(elements)} element(s) matched")
                return None
            return await page.describe(elements[0])
        except Exception as e:
            self.log.warning(f"Failed to capture element info for {selector!r}: {e!r}")
            return None

    async def propose_element_info(self, outcome: HealingOutcome, page: PageQueries) -> Optional[ElementInfo]:
        """Snapshot of the healed element, for the caller to persist if it accepts the outcome."""
        if not outcome.resolved or outcome.element is None:
            return None
        return await page.describe(outcome.element)

    def remember(self, selector: str, info: Optional[ElementInfo], *, outcome: Optional[HealingOutcome] = None) -> None:
        """
        Persist `info` under `selector`. With a resolved `outcome`, also keep
        its replacement selector as a healed mapping checked first next time;
        re-accepting the same replacement bumps its use count.
        """
        if info is not None:
            self.store.put(selector, info)
        if outcome is None or not outcome.resolved:
            return

        previous = self.store.get_mapping(selector)
        if previous is not None and previous.selector == outcome.selector:
            mapping = previous.model_copy(update={"use_count": previous.use_count + 1})
        else:
            mapping = HealedMapping(
                selector=outcome.selector,
                strategy=outcome.strategy,
                confidence=outcome.confidence,
                healed_at=datetime.now(timezone.utc).isoformat(),
            )
        self.store.put_mapping(selector, mapping)

    def forget(self, selector: str) -> bool:
        """Drop recorded info and healed mapping for `selector`."""
        return self.store.delete(selector)

    # ---------- Stats ----------

    def clear_history(self) -> None:
        with self._history_lock:
            self._history.clear()

    def stats(self, recent: int = 10) -> HealingStats:
        with self._history_lock:
            history = list(self._history)
        if not history:
            return HealingStats()

        healed = [o for o in history if o.resolved]
        by_strategy: Dict[str, StrategyStats] = {}
        confidences: Dict[str, List[float]] = {}
        for outcome in history:
            for attempt in outcome.attempts:
                if attempt.status == AttemptStatus.skipped:
                    continue
                st = by_strategy.setdefault(attempt.strategy, StrategyStats())
                st.attempts += 1
                if attempt.status == AttemptStatus.faulted:
                    st.faults += 1
            if outcome.resolved and outcome.strategy:
                st = by_strategy.setdefault(outcome.strategy, StrategyStats())
                st.successes += 1
                confidences.setdefault(outcome.strategy, []).append(outcome.confidence or 0.0)
        for name, values in confidences.items():
            by_strategy[name].avg_confidence = sum(values) / len(values)

        all_conf = [o.confidence or 0.0 for o in healed]
        return HealingStats(
            total_attempts=len(history),
            healed=len(healed),
            unresolved=len(history) - len(healed),
            timed_out=sum(1 for o in history if o.timed_out),
            success_rate=len(healed) / len(history),
            avg_confidence=sum(all_conf) / len(all_conf) if all_conf else 0.0,
            avg_healing_ms=sum(o.elapsed_ms for o in history) / len(history),
            by_strategy=by_strategy,
            recent=history[-recent:] if recent > 0 else [],
        )


def _record(outcome: HealingOutcome) -> HealingRecord:
    return HealingRecord(
        ts=datetime.now(timezone.utc).isoformat(),
        original_selector=outcome.original_selector,
        resolved=outcome.resolved,
        strategy=outcome.strategy,
        selector=outcome.selector,
        confidence=outcome.confidence,
        timed_out=outcome.timed_out,
        elapsed_ms=outcome.elapsed_ms,
        attempts=list(outcome.attempts),
    )


# ---------- Global accessor ----------

_manager: Optional[SelfHealingManager] = None
_manager_lock = threading.Lock()


def get_manager() -> SelfHealingManager:
    """Process-wide manager built from get_settings() on first use."""
    global _manager
    with _manager_lock:
        if _manager is None:
            _manager = SelfHealingManager()
        return _manager


def reset_manager() -> None:
    global _manager
    with _manager_lock:
        _manager = None


async def heal_selector(selector: str, page: PageQueries, **kwargs: Any) -> HealingOutcome:
    return await get_manager().heal(selector, page, **kwargs)
