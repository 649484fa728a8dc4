# locator_heal/core/orchestrator.py
from __future__ import annotations

"""Healing orchestrator
----------------------
Runs registered strategies one at a time in priority order and stops at the
first success. Priority dominates confidence: a later strategy is never asked
once an earlier one has matched. A strategy that raises is logged and treated
as a decline so one broken query cannot abort the whole attempt.
"""

from typing import Iterator, List, Optional

from locator_heal.core.models import (
    AttemptStatus,
    ElementInfo,
    HealingOutcome,
    StrategyAttempt,
    StrategyResult,
)
from locator_heal.core.page import PageQueries
from locator_heal.core.registry import StrategyRegistry
from locator_heal.strategies.base import HealingStrategy
from locator_heal.utils.logger import get_logger, log_with_context
from locator_heal.utils.timing import Deadline, Stopwatch


class HealingOrchestrator:
    def __init__(self, registry: StrategyRegistry) -> None:
        self.registry = registry
        self.log = get_logger(__name__)

    async def heal(
        self,
        original_selector: str,
        stored_info: Optional[ElementInfo],
        page: PageQueries,
        *,
        deadline: Optional[Deadline] = None,
    ) -> HealingOutcome:
        log = log_with_context(self.log, selector=original_selector)
        attempts: List[StrategyAttempt] = []

        with Stopwatch() as total:
            strategies: Iterator[HealingStrategy] = self.registry.iterate()
            for strategy in strategies:
                if deadline is not None and deadline.expired():
                    skipped = [strategy, *strategies]
                    attempts.extend(
                        StrategyAttempt(strategy=s.name, status=AttemptStatus.skipped, details="deadline expired")
                        for s in skipped
                    )
                    log.warning(
                        f"Healing deadline expired for {original_selector!r}; "
                        f"skipped {', '.join(s.name for s in skipped)}"
                    )
                    return HealingOutcome.unresolved(
                        original_selector,
                        tuple(attempts),
                        timed_out=True,
                        elapsed_ms=total.elapsed_ms(),
                    )

                with Stopwatch() as sw:
                    try:
                        result = await strategy.heal(original_selector, stored_info, page)
                    except Exception as e:
                        log.warning(f"Strategy {strategy.name!r} faulted while healing {original_selector!r}: {e!r}")
                        attempts.append(
                            StrategyAttempt(
                                strategy=strategy.name,
                                status=AttemptStatus.faulted,
                                details=f"{type(e).__name__}: {e}",
                                elapsed_ms=sw.elapsed_ms(),
                            )
                        )
                        continue

                if not isinstance(result, StrategyResult):
                    log.warning(f"Strategy {strategy.name!r} returned {type(result).__name__}, expected StrategyResult")
                    attempts.append(
                        StrategyAttempt(
                            strategy=strategy.name,
                            status=AttemptStatus.faulted,
                            details=f"invalid result type {type(result).__name__}",
                            elapsed_ms=sw.elapsed_ms(),
                        )
                    )
                    continue

                if not result.success:
                    log.debug(f"Strategy {strategy.name!r} declined: {result.details}")
                    attempts.append(
                        StrategyAttempt(
                            strategy=strategy.name,
                            status=AttemptStatus.declined,
                            details=result.details,
                            elapsed_ms=sw.elapsed_ms(),
                        )
                    )
                    continue

                attempts.append(
                    StrategyAttempt(
                        strategy=strategy.name,
                        status=AttemptStatus.matched,
                        details=result.details,
                        elapsed_ms=sw.elapsed_ms(),
                    )
                )
                outcome = HealingOutcome.healed(
                    original_selector,
                    strategy.name,
                    result,
                    tuple(attempts),
                    elapsed_ms=total.elapsed_ms(),
                )
                log.info(outcome.summary())
                return outcome

            outcome = HealingOutcome.unresolved(original_selector, tuple(attempts), elapsed_ms=total.elapsed_ms())
            log.info(outcome.summary())
            return outcome
