# locator_heal/core/registry.py
from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass
from typing import Iterable, Iterator, List

from locator_heal.core.errors import DuplicateStrategyError, UnknownStrategyError
from locator_heal.strategies.base import HealingStrategy
from locator_heal.utils.logger import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class StrategyInfo:
    name: str
    priority: int
    enabled: bool


@dataclass
class _Entry:
    strategy: HealingStrategy
    priority: int  # snapshot taken at registration
    seq: int
    enabled: bool = True

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.priority, self.seq)


class StrategyRegistry:
    """
    Strategies ordered by priority (lower first), ties broken by registration order.

    `iterate()` hands out a fresh generator per call so no traversal state is
    shared between healing attempts.
    """

    def __init__(self, strategies: Iterable[HealingStrategy] = ()) -> None:
        self._entries: dict[str, _Entry] = {}
        self._seq = itertools.count()
        self._lock = threading.Lock()
        for s in strategies:
            self.register(s)

    # ---------- Configuration ----------

    def register(self, strategy: HealingStrategy, *, enabled: bool = True) -> None:
        with self._lock:
            if strategy.name in self._entries:
                raise DuplicateStrategyError(strategy.name)
            self._entries[strategy.name] = _Entry(
                strategy=strategy,
                priority=int(strategy.priority),
                seq=next(self._seq),
                enabled=enabled,
            )
        log.debug(f"Registered strategy {strategy.name!r} (priority={strategy.priority}, enabled={enabled})")

    def unregister(self, name: str) -> HealingStrategy:
        with self._lock:
            entry = self._entries.pop(name, None)
        if entry is None:
            raise UnknownStrategyError(name)
        return entry.strategy

    def enable(self, name: str) -> None:
        with self._lock:
            self._entry(name).enabled = True

    def disable(self, name: str) -> None:
        with self._lock:
            self._entry(name).enabled = False

    def is_enabled(self, name: str) -> bool:
        with self._lock:
            return self._entry(name).enabled

    def get(self, name: str) -> HealingStrategy:
        with self._lock:
            return self._entry(name).strategy

    def _entry(self, name: str) -> _Entry:
        # caller holds the lock
        try:
            return self._entries[name]
        except KeyError:
            raise UnknownStrategyError(name) from None

    # ---------- Traversal ----------

    def _ordered(self) -> List[_Entry]:
        with self._lock:
            entries = list(self._entries.values())
        return sorted(entries, key=lambda e: e.sort_key)

    def iterate(self) -> Iterator[HealingStrategy]:
        """Enabled strategies in priority order."""
        for entry in self._ordered():
            if entry.enabled:
                yield entry.strategy

    def list(self) -> List[StrategyInfo]:
        """All strategies, disabled ones included, in priority order."""
        return [StrategyInfo(e.strategy.name, e.priority, e.enabled) for e in self._ordered()]

    def names(self) -> List[str]:
        return [s.name for s in self.iterate()]

    def __iter__(self) -> Iterator[HealingStrategy]:
        return self.iterate()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._entries
