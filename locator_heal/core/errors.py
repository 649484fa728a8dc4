# locator_heal/core/errors.py
from __future__ import annotations


class HealingError(RuntimeError):
    pass


class HealingConfigError(HealingError):
    """Invalid engine setup. Raised at configuration time and never swallowed."""


class DuplicateStrategyError(HealingConfigError):
    def __init__(self, name: str) -> None:
        super().__init__(f"strategy {name!r} is already registered")
        self.name = name


class UnknownStrategyError(HealingConfigError):
    def __init__(self, name: str) -> None:
        super().__init__(f"no strategy named {name!r} is registered")
        self.name = name


class StoreError(HealingError):
    """The selector store could not be read or written."""
