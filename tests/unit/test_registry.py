import threading

import pytest

from locator_heal.core.errors import DuplicateStrategyError, HealingConfigError, UnknownStrategyError
from locator_heal.core.models import StrategyResult
from locator_heal.core.registry import StrategyRegistry
from locator_heal.strategies import HealingStrategy, default_strategies


class Named(HealingStrategy):
    async def heal(self, original_selector, stored_info, page):
        return StrategyResult.declined("nothing")


def test_default_strategies_iterate_in_priority_order():
    reg = StrategyRegistry(reversed(default_strategies()))
    assert reg.names() == ["data-testid", "aria-label", "text"]


def test_ties_broken_by_registration_order():
    reg = StrategyRegistry()
    reg.register(Named(name="b", priority=5))
    reg.register(Named(name="a", priority=5))
    reg.register(Named(name="first", priority=1))
    assert reg.names() == ["first", "b", "a"]


def test_duplicate_name_is_a_configuration_error():
    reg = StrategyRegistry([Named(name="x", priority=1)])
    with pytest.raises(DuplicateStrategyError) as exc:
        reg.register(Named(name="x", priority=2))
    assert isinstance(exc.value, HealingConfigError)
    assert reg.get("x").priority == 1


def test_disable_and_enable():
    reg = StrategyRegistry(default_strategies())
    reg.disable("aria-label")
    assert reg.names() == ["data-testid", "text"]
    assert [i.name for i in reg.list()] == ["data-testid", "aria-label", "text"]
    assert reg.list()[1].enabled is False

    reg.enable("aria-label")
    assert reg.names() == ["data-testid", "aria-label", "text"]


def test_unknown_names_raise():
    reg = StrategyRegistry()
    with pytest.raises(UnknownStrategyError):
        reg.disable("nope")
    with pytest.raises(UnknownStrategyError):
        reg.unregister("nope")
    with pytest.raises(UnknownStrategyError):
        reg.get("nope")


def test_unregister_removes_strategy():
    reg = StrategyRegistry(default_strategies())
    removed = reg.unregister("text")
    assert removed.name == "text"
    assert "text" not in reg
    assert len(reg) == 2


def test_iterate_is_fresh_per_call():
    reg = StrategyRegistry(default_strategies())
    first = reg.iterate()
    next(first)
    assert [s.name for s in reg.iterate()] == ["data-testid", "aria-label", "text"]
    assert [s.name for s in first] == ["aria-label", "text"]


def test_priority_is_fixed_at_registration():
    s = Named(name="late", priority=50)
    reg = StrategyRegistry(default_strategies())
    reg.register(s)
    s.priority = 0
    assert reg.names()[-1] == "late"


def test_strategy_requires_name():
    with pytest.raises(ValueError):
        Named()


def test_concurrent_toggling_and_registration():
    reg = StrategyRegistry(default_strategies())
    errors = []

    def toggle():
        try:
            for _ in range(200):
                reg.disable("text")
                reg.enable("text")
                assert "text" in reg and len(reg) >= 3
        except Exception as e:  # surfaced below
            errors.append(e)

    def add(prefix):
        try:
            for i in range(50):
                reg.register(Named(name=f"{prefix}-{i}", priority=50))
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=toggle) for _ in range(4)]
    threads += [threading.Thread(target=add, args=(p,)) for p in ("a", "b")]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(reg) == 103
    assert reg.is_enabled("text")
