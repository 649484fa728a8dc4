"""
Core package for the locator healing engine.
Lightweight package init to avoid import cycles.

Consumers should import submodules directly, e.g.:
  from locator_heal.core.manager import SelfHealingManager
  from locator_heal.core.models import ElementInfo, HealingOutcome
"""

__all__: list[str] = []
