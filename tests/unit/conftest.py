import pytest

from locator_heal.core.manager import reset_manager
from locator_heal.utils.config import get_settings


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    # Fresh settings per test, no .env or store leaking in from the checkout
    monkeypatch.chdir(tmp_path)
    for var in ("STORE_PATH", "HEAL_ENABLED", "HEAL_TIMEOUT_MS", "DISABLED_STRATEGIES"):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    reset_manager()
    yield
    get_settings.cache_clear()
    reset_manager()
