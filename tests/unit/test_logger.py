import json
import logging
from pathlib import Path

from locator_heal.utils.config import Settings
from locator_heal.utils.logger import bind, configure_logging, get_logger, log_with_context, unbind


def test_file_log_carries_bound_and_scoped_context(tmp_path: Path):
    log_file = tmp_path / "logs" / "heal.log"
    configure_logging("DEBUG", settings=Settings(LOG_TO_FILE=True, LOG_FILE=log_file), force=True)
    try:
        bind(run_id="run-1")
        log_with_context(get_logger("locator_heal.test"), selector="#submit").warning("healing")
        for handler in logging.getLogger().handlers:
            handler.flush()

        line = json.loads(log_file.read_text(encoding="utf-8").strip().splitlines()[-1])
        assert line["level"] == "WARNING"
        assert line["message"] == "healing"
        assert line["context"] == {"run_id": "run-1", "selector": "#submit"}
    finally:
        unbind("run_id")
        configure_logging(settings=Settings(), force=True)


def test_level_override_applies_to_root_and_handlers():
    try:
        configure_logging("ERROR", settings=Settings(), force=True)
        root = logging.getLogger()
        assert root.level == logging.ERROR
        assert all(h.level == logging.ERROR for h in root.handlers)
    finally:
        configure_logging(settings=Settings(), force=True)


def test_configure_is_idempotent_without_force():
    configure_logging(settings=Settings(), force=True)
    handlers = list(logging.getLogger().handlers)
    configure_logging("DEBUG")
    assert logging.getLogger().handlers == handlers
