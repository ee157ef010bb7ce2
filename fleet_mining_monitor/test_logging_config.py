import logging

from ai_engine.utils.logging_config import LOGS_DIR, get_logger, resolve_level, setup_logging


def test_resolve_level(monkeypatch):
    monkeypatch.delenv("FLEET_MINING_LOG_LEVEL", raising=False)
    assert resolve_level() == logging.INFO
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level(logging.WARNING) == logging.WARNING
    assert resolve_level("not-a-level") == logging.INFO

    monkeypatch.setenv("FLEET_MINING_LOG_LEVEL", "ERROR")
    assert resolve_level() == logging.ERROR


def test_setup_logging_replaces_handlers():
    name = "ai_engine_test_setup"
    first = setup_logging(name, level="warning", log_to_file=False)
    assert first.level == logging.WARNING
    assert len(first.handlers) == 1

    second = setup_logging(name, level=logging.DEBUG)
    assert second is first
    assert len(second.handlers) == 2
    assert any(isinstance(handler, logging.FileHandler) for handler in second.handlers)
    assert LOGS_DIR.exists()

    setup_logging(name, log_to_file=False)


def test_get_logger_nests_under_engine_logger():
    assert get_logger("ai_engine.scheduler").name == "ai_engine.scheduler"
    assert get_logger("ai_engine").name == "ai_engine"
    assert get_logger("plugins.custom").name == "ai_engine.plugins.custom"
    assert get_logger("ai_engine.scheduler").parent is logging.getLogger("ai_engine")
