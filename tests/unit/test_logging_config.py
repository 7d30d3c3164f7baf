import logging

import pytest

from outline_toolkit.config import ConfigManager
from outline_toolkit.logging_config import MERGE_LOGGERS, setup_logging


@pytest.fixture(autouse=True)
def restore_logging(tmp_path, monkeypatch):
    """Undo the global logging changes made by setup_logging."""
    monkeypatch.setenv("OUTLINE_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("OUTLINE_DEBUG_MERGE", raising=False)
    monkeypatch.delenv("OUTLINE_DEBUG_MODULES", raising=False)

    root = logging.getLogger()
    saved_root = (list(root.handlers), root.level)
    yield

    for name in ("outline_toolkit", "extra.module", *MERGE_LOGGERS):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)
        logger.propagate = True

    for handler in list(root.handlers):
        if handler not in saved_root[0]:
            handler.close()
    root.handlers = saved_root[0]
    root.setLevel(saved_root[1])


def test_file_handler_written_to_log_dir(tmp_path):
    setup_logging()

    package_logger = logging.getLogger("outline_toolkit")
    assert package_logger.level == logging.INFO
    assert (tmp_path / "logs" / "outline_toolkit.log").is_file()
    assert any(isinstance(h, logging.FileHandler) for h in package_logger.handlers)


def test_missing_config_falls_back_to_minimal(monkeypatch):
    monkeypatch.setattr(ConfigManager, "get_logging_config", lambda self: {})

    setup_logging()

    root = logging.getLogger()
    assert root.level == logging.INFO
    assert any(isinstance(h, logging.StreamHandler) for h in root.handlers)


def test_invalid_config_falls_back_to_minimal(monkeypatch):
    broken = {"version": 1, "handlers": {"console": {"class": "no.such.Handler"}}}
    monkeypatch.setattr(ConfigManager, "get_logging_config", lambda self: broken)

    setup_logging()

    assert logging.getLogger().level == logging.INFO


def test_debug_merge_override(monkeypatch):
    monkeypatch.setenv("OUTLINE_DEBUG_MERGE", "true")

    setup_logging()

    for name in MERGE_LOGGERS:
        assert logging.getLogger(name).level == logging.DEBUG


def test_debug_modules_override(monkeypatch):
    monkeypatch.setenv("OUTLINE_DEBUG_MODULES", " extra.module , ")

    setup_logging()

    assert logging.getLogger("extra.module").level == logging.DEBUG
