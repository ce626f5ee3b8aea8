from __future__ import annotations

import logging

import pytest

from departure_board.config import LoggingConfig
from departure_board.log_setup import LOG_FILENAME, configure_logging


@pytest.fixture()
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


def test_configure_logging_writes_to_log_dir(tmp_path, restore_root_logger) -> None:
    log_path = configure_logging(LoggingConfig(level="debug", log_dir=str(tmp_path / "logs")))

    logging.getLogger("departure_board.test").info("refresh done")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert log_path == tmp_path / "logs" / LOG_FILENAME
    assert logging.getLogger().level == logging.DEBUG
    assert "refresh done" in log_path.read_text(encoding="utf-8")


def test_configure_logging_rejects_unknown_level(tmp_path) -> None:
    with pytest.raises(ValueError):
        configure_logging(LoggingConfig(level="chatty", log_dir=str(tmp_path)))
