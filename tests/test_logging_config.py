import logging
import sys

import pytest
from rich.logging import RichHandler

from squall.logging_config import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level, hook = list(root.handlers), root.level, sys.excepthook
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    sys.excepthook = hook


def test_log_file_receives_worker_lines(tmp_path, restore_root_logger):
    log_file = tmp_path / "squall.log"
    setup_logging(level="INFO", log_file=str(log_file))
    logging.getLogger("squall.runner").info("[W0] burst done")
    for handler in logging.getLogger().handlers:
        handler.flush()
    assert "squall.runner" in log_file.read_text()
    assert "[W0] burst done" in log_file.read_text()


def test_third_party_loggers_quiet_unless_debugging(restore_root_logger):
    setup_logging(level="INFO")
    assert logging.getLogger("aiohttp").level == logging.WARNING
    setup_logging(level="DEBUG")
    assert logging.getLogger("aiohttp").level == logging.DEBUG


def test_rich_console_when_progress_bar_is_shown(restore_root_logger):
    root = setup_logging(rich_console=True)
    assert isinstance(root.handlers[0], RichHandler)
