import logging
import pytest
from streamx.utils.logger import get_logger, setup_logging

@pytest.fixture
def restore_root():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)

def test_writes_to_configured_file(tmp_path, restore_root):
    log_file = tmp_path / "logs" / "player.log"
    setup_logging("debug", log_file)

    get_logger("streamx.test").debug("seek to 42")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert logging.getLogger().level == logging.DEBUG
    assert "seek to 42" in log_file.read_text(encoding="utf-8")

def test_repeated_setup_does_not_stack_handlers(tmp_path, restore_root):
    setup_logging(logging.INFO, tmp_path / "a.log")
    setup_logging(logging.INFO, None)
    handlers = logging.getLogger().handlers
    assert len(handlers) == 1
    assert not isinstance(handlers[0], logging.FileHandler)

def test_unknown_level_name_falls_back_to_info(restore_root):
    setup_logging("chatty", None)
    assert logging.getLogger().level == logging.INFO
    assert logging.getLogger("vlc").level == logging.WARNING
    assert logging.getLogger("aiosqlite").level == logging.WARNING
