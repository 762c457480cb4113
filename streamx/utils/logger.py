import logging
import sys
from pathlib import Path
from typing import Optional, Union

from ..config import LOG_FILE, LOG_LEVEL

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s - %(message)s'

# Chatty below WARNING: db connection churn on every progress write, loop and backend noise
QUIET_LOGGERS = ("aiosqlite", "asyncio", "qasync", "vlc", "mpv")

def setup_logging(level: Union[int, str] = LOG_LEVEL, log_file: Optional[Path] = LOG_FILE):
    """
    Console logging for the player, plus a log file unless `log_file` is None.

    `level` accepts a name ("DEBUG") so STREAMX_LOG_LEVEL can be passed through;
    an unknown name falls back to INFO.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logging.getLogger(__name__).info(
        f"Logging initialized. Level: {logging.getLevelName(level)}, File: {log_file or '-'}")

def get_logger(name):
    return logging.getLogger(name)
