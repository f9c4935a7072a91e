import logging
import os
import sys
from typing import Optional

from docsearch.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_FILE_NAME = "docsearch.log"


def setup_logging(level: Optional[str] = None, log_path: Optional[str] = None) -> None:
    """
    Configures the root logger: a stderr handler, plus a file handler when a
    log directory is configured. Safe to call more than once.

    Args:
        level: Log level name. Defaults to settings.LOG_LEVEL.
        log_path: Directory for docsearch.log. Defaults to settings.LOG_PATH.
    """
    numeric_level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)
    log_path = log_path if log_path is not None else settings.LOG_PATH
    formatter = logging.Formatter(LOG_FORMAT)

    # Clear any existing handlers
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(numeric_level)

    # stdout is left to command output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_path:
        os.makedirs(log_path, exist_ok=True)
        file_handler = logging.FileHandler(os.path.join(log_path, LOG_FILE_NAME), encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Per-request logs from the HTTP client are too chatty at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
