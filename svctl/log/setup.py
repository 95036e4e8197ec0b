import sys
import logging
from pathlib import Path
from typing import Optional
from logging.handlers import RotatingFileHandler

import svctl.settings as default_settings

DETAILED_FORMAT = '%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s'
FILE_MAX_BYTES = 10 * 1024 * 1024
FILE_BACKUP_COUNT = 5


class MainFormatter(logging.Formatter):
    """
    Prints plain INFO messages the way an operator expects command output,
    and everything else (warnings, errors, debug traces) with full context.
    """

    def format(self, record):
        if record.levelno == logging.INFO:
            return record.getMessage()

        # Temporarily change the format string for the superclass call.
        original_format = self._style._fmt
        self._style._fmt = DETAILED_FORMAT
        formatted_message = super().format(record)
        self._style._fmt = original_format
        return formatted_message


def setup_logging(console_level: int = logging.INFO, log_file: Optional[str] = None) -> None:
    """
    Configures the root logger for the controller.
    This sets up a console handler and, optionally, a rotating log file,
    clearing any previously configured handlers to prevent duplication.

    :param console_level: The logging level for the console output (e.g., logging.INFO).
    :param log_file: Also write DEBUG and above to this file. Defaults to SVCTL_LOG_FILE.
    """
    root_logger = logging.getLogger()
    # Set root level to lowest to capture all messages for handler filtering
    root_logger.setLevel(logging.DEBUG)

    # Clear any existing handlers to prevent re-adding them on re-runs
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    # --- Console Handler ---
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(MainFormatter())
    root_logger.addHandler(console_handler)

    # --- File Handler (conditional) ---
    log_file = log_file if log_file is not None else default_settings.LOG_FILE
    if log_file:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(log_file, maxBytes=FILE_MAX_BYTES, backupCount=FILE_BACKUP_COUNT)
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(DETAILED_FORMAT))
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.error(f"Failed to initialize log file '{log_file}': {e}. Logging to file will be disabled.")


def set_console_level(level: int) -> bool:
    """
    Changes the level of the console handler installed by setup_logging.

    :return: True if the console handler was found.
    """
    for handler in logging.getLogger().handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
            handler.setLevel(level)
            return True
    return False
