"""Logging configuration for ticketflow"""
import copy
import logging
import os
import sys
from pathlib import Path
from typing import Optional

LOG_DIR_ENV = 'TICKETFLOW_LOG_DIR'
LOG_FILE_NAME = 'ticketflow-git.log'

DETAILED_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
SIMPLE_FORMAT = '[%(name)s] %(message)s'

LEVEL_COLORS = {
    logging.DEBUG: '\033[36m',     # Cyan
    logging.INFO: '\033[32m',      # Green
    logging.WARNING: '\033[33m',   # Yellow
    logging.ERROR: '\033[31m',     # Red
    logging.CRITICAL: '\033[35m',  # Magenta
}
RESET = '\033[0m'


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name when writing to a terminal.

    The record is copied before coloring so other handlers (the debug log
    file in particular) never see escape codes.
    """

    def __init__(self, fmt=None, datefmt=None, stream=None):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.stream = stream if stream is not None else sys.stderr

    def use_color(self) -> bool:
        isatty = getattr(self.stream, 'isatty', None)
        return bool(isatty and isatty())

    def format(self, record):
        color = LEVEL_COLORS.get(record.levelno)
        if color and self.use_color():
            record = copy.copy(record)
            record.levelname = f"{color}{record.levelname}{RESET}"
        return super().format(record)


def default_log_file() -> Path:
    """Location of the debug log, overridable with $TICKETFLOW_LOG_DIR."""
    log_dir = os.environ.get(LOG_DIR_ENV)
    base = Path(log_dir) if log_dir else Path.home() / '.ticketflow'
    return base / LOG_FILE_NAME


def setup_logging(verbose: bool = False, debug: bool = False, log_file: Optional[Path] = None) -> Optional[Path]:
    """
    Configure logging for the application.

    Console output goes to stderr so it never mixes with command output on
    stdout. Debug runs also keep a transcript of every git invocation.

    Args:
        verbose: If True, show INFO level messages
        debug: If True, show DEBUG level messages and write them to a log file
        log_file: Write the debug transcript here (implies a file handler)

    Returns:
        Path of the log file, or None when only the console is used
    """
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if debug or log_file is not None:
        log_file = Path(log_file) if log_file is not None else default_log_file()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode='w')  # Overwrite each run
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(fmt=DETAILED_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)
        # The file wants everything; the console handler filters by level
        root_logger.setLevel(logging.DEBUG)
    else:
        root_logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    if debug:
        console_handler.setFormatter(ColoredFormatter(DETAILED_FORMAT, DATE_FORMAT, stream=sys.stderr))
    else:
        console_handler.setFormatter(ColoredFormatter(SIMPLE_FORMAT, stream=sys.stderr))
    root_logger.addHandler(console_handler)

    # GitPython logs every Popen call at DEBUG; the executor already does
    logging.getLogger('git').setLevel(logging.WARNING)

    return log_file


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the specified module.

    Args:
        name: Name of the module (typically __name__)

    Returns:
        Logger instance
    """
    # "ticketflow.services.git.executor" -> "services.git.executor"; the bare
    # "git" prefix belongs to GitPython's own logger
    if name.startswith('ticketflow.'):
        name = name[len('ticketflow.'):]

    return logging.getLogger(name)
