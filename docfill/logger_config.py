# docfill/logger_config.py
"""
Centralized logging configuration for docfill.

Call setup_logging() ONCE at application startup (api/main.py does this).
Every record written to the log file carries the trace id of the record
operation that produced it, so one create/update/delete can be followed
across the resolver, renderer and exporter.

Usage:
    from docfill.logger_config import setup_logging
    from docfill.system_config import load_app_config

    config = load_app_config()
    setup_logging(log_dir=config.run_log_dir)
"""
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Sequence

from .utils.snitch import get_trace_id

_logging_initialized = False

CONSOLE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s'
FILE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | [%(trace_id)s] %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# openpyxl warns about every unsupported template extension
QUIET_LOGGERS = ("openpyxl",)


class TraceIdFilter(logging.Filter):
    """Stamps records with the current operation trace id."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = get_trace_id()
        return True


def setup_logging(
    log_dir: Path,
    level: int = logging.INFO,
    log_filename: str = "docfill.log",
    max_bytes: int = 5 * 1024 * 1024,  # 5 MB
    backup_count: int = 3,
    quiet_loggers: Sequence[str] = QUIET_LOGGERS,
) -> Path:
    """
    Configure logging for the whole application.

    Args:
        log_dir: Directory to write log files (AppConfig.run_log_dir)
        level: Console logging level
        log_filename: Name of the log file
        max_bytes: Maximum size per log file before rotation
        backup_count: Number of backup files to keep
        quiet_loggers: Third-party loggers limited to WARNING

    Returns:
        Path of the log file.

    Note:
        The file always captures DEBUG. Calling it more than once has no effect.
    """
    global _logging_initialized

    log_file = Path(log_dir) / log_filename
    if _logging_initialized:
        logging.debug("Logging already initialized, skipping.")
        return log_file

    log_file.parent.mkdir(parents=True, exist_ok=True)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(fmt=CONSOLE_FORMAT, datefmt=LOG_DATE_FORMAT))
    console_handler.setLevel(level)

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding='utf-8'
    )
    file_handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=LOG_DATE_FORMAT))
    file_handler.addFilter(TraceIdFilter())
    file_handler.setLevel(logging.DEBUG)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Allow all; handlers filter
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    _logging_initialized = True
    logging.info(f"Logging initialized. File: {log_file}")
    return log_file
