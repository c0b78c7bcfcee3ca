"""
Logging Configuration

One setup for the package loggers and the uvicorn server loggers, so API
requests and storage events end up in the same stream and log file.

Console output goes to stderr: stdout belongs to CLI results such as the
JSON record printed by ``construction-stages validate``.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional, TextIO

PACKAGE_LOGGER = "construction_stages"

# Loggers uvicorn writes to; they share our handlers when serving
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


class StageLogFormatter(logging.Formatter):
    """
    Format: ``[HH:MM:SS.mmm] LEVEL [logger] message (stage=<id>)``

    The stage suffix is added when a record carries ``stage_id`` in its
    extras, e.g. ``logger.info("Updated", extra={"stage_id": 3})``.
    """

    COLORS = {
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = False):
        super().__init__(datefmt="%H:%M:%S")
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname
        if self.use_colors and level in self.COLORS:
            level = f"{self.COLORS[level]}{level}{self.RESET}"

        timestamp = f"{self.formatTime(record, self.datefmt)}.{int(record.msecs):03d}"
        line = f"[{timestamp}] {level:8} [{record.name}] {record.getMessage()}"

        stage_id = getattr(record, "stage_id", None)
        if stage_id is not None:
            line += f" (stage={stage_id})"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _build_handlers(stream: TextIO, log_file: Optional[str], use_colors: bool) -> List[logging.Handler]:
    console_handler = logging.StreamHandler(stream)
    console_handler.setFormatter(
        StageLogFormatter(use_colors=use_colors and getattr(stream, "isatty", lambda: False)())
    )
    handlers: List[logging.Handler] = [console_handler]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(StageLogFormatter())
        handlers.append(file_handler)

    return handlers


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    use_colors: bool = True,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Configure the package and server loggers.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file path for log output
        use_colors: Color levels when the console is a terminal
        stream: Console stream, stderr by default
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    handlers = _build_handlers(stream or sys.stderr, log_file, use_colors)

    for name in (PACKAGE_LOGGER, *SERVER_LOGGERS):
        target = logging.getLogger(name)
        target.handlers.clear()
        target.propagate = False
        target.setLevel(numeric_level)
        for handler in handlers:
            target.addHandler(handler)

    # One line per request is noise unless debugging
    if numeric_level > logging.DEBUG:
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logging.getLogger(PACKAGE_LOGGER).debug("Logging configured")


def get_logger(name: str) -> logging.Logger:
    """Get a logger below the package logger"""
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")
