"""
Couture Logging

Root logging for the ledgers, rendered through ``rich`` on stderr and,
when ``LOG_TO_FILE`` is set, mirrored to a size-rotated file.

    >>> from couture.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Minted #3 by ST2CY5V39NHDPWSXMW9QDT3HC3GD6Q6XX4CFRK9AG")

Ledger messages carry caller-supplied text (token URIs, event payloads), so
every handler formats through :class:`TerminalSafeFormatter`.
"""

import logging
import logging.handlers
import re
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.highlighter import RegexHighlighter
from rich.logging import RichHandler
from rich.theme import Theme

from .constants import (
    LOG_BACKUP_COUNT,
    LOG_CONSOLE_HIGHLIGHTING,
    LOG_DATE_FORMAT,
    LOG_FORMAT,
    LOG_LEVEL,
    LOG_MAX_FILE_SIZE,
    LOG_TO_FILE,
)

LOG_FILE_PATH = Path(__file__).parent.parent / "logs" / "couture.log"

COUTURE_THEME = Theme(
    {
        "couture.address": "cyan",
        "couture.amount": "bold white",
        "couture.arrow": "bold yellow",
        "couture.event": "bold magenta",
        "couture.level_error": "bold red",
        "couture.level_info": "bold green",
        "couture.level_warning": "bold yellow",
        "couture.logger_name": "magenta",
        "couture.paused": "bold red reverse",
        "couture.timestamp": "bold cyan",
        "couture.token": "bold blue",
        "couture.uri": "underline cyan",
    }
)


class CoutureLogHighlighter(RegexHighlighter):
    """Colours principals, ``#id`` token references, bps amounts, event types and URIs."""

    base_style = "couture."
    highlights = [
        r"(?P<timestamp>^.*?UTC)",
        r"(?P<level_error>\b(?:ERROR|CRITICAL)\b)",
        r"(?P<level_warning>\bWARNING\b)",
        r"(?P<level_info>\bINFO\b)",
        r"\-\s+\w+\s+-\s+(?P<logger_name>couture[\w.]*)",
        r"(?P<address>\b(?:SP|ST|SM|SN)[0-9A-Z]{20,}\b)",
        r"(?P<token>#\d+)",
        r"(?P<amount>\b\d+\s?bps\b)",
        r"(?P<arrow>→)",
        r"(?P<paused>\bPAUSED\b)",
        r"(?P<event>\b(?:nft|creator|admin|pause|metadata|fee|operator|max)-[a-z-]+\b)",
        r"(?P<uri>\b(?:ipfs|ar|https?)://\S+)",
    ]


class TerminalSafeFormatter(logging.Formatter):
    """Formatter that strips ANSI escapes and control characters (CWE-117)."""

    _escape_re = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]|\x1b[@-Z\\-_]")
    # Keeps tab and newline
    _control_re = re.compile(r"[\x00-\x08\x0B-\x1F\x7F]")

    @classmethod
    def sanitize(cls, text: str) -> str:
        if not text:
            return text
        return cls._control_re.sub("", cls._escape_re.sub("", text))

    def format(self, record: logging.LogRecord) -> str:
        return self.sanitize(super().format(record))


def _build_formatter(log_format: str, date_format: str) -> TerminalSafeFormatter:
    """UTC formatter; a malformed format string falls back to the defaults."""
    try:
        formatter = TerminalSafeFormatter(fmt=log_format, datefmt=f"{date_format} UTC", validate=True)
        time.strftime(date_format)
    except (ValueError, TypeError) as e:
        print(f"couture.logger: invalid log format ({e}), using defaults", file=sys.stderr)
        formatter = TerminalSafeFormatter(
            fmt=str(LOG_FORMAT.default()),
            datefmt=f"{LOG_DATE_FORMAT.default()} UTC",
        )
    formatter.converter = time.gmtime
    return formatter


def _console_handler(formatter: logging.Formatter) -> logging.Handler:
    if not LOG_CONSOLE_HIGHLIGHTING:
        handler = logging.StreamHandler(sys.stderr)
    else:
        handler = RichHandler(
            console=Console(theme=COUTURE_THEME, highlight=False, stderr=True),
            highlighter=CoutureLogHighlighter(),
            keywords=[],
            markup=False,
            rich_tracebacks=True,
            show_level=False,
            show_path=False,
            show_time=False,
        )
    handler.setFormatter(formatter)
    return handler


def _file_handler(formatter: logging.Formatter, log_file: Path) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        filename=str(log_file),
        maxBytes=LOG_MAX_FILE_SIZE,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


class LogManager:
    """
    Process-wide logging setup, applied once.

    Re-configuring is a no-op; use :meth:`set_level` to change verbosity
    after startup (the CLI does this from the ``[logging]`` config section).
    """

    _instance: Optional["LogManager"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "LogManager":
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._handlers = []
        return cls._instance

    @property
    def is_configured(self) -> bool:
        return bool(self._handlers)

    def configure(
        self,
        log_level: Optional[str] = None,
        log_file: Optional[Path] = None,
        console_output: bool = True,
        file_output: Optional[bool] = None,
    ) -> None:
        """
        Install the root handlers.

        Args:
            log_level: Level name; defaults to ``LOG_LEVEL`` from ``.env``
            log_file: Rotating log path; defaults to ``logs/couture.log``
            console_output: Log to stderr
            file_output: Log to *log_file*; defaults to ``LOG_TO_FILE``
        """
        with self._lock:
            if self._handlers:
                return

            formatter = _build_formatter(str(LOG_FORMAT), str(LOG_DATE_FORMAT))
            handlers: List[logging.Handler] = []
            if console_output:
                handlers.append(_console_handler(formatter))
            if LOG_TO_FILE if file_output is None else file_output:
                handlers.append(_file_handler(formatter, log_file or LOG_FILE_PATH))

            root = logging.getLogger()
            root.handlers.clear()
            for handler in handlers:
                root.addHandler(handler)
            # A manager with no output still counts as configured
            self._handlers = handlers or [logging.NullHandler()]

        self.set_level(log_level or str(LOG_LEVEL), strict=False)

    def set_level(self, log_level: str, strict: bool = True) -> None:
        """Apply *log_level* to the root logger and every installed handler."""
        level = getattr(logging, str(log_level).upper(), None)
        if not isinstance(level, int):
            if strict:
                raise ValueError(f"Unknown log level: {log_level}")
            level = logging.INFO
        root = logging.getLogger()
        root.setLevel(level)
        for handler in root.handlers:
            handler.setLevel(level)

    def get_logger(self, name: str) -> logging.Logger:
        if not self.is_configured:
            self.configure()
        return logging.getLogger(name)


_manager = LogManager()


def get_logger(name: str) -> logging.Logger:
    """Module logger; configures the logging system on first use."""
    return _manager.get_logger(name)


def set_log_level(level: str) -> None:
    _manager.set_level(level)


_manager.configure()
