"""
qvote Logging System
====================

A unified, thread-safe logging utility for qvote. This module integrates with
the standard Python `logging` library and the `rich` library to provide structured,
safe, and visually distinct logging outputs.

Usage:
    >>> from qvote.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Governance opened")
"""

import logging
import logging.handlers
import re
import sys
import threading
import time
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.highlighter import RegexHighlighter
from rich.logging import RichHandler
from rich.theme import Theme

from .constants import (
    LOG_LEVEL,
    LOG_FORMAT,
    LOG_DATE_FORMAT,
    LOG_MAX_FILE_SIZE,
    LOG_BACKUP_COUNT,
    LOG_CONSOLE_HIGHLIGHTING,
    LOG_FILE_OUTPUT,
)


PROJECT_ROOT = Path(__file__).parent.parent
LOG_FILE_PATH = PROJECT_ROOT / "logs" / "qvote.log"


def _report_fallback(message: str) -> None:
    # Logging is not configured yet, so write straight to stderr
    stamp = time.strftime(str(LOG_DATE_FORMAT.default()))
    print(f"{stamp} - qvote.logger - {message}; using default", file=sys.stderr)


class LogManager:
    """
    Process-wide owner of the root logger configuration.

    The first ``get_logger`` call installs a themed rich console handler on
    stderr and, when LOG_FILE_OUTPUT is set, a rotating file handler. Later
    calls reuse that setup; ``set_level`` adjusts it once config is loaded.
    """

    _instance: Optional["LogManager"] = None
    _lock: threading.Lock = threading.Lock()


    def __new__(cls) -> "LogManager":
        """Creates or returns the existing singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance


    def __init__(self) -> None:
        if self._initialized:
            return
        self._configured = False
        self._initialized = True


    @staticmethod
    def validate_log_format(log_format: str) -> str:
        """
        Return *log_format* if it renders a sample record, otherwise the
        default format.
        """
        if not log_format:
            return str(LOG_FORMAT.default())
        log_format = str(log_format)
        try:
            logging.Formatter(fmt=log_format, validate=True).format(
                logging.makeLogRecord({"name": "qvote", "msg": "sample"})
            )
        except (ValueError, KeyError, TypeError) as e:
            _report_fallback(f"Invalid LOG_FORMAT ({e})")
            return str(LOG_FORMAT.default())
        return log_format


    @staticmethod
    def validate_date_format(date_format: str) -> str:
        """Return *date_format* if strftime accepts it and it has a directive."""
        if not date_format:
            return str(LOG_DATE_FORMAT.default())
        date_format = str(date_format)
        try:
            valid = "%" in date_format and bool(time.strftime(date_format))
        except ValueError:
            valid = False
        if not valid:
            _report_fallback(f"Invalid LOG_DATE_FORMAT {date_format!r}")
            return str(LOG_DATE_FORMAT.default())
        return date_format


    def configure(
        self,
        log_level: Optional[str] = None,
        log_file: Optional[Path] = None,
        console_output: bool = True,
        file_output: Optional[bool] = None,
    ) -> None:
        """
        Install handlers on the root logger. Runs once per process.

        Args:
            log_level:      Level name; defaults to LOG_LEVEL from .env
            log_file:       Rotating log file; defaults to ``logs/qvote.log``
            console_output: Attach the rich stderr handler
            file_output:    Attach the file handler; defaults to LOG_FILE_OUTPUT
        """
        with self._lock:
            if self._configured:
                return

            level_str = log_level or LOG_LEVEL
            numeric_level = getattr(logging, str(level_str).upper(), logging.INFO)

            root_logger = logging.getLogger()
            root_logger.setLevel(numeric_level)
            root_logger.handlers.clear()

            log_format = self.validate_log_format(LOG_FORMAT)
            date_format = self.validate_date_format(LOG_DATE_FORMAT)

            # UTC for consistency across hosts
            formatter = TerminalSafeFormatter(fmt=log_format, datefmt=date_format + " UTC")
            formatter.converter = time.gmtime

            if console_output:
                if LOG_CONSOLE_HIGHLIGHTING:
                    qvote_theme = Theme(
                        {
                            "qvote.address":        "cyan",
                            "qvote.arrow":          "bold yellow",
                            "qvote.level_critical": "bold red reverse",
                            "qvote.level_debug":    "bold dim",
                            "qvote.level_error":    "bold red",
                            "qvote.level_info":     "bold green",
                            "qvote.level_warning":  "bold yellow",
                            "qvote.logger_name":    "magenta",
                            "qvote.tag":            "bold magenta",
                            "qvote.timestamp":      "bold cyan",
                            "qvote.vote_no":        "bold red",
                            "qvote.vote_yes":       "bold green",
                        }
                    )

                    console = Console(theme=qvote_theme, highlight=False, stderr=True)

                    rich_handler = RichHandler(
                        console=console,
                        highlighter=QVoteLogHighlighter(),
                        keywords=[],
                        rich_tracebacks=True,
                        omit_repeated_times=False,
                        show_path=False,
                        show_time=False,
                        show_level=False,
                        markup=False,
                    )
                    rich_handler.setLevel(numeric_level)
                    rich_handler.setFormatter(formatter)
                    root_logger.addHandler(rich_handler)
                else:
                    console_handler = logging.StreamHandler(sys.stderr)
                    console_handler.setLevel(numeric_level)
                    console_handler.setFormatter(formatter)
                    root_logger.addHandler(console_handler)

            if file_output is None:
                file_output = bool(LOG_FILE_OUTPUT)

            if file_output:
                log_file_path = log_file or LOG_FILE_PATH
                log_file_path.parent.mkdir(parents=True, exist_ok=True)

                file_handler = logging.handlers.RotatingFileHandler(
                    filename=str(log_file_path),
                    maxBytes=LOG_MAX_FILE_SIZE,
                    backupCount=LOG_BACKUP_COUNT,
                    encoding="utf-8",
                )
                file_handler.setLevel(numeric_level)
                file_handler.setFormatter(formatter)
                root_logger.addHandler(file_handler)

            self._configured = True


    def get_logger(self, name: str) -> logging.Logger:
        """Logger *name*, configuring the root logger on first use."""
        if not self._configured:
            self.configure()
        return logging.getLogger(name)


    @property
    def is_configured(self) -> bool:
        return self._configured


    def set_level(self, log_level: str) -> None:
        """Change the level of the root logger and every attached handler."""
        numeric_level = getattr(logging, str(log_level).upper(), logging.INFO)
        root_logger = logging.getLogger()
        root_logger.setLevel(numeric_level)
        for handler in root_logger.handlers:
            handler.setLevel(numeric_level)


class TerminalSafeFormatter(logging.Formatter):
    """
    Strips ANSI escapes and control characters (tab and newline excepted)
    from every formatted line. Governance names and proposal metadata are
    caller-supplied and end up verbatim in log messages.
    """

    _unsafe_re = re.compile(
        r"\x1b\[[0-?]*[ -/]*[@-~]"
        r"|\x1b[@-Z\\-_]"
        r"|[\x00-\x08\x0B-\x1F\x7F]"
    )

    @classmethod
    def sanitize(cls, text: str) -> str:
        return cls._unsafe_re.sub("", text) if text else text

    def format(self, record: logging.LogRecord) -> str:
        return self.sanitize(super().format(record))


class QVoteLogHighlighter(RegexHighlighter):
    """Regex-based coloring for governance log lines."""

    base_style = "qvote."
    highlights = [
        r"(?P<address>\b0x[0-9a-fA-F]{8,}\b)",
        r"(?P<arrow>(\-\->)|(<--)|(→))",
        r"(?P<level_critical>\bCRITICAL\b)",
        r"(?P<level_debug>\bDEBUG\b)",
        r"(?P<level_error>\bERROR\b)",
        r"(?P<level_info>\bINFO\b)",
        r"\-\s+\w+\s+-\s+(?P<logger_name>[\w.]+)(?=\s-\s)",
        r"(?P<level_warning>\bWARNING\b)",
        r"(?P<tag>\[.*?\])",
        r"(?P<timestamp>^(.*?)UTC)",
        r"(?P<vote_no>\bNO\b)",
        r"(?P<vote_yes>\bYES\b)",
    ]


_manager = LogManager()

def get_logger(name: str) -> logging.Logger:
    """Module logger backed by the shared LogManager."""
    return _manager.get_logger(name)


def set_log_level(log_level: str) -> None:
    """Apply a configured log level after the logging system is up."""
    _manager.set_level(log_level)
