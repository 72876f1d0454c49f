"""
Logging configuration module.

Provides colored console output, optional file output and a context-carrying
logger adapter. Only the "excalibur" logger is configured; the root logger and
other libraries' handlers are left alone so embedding applications keep
control of their own logging.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Dict, MutableMapping

LOGGER_NAME = "excalibur"


# ANSI color codes for Windows 10+ and Unix terminals
class Colors:
    """ANSI escape sequences for terminal colors."""
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    WHITE = "\033[37m"
    CYAN = "\033[36m"
    YELLOW = "\033[33m"
    BRIGHT_RED = "\033[91m"

    BG_RED = "\033[41m"


def _format_field(value: Any) -> str:
    text = str(value)
    if not text or any(ch.isspace() for ch in text) or "=" in text or '"' in text:
        return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'
    return text


def render_context(record: logging.LogRecord) -> str:
    """Render the bound context of a record as `key=value` pairs."""
    context = getattr(record, "context", None)
    if not context:
        return ""
    return " ".join(f"{key}={_format_field(value)}" for key, value in context.items())


class PlainFormatter(logging.Formatter):
    """Non-colored formatter; appends bound context after the message."""

    def format(self, record: logging.LogRecord) -> str:
        result = super().format(record)
        context = render_context(record)
        if context:
            result = f"{result} {context}"
        return result


class ColoredFormatter(PlainFormatter):
    """
    Custom formatter that adds colors to log levels.

    Colors:
        DEBUG    - Dim/Gray
        INFO     - Cyan
        WARNING  - Yellow
        ERROR    - Red
        CRITICAL - Bold White on red background
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.DIM + Colors.WHITE,
        logging.INFO: Colors.CYAN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.BRIGHT_RED,
        logging.CRITICAL: Colors.BOLD + Colors.WHITE + Colors.BG_RED,
    }

    def __init__(self, fmt: str, datefmt: str | None = None, use_colors: bool = True):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_colors:
            return super().format(record)

        # Save original values (other handlers format the same record)
        original_levelname = record.levelname
        original_name = record.name

        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        record.levelname = f"{color}{record.levelname:8}{Colors.RESET}"
        record.name = f"{Colors.DIM}{record.name}{Colors.RESET}"

        try:
            return super().format(record)
        finally:
            record.levelname = original_levelname
            record.name = original_name


class ContextLogger(logging.LoggerAdapter):
    """
    Logger adapter carrying structured context.

    Usage:
        log = ContextLogger(logger, {"component": "ReportGenerator"})
        sheet_log = log.bind(sheet="Summary")
        sheet_log.info("Processing sheet")   # ... Processing sheet component=ReportGenerator sheet=Summary
    """

    def __init__(self, logger: logging.Logger, context: Dict[str, Any] | None = None):
        super().__init__(logger, dict(context or {}))

    def bind(self, **fields: Any) -> "ContextLogger":
        """Return a new adapter with additional context fields."""
        merged = dict(self.extra)
        merged.update(fields)
        return ContextLogger(self.logger, merged)

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]):
        extra = dict(kwargs.get("extra") or {})
        context = dict(self.extra)
        context.update(extra.pop("context", {}) or {})
        extra["context"] = context
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(logger: logging.Logger | ContextLogger | None, name: str, **context: Any) -> ContextLogger:
    """
    Wrap an injected logger (or the module logger) in a ContextLogger.

    Args:
        logger: Logger passed by the caller, or None to use `name`
        name: Fallback logger name (usually the module's __name__)
        **context: Fields bound to every message
    """
    if isinstance(logger, ContextLogger):
        return logger.bind(**context)
    return ContextLogger(logger or logging.getLogger(name), context)


def _enable_windows_ansi():
    """Enable ANSI escape sequences on Windows."""
    if sys.platform == "win32":
        try:
            import ctypes
            kernel32 = ctypes.windll.kernel32
            # ENABLE_PROCESSED_OUTPUT | ENABLE_WRAP_AT_EOL_OUTPUT | ENABLE_VIRTUAL_TERMINAL_PROCESSING
            kernel32.SetConsoleMode(kernel32.GetStdHandle(-11), 7)
        except (AttributeError, OSError):
            pass  # older Windows: no colors


def configure_logging(
    verbose: bool = False,
    log_file: str | Path | None = None,
    stream=None,
    use_colors: bool | None = None,
) -> logging.Logger:
    """
    Configure and return the application logger.

    Args:
        verbose: Enable DEBUG level and source locations on the console
        log_file: Optional path to a log file (always DEBUG)
        stream: Console stream (defaults to stdout)
        use_colors: Force colors on/off; defaults to on for TTYs

    Returns:
        The configured "excalibur" logger, to be passed into components
    """
    _enable_windows_ansi()

    stream = stream if stream is not None else sys.stdout
    if use_colors is None:
        use_colors = bool(getattr(stream, "isatty", lambda: False)())

    level = logging.DEBUG if verbose else logging.INFO
    console_fmt = "[%(asctime)s] %(levelname)s [%(name)s] %(message)s"
    if verbose:
        console_fmt = "[%(asctime)s] %(levelname)s [%(name)s] (%(filename)s:%(lineno)d) %(message)s"

    console_handler = logging.StreamHandler(stream)
    console_handler.setFormatter(ColoredFormatter(fmt=console_fmt, datefmt="%H:%M:%S", use_colors=use_colors))
    console_handler.setLevel(level)

    handlers: list[logging.Handler] = [console_handler]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(
            PlainFormatter(
                fmt="[%(asctime)s] %(levelname)-8s [%(name)s] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        file_handler.setLevel(logging.DEBUG)  # Always debug to file
        handlers.append(file_handler)

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)  # Capture all levels, handlers filter
    logger.propagate = False

    logger.debug("Logging initialized (level=%s, log_file=%s)", logging.getLevelName(level), log_file)
    return logger
