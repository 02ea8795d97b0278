"""
Logging configuration and utilities for lyricsync
Provides colored console output and file logging with separation between user and technical messages
"""

import asyncio
import functools
import logging
import logging.handlers
import re
import sys
import time
from pathlib import Path
from typing import Optional
import colorama
from colorama import Fore, Back, Style

from ..config.settings import get_settings


# Initialize colorama for Windows compatibility
colorama.init()

# Third-party loggers that are too chatty for the engine's log stream
EXTERNAL_LIBS = [
    'spotipy', 'urllib3', 'aiohttp', 'aiohttp.access', 'aiohttp.client',
    'asyncio_throttle', 'urllib3.connectionpool',
]


class ConsoleMessageFilter(logging.Filter):
    """Filter to allow only user-facing messages to console"""

    def filter(self, record):
        # Allow all WARNING+ messages
        if record.levelno >= logging.WARNING:
            return True

        # Allow messages explicitly marked for console
        if getattr(record, 'console_output', False):
            return True

        # Allow messages from specific console loggers
        if record.name.endswith('.console') or record.name.endswith('.user'):
            return True

        return False


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colored output for console"""

    # Color mapping for log levels
    COLORS = {
        'DEBUG': Fore.CYAN,
        'INFO': Fore.GREEN,
        'WARNING': Fore.YELLOW,
        'ERROR': Fore.RED,
        'CRITICAL': Fore.RED + Back.WHITE + Style.BRIGHT,
    }

    def __init__(self, fmt: Optional[str] = None, use_colors: bool = True):
        """
        Initialize colored formatter

        Args:
            fmt: Log format string
            use_colors: Whether to use colored output
        """
        super().__init__()
        self.use_colors = use_colors
        self.fmt = fmt or '%(message)s'

    def format(self, record: logging.LogRecord) -> str:
        """Format log record, coloring the level name and warning/error text"""
        formatter = logging.Formatter(self.fmt)

        if not (self.use_colors and record.levelname in self.COLORS):
            return formatter.format(record)

        color = self.COLORS[record.levelname]
        record_copy = logging.makeLogRecord(record.__dict__)
        record_copy.levelname = f"{color}{record.levelname}{Style.RESET_ALL}"
        formatted = formatter.format(record_copy)

        # Only problems get colored bodies; user info stays plain
        if record.levelno >= logging.WARNING:
            return f"{color}{formatted}{Style.RESET_ALL}"
        return formatted


class ConsoleHandler(logging.Handler):
    """Handler that writes whole lines to a stream, clearing any status line first"""

    def __init__(self, stream=None):
        super().__init__()
        self.stream = stream or sys.stderr

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            self.stream.write(f'\r{" " * 80}\r{msg}\n')
            self.stream.flush()
        except Exception:
            self.handleError(record)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    console_output: bool = True,
    colored_output: bool = True,
    max_size: str = "10MB",
    backup_count: int = 3
) -> None:
    """
    Setup application logging configuration with separated console/file output

    Args:
        level: Logging level for the file handler (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (None to disable file logging)
        console_output: Enable console logging
        colored_output: Enable colored console output
        max_size: Maximum log file size before rotation
        backup_count: Number of backup log files to keep
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture everything, filter at handler level

    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    # Console handler - only user-facing messages (WARNING+ or explicitly marked)
    if console_output:
        console_handler = ConsoleHandler(sys.stdout)
        console_handler.setLevel(logging.DEBUG)  # Let filter decide what to show
        console_handler.addFilter(ConsoleMessageFilter())
        console_handler.setFormatter(ColoredFormatter(
            fmt='%(message)s',
            use_colors=colored_output
        ))
        root_logger.addHandler(console_handler)

    # File handler with full detail logging
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=parse_size(max_size),
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(
            fmt='%(asctime)s | %(name)-30s | %(levelname)-8s | %(funcName)-20s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        root_logger.addHandler(file_handler)

    for lib in EXTERNAL_LIBS:
        lib_logger = logging.getLogger(lib)
        lib_logger.setLevel(logging.CRITICAL)
        lib_logger.propagate = False

    logging.getLogger('lyricsync').debug(
        f"Logging initialized - Level: {level}, Console: {console_output}, File: {log_file}"
    )


def get_current_log_file() -> Optional[Path]:
    """
    Get the current log file path from active file handlers

    Returns:
        Path to current log file or None if no file logging
    """
    for handler in logging.getLogger().handlers:
        if isinstance(handler, logging.handlers.RotatingFileHandler):
            return Path(handler.baseFilename)
    return None


def parse_size(size_str: str) -> int:
    """
    Parse size string to bytes

    Args:
        size_str: Size string like "10MB", "1GB", "500KB"

    Returns:
        Size in bytes

    Raises:
        ValueError: If the string is not a number followed by a size unit
    """
    size_str = size_str.upper().strip()

    multipliers = {
        'B': 1,
        'KB': 1024,
        'MB': 1024 ** 2,
        'GB': 1024 ** 3,
        'TB': 1024 ** 4,
    }

    match = re.match(r'^(\d+(?:\.\d+)?)\s*([KMGT]?B)$', size_str)
    if not match:
        raise ValueError(f"Invalid size format: {size_str}")

    number, unit = match.groups()
    return int(float(number) * multipliers[unit])


def get_logger(name: str) -> logging.Logger:
    """
    Get logger instance for a module

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance with a `console_info` method for user-facing messages
    """
    logger = logging.getLogger(name)

    def console_info(message: str):
        """Log message that should appear on console for user"""
        record = logger.makeRecord(
            logger.name, logging.INFO, '', 0, message, (), None
        )
        record.console_output = True
        logger.handle(record)

    logger.console_info = console_info

    return logger


def configure_from_settings() -> None:
    """Configure logging from application settings"""
    settings = get_settings()

    log_file_path = None
    if settings.logging.file:
        if Path(settings.logging.file).is_absolute():
            log_file_path = settings.logging.file
        else:
            log_file_path = settings.get_config_directory() / settings.logging.file

    setup_logging(
        level=settings.logging.level,
        log_file=str(log_file_path) if log_file_path else None,
        console_output=settings.logging.console_output,
        colored_output=settings.logging.colored_output,
        max_size=settings.logging.max_size,
        backup_count=settings.logging.backup_count
    )


def log_performance(func):
    """
    Decorator to log how long a call took (to file only)

    Works for both plain functions and coroutine functions.
    """
    logger = get_logger(func.__module__)

    if asyncio.iscoroutinefunction(func):
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            start_time = time.monotonic()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                logger.debug(f"{func.__name__} failed after {time.monotonic() - start_time:.3f}s: {e}")
                raise
            logger.debug(f"{func.__name__} completed in {time.monotonic() - start_time:.3f}s")
            return result

        return async_wrapper

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.monotonic()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.debug(f"{func.__name__} failed after {time.monotonic() - start_time:.3f}s: {e}")
            raise
        logger.debug(f"{func.__name__} completed in {time.monotonic() - start_time:.3f}s")
        return result

    return wrapper


# Initialize logging when module is imported
try:
    configure_from_settings()
except (OSError, ValueError):
    # Fallback to basic logging if settings are unusable
    setup_logging(level="INFO", console_output=True)
