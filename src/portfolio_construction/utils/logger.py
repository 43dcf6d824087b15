"""
Logging Framework Module
========================
Centralized logging configuration for the construction engine.

Features:
- Colored console output on stdout
- Optional dated file logging (PORTFOLIO_LOG_DIR)
- Console level from PORTFOLIO_LOG_LEVEL or set_console_level()
- Timing decorator for pipeline entry points
"""

import logging
import os
import sys
from pathlib import Path
from datetime import datetime
import functools
import time
from typing import Optional, Union


# Default configuration
DEFAULT_CONFIG = {
    'console_level': logging.INFO,
    'file_level': logging.DEBUG,
    'log_dir_env': 'PORTFOLIO_LOG_DIR',
    'level_env': 'PORTFOLIO_LOG_LEVEL',
    'format': '%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
    'date_format': '%Y-%m-%d %H:%M:%S',
}

# Libraries this engine calls that log on their own
THIRD_PARTY_LOGGERS = ('scipy', 'scipy.optimize')

# marks handlers installed by setup_logger
_ENGINE_HANDLER = '_portfolio_construction_handler'


# ================================================================================
# CUSTOM FORMATTER WITH COLORS
# ================================================================================

class ColoredFormatter(logging.Formatter):
    """Formatter with ANSI color codes for console output."""

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'
    }

    def format(self, record):
        # Color a copy so other handlers keep the plain levelname
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname)
        if color:
            record.levelname = f"{color}{record.levelname}{self.COLORS['RESET']}"
        return super().format(record)


# ================================================================================
# LOGGER SETUP
# ================================================================================

def _resolve_level(level: Union[int, str, None], default: int) -> int:
    if level is None:
        return default
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else default


def setup_logger(
    name: str,
    console_level: Union[int, str, None] = None,
    file_level: int = DEFAULT_CONFIG['file_level'],
    log_dir: Optional[str] = None,
) -> logging.Logger:
    """
    Configure and return a logger with console and optional file handlers.

    Calling it again for the same name replaces the engine's handlers and
    leaves handlers added by other code in place.

    Args:
        name: Logger name (usually __name__ of the module)
        console_level: Minimum level for console output; defaults to
            $PORTFOLIO_LOG_LEVEL, then INFO
        file_level: Minimum level for file output
        log_dir: Directory for log files; defaults to $PORTFOLIO_LOG_DIR,
            file logging is off when neither is set
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)  # filter in handlers

    for handler in [h for h in logger.handlers if getattr(h, _ENGINE_HANDLER, False)]:
        logger.removeHandler(handler)
        handler.close()

    if console_level is None:
        console_level = os.environ.get(DEFAULT_CONFIG['level_env'])
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(_resolve_level(console_level, DEFAULT_CONFIG['console_level']))
    console_handler.setFormatter(ColoredFormatter(
        fmt=DEFAULT_CONFIG['format'],
        datefmt=DEFAULT_CONFIG['date_format']
    ))
    setattr(console_handler, _ENGINE_HANDLER, True)
    logger.addHandler(console_handler)

    log_dir = log_dir or os.environ.get(DEFAULT_CONFIG['log_dir_env'])
    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        log_file = log_path / f"{name.replace('.', '_')}_{datetime.now():%Y%m%d}.log"

        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(
            fmt=DEFAULT_CONFIG['format'],
            datefmt=DEFAULT_CONFIG['date_format']
        ))
        setattr(file_handler, _ENGINE_HANDLER, True)
        logger.addHandler(file_handler)

    return logger


def set_console_level(level: Union[int, str]) -> int:
    """
    Change the console threshold of every engine logger already created.

    File handlers keep their own level. Returns the numeric level applied.
    """
    numeric = _resolve_level(level, DEFAULT_CONFIG['console_level'])
    for logger in logging.Logger.manager.loggerDict.values():
        if not isinstance(logger, logging.Logger):
            continue
        for handler in logger.handlers:
            if getattr(handler, _ENGINE_HANDLER, False) and not isinstance(handler, logging.FileHandler):
                handler.setLevel(numeric)
    return numeric


# ================================================================================
# PERFORMANCE TRACKING DECORATOR
# ================================================================================

def log_performance(logger: logging.Logger):
    """
    Decorator to log function execution time.

    Usage:
        @log_performance(logger)
        def optimize_portfolio(...):
            ...
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            logger.debug(f"Starting {func.__name__}")
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                elapsed_ms = (time.perf_counter() - start) * 1000.0
                logger.error(f"{func.__name__} failed after {elapsed_ms:.1f} ms: {type(e).__name__}: {e}")
                raise
            elapsed_ms = (time.perf_counter() - start) * 1000.0
            logger.info(f"{func.__name__} completed in {elapsed_ms:.1f} ms")
            return result

        return wrapper
    return decorator


# ================================================================================
# MODULE-SPECIFIC LOGGERS
# ================================================================================

def get_logger(module_name: str) -> logging.Logger:
    """
    Get or create a logger for a specific module.

    Usage:
        from portfolio_construction.utils.logger import get_logger
        logger = get_logger(__name__)
    """
    return setup_logger(module_name)


def silence_third_party_loggers(level: int = logging.WARNING):
    """Keep scipy's solver chatter out of the engine's console output."""
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(level)


# Initialize on import
silence_third_party_loggers()
