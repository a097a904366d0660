"""
Central logging configuration and debug decorator.

Provides structured logging with file and console handlers, plus a decorator
that records entry, duration and failures of the dashboard pipeline steps.
"""

import functools
import logging
import traceback
from pathlib import Path
from time import time
from typing import Any, Callable, TypeVar

# Type variable for function return types
F = TypeVar("F", bound=Callable[..., Any])

# Log file path
LOG_FILE = Path(__file__).resolve().parent.parent / "system_debug.log"

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(module)s]: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Configure package logger
_logger = logging.getLogger("matrix_analytics")
_logger.setLevel(logging.DEBUG)

# Prevent duplicate handlers (Streamlit re-imports on every rerun)
if not _logger.handlers:
    # Console handler (INFO level)
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    _logger.addHandler(console_handler)

    # File handler (DEBUG level)
    file_handler = logging.FileHandler(LOG_FILE, mode="a", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    _logger.addHandler(file_handler)


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Optional module name. If None, returns the package logger.

    Returns:
        Logger instance configured with file and console handlers.
    """
    if name:
        if name.startswith("matrix_analytics"):
            return logging.getLogger(name)
        return logging.getLogger(f"matrix_analytics.{name}")
    return _logger


def _describe(value: Any) -> str:
    # DataFrames are summarized by shape; their repr is too large for a log line
    shape = getattr(value, "shape", None)
    if shape is not None:
        return f"<{type(value).__name__} {shape}>"
    return str(value)[:100]


def debug_watcher(func: F) -> F:
    """
    Decorator that logs function entry, execution time, and exceptions.

    Logs:
    - Function start with arguments
    - Function completion with execution time
    - Full traceback on exceptions (to file only)

    Args:
        func: Function to wrap.

    Returns:
        Wrapped function with logging.
    """
    logger = get_logger(func.__module__)

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        func_name = func.__name__
        start_time = time()

        args_str = ", ".join(_describe(arg) for arg in args[:3])
        kwargs_str = ", ".join(f"{k}={_describe(v)[:50]}" for k, v in list(kwargs.items())[:3])
        params_str = ", ".join(filter(None, [args_str, kwargs_str]))
        logger.debug(f"Starting {func_name}... ({params_str})")

        try:
            result = func(*args, **kwargs)

            elapsed = time() - start_time
            logger.debug(f"Completed {func_name} in {elapsed:.3f} seconds.")

            return result

        except Exception as e:
            # Log full traceback to file (DEBUG level)
            elapsed = time() - start_time
            error_msg = f"Exception in {func_name} after {elapsed:.3f} seconds: {type(e).__name__}: {str(e)}"
            logger.error(error_msg)
            logger.debug(f"Full traceback for {func_name}:\n{traceback.format_exc()}")

            # Re-raise to maintain normal error handling
            raise

    return wrapper  # type: ignore[return-value]
