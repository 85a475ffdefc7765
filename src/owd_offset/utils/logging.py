"""
Logging utilities for owd_offset.

Provides logging setup and function call tracing with inputs/outputs.
Tracing can be toggled on/off via environment variable or at runtime.
"""

import dataclasses
import functools
import inspect
import logging
import os
import sys
import time
from pathlib import Path
from typing import Any, Callable, Optional

import numpy as np

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Global debug flag (can be controlled via environment or enable_debug())
DEBUG_ENABLED = os.environ.get('OWD_OFFSET_DEBUG', 'false').lower() == 'true'

logger = logging.getLogger('owd_offset.debug')
logger.setLevel(logging.DEBUG if DEBUG_ENABLED else logging.INFO)


def setup_logging(level: str = "INFO",
                  log_file: Optional[str] = None,
                  format_string: Optional[str] = None) -> None:
    """
    Set up logging configuration for owd_offset.

    Args:
        level: Logging level ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
        log_file: Optional file path to write logs
        format_string: Optional custom format string
    """
    if format_string is None:
        format_string = DEFAULT_FORMAT

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(format_string)

    package_logger = logging.getLogger("owd_offset")
    package_logger.setLevel(numeric_level)

    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    package_logger.info(f"Logging configured: level={level}, file={log_file}")

def _set_debug(enabled: bool) -> None:
    global DEBUG_ENABLED
    DEBUG_ENABLED = enabled
    logger.setLevel(logging.DEBUG if enabled else logging.INFO)
    logger.info(f"Call tracing {'enabled' if enabled else 'disabled'}")


def enable_debug():
    """Trace decorated calls from now on."""
    _set_debug(True)


def disable_debug():
    _set_debug(False)


def is_debug_enabled() -> bool:
    return DEBUG_ENABLED


def format_value(value: Any, max_len: int = 100) -> str:
    """
    Compact text for a traced value.

    Arrays print as dtype[n] with their values when short, or with a
    min/max/mean summary when long. Dataclass results such as GammaParams
    print field by field.
    """
    if isinstance(value, np.ndarray):
        header = f"{value.dtype}{list(value.shape)}"
        if value.size == 0:
            return f"{header} empty"
        if value.size <= 8:
            return f"{header} {np.array2string(value, precision=6, separator=', ')}"
        return f"{header} min={value.min():.6g} max={value.max():.6g} mean={value.mean():.6g}"

    if isinstance(value, (float, np.floating)):
        return f"{float(value):.9g}"

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        parts = ", ".join(
            f"{f.name}={format_value(getattr(value, f.name), max_len)}" for f in dataclasses.fields(value)
        )
        text = f"{type(value).__name__}({parts})"
    elif isinstance(value, (list, tuple)) and len(value) > 8:
        text = f"{type(value).__name__}[{len(value)}] first={value[0]} last={value[-1]}"
    else:
        text = str(value)

    if len(text) > max_len:
        return text[:max_len] + "..."
    return text


def _format_arguments(signature: Optional[inspect.Signature], args: tuple, kwargs: dict) -> str:
    if signature is None:
        values = [format_value(a) for a in args]
        values += [f"{k}={format_value(v)}" for k, v in kwargs.items()]
        return ", ".join(values)

    bound = signature.bind_partial(*args, **kwargs)
    parts = []
    for name, value in bound.arguments.items():
        if name == "self":
            parts.append(f"self=<{type(value).__name__}>")
        else:
            parts.append(f"{name}={format_value(value)}")
    return ", ".join(parts)


def debug_log_call(func: Callable) -> Callable:
    """
    Trace calls to func on the owd_offset.debug logger.

    Each traced call logs one line on entry with its bound arguments, and one
    line on return (or on the exception raised) with the elapsed time.
    Untraced calls go straight through.

    Usage:
        @debug_log_call
        def fit_gamma(samples):
            return params
    """
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        signature = None
    func_name = f"{func.__module__}.{func.__qualname__}"

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        if not DEBUG_ENABLED:
            return func(*args, **kwargs)

        logger.debug(f"call {func_name}({_format_arguments(signature, args, kwargs)})")
        start_time = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            elapsed_ms = (time.perf_counter() - start_time) * 1000.0
            logger.debug(f"raise {func_name} after {elapsed_ms:.3f} ms: {type(e).__name__}: {e}")
            raise

        elapsed_ms = (time.perf_counter() - start_time) * 1000.0
        logger.debug(f"return {func_name} after {elapsed_ms:.3f} ms: {format_value(result, max_len=300)}")
        return result

    return wrapper


def debug_log_variable(name: str, value: Any):
    """Log an intermediate value while tracing is on."""
    if DEBUG_ENABLED:
        logger.debug(f"  {name} = {format_value(value)}")
