"""Decorator utilities for cross-cutting concerns."""
import time
import logging
import functools
from typing import Any, Callable, Sequence, TypeVar, cast

logger = logging.getLogger(__name__)

F = TypeVar('F', bound=Callable[..., Any])


def _call_label(func: Callable, args: Sequence[Any]) -> str:
    """Name of the call, tagged with the record it works on when an event is passed"""
    for arg in args:
        operation = getattr(arg, 'record_operation', None)
        if operation is not None:
            return f"{func.__qualname__} [{operation.table}:{operation.remote_id}]"
    return func.__qualname__


def log_execution_time(func: F) -> F:
    """Decorator to log how long a pipeline step took.

    Success is logged at INFO, failure at ERROR before the exception is re-raised.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        label = _call_label(func, args)
        started = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.error(f"{label} failed after {time.perf_counter() - started:.3f}s: {e}")
            raise
        logger.info(f"{label} completed in {time.perf_counter() - started:.3f}s")
        return result
    return cast(F, wrapper)
