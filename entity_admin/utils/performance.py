import time
import logging
import functools
import inspect
from typing import Callable, Optional

from entity_admin.config.settings import settings

logger = logging.getLogger(__name__)


def performance_logger(func: Callable = None, *, threshold_ms: Optional[int] = None) -> Callable:
    """
    Decorator to log execution time of remote calls.

    Calls slower than ``threshold_ms`` (default LOG_PERFORMANCE_THRESHOLD_MS)
    are logged as warnings, the rest at debug level.

    Args:
        func: The function to be decorated
        threshold_ms: Override for the slow-call threshold

    Returns:
        Wrapped function with performance logging
    """
    if func is None:
        return functools.partial(performance_logger, threshold_ms=threshold_ms)

    module = func.__module__
    function_name = func.__qualname__

    def _report(start_time: float, label: str):
        duration_ms = (time.perf_counter() - start_time) * 1000
        limit = threshold_ms if threshold_ms is not None else settings.LOG_PERFORMANCE_THRESHOLD_MS
        extra = {"function": function_name, "duration_ms": duration_ms}
        if duration_ms > limit:
            logger.warning(f"SLOW OPERATION: {label} took {duration_ms:.2f}ms", extra=extra)
        else:
            logger.debug(f"PERFORMANCE: {label} took {duration_ms:.2f}ms", extra=extra)

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            _report(start_time, f"{module}.{function_name}")

    @functools.wraps(func)
    async def async_wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        label = f"{module}.{function_name}"
        # Methods called as (self, method, path, ...) get the HTTP verb and path in the label
        if len(args) >= 3 and isinstance(args[1], str) and isinstance(args[2], str):
            label = f"{args[1]} {args[2]}"
        try:
            return await func(*args, **kwargs)
        finally:
            _report(start_time, label)

    if inspect.iscoroutinefunction(func):
        return async_wrapper
    return wrapper
