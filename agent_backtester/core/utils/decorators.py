"""
Utility decorators for operational logging.
"""

import functools
import inspect
import time
import uuid
from collections.abc import Callable
from typing import Any, TypeVar

from loguru import logger

F = TypeVar("F", bound=Callable[..., Any])


def _operation_context(func: Callable[..., Any]) -> dict[str, Any]:
    """Create the logging context shared by one invocation."""
    return {
        "correlation_id": str(uuid.uuid4())[:8],
        "operation": func.__qualname__,
    }


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)


def _log_success(context: dict[str, Any], start_time: float) -> None:
    logger.bind(**context, execution_time_ms=_elapsed_ms(start_time), success=True).debug(
        f"Operation completed: {context['operation']} "
        f"[{context['correlation_id']}] in {_elapsed_ms(start_time)}ms"
    )


def _log_failure(context: dict[str, Any], start_time: float, error: Exception) -> None:
    logger.bind(
        **context,
        execution_time_ms=_elapsed_ms(start_time),
        success=False,
        error_type=type(error).__name__,
    ).error(
        f"Operation failed: {context['operation']} "
        f"[{context['correlation_id']}] ({type(error).__name__}: {error})"
    )


def log_operation(func: F) -> F:
    """Decorator to log an operation with a correlation id and timing.

    Works for both regular and ``async`` callables; exceptions are logged
    and re-raised unchanged.
    """
    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            context = _operation_context(func)
            logger.bind(**context).debug(f"Operation started: {context['operation']}")
            start_time = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                _log_failure(context, start_time, e)
                raise
            _log_success(context, start_time)
            return result

        return async_wrapper  # type: ignore

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        context = _operation_context(func)
        logger.bind(**context).debug(f"Operation started: {context['operation']}")
        start_time = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            _log_failure(context, start_time, e)
            raise
        _log_success(context, start_time)
        return result

    return wrapper  # type: ignore
