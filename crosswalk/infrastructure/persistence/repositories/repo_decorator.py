"""Decorator standardizing logging and error classification for repository methods.

Every repository coroutine wrapped with ``db_operation`` gets:
- trace logs with timing around each call
- SQLAlchemy errors classified to a log level and re-raised unchanged
"""

import asyncio
from collections.abc import Callable, Coroutine
import functools
import time
from typing import Any

from sqlalchemy.exc import (
    DatabaseError,
    IntegrityError,
    MultipleResultsFound,
    NoResultFound,
    OperationalError,
    SQLAlchemyError,
    TimeoutError,
)

from crosswalk.config import get_logger

logger = get_logger(__name__)

# Most specific first; the first isinstance match decides the log level
_ERROR_LEVELS: tuple[tuple[type[Exception], str, str], ...] = (
    (NoResultFound, "DEBUG", "DB record not found"),
    (MultipleResultsFound, "WARNING", "Multiple results found"),
    (IntegrityError, "WARNING", "DB integrity error"),
    (TimeoutError, "ERROR", "DB timeout error"),
    (OperationalError, "ERROR", "DB operational error"),
    (DatabaseError, "ERROR", "DB error"),
    (SQLAlchemyError, "ERROR", "SQLAlchemy error"),
)


def db_operation[**P, T](
    operation_name: str | None = None,
) -> Callable[
    [Callable[P, Coroutine[Any, Any, T]]], Callable[P, Coroutine[Any, Any, T]]
]:
    """Wrap an async repository method with logging, timing and error handling.

    Args:
        operation_name: Name used in log records (defaults to the function name)

    Example:
        @db_operation("get_cache_entry")
        async def get(self, kind: EntityKind, source_id: str) -> CacheEntry | None:
            ...
    """

    def decorator(
        func: Callable[P, Coroutine[Any, Any, T]],
    ) -> Callable[P, Coroutine[Any, Any, T]]:
        func_name = operation_name or func.__name__

        if not asyncio.iscoroutinefunction(func):
            raise TypeError(
                f"db_operation can only be used with async functions, but {func_name} is not async",
            )

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            start_time = time.perf_counter()
            repo_name = args[0].__class__.__name__ if args else "Repository"
            context = _build_log_context(kwargs)

            logger.trace(
                f"DB operation starting: {repo_name}.{func_name}",
                operation=func_name,
                **context,
            )
            try:
                result = await func(*args, **kwargs)
            except SQLAlchemyError as e:
                level, message = _classify(e)
                logger.log(
                    level,
                    f"{message}: {repo_name}.{func_name}",
                    operation=func_name,
                    error=str(e),
                    exec_time_ms=(time.perf_counter() - start_time) * 1000,
                    **context,
                )
                raise
            except Exception as e:
                logger.exception(
                    f"Unhandled exception in {repo_name}.{func_name}",
                    operation=func_name,
                    error=str(e),
                    exec_time_ms=(time.perf_counter() - start_time) * 1000,
                    **context,
                )
                raise

            logger.trace(
                f"DB operation completed: {repo_name}.{func_name}",
                operation=func_name,
                exec_time_ms=(time.perf_counter() - start_time) * 1000,
                **context,
            )
            return result

        return wrapper

    return decorator


def _classify(error: SQLAlchemyError) -> tuple[str, str]:
    for error_type, level, message in _ERROR_LEVELS:
        if isinstance(error, error_type):
            return level, message
    return "ERROR", "SQLAlchemy error"


def _build_log_context(kwargs: dict[str, Any]) -> dict[str, Any]:
    """Pick loggable scalar values out of the call's keyword arguments."""
    return {
        k: v
        for k, v in kwargs.items()
        if not k.startswith("_") and isinstance(v, int | float | str)
    }
