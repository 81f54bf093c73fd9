"""
Database utilities for connection management and error handling
"""
import asyncio
import functools
import logging
from typing import Callable, Any, TypeVar, cast, Awaitable

from sqlalchemy.exc import DBAPIError, OperationalError, TimeoutError as PoolTimeoutError

from app.core.config import settings
from app.core.exceptions import TransientStoreError

logger = logging.getLogger(__name__)

# Define a type variable for the return type of the decorated function
T = TypeVar('T')

# SQLSTATE codes for serialization failure and deadlock
TRANSIENT_SQLSTATES = {"40001", "40P01"}

TRANSIENT_ERROR_NAMES = [
    "ConnectionError", "ConnectionDoesNotExistError", "ConnectionRefusedError",
    "SerializationError", "DeadlockDetectedError",
]


def is_transient_error(exc: BaseException) -> bool:
    """Tell whether a store error is safe to retry."""
    if isinstance(exc, TransientStoreError):
        return True
    if isinstance(exc, (OperationalError, PoolTimeoutError, ConnectionError)):
        return True
    if isinstance(exc, DBAPIError):
        if exc.connection_invalidated:
            return True
        orig = exc.orig
        sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
        if sqlstate in TRANSIENT_SQLSTATES:
            return True
        exc = orig if orig is not None else exc
    error_name = type(exc).__name__
    return any(err in error_name for err in TRANSIENT_ERROR_NAMES)


def with_db_retry(
    max_retries: int = settings.DB_RETRY_ATTEMPTS,
    retry_delay: float = settings.DB_RETRY_DELAY
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorator that retries a unit of work on transient store errors.

    The wrapped coroutine must leave no partial state behind when it fails,
    which holds for anything running inside ``unit_of_work``.

    Args:
        max_retries: Maximum number of retries before giving up
        retry_delay: Delay before the first retry in seconds

    Returns:
        Decorated function with retry logic. Raises TransientStoreError
        once the retries are exhausted.
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            retries = 0
            last_error = None

            while retries <= max_retries:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    if not is_transient_error(e):
                        # Business and programming errors are not retried
                        raise
                    retries += 1
                    last_error = e

                    if retries <= max_retries:
                        delay = retry_delay * (2 ** (retries - 1))  # Exponential backoff
                        logger.warning(
                            f"Transient store error in {func.__name__}: {str(e)}. "
                            f"Retrying in {delay:.2f}s... (Attempt {retries}/{max_retries})"
                        )
                        await asyncio.sleep(delay)

            # If we get here, we've exhausted all retries
            logger.error(f"{func.__name__} failed after {max_retries} retries: {last_error}")
            raise TransientStoreError(
                "The data store is temporarily unavailable, please retry"
            ) from last_error

        return cast(Callable[..., Awaitable[T]], wrapper)

    return decorator
