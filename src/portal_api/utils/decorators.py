"""Decorator utilities for cross-cutting concerns."""
import time
import logging
import functools
import asyncio
from typing import Any, Callable, Optional, TypeVar, cast

# Setup logging
logger = logging.getLogger(__name__)

F = TypeVar('F', bound=Callable[..., Any])

def async_log_execution_time(func: F) -> F:
    """Decorator to log async function execution time.

    Args:
        func: The async function to decorate

    Returns:
        Decorated async function that logs execution time
    """
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        start_time = time.monotonic()
        try:
            result = await func(*args, **kwargs)
            duration = time.monotonic() - start_time
            logger.info(f"{func.__name__} completed in {duration:.2f}s")
            return result
        except Exception as e:
            duration = time.monotonic() - start_time
            logger.error(f"{func.__name__} failed after {duration:.2f}s: {str(e)}")
            raise
    return cast(F, wrapper)

def _next_delay(current_delay: float, backoff: float, max_delay: Optional[float]) -> float:
    next_delay = current_delay * backoff
    if max_delay is not None:
        next_delay = min(next_delay, max_delay)
    return next_delay

def retry(max_attempts: int = 3, delay: float = 1.0, backoff: float = 2.0,
          max_delay: Optional[float] = None, exceptions: tuple = (Exception,),
          logger_name: Optional[str] = None):
    """Decorator for retrying functions with capped exponential backoff.

    Args:
        max_attempts: Maximum number of attempts, the first call included
        delay: Initial delay between retries in seconds
        backoff: Backoff multiplier (e.g., 2.0 means delay doubles each retry)
        max_delay: Upper bound for any single delay in seconds
        exceptions: Tuple of exceptions to catch for retry
        logger_name: Optional logger name (defaults to module logger)

    Returns:
        Decorator function
    """
    retry_logger = logging.getLogger(logger_name) if logger_name else logger

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            attempt = 1
            current_delay = min(delay, max_delay) if max_delay is not None else delay

            while attempt <= max_attempts:
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_attempts:
                        retry_logger.error(f"All {max_attempts} attempts failed for {func.__name__}: {str(e)}")
                        raise

                    retry_logger.warning(
                        f"Attempt {attempt}/{max_attempts} for {func.__name__} failed: {str(e)}. "
                        f"Retrying in {current_delay:.2f}s"
                    )

                    time.sleep(current_delay)
                    attempt += 1
                    current_delay = _next_delay(current_delay, backoff, max_delay)

        return cast(F, wrapper)

    return decorator

def async_retry(max_attempts: int = 3, delay: float = 1.0, backoff: float = 2.0,
                max_delay: Optional[float] = None, exceptions: tuple = (Exception,),
                logger_name: Optional[str] = None):
    """Decorator for retrying async functions with capped exponential backoff.

    Args:
        max_attempts: Maximum number of attempts, the first call included
        delay: Initial delay between retries in seconds
        backoff: Backoff multiplier (e.g., 2.0 means delay doubles each retry)
        max_delay: Upper bound for any single delay in seconds
        exceptions: Tuple of exceptions to catch for retry
        logger_name: Optional logger name (defaults to module logger)

    Returns:
        Decorator function
    """
    retry_logger = logging.getLogger(logger_name) if logger_name else logger

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            attempt = 1
            current_delay = min(delay, max_delay) if max_delay is not None else delay

            while attempt <= max_attempts:
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_attempts:
                        retry_logger.error(f"All {max_attempts} attempts failed for {func.__name__}: {str(e)}")
                        raise

                    retry_logger.warning(
                        f"Attempt {attempt}/{max_attempts} for {func.__name__} failed: {str(e)}. "
                        f"Retrying in {current_delay:.2f}s"
                    )

                    await asyncio.sleep(current_delay)
                    attempt += 1
                    current_delay = _next_delay(current_delay, backoff, max_delay)

        return cast(F, wrapper)

    return decorator
