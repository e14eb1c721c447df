"""
Utilities
=========

This module provides utility functions that are used across the engine but
do not belong to a more specific domain like the inference backend or the
taxonomy logic.

Currently, it contains a `retry` decorator for handling transient errors
with exponential backoff and jitter.
"""
import logging
import random
import time
from functools import wraps
from typing import Callable, Type, TypeVar

log = logging.getLogger(__name__)
T = TypeVar("T")

MAX_BACKOFF_SECONDS = 30.0


def retry(
    retryable_exceptions: tuple[Type[Exception], ...],
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    A decorator that retries a method call on specific exceptions.

    The decorated method's instance must expose ``settings.MAX_RETRIES``.

    Args:
        retryable_exceptions: A tuple of exception types that should trigger a retry.
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(self, *args, **kwargs) -> T:
            max_retries = self.settings.MAX_RETRIES
            if max_retries < 1:
                raise ValueError("MAX_RETRIES must be >= 1")
            for attempt in range(1, max_retries + 1):
                try:
                    return func(self, *args, **kwargs)
                except retryable_exceptions as e:
                    if attempt == max_retries:
                        log.warning(
                            "%s failed after %d attempts",
                            func.__name__,
                            attempt,
                        )
                        raise
                    log.warning(
                        "%s failed (%s) - retry %d/%d",
                        func.__name__,
                        e,
                        attempt,
                        max_retries,
                    )
                    _sleep_backoff(attempt, max_retries)
            # Unreachable while MAX_RETRIES >= 1
            raise RuntimeError("Retry loop exited unexpectedly.")

        return wrapper

    return decorator


def _sleep_backoff(attempt: int, max_retries: int) -> None:
    """Sleep for a short duration with exponential backoff and jitter."""
    delay = min((2**attempt) * random.uniform(0.8, 1.2), MAX_BACKOFF_SECONDS)
    log.info(
        "Sleeping %.1f s before retry %d/%d",
        delay,
        attempt,
        max_retries,
    )
    time.sleep(delay)
