"""Retry decorator with exponential backoff for flaky collaborators."""

from __future__ import annotations

import functools
import logging
import random
import time
from typing import Any, Callable

logger = logging.getLogger(__name__)


def retry(
    *,
    max_attempts: int = 2,
    base_delay: float = 0.5,
    max_delay: float = 10.0,
    backoff_factor: float = 2.0,
    jitter: bool = False,
    retryable: tuple[type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
) -> Callable:
    """Retry the wrapped callable up to *max_attempts* times.

    The last failure is re-raised unchanged so the caller can choose a
    fallback.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(1, max_attempts + 1):
                try:
                    return fn(*args, **kwargs)
                except retryable as exc:
                    if attempt == max_attempts:
                        logger.warning(
                            "%s failed after %d attempt(s): %s",
                            getattr(fn, "__qualname__", fn),
                            max_attempts,
                            exc,
                        )
                        raise
                    delay = min(base_delay * (backoff_factor ** (attempt - 1)), max_delay)
                    if jitter:
                        delay *= 0.5 + random.random()
                    logger.info(
                        "%s attempt %d/%d failed (%s), retrying in %.1fs",
                        getattr(fn, "__qualname__", fn),
                        attempt,
                        max_attempts,
                        exc,
                        delay,
                    )
                    sleep(delay)
            raise AssertionError("unreachable")

        return wrapper

    return decorator
