"""Retry decorator for collaborator calls with exponential backoff.

Retries transient collaborator failures while immediately propagating
timeouts, which callers treat as "no signal".
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any

from loguru import logger

from reviewcore.exceptions import CollaboratorError, CollaboratorTimeoutError

# Defaults
DEFAULT_MAX_RETRIES = 2
DEFAULT_BASE_DELAY = 1.0
DEFAULT_MAX_DELAY = 30.0
DEFAULT_BACKOFF_FACTOR = 2.0


def with_retry(
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator for retrying collaborator calls with exponential backoff.

    Retries on ``CollaboratorError``. Does NOT retry on
    ``CollaboratorTimeoutError``.

    Args:
        max_retries: Maximum number of retry attempts.
        base_delay: Initial delay in seconds before the first retry.
        max_delay: Maximum delay in seconds between retries.
        backoff_factor: Multiplier applied to delay after each attempt.

    Returns:
        Decorated function with retry behavior.
    """

    def decorator(
        func: Callable[..., Any],
    ) -> Callable[..., Any]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except CollaboratorTimeoutError:
                    raise
                except CollaboratorError as e:
                    if attempt == max_retries:
                        raise
                    delay = min(
                        base_delay * (backoff_factor**attempt),
                        max_delay,
                    )
                    logger.debug(
                        f"Collaborator retry {attempt + 1}/{max_retries} for "
                        f"{getattr(func, '__name__', func)}: {e}, "
                        f"waiting {delay:.1f}s",
                    )
                    time.sleep(delay)
            raise AssertionError("Retry loop exited without returning or raising")

        return wrapper

    return decorator


def call_with_retry(
    func: Callable[..., Any],
    *args: Any,
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    **kwargs: Any,
) -> Any:
    """Call ``func`` once with ``with_retry`` semantics.

    Used for bound collaborator methods whose retry budget comes from
    runtime settings.
    """
    return with_retry(
        max_retries=max_retries,
        base_delay=base_delay,
        max_delay=max_delay,
    )(func)(*args, **kwargs)
