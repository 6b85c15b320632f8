"""
Resilience utilities for forge API calls.

This module provides:
- BackoffRetrier, a bounded retry executor with exponential backoff
- retry_with_backoff decorator built on the same executor

The retrier has no notion of HTTP: any exception raised by the operation
counts as a failure. Callers decide what is final by raising on it.
"""

import asyncio
from functools import wraps
from typing import Awaitable, Callable, Optional, TypeVar

from forgelink.models.policy import API_RETRY_POLICY, RetryPolicy
from forgelink.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]


class BackoffRetrier:
    """
    Retry executor with deterministic exponential backoff.

    The delay starts at ``policy.initial_delay`` and is multiplied by
    ``policy.backoff_factor`` after every failed attempt, capped at
    ``policy.max_delay``. No jitter is added. When every attempt fails the
    last exception is re-raised as is.

    Args:
        sleep: Awaitable sleep primitive (default: asyncio.sleep). Tests inject
            a fake to avoid waiting on the wall clock.

    Example:
        retrier = BackoffRetrier()
        project = await retrier.execute(lambda: client.get("/projects/1"), policy)
    """

    def __init__(self, sleep: Optional[SleepFunc] = None):
        self._sleep = sleep or asyncio.sleep

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: RetryPolicy = API_RETRY_POLICY,
        name: Optional[str] = None,
    ) -> T:
        """
        Run ``operation`` until it succeeds or the attempt budget is spent.

        Args:
            operation: Zero-argument callable returning an awaitable
            policy: Retry policy to apply
            name: Operation name used in log messages

        Returns:
            The operation's result

        Raises:
            Exception: The last failure, unchanged, once attempts are exhausted
        """
        label = name or getattr(operation, "__name__", "operation")
        delay = policy.initial_delay

        for attempt in range(1, policy.max_attempts + 1):
            try:
                result = await operation()
            except Exception as e:
                if attempt >= policy.max_attempts:
                    logger.error(
                        f"{label} failed after {policy.max_attempts} attempts: {e}"
                    )
                    raise

                logger.warning(
                    f"{label} failed on attempt {attempt}/{policy.max_attempts}: {e}. "
                    f"Retrying in {delay:.1f}s..."
                )
                await self._sleep(delay)
                delay = min(delay * policy.backoff_factor, policy.max_delay)
                continue

            if attempt > 1:
                logger.info(f"{label} succeeded on attempt {attempt}/{policy.max_attempts}")
            return result

        # max_attempts >= 1 is enforced by RetryPolicy
        raise RuntimeError(f"{label} was never attempted")


def retry_with_backoff(
    policy: RetryPolicy = API_RETRY_POLICY,
    retrier: Optional[BackoffRetrier] = None,
):
    """
    Decorator for retrying coroutine functions with exponential backoff.

    Args:
        policy: Retry policy to apply (default: the shared API policy)
        retrier: Executor to use (default: a BackoffRetrier with asyncio.sleep)

    Returns:
        Decorated coroutine function with retry logic

    Example:
        @retry_with_backoff()
        async def fetch_project():
            return await http.get("/projects/1")
    """
    executor = retrier or BackoffRetrier()

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            return await executor.execute(
                lambda: func(*args, **kwargs),
                policy,
                name=func.__name__,
            )

        return wrapper

    return decorator
