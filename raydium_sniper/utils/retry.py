"""
Retry policy for async operations.

One policy object describes how many attempts an operation gets, how long
to wait between them and which errors are worth another attempt. The
transaction pipeline, the orchestrator backoffs and the HTTP clients all
use it.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')

Sleeper = Callable[[float], Awaitable[Any]]


def _always(exc: BaseException) -> bool:
    return True


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded or unbounded retry with fixed or exponential delay.
    
    Args:
        max_attempts: Total attempts allowed, None for unbounded
        delay: Delay before the second attempt (seconds)
        multiplier: Factor applied to the delay on each further attempt
        retryable: Predicate deciding whether an error is worth retrying
    
    Example:
        policy = RetryPolicy(max_attempts=5, delay=2.0)
        if policy.should_retry(exc, attempt):
            await policy.wait(attempt)
    """
    max_attempts: Optional[int] = 3
    delay: float = 1.0
    multiplier: float = 1.0
    retryable: Callable[[BaseException], bool] = field(default=_always, compare=False)

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the given (1-based) failed attempt."""
        return self.delay * (self.multiplier ** max(0, attempt - 1))

    def has_attempts_left(self, attempt: int) -> bool:
        return self.max_attempts is None or attempt < self.max_attempts

    def should_retry(self, exc: BaseException, attempt: int) -> bool:
        return self.has_attempts_left(attempt) and self.retryable(exc)

    async def wait(self, attempt: int = 1, sleep: Sleeper = asyncio.sleep) -> None:
        await sleep(self.delay_for(attempt))


def fixed_backoff(seconds: float) -> RetryPolicy:
    """Unbounded policy that always waits the same amount of time."""
    return RetryPolicy(max_attempts=None, delay=seconds)


def async_retry(policy: RetryPolicy):
    """
    Retry an async function according to ``policy``.
    
    The last error is re-raised once the policy gives up.
    
    Example:
        @async_retry(RetryPolicy(max_attempts=3, delay=0.5, multiplier=2.0))
        async def fetch_data():
            ...
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            attempt = 1
            while True:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    if not policy.should_retry(e, attempt):
                        logger.error(
                            f"{func.__name__} failed after {attempt} attempts",
                            extra={
                                "function": func.__name__,
                                "attempts": attempt,
                                "error": str(e)
                            }
                        )
                        raise
                    
                    current_delay = policy.delay_for(attempt)
                    logger.warning(
                        f"{func.__name__} failed, retrying in {current_delay:.1f}s",
                        extra={
                            "function": func.__name__,
                            "attempt": attempt,
                            "max_attempts": policy.max_attempts,
                            "delay": current_delay,
                            "error": str(e)
                        }
                    )
                    await asyncio.sleep(current_delay)
                    attempt += 1
        
        return wrapper
    return decorator
