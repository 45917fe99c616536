"""Retry policy for LLM and search calls.

Exponential backoff with a separate, longer floor for rate-limit errors:

    rate limited:  delay = 5s + 3s x attempts already consumed
    otherwise:     delay = current initial delay

and the next round's initial delay is the delay just waited times 1.5.
There is no jitter. A cap on the total time spent sleeping bounds how long
a single call can keep a run alive.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from research_lens.config import settings
from research_lens.errors.handlers import is_rate_limit_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# RetryPolicy Configuration
# =============================================================================


@dataclass
class RetryPolicy:
    """Configuration for retry behavior on errors.
    
    Attributes:
        retries: Retries allowed after the first attempt
        initial_delay: Delay before the first generic retry, in seconds
        backoff_factor: Multiplier applied to the delay after each retry
        rate_limit_base_delay: Minimum delay after a rate-limit error
        rate_limit_step: Extra delay per attempt already consumed when rate limited
        max_total_delay: Upper bound on cumulative sleep; None disables it
    """
    
    retries: int = 3
    initial_delay: float = 2.0
    backoff_factor: float = 1.5
    rate_limit_base_delay: float = 5.0
    rate_limit_step: float = 3.0
    max_total_delay: float | None = 90.0
    
    def get_delay(self, current_delay: float, attempts_consumed: int, rate_limited: bool) -> float:
        """Calculate delay before the next attempt.
        
        Args:
            current_delay: The running initial delay for this round
            attempts_consumed: Retries already spent (0 before the first retry)
            rate_limited: Whether the last failure was a rate-limit signal
            
        Returns:
            Delay in seconds before the next attempt
        """
        if rate_limited:
            return self.rate_limit_base_delay + attempts_consumed * self.rate_limit_step
        return current_delay
    
    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        description: str = "operation",
    ) -> T:
        """Run an async operation under this policy.
        
        Args:
            operation: Zero-argument callable returning a fresh awaitable per attempt
            description: Label used in log messages
            
        Returns:
            The first successful result
            
        Raises:
            Exception: The last failure, unchanged, once the budget is spent
        """
        remaining = self.retries
        delay = self.initial_delay
        slept = 0.0
        
        while True:
            try:
                return await operation()
            except Exception as error:
                if remaining <= 0:
                    raise
                
                rate_limited = is_rate_limit_error(error)
                wait = self.get_delay(delay, self.retries - remaining, rate_limited)
                
                if self.max_total_delay is not None and slept + wait > self.max_total_delay:
                    logger.warning(
                        f"Giving up on {description}: next wait of {wait:.1f}s "
                        f"would exceed {self.max_total_delay:.0f}s total backoff"
                    )
                    raise
                
                logger.info(
                    f"Retrying {description} ({remaining} attempts left) due to "
                    f"{'rate limit' if rate_limited else 'error'}: {error}. "
                    f"Waiting {wait:.1f}s"
                )
                await asyncio.sleep(wait)
                slept += wait
                remaining -= 1
                delay = wait * self.backoff_factor


# =============================================================================
# Factories
# =============================================================================


def create_llm_retry_policy(
    retries: int | None = None,
    initial_delay: float | None = None,
) -> RetryPolicy:
    """Create the retry policy used around LLM calls.
    
    Args:
        retries: Retry budget (defaults to settings.retry_budget)
        initial_delay: Initial delay in seconds (defaults to settings)
        
    Returns:
        Configured RetryPolicy
    """
    return RetryPolicy(
        retries=settings.retry_budget if retries is None else retries,
        initial_delay=settings.retry_initial_delay if initial_delay is None else initial_delay,
        max_total_delay=settings.retry_max_total_delay,
    )


NO_RETRY_POLICY = RetryPolicy(retries=0, initial_delay=0.0, max_total_delay=None)
"""Single attempt, error propagated unchanged."""

