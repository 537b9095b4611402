"""
Retry helper with exponential backoff for generation backend calls.
"""
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from studyforge.core.config import (
    RETRY_MAX_ATTEMPTS,
    RETRY_DELAY_SECONDS,
    RETRY_BACKOFF_MULTIPLIER,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = RETRY_MAX_ATTEMPTS
    delay_seconds: float = RETRY_DELAY_SECONDS
    backoff_multiplier: float = RETRY_BACKOFF_MULTIPLIER

    def delay_for(self, attempt: int) -> float:
        """Delay after the given 0-based failed attempt."""
        return self.delay_seconds * (self.backoff_multiplier ** attempt)


def retry_with_backoff(
    fn: Callable[[], T],
    config: Optional[RetryConfig] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call fn until it succeeds or max_attempts is reached.

    Attempts run sequentially. Between attempts the helper sleeps
    delay_seconds * backoff_multiplier ** attempt (1s, 2s, ... by default).
    There is no jitter and no sleep after the final attempt.

    Args:
        fn: Zero-argument callable to invoke
        config: Retry settings (defaults from config module)
        sleep: Sleep function, injectable for tests

    Returns:
        The first successful result of fn

    Raises:
        The exception raised by the last attempt
    """
    config = config or RetryConfig()
    if config.max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(config.max_attempts):
        try:
            return fn()
        except Exception as e:
            if attempt == config.max_attempts - 1:
                logger.error(f"Attempt {attempt + 1}/{config.max_attempts} failed, giving up: {e}")
                raise

            delay = config.delay_for(attempt)
            logger.warning(
                f"Attempt {attempt + 1}/{config.max_attempts} failed ({type(e).__name__}: {e}), "
                f"retrying in {delay:.1f}s"
            )
            sleep(delay)
