"""
Retry Handler - Retries merges the server rolled back on its own
"""

import time
from typing import Callable, Any, Optional
from enum import Enum

import structlog
from psycopg2 import errors

logger = structlog.get_logger()


class RetryStrategy(Enum):
    """Retry strategies"""
    EXPONENTIAL_BACKOFF = "exponential_backoff"
    LINEAR_BACKOFF = "linear_backoff"
    FIXED_DELAY = "fixed_delay"


class RetryHandler:
    """
    Handles retry logic with configurable strategies

    Only errors after which PostgreSQL guarantees the whole transaction
    was rolled back are retried. Anything else (including a lost
    connection, where the commit outcome is unknown) is raised at once,
    since replaying a committed merge would apply increments twice.
    """

    RETRYABLE_ERRORS = (
        errors.SerializationFailure,
        errors.DeadlockDetected,
        errors.LockNotAvailable,
    )

    def __init__(self,
                 max_retries: int = 3,
                 base_delay_seconds: float = 1,
                 strategy: RetryStrategy = RetryStrategy.EXPONENTIAL_BACKOFF,
                 max_delay_seconds: float = 30,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initialize retry handler

        Args:
            max_retries: Maximum number of retry attempts
            base_delay_seconds: Base delay between retries
            strategy: Retry strategy to use
            max_delay_seconds: Maximum delay between retries
            sleep: Sleep function (replaceable in tests)
        """
        self.max_retries = max_retries
        self.base_delay = base_delay_seconds
        self.strategy = strategy
        self.max_delay = max_delay_seconds
        self.sleep = sleep

    def should_retry(self, error: Exception, attempt: int) -> bool:
        """
        Determine if error should trigger retry

        Args:
            error: Exception that occurred
            attempt: Current attempt number (0-indexed)
        """
        if attempt >= self.max_retries:
            return False
        return isinstance(error, self.RETRYABLE_ERRORS)

    def get_delay(self, attempt: int) -> float:
        """
        Calculate delay before next retry

        Args:
            attempt: Current attempt number (0-indexed)

        Returns:
            Delay in seconds
        """
        if self.strategy == RetryStrategy.EXPONENTIAL_BACKOFF:
            delay = self.base_delay * (2 ** attempt)
        elif self.strategy == RetryStrategy.LINEAR_BACKOFF:
            delay = self.base_delay * (attempt + 1)
        else:  # FIXED_DELAY
            delay = self.base_delay

        return min(delay, self.max_delay)

    def execute_with_retry(self,
                           func: Callable,
                           *args,
                           on_retry: Optional[Callable[[int, Exception], None]] = None,
                           **kwargs) -> Any:
        """
        Execute function with retry logic

        Args:
            func: Function to execute
            *args: Positional arguments for function
            on_retry: Optional callback called before each retry
            **kwargs: Keyword arguments for function

        Returns:
            Function result
        """
        attempt = 0

        while True:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if not self.should_retry(e, attempt):
                    raise

                delay = self.get_delay(attempt)
                logger.warning("merge_retry", attempt=attempt + 1, delay_seconds=delay, error=str(e))

                if on_retry:
                    on_retry(attempt, e)

                self.sleep(delay)
                attempt += 1
