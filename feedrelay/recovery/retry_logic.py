"""
FeedRelay Retry Logic
=====================

Bounded retry for transient failures of remote calls. Used around the feed
fetch only; translation and delivery failures are never retried silently.
"""

import asyncio
import inspect
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..utils.logging import get_logger_for_component
from ..utils.exceptions import is_retryable_error


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_attempts: int = 3                   # Total attempts, including the first
    delay: float = 5.0                      # Fixed pause between attempts, in seconds

    # Exceptions retried regardless of is_retryable_error()
    retry_on_exceptions: tuple = (ConnectionError, TimeoutError)


class RetryManager:
    """Retries a callable with a fixed pause between attempts."""

    def __init__(self, config: Optional[RetryConfig] = None, name: str = "retry_manager"):
        self.config = config or RetryConfig()
        self.logger = get_logger_for_component(name)

    async def retry_async(self, func: Callable[..., Any], *args, **kwargs) -> Any:
        """
        Retry an async function up to ``max_attempts`` times.

        Args:
            func: Async function to retry
            *args: Function arguments
            **kwargs: Function keyword arguments

        Returns:
            Function result if successful

        Raises:
            The last exception if all attempts fail, or the first
            non-retryable one
        """
        config = self.config
        name = getattr(func, "__name__", repr(func))

        for attempt in range(1, config.max_attempts + 1):
            try:
                result = func(*args, **kwargs)
                if inspect.isawaitable(result):
                    result = await result

                if attempt > 1:
                    self.logger.info(f"Retry successful for {name} on attempt {attempt}")
                return result

            except Exception as e:
                if not self._should_retry_exception(e):
                    self.logger.info(f"Not retrying {name} due to non-retryable exception: {e}")
                    raise

                if attempt >= config.max_attempts:
                    self.logger.error(f"All {config.max_attempts} attempts failed for {name}: {e}")
                    raise

                delay = max(0.0, config.delay)
                self.logger.warning(
                    f"Attempt {attempt} failed for {name}: {e}. "
                    f"Retrying in {delay:.2f}s (attempt {attempt + 1}/{config.max_attempts})"
                )
                await asyncio.sleep(delay)

        # max_attempts < 1
        raise ValueError("RetryConfig.max_attempts must be at least 1")

    def _should_retry_exception(self, exception: Exception) -> bool:
        if isinstance(exception, self.config.retry_on_exceptions):
            return True
        return is_retryable_error(exception)
