"""
Retry policy for read requests.

Writes are never retried: creating an issue twice would duplicate the
vacation. Reads are retried only for transient tracker failures; rate
limits, auth failures and client errors are returned immediately.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from vacation_tracker.exceptions import DecodeError, RemoteError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ReadRetryPolicy:
    def __init__(self, max_retries: int = 2, base_delay: float = 0.5, max_delay: float = 8.0):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay

    def should_retry(self, failure_count: int, exc: BaseException) -> bool:
        """
        failure_count is the number of failures before this one.

        Only RemoteError is transient; RateLimitedError, CredentialError and
        the 4xx family are deliberately outside it.
        """
        if not isinstance(exc, RemoteError) or isinstance(exc, DecodeError):
            return False
        return failure_count < self.max_retries

    def delay(self, failure_count: int) -> float:
        return min(self.base_delay * (2 ** failure_count), self.max_delay)

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        failure_count = 0
        while True:
            try:
                return await operation()
            except RemoteError as exc:
                if not self.should_retry(failure_count, exc):
                    raise
                delay = self.delay(failure_count)
                logger.info("Read failed (%s), retrying in %.1fs", exc.message, delay)
                failure_count += 1
                await asyncio.sleep(delay)
