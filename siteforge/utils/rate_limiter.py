"""
Rate limiting for completion backend calls
"""

import asyncio
import time
from collections import deque
import logging

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Rate limiter that enforces both requests-per-minute and concurrent request limits
    """

    def __init__(self, max_requests_per_minute: int = 60, max_concurrent_requests: int = 1):
        self.max_requests_per_minute = max_requests_per_minute
        self.max_concurrent_requests = max_concurrent_requests

        # Track request timestamps for rate limiting
        self.request_timestamps = deque()

        # Semaphore for concurrent request limiting
        self.semaphore = asyncio.Semaphore(max_concurrent_requests)

        logger.debug(f"🚦 Rate limiter initialized: {max_requests_per_minute} req/min, {max_concurrent_requests} concurrent")

    def acquire(self) -> "RateLimitContext":
        """Context manager that holds a concurrency slot for one request"""
        return RateLimitContext(self)

    async def _enforce_rate_limit(self):
        """
        Enforce requests-per-minute rate limiting
        """
        while True:
            current_time = time.monotonic()

            # Remove timestamps older than 1 minute
            while self.request_timestamps and current_time - self.request_timestamps[0] > 60:
                self.request_timestamps.popleft()

            if len(self.request_timestamps) < self.max_requests_per_minute:
                break

            # Wait until the oldest request leaves the window
            wait_time = 60 - (current_time - self.request_timestamps[0])
            logger.warning(f"🚦 Rate limit reached ({len(self.request_timestamps)}/{self.max_requests_per_minute}). Waiting {wait_time:.1f}s...")
            await asyncio.sleep(max(wait_time, 0))

        self.request_timestamps.append(current_time)
        logger.debug(f"🚦 Rate limit check passed ({len(self.request_timestamps)}/{self.max_requests_per_minute} in last minute)")


class RateLimitContext:
    """
    Context manager for rate-limited operations
    """

    def __init__(self, rate_limiter: RateLimiter):
        self.rate_limiter = rate_limiter
        self.acquired = False

    async def __aenter__(self):
        await self.rate_limiter.semaphore.acquire()
        self.acquired = True

        try:
            await self.rate_limiter._enforce_rate_limit()
        except BaseException:
            self.rate_limiter.semaphore.release()
            self.acquired = False
            raise

        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.acquired:
            self.rate_limiter.semaphore.release()
            self.acquired = False
