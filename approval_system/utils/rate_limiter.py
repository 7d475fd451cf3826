import time
import logging
from typing import Dict
from collections import defaultdict, deque
from fastapi import HTTPException, status, Request
import asyncio

from approval_system.core.config import settings

logger = logging.getLogger(__name__)

class InMemoryRateLimiter:
    """In-memory rate limiter for API endpoints"""

    def __init__(self, max_attempts: int = 100, window_seconds: int = 300):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        # Use defaultdict with deque to store timestamps for each key
        self._requests: Dict[str, deque] = defaultdict(deque)
        self._lock = asyncio.Lock()
        self._last_cleanup = time.time()
        self._cleanup_interval = 60  # Cleanup every 60 seconds

    async def _cleanup_old_entries(self):
        """Remove old entries to prevent memory leaks"""
        current_time = time.time()

        if current_time - self._last_cleanup < self._cleanup_interval:
            return

        cutoff_time = current_time - self.window_seconds
        keys_to_remove = []

        for key, timestamps in self._requests.items():
            while timestamps and timestamps[0] <= cutoff_time:
                timestamps.popleft()
            if not timestamps:
                keys_to_remove.append(key)

        for key in keys_to_remove:
            del self._requests[key]

        self._last_cleanup = current_time

        if keys_to_remove:
            logger.debug(f"Cleaned up {len(keys_to_remove)} rate limit entries")

    async def check_rate_limit(self, key: str) -> bool:
        """Record a hit for ``key``; False when the window is already full"""
        async with self._lock:
            current_time = time.time()
            cutoff_time = current_time - self.window_seconds

            timestamps = self._requests[key]
            while timestamps and timestamps[0] <= cutoff_time:
                timestamps.popleft()

            if len(timestamps) >= self.max_attempts:
                logger.warning(f"Rate limit exceeded for key: {key}")
                return False

            timestamps.append(current_time)
            await self._cleanup_old_entries()
            return True

    async def is_rate_limited(self, request: Request, identifier: str = None) -> bool:
        if not identifier:
            identifier = request.client.host if request.client else "unknown"

        key = f"rate_limit:{request.url.path}:{identifier}"
        return not await self.check_rate_limit(key)

    async def get_rate_limit_info(self, key: str) -> dict:
        async with self._lock:
            current_time = time.time()
            cutoff_time = current_time - self.window_seconds

            timestamps = self._requests[key]
            while timestamps and timestamps[0] <= cutoff_time:
                timestamps.popleft()

            remaining_attempts = max(0, self.max_attempts - len(timestamps))
            reset_time = timestamps[0] + self.window_seconds if timestamps else current_time

            return {
                "current_requests": len(timestamps),
                "max_attempts": self.max_attempts,
                "remaining_attempts": remaining_attempts,
                "window_seconds": self.window_seconds,
                "reset_time": reset_time
            }

    def reset(self):
        self._requests.clear()


login_rate_limiter = InMemoryRateLimiter(
    max_attempts=settings.LOGIN_RATE_LIMIT_ATTEMPTS,
    window_seconds=settings.LOGIN_RATE_LIMIT_WINDOW_SECONDS,
)

async def check_login_rate_limit(request: Request):
    """Check login/register rate limit"""
    identifier = request.client.host if request.client else "unknown"

    if await login_rate_limiter.is_rate_limited(request, identifier):
        key = f"rate_limit:{request.url.path}:{identifier}"
        rate_info = await login_rate_limiter.get_rate_limit_info(key)

        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Too many attempts. Please try again in {max(int(rate_info['reset_time'] - time.time()), 1)} seconds."
        )
