# =============================================================================
# File: app/infra/reliability/rate_limiter.py
# Description: Inbound request throttling (global fixed window)
# =============================================================================

import asyncio
import logging
import math
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

from app.config.reliability_config import RateLimiterConfig, get_rate_limiter_config

logger = logging.getLogger("message_service.rate_limiter")


class RateLimiterAlgorithm(ABC):
    """Base class for rate limiting algorithms."""

    @abstractmethod
    async def acquire(self, tokens: int = 1) -> bool:
        """Try to acquire tokens."""
        pass

    @abstractmethod
    def retry_after(self) -> int:
        """Seconds until a rejected caller may try again."""
        pass


class FixedWindow(RateLimiterAlgorithm):
    """
    Fixed window counter: at most `capacity` acquisitions per window.

    The window starts at the first acquisition after the previous one
    expired, and the counter resets wholesale when it ends.
    """

    def __init__(self, capacity: int, window_seconds: int, clock: Callable[[], float] = time.monotonic):
        self.capacity = capacity
        self.window_seconds = window_seconds
        self._clock = clock
        self.window_start: Optional[float] = None
        self.count = 0
        self._lock = asyncio.Lock()

    def _roll_window(self, now: float) -> None:
        if self.window_start is None or now - self.window_start >= self.window_seconds:
            self.window_start = now
            self.count = 0

    async def acquire(self, tokens: int = 1) -> bool:
        async with self._lock:
            self._roll_window(self._clock())

            if self.count + tokens <= self.capacity:
                self.count += tokens
                return True

            return False

    def retry_after(self) -> int:
        if self.window_start is None:
            return 0
        remaining = self.window_seconds - (self._clock() - self.window_start)
        return max(0, math.ceil(remaining))


class RateLimiter:
    """Named rate limiter configured from RateLimiterConfig."""

    def __init__(
            self,
            name: str = "http",
            config: Optional[RateLimiterConfig] = None,
            algorithm: Optional[RateLimiterAlgorithm] = None,
    ):
        self.name = name
        self.config = config or get_rate_limiter_config()
        self.algorithm = algorithm or FixedWindow(
            capacity=self.config.limit,
            window_seconds=self.config.ttl,
        )

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def is_exempt(self, path: str) -> bool:
        return any(path == p or path.startswith(p + "/") for p in self.config.exempt_paths)

    async def acquire(self, tokens: int = 1) -> bool:
        """Try to acquire tokens."""
        if not self.enabled:
            return True

        acquired = await self.algorithm.acquire(tokens)

        if not acquired:
            logger.warning(
                f"rate_limit_exceeded for {self.name}, requested_tokens={tokens}"
            )

        return acquired

    def retry_after(self) -> int:
        return self.algorithm.retry_after()

    def get_status(self) -> dict:
        """Get current rate limiter status."""
        status = {
            "name": self.name,
            "enabled": self.enabled,
            "limit": self.config.limit,
            "window_seconds": self.config.ttl,
        }

        if isinstance(self.algorithm, FixedWindow):
            status["current_requests"] = self.algorithm.count

        return status
