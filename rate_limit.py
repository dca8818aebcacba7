"""
Fixed-window request limiting per client address.

Counts live in process memory; every endpoint shares the same budget.
"""
import logging
import math
import time
from typing import Callable, Dict, Optional

from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger(__name__)


class FixedWindowLimiter:
    def __init__(self, max_requests: int, window_seconds: int, clock: Callable[[], float] = time.monotonic):
        if window_seconds <= 0:
            raise ValueError("Rate limit window must be positive")
        if max_requests < 0:
            raise ValueError("Rate limit max must not be negative")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self._window_start = None
        self._counts: Dict[str, int] = {}

    def hit(self, key: str) -> Optional[int]:
        """Count a request; return seconds until the window resets if over the limit."""
        now = self.clock()
        window_start = math.floor(now / self.window_seconds) * self.window_seconds
        if window_start != self._window_start:
            self._window_start = window_start
            self._counts = {}
        count = self._counts.get(key, 0) + 1
        self._counts[key] = count
        if count > self.max_requests:
            return max(1, math.ceil(window_start + self.window_seconds - now))
        return None

    def reset(self) -> None:
        self._window_start = None
        self._counts = {}


class RateLimitMiddleware:
    def __init__(self, app: ASGIApp, limiter: FixedWindowLimiter):
        self.app = app
        self.limiter = limiter

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return
        client = scope.get("client")
        key = client[0] if client else "unknown"
        retry_after = self.limiter.hit(key)
        if retry_after is not None:
            logger.warning("Rate limit exceeded for %s on %s", key, scope.get("path"))
            response = JSONResponse(
                status_code=429,
                content={"detail": "Too many requests, please try again later."},
                headers={"Retry-After": str(retry_after)},
            )
            await response(scope, receive, send)
            return
        await self.app(scope, receive, send)
