# ==============================================================================
# RATE LIMITER MIDDLEWARE
# ==============================================================================
# Fixed window rate limiting keyed by client address
# ==============================================================================

from __future__ import annotations

import asyncio
import logging
import math
import time
from typing import Callable, Dict, Tuple

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from product_api.core.constants import APIConstants, ErrorMessages
from product_api.core.exceptions import RateLimitError

logger = logging.getLogger(__name__)


class FixedWindowRateLimiter:
    """
    Per-client request counters cleared at the end of every window.

    The counters live in this process only. They are not shared between
    workers and are lost on restart.

    Attributes:
        capacity: Maximum requests per client per window
        window_seconds: Window length in seconds
        _counts: Requests seen per client in the current window
        _window_started: Monotonic time the current window opened

    Example:
        >>> limiter = FixedWindowRateLimiter(capacity=2, window_seconds=60)
        >>> limiter.hit("10.0.0.1")[0], limiter.hit("10.0.0.1")[0]
        (True, True)
        >>> limiter.hit("10.0.0.1")[0]
        False
    """

    def __init__(self, capacity: int, window_seconds: int) -> None:
        self.capacity = capacity
        self.window_seconds = window_seconds
        self._counts: Dict[str, int] = {}
        self._window_started = time.monotonic()

    def seconds_until_reset(self) -> int:
        elapsed = time.monotonic() - self._window_started
        return max(1, math.ceil(self.window_seconds - elapsed))

    def hit(self, client: str) -> Tuple[bool, int, int]:
        """
        Count one request for ``client``.

        Returns:
            Tuple of (allowed, remaining, seconds until the window resets)
        """
        count = self._counts.get(client, 0) + 1
        self._counts[client] = count
        remaining = max(0, self.capacity - count)
        return count <= self.capacity, remaining, self.seconds_until_reset()

    def reset(self) -> None:
        """Clear every counter and open a new window."""
        self._counts.clear()
        self._window_started = time.monotonic()

    async def run_reset_loop(self) -> None:
        """Clear the counters once per window until cancelled."""
        while True:
            await asyncio.sleep(self.window_seconds)
            self.reset()
            logger.debug("Rate limit window reset")


def get_client_id(request: Request) -> str:
    """Client address: first X-Forwarded-For hop, else the peer address."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Reject requests beyond the limiter's capacity with 429.

    The service info and health routes are never throttled.
    """

    def __init__(self, app, limiter: FixedWindowRateLimiter) -> None:
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        """Process request through rate limiter."""
        if request.url.path in APIConstants.UNTHROTTLED_PATHS:
            return await call_next(request)

        client_id = get_client_id(request)
        allowed, remaining, reset_after = self.limiter.hit(client_id)

        headers = {
            APIConstants.RATE_LIMIT_HEADER: str(self.limiter.capacity),
            APIConstants.RATE_LIMIT_REMAINING_HEADER: str(remaining),
            APIConstants.RATE_LIMIT_RESET_HEADER: str(reset_after),
        }

        if not allowed:
            logger.warning(f"Rate limit exceeded for {client_id}")
            error = RateLimitError(
                message=ErrorMessages.RATE_LIMIT_EXCEEDED,
                retry_after=reset_after,
            )
            return JSONResponse(
                status_code=error.status_code,
                content=error.to_dict(),
                headers={**headers, "Retry-After": str(reset_after)},
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response
