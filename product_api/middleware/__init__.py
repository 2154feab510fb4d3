# ==============================================================================
# MIDDLEWARE PACKAGE INITIALIZATION
# ==============================================================================

"""
Middleware Module
=================

FastAPI middleware implementations:
- Rate limiting
- Request logging
"""

from product_api.middleware.rate_limiter import (
    FixedWindowRateLimiter,
    RateLimitMiddleware,
)
from product_api.middleware.request_logger import RequestLoggerMiddleware

__all__ = [
    "FixedWindowRateLimiter",
    "RateLimitMiddleware",
    "RequestLoggerMiddleware",
]
