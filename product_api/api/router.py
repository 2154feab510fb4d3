# ==============================================================================
# MAIN API ROUTER - Route Aggregation
# ==============================================================================

from __future__ import annotations

from fastapi import APIRouter

from product_api.core.settings import settings
from product_api.api.v1 import (
    auth_router,
    products_router,
    upload_router,
)

# Create main API router
api_router = APIRouter()

# Include routers with API prefix
api_router.include_router(auth_router, prefix=settings.API_PREFIX)
api_router.include_router(products_router, prefix=settings.API_PREFIX)
api_router.include_router(upload_router, prefix=settings.API_PREFIX)
