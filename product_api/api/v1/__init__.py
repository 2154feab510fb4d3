# ==============================================================================
# API V1 ENDPOINTS PACKAGE
# ==============================================================================

"""
API Endpoints
=============

Endpoint implementations mounted under the API prefix.
"""

from product_api.api.v1.auth import router as auth_router
from product_api.api.v1.products import router as products_router
from product_api.api.v1.upload import router as upload_router

__all__ = [
    "auth_router",
    "products_router",
    "upload_router",
]
