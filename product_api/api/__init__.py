# ==============================================================================
# API PACKAGE INITIALIZATION
# ==============================================================================

"""
API Module
==========

FastAPI routers and endpoint definitions:
- Dependencies: Authentication, storage access, services
- Routers: Auth, Products, Upload
"""

from product_api.api.router import api_router

__all__ = ["api_router"]
