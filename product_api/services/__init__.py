# ==============================================================================
# SERVICES PACKAGE INITIALIZATION
# ==============================================================================

"""
Service Layer
=============

Business logic on top of the storage adapter and the object store:
- BaseService: Holds the storage adapter
- UserService: Registration, login and profile management
- ProductService: Product catalog management
- UploadService: Pre-signed uploads and object management
"""

from product_api.services.base_service import BaseService
from product_api.services.user_service import UserService
from product_api.services.product_service import ProductService
from product_api.services.upload_service import UploadService

__all__ = [
    "BaseService",
    "UserService",
    "ProductService",
    "UploadService",
]
