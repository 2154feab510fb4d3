# ==============================================================================
# PRODUCT SERVICE - Catalog Management
# ==============================================================================

from __future__ import annotations

from typing import List, Optional

from product_api.core.constants import ErrorMessages
from product_api.core.exceptions import NotFoundError
from product_api.schemas.product import (
    ProductCreate,
    ProductPage,
    ProductRecord,
    ProductUpdate,
)
from product_api.services.base_service import BaseService


class ProductService(BaseService):
    """
    Product service for catalog operations.

    Ownership checks live in the repositories, which run them before any
    write; this layer turns an absent product into ``NotFoundError``.
    """

    async def create(self, schema: ProductCreate, user_id: str) -> ProductRecord:
        return await self._adapter.products.create(schema, user_id)

    async def get(self, product_id: str) -> ProductRecord:
        """
        Get one product.

        Raises:
            NotFoundError: If the product does not exist
        """
        product = await self._adapter.products.find_by_id(product_id)
        if product is None:
            raise NotFoundError(
                message=ErrorMessages.PRODUCT_NOT_FOUND,
                resource_type="Product",
                resource_id=product_id,
            )
        return product

    async def list(self, limit: int, cursor: Optional[str] = None) -> ProductPage:
        return await self._adapter.products.list(limit=limit, cursor=cursor)

    async def list_by_category(self, category: str) -> List[ProductRecord]:
        return await self._adapter.products.find_by_category(category)

    async def list_by_user(self, user_id: str) -> List[ProductRecord]:
        return await self._adapter.products.find_by_user(user_id)

    async def update(
        self,
        product_id: str,
        schema: ProductUpdate,
        user_id: str,
    ) -> ProductRecord:
        return await self._adapter.products.update(
            product_id,
            schema.to_updates(),
            user_id,
        )

    async def delete(self, product_id: str, user_id: str) -> None:
        await self._adapter.products.delete(product_id, user_id)
