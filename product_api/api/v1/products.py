# ==============================================================================
# PRODUCT ENDPOINTS - Catalog Routes
# ==============================================================================
# Public reads, owner-only writes
# ==============================================================================

from __future__ import annotations

from fastapi import APIRouter, status

from product_api.api.dependencies import (
    ActiveUser,
    CurrentUser,
    PageCursor,
    PageLimit,
    ProductServiceDep,
)
from product_api.core.constants import APIConstants, SuccessMessages
from product_api.schemas.base import MessageResponse
from product_api.schemas.product import (
    PaginationInfo,
    ProductCreate,
    ProductListResponse,
    ProductResponse,
    ProductsResponse,
    ProductUpdate,
)

router = APIRouter(prefix="/products", tags=["Products"])


@router.get(
    "",
    response_model=ProductListResponse,
    summary="List products",
    description="Paginated product listing. Pass pagination.lastEvaluatedKey back as lastKey.",
)
async def list_products(
    service: ProductServiceDep,
    limit: PageLimit = APIConstants.DEFAULT_PAGE_SIZE,
    last_key: PageCursor = None,
) -> ProductListResponse:
    page = await service.list(limit=limit, cursor=last_key)
    return ProductListResponse(
        products=page.items,
        pagination=PaginationInfo(
            last_evaluated_key=page.next_cursor,
            has_more=page.next_cursor is not None,
            total=page.total,
        ),
    )


# Declared before /{product_id} so "user" is not taken for an id
@router.get(
    "/user/me",
    response_model=ProductsResponse,
    summary="List own products",
)
async def list_my_products(
    user: CurrentUser,
    service: ProductServiceDep,
) -> ProductsResponse:
    return ProductsResponse(products=await service.list_by_user(user.id))


@router.get(
    "/category/{category}",
    response_model=ProductsResponse,
    summary="List products in a category",
)
async def list_products_by_category(
    category: str,
    service: ProductServiceDep,
) -> ProductsResponse:
    return ProductsResponse(products=await service.list_by_category(category))


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Get product",
)
async def get_product(
    product_id: str,
    service: ProductServiceDep,
) -> ProductResponse:
    return ProductResponse(product=await service.get(product_id))


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create product",
    description="Create a product owned by the caller.",
)
async def create_product(
    schema: ProductCreate,
    user: ActiveUser,
    service: ProductServiceDep,
) -> ProductResponse:
    product = await service.create(schema, user.id)
    return ProductResponse(message=SuccessMessages.PRODUCT_CREATED, product=product)


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Update product",
    description="Patch a product. Only its owner may update it.",
)
async def update_product(
    product_id: str,
    schema: ProductUpdate,
    user: ActiveUser,
    service: ProductServiceDep,
) -> ProductResponse:
    product = await service.update(product_id, schema, user.id)
    return ProductResponse(message=SuccessMessages.PRODUCT_UPDATED, product=product)


@router.delete(
    "/{product_id}",
    response_model=MessageResponse,
    summary="Delete product",
    description="Delete a product. Only its owner may delete it.",
)
async def delete_product(
    product_id: str,
    user: ActiveUser,
    service: ProductServiceDep,
) -> MessageResponse:
    await service.delete(product_id, user.id)
    return MessageResponse(message=SuccessMessages.PRODUCT_DELETED)
