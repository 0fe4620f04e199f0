"""
JunkHub Backend — Product Route Handlers
==========================================

What:  Public catalog (listing, bestsellers, categories, detail) and owner
       product management.
Who:   Called by the storefront and the owner dashboard.

Public reads only ever see approved products. `/home/*` routes are
declared before `/{product_id}`.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import OwnerIdentity, require_owner
from app.database import get_db_session
from app.models.enums import ProductType
from app.schemas.catalog import (
    BestsellerOut,
    BestsellersResponse,
    CategoriesResponse,
    CategoryCount,
    ProductCreateRequest,
    ProductDetail,
    ProductDetailEnvelope,
    ProductEnvelope,
    ProductListResponse,
    ProductOut,
    ProductUpdateRequest,
)
from app.schemas.common import ErrorResponse, MessageResponse
from app.services.product_service import ProductFilters, product_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["Products"])

_OWNED_RESPONSES = {
    403: {"description": "Product belongs to another owner's shop", "model": ErrorResponse},
    404: {"description": "Product not found", "model": ErrorResponse},
}


# ══════════════════════════════════════════════════════════════════════════
# Public Catalog
# ══════════════════════════════════════════════════════════════════════════

@router.get("", response_model=ProductListResponse, summary="Browse approved products")
async def list_products(
    search: Optional[str] = Query(default=None, description="Matches name or description"),
    category: Optional[str] = Query(default=None),
    type: Optional[ProductType] = Query(default=None, description="Buying or Selling"),
    min_price: Optional[float] = Query(default=None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(default=None, alias="maxPrice", ge=0),
    shop_id: Optional[uuid.UUID] = Query(default=None, alias="shopId"),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db_session),
) -> ProductListResponse:
    filters = ProductFilters(
        search=search,
        category=category,
        type=type,
        min_price=min_price,
        max_price=max_price,
        shop_id=shop_id,
    )
    products, total = await product_service.list_public(db, filters, limit=limit, offset=offset)
    return ProductListResponse(products=products, total=total)


@router.get("/home/bestsellers", response_model=BestsellersResponse, summary="Most ordered products")
async def bestsellers(
    limit: int = Query(default=10, ge=1, le=50),
    db: AsyncSession = Depends(get_db_session),
) -> BestsellersResponse:
    rows = await product_service.bestsellers(db, limit=limit)
    products = [
        BestsellerOut(**ProductOut.model_validate(product).model_dump(), total_sold=total_sold)
        for product, total_sold in rows
    ]
    return BestsellersResponse(products=products)


@router.get("/home/categories", response_model=CategoriesResponse, summary="Categories with counts")
async def categories(db: AsyncSession = Depends(get_db_session)) -> CategoriesResponse:
    rows = await product_service.categories(db)
    return CategoriesResponse(categories=[CategoryCount(name=name, count=count) for name, count in rows])


@router.get(
    "/{product_id}",
    response_model=ProductDetailEnvelope,
    responses={404: {"description": "Product not found or not approved", "model": ErrorResponse}},
    summary="Product detail with reviews",
)
async def get_product(
    product_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> ProductDetailEnvelope:
    product, reviews = await product_service.get_public(db, product_id)
    average = round(sum(r.rating for r in reviews) / len(reviews), 2) if reviews else None
    detail = ProductDetail(
        **ProductOut.model_validate(product).model_dump(),
        reviews=reviews,
        average_rating=average,
    )
    return ProductDetailEnvelope(product=detail)


# ══════════════════════════════════════════════════════════════════════════
# Owner Management
# ══════════════════════════════════════════════════════════════════════════

@router.post(
    "",
    response_model=ProductEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses={
        403: {"description": "Shop belongs to another owner", "model": ErrorResponse},
        404: {"description": "Shop not found", "model": ErrorResponse},
    },
    summary="List a new product (starts pending approval)",
)
async def create_product(
    body: ProductCreateRequest,
    owner: OwnerIdentity = Depends(require_owner),
    db: AsyncSession = Depends(get_db_session),
) -> ProductEnvelope:
    return ProductEnvelope(product=await product_service.create(db, owner.id, body))


@router.put("/{product_id}", response_model=ProductEnvelope, responses=_OWNED_RESPONSES, summary="Edit a product")
async def update_product(
    product_id: uuid.UUID,
    body: ProductUpdateRequest,
    owner: OwnerIdentity = Depends(require_owner),
    db: AsyncSession = Depends(get_db_session),
) -> ProductEnvelope:
    return ProductEnvelope(product=await product_service.update(db, owner.id, product_id, body))


@router.delete(
    "/{product_id}",
    response_model=MessageResponse,
    responses=_OWNED_RESPONSES,
    summary="Delete a product",
)
async def delete_product(
    product_id: uuid.UUID,
    owner: OwnerIdentity = Depends(require_owner),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await product_service.delete(db, owner.id, product_id)
    return MessageResponse(message="Product deleted successfully")
