"""
JunkHub Backend — Shop, Product and Review Schemas
====================================================
"""

import uuid
from datetime import datetime
from typing import Annotated, Dict, List, Optional

from pydantic import Field, StringConstraints, field_validator

from app.models.enums import ProductStatus, ProductType
from app.schemas.common import CamelModel, ImageDataURI, NonEmptyStr, reject_null

ShopName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=100)]
ShopDescription = Annotated[str, StringConstraints(strip_whitespace=True, max_length=500)]
ProductName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=200)]
ProductDescription = Annotated[str, StringConstraints(strip_whitespace=True, max_length=1000)]


# ══════════════════════════════════════════════════════════════════════════
# Shops
# ══════════════════════════════════════════════════════════════════════════

class ShopCreateRequest(CamelModel):
    name: ShopName
    description: Optional[ShopDescription] = None
    business_address: NonEmptyStr
    logo: Optional[ImageDataURI] = None


class ShopUpdateRequest(CamelModel):
    name: Optional[ShopName] = None
    description: Optional[ShopDescription] = None
    business_address: Optional[NonEmptyStr] = None
    logo: Optional[ImageDataURI] = None

    not_null = field_validator("name", "business_address", mode="before")(reject_null)


class ShopOwnerSummary(CamelModel):
    id: uuid.UUID
    business_name: str
    email: str
    phone: str


class ShopOut(CamelModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    name: str
    description: Optional[str] = None
    business_address: str
    logo: Optional[str] = None
    created_at: datetime


class ShopSummary(ShopOut):
    product_count: int = 0
    owner: Optional[ShopOwnerSummary] = None


class ShopListResponse(CamelModel):
    shops: List[ShopSummary]
    total: int


class ShopEnvelope(CamelModel):
    shop: ShopOut


# ══════════════════════════════════════════════════════════════════════════
# Products
# ══════════════════════════════════════════════════════════════════════════

class ProductCreateRequest(CamelModel):
    shop_id: uuid.UUID
    name: ProductName
    description: Optional[ProductDescription] = None
    price: float = Field(ge=0)
    category: NonEmptyStr
    stock: int = Field(ge=0)
    type: ProductType
    images: List[ImageDataURI] = []


class ProductUpdateRequest(CamelModel):
    name: Optional[ProductName] = None
    description: Optional[ProductDescription] = None
    price: Optional[float] = Field(default=None, ge=0)
    category: Optional[NonEmptyStr] = None
    stock: Optional[int] = Field(default=None, ge=0)
    type: Optional[ProductType] = None
    images: Optional[List[ImageDataURI]] = None

    not_null = field_validator("name", "price", "category", "stock", "type", "images", mode="before")(reject_null)


class ShopRef(CamelModel):
    id: uuid.UUID
    name: str


class ProductOut(CamelModel):
    id: uuid.UUID
    shop_id: uuid.UUID
    name: str
    description: Optional[str] = None
    price: float
    category: str
    stock: int
    type: ProductType
    images: List[str] = []
    status: ProductStatus
    created_at: datetime
    shop: Optional[ShopRef] = None


class ReviewerRef(CamelModel):
    id: uuid.UUID
    first_name: str
    last_name: str


class ReviewOut(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    product_id: uuid.UUID
    rating: int
    comment: Optional[str] = None
    created_at: datetime
    user: Optional[ReviewerRef] = None


class ProductDetail(ProductOut):
    reviews: List[ReviewOut] = []
    average_rating: Optional[float] = None


class ProductEnvelope(CamelModel):
    product: ProductOut


class ProductDetailEnvelope(CamelModel):
    product: ProductDetail


class ProductListResponse(CamelModel):
    products: List[ProductOut]
    total: int


class BestsellerOut(ProductOut):
    total_sold: int


class BestsellersResponse(CamelModel):
    products: List[BestsellerOut]


class CategoryCount(CamelModel):
    name: str
    count: int


class CategoriesResponse(CamelModel):
    categories: List[CategoryCount]


class ShopDetail(ShopOut):
    owner: Optional[ShopOwnerSummary] = None
    products: List[ProductOut] = []


class ShopDetailEnvelope(CamelModel):
    shop: ShopDetail


class AdminProductListResponse(CamelModel):
    products: List[ProductOut]
    total: int
    status_counts: Dict[str, int]


# ══════════════════════════════════════════════════════════════════════════
# Reviews & Wishlist
# ══════════════════════════════════════════════════════════════════════════

class ReviewRequest(CamelModel):
    product_id: uuid.UUID
    rating: int = Field(ge=1, le=5)
    comment: Optional[Annotated[str, StringConstraints(strip_whitespace=True, max_length=500)]] = None


class ReviewEnvelope(CamelModel):
    review: ReviewOut
    message: Optional[str] = None


class ReviewedProductRef(CamelModel):
    id: uuid.UUID
    name: str
    images: List[str] = []


class OwnReviewOut(ReviewOut):
    product: Optional[ReviewedProductRef] = None


class ReviewListResponse(CamelModel):
    reviews: List[OwnReviewOut]


class WishlistToggleRequest(CamelModel):
    product_id: uuid.UUID


class WishlistResponse(CamelModel):
    wishlist: List[ProductOut]


class WishlistIdsResponse(CamelModel):
    wishlist: List[str]


class RejectProductRequest(CamelModel):
    reason: Optional[str] = None
