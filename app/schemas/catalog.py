"""
Pydantic models for the product catalog endpoints.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

SortField = Literal["price", "name", "created_at"]
SortOrder = Literal["asc", "desc"]


class ProductQuery(BaseModel):
    """Listing parameters accepted by ``GET /v1/products``."""

    limit: int = Field(20, ge=1, le=100)
    cursor: Optional[str] = None
    sort: SortField = "created_at"
    order: SortOrder = "desc"
    search: Optional[str] = Field(None, min_length=2, max_length=100)
    category: Optional[str] = None
    min_price: Optional[Decimal] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)

    @model_validator(mode="after")
    def _check_price_range(self) -> "ProductQuery":
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("min_price must not exceed max_price")
        return self

    def cache_fields(self) -> Dict[str, Any]:
        """Non-empty parameters sorted by name; all but the opaque cursor are lower-cased."""
        fields = {
            key: str(value) if key == "cursor" else str(value).lower()
            for key, value in self.model_dump().items()
            if value is not None
        }
        return dict(sorted(fields.items()))


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str


class ProducerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    price: Decimal
    unit: str
    stock_quantity: int
    is_active: bool
    attributes: Optional[Dict[str, Any]] = Field(
        None,
        validation_alias=AliasChoices("attributes", "metadata"),
        serialization_alias="metadata",
    )
    category: Optional[CategoryOut] = None
    producer: Optional[ProducerOut] = None
    created_at: datetime
    updated_at: datetime


class Pagination(BaseModel):
    next_cursor: Optional[str] = None
    has_more: bool = False


class ResponseMeta(BaseModel):
    request_id: Optional[str] = None
    timestamp: datetime


class ProductListResponse(BaseModel):
    data: List[ProductOut]
    pagination: Pagination
    meta: ResponseMeta


class ProductResponse(BaseModel):
    data: ProductOut
    meta: ResponseMeta


__all__ = [
    "CategoryOut",
    "Pagination",
    "ProducerOut",
    "ProductListResponse",
    "ProductOut",
    "ProductQuery",
    "ProductResponse",
    "ResponseMeta",
    "SortField",
    "SortOrder",
]
