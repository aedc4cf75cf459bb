"""
Read-only queries over the product tables.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Optional

from sqlalchemy import or_, select

from app.clients.database import Database
from app.core.errors import ValidationError
from app.models.tables import Product
from app.schemas.catalog import ProductQuery
from app.utils.cursor import CursorPager, Page, SortValue, decode_cursor


def _price_from_cursor(value: SortValue) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError("Invalid cursor format") from exc


def _datetime_from_cursor(value: SortValue) -> datetime:
    if not isinstance(value, str):
        raise ValidationError("Invalid cursor format")
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError("Invalid cursor format") from exc


def _name_from_cursor(value: SortValue) -> str:
    if not isinstance(value, str):
        raise ValidationError("Invalid cursor format")
    return value


_SORT_COLUMNS: Dict[str, Any] = {
    "price": Product.price,
    "name": Product.name,
    "created_at": Product.created_at,
}

_CURSOR_COERCIONS: Dict[str, Callable[[SortValue], Any]] = {
    "price": _price_from_cursor,
    "name": _name_from_cursor,
    "created_at": _datetime_from_cursor,
}


def sort_value_of(product: Product, sort: str) -> SortValue:
    """JSON-safe rendering of ``product``'s sort column for a cursor."""
    value = getattr(product, sort)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class CatalogStore:
    """Product lookups against the relational store."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def list_products(self, query: ProductQuery) -> Page[Product]:
        pager = CursorPager(_SORT_COLUMNS[query.sort], Product.id, direction=query.order, limit=query.limit)
        cursor = decode_cursor(query.cursor) if query.cursor else None

        stmt = select(Product).where(Product.is_active.is_(True))
        if query.search:
            pattern = f"%{query.search}%"
            stmt = stmt.where(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))
        if query.category:
            stmt = stmt.where(Product.category_id == query.category)
        if query.min_price is not None:
            stmt = stmt.where(Product.price >= query.min_price)
        if query.max_price is not None:
            stmt = stmt.where(Product.price <= query.max_price)
        stmt = pager.apply(stmt, cursor, coerce=_CURSOR_COERCIONS[query.sort])

        async with self._db.session() as s:
            rows = (await s.execute(stmt)).unique().scalars().all()

        return pager.page(rows, lambda product: sort_value_of(product, query.sort), lambda product: product.id)

    async def get_product(self, product_id: str) -> Optional[Product]:
        stmt = select(Product).where(Product.id == product_id, Product.is_active.is_(True))
        async with self._db.session() as s:
            return (await s.execute(stmt)).unique().scalar_one_or_none()


__all__ = ["CatalogStore", "sort_value_of"]
