try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.clients.catalog_store import CatalogStore
from app.core.errors import ValidationError
from app.models.tables import Product
from app.schemas.catalog import ProductQuery
from app.utils.cursor import Cursor, CursorPager, decode_cursor, encode_cursor

pytestmark = pytest.mark.anyio("asyncio")


@pytest.mark.parametrize(
    "cursor",
    [
        Cursor(sort_value="2026-01-01T10:00:00+00:00", id="b6a1"),
        Cursor(sort_value="12.50", id="x"),
        Cursor(sort_value=42, id="id-with-ünïcode"),
        Cursor(sort_value=3.25, id="p"),
        Cursor(sort_value="Tomatoes / \"quoted\"", id="p-2"),
    ],
)
def test_decode_inverts_encode(cursor: Cursor) -> None:
    token = encode_cursor(cursor)

    assert "=" not in token
    assert decode_cursor(token) == cursor


@pytest.mark.parametrize("token", ["", "not base64!", "bm90IGpzb24", "eyJpZCI6IDF9", "W10"])
def test_malformed_cursor_is_a_validation_error(token: str) -> None:
    with pytest.raises(ValidationError):
        decode_cursor(token)


def test_page_drops_lookahead_row_and_points_at_last_returned() -> None:
    pager = CursorPager(Product.price, Product.id, direction="asc", limit=2)
    rows = [("a", 1), ("b", 2), ("c", 3)]

    page = pager.page(rows, sort_value_of=lambda row: row[1], id_of=lambda row: row[0])

    assert page.items == [("a", 1), ("b", 2)]
    assert page.has_more is True
    assert decode_cursor(page.next_cursor) == Cursor(sort_value=2, id="b")


def test_last_page_has_no_cursor() -> None:
    pager = CursorPager(Product.price, Product.id, limit=5)

    page = pager.page([("a", 1)], sort_value_of=lambda row: row[1], id_of=lambda row: row[0])

    assert page.has_more is False
    assert page.next_cursor is None


def test_invalid_direction_is_rejected() -> None:
    with pytest.raises(ValidationError):
        CursorPager(Product.price, Product.id, direction="sideways")


async def _seed(database, count: int = 23) -> list[Product]:
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    products = []
    async with database.session() as s:
        for number in range(count):
            product = Product(
                id=f"p-{number:03d}",
                name=f"Item {number % 4}",
                description="seeded",
                # Prices and timestamps repeat so ordering must fall back to id.
                price=Decimal(f"{(number % 5) + 1}.50"),
                unit="kg",
                stock_quantity=number,
                is_active=True,
                created_at=base + timedelta(minutes=number % 6),
            )
            s.add(product)
            products.append(product)
        s.add(
            Product(
                id="p-inactive",
                name="Hidden",
                price=Decimal("1.50"),
                unit="kg",
                stock_quantity=0,
                is_active=False,
                created_at=base,
            )
        )
    return products


async def _walk(store: CatalogStore, **params) -> list[str]:
    seen: list[str] = []
    cursor = None
    for _ in range(50):
        page = await store.list_products(ProductQuery(cursor=cursor, **params))
        seen.extend(product.id for product in page.items)
        if not page.has_more:
            return seen
        cursor = page.next_cursor
    raise AssertionError("pagination did not terminate")


def _expected(products, key, reverse: bool) -> list[str]:
    ordered = sorted(products, key=lambda p: (key(p), p.id), reverse=reverse)
    return [p.id for p in ordered]


@pytest.mark.parametrize("order", ["asc", "desc"])
@pytest.mark.parametrize(
    "sort,key",
    [
        ("price", lambda p: p.price),
        ("name", lambda p: p.name),
        ("created_at", lambda p: p.created_at),
    ],
)
async def test_traversal_covers_dataset_without_gaps_or_duplicates(database, sort, key, order) -> None:
    products = await _seed(database)
    store = CatalogStore(database)

    seen = await _walk(store, sort=sort, order=order, limit=4)

    assert seen == _expected(products, key, reverse=order == "desc")
    assert len(seen) == len(set(seen)) == 23
    assert "p-inactive" not in seen


async def test_traversal_respects_filters(database) -> None:
    products = await _seed(database)
    store = CatalogStore(database)

    seen = await _walk(store, sort="price", order="asc", limit=3, min_price=Decimal("2"), max_price=Decimal("4"))

    expected = [p for p in products if Decimal("2") <= p.price <= Decimal("4")]
    assert seen == _expected(expected, lambda p: p.price, reverse=False)
