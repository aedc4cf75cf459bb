"""Populate the catalog with synthetic products for local load testing.

Usage::

    python -m scripts.seed_products --count 100000 --batch-size 1000
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import random
import sys
from decimal import Decimal
from typing import List, Sequence

from sqlalchemy import insert
from sqlalchemy.exc import SQLAlchemyError

from app.clients.database import Database
from app.core.config import DatabaseSettings
from app.core.logging import configure_logging
from app.models.tables import Category, Producer, Product, new_id

logger = logging.getLogger("scripts.seed_products")

CATEGORY_NAMES = ("Vegetables", "Fruits", "Dairy", "Grains", "Spices")
PRODUCER_NAMES = (
    "Green Valley Farm",
    "Sunrise Orchards",
    "Mountain Dairy Co",
    "Prairie Grains",
    "Spice Route Traders",
)
PRODUCT_NAMES = (
    "Organic Tomatoes",
    "Fresh Apples",
    "Whole Milk",
    "Brown Rice",
    "Black Pepper",
    "Sweet Potatoes",
    "Strawberries",
    "Cheddar Cheese",
    "Quinoa",
    "Turmeric Powder",
)
UNITS = ("kg", "lb", "oz", "liter", "dozen", "bunch")


def build_product_rows(
    start: int,
    count: int,
    category_ids: Sequence[str],
    producer_ids: Sequence[str],
    rng: random.Random,
) -> List[dict]:
    """Rows numbered ``start + 1 .. start + count``, ready for a bulk insert."""
    rows = []
    for number in range(start + 1, start + count + 1):
        name = f"{rng.choice(PRODUCT_NAMES)} #{number}"
        rows.append(
            {
                "id": new_id(),
                "category_id": rng.choice(category_ids),
                "producer_id": rng.choice(producer_ids),
                "name": name,
                "description": f"High quality {name.lower()} from local producers",
                "price": Decimal(f"{rng.uniform(1, 51):.2f}"),
                "unit": rng.choice(UNITS),
                "stock_quantity": rng.randrange(500),
                "is_active": True,
            }
        )
    return rows


async def seed(database: Database, *, count: int, batch_size: int, seed_value: int | None = None) -> int:
    """Insert reference rows and ``count`` products; return the number of products written."""
    rng = random.Random(seed_value)
    async with database.session() as s:
        categories = [Category(name=name) for name in CATEGORY_NAMES]
        producers = [Producer(name=name) for name in PRODUCER_NAMES]
        s.add_all(categories + producers)
        await s.flush()
        category_ids = [category.id for category in categories]
        producer_ids = [producer.id for producer in producers]

    written = 0
    batches = (count + batch_size - 1) // batch_size
    for batch in range(batches):
        size = min(batch_size, count - written)
        rows = build_product_rows(written, size, category_ids, producer_ids, rng)
        async with database.session() as s:
            await s.execute(insert(Product), rows)
        written += size
        if (batch + 1) % 10 == 0 or written == count:
            logger.info("Seeded %d/%d products (%.1f%%)", written, count, written / count * 100)
    return written


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Seed the catalog with synthetic products.")
    parser.add_argument("--count", type=int, default=1_000_000, help="Number of products to insert.")
    parser.add_argument("--batch-size", type=int, default=1000, help="Rows per INSERT statement.")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible data.")
    return parser


async def _run(args: argparse.Namespace) -> int:
    database = Database.from_settings(DatabaseSettings())
    try:
        await database.create_tables()
        await seed(database, count=args.count, batch_size=args.batch_size, seed_value=args.seed)
    except (SQLAlchemyError, OSError) as exc:
        logger.error("Seeding failed: %s", exc)
        return 1
    finally:
        await database.aclose()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    if args.count < 1 or args.batch_size < 1:
        print("--count and --batch-size must be positive", file=sys.stderr)
        return 2
    configure_logging("INFO")
    return asyncio.run(_run(args))


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
