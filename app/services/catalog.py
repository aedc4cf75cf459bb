"""
Product catalog reads with a shared read-through cache.
"""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any, Dict, Optional

from app.clients.catalog_store import CatalogStore
from app.core.errors import NotFound
from app.schemas.catalog import ProductOut, ProductQuery
from app.services.cache import KeyValueCache

logger = logging.getLogger(__name__)


def list_cache_key(query: ProductQuery) -> str:
    """Stable key for a listing: MD5 of the normalised parameters."""
    normalised = json.dumps(query.cache_fields(), sort_keys=True, separators=(",", ":"))
    return f"list:{hashlib.md5(normalised.encode('utf-8')).hexdigest()}"


def item_cache_key(product_id: str) -> str:
    return f"item:{product_id}"


class CatalogService:
    """Serve product listings and lookups, caching rendered results."""

    def __init__(
        self,
        store: CatalogStore,
        cache: KeyValueCache,
        *,
        list_ttl_seconds: int = 300,
        item_ttl_seconds: int = 900,
    ) -> None:
        self._store = store
        self._cache = cache
        self._list_ttl = list_ttl_seconds
        self._item_ttl = item_ttl_seconds

    async def list_products(self, query: ProductQuery) -> Dict[str, Any]:
        """Return ``{"data": [...], "pagination": {...}}`` for one page."""
        key = list_cache_key(query)
        cached = await self._cache.get(key)
        if cached is not None:
            logger.debug("Product list cache hit", extra={"cache_key": key})
            return cached

        page = await self._store.list_products(query)
        result = {
            "data": [
                ProductOut.model_validate(product).model_dump(mode="json", by_alias=True)
                for product in page.items
            ],
            "pagination": {"next_cursor": page.next_cursor, "has_more": page.has_more},
        }
        await self._cache.set(key, result, ttl_seconds=self._list_ttl)
        return result

    async def get_product(self, product_id: str) -> Dict[str, Any]:
        key = item_cache_key(product_id)
        cached = await self._cache.get(key)
        if cached is not None:
            return cached

        product = await self._store.get_product(product_id)
        if product is None:
            raise NotFound("Product")
        result = ProductOut.model_validate(product).model_dump(mode="json", by_alias=True)
        await self._cache.set(key, result, ttl_seconds=self._item_ttl)
        return result

    async def invalidate(self, product_id: Optional[str] = None) -> None:
        """Drop one product's entry (if given) and every cached listing."""
        if product_id:
            await self._cache.delete(item_cache_key(product_id))
        await self._cache.delete_pattern("*")
        logger.info("Product cache invalidated", extra={"product_id": product_id})


__all__ = ["CatalogService", "item_cache_key", "list_cache_key"]
