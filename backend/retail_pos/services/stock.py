# retail_pos/services/stock.py
from __future__ import annotations

import asyncio
import logging
from typing import List, Literal, Optional, Sequence, Tuple

from retail_pos.core.errors import StockUpdateFailure
from retail_pos.repositories.base import CatalogStore
from retail_pos.schemas.cart import CartLine
from retail_pos.services.catalog import CatalogSnapshot

logger = logging.getLogger("pos.stock")

StockWriteMode = Literal["set", "increment"]


class ProductNotInCatalog(LookupError):
    """Cart line whose product is missing from the snapshot; its decrement cannot be computed."""


async def _decrement(
    line: CartLine,
    catalog: CatalogSnapshot,
    store: CatalogStore,
    mode: StockWriteMode,
) -> int:
    product = catalog.get(line.product_id)
    if product is None:
        raise ProductNotInCatalog(line.product_id)

    new_quantity = product.stock - line.quantity
    if mode == "increment":
        await store.adjust_stock(line.product_id, -line.quantity)
    else:
        await store.set_stock(line.product_id, new_quantity)

    # Mirror only what the store accepted
    catalog.apply_stock(line.product_id, new_quantity)
    return new_quantity


async def reconcile_stock(
    lines: Sequence[CartLine],
    catalog: CatalogSnapshot,
    store: CatalogStore,
    *,
    mode: StockWriteMode = "set",
    chunk_index: Optional[int] = None,
) -> None:
    """
    Decrement stock for every line, one independent update per product, issued
    concurrently. Lines target distinct products so the updates do not interfere.

    Partial success is possible. Every failed product is logged and the whole
    set is raised as one StockUpdateFailure; nothing is retried.
    """
    results = await asyncio.gather(
        *(_decrement(line, catalog, store, mode) for line in lines),
        return_exceptions=True,
    )

    failures: List[Tuple[str, BaseException]] = []
    for line, result in zip(lines, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.error(
                "Stock update failed for product %s (qty %d, chunk %s): %s",
                line.product_id, line.quantity, chunk_index, result,
            )
            failures.append((line.product_id, result))

    if failures:
        raise StockUpdateFailure(
            failures,
            f"Failed to update stock for {len(failures)} product(s)",
            chunk_index=chunk_index,
        )
