"""
# `retail_pos/routers/products.py` - Inventory Endpoints

## Overview
Product listing and inventory management for the signed-in business owner.
Reads are served from the owner's catalog snapshot (the same one the POS page sells
from); writes go to the Firestore `products` collection through the `CatalogStore`
and are mirrored into that snapshot so the cart sees them at once.

---

### `GET /products`
List products. Optional `search` (case-insensitive name match) and `category`
(`all` or empty means every category).

### `GET /products/categories`
Distinct category labels, sorted.

### `GET /products/low-stock`
Products whose stock is at or below `threshold` (default `LOW_STOCK_THRESHOLD`),
lowest first.

### `GET /products/barcode/{barcode}`
Single product by barcode, `404` when unknown.

### `POST /products/barcode/{barcode}/restock`
Add `additional_quantity` units to the current stock.
**Flow:**
1. Product is looked up in the snapshot by barcode, `404` if missing.
2. `new = stock + additional_quantity` is written with `set_stock`.
3. The snapshot is updated with the new value.

### `POST /products`, `PUT /products/{product_id}`, `DELETE /products/{product_id}`
Create / partially update / delete. Writes are rejected with `409` while a
checkout of this owner is pending.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from retail_pos.config import settings
from retail_pos.core.deps import get_session
from retail_pos.core.errors import PosError
from retail_pos.core.http_errors import to_http
from retail_pos.schemas.product import Product, ProductCreate, ProductUpdate, RestockBody
from retail_pos.services.pos_session import PosSession

logger = logging.getLogger("pos.catalog")

router = APIRouter(prefix="/products", tags=["Products"])


def _ensure_idle(session: PosSession) -> None:
    try:
        session.ensure_idle()
    except PosError as exc:
        raise to_http(exc, session.notifications.drain())


def _by_barcode(session: PosSession, barcode: str) -> Product:
    product = session.catalog.find_by_barcode(barcode)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.get("/", response_model=List[Product], summary="List Products")
def list_products(
    search: str = Query("", description="Name contains (case-insensitive)"),
    category: Optional[str] = Query(None, description="Category label, 'all' for every category"),
    session: PosSession = Depends(get_session),
):
    return session.catalog.search(search, category)


@router.get("/categories", response_model=List[str])
def list_categories(session: PosSession = Depends(get_session)):
    return session.catalog.categories()


@router.get("/low-stock", response_model=List[Product])
def low_stock(
    threshold: Optional[int] = Query(None, ge=0, description="Defaults to LOW_STOCK_THRESHOLD"),
    session: PosSession = Depends(get_session),
):
    limit = settings.low_stock_threshold if threshold is None else threshold
    return session.catalog.low_stock(limit)


@router.get("/barcode/{barcode}", response_model=Product)
def get_by_barcode(barcode: str, session: PosSession = Depends(get_session)):
    return _by_barcode(session, barcode)


@router.post("/barcode/{barcode}/restock", response_model=Product)
async def restock(barcode: str, payload: RestockBody, session: PosSession = Depends(get_session)):
    """
    Add received units on top of the current stock.
    """
    _ensure_idle(session)
    product = _by_barcode(session, barcode)
    previous = product.stock
    new_quantity = previous + payload.additional_quantity
    try:
        await session.stores.catalog.set_stock(product.id, new_quantity)
    except Exception as e:
        logger.exception("Restock of %s failed", product.id)
        raise HTTPException(status_code=502, detail=f"Failed to update stock: {e}")
    session.catalog.apply_stock(product.id, new_quantity)
    logger.info("Restocked %s (%s): %d -> %d", product.id, barcode, previous, new_quantity)
    return session.catalog.get(product.id)


@router.post("/", response_model=Product, status_code=status.HTTP_201_CREATED, summary="Create Product")
async def create_product(payload: ProductCreate, session: PosSession = Depends(get_session)):
    _ensure_idle(session)
    if payload.barcode and session.catalog.find_by_barcode(payload.barcode):
        raise HTTPException(status_code=409, detail="A product with this barcode already exists")
    product = await session.stores.catalog.add(payload.model_dump())
    session.catalog.upsert(product)
    return product


@router.put("/{product_id}", response_model=Product)
async def update_product(product_id: str, payload: ProductUpdate, session: PosSession = Depends(get_session)):
    """
    Partial update: only the fields sent are written.
    """
    _ensure_idle(session)
    patch = payload.model_dump(exclude_unset=True)
    if not patch:
        raise HTTPException(status_code=400, detail="Nothing to update")
    product = await session.stores.catalog.update(product_id, patch)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    session.catalog.upsert(product)
    return product


@router.delete("/{product_id}")
async def delete_product(product_id: str, session: PosSession = Depends(get_session)):
    _ensure_idle(session)
    if not await session.stores.catalog.delete(product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    session.catalog.discard(product_id)
    return {"detail": "Product deleted"}
