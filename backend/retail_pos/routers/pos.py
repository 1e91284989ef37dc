"""
retail_pos/routers/pos.py
Point-of-sale endpoints for the signed-in business owner: cart edits, checkout
(normal and split) and the last receipt.

Behavior
- The cart lives in the owner's in-process POS session, next to a snapshot of the catalog.
- Adding by id reads name/price/stock from the snapshot; stock bounds are enforced on every edit.
- POST /pos/checkout either completes, or answers `confirmation_required` when the order is too
  large for one document; the cashier then calls confirm-split or decline-split.
- Cart edits are rejected (409) while a split confirmation is pending.
- Every response carries the notifications produced by that call.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from retail_pos.core.deps import get_session
from retail_pos.core.errors import PosError
from retail_pos.core.http_errors import to_http
from retail_pos.schemas.cart import AddLineBody, CartOut
from retail_pos.schemas.checkout import CheckoutBody, CheckoutOut, Receipt
from retail_pos.schemas.product import Product
from retail_pos.services.pos_session import PosSession

router = APIRouter(prefix="/pos", tags=["POS"])


def _fail(session: PosSession, exc: PosError) -> HTTPException:
    return to_http(exc, session.notifications.drain())


# ---------- catalog (snapshot) ----------
@router.get("/products", response_model=List[Product])
def search_products(
    search: str = Query("", description="Case-insensitive name match"),
    category: Optional[str] = Query(None, description="Category; 'all' or empty for every category"),
    session: PosSession = Depends(get_session),
):
    return session.catalog.search(search, category)


@router.post("/catalog/refresh")
async def refresh_catalog(session: PosSession = Depends(get_session)):
    """Reload the snapshot from the store (only while no checkout is pending)."""
    try:
        session.ensure_idle()
    except PosError as exc:
        raise _fail(session, exc)
    count = await session.refresh_catalog()
    return {"products": count}


# ---------- cart ----------
@router.get("/cart", response_model=CartOut)
def get_cart(session: PosSession = Depends(get_session)):
    return session.cart_out()


@router.post("/cart/items", response_model=CartOut)
def add_to_cart(payload: AddLineBody, session: PosSession = Depends(get_session)):
    product = session.catalog.get(payload.product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    try:
        session.add_product(product, payload.quantity)
    except PosError as exc:
        raise _fail(session, exc)
    return session.cart_out()


@router.post("/cart/items/{index}/increase", response_model=CartOut)
def increase_quantity(index: int, session: PosSession = Depends(get_session)):
    try:
        session.increase(index)
    except PosError as exc:
        raise _fail(session, exc)
    return session.cart_out()


@router.post("/cart/items/{index}/decrease", response_model=CartOut)
def decrease_quantity(index: int, session: PosSession = Depends(get_session)):
    """Decreasing a line at quantity 1 removes it."""
    try:
        session.ensure_idle()
        session.cart.decrease(index)
    except PosError as exc:
        raise _fail(session, exc)
    return session.cart_out()


@router.delete("/cart/items/{index}", response_model=CartOut)
def remove_from_cart(index: int, session: PosSession = Depends(get_session)):
    try:
        session.ensure_idle()
        session.cart.remove(index)
    except PosError as exc:
        raise _fail(session, exc)
    return session.cart_out()


@router.delete("/cart", status_code=204)
def clear_cart(session: PosSession = Depends(get_session)):
    try:
        session.ensure_idle()
    except PosError as exc:
        raise _fail(session, exc)
    session.cart.clear()
    return Response(status_code=204)


# ---------- checkout ----------
def _checkout_out(session: PosSession, outcome) -> CheckoutOut:
    if outcome.receipt is not None:
        session.last_receipt = outcome.receipt
    return CheckoutOut(**outcome.model_dump(), notifications=session.notifications.drain())


@router.post("/checkout", response_model=CheckoutOut)
async def checkout(payload: Optional[CheckoutBody] = None, session: PosSession = Depends(get_session)):
    payload = payload or CheckoutBody()
    try:
        outcome = await session.engine.checkout(session.cart, session.catalog, payload.payment_tendered)
    except PosError as exc:
        raise _fail(session, exc)
    return _checkout_out(session, outcome)


@router.post("/checkout/confirm-split", response_model=CheckoutOut)
async def confirm_split(payload: Optional[CheckoutBody] = None, session: PosSession = Depends(get_session)):
    payload = payload or CheckoutBody()
    try:
        outcome = await session.engine.confirm_split(session.cart, session.catalog, payload.payment_tendered)
    except PosError as exc:
        raise _fail(session, exc)
    return _checkout_out(session, outcome)


@router.post("/checkout/decline-split", response_model=CheckoutOut)
def decline_split(session: PosSession = Depends(get_session)):
    """Cancel the pending split; the cart stays as it was."""
    try:
        outcome = session.engine.decline_split()
    except PosError as exc:
        raise _fail(session, exc)
    return _checkout_out(session, outcome)


@router.get("/receipt", response_model=Receipt)
def last_receipt(session: PosSession = Depends(get_session)):
    if session.last_receipt is None:
        raise HTTPException(status_code=404, detail="No receipt yet.")
    return session.last_receipt
