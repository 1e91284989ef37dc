# retail_pos/services/orders.py
from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Optional

from retail_pos.schemas.cart import CartLine
from retail_pos.schemas.order import OrderDraft, OrderItem, OrderRelationship
from retail_pos.services.cart import lines_subtotal, tax_for

__all__ = [
    "minimize_items",
    "calc_totals",
    "build_order_draft",
    "build_relationship",
]


def minimize_items(lines: List[CartLine]) -> List[OrderItem]:
    """id/name/price/quantity only; anything large (images) stays out of the order."""
    return [
        OrderItem(id=ln.product_id or "", name=ln.name, price=ln.unit_price, quantity=ln.quantity)
        for ln in lines
    ]


def calc_totals(lines: List[CartLine], tax_rate) -> Dict[str, Decimal]:
    subtotal = lines_subtotal(lines)
    tax = tax_for(subtotal, tax_rate)
    return {"subtotal": subtotal, "tax": tax, "total": subtotal + tax}


def build_order_draft(
    lines: List[CartLine],
    tax_rate,
    *,
    user_id: Optional[str] = None,
    chunk_index: Optional[int] = None,
    total_chunks: Optional[int] = None,
) -> OrderDraft:
    """
    Order document for a whole cart or, when chunk_index/total_chunks are given,
    for one chunk of a split checkout (chunk_index is 1-based).
    """
    totals = calc_totals(lines, tax_rate)
    is_split = chunk_index is not None
    return OrderDraft(
        items=minimize_items(lines),
        subtotal=float(totals["subtotal"]),
        tax=float(totals["tax"]),
        total=float(totals["total"]),
        user_id=user_id,
        is_split_order=is_split,
        chunk_index=chunk_index,
        total_chunks=total_chunks if is_split else None,
    )


def build_relationship(order_ids: List[str], total_amount: Decimal, user_id: Optional[str] = None) -> OrderRelationship:
    return OrderRelationship(
        order_ids=list(order_ids),
        total_orders=len(order_ids),
        total_amount=float(total_amount),
        user_id=user_id,
    )
