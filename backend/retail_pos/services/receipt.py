# retail_pos/services/receipt.py
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from retail_pos.schemas.cart import CartLine
from retail_pos.schemas.checkout import Receipt
from retail_pos.schemas.order import OrderDraft
from retail_pos.services.cart import to_money


def present(
    order: OrderDraft,
    payment_tendered,
    *,
    order_id: Optional[str] = None,
    items: Optional[List[CartLine]] = None,
    total: Optional[Decimal] = None,
    total_chunks: Optional[int] = None,
) -> Receipt:
    """
    Payment/change summary for a finished checkout.

    For split checkouts pass the first chunk as `order`, the full cart total as
    `total` and the chunk count; the receipt then shows what the customer paid for.
    """
    amount = to_money(order.total if total is None else total)
    payment = to_money(payment_tendered or 0)
    return Receipt(
        items=list(items or []),
        total=float(amount),
        payment=float(payment),
        change=float(payment - amount),
        date=datetime.now(timezone.utc),
        order_id=order_id,
        is_split_order=order.is_split_order,
        total_chunks=total_chunks if order.is_split_order else None,
    )


def format_currency(amount, symbol: str = "₱") -> str:
    value = to_money(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"
