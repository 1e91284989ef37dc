# retail_pos/schemas/order.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

OrderStatus = Literal["completed"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Minimized line item: only what reporting needs, never images
class OrderItem(BaseModel):
    id: str
    name: str
    price: float
    quantity: int = Field(..., ge=1)


# Order as written by the checkout engine; the store assigns the id
class OrderDraft(BaseModel):
    items: List[OrderItem] = Field(default_factory=list)
    subtotal: float
    tax: float = 0.0
    total: float
    status: OrderStatus = "completed"
    created_at: datetime = Field(default_factory=_utcnow)
    user_id: Optional[str] = None

    # Split orders carry their own position so partial commits stay auditable
    is_split_order: bool = False
    chunk_index: Optional[int] = None
    total_chunks: Optional[int] = None

    def to_doc(self) -> Dict[str, Any]:
        """Payload for the order store (None fields dropped)."""
        return self.model_dump(exclude_none=True)


class OrderOut(OrderDraft):
    id: str

    @classmethod
    def from_doc(cls, doc_id: str, data: Dict[str, Any]) -> "OrderOut":
        data = dict(data or {})
        items = [
            OrderItem(
                id=str(it.get("id") or it.get("product_id") or ""),
                name=it.get("name") or "",
                price=float(it.get("price", 0) or 0),
                quantity=max(1, int(it.get("quantity", 1) or 1)),
            )
            for it in (data.get("items") or [])
            if isinstance(it, dict)
        ]
        created_at = data.get("created_at")
        return cls(
            id=doc_id,
            items=items,
            subtotal=float(data.get("subtotal", 0) or 0),
            tax=float(data.get("tax", 0) or 0),
            total=float(data.get("total", 0) or 0),
            status="completed",
            created_at=created_at if isinstance(created_at, datetime) else _utcnow(),
            user_id=data.get("user_id"),
            is_split_order=bool(data.get("is_split_order", False)),
            chunk_index=data.get("chunk_index"),
            total_chunks=data.get("total_chunks"),
        )


# Links the sibling orders of one split checkout
class OrderRelationship(BaseModel):
    order_ids: List[str]
    total_orders: int
    total_amount: float
    created_at: datetime = Field(default_factory=_utcnow)
    user_id: Optional[str] = None

    def to_doc(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class OrderRelationshipOut(OrderRelationship):
    id: str

    @classmethod
    def from_doc(cls, doc_id: str, data: Dict[str, Any]) -> "OrderRelationshipOut":
        data = dict(data or {})
        created_at = data.get("created_at")
        order_ids = [str(x) for x in (data.get("order_ids") or [])]
        return cls(
            id=doc_id,
            order_ids=order_ids,
            total_orders=int(data.get("total_orders", len(order_ids)) or 0),
            total_amount=float(data.get("total_amount", 0) or 0),
            created_at=created_at if isinstance(created_at, datetime) else _utcnow(),
            user_id=data.get("user_id"),
        )
