"""
retail_pos/schemas/checkout.py - Request/response models for checkout, receipts and notifications.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from retail_pos.schemas.cart import CartLine

NotificationLevel = Literal["success", "error", "confirm"]
CheckoutStatus = Literal["completed", "split_completed", "confirmation_required", "declined"]


class Notification(BaseModel):
    level: NotificationLevel
    title: str
    message: str


class CheckoutBody(BaseModel):
    payment_tendered: float = Field(0.0, ge=0, description="Cash handed over by the customer")


class Receipt(BaseModel):
    items: List[CartLine] = Field(default_factory=list)
    total: float
    payment: float
    change: float
    date: datetime
    order_id: Optional[str] = None
    is_split_order: bool = False
    total_chunks: Optional[int] = None


class CheckoutOutcome(BaseModel):
    status: CheckoutStatus
    order_ids: List[str] = Field(default_factory=list)
    relationship_id: Optional[str] = None
    size_bytes: Optional[int] = None
    item_count: int = 0
    receipt: Optional[Receipt] = None


class CheckoutOut(CheckoutOutcome):
    notifications: List[Notification] = Field(default_factory=list)
