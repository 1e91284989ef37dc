"""
retail_pos/repositories/base.py - Store contracts consumed by the checkout engine and routers.

Every method may raise whatever the backing SDK raises; the checkout engine wraps
those into phase-specific StoreWriteFailure errors.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from retail_pos.schemas.order import OrderDraft, OrderOut, OrderRelationship, OrderRelationshipOut
from retail_pos.schemas.product import Product


class CatalogStore(Protocol):
    async def list_all(self) -> List[Product]: ...

    async def get(self, product_id: str) -> Optional[Product]: ...

    async def set_stock(self, product_id: str, new_quantity: int) -> None:
        """Blind write of an absolute stock value (read-modify-write against a snapshot)."""

    async def adjust_stock(self, product_id: str, delta: int) -> None:
        """Atomic server-side increment/decrement; safe under concurrent cashiers."""

    async def add(self, data: Dict[str, Any]) -> Product: ...

    async def update(self, product_id: str, patch: Dict[str, Any]) -> Optional[Product]: ...

    async def delete(self, product_id: str) -> bool: ...


class OrderStore(Protocol):
    async def save(self, order: OrderDraft) -> str: ...

    async def get(self, order_id: str) -> Optional[OrderOut]: ...

    async def list_for_owner(self, user_id: str, since: Optional[datetime] = None) -> List[OrderOut]: ...


class RelationshipStore(Protocol):
    async def save(self, relationship: OrderRelationship) -> str: ...

    async def get(self, relationship_id: str) -> Optional[OrderRelationshipOut]: ...

    async def list_for_owner(self, user_id: str) -> List[OrderRelationshipOut]: ...


class Stores:
    """The three collaborators a POS session writes to."""

    def __init__(self, catalog: CatalogStore, orders: OrderStore, relationships: RelationshipStore):
        self.catalog = catalog
        self.orders = orders
        self.relationships = relationships
