# retail_pos/repositories/firestore_stores.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from google.api_core.exceptions import FailedPrecondition, NotFound
from google.cloud import firestore as gcf
from google.cloud.firestore_v1 import SERVER_TIMESTAMP, Increment
from google.cloud.firestore_v1.base_query import FieldFilter

from retail_pos.config import Settings, get_db, settings as default_settings
from retail_pos.repositories.base import Stores
from retail_pos.schemas.order import OrderDraft, OrderOut, OrderRelationship, OrderRelationshipOut
from retail_pos.schemas.product import Product

logger = logging.getLogger("pos.stores")

PRODUCTS = "products"
ORDERS = "orders"
RELATIONSHIPS = "orderRelationships"


def _created_ts(snap) -> float:
    created = (snap.to_dict() or {}).get("created_at")
    return created.timestamp() if hasattr(created, "timestamp") else 0.0


def _newest_first(snaps) -> list:
    return sorted(snaps, key=_created_ts, reverse=True)


class FirestoreCatalogStore:
    """Products in a flat `products` collection; stock is the `quantity` field."""

    def __init__(self, db, collection: str = PRODUCTS):
        self._db = db
        self._name = collection

    def _col(self):
        return self._db.collection(self._name)

    async def list_all(self) -> List[Product]:
        return [Product.from_doc(snap.id, snap.to_dict()) async for snap in self._col().stream()]

    async def get(self, product_id: str) -> Optional[Product]:
        snap = await self._col().document(product_id).get()
        if not snap.exists:
            return None
        return Product.from_doc(snap.id, snap.to_dict())

    async def set_stock(self, product_id: str, new_quantity: int) -> None:
        await self._col().document(product_id).update(
            {"quantity": int(new_quantity), "updated_at": SERVER_TIMESTAMP}
        )

    async def adjust_stock(self, product_id: str, delta: int) -> None:
        await self._col().document(product_id).update(
            {"quantity": Increment(int(delta)), "updated_at": SERVER_TIMESTAMP}
        )

    async def add(self, data: Dict[str, Any]) -> Product:
        ref = self._col().document()
        doc = {**data, "created_at": SERVER_TIMESTAMP, "updated_at": SERVER_TIMESTAMP}
        await ref.set(doc)
        saved = await ref.get()
        return Product.from_doc(ref.id, saved.to_dict() or data)

    async def update(self, product_id: str, patch: Dict[str, Any]) -> Optional[Product]:
        ref = self._col().document(product_id)
        try:
            await ref.update({**patch, "updated_at": SERVER_TIMESTAMP})
        except NotFound:
            return None
        snap = await ref.get()
        return Product.from_doc(snap.id, snap.to_dict())

    async def delete(self, product_id: str) -> bool:
        ref = self._col().document(product_id)
        snap = await ref.get()
        if not snap.exists:
            return False
        await ref.delete()
        return True


class FirestoreOrderStore:
    def __init__(self, db, collection: str = ORDERS):
        self._db = db
        self._name = collection

    def _col(self):
        return self._db.collection(self._name)

    async def save(self, order: OrderDraft) -> str:
        ref = self._col().document()  # id assigned by the store
        doc = order.to_doc()
        doc["created_at"] = SERVER_TIMESTAMP
        await ref.set(doc)
        return ref.id

    async def get(self, order_id: str) -> Optional[OrderOut]:
        snap = await self._col().document(order_id).get()
        if not snap.exists:
            return None
        return OrderOut.from_doc(snap.id, snap.to_dict())

    async def list_for_owner(self, user_id: str, since: Optional[datetime] = None) -> List[OrderOut]:
        base = self._col().where(filter=FieldFilter("user_id", "==", user_id))
        if since is not None:
            base = base.where(filter=FieldFilter("created_at", ">=", since))

        # Index present: fast path
        try:
            q = base.order_by("created_at", direction=gcf.Query.DESCENDING)
            snaps = [s async for s in q.stream()]
        except FailedPrecondition:
            # No composite index: unordered query + sort in Python
            logger.warning("orders index missing for user_id/created_at, sorting client-side")
            snaps = _newest_first([s async for s in base.stream()])
        return [OrderOut.from_doc(s.id, s.to_dict()) for s in snaps]


class FirestoreRelationshipStore:
    def __init__(self, db, collection: str = RELATIONSHIPS):
        self._db = db
        self._name = collection

    def _col(self):
        return self._db.collection(self._name)

    async def save(self, relationship: OrderRelationship) -> str:
        ref = self._col().document()
        doc = relationship.to_doc()
        doc["created_at"] = SERVER_TIMESTAMP
        await ref.set(doc)
        return ref.id

    async def get(self, relationship_id: str) -> Optional[OrderRelationshipOut]:
        snap = await self._col().document(relationship_id).get()
        if not snap.exists:
            return None
        return OrderRelationshipOut.from_doc(snap.id, snap.to_dict())

    async def list_for_owner(self, user_id: str) -> List[OrderRelationshipOut]:
        q = self._col().where(filter=FieldFilter("user_id", "==", user_id))
        snaps = _newest_first([s async for s in q.stream()])
        return [OrderRelationshipOut.from_doc(s.id, s.to_dict()) for s in snaps]


def build_firestore_stores(db=None, cfg: Optional[Settings] = None) -> Stores:
    cfg = cfg or default_settings
    db = db if db is not None else get_db()
    return Stores(
        catalog=FirestoreCatalogStore(db, cfg.collection(PRODUCTS)),
        orders=FirestoreOrderStore(db, cfg.collection(ORDERS)),
        relationships=FirestoreRelationshipStore(db, cfg.collection(RELATIONSHIPS)),
    )
