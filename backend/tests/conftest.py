"""Shared fixtures: in-memory stores and a wired-up checkout engine."""

from datetime import datetime
from typing import Any, Dict, List, Optional

import pytest

from retail_pos.repositories.base import Stores
from retail_pos.schemas.order import OrderDraft, OrderOut, OrderRelationship, OrderRelationshipOut
from retail_pos.schemas.product import Product
from retail_pos.services.cart import Cart
from retail_pos.services.catalog import CatalogSnapshot
from retail_pos.services.checkout import CheckoutEngine
from retail_pos.services.notifications import NotificationLog

TAX_RATE = 0.12
OWNER = "owner-1"


class StoreDown(RuntimeError):
    pass


def make_product(pid: str, price: float = 10.0, stock: int = 100, **extra) -> Product:
    return Product(id=pid, name=extra.pop("name", f"Product {pid}"), price=price, quantity=stock, **extra)


class FakeCatalogStore:
    def __init__(self, products=()):
        self.products: Dict[str, Product] = {p.id: p.model_copy() for p in products}
        self.fail_for = set()
        self.writes: List[tuple] = []
        self._seq = 0

    def _check(self, product_id: str) -> None:
        if product_id in self.fail_for:
            raise StoreDown(f"write rejected for {product_id}")

    async def list_all(self) -> List[Product]:
        return [p.model_copy() for p in self.products.values()]

    async def get(self, product_id: str) -> Optional[Product]:
        p = self.products.get(product_id)
        return p.model_copy() if p else None

    async def set_stock(self, product_id: str, new_quantity: int) -> None:
        self._check(product_id)
        self.writes.append(("set", product_id, new_quantity))
        self.products[product_id].stock = new_quantity

    async def adjust_stock(self, product_id: str, delta: int) -> None:
        self._check(product_id)
        self.writes.append(("adjust", product_id, delta))
        self.products[product_id].stock += delta

    async def add(self, data: Dict[str, Any]) -> Product:
        self._seq += 1
        product = Product(id=f"new-{self._seq}", **data)
        self.products[product.id] = product
        return product.model_copy()

    async def update(self, product_id: str, patch: Dict[str, Any]) -> Optional[Product]:
        current = self.products.get(product_id)
        if current is None:
            return None
        product = Product(**{**current.model_dump(by_alias=True), **patch})
        self.products[product_id] = product
        return product.model_copy()

    async def delete(self, product_id: str) -> bool:
        return self.products.pop(product_id, None) is not None


class FakeOrderStore:
    def __init__(self):
        self.orders: Dict[str, OrderOut] = {}
        self.fail_on_call = set()  # 1-based save() call numbers that raise
        self.calls = 0

    async def save(self, order: OrderDraft) -> str:
        self.calls += 1
        if self.calls in self.fail_on_call:
            raise StoreDown("order write rejected")
        order_id = f"order-{self.calls}"
        self.orders[order_id] = OrderOut(id=order_id, **order.model_dump())
        return order_id

    async def get(self, order_id: str) -> Optional[OrderOut]:
        return self.orders.get(order_id)

    async def list_for_owner(self, user_id: str, since: Optional[datetime] = None) -> List[OrderOut]:
        out = [
            o for o in self.orders.values()
            if o.user_id == user_id and (since is None or o.created_at >= since)
        ]
        return sorted(out, key=lambda o: o.created_at, reverse=True)


class FakeRelationshipStore:
    def __init__(self):
        self.relationships: Dict[str, OrderRelationshipOut] = {}
        self.fail = False

    async def save(self, relationship: OrderRelationship) -> str:
        if self.fail:
            raise StoreDown("relationship write rejected")
        rel_id = f"rel-{len(self.relationships) + 1}"
        self.relationships[rel_id] = OrderRelationshipOut(id=rel_id, **relationship.model_dump())
        return rel_id

    async def get(self, relationship_id: str) -> Optional[OrderRelationshipOut]:
        return self.relationships.get(relationship_id)

    async def list_for_owner(self, user_id: str) -> List[OrderRelationshipOut]:
        return [r for r in self.relationships.values() if r.user_id == user_id]


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def products():
    return [
        make_product("A", price=100.0, stock=10, category="Drinks", barcode="4800001"),
        make_product("B", price=50.0, stock=5, category="Snacks", barcode="4800002"),
        make_product("C", price=20.0, stock=3, category="Snacks", barcode="4800003"),
    ]


@pytest.fixture
def stores(products):
    return Stores(FakeCatalogStore(products), FakeOrderStore(), FakeRelationshipStore())


@pytest.fixture
def catalog(products):
    return CatalogSnapshot(products)


@pytest.fixture
def cart():
    return Cart(tax_rate=TAX_RATE)


@pytest.fixture
def notifier():
    return NotificationLog()


@pytest.fixture
def engine(stores, notifier):
    return CheckoutEngine(stores, notifier, user_id=OWNER)


@pytest.fixture
def make_client(stores):
    """TestClient with in-memory stores, a fresh session registry and a signed-in owner."""
    from fastapi.testclient import TestClient

    from retail_pos.config import Settings
    from retail_pos.core.auth import get_principal
    from retail_pos.core.deps import get_registry, get_stores
    from retail_pos.main import app
    from retail_pos.schemas.principal import Principal
    from retail_pos.services.pos_session import PosSessionRegistry

    def _make(role="owner", **cfg):
        registry = PosSessionRegistry(Settings(tax_rate=TAX_RATE, **cfg))
        app.dependency_overrides[get_stores] = lambda: stores
        app.dependency_overrides[get_registry] = lambda: registry
        app.dependency_overrides[get_principal] = lambda: Principal(uid=OWNER, role=role)
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client):
    return make_client()
