"""Tests for the catalog snapshot, POS sessions and the refresh job."""

import pytest

from conftest import OWNER, make_product
from retail_pos.config import Settings
from retail_pos.core.errors import CheckoutInProgressError, InsufficientStockError, OutOfStockError
from retail_pos.services.catalog import CatalogSnapshot
from retail_pos.services.catalog_sync import sync_catalog_snapshots_once
from retail_pos.services.pos_session import PosSessionRegistry


class TestCatalogSnapshot:
    def test_search_is_case_insensitive(self, catalog):
        assert [p.id for p in catalog.search("product a")] == ["A"]

    @pytest.mark.parametrize("category, expected", [("Snacks", ["B", "C"]), ("all", ["A", "B", "C"]), (None, ["A", "B", "C"])])
    def test_category_filter(self, catalog, category, expected):
        assert [p.id for p in catalog.search("", category)] == expected

    def test_categories_sorted_and_distinct(self, catalog):
        assert catalog.categories() == ["Drinks", "Snacks"]

    def test_find_by_barcode(self, catalog):
        assert catalog.find_by_barcode(" 4800002 ").id == "B"
        assert catalog.find_by_barcode("000") is None
        assert catalog.find_by_barcode("") is None

    def test_low_stock_sorted_lowest_first(self, catalog):
        assert [p.id for p in catalog.low_stock(5)] == ["C", "B"]
        assert [p.id for p in catalog.low_stock()] == ["C", "B", "A"]

    def test_snapshot_is_isolated_from_source_objects(self, products):
        snap = CatalogSnapshot(products)
        snap.apply_stock("A", 1)
        assert products[0].stock == 10

    def test_upsert_and_discard(self, catalog):
        catalog.upsert(make_product("D", stock=2))
        assert "D" in catalog and len(catalog) == 4
        catalog.discard("D")
        catalog.discard("missing")
        assert "D" not in catalog


@pytest.mark.anyio
class TestSessions:
    async def test_session_is_reused_per_owner(self, stores):
        registry = PosSessionRegistry(Settings())
        first = registry.get_or_create(OWNER, stores)
        assert registry.get_or_create(OWNER, stores) is first
        assert registry.get("someone-else") is None
        assert len(registry) == 1

    async def test_ensure_catalog_loads_once(self, stores):
        session = PosSessionRegistry(Settings()).get_or_create(OWNER, stores)
        await session.ensure_catalog()
        stores.catalog.products.clear()
        await session.ensure_catalog()
        assert len(session.catalog) == 3

    async def test_cart_out_reports_totals(self, stores, products):
        session = PosSessionRegistry(Settings(tax_rate=0.12)).get_or_create(OWNER, stores)
        session.add_product(products[0], 2)
        out = session.cart_out()
        assert (out.subtotal, out.tax, out.total, out.item_count) == (200.0, 24.0, 224.0, 2)
        assert out.checkout_state == "idle"

    async def test_cart_frozen_while_split_pending(self, stores, products):
        session = PosSessionRegistry(Settings(order_size_threshold_bytes=10)).get_or_create(OWNER, stores)
        await session.ensure_catalog()
        session.add_product(products[0])
        outcome = await session.engine.checkout(session.cart, session.catalog)
        assert outcome.status == "confirmation_required"
        with pytest.raises(CheckoutInProgressError):
            session.add_product(products[1])

    async def test_increase_checks_refreshed_snapshot(self, stores, products):
        session = PosSessionRegistry(Settings()).get_or_create(OWNER, stores)
        await session.ensure_catalog()
        session.add_product(session.catalog.get("A"))
        stores.catalog.products["A"].stock = 1
        await session.refresh_catalog()

        with pytest.raises(InsufficientStockError):
            session.increase(0)

        assert session.cart.lines[0].quantity == 1
        [note] = session.notifications.drain()
        assert (note.level, note.message) == ("error", "Not enough stock available")

    async def test_increase_of_deleted_product(self, stores, products):
        session = PosSessionRegistry(Settings()).get_or_create(OWNER, stores)
        await session.ensure_catalog()
        session.add_product(session.catalog.get("A"))
        session.catalog.discard("A")
        with pytest.raises(OutOfStockError):
            session.increase(0)

    async def test_rejected_add_notifies(self, stores):
        session = PosSessionRegistry(Settings()).get_or_create(OWNER, stores)
        with pytest.raises(OutOfStockError):
            session.add_product(make_product("Z", stock=0))
        [note] = session.notifications.drain()
        assert note.message == "Product is out of stock"


class TestSessionEviction:
    def _registry(self, stores, minutes=30):
        registry = PosSessionRegistry(Settings(session_idle_minutes=minutes))
        for owner in ("empty", "with-cart"):
            registry.get_or_create(owner, stores).last_used = 0.0
        registry.get("with-cart").cart.add_line(make_product("A"))
        return registry

    def test_idle_empty_sessions_are_dropped(self, stores):
        registry = self._registry(stores)
        assert registry.evict_idle(now=31 * 60) == 1
        assert registry.get("empty") is None
        assert registry.get("with-cart") is not None

    def test_recent_sessions_are_kept(self, stores):
        registry = self._registry(stores)
        assert registry.evict_idle(now=29 * 60) == 0
        assert len(registry) == 2

    def test_zero_disables_eviction(self, stores):
        registry = self._registry(stores, minutes=0)
        assert registry.evict_idle(now=10**9) == 0

    def test_lookup_refreshes_last_used(self, stores):
        registry = self._registry(stores)
        registry.get_or_create("empty", stores)
        assert registry.evict_idle(now=31 * 60) == 0


@pytest.mark.anyio
class TestCatalogSync:
    async def test_refreshes_idle_sessions_only(self, stores, products):
        registry = PosSessionRegistry(Settings(order_size_threshold_bytes=10))
        idle = registry.get_or_create("idle-owner", stores)
        busy = registry.get_or_create("busy-owner", stores)
        await idle.ensure_catalog()
        await busy.ensure_catalog()
        busy.add_product(products[0])
        await busy.engine.checkout(busy.cart, busy.catalog)

        stores.catalog.products["A"].stock = 99
        refreshed = await sync_catalog_snapshots_once(registry)

        assert refreshed == 1
        assert idle.catalog.get("A").stock == 99
        assert busy.catalog.get("A").stock == 10

    async def test_shared_store_read(self, stores):
        registry = PosSessionRegistry(Settings())
        registry.get_or_create("o1", stores)
        registry.get_or_create("o2", stores)
        assert await sync_catalog_snapshots_once(registry, stores.catalog) == 2
        assert all(s.catalog_loaded and len(s.catalog) == 3 for s in registry)

    async def test_no_sessions(self):
        assert await sync_catalog_snapshots_once(PosSessionRegistry(Settings())) == 0
