# retail_pos/services/pos_session.py
from __future__ import annotations

import logging
import time
from typing import Dict, Iterator, Optional

from retail_pos.config import Settings
from retail_pos.core.errors import CheckoutInProgressError, InsufficientStockError, OutOfStockError
from retail_pos.repositories.base import CatalogStore, Stores
from retail_pos.schemas.cart import CartLine, CartOut
from retail_pos.schemas.checkout import Notification, Receipt
from retail_pos.schemas.product import Product
from retail_pos.services.cart import Cart
from retail_pos.services.catalog import CatalogSnapshot
from retail_pos.services.checkout import CheckoutEngine
from retail_pos.services.notifications import NotificationLog

logger = logging.getLogger("pos.session")


class PosSession:
    """Cart, catalog snapshot and checkout engine of one signed-in business owner."""

    def __init__(self, owner_id: str, stores: Stores, cfg: Settings):
        self.owner_id = owner_id
        self.stores = stores
        self.notifications = NotificationLog()
        self.cart = Cart(tax_rate=cfg.tax_rate)
        self.catalog = CatalogSnapshot()
        self.catalog_loaded = False
        self.last_receipt: Optional[Receipt] = None
        self.last_used = time.monotonic()
        self.engine = CheckoutEngine(
            stores,
            self.notifications,
            user_id=owner_id,
            size_threshold_bytes=cfg.order_size_threshold_bytes,
            max_items_per_chunk=cfg.max_items_per_chunk,
            stock_write_mode=cfg.stock_write_mode,
            currency_symbol=cfg.currency_symbol,
        )

    def touch(self) -> None:
        self.last_used = time.monotonic()

    @property
    def is_disposable(self) -> bool:
        """Nothing would be lost by dropping this session."""
        return self.engine.is_idle and self.cart.is_empty

    def ensure_idle(self) -> None:
        """Cart edits are frozen while a checkout (or its split confirmation) is pending."""
        if not self.engine.is_idle:
            raise CheckoutInProgressError()

    async def refresh_catalog(self, store: Optional[CatalogStore] = None) -> int:
        products = await (store or self.stores.catalog).list_all()
        self.catalog.replace(products)
        self.catalog_loaded = True
        logger.debug("Catalog snapshot for %s refreshed: %d products", self.owner_id, len(products))
        return len(products)

    async def ensure_catalog(self) -> None:
        if not self.catalog_loaded:
            await self.refresh_catalog()

    def cart_out(self) -> CartOut:
        return CartOut(
            items=self.cart.snapshot(),
            item_count=self.cart.item_count,
            subtotal=float(self.cart.get_subtotal()),
            tax=float(self.cart.get_tax()),
            total=float(self.cart.get_total()),
            checkout_state=self.engine.state.value,
        )

    def _stock_alert(self, exc: InsufficientStockError) -> None:
        self.notifications.notify(Notification(level="error", title="Error", message=exc.user_message))

    def add_product(self, product: Product, qty: int = 1) -> CartLine:
        self.ensure_idle()
        try:
            return self.cart.add_line(product, qty)
        except InsufficientStockError as exc:
            self._stock_alert(exc)
            raise

    def increase(self, index: int) -> CartLine:
        """One more unit of a line, bounded by the stock currently in the snapshot."""
        self.ensure_idle()
        line = self.cart.line_at(index)
        product = self.catalog.get(line.product_id)
        try:
            if product is None:
                raise OutOfStockError(line.product_id)
            return self.cart.increase(index, product)
        except InsufficientStockError as exc:
            self._stock_alert(exc)
            raise


class PosSessionRegistry:
    """
    Process-local sessions keyed by owner uid. Sessions with an empty cart and
    no pending checkout are dropped after `SESSION_IDLE_MINUTES` without requests.
    """

    def __init__(self, cfg: Settings):
        self._cfg = cfg
        self._sessions: Dict[str, PosSession] = {}

    def get_or_create(self, owner_id: str, stores: Stores) -> PosSession:
        session = self._sessions.get(owner_id)
        if session is None:
            session = PosSession(owner_id, stores, self._cfg)
            self._sessions[owner_id] = session
        session.touch()
        return session

    def get(self, owner_id: str) -> Optional[PosSession]:
        return self._sessions.get(owner_id)

    def evict_idle(self, now: Optional[float] = None) -> int:
        """Drop disposable sessions unused for longer than the idle limit; returns how many."""
        max_idle = self._cfg.session_idle_minutes * 60
        if max_idle <= 0:
            return 0
        now = time.monotonic() if now is None else now
        stale = [
            owner_id for owner_id, session in self._sessions.items()
            if session.is_disposable and now - session.last_used > max_idle
        ]
        for owner_id in stale:
            del self._sessions[owner_id]
        if stale:
            logger.info("Evicted %d idle POS session(s)", len(stale))
        return len(stale)

    def __iter__(self) -> Iterator[PosSession]:
        return iter(list(self._sessions.values()))

    def __len__(self) -> int:
        return len(self._sessions)
