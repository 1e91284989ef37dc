"""
retail_pos/services/checkout.py - Size-aware checkout engine.

State machine
-------------
    IDLE --checkout(), cart non-empty--> ESTIMATING
    ESTIMATING --size < threshold--> NORMAL_CHECKOUT --> IDLE
    ESTIMATING --size >= threshold--> CONFIRMING_SPLIT
    CONFIRMING_SPLIT --confirm_split()--> SPLIT_CHECKOUT --> IDLE
    CONFIRMING_SPLIT --decline_split()--> IDLE (cart intact)

Lines whose quantity exceeds the snapshot stock are rejected before any write.
Any store failure returns the engine to IDLE with the cart untouched and one
error notification. Writes are best-effort and at-least-once: there is no
cross-document transaction, nothing is retried, and chunks written before a
failure stay as valid standalone orders (each one carries its chunk index and
count). The first failing chunk aborts the remaining ones; the raised failure
lists the order ids that did commit.

Stock decrements are computed from the catalog snapshot passed in by the
caller. In "set" mode two sessions selling the same product at the same time
race (last write wins); "increment" mode hands the arithmetic to the store.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional

from retail_pos.core.errors import (
    CheckoutInProgressError,
    EmptyCartError,
    InsufficientStockError,
    NoPendingSplitError,
    OrderWriteFailure,
    PayloadTooLargeError,
    RelationshipWriteFailure,
    StockUpdateFailure,
    StoreWriteFailure,
)
from retail_pos.repositories.base import Stores
from retail_pos.schemas.checkout import CheckoutOutcome, Notification
from retail_pos.schemas.order import OrderDraft
from retail_pos.services.cart import Cart
from retail_pos.services.catalog import CatalogSnapshot
from retail_pos.services.notifications import Notifier
from retail_pos.services.orders import build_order_draft, build_relationship
from retail_pos.services.receipt import format_currency, present
from retail_pos.services.sizing import check_order_size, split_into_chunks
from retail_pos.services.stock import StockWriteMode, reconcile_stock

logger = logging.getLogger("pos.checkout")

DEFAULT_SIZE_THRESHOLD_BYTES = 900_000
DEFAULT_MAX_ITEMS_PER_CHUNK = 30


class CheckoutState(str, Enum):
    IDLE = "idle"
    ESTIMATING = "estimating"
    NORMAL_CHECKOUT = "normal_checkout"
    CONFIRMING_SPLIT = "confirming_split"
    SPLIT_CHECKOUT = "split_checkout"


class CheckoutEngine:
    def __init__(
        self,
        stores: Stores,
        notifier: Notifier,
        *,
        user_id: Optional[str] = None,
        size_threshold_bytes: int = DEFAULT_SIZE_THRESHOLD_BYTES,
        max_items_per_chunk: int = DEFAULT_MAX_ITEMS_PER_CHUNK,
        stock_write_mode: StockWriteMode = "set",
        currency_symbol: str = "₱",
    ):
        self._stores = stores
        self._notifier = notifier
        self.user_id = user_id
        self.size_threshold_bytes = size_threshold_bytes
        self.max_items_per_chunk = max_items_per_chunk
        self.stock_write_mode = stock_write_mode
        self.currency_symbol = currency_symbol
        self._state = CheckoutState.IDLE
        self._pending_size: Optional[int] = None

    @property
    def state(self) -> CheckoutState:
        return self._state

    @property
    def is_idle(self) -> bool:
        return self._state is CheckoutState.IDLE

    # ---------- notifications ----------
    def _notify(self, level, title: str, message: str) -> None:
        self._notifier.notify(Notification(level=level, title=title, message=message))

    def _report_failure(self, exc: StoreWriteFailure) -> None:
        logger.error(
            "Checkout failed during %s write (chunk=%s, committed=%s): %s",
            exc.phase, exc.chunk_index, exc.committed_order_ids, exc,
        )
        message = "Failed to process checkout"
        if exc.committed_order_ids:
            message += (
                f". {len(exc.committed_order_ids)} order(s) were already recorded: "
                + ", ".join(exc.committed_order_ids)
            )
        self._notify("error", "Error", message)

    def _check_stock(self, cart: Cart, catalog: CatalogSnapshot) -> None:
        """Every line must still fit in the snapshot stock; runs before any store write."""
        for line in cart.lines:
            product = catalog.get(line.product_id)
            if product is not None and line.quantity > product.stock:
                exc = InsufficientStockError(
                    line.product_id,
                    line.quantity,
                    product.stock,
                    f"Not enough stock for {line.name}: {product.stock} left, {line.quantity} in cart",
                )
                logger.warning("Checkout rejected: %s", exc)
                self._notify("error", "Error", exc.user_message)
                raise exc

    # ---------- entry points ----------
    async def checkout(self, cart: Cart, catalog: CatalogSnapshot, payment_tendered=0) -> CheckoutOutcome:
        if not self.is_idle:
            self._notify("error", "Error", CheckoutInProgressError.user_message)
            raise CheckoutInProgressError()
        if cart.is_empty:
            self._notify("error", "Error", EmptyCartError.user_message)
            raise EmptyCartError()
        self._check_stock(cart, catalog)

        self._state = CheckoutState.ESTIMATING
        try:
            draft = build_order_draft(cart.lines, cart.tax_rate, user_id=self.user_id)
            try:
                size = check_order_size(draft, self.size_threshold_bytes)
            except PayloadTooLargeError as signal:
                return self._ask_for_split(cart, signal)

            self._state = CheckoutState.NORMAL_CHECKOUT
            return await self._normal_checkout(cart, catalog, draft, size, payment_tendered)
        except StoreWriteFailure as exc:
            self._report_failure(exc)
            raise
        except Exception:
            logger.exception("Unexpected error during checkout")
            self._notify("error", "Error", "Failed to process checkout")
            raise
        finally:
            if self._state is not CheckoutState.CONFIRMING_SPLIT:
                self._state = CheckoutState.IDLE

    async def confirm_split(self, cart: Cart, catalog: CatalogSnapshot, payment_tendered=0) -> CheckoutOutcome:
        if self._state is not CheckoutState.CONFIRMING_SPLIT:
            self._notify("error", "Error", NoPendingSplitError.user_message)
            raise NoPendingSplitError()
        if cart.is_empty:
            self._state = CheckoutState.IDLE
            self._notify("error", "Error", EmptyCartError.user_message)
            raise EmptyCartError()
        try:
            self._check_stock(cart, catalog)
        except InsufficientStockError:
            self._state = CheckoutState.IDLE
            self._pending_size = None
            raise

        self._state = CheckoutState.SPLIT_CHECKOUT
        try:
            return await self._split_checkout(cart, catalog, payment_tendered)
        except StoreWriteFailure as exc:
            self._report_failure(exc)
            raise
        except Exception:
            logger.exception("Unexpected error during split checkout")
            self._notify("error", "Error", "Failed to process large order")
            raise
        finally:
            self._state = CheckoutState.IDLE
            self._pending_size = None

    def decline_split(self) -> CheckoutOutcome:
        if self._state is not CheckoutState.CONFIRMING_SPLIT:
            raise NoPendingSplitError()
        size = self._pending_size
        self._state = CheckoutState.IDLE
        self._pending_size = None
        logger.info("Split checkout declined (estimated %s bytes)", size)
        return CheckoutOutcome(status="declined", size_bytes=size)

    # ---------- phases ----------
    def _ask_for_split(self, cart: Cart, signal: PayloadTooLargeError) -> CheckoutOutcome:
        self._state = CheckoutState.CONFIRMING_SPLIT
        self._pending_size = signal.size_bytes
        logger.info(
            "Order of %d lines estimated at %d bytes (threshold %d); asking to split",
            len(cart), signal.size_bytes, signal.threshold_bytes,
        )
        self._notify(
            "confirm",
            "Large Order Detected",
            f"Your order contains {len(cart)} items and is too large to process as a single "
            "transaction. Would you like to split it into multiple smaller orders?",
        )
        return CheckoutOutcome(
            status="confirmation_required",
            size_bytes=signal.size_bytes,
            item_count=cart.item_count,
        )

    async def _save_order(self, draft: OrderDraft, committed: List[str]) -> str:
        try:
            return await self._stores.orders.save(draft)
        except Exception as exc:
            where = f" chunk {draft.chunk_index}/{draft.total_chunks}" if draft.is_split_order else ""
            raise OrderWriteFailure(
                f"Failed to save order{where}: {exc}",
                chunk_index=draft.chunk_index,
                committed_order_ids=committed,
            ) from exc

    async def _normal_checkout(
        self, cart: Cart, catalog: CatalogSnapshot, draft: OrderDraft, size: int, payment_tendered
    ) -> CheckoutOutcome:
        order_id = await self._save_order(draft, committed=[])
        try:
            await reconcile_stock(cart.lines, catalog, self._stores.catalog, mode=self.stock_write_mode)
        except StockUpdateFailure as exc:
            exc.committed_order_ids = [order_id]
            raise

        total = cart.get_total()
        receipt = present(draft, payment_tendered, order_id=order_id, items=cart.snapshot())
        item_count = cart.item_count
        cart.clear()
        logger.info("Checkout %s completed: %d lines, total %s", order_id, len(draft.items), total)
        self._notify("success", "Checkout Successful", f"Total: {format_currency(total, self.currency_symbol)}")
        return CheckoutOutcome(
            status="completed",
            order_ids=[order_id],
            size_bytes=size,
            item_count=item_count,
            receipt=receipt,
        )

    async def _split_checkout(self, cart: Cart, catalog: CatalogSnapshot, payment_tendered) -> CheckoutOutcome:
        lines = cart.lines
        chunks = split_into_chunks(lines, self.max_items_per_chunk)
        total_chunks = len(chunks)
        order_ids: List[str] = []
        first_draft: Optional[OrderDraft] = None

        for index, chunk in enumerate(chunks, start=1):
            draft = build_order_draft(
                chunk, cart.tax_rate, user_id=self.user_id, chunk_index=index, total_chunks=total_chunks
            )
            order_ids.append(await self._save_order(draft, committed=order_ids))
            if first_draft is None:
                first_draft = draft
            try:
                await reconcile_stock(
                    chunk, catalog, self._stores.catalog, mode=self.stock_write_mode, chunk_index=index
                )
            except StockUpdateFailure as exc:
                exc.committed_order_ids = list(order_ids)
                raise
            logger.debug("Chunk %d/%d committed as order %s", index, total_chunks, order_ids[-1])

        total = cart.get_total()
        relationship = build_relationship(order_ids, total, user_id=self.user_id)
        try:
            relationship_id = await self._stores.relationships.save(relationship)
        except Exception as exc:
            raise RelationshipWriteFailure(
                f"Failed to link split orders: {exc}", committed_order_ids=order_ids
            ) from exc

        receipt = present(
            first_draft,
            payment_tendered,
            order_id=order_ids[0],
            items=cart.snapshot(),
            total=total,
            total_chunks=total_chunks,
        )
        item_count = cart.item_count
        cart.clear()
        logger.info(
            "Split checkout completed: %d chunks %s linked by %s, total %s",
            total_chunks, order_ids, relationship_id, total,
        )
        self._notify(
            "success",
            "Order Processed Successfully",
            f"Your large order was split into {total_chunks} separate transactions for processing.",
        )
        return CheckoutOutcome(
            status="split_completed",
            order_ids=order_ids,
            relationship_id=relationship_id,
            size_bytes=self._pending_size,
            item_count=item_count,
            receipt=receipt,
        )
