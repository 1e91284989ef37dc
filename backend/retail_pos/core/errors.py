"""
retail_pos/core/errors.py - Exception taxonomy for the cart and checkout flow.

Cart errors are raised inline and never touch the stores. Store failures are
raised by the checkout engine at the phase boundary (order write, stock update,
relationship write) with enough context to tell which writes already committed.
"""
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple


class PosError(Exception):
    """Base class for every error raised by the POS domain."""

    #: Message shown to the cashier.
    user_message: str = "Something went wrong."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.user_message)
        if message:
            self.user_message = message


class EmptyCartError(PosError):
    user_message = "Cart is empty"


class InsufficientStockError(PosError):
    user_message = "Not enough stock available"

    def __init__(self, product_id: str, requested: int, available: int, message: Optional[str] = None):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(message)


class OutOfStockError(InsufficientStockError):
    user_message = "Product is out of stock"

    def __init__(self, product_id: str, message: Optional[str] = None):
        super().__init__(product_id, requested=1, available=0, message=message)


class CartLineNotFoundError(PosError, IndexError):
    user_message = "Item not found in cart."

    def __init__(self, index: int):
        self.index = index
        super().__init__()


class CheckoutInProgressError(PosError):
    user_message = "A checkout is already in progress."


class NoPendingSplitError(PosError):
    user_message = "There is no large order waiting for a split confirmation."


class PayloadTooLargeError(PosError):
    """Internal signal: the order would not fit in one document. Never shown as a failure."""

    def __init__(self, size_bytes: int, threshold_bytes: int):
        self.size_bytes = size_bytes
        self.threshold_bytes = threshold_bytes
        super().__init__(f"Order payload of {size_bytes} bytes reaches the {threshold_bytes}-byte threshold")


class StoreWriteFailure(PosError):
    """A store write failed; `phase` names the checkout step that was running."""

    phase: str = "store"
    user_message = "Failed to process checkout"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        chunk_index: Optional[int] = None,
        committed_order_ids: Sequence[str] = (),
    ):
        self.chunk_index = chunk_index
        self.committed_order_ids: List[str] = list(committed_order_ids)
        super().__init__(message)

    @property
    def partially_committed(self) -> bool:
        return bool(self.committed_order_ids)


class OrderWriteFailure(StoreWriteFailure):
    phase = "order"


class StockUpdateFailure(StoreWriteFailure):
    phase = "stock"

    def __init__(
        self,
        failures: Sequence[Tuple[str, BaseException]],
        message: Optional[str] = None,
        **kwargs,
    ):
        # (product_id, cause) for every decrement that did not land
        self.failures = list(failures)
        super().__init__(message, **kwargs)

    @property
    def failed_product_ids(self) -> List[str]:
        return [pid for pid, _ in self.failures]


class RelationshipWriteFailure(StoreWriteFailure):
    phase = "relationship"
