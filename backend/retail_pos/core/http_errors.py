# retail_pos/core/http_errors.py
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status

from retail_pos.core.errors import (
    CartLineNotFoundError,
    CheckoutInProgressError,
    EmptyCartError,
    InsufficientStockError,
    NoPendingSplitError,
    PosError,
    StockUpdateFailure,
    StoreWriteFailure,
)
from retail_pos.schemas.checkout import Notification

_STATUS = [
    (EmptyCartError, status.HTTP_400_BAD_REQUEST),
    (CartLineNotFoundError, status.HTTP_404_NOT_FOUND),
    (InsufficientStockError, status.HTTP_409_CONFLICT),
    (CheckoutInProgressError, status.HTTP_409_CONFLICT),
    (NoPendingSplitError, status.HTTP_409_CONFLICT),
    (StoreWriteFailure, status.HTTP_502_BAD_GATEWAY),
]


def to_http(exc: PosError, notifications: Optional[List[Notification]] = None) -> HTTPException:
    """Translate a domain error into the HTTPException the routers raise."""
    code = next((c for kind, c in _STATUS if isinstance(exc, kind)), status.HTTP_400_BAD_REQUEST)
    detail: Dict[str, Any] = {"message": exc.user_message}
    if isinstance(exc, StoreWriteFailure):
        detail["message"] = StoreWriteFailure.user_message
        detail["phase"] = exc.phase
        detail["committed_order_ids"] = exc.committed_order_ids
        if isinstance(exc, StockUpdateFailure):
            detail["failed_product_ids"] = exc.failed_product_ids
    if isinstance(exc, InsufficientStockError):
        detail["product_id"] = exc.product_id
        detail["available"] = exc.available
    if notifications:
        detail["notifications"] = [n.model_dump() for n in notifications]
    return HTTPException(status_code=code, detail=detail)
