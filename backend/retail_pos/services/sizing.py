"""
retail_pos/services/sizing.py - Order payload size estimation and chunking.

Firestore rejects documents above 1,048,576 bytes. Before writing an order the
checkout engine serializes the minimized draft the same way the client would and
compares its byte length against a threshold kept well below that ceiling, to
leave room for the fields the backend adds (server timestamps, index entries).

Chunking is by line count, not bytes: minimized lines are close to uniform in
size, so a fixed cap per chunk keeps every chunk far below the ceiling in
practice. It is an approximation, not a per-chunk guarantee.
"""
from __future__ import annotations

import json
import logging
from typing import List, Sequence, TypeVar

from retail_pos.core.errors import PayloadTooLargeError
from retail_pos.schemas.order import OrderDraft

logger = logging.getLogger("pos.checkout")

T = TypeVar("T")


def estimate_order_size(draft: OrderDraft) -> int:
    """UTF-8 byte length of the compact JSON encoding of the draft."""
    payload = json.dumps(draft.model_dump(mode="json", exclude_none=True), separators=(",", ":"), ensure_ascii=False)
    return len(payload.encode("utf-8"))


def check_order_size(draft: OrderDraft, threshold_bytes: int) -> int:
    """Return the estimated size, or raise PayloadTooLargeError when it reaches the threshold."""
    size = estimate_order_size(draft)
    logger.debug("Order size estimate: %d bytes (threshold %d)", size, threshold_bytes)
    if size >= threshold_bytes:
        raise PayloadTooLargeError(size, threshold_bytes)
    return size


def split_into_chunks(items: Sequence[T], max_items: int) -> List[List[T]]:
    if max_items < 1:
        raise ValueError("max_items must be >= 1")
    return [list(items[i:i + max_items]) for i in range(0, len(items), max_items)]
