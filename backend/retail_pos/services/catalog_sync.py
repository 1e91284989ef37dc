# retail_pos/services/catalog_sync.py
from __future__ import annotations

import logging
from typing import Optional

from retail_pos.repositories.base import CatalogStore
from retail_pos.services.pos_session import PosSessionRegistry

logger = logging.getLogger("pos.catalog")


async def sync_catalog_snapshots_once(registry: PosSessionRegistry, store: Optional[CatalogStore] = None) -> int:
    """
    Reload the catalog snapshot of every idle POS session.
    Sessions with a checkout in flight keep their snapshot until it finishes.
    Returns the number of refreshed sessions.
    """
    products = None
    refreshed = 0
    for session in registry:
        if not session.engine.is_idle:
            continue
        if store is None:
            await session.refresh_catalog()
        else:
            # one read shared by every session
            if products is None:
                products = await store.list_all()
            session.catalog.replace(products)
            session.catalog_loaded = True
        refreshed += 1
    if refreshed:
        logger.info("Refreshed catalog snapshot for %d POS session(s)", refreshed)
    return refreshed
