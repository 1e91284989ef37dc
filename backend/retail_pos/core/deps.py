# retail_pos/core/deps.py
import logging
from functools import lru_cache

from fastapi import Depends, HTTPException

from retail_pos.config import settings
from retail_pos.core.auth import require_owner
from retail_pos.repositories.base import Stores
from retail_pos.repositories.firestore_stores import build_firestore_stores
from retail_pos.schemas.principal import Principal
from retail_pos.services.pos_session import PosSession, PosSessionRegistry

logger = logging.getLogger("pos.session")

# One registry per process; the catalog refresh job walks the same instance
registry = PosSessionRegistry(settings)


@lru_cache(maxsize=1)
def get_stores() -> Stores:
    return build_firestore_stores()


def get_registry() -> PosSessionRegistry:
    return registry


async def get_session(
    principal: Principal = Depends(require_owner),
    stores: Stores = Depends(get_stores),
    sessions: PosSessionRegistry = Depends(get_registry),
) -> PosSession:
    session = sessions.get_or_create(principal.uid, stores)
    try:
        await session.ensure_catalog()
    except Exception as e:
        logger.exception("Catalog load failed for %s", principal.uid)
        raise HTTPException(status_code=502, detail=f"Failed to load products: {e}")
    return session
