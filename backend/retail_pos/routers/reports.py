"""
Sales reports for the signed-in business owner
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from retail_pos.core.auth import require_owner
from retail_pos.core.deps import get_stores
from retail_pos.repositories.base import Stores
from retail_pos.schemas.order import OrderOut
from retail_pos.schemas.principal import Principal
from retail_pos.schemas.report import ReportOut, ReportPeriod, SplitOrderOut
from retail_pos.services.reports import period_start, reassemble, sales_trend, summarize

logger = logging.getLogger("pos.reports")

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/summary", response_model=ReportOut)
async def get_summary(
    period: ReportPeriod = Query("daily", description="daily | weekly | monthly"),
    principal: Principal = Depends(require_owner),
    stores: Stores = Depends(get_stores),
):
    """
    Totals, top products and sales trend for the chosen period.
    Chunks of a split checkout count as one transaction.
    """
    now = datetime.now(timezone.utc)
    try:
        orders = await stores.orders.list_for_owner(principal.uid, since=period_start(period, now))
        relationships = await stores.relationships.list_for_owner(principal.uid)
    except Exception as e:
        logger.exception("Report query failed for %s", principal.uid)
        raise HTTPException(status_code=502, detail=f"Failed to load orders: {e}")

    summary = summarize(orders, relationships)
    return ReportOut(**summary.model_dump(), period=period, sales_trend=sales_trend(orders, period, now))


@router.get("/orders", response_model=List[OrderOut])
async def list_orders(
    since: Optional[datetime] = Query(None, description="Only orders created at or after this time"),
    principal: Principal = Depends(require_owner),
    stores: Stores = Depends(get_stores),
):
    return await stores.orders.list_for_owner(principal.uid, since=since)


@router.get("/split-orders/{relationship_id}", response_model=SplitOrderOut)
async def get_split_order(
    relationship_id: str,
    principal: Principal = Depends(require_owner),
    stores: Stores = Depends(get_stores),
):
    """
    One split checkout put back together: chunk orders in chunk order,
    plus the ids of chunks that could not be found.
    """
    relationship = await stores.relationships.get(relationship_id)
    if relationship is None or relationship.user_id != principal.uid:
        raise HTTPException(status_code=404, detail="Split order not found")

    orders = await asyncio.gather(*(stores.orders.get(oid) for oid in relationship.order_ids))
    result = reassemble(relationship, orders)
    if not result.complete:
        logger.warning("Split order %s is missing chunks %s", relationship_id, result.missing_order_ids)
    return result
