# retail_pos/services/reports.py
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from retail_pos.schemas.order import OrderOut, OrderRelationshipOut
from retail_pos.schemas.report import ReportPeriod, ReportSummary, SalesPoint, SplitOrderOut, TopProduct
from retail_pos.services.cart import to_money

TOP_PRODUCTS_LIMIT = 10


def _order_date(order: OrderOut) -> date:
    created = order.created_at
    if created.tzinfo is not None:
        created = created.astimezone(timezone.utc)
    return created.date()


def _sum_totals(orders: Iterable[OrderOut]) -> float:
    return float(to_money(sum((Decimal(str(o.total)) for o in orders), Decimal("0"))))


def summarize(orders: Sequence[OrderOut], relationships: Sequence[OrderRelationshipOut] = ()) -> ReportSummary:
    """
    Headline numbers for the reports page.
    Chunk orders linked by a relationship count as a single transaction.
    """
    if not orders:
        return ReportSummary()

    group_of: Dict[str, str] = {}
    for rel in relationships:
        for oid in rel.order_ids:
            group_of[oid] = f"rel:{rel.id}"
    transactions = len({group_of.get(o.id, o.id) for o in orders})

    total_sales = _sum_totals(orders)
    items_sold = sum(it.quantity for o in orders for it in o.items)

    products: Dict[str, Dict] = {}
    for o in orders:
        for it in o.items:
            entry = products.setdefault(it.id, {"name": it.name, "quantity": 0, "total": Decimal("0")})
            entry["name"] = it.name
            entry["quantity"] += it.quantity
            entry["total"] += Decimal(str(it.price)) * it.quantity

    top = sorted(products.items(), key=lambda kv: kv[1]["quantity"], reverse=True)[:TOP_PRODUCTS_LIMIT]
    return ReportSummary(
        total_sales=total_sales,
        transactions=transactions,
        avg_transaction=float(to_money(Decimal(str(total_sales)) / transactions)) if transactions else 0.0,
        items_sold=items_sold,
        top_products=[
            TopProduct(id=pid, name=v["name"], quantity=v["quantity"], total=float(to_money(v["total"])))
            for pid, v in top
        ],
    )


def sales_trend(orders: Sequence[OrderOut], period: ReportPeriod, now: Optional[datetime] = None) -> List[SalesPoint]:
    """
    daily   → last 7 days, labelled by weekday
    weekly  → last 4 weeks (7-day windows ending today), "Week 1".."Week 4"
    monthly → last 6 calendar months, labelled by month
    """
    today = (now or datetime.now(timezone.utc)).date()
    dated = [(_order_date(o), o) for o in orders]
    points: List[SalesPoint] = []

    if period == "daily":
        for i in range(6, -1, -1):
            day = today - timedelta(days=i)
            points.append(SalesPoint(
                date=day.strftime("%a"),
                amount=_sum_totals(o for d, o in dated if d == day),
            ))
    elif period == "weekly":
        for i in range(3, -1, -1):
            end = today - timedelta(days=7 * i)
            start = end - timedelta(days=6)
            points.append(SalesPoint(
                date=f"Week {4 - i}",
                amount=_sum_totals(o for d, o in dated if start <= d <= end),
            ))
    elif period == "monthly":
        for i in range(5, -1, -1):
            year, month = today.year, today.month - i
            while month < 1:
                month += 12
                year -= 1
            points.append(SalesPoint(
                date=date(year, month, 1).strftime("%b"),
                amount=_sum_totals(o for d, o in dated if d.year == year and d.month == month),
            ))
    else:
        raise ValueError(f"Unknown report period: {period}")
    return points


def period_start(period: ReportPeriod, now: Optional[datetime] = None) -> datetime:
    """Earliest created_at a trend for `period` can include."""
    now = now or datetime.now(timezone.utc)
    today = datetime(now.year, now.month, now.day, tzinfo=timezone.utc)
    if period == "daily":
        return today - timedelta(days=6)
    if period == "weekly":
        return today - timedelta(days=27)
    year, month = now.year, now.month - 5
    while month < 1:
        month += 12
        year -= 1
    return datetime(year, month, 1, tzinfo=timezone.utc)


def reassemble(relationship: OrderRelationshipOut, orders: Iterable[Optional[OrderOut]]) -> SplitOrderOut:
    """Put the chunks of a split checkout back together, in chunk order."""
    found = {o.id: o for o in orders if o is not None}
    missing = [oid for oid in relationship.order_ids if oid not in found]
    ordered = sorted(
        (found[oid] for oid in relationship.order_ids if oid in found),
        key=lambda o: o.chunk_index or 0,
    )
    return SplitOrderOut(
        relationship=relationship,
        orders=ordered,
        missing_order_ids=missing,
        complete=not missing,
        orders_total=_sum_totals(ordered),
    )
