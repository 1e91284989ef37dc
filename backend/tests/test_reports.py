"""Tests for report aggregation and split-order reassembly."""

from datetime import datetime, timedelta, timezone

import pytest

from retail_pos.schemas.order import OrderItem, OrderOut, OrderRelationshipOut
from retail_pos.services.reports import period_start, reassemble, sales_trend, summarize

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)  # a Friday


def _order(oid, total, items=(), days_ago=0, chunk_index=None):
    return OrderOut(
        id=oid,
        items=[OrderItem(id=i, name=f"Item {i}", price=p, quantity=q) for i, p, q in items],
        subtotal=total,
        total=total,
        created_at=NOW - timedelta(days=days_ago),
        user_id="u1",
        is_split_order=chunk_index is not None,
        chunk_index=chunk_index,
        total_chunks=2 if chunk_index else None,
    )


def _relationship(order_ids, total):
    return OrderRelationshipOut(
        id="rel-1", order_ids=order_ids, total_orders=len(order_ids), total_amount=total, user_id="u1"
    )


class TestSummarize:
    def test_empty(self):
        summary = summarize([])
        assert summary.transactions == 0 and summary.total_sales == 0.0

    def test_headline_numbers(self):
        orders = [
            _order("o1", 30.0, [("A", 10.0, 3)]),
            _order("o2", 70.0, [("A", 10.0, 2), ("B", 25.0, 2)]),
        ]
        summary = summarize(orders)
        assert summary.total_sales == 100.0
        assert summary.transactions == 2
        assert summary.avg_transaction == 50.0
        assert summary.items_sold == 7
        assert [(t.id, t.quantity, t.total) for t in summary.top_products] == [("A", 5, 50.0), ("B", 2, 50.0)]

    def test_split_chunks_count_as_one_transaction(self):
        orders = [
            _order("c1", 40.0, [("A", 10.0, 4)], chunk_index=1),
            _order("c2", 20.0, [("B", 10.0, 2)], chunk_index=2),
            _order("o3", 60.0, [("A", 10.0, 6)]),
        ]
        summary = summarize(orders, [_relationship(["c1", "c2"], 60.0)])
        assert summary.transactions == 2
        assert summary.avg_transaction == 60.0

    def test_top_products_capped_at_ten(self):
        items = [(f"p{i}", 1.0, i + 1) for i in range(15)]
        summary = summarize([_order("o1", 120.0, items)])
        assert len(summary.top_products) == 10
        assert summary.top_products[0].id == "p14"


class TestSalesTrend:
    def test_daily_has_seven_weekday_buckets(self):
        orders = [_order("o1", 10.0), _order("o2", 5.0), _order("o3", 7.0, days_ago=6), _order("o4", 99.0, days_ago=7)]
        points = sales_trend(orders, "daily", NOW)
        assert len(points) == 7
        assert points[-1].date == "Fri" and points[-1].amount == 15.0
        assert points[0].date == "Sat" and points[0].amount == 7.0
        assert sum(p.amount for p in points) == 22.0

    def test_weekly_windows_end_today(self):
        orders = [_order("o1", 10.0, days_ago=0), _order("o2", 20.0, days_ago=7), _order("o3", 40.0, days_ago=27)]
        points = sales_trend(orders, "weekly", NOW)
        assert [p.date for p in points] == ["Week 1", "Week 2", "Week 3", "Week 4"]
        assert [p.amount for p in points] == [40.0, 0.0, 20.0, 10.0]

    def test_monthly_spans_six_months_across_year_end(self):
        orders = [_order("o1", 10.0), _order("o2", 3.0, days_ago=80)]
        points = sales_trend(orders, "monthly", NOW)
        assert [p.date for p in points] == ["Oct", "Nov", "Dec", "Jan", "Feb", "Mar"]
        assert points[-1].amount == 10.0
        assert points[3].amount == 0.0
        assert points[2].amount == 3.0

    def test_unknown_period(self):
        with pytest.raises(ValueError):
            sales_trend([], "yearly", NOW)

    @pytest.mark.parametrize("period, expected", [
        ("daily", datetime(2024, 3, 9, tzinfo=timezone.utc)),
        ("weekly", datetime(2024, 2, 17, tzinfo=timezone.utc)),
        ("monthly", datetime(2023, 10, 1, tzinfo=timezone.utc)),
    ])
    def test_period_start(self, period, expected):
        assert period_start(period, NOW) == expected


class TestReassemble:
    def test_chunks_come_back_in_chunk_order(self):
        rel = _relationship(["c1", "c2"], 60.0)
        result = reassemble(rel, [_order("c2", 20.0, chunk_index=2), _order("c1", 40.0, chunk_index=1)])
        assert [o.id for o in result.orders] == ["c1", "c2"]
        assert result.complete
        assert result.orders_total == 60.0

    def test_missing_chunk_is_flagged(self):
        rel = _relationship(["c1", "c2"], 60.0)
        result = reassemble(rel, [_order("c1", 40.0, chunk_index=1), None])
        assert not result.complete
        assert result.missing_order_ids == ["c2"]
