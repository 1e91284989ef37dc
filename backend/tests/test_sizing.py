"""Tests for payload size estimation, order drafts and chunking."""

import json

import pytest

from conftest import make_product
from retail_pos.core.errors import PayloadTooLargeError
from retail_pos.services.cart import Cart
from retail_pos.services.orders import build_order_draft, build_relationship, minimize_items
from retail_pos.services.sizing import check_order_size, estimate_order_size, split_into_chunks


def _lines(n, **kw):
    cart = Cart(tax_rate=0.12)
    for i in range(n):
        cart.add_line(make_product(f"p{i}", **kw))
    return cart.lines


class TestMinimize:
    def test_only_reporting_fields_survive(self):
        cart = Cart()
        cart.add_line(make_product("A", price=5.0, image="https://cdn.example.com/a.png"), 2)
        item = minimize_items(cart.lines)[0]
        assert item.model_dump() == {"id": "A", "name": "Product A", "price": 5.0, "quantity": 2}

    def test_order_preserved(self):
        assert [it.id for it in minimize_items(_lines(4))] == ["p0", "p1", "p2", "p3"]


class TestOrderDraft:
    def test_whole_cart_draft_is_not_split(self):
        draft = build_order_draft(_lines(2), 0.12, user_id="u1")
        assert draft.is_split_order is False
        assert draft.chunk_index is None and draft.total_chunks is None
        assert "chunk_index" not in draft.to_doc()
        assert draft.status == "completed"

    def test_chunk_draft_carries_position(self):
        draft = build_order_draft(_lines(2), 0.12, chunk_index=2, total_chunks=3)
        assert draft.is_split_order is True
        assert (draft.chunk_index, draft.total_chunks) == (2, 3)

    def test_draft_totals(self):
        draft = build_order_draft(_lines(3, price=10.0), 0.12)
        assert (draft.subtotal, draft.tax, draft.total) == (30.0, 3.6, 33.6)

    def test_relationship(self):
        rel = build_relationship(["o1", "o2"], 12.5, user_id="u1")
        assert rel.total_orders == 2
        assert rel.total_amount == 12.5


class TestEstimate:
    def test_size_is_compact_json_bytes(self):
        draft = build_order_draft(_lines(3), 0.12)
        expected = json.dumps(draft.model_dump(mode="json", exclude_none=True), separators=(",", ":"))
        assert estimate_order_size(draft) == len(expected.encode("utf-8"))

    def test_multibyte_names_count_in_bytes(self):
        cart = Cart()
        cart.add_line(make_product("A", name="Ñandú café"))
        ascii_cart = Cart()
        ascii_cart.add_line(make_product("A", name="Nandu cafe"))
        assert estimate_order_size(build_order_draft(cart.lines, 0)) > estimate_order_size(
            build_order_draft(ascii_cart.lines, 0)
        )

    def test_size_grows_with_lines(self):
        small = estimate_order_size(build_order_draft(_lines(2), 0.12))
        big = estimate_order_size(build_order_draft(_lines(20), 0.12))
        assert big > small

    def test_threshold_is_inclusive(self):
        draft = build_order_draft(_lines(3), 0.12)
        size = estimate_order_size(draft)
        assert check_order_size(draft, size + 1) == size
        with pytest.raises(PayloadTooLargeError) as exc_info:
            check_order_size(draft, size)
        assert exc_info.value.size_bytes == size


class TestChunks:
    def test_65_items_cap_30(self):
        chunks = split_into_chunks(list(range(65)), 30)
        assert [len(c) for c in chunks] == [30, 30, 5]
        assert [x for c in chunks for x in c] == list(range(65))

    @pytest.mark.parametrize("n, cap, expected", [(0, 30, 0), (1, 30, 1), (30, 30, 1), (31, 30, 2), (90, 30, 3)])
    def test_chunk_count_is_ceiling(self, n, cap, expected):
        assert len(split_into_chunks(list(range(n)), cap)) == expected

    def test_cap_must_be_positive(self):
        with pytest.raises(ValueError):
            split_into_chunks([1], 0)
