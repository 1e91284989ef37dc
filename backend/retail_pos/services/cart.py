# retail_pos/services/cart.py
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional

from retail_pos.core.errors import CartLineNotFoundError, InsufficientStockError, OutOfStockError
from retail_pos.schemas.cart import CartLine
from retail_pos.schemas.product import Product

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def lines_subtotal(lines: List[CartLine]) -> Decimal:
    return to_money(sum((Decimal(str(ln.unit_price)) * ln.quantity for ln in lines), Decimal("0")))


def tax_for(subtotal: Decimal, tax_rate) -> Decimal:
    return to_money(subtotal * Decimal(str(tax_rate)))


class Cart:
    """
    In-memory cart of the active POS session.

    Every mutation keeps `1 <= quantity <= available_stock`; nothing here talks
    to a store.
    """

    def __init__(self, tax_rate: float = 0.0):
        self.tax_rate = tax_rate
        self._lines: List[CartLine] = []
        self._by_product: Dict[str, CartLine] = {}

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def item_count(self) -> int:
        return sum(ln.quantity for ln in self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def line_at(self, index: int) -> CartLine:
        if index < 0 or index >= len(self._lines):
            raise CartLineNotFoundError(index)
        return self._lines[index]

    def add_line(self, product: Product, qty: int = 1) -> CartLine:
        if qty < 1:
            raise ValueError("qty must be >= 1")
        if product.stock <= 0:
            raise OutOfStockError(product.id)

        existing = self._by_product.get(product.id)
        if existing is not None:
            wanted = existing.quantity + qty
            if wanted > product.stock:
                raise InsufficientStockError(product.id, wanted, product.stock)
            existing.quantity = wanted
            existing.available_stock = product.stock
            return existing

        if qty > product.stock:
            raise InsufficientStockError(product.id, qty, product.stock)
        line = CartLine(
            product_id=product.id,
            name=product.name,
            unit_price=product.price,
            quantity=qty,
            available_stock=product.stock,
        )
        self._lines.append(line)
        self._by_product[line.product_id] = line
        return line

    def increase(self, index: int, product: Optional[Product] = None) -> CartLine:
        """
        Add one unit. `product` is the current catalog entry; when given, its
        stock replaces the value cached on the line before the bound is checked.
        """
        line = self.line_at(index)
        if product is not None:
            line.available_stock = product.stock
        if line.quantity + 1 > line.available_stock:
            raise InsufficientStockError(line.product_id, line.quantity + 1, line.available_stock)
        line.quantity += 1
        return line

    def decrease(self, index: int) -> None:
        line = self.line_at(index)
        if line.quantity > 1:
            line.quantity -= 1
        else:
            self.remove(index)

    def remove(self, index: int) -> CartLine:
        line = self.line_at(index)
        del self._lines[index]
        self._by_product.pop(line.product_id, None)
        return line

    def clear(self) -> None:
        self._lines = []
        self._by_product = {}

    def snapshot(self) -> List[CartLine]:
        return [ln.model_copy() for ln in self._lines]

    def get_subtotal(self) -> Decimal:
        return lines_subtotal(self._lines)

    def get_tax(self) -> Decimal:
        return tax_for(self.get_subtotal(), self.tax_rate)

    def get_total(self) -> Decimal:
        return self.get_subtotal() + self.get_tax()
