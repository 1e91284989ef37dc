# retail_pos/services/catalog.py
from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from retail_pos.schemas.product import Product


class CatalogSnapshot:
    """
    Last known product list of a POS session.

    Stock math during checkout reads from here rather than re-fetching, so the
    snapshot is passed to the checkout engine explicitly and updated in place
    after every successful stock write.
    """

    def __init__(self, products: Iterable[Product] = ()):
        self._products: Dict[str, Product] = {}
        self.replace(products)

    def replace(self, products: Iterable[Product]) -> None:
        self._products = {p.id: p.model_copy() for p in products}

    def __len__(self) -> int:
        return len(self._products)

    def __contains__(self, product_id: str) -> bool:
        return product_id in self._products

    def all(self) -> List[Product]:
        return list(self._products.values())

    def get(self, product_id: str) -> Optional[Product]:
        return self._products.get(product_id)

    def apply_stock(self, product_id: str, new_quantity: int) -> None:
        product = self._products.get(product_id)
        if product is not None:
            product.stock = new_quantity

    def upsert(self, product: Product) -> None:
        self._products[product.id] = product.model_copy()

    def discard(self, product_id: str) -> None:
        self._products.pop(product_id, None)

    def search(self, term: str = "", category: Optional[str] = None) -> List[Product]:
        term = (term or "").strip().lower()
        out = []
        for p in self._products.values():
            if term and term not in p.name.lower():
                continue
            if category and category != "all" and p.category != category:
                continue
            out.append(p)
        return out

    def categories(self) -> List[str]:
        return sorted({p.category for p in self._products.values() if p.category})

    def find_by_barcode(self, barcode: str) -> Optional[Product]:
        barcode = (barcode or "").strip()
        if not barcode:
            return None
        return next((p for p in self._products.values() if p.barcode == barcode), None)

    def low_stock(self, threshold: int = 10) -> List[Product]:
        return sorted(
            (p for p in self._products.values() if p.stock <= threshold),
            key=lambda p: (p.stock, p.name),
        )
