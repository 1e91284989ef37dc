"""
retail_pos/schemas/cart.py - Pydantic models for the POS cart.
"""
from typing import List

from pydantic import BaseModel, Field, field_validator


class CartLine(BaseModel):
    product_id: str = Field(..., description="ID of the product")
    name: str = Field(..., description="Name of the product")
    unit_price: float = Field(..., ge=0, description="Price per unit at the time of adding to cart")
    quantity: int = Field(..., ge=1, description="Quantity of the product in the cart")
    available_stock: int = Field(..., ge=0, description="Stock known when the line was last touched")

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


class AddLineBody(BaseModel):
    """Add to cart by product id only; name/price/stock come from the catalog snapshot."""
    product_id: str = Field(..., description="Product ID (the same 'id' you see in /products).")
    quantity: int = Field(1, ge=1, le=10000, description="Quantity (>=1).")

    @field_validator("product_id")
    @classmethod
    def _clean_pid(cls, v: str) -> str:
        v = (v or "").strip()
        for ch in ("\u200b", "\u200c", "\u200d", "\ufeff", "\xa0"):
            v = v.replace(ch, "")
        if not v:
            raise ValueError("product_id cannot be empty")
        return v


class CartOut(BaseModel):
    items: List[CartLine] = Field(default_factory=list)
    item_count: int = 0
    subtotal: float = 0.0
    tax: float = 0.0
    total: float = 0.0
    checkout_state: str = "idle"
