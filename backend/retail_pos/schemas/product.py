"""
# `retail_pos/schemas/product.py` - Product Schema Documentation

## Overview
Pydantic models for the product catalog. Products live in the Firestore `products`
collection; the stock field is stored as `quantity` (the name the POS app has always
written) and exposed in Python as `stock`.

---

## Stored / Output Schema

### `Product`
| Field      | Type          | Required | Description |
|------------|---------------|----------|-------------|
| id         | `str`         | ✔        | Firestore document id |
| name       | `str`         | ✔        | Product name |
| price      | `float`       | ✔        | Unit price (≥0) |
| stock      | `int`         | ✔        | Available stock, stored as `quantity` |
| category   | `str`         | ✖        | Category label |
| barcode    | `str`         | ✖        | Barcode used by the inventory scanner |
| image      | `str` / `null`| ✖        | Image URL (never copied into orders) |

---

## Input Schemas

### `ProductCreate`
New product from the inventory page. Same fields as `Product` without `id`.

### `ProductUpdate`
All fields optional; only the provided ones are written.

### `RestockBody`
| Field               | Type  | Description |
|---------------------|-------|-------------|
| additional_quantity | `int` | Units received (≥1), added on top of the current stock |
"""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class Product(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    price: float = Field(..., ge=0, description="Unit price")
    stock: int = Field(0, alias="quantity", description="Available stock")
    category: str = ""
    barcode: str = ""
    image: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, doc_id: str, data: Dict[str, Any]) -> "Product":
        """Build from a raw Firestore document, tolerating missing/legacy fields."""
        data = data or {}
        return cls(
            id=str(data.get("id") or doc_id),
            name=data.get("name") or data.get("title") or "",
            price=float(data.get("price", 0) or 0),
            quantity=int(data.get("quantity", data.get("stock", 0)) or 0),
            category=data.get("category") or "",
            barcode=str(data.get("barcode") or ""),
            image=data.get("image"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, description="Product name")
    price: float = Field(..., ge=0, description="Unit price")
    quantity: int = Field(0, ge=0, description="Initial stock")
    category: str = Field("", description="Category label")
    barcode: str = Field("", description="Barcode")
    image: Optional[str] = Field(None, description="Image URL")


class ProductUpdate(BaseModel):
    """Schema for updating product fields."""
    name: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    quantity: Optional[int] = Field(None, ge=0)
    category: Optional[str] = None
    barcode: Optional[str] = None
    image: Optional[str] = None


class RestockBody(BaseModel):
    additional_quantity: int = Field(..., ge=1, description="Units to add to the current stock")
