"""
retail_pos/schemas/report.py - Pydantic models for sales reports.
"""
from typing import List, Literal

from pydantic import BaseModel, Field

from retail_pos.schemas.order import OrderOut, OrderRelationshipOut

ReportPeriod = Literal["daily", "weekly", "monthly"]


class TopProduct(BaseModel):
    id: str
    name: str
    quantity: int
    total: float


class SalesPoint(BaseModel):
    date: str
    amount: float


class ReportSummary(BaseModel):
    total_sales: float = 0.0
    transactions: int = 0
    avg_transaction: float = 0.0
    items_sold: int = 0
    top_products: List[TopProduct] = Field(default_factory=list)


class ReportOut(ReportSummary):
    period: ReportPeriod
    sales_trend: List[SalesPoint] = Field(default_factory=list)


class SplitOrderOut(BaseModel):
    relationship: OrderRelationshipOut
    orders: List[OrderOut] = Field(default_factory=list)
    missing_order_ids: List[str] = Field(default_factory=list)
    complete: bool = True
    orders_total: float = 0.0
