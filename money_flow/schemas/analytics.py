"""
Pydantic schemas for period-over-period analytics.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel


class Comparison(BaseModel):
    """
    A metric for a period and for the equal-length period before it.

    percent_delta is the change from previous to current, in
    percent, rounded half-up to two decimals.
    """
    start: datetime
    end: datetime
    previous_start: datetime
    previous_end: datetime
    current: int | Decimal
    previous: int | Decimal
    percent_delta: float


class ComparisonResponse(Comparison):
    metric: str


class AnalyticsRequest(BaseModel):
    """Both dates are inclusive. Missing dates fall back to the default window."""
    start_date: date | None = None
    end_date: date | None = None


class TopProduct(BaseModel):
    """
    A best-selling product in the period.

    performance_percent is the product's share of all units
    sold in the period.
    """
    product_id: int
    product_name: str
    total_sales_count: int
    total_sales_amount: Decimal
    performance_percent: float


class CategoryPerformance(BaseModel):
    """Sales revenue of one category and its share of all categorized sales."""
    category_id: int
    category_name: str
    revenue: Decimal
    revenue_percent: float


class AnalyticsResponse(BaseModel):
    start: datetime
    end: datetime
    total_revenue: Decimal
    total_revenue_vs_percent: float
    total_orders: int
    total_orders_vs_percent: float
    new_customers: int
    new_customers_vs_percent: float
    active_products: int
    top_products: list[TopProduct]
    category_performance: list[CategoryPerformance]
