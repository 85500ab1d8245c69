"""
Analytics service: period-over-period comparisons.

Every metric is compared against the equal-length period that
immediately precedes it, using one delta rule for all metrics:

    previous == 0  ->  0.0 if current == 0 else 100.0
    otherwise      ->  round2((current - previous) / previous * 100)

Rounding is half-up on the decimal value, so 12.345 rounds to
12.35 regardless of how the float happens to be represented.
"""

import logging
from collections.abc import Callable
from datetime import date, datetime, time, timedelta
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from money_flow.clock import utcnow, to_naive_utc
from money_flow.config import get_settings
from money_flow.exceptions import ValidationError
from money_flow.models.category import Category
from money_flow.models.customer import Customer
from money_flow.models.order import Order
from money_flow.models.order_item import OrderItem
from money_flow.models.product import Product
from money_flow.schemas.analytics import (
    AnalyticsResponse,
    CategoryPerformance,
    Comparison,
    TopProduct,
)
from money_flow.services.ledger_service import LedgerService, ZERO, validate_range

logger = logging.getLogger(__name__)

MIN_SPAN = timedelta(days=1)
TOP_PRODUCTS_LIMIT = 5

MetricFn = Callable[[datetime, datetime], int | Decimal]


def round2(value: Decimal | float | int) -> float:
    """Round half-up to two decimals: scale by 100, round, scale back."""
    scaled = Decimal(str(value)) * 100
    return float(scaled.to_integral_value(rounding=ROUND_HALF_UP) / 100)


def percent_delta(previous: Decimal | int, current: Decimal | int) -> float:
    previous = Decimal(str(previous))
    current = Decimal(str(current))
    if previous == 0:
        return 0.0 if current == 0 else 100.0
    return round2((current - previous) * 100 / previous)


def compare_range(metric_fn: MetricFn, start: datetime, end: datetime) -> Comparison:
    """
    Evaluate metric_fn on [start, end) and on the period before it.

    The previous period has the same length, but at least one
    day, so an empty current range still has something to
    compare against.
    """
    start, end = to_naive_utc(start), to_naive_utc(end)
    validate_range(start, end)

    span = max(end - start, MIN_SPAN)
    previous_start = start - span

    current = metric_fn(start, end)
    previous = metric_fn(previous_start, start)

    return Comparison(
        start=start,
        end=end,
        previous_start=previous_start,
        previous_end=start,
        current=current,
        previous=previous,
        percent_delta=percent_delta(previous, current),
    )


class AnalyticsService:

    def __init__(self, db: Session):
        self.db = db
        self.ledger_service = LedgerService(db)
        self.metrics: dict[str, MetricFn] = {
            "orders": self.count_orders,
            "revenue": self.revenue,
            "new_customers": self.count_new_customers,
        }

    # --- Metrics ---

    def count_orders(self, start: datetime, end: datetime) -> int:
        return self.db.execute(
            select(func.count(Order.id)).where(
                Order.created_at >= start,
                Order.created_at < end,
            )
        ).scalar_one()

    def count_new_customers(self, start: datetime, end: datetime) -> int:
        return self.db.execute(
            select(func.count(Customer.id)).where(
                Customer.created_at >= start,
                Customer.created_at < end,
            )
        ).scalar_one()

    def revenue(self, start: datetime, end: datetime) -> Decimal:
        """
        Revenue is the change of the ledger balance over the period,
        so refunds and other outflows are already netted out.

        Unlike the count metrics, which cover [start, end), this
        covers (start, end]: balance_at_time includes an entry made
        exactly at its argument, so an entry at `start` belongs to
        the period before and an entry at `end` to this one.
        """
        return (
            self.ledger_service.balance_at_time(end)
            - self.ledger_service.balance_at_time(start)
        )

    # --- Catalog ---

    def count_active_products(self) -> int:
        return self.db.execute(
            select(func.count(Product.id)).where(Product.is_active.is_(True))
        ).scalar_one()

    def top_products(
        self, start: datetime, end: datetime, limit: int = TOP_PRODUCTS_LIMIT
    ) -> list[TopProduct]:
        """
        Best sellers by sales amount over orders placed in [start, end).

        Lines whose product has left the catalog are not counted.
        """
        units = func.sum(OrderItem.quantity)
        amount = func.sum(OrderItem.subtotal)
        rows = self.db.execute(
            select(
                Product.id,
                Product.name,
                units.label("units"),
                amount.label("amount"),
            )
            .join(OrderItem, OrderItem.product_id == Product.id)
            .join(Order, Order.id == OrderItem.order_id)
            .where(Order.created_at >= start, Order.created_at < end)
            .group_by(Product.id, Product.name)
            .order_by(amount.desc(), Product.id)
        ).all()

        # Shares are of every unit sold, not only of the listed products.
        total_units = sum(row.units for row in rows)
        return [
            TopProduct(
                product_id=row.id,
                product_name=row.name,
                total_sales_count=row.units,
                total_sales_amount=Decimal(str(row.amount)),
                performance_percent=(
                    round2(Decimal(row.units) * 100 / total_units)
                    if total_units else 0.0
                ),
            )
            for row in rows[:limit]
        ]

    def category_performance(
        self, start: datetime, end: datetime
    ) -> list[CategoryPerformance]:
        """Sales per category over orders placed in [start, end), highest first."""
        revenue = func.sum(OrderItem.subtotal)
        rows = self.db.execute(
            select(Category.id, Category.name, revenue.label("revenue"))
            .join(Product, Product.category_id == Category.id)
            .join(OrderItem, OrderItem.product_id == Product.id)
            .join(Order, Order.id == OrderItem.order_id)
            .where(Order.created_at >= start, Order.created_at < end)
            .group_by(Category.id, Category.name)
            .order_by(revenue.desc(), Category.id)
        ).all()

        amounts = [Decimal(str(row.revenue)) for row in rows]
        total = sum(amounts, ZERO)
        return [
            CategoryPerformance(
                category_id=row.id,
                category_name=row.name,
                revenue=amount,
                revenue_percent=round2(amount * 100 / total) if total else 0.0,
            )
            for row, amount in zip(rows, amounts)
        ]

    # --- Comparisons ---

    def compare(self, metric: str, start: datetime, end: datetime) -> Comparison:
        """Compare a named metric; unknown names raise ValidationError."""
        metric_fn = self.metrics.get(metric)
        if metric_fn is None:
            raise ValidationError(
                f"Unknown metric '{metric}', expected one of: "
                f"{', '.join(sorted(self.metrics))}"
            )
        return compare_range(metric_fn, start, end)

    def get_analytics(
        self,
        start_date: date | None = None,
        end_date: date | None = None,
        today: date | None = None,
    ) -> AnalyticsResponse:
        """
        Revenue, orders and new customers for an inclusive date range,
        each against the period before, plus the catalog summary for
        the range: active products, best sellers and category shares.

        Missing dates default to the last ANALYTICS_DEFAULT_DAYS
        days ending today.
        """
        today = today or utcnow().date()
        end_date = end_date or today
        start_date = start_date or today - timedelta(
            days=get_settings().ANALYTICS_DEFAULT_DAYS
        )
        if start_date > end_date:
            raise ValidationError(
                f"start_date {start_date} must not be after end_date {end_date}"
            )

        start = datetime.combine(start_date, time.min)
        end = datetime.combine(end_date + timedelta(days=1), time.min)
        logger.info("Computing analytics from %s to %s", start_date, end_date)

        revenue = compare_range(self.revenue, start, end)
        orders = compare_range(self.count_orders, start, end)
        customers = compare_range(self.count_new_customers, start, end)

        return AnalyticsResponse(
            start=start,
            end=end,
            total_revenue=revenue.current,
            total_revenue_vs_percent=revenue.percent_delta,
            total_orders=orders.current,
            total_orders_vs_percent=orders.percent_delta,
            new_customers=customers.current,
            new_customers_vs_percent=customers.percent_delta,
            active_products=self.count_active_products(),
            top_products=self.top_products(start, end),
            category_performance=self.category_performance(start, end),
        )
