"""
Aggregation service: time-bucketed money flow.

Given a time range, the service picks a bucket width from the
range's length, groups entries into calendar-aligned buckets
and sums inflow and outflow per bucket.

The grouping runs in the database (one GROUP BY per request),
so the result is sparse: a period with no entries has no row
and therefore no bucket. Minute and hour buckets additionally
carry their entries; coarser buckets only carry totals.
"""

import logging
from collections import defaultdict
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import select, func, case, literal_column
from sqlalchemy.orm import Session

from money_flow.clock import to_naive_utc
from money_flow.exceptions import ValidationError
from money_flow.models.enums import FlowType, Granularity
from money_flow.models.ledger_entry import LedgerEntry
from money_flow.schemas.money_flow import (
    LedgerEntryResponse,
    MoneyFlowAggregation,
    MoneyFlowReport,
)
from money_flow.services.ledger_service import LedgerService, validate_range

logger = logging.getLogger(__name__)

# First match wins; anything longer than a year is bucketed by year.
GRANULARITY_THRESHOLDS: list[tuple[timedelta, Granularity]] = [
    (timedelta(hours=1), Granularity.MINUTE),
    (timedelta(hours=24), Granularity.HOUR),
    (timedelta(days=30), Granularity.DAY),
    (timedelta(days=180), Granularity.WEEK),
    (timedelta(days=365), Granularity.MONTH),
]

PERIOD_FORMATS = {
    Granularity.MINUTE: "%Y-%m-%d %H:%M",
    Granularity.HOUR: "%Y-%m-%d %H:00",
    Granularity.DAY: "%Y-%m-%d",
    Granularity.MONTH: "%Y-%m",
    Granularity.YEAR: "%Y",
}

# SQLite has no date_trunc; strftime renders the bucket start instead.
# 'weekday 0' moves to the next Sunday (or stays), '-6 days' lands on Monday.
SQLITE_BUCKET_FORMATS = {
    Granularity.MINUTE: ("%Y-%m-%d %H:%M:00",),
    Granularity.HOUR: ("%Y-%m-%d %H:00:00",),
    Granularity.DAY: ("%Y-%m-%d 00:00:00",),
    Granularity.WEEK: ("%Y-%m-%d 00:00:00", "weekday 0", "-6 days"),
    Granularity.MONTH: ("%Y-%m-01 00:00:00",),
    Granularity.YEAR: ("%Y-01-01 00:00:00",),
}


def select_granularity(duration: timedelta) -> Granularity:
    """Pick the bucket width for a range of the given length."""
    if duration < timedelta(0):
        raise ValidationError("duration must not be negative")
    for limit, granularity in GRANULARITY_THRESHOLDS:
        if duration <= limit:
            return granularity
    return Granularity.YEAR


def truncate(value: datetime, granularity: Granularity) -> datetime:
    """Return the start of the bucket containing `value`."""
    if granularity == Granularity.MINUTE:
        return value.replace(second=0, microsecond=0)
    if granularity == Granularity.HOUR:
        return value.replace(minute=0, second=0, microsecond=0)

    day = value.replace(hour=0, minute=0, second=0, microsecond=0)
    if granularity == Granularity.DAY:
        return day
    if granularity == Granularity.WEEK:
        return day - timedelta(days=day.weekday())
    if granularity == Granularity.MONTH:
        return day.replace(day=1)
    return day.replace(month=1, day=1)


def period_label(bucket_start: datetime, granularity: Granularity) -> str:
    """
    Format a bucket start as its period label.

    Weeks use ISO numbering (2025-W07), which can differ from
    the calendar year around New Year.
    """
    if granularity == Granularity.WEEK:
        iso_year, iso_week, _ = bucket_start.isocalendar()
        return f"{iso_year}-W{iso_week:02d}"
    return bucket_start.strftime(PERIOD_FORMATS[granularity])


def bucket_expression(dialect_name: str, granularity: Granularity):
    """
    SQL expression for the bucket start of LedgerEntry.created_at.

    Arguments are inlined rather than bound so the expression
    renders identically in SELECT and GROUP BY.
    """
    column = LedgerEntry.created_at
    if dialect_name == "sqlite":
        fmt, *modifiers = SQLITE_BUCKET_FORMATS[granularity]
        args = [literal_column(f"'{fmt}'"), column]
        args.extend(literal_column(f"'{m}'") for m in modifiers)
        return func.strftime(*args)
    return func.date_trunc(literal_column(f"'{granularity.value}'"), column)


def _sum_of(flow_type: FlowType):
    return func.coalesce(func.sum(case(
        (LedgerEntry.type == flow_type, LedgerEntry.amount),
        else_=0,
    )), 0)


class AggregationService:

    def __init__(self, db: Session):
        self.db = db
        self.ledger_service = LedgerService(db)

    def aggregate(self, start: datetime, end: datetime) -> MoneyFlowReport:
        """
        Aggregate entries in [start, end) into time buckets.

        Raises ValidationError if start is after end. An empty
        range (start == end) yields no buckets.
        """
        start, end = to_naive_utc(start), to_naive_utc(end)
        validate_range(start, end)
        granularity = select_granularity(end - start)

        logger.info(
            "Aggregating money flow from %s to %s by %s",
            start.isoformat(), end.isoformat(), granularity.value,
        )

        if start == end:
            aggregations = []
        else:
            aggregations = self._build_aggregations(start, end, granularity)

        return MoneyFlowReport(
            start=start,
            end=end,
            granularity=granularity,
            aggregations=aggregations,
        )

    def _build_aggregations(
        self, start: datetime, end: datetime, granularity: Granularity
    ) -> list[MoneyFlowAggregation]:
        transactions_by_period = None
        if granularity.includes_transactions:
            transactions_by_period = self._group_transactions(
                start, end, granularity
            )

        aggregations = []
        for period, total_inflow, total_outflow in self._period_totals(
            start, end, granularity
        ):
            transactions = None
            if transactions_by_period is not None:
                transactions = transactions_by_period.get(period, [])

            aggregations.append(MoneyFlowAggregation(
                period=period,
                total_inflow=total_inflow,
                total_outflow=total_outflow,
                net_balance=total_inflow - total_outflow,
                transactions=transactions,
            ))

        return aggregations

    def _period_totals(
        self, start: datetime, end: datetime, granularity: Granularity
    ) -> list[tuple[str, Decimal, Decimal]]:
        """Run the GROUP BY and return (label, inflow, outflow) per bucket."""
        dialect_name = self.db.get_bind().dialect.name
        bucket = bucket_expression(dialect_name, granularity)

        rows = self.db.execute(
            select(
                bucket.label("bucket"),
                _sum_of(FlowType.IN).label("total_inflow"),
                _sum_of(FlowType.OUT).label("total_outflow"),
            )
            .where(
                LedgerEntry.created_at >= start,
                LedgerEntry.created_at < end,
            )
            .group_by(bucket)
            .order_by(bucket)
        ).all()

        totals = []
        for row in rows:
            bucket_start = row.bucket
            if isinstance(bucket_start, str):
                bucket_start = datetime.fromisoformat(bucket_start)
            totals.append((
                period_label(bucket_start, granularity),
                Decimal(str(row.total_inflow)),
                Decimal(str(row.total_outflow)),
            ))
        return totals

    def _group_transactions(
        self, start: datetime, end: datetime, granularity: Granularity
    ) -> dict[str, list[LedgerEntryResponse]]:
        grouped = defaultdict(list)
        for entry in self.ledger_service.transactions(start, end):
            label = period_label(truncate(entry.created_at, granularity), granularity)
            grouped[label].append(LedgerEntryResponse.model_validate(entry))
        return grouped
