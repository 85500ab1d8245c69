"""
Tests for the AggregationService and its bucketing helpers.

Tests cover:
- Granularity thresholds, including exact boundaries
- Bucket truncation and period labels
- Sparse aggregation (empty periods are omitted)
- Per-entry detail for minute and hour buckets only
- Empty and inverted ranges
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from money_flow.exceptions import ValidationError
from money_flow.models.enums import FlowType, Granularity
from money_flow.services.aggregation_service import (
    AggregationService,
    select_granularity,
    truncate,
    period_label,
)
from money_flow.services.ledger_service import LedgerService


DAY_START = datetime(2025, 3, 10)
SECOND = timedelta(seconds=1)


def post(service, flow_type, amount, at):
    return service.append(
        flow_type, Decimal(amount), f"{flow_type.value} {amount}", occurred_at=at
    )


# --- Granularity Tests ---

class TestSelectGranularity:

    @pytest.mark.parametrize("duration, expected", [
        (timedelta(0), Granularity.MINUTE),
        (timedelta(hours=1), Granularity.MINUTE),
        (timedelta(hours=1) + SECOND, Granularity.HOUR),
        (timedelta(hours=24), Granularity.HOUR),
        (timedelta(hours=24) + SECOND, Granularity.DAY),
        (timedelta(days=30), Granularity.DAY),
        (timedelta(days=30) + SECOND, Granularity.WEEK),
        (timedelta(days=180), Granularity.WEEK),
        (timedelta(days=180) + SECOND, Granularity.MONTH),
        (timedelta(days=365), Granularity.MONTH),
        (timedelta(days=365) + SECOND, Granularity.YEAR),
        (timedelta(days=3650), Granularity.YEAR),
    ])
    def test_thresholds(self, duration, expected):
        assert select_granularity(duration) == expected

    def test_negative_duration_rejected(self):
        with pytest.raises(ValidationError):
            select_granularity(-SECOND)


# --- Bucket Helper Tests ---

class TestBuckets:

    def test_truncate_and_label_per_granularity(self):
        moment = datetime(2025, 3, 12, 14, 37, 45, 123456)

        assert period_label(
            truncate(moment, Granularity.MINUTE), Granularity.MINUTE
        ) == "2025-03-12 14:37"
        assert period_label(
            truncate(moment, Granularity.HOUR), Granularity.HOUR
        ) == "2025-03-12 14:00"
        assert period_label(
            truncate(moment, Granularity.DAY), Granularity.DAY
        ) == "2025-03-12"
        assert period_label(
            truncate(moment, Granularity.WEEK), Granularity.WEEK
        ) == "2025-W11"
        assert period_label(
            truncate(moment, Granularity.MONTH), Granularity.MONTH
        ) == "2025-03"
        assert period_label(
            truncate(moment, Granularity.YEAR), Granularity.YEAR
        ) == "2025"

    def test_week_starts_on_monday(self):
        wednesday = datetime(2025, 3, 12, 8, 0)
        assert truncate(wednesday, Granularity.WEEK) == datetime(2025, 3, 10)

    def test_week_label_uses_iso_year(self):
        # 1 January 2025 belongs to ISO week 1, which starts in 2024.
        new_year = datetime(2025, 1, 1, 12, 0)
        week_start = truncate(new_year, Granularity.WEEK)

        assert week_start == datetime(2024, 12, 30)
        assert period_label(week_start, Granularity.WEEK) == "2025-W01"


# --- Aggregation Tests ---

class TestAggregate:

    def test_sparse_hourly_buckets(self, db_session):
        ledger = LedgerService(db_session)
        post(ledger, FlowType.IN, "100", DAY_START + timedelta(hours=3, minutes=15))
        post(ledger, FlowType.OUT, "30", DAY_START + timedelta(hours=3, minutes=40))
        post(ledger, FlowType.IN, "50", DAY_START + timedelta(hours=9, minutes=5))
        db_session.commit()

        report = AggregationService(db_session).aggregate(
            DAY_START, DAY_START + timedelta(days=1)
        )

        assert report.granularity == Granularity.HOUR
        assert [b.period for b in report.aggregations] == [
            "2025-03-10 03:00",
            "2025-03-10 09:00",
        ]

        early, late = report.aggregations
        assert early.total_inflow == Decimal("100")
        assert early.total_outflow == Decimal("30")
        assert early.net_balance == Decimal("70")
        assert [t.amount for t in early.transactions] == [
            Decimal("100"), Decimal("30"),
        ]
        assert late.net_balance == Decimal("50")
        assert len(late.transactions) == 1
        assert late.transactions[0].remaining_balance == Decimal("120")

    def test_minute_buckets_carry_transactions(self, db_session):
        ledger = LedgerService(db_session)
        start = DAY_START + timedelta(hours=12)
        post(ledger, FlowType.IN, "10", start + timedelta(minutes=1, seconds=5))
        post(ledger, FlowType.IN, "15", start + timedelta(minutes=1, seconds=50))
        post(ledger, FlowType.OUT, "5", start + timedelta(minutes=42))
        db_session.commit()

        report = AggregationService(db_session).aggregate(
            start, start + timedelta(hours=1)
        )

        assert report.granularity == Granularity.MINUTE
        assert [b.period for b in report.aggregations] == [
            "2025-03-10 12:01",
            "2025-03-10 12:42",
        ]
        assert report.aggregations[0].total_inflow == Decimal("25")
        assert len(report.aggregations[0].transactions) == 2
        assert report.aggregations[1].total_outflow == Decimal("5")

    def test_daily_buckets_have_no_transactions(self, db_session):
        ledger = LedgerService(db_session)
        post(ledger, FlowType.IN, "200", DAY_START + timedelta(hours=8))
        post(ledger, FlowType.OUT, "50", DAY_START + timedelta(hours=20))
        post(ledger, FlowType.IN, "75", DAY_START + timedelta(days=2, hours=1))
        db_session.commit()

        report = AggregationService(db_session).aggregate(
            DAY_START, DAY_START + timedelta(days=7)
        )

        assert report.granularity == Granularity.DAY
        assert [b.period for b in report.aggregations] == [
            "2025-03-10",
            "2025-03-12",
        ]
        assert report.aggregations[0].net_balance == Decimal("150")
        assert all(b.transactions is None for b in report.aggregations)

    def test_weekly_buckets_group_monday_to_sunday(self, db_session):
        ledger = LedgerService(db_session)
        monday = datetime(2025, 3, 10, 9, 0)
        post(ledger, FlowType.IN, "10", monday)
        post(ledger, FlowType.IN, "20", monday + timedelta(days=6, hours=10))
        post(ledger, FlowType.IN, "40", monday + timedelta(days=7))
        db_session.commit()

        report = AggregationService(db_session).aggregate(
            datetime(2025, 2, 1), datetime(2025, 4, 1)
        )

        assert report.granularity == Granularity.WEEK
        assert [
            (b.period, b.total_inflow) for b in report.aggregations
        ] == [
            ("2025-W11", Decimal("30")),
            ("2025-W12", Decimal("40")),
        ]

    def test_monthly_buckets(self, db_session):
        ledger = LedgerService(db_session)
        post(ledger, FlowType.IN, "500", datetime(2025, 1, 15))
        post(ledger, FlowType.OUT, "100", datetime(2025, 1, 20))
        post(ledger, FlowType.IN, "300", datetime(2025, 4, 2))
        db_session.commit()

        report = AggregationService(db_session).aggregate(
            datetime(2025, 1, 1), datetime(2025, 8, 1)
        )

        assert report.granularity == Granularity.MONTH
        assert [(b.period, b.net_balance) for b in report.aggregations] == [
            ("2025-01", Decimal("400")),
            ("2025-04", Decimal("300")),
        ]

    def test_yearly_buckets(self, db_session):
        ledger = LedgerService(db_session)
        post(ledger, FlowType.IN, "1000", datetime(2023, 6, 1))
        post(ledger, FlowType.OUT, "250", datetime(2025, 2, 1))
        db_session.commit()

        report = AggregationService(db_session).aggregate(
            datetime(2023, 1, 1), datetime(2026, 1, 1)
        )

        assert report.granularity == Granularity.YEAR
        assert [(b.period, b.net_balance) for b in report.aggregations] == [
            ("2023", Decimal("1000")),
            ("2025", Decimal("-250")),
        ]

    def test_entry_at_end_is_excluded(self, db_session):
        ledger = LedgerService(db_session)
        post(ledger, FlowType.IN, "10", DAY_START)
        post(ledger, FlowType.IN, "99", DAY_START + timedelta(days=1))
        db_session.commit()

        report = AggregationService(db_session).aggregate(
            DAY_START, DAY_START + timedelta(days=1)
        )

        assert len(report.aggregations) == 1
        assert report.aggregations[0].total_inflow == Decimal("10")

    def test_range_without_entries_is_empty(self, db_session):
        report = AggregationService(db_session).aggregate(
            DAY_START, DAY_START + timedelta(days=1)
        )
        assert report.aggregations == []

    def test_empty_range_returns_no_buckets(self, db_session):
        ledger = LedgerService(db_session)
        post(ledger, FlowType.IN, "10", DAY_START)
        db_session.commit()

        report = AggregationService(db_session).aggregate(DAY_START, DAY_START)

        assert report.granularity == Granularity.MINUTE
        assert report.aggregations == []

    def test_inverted_range_rejected(self, db_session):
        with pytest.raises(ValidationError):
            AggregationService(db_session).aggregate(
                DAY_START, DAY_START - SECOND
            )
