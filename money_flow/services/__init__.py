"""Business logic services."""

from money_flow.services.ledger_service import LedgerService
from money_flow.services.aggregation_service import AggregationService
from money_flow.services.analytics_service import AnalyticsService

__all__ = ["LedgerService", "AggregationService", "AnalyticsService"]
