"""
Pydantic schemas for money flow operations.

These define the API contract. They are separate from the
database models because the API shape and the storage shape
are often different.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from money_flow.models.enums import FlowType, Granularity


# --- Request Schemas ---

class MoneyFlowCreate(BaseModel):
    """
    A single inflow or outflow to append to the ledger.

    occurred_at is optional and only used for backfills; it may
    not be earlier than the newest entry already in the ledger.
    """
    type: FlowType
    amount: Decimal = Field(ge=0, decimal_places=2)
    description: str = Field(min_length=1, max_length=500)
    occurred_at: datetime | None = None


# --- Response Schemas ---

class LedgerEntryResponse(BaseModel):
    """Single ledger entry in API responses."""
    id: int
    description: str
    type: FlowType
    amount: Decimal
    remaining_balance: Decimal
    created_at: datetime

    model_config = {"from_attributes": True}


class MoneyFlowAggregation(BaseModel):
    """
    Inflow and outflow totals for one time bucket.

    transactions is a list (possibly empty) for minute and hour
    buckets and None for coarser granularities.
    """
    period: str
    total_inflow: Decimal
    total_outflow: Decimal
    net_balance: Decimal
    transactions: list[LedgerEntryResponse] | None = None


class MoneyFlowReport(BaseModel):
    """Aggregated money flow for a time range. Empty periods are omitted."""
    start: datetime
    end: datetime
    granularity: Granularity
    aggregations: list[MoneyFlowAggregation]


class TransactionListResponse(BaseModel):
    count: int
    transactions: list[LedgerEntryResponse]


class BalanceResponse(BaseModel):
    balance: Decimal


class NetRevenueResponse(BaseModel):
    net_revenue: Decimal
    total_inflow: Decimal
    total_outflow: Decimal


class ChainAuditResponse(BaseModel):
    """Result of a successful walk over the whole balance chain."""
    consistent: bool
    entries_checked: int
    balance: Decimal
    last_entry_id: int | None
