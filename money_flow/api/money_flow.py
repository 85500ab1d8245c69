"""
Money flow API endpoints.

The API layer is thin: it handles HTTP concerns (status codes,
response formatting, commit/rollback) and delegates all business
logic to LedgerService and AggregationService.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from money_flow.exceptions import (
    ValidationError,
    NotFoundError,
    InconsistentStateError,
)
from money_flow.models.base import get_db
from money_flow.services.aggregation_service import AggregationService
from money_flow.services.ledger_service import LedgerService
from money_flow.schemas.money_flow import (
    MoneyFlowCreate,
    LedgerEntryResponse,
    MoneyFlowReport,
    TransactionListResponse,
    BalanceResponse,
    NetRevenueResponse,
    ChainAuditResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/money-flow", tags=["Money Flow"])


@router.post("", response_model=LedgerEntryResponse, status_code=201)
def create_money_flow(
    request: MoneyFlowCreate,
    db: Session = Depends(get_db),
):
    """
    Record a new inflow or outflow.

    The response carries the balance immediately after the entry.
    """
    service = LedgerService(db)
    try:
        entry = service.append(
            request.type,
            request.amount,
            request.description,
            occurred_at=request.occurred_at,
        )
        db.commit()
        return entry
    except ValidationError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))


@router.get("", response_model=MoneyFlowReport)
def get_money_flow(
    start: datetime,
    end: datetime,
    db: Session = Depends(get_db),
):
    """
    Aggregated inflow and outflow between start and end.

    The bucket width (minute to year) is chosen from the length
    of the range. Periods without entries are left out.
    """
    service = AggregationService(db)
    try:
        return service.aggregate(start, end)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/transactions", response_model=TransactionListResponse)
def get_transactions(
    start: datetime,
    end: datetime,
    db: Session = Depends(get_db),
):
    """Every entry between start (inclusive) and end (exclusive), oldest first."""
    service = LedgerService(db)
    try:
        entries = service.transactions(start, end)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return TransactionListResponse(
        count=len(entries),
        transactions=[LedgerEntryResponse.model_validate(e) for e in entries],
    )


@router.get("/balance", response_model=BalanceResponse)
def get_current_balance(db: Session = Depends(get_db)):
    """Balance after the most recent entry."""
    service = LedgerService(db)
    return BalanceResponse(balance=service.current_balance())


@router.get("/net-revenue", response_model=NetRevenueResponse)
def get_net_revenue(db: Session = Depends(get_db)):
    """Total inflow minus total outflow over the whole ledger."""
    service = LedgerService(db)
    total_inflow, total_outflow = service.flow_totals()
    return NetRevenueResponse(
        net_revenue=total_inflow - total_outflow,
        total_inflow=total_inflow,
        total_outflow=total_outflow,
    )


@router.get("/audit", response_model=ChainAuditResponse)
def audit_ledger(db: Session = Depends(get_db)):
    """
    Walk the whole balance chain and report whether it adds up.

    A broken chain returns 409 and is recorded in the audit log.
    It is never corrected automatically.
    """
    service = LedgerService(db)
    try:
        return service.verify_chain()
    except InconsistentStateError as e:
        # Keep the audit row describing the violation.
        db.commit()
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/{entry_id}", response_model=LedgerEntryResponse)
def get_money_flow_entry(
    entry_id: int,
    db: Session = Depends(get_db),
):
    service = LedgerService(db)
    try:
        return service.get_by_id(entry_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
