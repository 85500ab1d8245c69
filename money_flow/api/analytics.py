"""
Analytics API endpoints.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from money_flow.exceptions import ValidationError
from money_flow.models.base import get_db
from money_flow.services.analytics_service import AnalyticsService
from money_flow.schemas.analytics import (
    AnalyticsRequest,
    AnalyticsResponse,
    ComparisonResponse,
)

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.post("", response_model=AnalyticsResponse)
def get_analytics(
    request: AnalyticsRequest,
    db: Session = Depends(get_db),
):
    """
    Revenue, orders and new customers for a date range, each with
    its change against the preceding period of the same length.
    """
    service = AnalyticsService(db)
    try:
        return service.get_analytics(request.start_date, request.end_date)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/compare", response_model=ComparisonResponse)
def compare_metric(
    metric: str,
    start: datetime,
    end: datetime,
    db: Session = Depends(get_db),
):
    """Compare one metric (orders, revenue, new_customers) against the previous period."""
    service = AnalyticsService(db)
    try:
        comparison = service.compare(metric, start, end)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ComparisonResponse(metric=metric, **comparison.model_dump())
