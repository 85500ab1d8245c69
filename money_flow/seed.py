"""
Demo data for an empty ledger.

Appends a fixed set of realistic inflows and outflows spread
over the previous 60 days. The movements are sorted by time
first and then appended one by one through LedgerService, so
the balance chain is valid by construction.
"""

import logging
import random
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from money_flow.clock import utcnow
from money_flow.models.enums import FlowType
from money_flow.models.ledger_entry import LedgerEntry
from money_flow.services.ledger_service import LedgerService

logger = logging.getLogger(__name__)

SEED_WINDOW_DAYS = 60

DEMO_FLOWS: list[tuple[FlowType, str, str]] = [
    (FlowType.IN, "Customer order payment - Order #1001", "1250.00"),
    (FlowType.IN, "Customer order payment - Order #1002", "890.50"),
    (FlowType.IN, "Customer order payment - Order #1003", "2340.75"),
    (FlowType.IN, "Customer order payment - Order #1004", "567.25"),
    (FlowType.IN, "Customer order payment - Order #1005", "1890.00"),
    (FlowType.IN, "Customer order payment - Order #1006", "3450.50"),
    (FlowType.IN, "Customer order payment - Order #1007", "678.90"),
    (FlowType.IN, "Customer order payment - Order #1008", "2100.00"),
    (FlowType.IN, "Customer order payment - Order #1009", "1567.80"),
    (FlowType.IN, "Customer order payment - Order #1010", "4230.25"),
    (FlowType.IN, "Bulk order payment - Corporate client", "15000.00"),
    (FlowType.IN, "Customer order payment - Order #1011", "890.00"),
    (FlowType.IN, "Customer order payment - Order #1012", "1234.50"),
    (FlowType.IN, "Customer order payment - Order #1013", "2890.75"),
    (FlowType.IN, "Customer order payment - Order #1014", "567.00"),
    (FlowType.OUT, "Product return refund - Order #1002", "890.50"),
    (FlowType.OUT, "Supplier payment - Electronics inventory", "5000.00"),
    (FlowType.OUT, "Product return refund - Order #1004", "567.25"),
    (FlowType.OUT, "Shipping costs - Courier service", "450.00"),
    (FlowType.OUT, "Product return refund - Damaged item", "1234.50"),
    (FlowType.OUT, "Supplier payment - Clothing inventory", "3500.00"),
    (FlowType.OUT, "Marketing expenses - Social media ads", "800.00"),
    (FlowType.OUT, "Product return refund - Wrong size", "678.90"),
    (FlowType.OUT, "Warehouse rent payment", "2500.00"),
    (FlowType.OUT, "Product return refund - Customer dissatisfaction", "567.00"),
    (FlowType.OUT, "Supplier payment - Accessories stock", "2200.00"),
    (FlowType.OUT, "Utility bills - Electricity and water", "350.00"),
    (FlowType.OUT, "Product return refund - Defective product", "890.00"),
    (FlowType.OUT, "Employee salaries payment", "8000.00"),
    (FlowType.OUT, "Product return refund - Late delivery compensation", "1567.80"),
]


def seed_money_flow(
    db: Session,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> int:
    """
    Seed the ledger if it is empty and return the number of entries added.

    The caller commits.
    """
    existing = db.execute(select(func.count(LedgerEntry.id))).scalar_one()
    if existing > 0:
        logger.info("Money flow data already exists, skipping seed")
        return 0

    now = now or utcnow()
    rng = rng or random.Random()
    window_start = now - timedelta(days=SEED_WINDOW_DAYS)
    step = SEED_WINDOW_DAYS / len(DEMO_FLOWS)

    planned = []
    for index, flow in enumerate(DEMO_FLOWS):
        occurred_at = window_start + timedelta(
            days=int(index * step),
            hours=rng.randrange(24),
            minutes=rng.randrange(60),
        )
        planned.append((occurred_at, flow))
    planned.sort(key=lambda item: item[0])

    service = LedgerService(db)
    for occurred_at, (flow_type, description, amount) in planned:
        service.append(flow_type, Decimal(amount), description, occurred_at=occurred_at)

    logger.info(
        "Seeded %d money flow entries, final balance %s",
        len(planned), service.current_balance(),
    )
    return len(planned)
