"""
Audit log model.

Records ledger events for reconciliation: every append and
every failed chain audit leaves a row here.
"""

from datetime import datetime

from sqlalchemy import String, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from money_flow.clock import utcnow
from money_flow.models.base import Base


class AuditLog(Base):
    """
    Immutable record of a ledger event.

    Like ledger entries, audit rows are append-only.
    """

    __tablename__ = "audit_log"

    id: Mapped[int] = mapped_column(primary_key=True)
    event_type: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    details: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )
