"""
Ledger head model.

One row per ledger scope. It is the single-writer lock for
appends and tracks the tail of the entry chain, so an append
never has to guess which row is "the latest" while another
writer is inserting.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, Integer, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from money_flow.clock import utcnow
from money_flow.models.base import Base


class LedgerHead(Base):
    __tablename__ = "ledger_head"

    scope: Mapped[str] = mapped_column(String(50), primary_key=True)
    balance: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False, default=Decimal("0")
    )
    last_entry_id: Mapped[int | None] = mapped_column(
        ForeignKey("money_flow.id"), nullable=True
    )
    last_created_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )
    entry_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:
        return f"<LedgerHead {self.scope} balance={self.balance}>"
