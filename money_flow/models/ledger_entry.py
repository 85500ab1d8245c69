"""
Money flow ledger entry model.

Each entry is one signed movement of money together with the
running balance immediately after it was applied. Entries are
immutable: once posted, they are never modified or deleted.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Text, DateTime, Numeric, Index,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column

from money_flow.clock import utcnow
from money_flow.models.base import Base
from money_flow.models.enums import FlowType


class LedgerEntry(Base):
    """
    An immutable IN or OUT movement.

    remaining_balance is computed once, by LedgerService.append,
    against the then-current tail of the ledger. Sorted by
    (created_at, id), every entry's remaining_balance equals the
    previous one plus its signed amount.
    """

    __tablename__ = "money_flow"
    __table_args__ = (
        Index("idx_money_flow_created_at", "created_at"),
        Index("idx_money_flow_type", "type"),
        Index("idx_money_flow_type_created_at", "type", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[FlowType] = mapped_column(
        SAEnum(FlowType, name="flow_type_enum", create_constraint=True),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False
    )
    remaining_balance: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.type == FlowType.IN else -self.amount

    def __repr__(self) -> str:
        return (
            f"<LedgerEntry {self.id} {self.type.value} "
            f"{self.amount} -> {self.remaining_balance}>"
        )
