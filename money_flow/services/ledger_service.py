"""
Ledger service: the money flow ledger.

This service enforces the ledger rules:
1. Entries are immutable (append-only)
2. Every entry's remaining_balance is the previous balance
   plus its signed amount
3. Appends are serialized through the ledger head row
4. Backdated appends are rejected, never silently re-chained

No other service writes to the ledger directly.
"""

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation

from sqlalchemy import select, func, case
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from money_flow.clock import utcnow, to_naive_utc
from money_flow.exceptions import (
    ValidationError,
    NotFoundError,
    InconsistentStateError,
)
from money_flow.models.audit_log import AuditLog
from money_flow.models.enums import FlowType
from money_flow.models.ledger_entry import LedgerEntry
from money_flow.models.ledger_head import LedgerHead
from money_flow.schemas.money_flow import ChainAuditResponse

logger = logging.getLogger(__name__)

HEAD_SCOPE = "global"
ZERO = Decimal("0")

# Newest first; id breaks ties between entries with equal timestamps.
LATEST_FIRST = (LedgerEntry.created_at.desc(), LedgerEntry.id.desc())
OLDEST_FIRST = (LedgerEntry.created_at.asc(), LedgerEntry.id.asc())

CHAIN_BATCH_SIZE = 1000


def validate_range(start: datetime, end: datetime) -> None:
    if start > end:
        raise ValidationError(
            f"Start {start.isoformat()} must not be after end {end.isoformat()}"
        )


class LedgerService:
    """
    All ledger operations pass through this service.

    The service takes a database session as a constructor
    argument, so the caller controls the transaction boundary:
    an append is only durable once the caller commits.
    """

    def __init__(self, db: Session):
        self.db = db

    # --- Writes ---

    def append(
        self,
        flow_type: FlowType | str,
        amount: Decimal | int | str | None,
        description: str,
        occurred_at: datetime | None = None,
    ) -> LedgerEntry:
        """
        Append one entry and return it with its remaining_balance.

        The head row is locked (SELECT ... FOR UPDATE) before the
        current balance is read, so two concurrent appends cannot
        both build on the same tail.

        occurred_at defaults to now. An explicit occurred_at older
        than the newest entry is rejected: the chain is only valid
        if entries are appended in time order.
        """
        flow_type = self._parse_flow_type(flow_type)
        amount = self._parse_amount(amount)
        if not description or not description.strip():
            raise ValidationError("description is required")

        head = self._lock_head()

        if occurred_at is None:
            created_at = utcnow()
            # Keep time order even if the clock stepped backwards.
            if head.last_created_at and created_at < head.last_created_at:
                created_at = head.last_created_at
        else:
            created_at = to_naive_utc(occurred_at)
            if head.last_created_at and created_at < head.last_created_at:
                raise ValidationError(
                    f"Backdated entry rejected: {created_at.isoformat()} is "
                    f"before the latest entry at "
                    f"{head.last_created_at.isoformat()}"
                )

        if flow_type == FlowType.IN:
            new_balance = head.balance + amount
        else:
            new_balance = head.balance - amount

        entry = LedgerEntry(
            description=description,
            type=flow_type,
            amount=amount,
            remaining_balance=new_balance,
            created_at=created_at,
        )
        self.db.add(entry)
        self.db.flush()

        head.balance = new_balance
        head.last_entry_id = entry.id
        head.last_created_at = created_at
        head.entry_count += 1

        self.db.add(AuditLog(
            event_type="MONEY_FLOW_CREATED",
            entity_id=str(entry.id),
            details=(
                f"type={flow_type.value} amount={amount} "
                f"balance={new_balance}"
            ),
        ))
        self.db.flush()

        logger.info(
            "Money flow appended id=%s type=%s amount=%s balance=%s",
            entry.id, flow_type.value, amount, new_balance,
        )
        return entry

    def _parse_flow_type(self, flow_type) -> FlowType:
        try:
            return FlowType(flow_type)
        except ValueError:
            raise ValidationError(f"Unknown flow type: {flow_type!r}")

    def _parse_amount(self, amount) -> Decimal:
        if amount is None:
            raise ValidationError("amount is required")
        try:
            value = Decimal(str(amount))
        except InvalidOperation:
            raise ValidationError(f"amount is not a number: {amount!r}")
        if not value.is_finite():
            raise ValidationError(f"amount is not a number: {amount!r}")
        if value < 0:
            raise ValidationError("amount must not be negative")
        if value.as_tuple().exponent < -2:
            raise ValidationError("amount must have at most 2 decimal places")
        return value

    def _lock_head(self) -> LedgerHead:
        """
        Return the head row, locked for the rest of the transaction.

        The migration seeds the head. If it is missing anyway (a
        schema built without migrations), it is created from the
        current tail of the entry table. The insert skips an
        existing row, so writers racing to create the head all end
        up waiting on the same lock instead of failing.
        """
        head = self._select_head_for_update()
        if head is None:
            self._insert_head_if_missing()
            head = self._select_head_for_update()
        return head

    def _select_head_for_update(self) -> LedgerHead | None:
        return self.db.execute(
            select(LedgerHead)
            .where(LedgerHead.scope == HEAD_SCOPE)
            .with_for_update()
        ).scalar_one_or_none()

    def _insert_head_if_missing(self) -> None:
        tail = self._find_latest()
        entry_count = self.db.execute(
            select(func.count(LedgerEntry.id))
        ).scalar_one()

        logger.info(
            "Ledger head %r missing, creating it at %d entries",
            HEAD_SCOPE, entry_count,
        )
        dialect_name = self.db.get_bind().dialect.name
        insert = sqlite.insert if dialect_name == "sqlite" else postgresql.insert
        self.db.execute(
            insert(LedgerHead)
            .values(
                scope=HEAD_SCOPE,
                balance=tail.remaining_balance if tail else ZERO,
                last_entry_id=tail.id if tail else None,
                last_created_at=tail.created_at if tail else None,
                entry_count=entry_count,
                updated_at=utcnow(),
            )
            .on_conflict_do_nothing(index_elements=["scope"])
        )

    # --- Reads ---

    def _find_latest(self, before: datetime | None = None) -> LedgerEntry | None:
        query = select(LedgerEntry)
        if before is not None:
            query = query.where(LedgerEntry.created_at <= before)
        return self.db.execute(
            query.order_by(*LATEST_FIRST).limit(1)
        ).scalar_one_or_none()

    def current_balance(self) -> Decimal:
        """Balance after the newest entry, or zero for an empty ledger."""
        latest = self._find_latest()
        return latest.remaining_balance if latest else ZERO

    def balance_at_time(self, at: datetime) -> Decimal:
        """Balance after the newest entry created at or before `at`."""
        latest = self._find_latest(before=to_naive_utc(at))
        return latest.remaining_balance if latest else ZERO

    def transactions(self, start: datetime, end: datetime) -> list[LedgerEntry]:
        """Return entries created in [start, end), oldest first."""
        start, end = to_naive_utc(start), to_naive_utc(end)
        validate_range(start, end)
        entries = self.db.execute(
            select(LedgerEntry)
            .where(
                LedgerEntry.created_at >= start,
                LedgerEntry.created_at < end,
            )
            .order_by(*OLDEST_FIRST)
        ).scalars().all()
        return list(entries)

    def get_by_id(self, entry_id: int) -> LedgerEntry:
        entry = self.db.get(LedgerEntry, entry_id)
        if not entry:
            raise NotFoundError(f"Money flow {entry_id} not found")
        return entry

    def flow_totals(self) -> tuple[Decimal, Decimal]:
        """Return (total inflow, total outflow) over the whole ledger."""
        row = self.db.execute(
            select(
                func.coalesce(func.sum(case(
                    (LedgerEntry.type == FlowType.IN, LedgerEntry.amount),
                    else_=0,
                )), 0).label("total_inflow"),
                func.coalesce(func.sum(case(
                    (LedgerEntry.type == FlowType.OUT, LedgerEntry.amount),
                    else_=0,
                )), 0).label("total_outflow"),
            )
        ).one()
        return Decimal(str(row.total_inflow)), Decimal(str(row.total_outflow))

    def net_revenue(self) -> Decimal:
        """Total inflow minus total outflow, refunds included."""
        total_inflow, total_outflow = self.flow_totals()
        return total_inflow - total_outflow

    # --- Audit ---

    def verify_chain(self) -> ChainAuditResponse:
        """
        Recompute the running balance over every entry.

        Raises InconsistentStateError at the first entry whose
        remaining_balance does not match, or when the head row
        disagrees with the tail. Nothing is corrected: the
        violation is recorded in the audit log for manual
        reconciliation.
        """
        running = ZERO
        checked = 0
        last_entry_id = None
        violation = None

        # Streamed in batches; the audit row is written after the cursor closes.
        result = self.db.execute(
            select(LedgerEntry)
            .order_by(*OLDEST_FIRST)
            .execution_options(yield_per=CHAIN_BATCH_SIZE)
        )
        try:
            for entry in result.scalars():
                expected = running + entry.signed_amount
                if entry.remaining_balance != expected:
                    violation = (
                        entry.id,
                        f"entry {entry.id} has remaining_balance "
                        f"{entry.remaining_balance}, expected {expected}",
                    )
                    break
                running = entry.remaining_balance
                checked += 1
                last_entry_id = entry.id
        finally:
            result.close()

        if violation is not None:
            raise self._record_violation(*violation)

        head = self.db.get(LedgerHead, HEAD_SCOPE)
        if head is not None and head.balance != running:
            raise self._record_violation(
                HEAD_SCOPE,
                f"ledger head balance {head.balance} does not match "
                f"tail balance {running}",
            )

        return ChainAuditResponse(
            consistent=True,
            entries_checked=checked,
            balance=running,
            last_entry_id=last_entry_id,
        )

    def _record_violation(
        self, entity_id, message: str
    ) -> InconsistentStateError:
        logger.error("Ledger chain violation: %s", message)
        self.db.add(AuditLog(
            event_type="LEDGER_CHAIN_VIOLATION",
            entity_id=str(entity_id),
            details=message,
        ))
        self.db.flush()
        return InconsistentStateError(message)
