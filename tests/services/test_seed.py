"""
Tests for the demo data seeder.
"""

import random
from datetime import datetime, timedelta

from sqlalchemy import select, func

from money_flow.models import LedgerEntry
from money_flow.seed import DEMO_FLOWS, SEED_WINDOW_DAYS, seed_money_flow
from money_flow.services.ledger_service import LedgerService


NOW = datetime(2025, 6, 1, 12, 0)


class TestSeed:

    def test_seeds_empty_ledger(self, db_session):
        added = seed_money_flow(db_session, now=NOW, rng=random.Random(42))
        db_session.commit()

        assert added == len(DEMO_FLOWS)
        count = db_session.execute(select(func.count(LedgerEntry.id))).scalar_one()
        assert count == len(DEMO_FLOWS)

    def test_seeded_chain_is_consistent(self, db_session):
        seed_money_flow(db_session, now=NOW, rng=random.Random(42))
        db_session.commit()

        result = LedgerService(db_session).verify_chain()

        assert result.consistent is True
        assert result.entries_checked == len(DEMO_FLOWS)

    def test_entries_fall_inside_window(self, db_session):
        seed_money_flow(db_session, now=NOW, rng=random.Random(7))
        db_session.commit()

        entries = LedgerService(db_session).transactions(
            NOW - timedelta(days=SEED_WINDOW_DAYS), NOW + timedelta(days=1)
        )
        assert len(entries) == len(DEMO_FLOWS)

    def test_existing_ledger_is_left_alone(self, db_session):
        seed_money_flow(db_session, now=NOW, rng=random.Random(42))
        db_session.commit()

        assert seed_money_flow(db_session, now=NOW) == 0
