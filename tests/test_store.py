"""Property-based tests for the record stores.

**Feature: riskledger**
"""

import tempfile
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from riskledger.db import InMemoryRecordStore, SQLiteRecordStore
from riskledger.errors import MovementIntegrityError, RecordNotFoundError
from riskledger.ledger.projector import project
from riskledger.models import Account, Adjustment, MovementType, Plan, Trade, new_movement

NOW = datetime(2024, 3, 1, 9, 30)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        yield SQLiteRecordStore(db_path)


@pytest.fixture(params=["memory", "sqlite"])
def store(request):
    """Each record store implementation, with one account."""
    with tempfile.TemporaryDirectory() as tmpdir:
        if request.param == "memory":
            s = InMemoryRecordStore()
        else:
            s = SQLiteRecordStore(Path(tmpdir) / "test.db")
        s.save_account(Account(id="acc-1", owner_id="u1", name="Main", initial_balance=Decimal("1000")))
        yield s


def deposit(amount="100", account="acc-1", at=NOW):
    return new_movement(
        MovementType.DEPOSIT, account_id=account, amount=Decimal(amount), effective_at=at
    )


class TestDatabaseSchemaCompleteness:
    """
    **Feature: riskledger, Property 19: Database Schema Completeness**

    *For any* fresh database, all required tables exist.
    """

    def test_schema_completeness(self, temp_db: SQLiteRecordStore):
        tables = temp_db.get_tables()

        for table in SQLiteRecordStore.REQUIRED_TABLES:
            assert table in tables, f"Required table '{table}' is missing"

    def test_stats_count_rows(self, temp_db: SQLiteRecordStore):
        temp_db.save_account(Account(id="acc-1", owner_id="u1", name="Main"))
        temp_db.append_movement(deposit())

        stats = temp_db.get_stats()

        assert stats["accounts"] == 1
        assert stats["movements"] == 1


class TestAppendOnlyMovements:
    """
    **Feature: riskledger, Property 20: Append-only Movement Log**

    *For any* sequence of appends, each committed movement gets a
    strictly increasing sequence and reads back unchanged.
    """

    @given(amounts=st.lists(st.integers(min_value=1, max_value=10**8), min_size=1, max_size=15))
    @settings(max_examples=25, deadline=None)
    def test_sequences_increase_and_amounts_round_trip(self, amounts):
        with tempfile.TemporaryDirectory() as tmpdir:
            s = SQLiteRecordStore(Path(tmpdir) / "test.db")
            s.save_account(Account(id="acc-1", owner_id="u1", name="Main"))

            committed = [s.append_movement(deposit(str(Decimal(a) / 100))) for a in amounts]

            sequences = [m.sequence for m in committed]
            assert sequences == sorted(set(sequences))
            stored = sorted(s.list_movements("acc-1"), key=lambda m: m.sequence)
            assert [m.amount for m in stored] == [Decimal(a) / 100 for a in amounts]

    def test_committed_movement_rejected(self, store):
        committed = store.append_movement(deposit())

        with pytest.raises(MovementIntegrityError):
            store.append_movement(committed)

    def test_unknown_account_rejected(self, store):
        with pytest.raises(RecordNotFoundError):
            store.append_movement(deposit(account="nope"))
        assert store.list_movements("nope") == []

    def test_variant_fields_round_trip(self, store):
        store.append_movement(Adjustment(
            account_id="acc-1",
            amount=Decimal("-12.34"),
            effective_at=NOW,
            description="Reversal",
            trade_id="t-9",
        ))

        [movement] = store.list_movements("acc-1")

        assert isinstance(movement, Adjustment)
        assert movement.trade_id == "t-9"
        assert movement.description == "Reversal"
        assert movement.amount == Decimal("-12.34")
        assert movement.effective_at == NOW

    def test_log_projects(self, store):
        store.append_movement(new_movement(
            MovementType.INITIAL_BALANCE, account_id="acc-1", amount=Decimal("1000"), effective_at=NOW
        ))
        store.append_movement(deposit("250", at=NOW + timedelta(days=1)))

        assert project(store.list_movements("acc-1")).closing_balance == Decimal("1250")


class TestSubscriptions:
    """
    **Feature: riskledger, Property 21: Append Notifications**

    Subscribers hear about every committed append on their account.
    """

    def test_account_and_global_listeners(self, store):
        store.save_account(Account(id="acc-2", owner_id="u1", name="Other"))
        mine, everything = [], []
        store.subscribe(mine.append, account_id="acc-1")
        store.subscribe(everything.append)

        store.append_movement(deposit())
        store.append_movement(deposit(account="acc-2"))

        assert [m.account_id for m in mine] == ["acc-1"]
        assert [m.account_id for m in everything] == ["acc-1", "acc-2"]
        assert mine[0].sequence is not None

    def test_unsubscribe(self, store):
        heard = []
        unsubscribe = store.subscribe(heard.append)

        unsubscribe()
        store.append_movement(deposit())

        assert heard == []

    def test_rejected_append_not_notified(self, store):
        heard = []
        store.subscribe(heard.append)

        with pytest.raises(RecordNotFoundError):
            store.append_movement(deposit(account="nope"))

        assert heard == []


class TestRecords:
    """Accounts, plans and trades round-trip through each store."""

    def test_accounts(self, store):
        store.save_account(Account(id="acc-2", owner_id="u2", name="Prop", kind="FUNDED", currency="USD"))

        assert store.get_account("acc-2").kind == "FUNDED"
        assert store.get_account("missing") is None
        assert [a.id for a in store.list_accounts("u2")] == ["acc-2"]
        assert len(store.list_accounts()) == 2

    def test_plans(self, store):
        saved = store.save_plan(Plan(account_id="acc-1", allocated_pl=Decimal("500.50")))
        store.save_plan(saved.model_copy(update={"active": False, "name": "Old"}))
        store.save_plan(Plan(account_id="acc-1", allocated_pl=Decimal("100"), name="New"))

        assert saved.id is not None
        assert store.get_plan(saved.id).allocated_pl == Decimal("500.50")
        assert store.get_plan(saved.id).active is False
        assert [p.name for p in store.list_plans("acc-1", active_only=True)] == ["New"]
        assert len(store.list_plans("acc-1")) == 2

    def test_trades(self, store):
        late = store.save_trade(Trade(
            account_id="acc-1",
            plan_id="p1",
            trade_date=date(2024, 3, 2),
            entry_time=time(10, 30),
            result=Decimal("-45.5"),
            rr_ratio=Decimal("1.5"),
        ))
        early = store.save_trade(Trade(
            account_id="acc-1",
            plan_id="p1",
            trade_date=date(2024, 3, 1),
            result=Decimal("20"),
        ))

        assert store.get_trade(late.id) == late
        assert [t.id for t in store.list_trades(plan_id="p1")] == [early.id, late.id]
        assert store.list_trades(plan_id="other") == []

        assert store.delete_trade(late.id) is True
        assert store.delete_trade(late.id) is False
        assert store.get_trade(late.id) is None
