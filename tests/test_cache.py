"""Tests for the read-through balance cache.

**Feature: riskledger**
"""

from datetime import datetime
from decimal import Decimal

import pytest

from riskledger.db import InMemoryRecordStore
from riskledger.ledger import BalanceCache
from riskledger.models import Account, MovementType, new_movement

NOW = datetime(2024, 3, 1, 9, 30)


@pytest.fixture
def store():
    s = InMemoryRecordStore()
    for account_id in ("acc-1", "acc-2"):
        s.save_account(Account(id=account_id, owner_id="u1", name=account_id))
        s.append_movement(new_movement(
            MovementType.INITIAL_BALANCE, account_id=account_id, amount=Decimal("1000"), effective_at=NOW
        ))
    return s


def deposit(account_id: str, amount: str = "100"):
    return new_movement(
        MovementType.DEPOSIT, account_id=account_id, amount=Decimal(amount), effective_at=NOW
    )


class TestBalanceCache:
    """
    **Feature: riskledger, Property 22: Cache Invalidation on Append**

    A cached projection is reused until a movement is appended to its
    account, and never serves a stale balance.
    """

    def test_hit_after_miss(self, store):
        cache = BalanceCache(store)

        assert cache.balance("acc-1") == Decimal("1000")
        assert cache.balance("acc-1") == Decimal("1000")

        assert (cache.misses, cache.hits) == (1, 1)

    def test_append_invalidates_only_that_account(self, store):
        cache = BalanceCache(store)
        cache.balance("acc-1")
        cache.balance("acc-2")

        store.append_movement(deposit("acc-1"))

        assert cache.balance("acc-1") == Decimal("1100")
        assert cache.balance("acc-2") == Decimal("1000")
        assert cache.misses == 3
        assert cache.hits == 1

    def test_empty_account_has_no_balance(self, store):
        store.save_account(Account(id="acc-3", owner_id="u1", name="Empty"))
        cache = BalanceCache(store)

        assert cache.balance("acc-3") is None

    def test_manual_invalidate(self, store):
        cache = BalanceCache(store)
        cache.series("acc-1")
        cache.series("acc-2")

        cache.invalidate()
        cache.series("acc-1")

        assert cache.misses == 3

    def test_close_stops_listening(self, store):
        cache = BalanceCache(store)
        cache.close()
        cache.balance("acc-1")

        # No longer invalidated by appends
        store.append_movement(deposit("acc-1"))

        assert cache.balance("acc-1") == Decimal("1000")
