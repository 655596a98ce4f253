"""Read-through cache of projected balances, keyed by account."""

import logging
from decimal import Decimal
from typing import Optional

from riskledger.db.base import RecordStore
from riskledger.ledger.projector import OrderedBalanceSeries, project
from riskledger.models import Movement

logger = logging.getLogger(__name__)


class BalanceCache:
    """Caches each account's projection until a movement is appended to it.

    The cache never computes a balance itself: a miss re-reads the
    account's movements from the store and re-runs the projector.
    """

    def __init__(self, store: RecordStore):
        """Initialize the cache and subscribe to the store's appends.

        Args:
            store: Record store the movements are read from.
        """
        self._store = store
        self._series: dict[str, OrderedBalanceSeries] = {}
        self.hits = 0
        self.misses = 0
        self._unsubscribe = store.subscribe(self._on_append)

    def _on_append(self, movement: Movement) -> None:
        self.invalidate(movement.account_id)

    def invalidate(self, account_id: Optional[str] = None) -> None:
        """Drop one account's projection, or all of them."""
        if account_id is None:
            self._series.clear()
        else:
            self._series.pop(account_id, None)

    def series(self, account_id: str) -> OrderedBalanceSeries:
        """Get the projected movement series of an account."""
        cached = self._series.get(account_id)
        if cached is not None:
            self.hits += 1
            return cached

        self.misses += 1
        series = project(self._store.list_movements(account_id), account_id)
        self._series[account_id] = series
        logger.debug("Projected %d movements for account %s", len(series), account_id)
        return series

    def balance(self, account_id: str) -> Optional[Decimal]:
        """Closing balance of an account, or None when it has no movements."""
        series = self.series(account_id)
        return series.closing_balance if series.rows else None

    def close(self) -> None:
        """Stop listening to the store."""
        self._unsubscribe()
        self._series.clear()
