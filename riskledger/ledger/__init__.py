"""Movement ledger: balance projection, caching and the write service."""

from riskledger.ledger.cache import BalanceCache
from riskledger.ledger.projector import (
    BalanceRow,
    LedgerTotals,
    OrderedBalanceSeries,
    available_capital,
    current_balance,
    movements_between,
    project,
    totals_by_type,
)
from riskledger.ledger.service import LedgerService

__all__ = [
    "BalanceCache",
    "BalanceRow",
    "LedgerTotals",
    "OrderedBalanceSeries",
    "available_capital",
    "current_balance",
    "movements_between",
    "project",
    "totals_by_type",
    "LedgerService",
]
