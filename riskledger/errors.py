"""Exception types raised by the ledger and compliance engines.

Every error is a ``ValueError`` subclass, so callers that already guard
bad input with ``except ValueError`` keep working.
"""


class LedgerError(ValueError):
    """Base class for all riskledger errors."""


class MovementIntegrityError(LedgerError):
    """A movement is malformed, unsequenced, mis-signed or from another account."""


class ThresholdError(LedgerError):
    """A goal or stop threshold is zero or negative."""


class PlanConfigurationError(LedgerError):
    """A plan contradicts itself or over-allocates the account's capital."""


class InsufficientFundsError(LedgerError):
    """A withdrawal would drive the projected balance below zero."""

    def __init__(self, account_id: str, balance, amount):
        self.account_id = account_id
        self.balance = balance
        self.amount = amount
        super().__init__(
            f"Withdrawal of {amount} exceeds balance {balance} on account {account_id}"
        )


class ScopeResolutionError(LedgerError):
    """A plan period/cycle label cannot be mapped to exactly one time window."""


class RecordNotFoundError(LedgerError):
    """An account, plan or trade id is unknown to the record store."""

    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} not found: {record_id}")


class ConfigError(LedgerError):
    """The configuration file cannot be read or is invalid."""
