"""Movement data models.

A movement is one immutable, signed money event in an account's ledger.
Each movement type is its own model carrying only the fields relevant to
it; ``Movement`` is the tagged union of all of them, discriminated on
``type``.

Amounts are stored signed: money entering the account is positive and
money leaving it is negative. The sign rule for each type is checked
whenever a movement model is built.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Callable, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator, model_validator

from riskledger.utils.chrono import as_naive_utc


class MovementType(str, Enum):
    """Kinds of money event a ledger accepts."""

    INITIAL_BALANCE = "INITIAL_BALANCE"
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    TRADE_RESULT = "TRADE_RESULT"
    ADJUSTMENT = "ADJUSTMENT"


SIGN_RULES: dict[MovementType, tuple[Callable[[Decimal], bool], str]] = {
    MovementType.INITIAL_BALANCE: (lambda amount: amount >= 0, "zero or positive"),
    MovementType.DEPOSIT: (lambda amount: amount > 0, "positive"),
    MovementType.WITHDRAWAL: (lambda amount: amount < 0, "negative"),
    MovementType.TRADE_RESULT: (lambda amount: True, "any sign"),
    MovementType.ADJUSTMENT: (lambda amount: amount != 0, "non-zero"),
}

DEFAULT_DESCRIPTIONS = {
    MovementType.INITIAL_BALANCE: "Initial balance",
    MovementType.DEPOSIT: "Deposit",
    MovementType.WITHDRAWAL: "Withdrawal",
    MovementType.TRADE_RESULT: "Trade result",
}


class _MovementBase(BaseModel):
    account_id: str = Field(..., min_length=1, description="Owning account")
    amount: Decimal = Field(..., description="Signed amount")
    effective_at: datetime = Field(..., description="Effective date/time (naive UTC)")
    description: Optional[str] = Field(default=None, description="Free-text description")
    sequence: Optional[int] = Field(
        default=None, ge=0, description="Insertion sequence assigned by the record store"
    )
    balance_after: Optional[Decimal] = Field(
        default=None, description="Derived running balance, filled in by the projector"
    )

    model_config = {"frozen": True}

    @field_validator("effective_at")
    @classmethod
    def _normalize_time(cls, value: datetime) -> datetime:
        return as_naive_utc(value)

    @field_validator("amount")
    @classmethod
    def _finite_amount(cls, value: Decimal) -> Decimal:
        if not value.is_finite():
            raise ValueError("amount must be finite")
        return value

    @model_validator(mode="after")
    def _check_sign(self):
        rule, expected = SIGN_RULES[MovementType(self.type)]
        if not rule(self.amount):
            raise ValueError(f"{self.type} amount must be {expected}, got {self.amount}")
        return self

    @property
    def movement_type(self) -> MovementType:
        return MovementType(self.type)


class InitialBalance(_MovementBase):
    """Opening balance, appended when the account is created."""

    type: Literal["INITIAL_BALANCE"] = "INITIAL_BALANCE"


class Deposit(_MovementBase):
    """Capital added to the account."""

    type: Literal["DEPOSIT"] = "DEPOSIT"


class Withdrawal(_MovementBase):
    """Capital taken out of the account (stored negative)."""

    type: Literal["WITHDRAWAL"] = "WITHDRAWAL"


class TradeResult(_MovementBase):
    """Net result of a finalized trade."""

    type: Literal["TRADE_RESULT"] = "TRADE_RESULT"
    trade_id: str = Field(..., min_length=1, description="Originating trade")


class Adjustment(_MovementBase):
    """Manual correction; the only way to amend committed history."""

    type: Literal["ADJUSTMENT"] = "ADJUSTMENT"
    description: str = Field(..., min_length=1, description="Reason for the adjustment")
    trade_id: Optional[str] = Field(default=None, description="Trade being compensated, if any")


Movement = Annotated[
    Union[InitialBalance, Deposit, Withdrawal, TradeResult, Adjustment],
    Field(discriminator="type"),
]

MOVEMENT_CLASSES = {
    MovementType.INITIAL_BALANCE: InitialBalance,
    MovementType.DEPOSIT: Deposit,
    MovementType.WITHDRAWAL: Withdrawal,
    MovementType.TRADE_RESULT: TradeResult,
    MovementType.ADJUSTMENT: Adjustment,
}

_movement_adapter = TypeAdapter(Movement)


def parse_movement(data: Any) -> Movement:
    """Build the movement variant matching ``data["type"]``.

    Raises:
        pydantic.ValidationError: If a field is missing or inconsistent.
    """
    return _movement_adapter.validate_python(data)


def new_movement(movement_type: MovementType, **fields) -> Movement:
    """Create a movement of the given type, filling in a default description."""
    movement_type = MovementType(movement_type)
    if movement_type in DEFAULT_DESCRIPTIONS:
        fields.setdefault("description", DEFAULT_DESCRIPTIONS[movement_type])
    return MOVEMENT_CLASSES[movement_type](**fields)
