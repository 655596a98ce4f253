"""Account data model."""

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

AccountKind = Literal["LIVE", "SIMULATED", "FUNDED"]


class Account(BaseModel):
    """A capital container owned by one trader.

    The live balance is never stored here; it is always projected from
    the account's movements.
    """

    id: str = Field(..., min_length=1, description="Account identifier")
    owner_id: str = Field(..., min_length=1, description="Owner identifier")
    name: str = Field(..., min_length=1, description="Display name")
    currency: str = Field(default="BRL", min_length=3, max_length=3, description="ISO currency code")
    kind: AccountKind = Field(default="LIVE", description="Account kind")
    initial_balance: Decimal = Field(
        default=Decimal("0"), ge=0, description="Opening balance (reference only)"
    )
    active: bool = Field(default=True, description="Whether the account is in use")

    model_config = {"frozen": True}
