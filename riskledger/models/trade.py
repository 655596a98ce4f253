"""Trade data model."""

from datetime import date, time
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field


class Trade(BaseModel):
    """A finalized trade with its net signed result."""

    id: Optional[str] = Field(default=None, description="Trade identifier")
    account_id: str = Field(..., min_length=1, description="Account the result is booked to")
    plan_id: Optional[str] = Field(default=None, description="Plan the trade was taken under")
    ticker: str = Field(default="-", min_length=1, description="Traded instrument")
    side: Literal["LONG", "SHORT"] = Field(default="LONG", description="Trade direction")
    quantity: Decimal = Field(default=Decimal("1"), gt=0, description="Contracts or shares")
    trade_date: date = Field(..., description="Trade date")
    entry_time: Optional[time] = Field(default=None, description="Entry time, for same-day ordering")
    result: Decimal = Field(..., description="Net signed result")
    risk_percent: Optional[Decimal] = Field(
        default=None, ge=0, description="Declared risk, % of plan PL"
    )
    rr_ratio: Optional[Decimal] = Field(default=None, ge=0, description="Reward/risk ratio")

    model_config = {"frozen": True}
