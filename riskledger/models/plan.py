"""Plan data model."""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Scope(str, Enum):
    """Audit scope of a plan: the fine-grained period or the whole cycle."""

    PERIOD = "period"
    CYCLE = "cycle"


class Plan(BaseModel):
    """Risk contract allocating capital from an account.

    Goal and stop figures are percentages of the allocated capital and
    come in two nested scopes: the cycle (e.g. a month) and the period
    (e.g. a trading day).
    """

    id: Optional[str] = Field(default=None, description="Plan identifier")
    account_id: str = Field(..., min_length=1, description="Account the capital is drawn from")
    name: str = Field(default="Trading plan", min_length=1, description="Display name")
    allocated_pl: Decimal = Field(..., description="Allocated capital (PL)")
    cycle_goal_percent: Decimal = Field(default=Decimal("10"), gt=0, description="Cycle goal, % of PL")
    cycle_stop_percent: Decimal = Field(default=Decimal("5"), gt=0, description="Cycle stop, % of PL")
    period_goal_percent: Decimal = Field(default=Decimal("2"), gt=0, description="Period goal, % of PL")
    period_stop_percent: Decimal = Field(default=Decimal("2"), gt=0, description="Period stop, % of PL")
    risk_per_operation: Decimal = Field(
        default=Decimal("2"), gt=0, description="Maximum risk per trade, % of PL"
    )
    rr_target: Decimal = Field(default=Decimal("2"), gt=0, description="Minimum reward/risk ratio")
    operation_period: str = Field(default="daily", min_length=1, description="Period label")
    adjustment_cycle: str = Field(default="monthly", min_length=1, description="Cycle label")
    active: bool = Field(default=True, description="Whether the allocation is live")

    model_config = {"frozen": True}

    def goal_percent(self, scope: Scope) -> Decimal:
        return self.period_goal_percent if scope == Scope.PERIOD else self.cycle_goal_percent

    def stop_percent(self, scope: Scope) -> Decimal:
        return self.period_stop_percent if scope == Scope.PERIOD else self.cycle_stop_percent

    def scope_label(self, scope: Scope) -> str:
        return self.operation_period if scope == Scope.PERIOD else self.adjustment_cycle
