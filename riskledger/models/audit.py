"""Compliance audit result models."""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from riskledger.models.trade import Trade


class RowEvent(str, Enum):
    """Threshold crossing tagged on an audit row."""

    GOAL_HIT = "GOAL_HIT"
    STOP_HIT = "STOP_HIT"


class Outcome(str, Enum):
    """Behavioral classification of a replayed scope."""

    IN_PROGRESS = "IN_PROGRESS"
    GOAL_DISCIPLINED = "GOAL_DISCIPLINED"
    GOAL_GAVE_BACK = "GOAL_GAVE_BACK"
    GOAL_TO_STOP = "GOAL_TO_STOP"
    LOSS_TO_GOAL = "LOSS_TO_GOAL"
    STOP_DISCIPLINED = "STOP_DISCIPLINED"
    STOP_WORSENED = "STOP_WORSENED"
    STOP_RECOVERED = "STOP_RECOVERED"


OUTCOME_LABELS = {
    Outcome.IN_PROGRESS: "In progress / neutral",
    Outcome.GOAL_DISCIPLINED: "Goal hit (disciplined)",
    Outcome.GOAL_GAVE_BACK: "Goal given back (greed)",
    Outcome.GOAL_TO_STOP: "Goal to stop (catastrophe)",
    Outcome.LOSS_TO_GOAL: "Loss to goal (risky recovery)",
    Outcome.STOP_DISCIPLINED: "Stop respected",
    Outcome.STOP_WORSENED: "Stop violated (worsened)",
    Outcome.STOP_RECOVERED: "Stop violated (recovered)",
}


class AuditRow(BaseModel):
    """One replayed trade with the running scope balance after it."""

    trade: Trade
    running_balance: Decimal
    event: Optional[RowEvent] = None
    after_goal: bool = False
    after_stop: bool = False

    model_config = {"frozen": True}


class AuditResult(BaseModel):
    """Outcome of replaying a scope against its goal and stop."""

    goal_value: Decimal = Field(..., gt=0)
    stop_value: Decimal = Field(..., gt=0)
    history: list[AuditRow] = Field(default_factory=list)
    final_balance: Decimal = Decimal("0")
    outcome: Outcome = Outcome.IN_PROGRESS
    primary_event: Optional[RowEvent] = None
    goal_index: Optional[int] = Field(default=None, description="Row where the goal was first hit")
    stop_index: Optional[int] = Field(default=None, description="Row where the stop was first hit")
    remaining_to_goal: Decimal = Field(..., ge=0)
    remaining_to_stop: Decimal = Field(..., ge=0)

    model_config = {"frozen": True}

    @property
    def label(self) -> str:
        return OUTCOME_LABELS[self.outcome]

    @property
    def rows_after_stop(self) -> int:
        return sum(1 for row in self.history if row.after_stop)
