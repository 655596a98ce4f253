"""Per-trade rule checks against a plan."""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from riskledger.models import Plan, Trade
from riskledger.utils.money import ZERO, MoneyLike, ratio_percent, to_money


class ViolationType(str, Enum):
    """Rule a trade broke."""

    PERIOD_STOP_HIT = "PERIOD_STOP_HIT"
    CYCLE_STOP_HIT = "CYCLE_STOP_HIT"
    RR_BELOW_MINIMUM = "RR_BELOW_MINIMUM"
    RISK_EXCEEDED = "RISK_EXCEEDED"


class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"


class TradeViolation(BaseModel):
    """A broken plan rule."""

    type: ViolationType
    severity: Severity
    message: str = Field(..., min_length=1)

    model_config = {"frozen": True}


def trade_risk_percent(trade: Trade, plan: Plan) -> Optional[Decimal]:
    """Risk of a trade as a percent of the plan's PL.

    The declared risk wins. Otherwise a losing trade's risk is its loss
    over the PL; a winning trade without a declared risk has none.
    """
    if trade.risk_percent is not None:
        return trade.risk_percent
    if trade.result < ZERO and plan.allocated_pl > ZERO:
        return ratio_percent(abs(trade.result), plan.allocated_pl)
    return None


def _scope_loss_percent(pnl: Decimal, plan: Plan) -> Optional[Decimal]:
    if pnl >= ZERO or plan.allocated_pl <= ZERO:
        return None
    return ratio_percent(abs(pnl), plan.allocated_pl)


def check_trade(
    trade: Trade,
    plan: Optional[Plan],
    period_pnl: MoneyLike = 0,
    cycle_pnl: MoneyLike = 0,
) -> list[TradeViolation]:
    """Check a trade against its plan's rules.

    Args:
        trade: The trade being checked.
        plan: Plan the trade was taken under; None means no rules apply.
        period_pnl: Scope P&L of the period, including this trade.
        cycle_pnl: Scope P&L of the cycle, including this trade.

    Returns:
        Violations found, critical ones first.
    """
    if plan is None:
        return []

    violations = []

    period_loss = _scope_loss_percent(to_money(period_pnl), plan)
    if period_loss is not None and period_loss >= plan.period_stop_percent:
        violations.append(TradeViolation(
            type=ViolationType.PERIOD_STOP_HIT,
            severity=Severity.CRITICAL,
            message=f"Period stop hit: -{period_loss:.1f}% (limit: {plan.period_stop_percent}%)",
        ))

    cycle_loss = _scope_loss_percent(to_money(cycle_pnl), plan)
    if cycle_loss is not None and cycle_loss >= plan.cycle_stop_percent:
        violations.append(TradeViolation(
            type=ViolationType.CYCLE_STOP_HIT,
            severity=Severity.CRITICAL,
            message=f"Cycle stop hit: -{cycle_loss:.1f}% (limit: {plan.cycle_stop_percent}%)",
        ))

    if trade.rr_ratio is not None and trade.rr_ratio < plan.rr_target:
        violations.append(TradeViolation(
            type=ViolationType.RR_BELOW_MINIMUM,
            severity=Severity.WARNING,
            message=f"R:R {trade.rr_ratio:.1f} below minimum {plan.rr_target}",
        ))

    risk = trade_risk_percent(trade, plan)
    if risk is not None and risk > plan.risk_per_operation:
        violations.append(TradeViolation(
            type=ViolationType.RISK_EXCEEDED,
            severity=Severity.WARNING,
            message=f"Risk {risk:.1f}% exceeds limit of {plan.risk_per_operation}%",
        ))

    return violations
