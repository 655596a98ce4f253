"""Plan compliance: scope resolution, audits, trade checks and statements."""

from riskledger.compliance.analyzer import analyze, audit_plan, plan_thresholds
from riskledger.compliance.scope import ScopeResolver, trades_in_window
from riskledger.compliance.statement import (
    PlanStatement,
    PlanSummary,
    StatementRow,
    check_plan_trade,
    group_rows_by_date,
    plan_statement,
    trade_stats,
)
from riskledger.compliance.trade_checks import (
    Severity,
    TradeViolation,
    ViolationType,
    check_trade,
    trade_risk_percent,
)

__all__ = [
    "analyze",
    "audit_plan",
    "plan_thresholds",
    "ScopeResolver",
    "trades_in_window",
    "PlanStatement",
    "PlanSummary",
    "StatementRow",
    "check_plan_trade",
    "group_rows_by_date",
    "plan_statement",
    "trade_stats",
    "Severity",
    "TradeViolation",
    "ViolationType",
    "check_trade",
    "trade_risk_percent",
]
