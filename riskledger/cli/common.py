"""Shared helpers for the riskledger CLI commands."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from riskledger.utils.money import ZERO, to_money

console = Console()


class MoneyType(click.ParamType):
    """Click parameter type for decimal money amounts."""

    name = "amount"

    def convert(self, value, param, ctx) -> Decimal:
        if isinstance(value, Decimal):
            return value
        try:
            return to_money(str(value).replace(",", ""))
        except ValueError:
            self.fail(f"{value!r} is not a valid amount", param, ctx)


MONEY = MoneyType()

DATE = click.DateTime(formats=["%Y-%m-%d"])


def as_date(value: Optional[datetime]) -> Optional[date]:
    return value.date() if value is not None else None


def get_service(obj: dict):
    """Build the ledger service from the CLI context settings."""
    from riskledger.config import load_config
    from riskledger.db.store import SQLiteRecordStore
    from riskledger.ledger.service import LedgerService

    config = load_config(obj.get("config_path"))
    db_path = obj.get("db_path") or config.db_path
    return LedgerService(SQLiteRecordStore(db_path), config)


def fail(message: str, title: str = "Error") -> None:
    """Print an error panel and exit with status 1."""
    console.print(Panel(
        f"[red]{escape(message)}[/red]",
        title=f"[bold red]{title}[/bold red]",
        border_style="red",
    ))
    raise SystemExit(1)


def money(value: Decimal, currency: str = "") -> str:
    text = f"{value:,.2f}"
    return f"{currency} {text}" if currency else text


def pnl_color(value: Decimal) -> str:
    if value > ZERO:
        return "green"
    if value < ZERO:
        return "red"
    return "white"


def colored(value: Decimal, currency: str = "") -> str:
    color = pnl_color(value)
    return f"[{color}]{money(value, currency)}[/{color}]"
