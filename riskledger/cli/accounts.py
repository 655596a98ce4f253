"""Account commands for riskledger CLI.

Handles opening accounts, booking deposits, withdrawals and
adjustments, and displaying balances and statements.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

import click
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from riskledger.cli.common import DATE, MONEY, as_date, colored, console, fail, get_service, money
from riskledger.utils.chrono import start_of_day


def _effective(value: Optional[datetime]) -> Optional[datetime]:
    return start_of_day(value.date()) if value is not None else None


@click.group()
def account() -> None:
    """Manage accounts.

    \b
    Examples:
      riskledger account open --owner ana --name Main --balance 10000
    """
    pass


@account.command("open")
@click.option("--owner", "owner_id", required=True, help="Owner of the account.")
@click.option("--name", required=True, help="Display name of the account.")
@click.option("--balance", "initial_balance", type=MONEY, default="0", help="Opening balance.")
@click.option("--currency", default="BRL", show_default=True, help="ISO currency code.")
@click.option(
    "--kind",
    type=click.Choice(["LIVE", "SIMULATED", "FUNDED"], case_sensitive=False),
    default="LIVE",
    show_default=True,
    help="Account kind.",
)
@click.option("--opened", type=DATE, default=None, help="Opening date (YYYY-MM-DD, default: today).")
@click.pass_obj
def open_account(
    obj: dict,
    owner_id: str,
    name: str,
    initial_balance: Decimal,
    currency: str,
    kind: str,
    opened: Optional[datetime],
) -> None:
    """Open an account and book its opening balance.

    \b
    Examples:
      riskledger account open --owner ana --name Main --balance 10000
      riskledger account open --owner ana --name Prop --kind FUNDED --currency USD
    """
    try:
        service = get_service(obj)
        acct = service.open_account(
            owner_id=owner_id,
            name=name,
            initial_balance=initial_balance,
            currency=currency,
            kind=kind.upper(),
            opened_on=as_date(opened),
        )
    except ValueError as e:
        fail(str(e), "Failed to open account")

    console.print(f"[green]✓ Opened account {escape(acct.name)}[/green]")
    console.print(f"ID:      [bold]{acct.id}[/bold]")
    console.print(f"Balance: {money(acct.initial_balance, acct.currency)}")


@click.command()
@click.option("--owner", "owner_id", default=None, help="Only show this owner's accounts.")
@click.pass_obj
def accounts(obj: dict, owner_id: Optional[str]) -> None:
    """List accounts with their current balances.

    \b
    Examples:
      riskledger accounts
      riskledger accounts --owner ana
    """
    try:
        service = get_service(obj)
        rows = [(acct, service.current_balance(acct.id)) for acct in service.list_accounts(owner_id)]
    except ValueError as e:
        fail(str(e))

    if not rows:
        console.print(Panel(
            "[dim]No accounts yet[/dim]\n\n"
            "Run [cyan]riskledger account open[/cyan] to create one.",
            title="[bold]Accounts[/bold]",
            border_style="dim",
        ))
        return

    table = Table(title="Accounts", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Owner")
    table.add_column("Kind")
    table.add_column("Balance", justify="right")

    for acct, balance in rows:
        table.add_row(
            acct.id,
            escape(acct.name),
            escape(acct.owner_id),
            acct.kind,
            colored(balance, acct.currency),
        )

    console.print(table)


@click.command()
@click.argument("account_id")
@click.pass_obj
def balance(obj: dict, account_id: str) -> None:
    """Display an account's balance and available capital.

    \b
    Examples:
      riskledger balance ACCOUNT_ID
    """
    try:
        service = get_service(obj)
        acct = service.get_account(account_id)
        current = service.current_balance(account_id)
        available = service.available_capital(account_id)
        totals = service.totals(account_id)
    except ValueError as e:
        fail(str(e), "Failed to get balance")

    cur = acct.currency
    balance_text = (
        f"[bold]{escape(acct.name)}[/bold] [dim]({acct.kind})[/dim]\n\n"
        f"Deposits:       [green]{money(totals.deposits, cur)}[/green]\n"
        f"Withdrawals:    [yellow]{money(totals.withdrawals, cur)}[/yellow]\n"
        f"Trade results:  {colored(totals.trade_results, cur)}\n"
        f"Adjustments:    {colored(totals.adjustments, cur)}\n"
        f"{'─' * 30}\n"
        f"[bold]Balance:        {money(current, cur)}[/bold]\n"
        f"Available:      {colored(available, cur)}"
    )

    console.print(Panel(
        balance_text,
        title="[bold cyan]Balance[/bold cyan]",
        border_style="cyan",
    ))


def _book(action: str, obj: dict, account_id: str, **kwargs) -> None:
    try:
        service = get_service(obj)
        acct = service.get_account(account_id)
        movement = getattr(service, action)(account_id, **kwargs)
        current = service.current_balance(account_id)
    except ValueError as e:
        fail(str(e), f"Failed to {action}")

    console.print(
        f"[green]✓ Booked {movement.type.lower().replace('_', ' ')} of "
        f"{money(movement.amount, acct.currency)}[/green]"
    )
    console.print(f"Balance: {money(current, acct.currency)}")


@click.command()
@click.argument("account_id")
@click.argument("amount", type=MONEY)
@click.option("--date", "on", type=DATE, default=None, help="Effective date (default: now).")
@click.option("-m", "--description", default=None, help="Description of the deposit.")
@click.pass_obj
def deposit(obj: dict, account_id: str, amount: Decimal, on: Optional[datetime], description: Optional[str]) -> None:
    """Add capital to an account.

    \b
    Examples:
      riskledger deposit ACCOUNT_ID 2000
      riskledger deposit ACCOUNT_ID 500 --date 2024-03-01 -m "Monthly top-up"
    """
    _book("deposit", obj, account_id, amount=amount, effective_at=_effective(on), description=description)


@click.command()
@click.argument("account_id")
@click.argument("amount", type=MONEY)
@click.option("--date", "on", type=DATE, default=None, help="Effective date (default: now).")
@click.option("-m", "--description", default=None, help="Description of the withdrawal.")
@click.pass_obj
def withdraw(obj: dict, account_id: str, amount: Decimal, on: Optional[datetime], description: Optional[str]) -> None:
    """Take capital out of an account.

    AMOUNT is the positive amount withdrawn.

    \b
    Examples:
      riskledger withdraw ACCOUNT_ID 1500
    """
    _book("withdraw", obj, account_id, amount=amount, effective_at=_effective(on), description=description)


@click.command()
@click.argument("account_id")
@click.option("--amount", type=MONEY, required=True, help="Signed amount, e.g. --amount=-25.")
@click.option("--reason", required=True, help="Why the adjustment is booked.")
@click.option("--trade", "trade_id", default=None, help="Trade the adjustment compensates.")
@click.option("--date", "on", type=DATE, default=None, help="Effective date (default: now).")
@click.pass_obj
def adjust(
    obj: dict,
    account_id: str,
    amount: Decimal,
    reason: str,
    trade_id: Optional[str],
    on: Optional[datetime],
) -> None:
    """Book a signed correction to an account.

    \b
    Examples:
      riskledger adjust ACCOUNT_ID --amount=-25 --reason "Brokerage fee"
    """
    _book(
        "adjust",
        obj,
        account_id,
        amount=amount,
        reason=reason,
        trade_id=trade_id,
        effective_at=_effective(on),
    )


@click.command()
@click.argument("account_id")
@click.option("--from", "start", type=DATE, default=None, help="First date to show.")
@click.option("--to", "end", type=DATE, default=None, help="Last date to show.")
@click.pass_obj
def statement(obj: dict, account_id: str, start: Optional[datetime], end: Optional[datetime]) -> None:
    """Display an account's movements with running balances.

    \b
    Examples:
      riskledger statement ACCOUNT_ID
      riskledger statement ACCOUNT_ID --from 2024-03-01 --to 2024-03-31
    """
    from datetime import date

    from riskledger.ledger.projector import movements_between

    try:
        service = get_service(obj)
        acct = service.get_account(account_id)
        series = service.statement(account_id)
    except ValueError as e:
        fail(str(e), "Failed to get statement")

    rows = movements_between(
        series,
        as_date(start) or date.min,
        as_date(end) or date.max,
    )

    if not rows:
        console.print(Panel(
            "[dim]No movements in this range[/dim]",
            title=f"[bold]Statement: {escape(acct.name)}[/bold]",
            border_style="dim",
        ))
        return

    table = Table(
        title=f"Statement: {escape(acct.name)}",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("#", style="dim", justify="right")
    table.add_column("Date")
    table.add_column("Type")
    table.add_column("Description")
    table.add_column("Amount", justify="right")
    table.add_column("Balance", justify="right")

    for row in rows:
        movement = row.movement
        table.add_row(
            str(movement.sequence),
            movement.effective_at.strftime("%Y-%m-%d %H:%M"),
            movement.type,
            escape(movement.description or ""),
            colored(movement.amount),
            money(row.balance_after),
        )

    console.print(table)
    console.print(f"\n[bold]Closing balance:[/bold] {money(rows[-1].balance_after, acct.currency)}")
