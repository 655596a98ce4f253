"""Trade commands for riskledger CLI.

Handles recording and removing finalized trades, and auditing a
plan's period or cycle against its goal and stop.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

import click
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from riskledger.cli.common import DATE, MONEY, as_date, colored, console, fail, get_service, money

OUTCOME_STYLES = {
    "IN_PROGRESS": "white",
    "GOAL_DISCIPLINED": "green",
    "GOAL_GAVE_BACK": "yellow",
    "GOAL_TO_STOP": "bold red",
    "LOSS_TO_GOAL": "yellow",
    "STOP_DISCIPLINED": "cyan",
    "STOP_WORSENED": "bold red",
    "STOP_RECOVERED": "yellow",
}


@click.group()
def trade() -> None:
    """Record and remove trades.

    \b
    Examples:
      riskledger trade record ACCOUNT_ID --plan PLAN_ID --result=-120
      riskledger trade list --plan PLAN_ID
      riskledger trade remove TRADE_ID --reason "Duplicate entry"
    """
    pass


@trade.command("record")
@click.argument("account_id")
@click.option("--result", type=MONEY, required=True, help="Net signed result, e.g. --result=-120.")
@click.option("--plan", "plan_id", default=None, help="Plan the trade was taken under.")
@click.option("--ticker", default="-", help="Traded instrument.")
@click.option(
    "--side",
    type=click.Choice(["LONG", "SHORT"], case_sensitive=False),
    default="LONG",
    show_default=True,
    help="Trade direction.",
)
@click.option("--qty", type=MONEY, default="1", show_default=True, help="Contracts or shares.")
@click.option("--date", "on", type=DATE, default=None, help="Trade date (default: today).")
@click.option("--time", "at", type=click.DateTime(formats=["%H:%M", "%H:%M:%S"]), default=None,
              help="Entry time (HH:MM).")
@click.option("--risk", type=MONEY, default=None, help="Declared risk, % of plan PL.")
@click.option("--rr", type=MONEY, default=None, help="Reward/risk ratio.")
@click.pass_obj
def record(
    obj: dict,
    account_id: str,
    result: Decimal,
    plan_id: Optional[str],
    ticker: str,
    side: str,
    qty: Decimal,
    on: Optional[datetime],
    at: Optional[datetime],
    risk: Optional[Decimal],
    rr: Optional[Decimal],
) -> None:
    """Record a finalized trade and book its result.

    \b
    Examples:
      riskledger trade record ACCOUNT_ID --result 300 --plan PLAN_ID
      riskledger trade record ACCOUNT_ID --result=-150 --ticker WINJ24 --time 10:15 --rr 1.5
    """
    from datetime import date

    from riskledger.models import Trade

    try:
        service = get_service(obj)
        saved = service.record_trade(Trade(
            account_id=account_id,
            plan_id=plan_id,
            ticker=ticker.upper(),
            side=side.upper(),
            quantity=qty,
            trade_date=as_date(on) or date.today(),
            entry_time=at.time() if at else None,
            result=result,
            risk_percent=risk,
            rr_ratio=rr,
        ))
        current = service.current_balance(account_id)
        violations = service.trade_violations(saved.id)
    except ValueError as e:
        fail(str(e), "Failed to record trade")

    console.print(f"[green]✓ Recorded trade {saved.id}[/green]")
    console.print(f"Result:  {colored(saved.result)}")
    console.print(f"Balance: {money(current)}")
    for violation in violations:
        color = "red" if violation.severity == "critical" else "yellow"
        console.print(f"[{color}]⚠ {escape(violation.message)}[/{color}]")


@trade.command("remove")
@click.argument("trade_id")
@click.option("--reason", default=None, help="Why the trade is removed.")
@click.pass_obj
def remove(obj: dict, trade_id: str, reason: Optional[str]) -> None:
    """Remove a trade, booking an adjustment that offsets its result.

    \b
    Examples:
      riskledger trade remove TRADE_ID --reason "Duplicate entry"
    """
    try:
        service = get_service(obj)
        offset = service.remove_trade(trade_id, reason)
    except ValueError as e:
        fail(str(e), "Failed to remove trade")

    console.print(f"[green]✓ Removed trade {trade_id}[/green]")
    if offset is not None:
        console.print(f"Offset:  {colored(offset.amount)}")


@trade.command("list")
@click.option("--plan", "plan_id", default=None, help="Only this plan's trades.")
@click.option("--account", "account_id", default=None, help="Only this account's trades.")
@click.pass_obj
def list_trades(obj: dict, plan_id: Optional[str], account_id: Optional[str]) -> None:
    """List recorded trades with result statistics.

    \b
    Examples:
      riskledger trade list --plan PLAN_ID
    """
    from riskledger.compliance import trade_stats

    try:
        service = get_service(obj)
        trades = service.list_trades(plan_id=plan_id, account_id=account_id)
    except ValueError as e:
        fail(str(e))

    if not trades:
        console.print(Panel(
            "[dim]No trades found[/dim]",
            title="[bold]Trades[/bold]",
            border_style="dim",
        ))
        return

    table = Table(title="Trades", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Date")
    table.add_column("Time")
    table.add_column("Ticker", style="bold")
    table.add_column("Side")
    table.add_column("Result", justify="right")

    for t in trades:
        table.add_row(
            t.id,
            t.trade_date.isoformat(),
            t.entry_time.strftime("%H:%M") if t.entry_time else "-",
            escape(t.ticker),
            t.side,
            colored(t.result),
        )

    console.print(table)

    stats = trade_stats(trades)
    profit_factor = stats["profit_factor"]
    console.print(
        f"\n[bold]Total:[/bold] {colored(stats['total_result'])}  "
        f"Win rate: {stats['win_rate']}%  "
        f"Profit factor: {profit_factor if profit_factor is not None else '-'}"
    )


@click.command()
@click.argument("plan_id")
@click.option(
    "--scope",
    type=click.Choice(["period", "cycle"], case_sensitive=False),
    default="period",
    show_default=True,
    help="Audit the plan's period or its whole cycle.",
)
@click.option("--date", "on", type=DATE, default=None, help="Date in the window (default: today).")
@click.pass_obj
def audit(obj: dict, plan_id: str, scope: str, on: Optional[datetime]) -> None:
    """Audit a plan's period or cycle against its goal and stop.

    Replays the window's trades in order, marks the first time the goal
    or stop was hit, and flags every trade taken after it.

    \b
    Examples:
      riskledger audit PLAN_ID
      riskledger audit PLAN_ID --scope cycle --date 2024-03-15
    """
    from riskledger.compliance import group_rows_by_date
    from riskledger.models import Scope

    try:
        service = get_service(obj)
        stmt = service.plan_statement(plan_id, Scope(scope.lower()), as_date(on))
    except ValueError as e:
        fail(str(e), "Failed to audit plan")

    result = stmt.audit
    summary = stmt.summary

    if stmt.rows:
        table = Table(
            title=f"{escape(stmt.plan.name)}: {stmt.start} to {stmt.end}",
            show_header=True,
            header_style="bold cyan",
        )
        table.add_column("#", style="dim", justify="right")
        table.add_column("Time")
        table.add_column("Ticker", style="bold")
        table.add_column("Result", justify="right")
        table.add_column("Running", justify="right")
        table.add_column("Flags")

        index = 0
        for day, rows in group_rows_by_date(stmt.rows).items():
            table.add_section()
            table.add_row("", f"[bold]{day.isoformat()}[/bold]", "", "", "", "")
            for row in rows:
                index += 1
                flags = []
                if row.row.event is not None:
                    color = "green" if row.row.event == "GOAL_HIT" else "red"
                    flags.append(f"[{color}]{row.row.event.value}[/{color}]")
                if row.row.after_goal:
                    flags.append("[yellow]after goal[/yellow]")
                if row.row.after_stop:
                    flags.append("[red]after stop[/red]")
                flags.extend(f"[dim]{v.type.value}[/dim]" for v in row.violations)
                table.add_row(
                    str(index),
                    row.trade.entry_time.strftime("%H:%M") if row.trade.entry_time else "-",
                    escape(row.trade.ticker),
                    colored(row.trade.result),
                    colored(row.row.running_balance),
                    " ".join(flags),
                )

        console.print(table)

    style = OUTCOME_STYLES.get(result.outcome.value, "white")
    summary_text = (
        f"[bold]Outcome:[/bold] [{style}]{result.label}[/{style}]\n\n"
        f"Goal:              [green]{money(result.goal_value)}[/green]\n"
        f"Stop:              [red]{money(result.stop_value)}[/red]\n"
        f"Result:            {colored(result.final_balance)}\n"
        f"Remaining to goal: {money(result.remaining_to_goal)}\n"
        f"Remaining to stop: {money(result.remaining_to_stop)}\n"
        f"{'─' * 30}\n"
        f"Trades: {summary.trades}  Wins: {summary.wins}  Losses: {summary.losses}  "
        f"Win rate: {summary.win_rate}%\n"
        f"Goal progress: {summary.goal_progress}%  Stop consumed: {summary.stop_consumed}%\n"
        f"Current PL: {money(summary.current_pl)}"
    )
    if summary.violations:
        summary_text += f"\n[red]Trades after stop: {summary.violations}[/red]"

    console.print(Panel(
        summary_text,
        title=f"[bold cyan]Audit ({scope.lower()})[/bold cyan]",
        border_style="cyan",
    ))
