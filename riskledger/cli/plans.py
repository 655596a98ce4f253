"""Plan commands for riskledger CLI.

Handles creating, listing and deactivating trading plans, and shows
the capital still available for allocation.
"""

from decimal import Decimal
from typing import Optional

import click
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from riskledger.cli.common import MONEY, colored, console, fail, get_service, money


@click.group()
def plan() -> None:
    """Manage trading plans.

    A plan allocates part of an account's capital (the PL) with goal
    and stop percentages for its period (e.g. a day) and cycle (e.g. a
    month).

    \b
    Examples:
      riskledger plan create ACCOUNT_ID --pl 5000
      riskledger plan list ACCOUNT_ID
      riskledger plan available ACCOUNT_ID
    """
    pass


@plan.command("create")
@click.argument("account_id")
@click.option("--pl", "allocated_pl", type=MONEY, required=True, help="Capital allocated to the plan.")
@click.option("--name", default="Trading plan", show_default=True, help="Plan name.")
@click.option("--cycle-goal", type=MONEY, default="10", show_default=True, help="Cycle goal, % of PL.")
@click.option("--cycle-stop", type=MONEY, default="5", show_default=True, help="Cycle stop, % of PL.")
@click.option("--period-goal", type=MONEY, default="2", show_default=True, help="Period goal, % of PL.")
@click.option("--period-stop", type=MONEY, default="2", show_default=True, help="Period stop, % of PL.")
@click.option("--risk", type=MONEY, default="2", show_default=True, help="Max risk per trade, % of PL.")
@click.option("--rr", type=MONEY, default="2", show_default=True, help="Minimum reward/risk ratio.")
@click.option("--period", "operation_period", default="daily", show_default=True, help="Period label.")
@click.option("--cycle", "adjustment_cycle", default="monthly", show_default=True, help="Cycle label.")
@click.pass_obj
def create_plan(
    obj: dict,
    account_id: str,
    allocated_pl: Decimal,
    name: str,
    cycle_goal: Decimal,
    cycle_stop: Decimal,
    period_goal: Decimal,
    period_stop: Decimal,
    risk: Decimal,
    rr: Decimal,
    operation_period: str,
    adjustment_cycle: str,
) -> None:
    """Allocate capital from an account to a new plan.

    \b
    Examples:
      riskledger plan create ACCOUNT_ID --pl 5000
      riskledger plan create ACCOUNT_ID --pl 3000 --period "swing trade" --cycle quarterly
    """
    from riskledger.models import Plan

    try:
        service = get_service(obj)
        saved = service.create_plan(Plan(
            account_id=account_id,
            name=name,
            allocated_pl=allocated_pl,
            cycle_goal_percent=cycle_goal,
            cycle_stop_percent=cycle_stop,
            period_goal_percent=period_goal,
            period_stop_percent=period_stop,
            risk_per_operation=risk,
            rr_target=rr,
            operation_period=operation_period,
            adjustment_cycle=adjustment_cycle,
        ))
    except ValueError as e:
        fail(str(e), "Failed to create plan")

    console.print(f"[green]✓ Created plan {escape(saved.name)}[/green]")
    console.print(f"ID: [bold]{saved.id}[/bold]")
    console.print(f"PL: {money(saved.allocated_pl)}")


@plan.command("list")
@click.argument("account_id", required=False)
@click.option("--all", "show_all", is_flag=True, default=False, help="Include inactive plans.")
@click.pass_obj
def list_plans(obj: dict, account_id: Optional[str], show_all: bool) -> None:
    """List plans, optionally for one account.

    \b
    Examples:
      riskledger plan list
      riskledger plan list ACCOUNT_ID --all
    """
    try:
        service = get_service(obj)
        plans = service.list_plans(account_id, active_only=not show_all)
    except ValueError as e:
        fail(str(e))

    if not plans:
        console.print(Panel(
            "[dim]No plans found[/dim]",
            title="[bold]Plans[/bold]",
            border_style="dim",
        ))
        return

    table = Table(title="Plans", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("PL", justify="right")
    table.add_column("Period (goal/stop)")
    table.add_column("Cycle (goal/stop)")
    table.add_column("Status")

    for p in plans:
        table.add_row(
            p.id,
            escape(p.name),
            money(p.allocated_pl),
            f"{escape(p.operation_period)} +{p.period_goal_percent}% / -{p.period_stop_percent}%",
            f"{escape(p.adjustment_cycle)} +{p.cycle_goal_percent}% / -{p.cycle_stop_percent}%",
            "[green]active[/green]" if p.active else "[dim]inactive[/dim]",
        )

    console.print(table)


@plan.command("deactivate")
@click.argument("plan_id")
@click.pass_obj
def deactivate_plan(obj: dict, plan_id: str) -> None:
    """Deactivate a plan, releasing its allocation."""
    try:
        service = get_service(obj)
        saved = service.deactivate_plan(plan_id)
    except ValueError as e:
        fail(str(e), "Failed to deactivate plan")

    console.print(f"[green]✓ Deactivated plan {escape(saved.name)}[/green]")


@plan.command("available")
@click.argument("account_id")
@click.option("--exclude", "exclude_plan_id", default=None, help="Plan being edited, not counted.")
@click.pass_obj
def available(obj: dict, account_id: str, exclude_plan_id: Optional[str]) -> None:
    """Show the capital not yet allocated to an active plan.

    \b
    Examples:
      riskledger plan available ACCOUNT_ID
    """
    try:
        service = get_service(obj)
        acct = service.get_account(account_id)
        current = service.current_balance(account_id)
        free = service.available_capital(account_id, exclude_plan_id)
    except ValueError as e:
        fail(str(e))

    console.print(Panel(
        f"Balance:   {money(current, acct.currency)}\n"
        f"Allocated: {money(current - free, acct.currency)}\n"
        f"{'─' * 30}\n"
        f"[bold]Available: {colored(free, acct.currency)}[/bold]",
        title=f"[bold cyan]{escape(acct.name)}[/bold cyan]",
        border_style="cyan",
    ))
