"""Configuration commands for riskledger CLI."""

from pathlib import Path
from typing import Optional

import click
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from riskledger.cli.common import console, fail


@click.group()
def config() -> None:
    """Manage the riskledger configuration file.

    \b
    Examples:
      riskledger config init
      riskledger config show
    """
    pass


@config.command("init")
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing file.")
@click.pass_obj
def init(obj: dict, force: bool) -> None:
    """Write a configuration file with the default settings."""
    from riskledger.config import CONFIG_PATH, create_template_config

    path: Path = obj.get("config_path") or CONFIG_PATH
    if path.exists() and not force:
        fail(f"{path} already exists. Use --force to overwrite it.", "Config exists")

    written = create_template_config(path)
    console.print(f"[green]✓ Wrote configuration to {escape(str(written))}[/green]")


@config.command("show")
@click.pass_obj
def show(obj: dict) -> None:
    """Display the effective configuration."""
    from riskledger.config import load_config

    config_path: Optional[Path] = obj.get("config_path")
    try:
        settings = load_config(config_path)
    except ValueError as e:
        fail(str(e), "Invalid configuration")

    db_path = obj.get("db_path") or settings.db_path
    console.print(Panel(
        f"Database:          {escape(str(db_path))}\n"
        f"Money places:      {settings.money_places}\n"
        f"Negative balance:  {'allowed' if settings.allow_negative_balance else 'rejected'}\n"
        f"Week start:        {settings.week_start} (0=Monday ... 6=Sunday)\n"
        f"Unmatched labels:  {settings.default_window.value if settings.default_window else 'rejected'}",
        title="[bold cyan]Configuration[/bold cyan]",
        border_style="cyan",
    ))

    table = Table(title="Scope rules", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Label", style="bold")
    table.add_column("Window")
    for i, rule in enumerate(settings.scope_rules, 1):
        table.add_row(str(i), escape(rule.label), rule.window.value)
    console.print(table)
