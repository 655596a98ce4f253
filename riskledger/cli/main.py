"""Main CLI entry point for riskledger.

This module provides the main click group and lazy loading
of the command modules.
"""

import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

# Console for rich output
console = Console()


class LazyGroup(click.Group):
    """A click Group that lazily loads commands.

    Command modules are only imported when one of their commands
    is actually invoked.
    """

    def __init__(self, *args, lazy_subcommands: dict[str, str] | None = None, **kwargs):
        """Initialize the lazy group.

        Args:
            lazy_subcommands: Mapping of command names to module paths.
        """
        super().__init__(*args, **kwargs)
        self._lazy_subcommands = lazy_subcommands or {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        """List all available commands."""
        base = super().list_commands(ctx)
        lazy = list(self._lazy_subcommands.keys())
        return sorted(set(base + lazy))

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        """Get a command by name, lazily loading if needed."""
        if cmd_name in self.commands:
            return self.commands[cmd_name]

        if cmd_name in self._lazy_subcommands:
            return self._lazy_load(cmd_name)

        return None

    def _lazy_load(self, cmd_name: str) -> click.Command:
        """Lazily load a command from its module path."""
        import importlib

        module_path = self._lazy_subcommands[cmd_name]
        module = importlib.import_module(module_path)

        # Commands are either named after the attribute or carry the name
        cmd = getattr(module, cmd_name, None)
        if not isinstance(cmd, click.Command):
            cmd = next(
                (
                    attr
                    for attr in vars(module).values()
                    if isinstance(attr, click.Command) and attr.name == cmd_name
                ),
                None,
            )
        if cmd is None:
            raise click.ClickException(f"Could not find command '{cmd_name}' in {module_path}")

        self.add_command(cmd)
        return cmd


LAZY_SUBCOMMANDS = {
    # Accounts and movements
    "account": "riskledger.cli.accounts",
    "accounts": "riskledger.cli.accounts",
    "balance": "riskledger.cli.accounts",
    "deposit": "riskledger.cli.accounts",
    "withdraw": "riskledger.cli.accounts",
    "adjust": "riskledger.cli.accounts",
    "statement": "riskledger.cli.accounts",
    # Plans
    "plan": "riskledger.cli.plans",
    # Trades and compliance
    "trade": "riskledger.cli.trades",
    "audit": "riskledger.cli.trades",
    # Settings
    "config": "riskledger.cli.settings",
}


CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def _setup_logging(verbose: bool) -> None:
    if not verbose:
        return
    from rich.logging import RichHandler

    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


@click.group(cls=LazyGroup, lazy_subcommands=LAZY_SUBCOMMANDS, context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="riskledger")
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file (default: ~/.config/riskledger/config.toml).",
)
@click.option(
    "--db", "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="SQLite database file, overriding the configured one.",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log ledger activity.")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], db_path: Optional[Path], verbose: bool) -> None:
    """riskledger - account ledger and trading plan compliance.

    Book deposits, withdrawals and trade results against your accounts,
    allocate capital to trading plans, and audit how each period and
    cycle went against the plan's goal and stop.

    \b
    Quick Start:
      riskledger account open --owner me --name Main --balance 10000
      riskledger plan create ACCOUNT_ID --pl 5000
      riskledger trade record ACCOUNT_ID --plan PLAN_ID --result=-120
      riskledger audit PLAN_ID --scope period
    """
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["db_path"] = db_path


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
