"""Configuration loading for riskledger.

Configuration lives in ``~/.config/riskledger/config.toml``. A missing
file means defaults; a file that cannot be parsed is an error.
"""

from pathlib import Path
from typing import Optional

import toml
from pydantic import BaseModel, Field, ValidationError

from riskledger.errors import ConfigError
from riskledger.utils.chrono import SUNDAY, Window

CONFIG_DIR = Path.home() / ".config" / "riskledger"
CONFIG_PATH = CONFIG_DIR / "config.toml"
DEFAULT_DB_PATH = CONFIG_DIR / "riskledger.db"


class ScopeRule(BaseModel):
    """Maps a plan period/cycle label to a calendar window."""

    label: str = Field(..., min_length=1)
    window: Window

    model_config = {"frozen": True}


# Checked in order; the first rule whose label matches wins.
DEFAULT_SCOPE_RULES = [
    ScopeRule(label="daily", window=Window.DAY),
    ScopeRule(label="day trade", window=Window.DAY),
    ScopeRule(label="diário", window=Window.DAY),
    ScopeRule(label="weekly", window=Window.WEEK),
    ScopeRule(label="swing trade", window=Window.WEEK),
    ScopeRule(label="semanal", window=Window.WEEK),
    ScopeRule(label="monthly", window=Window.MONTH),
    ScopeRule(label="mensal", window=Window.MONTH),
    ScopeRule(label="quarterly", window=Window.QUARTER),
    ScopeRule(label="trimestral", window=Window.QUARTER),
    ScopeRule(label="yearly", window=Window.YEAR),
    ScopeRule(label="anual", window=Window.YEAR),
]


class LedgerConfig(BaseModel):
    """Settings for the ledger service and CLI."""

    db_path: Path = Field(default=DEFAULT_DB_PATH, description="SQLite database file")
    money_places: int = Field(default=2, ge=0, le=8, description="Decimal places for money")
    allow_negative_balance: bool = Field(
        default=False, description="Allow withdrawals that overdraw the account"
    )
    week_start: int = Field(default=SUNDAY, ge=0, le=6, description="0=Monday ... 6=Sunday")
    scope_rules: list[ScopeRule] = Field(default_factory=lambda: list(DEFAULT_SCOPE_RULES))
    default_window: Optional[Window] = Field(
        default=None, description="Window for labels no rule matches; None to reject them"
    )

    model_config = {"frozen": True}


def _from_toml(data: dict) -> LedgerConfig:
    ledger = dict(data.get("ledger", {}))
    scopes = data.get("scopes", {})
    if "rules" in scopes:
        ledger["scope_rules"] = scopes["rules"]
    if scopes.get("default_window"):
        ledger["default_window"] = scopes["default_window"]
    if "db_path" in ledger:
        ledger["db_path"] = Path(ledger["db_path"]).expanduser()
    return LedgerConfig(**ledger)


def load_config(path: Optional[Path] = None) -> LedgerConfig:
    """Load configuration from a TOML file.

    Args:
        path: Config file; defaults to ``~/.config/riskledger/config.toml``.

    Returns:
        Parsed configuration, or defaults when the file does not exist.

    Raises:
        ConfigError: If the file cannot be parsed or holds invalid values.
    """
    config_path = Path(path) if path else CONFIG_PATH
    if not config_path.exists():
        return LedgerConfig()

    try:
        data = toml.load(config_path)
    except (toml.TomlDecodeError, OSError) as e:
        raise ConfigError(f"Cannot read {config_path}: {e}") from e

    try:
        return _from_toml(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_path}: {e}") from e


def create_template_config(path: Optional[Path] = None) -> Path:
    """Write a template configuration file with the default settings."""
    config_path = Path(path) if path else CONFIG_PATH
    config_path.parent.mkdir(parents=True, exist_ok=True)

    template = {
        "ledger": {
            "db_path": str(DEFAULT_DB_PATH),
            "money_places": 2,
            "allow_negative_balance": False,
            "week_start": SUNDAY,
        },
        "scopes": {
            "rules": [
                {"label": rule.label, "window": rule.window.value}
                for rule in DEFAULT_SCOPE_RULES
            ],
        },
    }

    with open(config_path, "w", encoding="utf-8") as f:
        toml.dump(template, f)

    return config_path
