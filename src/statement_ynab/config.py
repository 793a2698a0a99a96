"""
Configuration management (SSOT).

This module defines ALL configuration for the statement importer.
All config keys are defined here; no other module should invent config keys.

Key invariants:
- The configuration is loaded once at startup and never mutated afterwards
- One budget and one API key are shared by every account
- Each account is bound to exactly one monitored folder
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

DEFAULT_API_BASE_URL = "https://api.ynab.com/v1"
DEFAULT_CSV_DELIMITER = ";"
DEFAULT_MAX_WORKERS = 2


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("Invalid configuration: " + "; ".join(errors))


@dataclass(frozen=True)
class AccountConfig:
    """A YNAB account bound to the folder its statements are dropped into."""

    account_id: str
    monitored_folder: Path

    @property
    def archive_root(self) -> Path:
        """Folder that receives archived bundles for this account."""
        return self.monitored_folder / "Archives"


@dataclass(frozen=True)
class Config:
    """Application configuration (SSOT).

    All configuration is centralized here. No other module should define
    configuration keys or defaults.
    """

    api_key: str
    budget_id: str
    accounts: tuple[AccountConfig, ...] = field(default_factory=tuple)
    api_base_url: str = DEFAULT_API_BASE_URL
    csv_delimiter: str = DEFAULT_CSV_DELIMITER
    max_workers: int = DEFAULT_MAX_WORKERS

    def validate(self) -> list[str]:
        """Validate configuration completeness and consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors: list[str] = []

        if not self.api_key:
            errors.append("apiKey is required")
        if not self.budget_id:
            errors.append("budgetId is required")
        if not self.api_base_url:
            errors.append("apiBaseUrl must not be empty")

        if not self.accounts:
            errors.append(
                "at least one account is required "
                "(accounts list or legacyAccountId/legacyMonitoredFolder)"
            )

        seen_folders: set[Path] = set()
        for index, account in enumerate(self.accounts):
            if not account.account_id:
                errors.append(f"accounts[{index}].accountId is required")
            if not str(account.monitored_folder) or str(account.monitored_folder) == ".":
                errors.append(f"accounts[{index}].monitoredFolder is required")
                continue
            folder = account.monitored_folder.resolve()
            if folder in seen_folders:
                errors.append(f"accounts[{index}].monitoredFolder is used by another account")
            seen_folders.add(folder)

        if len(self.csv_delimiter) != 1:
            errors.append("csvDelimiter must be a single character")
        if self.max_workers < 1:
            errors.append("maxWorkers must be >= 1")

        return errors

    def get_account(self, account_id: str) -> AccountConfig | None:
        """Look up an account by its YNAB id."""
        for account in self.accounts:
            if account.account_id == account_id:
                return account
        return None

    def account_for_folder(self, folder: Path) -> AccountConfig | None:
        """Find the account whose monitored folder is exactly ``folder``."""
        target = folder.resolve()
        for account in self.accounts:
            if account.monitored_folder.resolve() == target:
                return account
        return None


def _load_accounts(data: dict) -> tuple[AccountConfig, ...]:
    """Collect accounts from the list form and the legacy single-account keys."""
    accounts: list[AccountConfig] = []

    for entry in data.get("accounts") or []:
        if not isinstance(entry, dict):
            raise ConfigValidationError([f"accounts entries must be objects, got: {entry!r}"])
        accounts.append(
            AccountConfig(
                account_id=str(entry.get("accountId") or ""),
                monitored_folder=Path(str(entry.get("monitoredFolder") or "")),
            )
        )

    legacy_account = data.get("legacyAccountId")
    legacy_folder = data.get("legacyMonitoredFolder")
    if legacy_account or legacy_folder:
        accounts.append(
            AccountConfig(
                account_id=str(legacy_account or ""),
                monitored_folder=Path(str(legacy_folder or "")),
            )
        )

    return tuple(accounts)


def load_config(config_path: Path) -> Config:
    """
    Load configuration from a JSON (or YAML) settings file.

    Environment variables can override config values:
    - YNAB_API_KEY
    - YNAB_BUDGET_ID
    - YNAB_API_URL

    Raises:
        ConfigValidationError: If the file is malformed or required keys are missing
    """
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigValidationError([f"cannot parse {config_path}: {e}"]) from e
    else:
        data = {}

    if not isinstance(data, dict):
        raise ConfigValidationError([f"{config_path} must contain an object at the top level"])

    try:
        max_workers = int(data.get("maxWorkers", DEFAULT_MAX_WORKERS))
    except (TypeError, ValueError) as e:
        raise ConfigValidationError([f"maxWorkers must be an integer: {e}"]) from e

    config = Config(
        api_key=os.environ.get("YNAB_API_KEY", data.get("apiKey") or ""),
        budget_id=os.environ.get("YNAB_BUDGET_ID", data.get("budgetId") or ""),
        accounts=_load_accounts(data),
        api_base_url=os.environ.get(
            "YNAB_API_URL", data.get("apiBaseUrl") or DEFAULT_API_BASE_URL
        ).rstrip("/"),
        csv_delimiter=data.get("csvDelimiter", DEFAULT_CSV_DELIMITER),
        max_workers=max_workers,
    )

    errors = config.validate()
    if errors:
        raise ConfigValidationError(errors)

    return config


def create_default_config(config_path: Path) -> None:
    """Create a default configuration file."""
    default_config = """{
  "apiKey": "YOUR_YNAB_PERSONAL_ACCESS_TOKEN",
  "budgetId": "YOUR_BUDGET_ID",
  "apiBaseUrl": "https://api.ynab.com/v1",
  "accounts": [
    {
      "accountId": "YOUR_ACCOUNT_ID",
      "monitoredFolder": "/path/to/statements"
    }
  ],
  "csvDelimiter": ";",
  "maxWorkers": 2
}
"""

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as f:
        f.write(default_config)
