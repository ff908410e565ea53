"""
Settings Loader (``ledger_config.loader``).

Responsibility
--------------
Loads a ledger YAML file and parses it into the frozen dataclasses of
``ledger_config.schema``.  Runtime callers go through
``ledger_config.get_active_settings()``; the functions here are the
building blocks it uses and are exposed for tests and tooling.

Architecture position
---------------------
**Config layer**.  Depends on PyYAML and on kernel value types
(``AccountType``, currency validation); nothing in the kernel imports it.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; required fields have no silent defaults.
* Account codes in the chart are unique and no account is its own parent.
* Amounts are parsed as ``Decimal`` from their string form, never float.
* ``compute_checksum`` is deterministic for identical input.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Unknown account type, duplicate code, bad currency, bad log level
  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from ledger_config.schema import (
    ChartAccountDef,
    DatabaseSettings,
    LedgerSettings,
    LoggingSettings,
    ReportingSettings,
    WellKnownAccounts,
)
from ledger_kernel.db.types import validate_currency
from ledger_kernel.domain.account_types import AccountType

_LOG_LEVELS = frozenset({"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top-level YAML value must be a mapping")
    return data


def parse_decimal(value: Any) -> Decimal:
    """Parse an amount from YAML.  Floats are converted via their repr."""
    if isinstance(value, bool):
        raise ValueError(f"Cannot parse amount from {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Cannot parse amount from {value!r}") from exc


def parse_log_level(value: Any) -> str:
    level = str(value).upper()
    if level not in _LOG_LEVELS:
        raise ValueError(
            f"Unknown log level {value!r}; expected one of {sorted(_LOG_LEVELS)}"
        )
    return level


def parse_account_type(value: Any) -> AccountType:
    try:
        return AccountType(str(value).lower())
    except ValueError as exc:
        raise ValueError(
            f"Unknown account type {value!r}; expected one of "
            f"{[t.value for t in AccountType]}"
        ) from exc


def parse_chart_account(data: dict[str, Any]) -> ChartAccountDef:
    """
    Parse one chart entry.

    Required keys: ``code``, ``name``, ``type``.
    """
    code = str(data["code"])
    parent = data.get("parent")
    return ChartAccountDef(
        code=code,
        name=data["name"],
        account_type=parse_account_type(data["type"]),
        parent_code=str(parent) if parent is not None else None,
        description=data.get("description"),
        sort_order=int(data.get("sort_order", 0)),
        is_system=bool(data.get("is_system", True)),
        opening_balance=parse_decimal(data.get("opening_balance", "0")),
        currency=validate_currency(data.get("currency", "USD")),
    )


def parse_chart(items: list[dict[str, Any]]) -> tuple[ChartAccountDef, ...]:
    """Parse the chart list and check code uniqueness."""
    accounts = tuple(parse_chart_account(item) for item in items)

    seen: set[str] = set()
    for account in accounts:
        if account.code in seen:
            raise ValueError(f"Duplicate account code in chart: {account.code}")
        if account.parent_code == account.code:
            raise ValueError(f"Account {account.code} cannot be its own parent")
        seen.add(account.code)
    return accounts


def parse_well_known_accounts(data: dict[str, Any]) -> WellKnownAccounts:
    defaults = WellKnownAccounts()
    return WellKnownAccounts(
        cash=str(data.get("cash", defaults.cash)),
        revenue=str(data.get("revenue", defaults.revenue)),
        expense=str(data.get("expense", defaults.expense)),
    )


def parse_settings(data: dict[str, Any], source_path: str | None = None) -> LedgerSettings:
    """
    Parse a full ``LedgerSettings`` from a YAML mapping.

    Sections that are absent fall back to the schema defaults; keys that
    are present are validated.
    """
    database = data.get("database") or {}
    logging_section = data.get("logging") or {}
    reporting = data.get("reporting") or {}

    display_precision = int(reporting.get("display_precision", 2))
    if display_precision < 0:
        raise ValueError("reporting.display_precision cannot be negative")

    return LedgerSettings(
        entity_name=str(data.get("entity_name", "Default Entity")),
        default_currency=validate_currency(data.get("default_currency", "USD")),
        database=DatabaseSettings(
            url=str(database.get("url", DatabaseSettings.url)),
            echo=bool(database.get("echo", False)),
        ),
        logging=LoggingSettings(level=parse_log_level(logging_section.get("level", "INFO"))),
        well_known_accounts=parse_well_known_accounts(data.get("well_known_accounts") or {}),
        reporting=ReportingSettings(
            display_precision=display_precision,
            include_zero_balances=bool(reporting.get("include_zero_balances", False)),
        ),
        chart_of_accounts=parse_chart(data.get("chart_of_accounts") or []),
        source_path=source_path,
        checksum=compute_checksum(data),
    )


def load_settings(path: Path | str) -> LedgerSettings:
    """Load and parse a ledger YAML file."""
    path = Path(path)
    return parse_settings(load_yaml_file(path), source_path=str(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()

