"""
ledger_config -- single public entrypoint for ledger settings.

Responsibility:
    Provides ``get_active_settings()``, the one way runtime code obtains
    configuration.  Settings come from a YAML file (``LEDGER_CONFIG`` or the
    packaged ``defaults/ledger.yaml``) with ``DATABASE_URL`` and
    ``LEDGER_LOG_LEVEL`` environment overrides applied on top.

Architecture position:
    Configuration.  Sits above ``ledger_kernel`` and below
    ``ledger_services`` / ``ledger_modules``.  The kernel never imports
    from ``ledger_config``; ``ledger_config.bridges`` translates settings
    into kernel inputs.

Failure modes:
    - ``FileNotFoundError`` -- the configured YAML file does not exist.
    - ``ValueError`` / ``KeyError`` -- schema validation failures.

Audit relevance:
    Every successful ``get_active_settings()`` call emits a
    ``LEDGER_CONFIG_TRACE`` log entry with the source path, checksum,
    entity name and chart size, tying activity to the configuration that
    governed it.
"""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from pathlib import Path

from ledger_config.loader import load_settings, parse_log_level
from ledger_config.schema import (
    ChartAccountDef,
    DatabaseSettings,
    LedgerSettings,
    LoggingSettings,
    ReportingSettings,
    WellKnownAccounts,
)

_logger = logging.getLogger("ledger_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults" / "ledger.yaml"

CONFIG_PATH_ENV = "LEDGER_CONFIG"
DATABASE_URL_ENV = "DATABASE_URL"
LOG_LEVEL_ENV = "LEDGER_LOG_LEVEL"


def _apply_env_overrides(settings: LedgerSettings) -> LedgerSettings:
    database_url = os.environ.get(DATABASE_URL_ENV)
    if database_url:
        settings = replace(settings, database=replace(settings.database, url=database_url))

    log_level = os.environ.get(LOG_LEVEL_ENV)
    if log_level:
        settings = replace(
            settings,
            logging=LoggingSettings(level=parse_log_level(log_level)),
        )
    return settings


def get_active_settings(config_path: Path | str | None = None) -> LedgerSettings:
    """
    Load the active ledger settings.

    Resolution order for the file: ``config_path`` argument, then the
    ``LEDGER_CONFIG`` environment variable, then the packaged default.
    ``DATABASE_URL`` and ``LEDGER_LOG_LEVEL`` override the file.

    Raises:
        FileNotFoundError: If the resolved file does not exist.
        ValueError: If the file fails validation.
    """
    path = Path(config_path or os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)
    settings = _apply_env_overrides(load_settings(path))

    _logger.info(
        "LEDGER_CONFIG_TRACE",
        extra={
            "trace_type": "LEDGER_CONFIG_TRACE",
            "source_path": settings.source_path,
            "checksum": settings.checksum,
            "entity_name": settings.entity_name,
            "default_currency": settings.default_currency,
            "account_count": len(settings.chart_of_accounts),
        },
    )
    return settings


__all__ = [
    "ChartAccountDef",
    "DEFAULT_CONFIG_PATH",
    "DatabaseSettings",
    "LedgerSettings",
    "LoggingSettings",
    "ReportingSettings",
    "WellKnownAccounts",
    "get_active_settings",
    "load_settings",
]
