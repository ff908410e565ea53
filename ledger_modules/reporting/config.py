"""
Reporting Configuration Schema.

Report header and formatting options.  Built from ``ledger_config``
settings by ``ReportingConfig.from_settings`` or from a plain dict.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Self

from ledger_kernel.logging_config import get_logger

if TYPE_CHECKING:
    from ledger_config.schema import LedgerSettings

logger = get_logger("modules.reporting.config")


@dataclass
class ReportingConfig:
    """
    Configuration schema for the reporting module.

    Controls the report header and how figures are rendered.
    """

    # Entity name shown on reports
    entity_name: str = "Company"

    # Currency shown on reports; amounts are not converted
    default_currency: str = "USD"

    # Decimal places used by render()
    display_precision: int = 2

    # Keep trial balance rows for active accounts with no activity
    include_zero_balances: bool = False

    def __post_init__(self):
        if self.display_precision < 0:
            raise ValueError("display_precision cannot be negative")
        if len(self.default_currency) != 3:
            raise ValueError("default_currency must be a 3-letter ISO 4217 code")

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        logger.info("reporting_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary."""
        logger.info(
            "reporting_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)

    @classmethod
    def from_settings(cls, settings: LedgerSettings) -> Self:
        return cls(
            entity_name=settings.entity_name,
            default_currency=settings.default_currency,
            display_precision=settings.reporting.display_precision,
            include_zero_balances=settings.reporting.include_zero_balances,
        )
