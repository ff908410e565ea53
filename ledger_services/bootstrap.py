"""
Application bootstrap: settings to a ready-to-use ledger database.

Usage:
    from ledger_services.bootstrap import bootstrap

    ledger = bootstrap()          # packaged defaults, env overrides applied
    with session_scope(ledger.session_factory) as session:
        ...
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from ledger_config import get_active_settings
from ledger_config.bridges import build_account_seeds
from ledger_config.schema import LedgerSettings
from ledger_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
    session_scope,
)
from ledger_kernel.db.immutability import register_immutability_listeners
from ledger_kernel.logging_config import configure_logging, get_logger
from ledger_kernel.services.chart_service import ChartService, SeedResult

logger = get_logger("services.bootstrap")

# Actor recorded on rows written by the bootstrap itself
SYSTEM_ACTOR_ID = UUID("00000000-0000-0000-0000-000000000001")


@dataclass(frozen=True)
class BootstrappedLedger:
    settings: LedgerSettings
    engine: Engine
    session_factory: sessionmaker[Session]
    seed_result: SeedResult | None


def bootstrap(
    settings: LedgerSettings | None = None,
    actor_id: UUID = SYSTEM_ACTOR_ID,
    seed: bool = True,
) -> BootstrappedLedger:
    """
    Configure logging, initialize the engine, create tables, register the
    immutability listeners and seed the chart of accounts.

    Seeding is idempotent, so calling bootstrap on an existing database
    refreshes the chart without touching balances.
    """
    settings = settings or get_active_settings()

    configure_logging(level=settings.logging.level)
    engine = init_engine_from_url(settings.database.url, echo=settings.database.echo)
    create_tables(engine)
    register_immutability_listeners()

    seed_result = None
    if seed and settings.chart_of_accounts:
        with session_scope() as session:
            seed_result = ChartService(session).seed_chart(
                build_account_seeds(settings), actor_id
            )

    logger.info(
        "ledger_bootstrapped",
        extra={
            "entity_name": settings.entity_name,
            "dialect": engine.dialect.name,
            "accounts_created": len(seed_result.created) if seed_result else 0,
        },
    )
    return BootstrappedLedger(
        settings=settings,
        engine=engine,
        session_factory=get_session_factory(),
        seed_result=seed_result,
    )
