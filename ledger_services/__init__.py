"""
Ledger Services -- orchestration above the kernel.

Holds the integration adapters that turn external income and expense
records into posted entries, and the bootstrap that wires settings, engine
and chart together.
"""

from ledger_services.bootstrap import SYSTEM_ACTOR_ID, BootstrappedLedger, bootstrap
from ledger_services.integration import (
    ExternalEvent,
    ExternalEventHandler,
    ExternalEventRecorder,
    ExternalRecordType,
)

__all__ = [
    "BootstrappedLedger",
    "ExternalEvent",
    "ExternalEventHandler",
    "ExternalEventRecorder",
    "ExternalRecordType",
    "SYSTEM_ACTOR_ID",
    "bootstrap",
]
