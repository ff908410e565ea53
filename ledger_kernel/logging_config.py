"""
Structured JSON logging for the ledger kernel.

Every record is emitted as one JSON object per line:

    {"ts": "...", "level": "INFO", "logger": "ledger_kernel.services.ledger",
     "message": "entry_posted", "actor_id": "...", "entry_number": "JE-2024-000001"}

Messages are snake_case event names; payload goes in ``extra={...}``.
Request-scoped fields (correlation, actor, entry, source) are attached from
``LogContext`` so services do not have to thread them through every call.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

_ROOT = "ledger_kernel"

_CONTEXT_FIELDS = ("correlation_id", "actor_id", "entry_id", "source_id")

_context: ContextVar[dict[str, str]] = ContextVar("ledger_log_context", default={})


class LogContext:
    """Per-task log fields, safe across threads and asyncio tasks."""

    @staticmethod
    def _merged(fields: dict[str, Any]) -> dict[str, str]:
        current = dict(_context.get())
        for name, value in fields.items():
            if name in _CONTEXT_FIELDS and value is not None:
                current[name] = str(value)
        return current

    @classmethod
    def set(
        cls,
        *,
        correlation_id: str | None = None,
        actor_id: str | None = None,
        entry_id: str | None = None,
        source_id: str | None = None,
    ) -> None:
        """Update the given fields; None leaves a field untouched."""
        _context.set(
            cls._merged(
                {
                    "correlation_id": correlation_id,
                    "actor_id": actor_id,
                    "entry_id": entry_id,
                    "source_id": source_id,
                }
            )
        )

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_context.get())

    @classmethod
    def clear(cls) -> None:
        _context.set({})

    @classmethod
    @contextmanager
    def bind(cls, **fields: Any) -> Iterator[type["LogContext"]]:
        """
        Set fields for the duration of a block.

        Unknown names are ignored. The previous values are restored on exit,
        including on exceptions.
        """
        token = _context.set(cls._merged(fields))
        try:
            yield cls
        finally:
            _context.reset(token)


# Attributes present on every LogRecord; anything else came in via extra=
_RESERVED = frozenset(vars(logging.makeLogRecord({}))) | {"message", "taskName"}


def _to_json(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    return repr(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    # LedgerError subclasses keep their structured arguments as attributes
    for name, value in vars(exc).items():
        if name != "code" and not name.startswith("_"):
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: base fields, context, extras, exception."""

    def format(self, record: logging.LogRecord) -> str:
        out: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        extras = {
            k: v for k, v in vars(record).items() if k not in _RESERVED and k not in out
        }
        out.update(extras)

        if record.exc_info and record.exc_info[1] is not None:
            out.update(_exception_fields(record.exc_info[1]))
            out["traceback"] = self.formatException(record.exc_info)

        return json.dumps(out, default=_to_json)


def get_logger(name: str) -> logging.Logger:
    """Child logger of ``ledger_kernel``, e.g. ``get_logger("services.ledger")``."""
    return logging.getLogger(f"{_ROOT}.{name}")


_state_lock = threading.Lock()
_installed = False


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Install the JSON handler on the ``ledger_kernel`` logger.

    Only the first call has an effect until ``reset_logging()``. The kernel
    logger does not propagate, so host applications keep their own root
    configuration.
    """
    global _installed
    with _state_lock:
        if _installed:
            return
        _installed = True

    if handler is None:
        handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(StructuredFormatter())

    kernel = logging.getLogger(_ROOT)
    kernel.setLevel(level)
    kernel.propagate = False
    kernel.addHandler(handler)


def reset_logging() -> None:
    """Remove installed handlers so tests can configure again."""
    global _installed
    with _state_lock:
        _installed = False
    kernel = logging.getLogger(_ROOT)
    for existing in list(kernel.handlers):
        kernel.removeHandler(existing)
    kernel.setLevel(logging.WARNING)
