"""
Structured JSON logging for approver routing.

Every record under the ``routing_kernel`` logger namespace is emitted as one
JSON object per line.  Resolution-scoped fields (the requester being routed,
the approval step, a caller-supplied correlation or trace id) live in
``LogContext`` and are stamped onto each record, so the services only pass
event-specific data through ``extra``.

Usage::

    from routing_kernel.logging_config import LogContext, get_logger

    logger = get_logger("services.authority")
    with LogContext.bind(requester_id=str(emp_id)):
        logger.info("approver_resolved", extra={"authority_level": 85})
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
from contextvars import ContextVar, Token
from datetime import UTC, date, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping
from uuid import UUID

_LOGGER_PREFIX = "routing_kernel"

_CONTEXT_FIELDS = ("correlation_id", "requester_id", "step_name", "trace_id")

_EMPTY: Mapping[str, str] = MappingProxyType({})

_context: ContextVar[Mapping[str, str]] = ContextVar("routing_log_context", default=_EMPTY)


class LogContext:
    """Per-task routing context stamped onto every log record.

    Backed by a single ``ContextVar`` holding a read-only mapping, so each
    thread and asyncio task sees its own values and ``bind`` can restore
    the previous mapping in one step.
    """

    @staticmethod
    def _merged(fields: dict[str, str | None]) -> Mapping[str, str]:
        unknown = set(fields) - set(_CONTEXT_FIELDS)
        if unknown:
            raise TypeError(f"Unknown log context field(s): {sorted(unknown)}")
        merged = dict(_context.get())
        merged.update({k: v for k, v in fields.items() if v is not None})
        return MappingProxyType(merged)

    @classmethod
    def set(
        cls,
        *,
        correlation_id: str | None = None,
        requester_id: str | None = None,
        step_name: str | None = None,
        trace_id: str | None = None,
    ) -> None:
        """Update the given fields; None leaves a field unchanged."""
        _context.set(cls._merged({
            "correlation_id": correlation_id,
            "requester_id": requester_id,
            "step_name": step_name,
            "trace_id": trace_id,
        }))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_context.get())

    @classmethod
    def clear(cls) -> None:
        _context.set(_EMPTY)

    @classmethod
    def bind(cls, **fields: str | None) -> "_BoundContext":
        """Context manager: apply ``fields`` on entry, restore on exit."""
        return _BoundContext(cls._merged(fields))


class _BoundContext:

    def __init__(self, values: Mapping[str, str]):
        self._values = values
        self._token: Token | None = None

    def __enter__(self) -> type[LogContext]:
        self._token = _context.set(self._values)
        return LogContext

    def __exit__(self, *exc: Any) -> None:
        if self._token is not None:
            _context.reset(self._token)
            self._token = None


# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _to_json(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return sorted(str(v) for v in value)
    return str(value)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: envelope, context, extras, exception."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(LogContext.get_all())
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in payload
        )
        if record.exc_info and record.exc_info[1] is not None:
            payload.update(self._exception_fields(record))
        return json.dumps(payload, default=_to_json)

    def _exception_fields(self, record: logging.LogRecord) -> dict[str, Any]:
        exc = record.exc_info[1]
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
        }
        code = getattr(exc, "code", None)
        if code is not None:
            fields["exc_code"] = code
        # RoutingKernelError subclasses keep their context as attributes
        for name, value in vars(exc).items():
            if not name.startswith("_"):
                fields[f"exc_{name}"] = value
        fields["traceback"] = self.formatException(record.exc_info)
        return fields


def get_logger(name: str) -> logging.Logger:
    """Logger named ``routing_kernel.<name>``."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach a JSON handler to the ``routing_kernel`` logger once.

    Later calls are no-ops until ``reset_logging``.  Records do not
    propagate to the root logger.
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

        target = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
        target.setFormatter(StructuredFormatter())

        namespace = logging.getLogger(_LOGGER_PREFIX)
        namespace.setLevel(level)
        namespace.propagate = False
        namespace.addHandler(target)


def reset_logging() -> None:
    """Detach handlers and allow ``configure_logging`` to run again (tests)."""
    global _configured
    with _lock:
        _configured = False
        namespace = logging.getLogger(_LOGGER_PREFIX)
        for h in list(namespace.handlers):
            namespace.removeHandler(h)
        namespace.setLevel(logging.WARNING)
