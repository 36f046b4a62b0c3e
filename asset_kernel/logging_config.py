"""
Structured logging for the asset kernel (``asset_kernel.logging_config``).

Every record under the ``asset_kernel`` logger tree is rendered as one JSON
object per line.  Command-scoped fields (who is acting, which command, on
which entity) live in ``LogContext`` and are merged into each record, so
call sites only pass what is specific to the event:

    log = get_logger("services.lifecycle_orchestrator")
    with LogContext.bind(actor_role="finance", command="ApproveDisposal"):
        log.info("lifecycle_command_applied", extra={"status": "applied"})

Messages are snake_case event names; payload goes in ``extra``.
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
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any

from asset_kernel.utils.serialization import to_jsonable

LOGGER_ROOT = "asset_kernel"

_EMPTY: Mapping[str, str] = MappingProxyType({})
_context: ContextVar[Mapping[str, str]] = ContextVar("asset_log_context", default=_EMPTY)


class LogContext:
    """Request-scoped log fields, safe across threads and tasks."""

    FIELDS = ("correlation_id", "actor_role", "command", "entity_id", "trace_id")

    @classmethod
    def _merged(cls, fields: dict[str, str | None]) -> Mapping[str, str]:
        unknown = set(fields) - set(cls.FIELDS)
        if unknown:
            raise ValueError(f"Unknown log context field(s): {sorted(unknown)}")
        merged = dict(_context.get())
        merged.update({k: v for k, v in fields.items() if v is not None})
        return MappingProxyType(merged)

    @classmethod
    def set(cls, **fields: str | None) -> None:
        """Update context fields; ``None`` values leave a field untouched."""
        _context.set(cls._merged(fields))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_context.get())

    @classmethod
    def clear(cls) -> None:
        _context.set(_EMPTY)

    @classmethod
    @contextmanager
    def bind(cls, **fields: str | None) -> Iterator[type["LogContext"]]:
        """Set fields for the duration of a ``with`` block."""
        token = _context.set(cls._merged(fields))
        try:
            yield cls
        finally:
            _context.reset(token)


# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "taskName",
}


def _json_default(obj: Any) -> Any:
    try:
        return to_jsonable(obj)
    except TypeError:
        return str(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    # AssetKernelError subclasses keep their context as public attributes
    fields.update(
        (f"exc_{name}", value)
        for name, value in vars(exc).items()
        if not name.startswith("_") and name != "code"
    )
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: base keys, context, extras, exception."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """Logger ``asset_kernel.<name>``."""
    return logging.getLogger(f"{LOGGER_ROOT}.{name}")


_state_lock = threading.Lock()
_handler: logging.Handler | None = None


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the ``asset_kernel`` logger.

    Only the first call has an effect until ``reset_logging()``.
    """
    global _handler
    with _state_lock:
        if _handler is not None:
            return
        _handler = handler or logging.StreamHandler(stream or sys.stderr)
        _handler.setFormatter(StructuredFormatter())
        root = logging.getLogger(LOGGER_ROOT)
        root.addHandler(_handler)
        root.setLevel(level)
        root.propagate = False


def reset_logging() -> None:
    """Detach the handler and restore defaults (tests only)."""
    global _handler
    with _state_lock:
        root = logging.getLogger(LOGGER_ROOT)
        if _handler is not None:
            root.removeHandler(_handler)
            _handler = None
        root.setLevel(logging.WARNING)
        root.propagate = True
