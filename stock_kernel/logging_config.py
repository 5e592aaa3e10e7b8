"""
Structured JSON logging for stock card processing.

Every record is one JSON object per line.  Request-scoped fields (the
report being generated, the item's NAC code, the acting user) live in
``LogContext`` and are stamped on every record emitted while bound, so a
single report run can be followed across engines.

Usage::

    configure_logging(level="INFO")
    logger = get_logger("engines.reconstruction")
    with LogContext.bind(report_id="r-42", nac_code="GT 01234"):
        logger.info("movements_reconstructed", extra={"row_count": 12})
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
from decimal import Decimal
from typing import Any
from uuid import UUID

# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------

_CONTEXT_FIELDS = ("correlation_id", "report_id", "nac_code", "actor_id")

_context_vars: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"stock_log_{name}", default=None) for name in _CONTEXT_FIELDS
}


class LogContext:
    """Async-safe holder for report-scoped log fields."""

    @staticmethod
    def set(
        *,
        correlation_id: str | None = None,
        report_id: str | None = None,
        nac_code: str | None = None,
        actor_id: str | None = None,
    ) -> None:
        """Set context fields. Only non-None values are updated."""
        values = {
            "correlation_id": correlation_id,
            "report_id": report_id,
            "nac_code": nac_code,
            "actor_id": actor_id,
        }
        for name, value in values.items():
            if value is not None:
                _context_vars[name].set(value)

    @staticmethod
    def get_all() -> dict[str, str]:
        """Return the bound (non-None) fields."""
        return {
            name: value
            for name, var in _context_vars.items()
            if (value := var.get()) is not None
        }

    @staticmethod
    def clear() -> None:
        for var in _context_vars.values():
            var.set(None)

    @staticmethod
    def bind(**fields: str | None) -> "_BoundContext":
        """Context manager: set fields on entry, restore previous values on exit."""
        unknown = set(fields) - set(_CONTEXT_FIELDS)
        if unknown:
            raise TypeError(f"Unknown log context field(s): {sorted(unknown)}")
        return _BoundContext(fields)


class _BoundContext:

    def __init__(self, fields: dict[str, str | None]):
        self._fields = fields
        self._tokens: list[tuple[ContextVar[str | None], Token]] = []

    def __enter__(self) -> type[LogContext]:
        for name, value in self._fields.items():
            if value is not None:
                var = _context_vars[name]
                self._tokens.append((var, var.set(value)))
        return LogContext

    def __exit__(self, *exc: Any) -> None:
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_RESERVED_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    """Serialise the value types stock card records carry."""
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, UUID):
        return str(obj)
    return str(obj)


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(LogContext.get_all())

        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and key not in payload:
                payload[key] = value

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(self._exception_fields(record))

        return json.dumps(payload, default=_json_default)

    def _exception_fields(self, record: logging.LogRecord) -> dict[str, Any]:
        exc = record.exc_info[1]
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
        }
        code = getattr(exc, "code", None)
        if code is not None:
            fields["exc_code"] = code
        # StockCardError subclasses keep their context as attributes
        for name, value in vars(exc).items():
            if not name.startswith("_"):
                fields[f"exc_{name}"] = value
        fields["traceback"] = self.formatException(record.exc_info)
        return fields


# ---------------------------------------------------------------------------
# Logger factory and initialization
# ---------------------------------------------------------------------------

_LOGGER_PREFIX = "stock_kernel"

_configured = False
_lock = threading.Lock()


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the stock_kernel namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the stock_kernel logger hierarchy.

    Idempotent: only the first call in a process takes effect until
    ``reset_logging`` is called.  ``level`` accepts a logging constant or
    its name (``"DEBUG"``).
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    root = logging.getLogger(_LOGGER_PREFIX)
    root.setLevel(level)
    root.propagate = False

    h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    h.setFormatter(StructuredFormatter())
    root.addHandler(h)


def reset_logging() -> None:
    """Remove handlers and allow reconfiguration. FOR TESTING ONLY."""
    global _configured
    with _lock:
        _configured = False
    root = logging.getLogger(_LOGGER_PREFIX)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
