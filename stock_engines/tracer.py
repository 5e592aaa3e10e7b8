"""
stock_engines.tracer -- STOCK_ENGINE_TRACE records for engine calls.

Responsibility:
    ``@traced_engine`` wraps a pure engine entry point and, after each
    call, logs one STOCK_ENGINE_TRACE record: engine name and version, a
    fingerprint of the selected keyword inputs, the wall time and, for
    sequence results, how many items were produced.  Two calls with the
    same opening figures and movement list share a fingerprint, which
    makes a regenerated stock card comparable to an earlier run.

Architecture position:
    Engines -- support for the pure calculation layer.  Emits a log
    record only; inputs are read, never mutated.

Invariants enforced:
    - Fingerprints are deterministic: values are reduced to a canonical
      string (strings quoted, dict keys sorted, dataclasses field by
      field) and hashed
      with SHA-256, truncated to 16 hex chars.
    - A fingerprint field absent from the call is hashed as ``null``.

Failure modes:
    - Exceptions raised by the engine propagate; no trace is logged for
      a failed call.
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import json
import time
from collections.abc import Callable, Mapping, Sequence
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from stock_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")


def _canonicalize(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return _canonicalize(value.value)
    if isinstance(value, str):
        return json.dumps(value)
    if isinstance(value, (bool, int, float, Decimal)):
        return str(value)
    if isinstance(value, date):
        return json.dumps(value.isoformat())
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        parts = (
            f"{f.name}:{_canonicalize(getattr(value, f.name))}"
            for f in dataclasses.fields(value)
        )
        return "(" + ",".join(parts) + ")"
    if isinstance(value, Mapping):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        return "{" + ",".join(f"{json.dumps(str(k))}:{_canonicalize(v)}" for k, v in items) + "}"
    if isinstance(value, Sequence):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: Mapping[str, Any],
) -> str:
    """16-hex-char SHA-256 digest of the named keyword inputs."""
    canonical = "|".join(
        f"{name}={_canonicalize(kwargs.get(name))}" for name in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorator that emits STOCK_ENGINE_TRACE for each completed call.

    Args:
        engine_name: Engine identifier, e.g. ``"stock_card_reconstruction"``.
        engine_version: Bumped whenever the engine's output for a given
            input can change.
        fingerprint_fields: Keyword argument names hashed into
            ``input_fingerprint``.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = (
                compute_input_fingerprint(fingerprint_fields, kwargs)
                if fingerprint_fields
                else ""
            )

            started = time.monotonic()
            result = func(*args, **kwargs)
            duration_ms = round((time.monotonic() - started) * 1000, 2)

            extra: dict[str, Any] = {
                "trace_type": "STOCK_ENGINE_TRACE",
                "engine_name": engine_name,
                "engine_version": engine_version,
                "input_fingerprint": fingerprint,
                "duration_ms": duration_ms,
                "function": func.__qualname__,
            }
            if isinstance(result, (tuple, list)):
                extra["result_count"] = len(result)
            _logger.info("STOCK_ENGINE_TRACE", extra=extra)
            return result

        return wrapper

    return decorator
