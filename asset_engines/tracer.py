"""
asset_engines.tracer -- ASSET_ENGINE_TRACE records for engine calls.

Responsibility:
    ``@traced_engine`` wraps a pure engine function and, when DEBUG is
    enabled on ``asset_kernel.engines.tracer``, logs which engine ran, its
    version, a fingerprint of the inputs that determine the result, and how
    long it took.  Two traces with the same fingerprint and engine version
    must carry the same result, which is what makes a recomputed book value
    checkable after the fact.

Architecture position:
    Engines -- support code.  Emits a log record, nothing else.

Failure modes:
    - Fingerprint fields that are not parameters of the wrapped function
      are fingerprinted as null.

Usage:
    @traced_engine("valuation", "1.0", fingerprint_fields=("basis", "as_of"))
    def compute_book_value(basis, as_of):
        ...
"""

from __future__ import annotations

import functools
import inspect
import logging
import time
from collections.abc import Callable
from typing import Any, TypeVar

from asset_kernel.logging_config import get_logger
from asset_kernel.utils.serialization import hash_payload

_logger = get_logger("engines.tracer")

F = TypeVar("F", bound=Callable[..., Any])


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: dict[str, Any],
) -> str:
    """16-hex-digit digest of the named arguments (missing ones as null)."""
    return hash_payload({name: arguments.get(name) for name in fingerprint_fields})[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            if not _logger.isEnabledFor(logging.DEBUG):
                return func(*args, **kwargs)

            started = time.perf_counter()
            result = func(*args, **kwargs)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 3)

            # Bind so positional and keyword call styles fingerprint alike
            bound = signature.bind(*args, **kwargs)
            bound.apply_defaults()
            _logger.debug(
                "ASSET_ENGINE_TRACE",
                extra={
                    "trace_type": "ASSET_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": (
                        compute_input_fingerprint(fingerprint_fields, bound.arguments)
                        if fingerprint_fields
                        else ""
                    ),
                    "duration_ms": elapsed_ms,
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper  # type: ignore[return-value]

    return decorator
