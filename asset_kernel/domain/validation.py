"""
Lightweight domain validation helpers.

Pure checks with no I/O.  Each helper returns a tuple of human-readable
issues (empty when the value is valid) so callers can collect every
problem with a record before reporting a single ``ValidationError``.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any


def require_text(value: Any, name: str) -> tuple[str, ...]:
    if not isinstance(value, str) or not value.strip():
        return (f"{name} is required",)
    return ()


def require_decimal(value: Any, name: str) -> tuple[str, ...]:
    if isinstance(value, bool) or not isinstance(value, Decimal):
        return (f"{name} must be Decimal, not {type(value).__name__}",)
    if not value.is_finite():
        return (f"{name} must be finite",)
    return ()


def require_non_negative(value: Any, name: str) -> tuple[str, ...]:
    issues = require_decimal(value, name)
    if issues:
        return issues
    if value < 0:
        return (f"{name} must be >= 0 (got {value})",)
    return ()


def require_positive_int(value: Any, name: str) -> tuple[str, ...]:
    if isinstance(value, bool) or not isinstance(value, int):
        return (f"{name} must be an integer",)
    if value <= 0:
        return (f"{name} must be > 0 (got {value})",)
    return ()


def require_date(value: Any, name: str) -> tuple[str, ...]:
    if not isinstance(value, date):
        return (f"{name} must be a date",)
    return ()


def require_member(value: Any, enum_type: type, name: str) -> tuple[str, ...]:
    if not isinstance(value, enum_type):
        return (f"{name} must be one of {[m.value for m in enum_type]}",)
    return ()
