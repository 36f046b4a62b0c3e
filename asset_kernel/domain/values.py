"""
Monetary value helpers (``asset_kernel.domain.values``).

All monetary amounts are ``Decimal`` -- NEVER ``float``.  Computations run
at full context precision and are rounded once, at the boundary, with
``round_money``.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

MONEY_DECIMAL_PLACES = 2
MONEY_QUANTUM = Decimal("0.01")
ZERO = Decimal("0")


def round_money(amount: Decimal) -> Decimal:
    """Quantize to cents with ROUND_HALF_UP.  The only sanctioned rounding."""
    return amount.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def to_decimal(value: Any, name: str = "amount") -> Decimal:
    """
    Coerce an interface-layer value to ``Decimal``.

    Accepts ``Decimal``, ``int`` and numeric strings.  Floats are rejected
    so binary rounding never leaks into book values.

    Raises:
        TypeError: for floats and other non-numeric types.
        ValueError: for strings that are not numbers.
    """
    if isinstance(value, bool):
        raise TypeError(f"{name} must be a decimal amount, not bool")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValueError(f"{name} is not a number: {value!r}") from exc
        if not result.is_finite():
            raise ValueError(f"{name} must be finite: {value!r}")
        return result
    raise TypeError(f"{name} must be Decimal, int or str, not {type(value).__name__}")
