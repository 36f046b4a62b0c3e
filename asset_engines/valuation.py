"""
asset_engines.valuation -- Pure depreciation / book value engine.

Responsibility:
    Compute an asset's book value, accumulated depreciation and the
    depreciation charge for the month in progress at a given date, under
    straight-line, written-down-value and double-declining-balance
    methods.  Also produces the full depreciation schedule over useful
    life for reporting.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import asset_kernel/domain/values and the engine tracer.
    The stateful recompute batch lives in asset_services.valuation_service.

Invariants enforced:
    - Decimal-only arithmetic; floats are rejected by ``ValuationBasis``.
    - Full precision internally, rounded once at the boundary with
      ``round_money`` (0.01, ROUND_HALF_UP).
    - salvage_value <= book_value <= purchase_cost for every ``as_of``.
    - Book value is monotonically non-increasing in ``as_of``.
    - as_of == purchase_date gives book_value == purchase_cost.
    - elapsed months >= useful life gives book_value == salvage_value and
      a zero period charge.
    - Purity: no clock access.  ``as_of`` is always an explicit argument.

Failure modes:
    - ValueError from ``ValuationBasis.__post_init__`` for a negative cost,
      salvage outside [0, cost], non-positive life or a non-Decimal amount.
      Callers validate user input first and report ``ValidationError``.

Audit relevance:
    The cached ``current_book_value`` on an asset is always a value this
    engine returned; the asset module records every change in a
    ValuationAuditEntry.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, localcontext
from enum import Enum

from asset_engines.tracer import traced_engine
from asset_kernel.domain.values import ZERO, round_money

# Working precision for the reducing-balance power series.
_PRECISION = 34

_ONE = Decimal("1")
_TWELVE = Decimal("12")


class DepreciationMethod(str, Enum):
    """Supported depreciation methods."""

    STRAIGHT_LINE = "StraightLine"
    WRITTEN_DOWN_VALUE = "WrittenDownValue"
    DOUBLE_DECLINING_BALANCE = "DoubleDecliningBalance"


@dataclass(frozen=True)
class ValuationBasis:
    """The financial basis the book value is derived from."""

    purchase_cost: Decimal
    salvage_value: Decimal
    useful_life_months: int
    depreciation_method: DepreciationMethod
    purchase_date: date

    def __post_init__(self) -> None:
        for name in ("purchase_cost", "salvage_value"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, Decimal):
                raise ValueError(f"{name} must be Decimal, got {type(value).__name__}")
        if self.purchase_cost < 0:
            raise ValueError(f"purchase_cost must be >= 0, got {self.purchase_cost}")
        if self.salvage_value < 0 or self.salvage_value > self.purchase_cost:
            raise ValueError(
                f"salvage_value must be within [0, {self.purchase_cost}], "
                f"got {self.salvage_value}"
            )
        if isinstance(self.useful_life_months, bool) or self.useful_life_months <= 0:
            raise ValueError(
                f"useful_life_months must be > 0, got {self.useful_life_months}"
            )
        if not isinstance(self.depreciation_method, DepreciationMethod):
            raise ValueError(f"Unknown depreciation method: {self.depreciation_method!r}")


@dataclass(frozen=True)
class BookValue:
    """Result of a valuation at ``as_of``."""

    book_value: Decimal
    accumulated_depreciation: Decimal
    period_depreciation: Decimal
    elapsed_months: int
    as_of: date


@dataclass(frozen=True)
class ScheduleLine:
    """One period of a depreciation schedule."""

    period: int
    period_start: date
    period_end: date
    opening_book_value: Decimal
    depreciation: Decimal
    closing_book_value: Decimal
    accumulated_depreciation: Decimal


# =============================================================================
# Calendar helpers
# =============================================================================


def _is_month_end(day: date) -> bool:
    return day.day == calendar.monthrange(day.year, day.month)[1]


def months_between(start: date, end: date) -> int:
    """Full calendar months from ``start`` to ``end``.

    A month completes on the same day-of-month, or on the last day of a
    month too short to contain that day (Jan 31 -> Feb 28 is one month).
    Returns 0 when ``end`` precedes ``start``.
    """
    if end <= start:
        return 0
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day and not _is_month_end(end):
        months -= 1
    return max(months, 0)


def add_months(start: date, months: int) -> date:
    """``start`` shifted by ``months``, clamped to the end of shorter months."""
    index = start.month - 1 + months
    year = start.year + index // 12
    month = index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


# =============================================================================
# Rates and full-precision book values
# =============================================================================


def annual_rate(basis: ValuationBasis) -> Decimal:
    """Annual reducing-balance rate for WDV and DDB (zero for straight line)."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        life = Decimal(basis.useful_life_months)
        if basis.depreciation_method == DepreciationMethod.WRITTEN_DOWN_VALUE:
            if basis.purchase_cost == ZERO:
                return ZERO
            ratio = basis.salvage_value / basis.purchase_cost
            if ratio == ZERO:
                return _ONE
            return _ONE - ratio ** (_TWELVE / life)
        if basis.depreciation_method == DepreciationMethod.DOUBLE_DECLINING_BALANCE:
            return min(Decimal(24) / life, _ONE)
        return ZERO


def _raw_book_value(basis: ValuationBasis, elapsed: int, rate: Decimal) -> Decimal:
    """Unrounded book value after ``elapsed`` full months."""
    cost = basis.purchase_cost
    salvage = basis.salvage_value
    life = basis.useful_life_months

    if elapsed >= life:
        return salvage
    if elapsed <= 0 or cost == salvage:
        return cost

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        if basis.depreciation_method == DepreciationMethod.STRAIGHT_LINE:
            monthly = (cost - salvage) / Decimal(life)
            book = cost - monthly * Decimal(elapsed)
        else:
            years, remainder = divmod(elapsed, 12)
            book = cost * (_ONE - rate) ** years if years else cost
            if remainder:
                book -= book * rate * Decimal(remainder) / _TWELVE
        return max(book, salvage)


# =============================================================================
# Public API
# =============================================================================


@traced_engine("valuation", "1.0", fingerprint_fields=("basis", "as_of"))
def compute_book_value(basis: ValuationBasis, as_of: date) -> BookValue:
    """
    Value ``basis`` at ``as_of``.

    ``period_depreciation`` is the charge for the month in progress at
    ``as_of`` (month ``elapsed_months + 1``); it is zero before the
    purchase date and once useful life has elapsed.
    """
    rate = annual_rate(basis)
    elapsed = min(months_between(basis.purchase_date, as_of), basis.useful_life_months)

    current = _raw_book_value(basis, elapsed, rate)
    if as_of < basis.purchase_date or elapsed >= basis.useful_life_months:
        period = ZERO
    else:
        period = current - _raw_book_value(basis, elapsed + 1, rate)

    book_value = round_money(current)
    return BookValue(
        book_value=book_value,
        accumulated_depreciation=round_money(basis.purchase_cost) - book_value,
        period_depreciation=round_money(period),
        elapsed_months=elapsed,
        as_of=as_of,
    )


@traced_engine("valuation_schedule", "1.0", fingerprint_fields=("basis", "granularity_months"))
def depreciation_schedule(
    basis: ValuationBasis,
    granularity_months: int = 1,
) -> tuple[ScheduleLine, ...]:
    """
    Full depreciation schedule over useful life.

    Periods span ``granularity_months`` (1 = monthly, 12 = annual); the final
    period is shortened to end exactly at useful life.  Opening and closing
    values are rounded individually and each period's depreciation is their
    difference, so the schedule sums to ``cost - salvage`` exactly.
    """
    if granularity_months <= 0:
        raise ValueError(f"granularity_months must be > 0, got {granularity_months}")

    rate = annual_rate(basis)
    life = basis.useful_life_months
    cost = round_money(basis.purchase_cost)
    lines: list[ScheduleLine] = []

    start = 0
    period = 1
    while start < life:
        end = min(start + granularity_months, life)
        opening = round_money(_raw_book_value(basis, start, rate))
        closing = round_money(_raw_book_value(basis, end, rate))
        lines.append(
            ScheduleLine(
                period=period,
                period_start=add_months(basis.purchase_date, start),
                period_end=add_months(basis.purchase_date, end),
                opening_book_value=opening,
                depreciation=opening - closing,
                closing_book_value=closing,
                accumulated_depreciation=cost - closing,
            )
        )
        start = end
        period += 1

    return tuple(lines)
