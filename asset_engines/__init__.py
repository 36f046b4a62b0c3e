"""
Module: asset_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for higher
    layers (asset_services, asset_modules).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import asset_kernel/domain (and sibling engine modules).
    MUST NOT import asset_services or asset_modules.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      Dates are passed in as explicit parameters.
    - Decimal-only arithmetic: all monetary amounts use ``Decimal``.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from asset_engines.valuation import compute_book_value, ValuationBasis
    from asset_engines.approval import evaluate_approval_status
"""

from asset_engines.approval import (
    count_approvals,
    evaluate_approval_requirement,
    evaluate_approval_status,
    has_already_approved,
    select_matching_rule,
    validate_actor_authority,
)
from asset_engines.valuation import (
    BookValue,
    DepreciationMethod,
    ScheduleLine,
    ValuationBasis,
    add_months,
    compute_book_value,
    depreciation_schedule,
    months_between,
)

__all__ = [
    "BookValue",
    "DepreciationMethod",
    "ScheduleLine",
    "ValuationBasis",
    "add_months",
    "compute_book_value",
    "count_approvals",
    "depreciation_schedule",
    "evaluate_approval_requirement",
    "evaluate_approval_status",
    "has_already_approved",
    "months_between",
    "select_matching_rule",
    "validate_actor_authority",
]
