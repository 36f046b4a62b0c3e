"""
asset_services.valuation_service -- Periodic revaluation and read-side valuation views.

Responsibility:
    Keep cached book values current with a periodic batch, and answer the
    financial questions the interface layer asks: what the portfolio is
    worth at a date, and how a single asset depreciates over its life.

Architecture position:
    Services -- orchestration over ``asset_engines.valuation`` and the
    injected ``LifecycleRepository``.  Shares ``revalue`` with the
    lifecycle orchestrator so both paths write identical audit entries.

Invariants enforced:
    - Only non-Retired assets are revalued; Retired assets keep the value
      fixed at retirement.
    - A run never moves a valuation date backwards.  Re-running for the
      same ``as_of`` changes nothing (idempotent).
    - Each asset is saved in its own transaction with its audit entry.  A
      version conflict on one asset skips that asset; the run continues.

Failure modes:
    - Capability denial is returned as ``LifecycleError`` on the result.
    - An unknown asset id in ``asset_schedule`` returns ``EntityNotFound``.
    - Storage failures propagate.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import uuid4

from asset_config.schema import ValuationSettings
from asset_engines.valuation import ScheduleLine, compute_book_value, depreciation_schedule
from asset_kernel.domain.clock import Clock, SystemClock
from asset_kernel.domain.errors import LifecycleError
from asset_kernel.exceptions import EntityNotFoundError, OptimisticLockError
from asset_kernel.logging_config import LogContext, get_logger
from asset_kernel.utils.serialization import to_jsonable
from asset_modules.assets.models import Asset, ValuationTrigger
from asset_modules.assets.service import revalue
from asset_services.rbac_authority import Operation, Role, authorize
from asset_services.repository import LifecycleRepository

logger = get_logger("services.valuation")

ZERO = Decimal("0")


class RevaluationStatus(str, Enum):
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"  # version conflict; picked up by the next run


@dataclass(frozen=True)
class RevaluationItem:
    asset_id: str
    status: RevaluationStatus
    prior_book_value: Decimal | None = None
    new_book_value: Decimal | None = None


@dataclass(frozen=True)
class ValuationRunResult:
    """Summary of one periodic run."""

    as_of: date
    total: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0
    items: tuple[RevaluationItem, ...] = ()
    duration_ms: int = 0
    error: LifecycleError | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        data = to_jsonable(self)
        if self.error is not None:
            data["error"] = self.error.to_dict()
        return data


@dataclass(frozen=True)
class CategoryTotals:
    """Capitalised cost, accumulated depreciation and net book value of a group."""

    asset_count: int = 0
    capitalized_cost: Decimal = ZERO
    accumulated_depreciation: Decimal = ZERO
    net_book_value: Decimal = ZERO

    def add(self, cost: Decimal, accumulated: Decimal, book_value: Decimal) -> CategoryTotals:
        return CategoryTotals(
            asset_count=self.asset_count + 1,
            capitalized_cost=self.capitalized_cost + cost,
            accumulated_depreciation=self.accumulated_depreciation + accumulated,
            net_book_value=self.net_book_value + book_value,
        )


@dataclass(frozen=True)
class PortfolioSummary:
    as_of: date
    totals: CategoryTotals = CategoryTotals()
    by_category: tuple[tuple[str, CategoryTotals], ...] = ()
    error: LifecycleError | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    def category(self, name: str) -> CategoryTotals | None:
        return dict(self.by_category).get(name)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "as_of": self.as_of.isoformat(),
            "totals": to_jsonable(self.totals),
            "by_category": {name: to_jsonable(t) for name, t in self.by_category},
        }
        if self.error is not None:
            data["error"] = self.error.to_dict()
        return data


@dataclass(frozen=True)
class AssetSchedule:
    asset_id: str
    lines: tuple[ScheduleLine, ...] = ()
    error: LifecycleError | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def total_depreciation(self) -> Decimal:
        return sum((line.depreciation for line in self.lines), ZERO)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "asset_id": self.asset_id,
            "lines": to_jsonable(self.lines),
        }
        if self.error is not None:
            data["error"] = self.error.to_dict()
        return data


def default_as_of(today: date, batch_frequency: str) -> date:
    """The valuation date a run uses when none is given."""
    if batch_frequency == "monthly":
        return today.replace(day=1)
    return today


class ValuationService:
    """
    Periodic revaluation and valuation queries.

    Contract:
        Receives the repository, clock and valuation settings by
        constructor injection.
    Guarantees:
        - ``run_periodic_recompute`` persists only assets whose cached
          value or valuation date changed, each with one audit entry.
        - ``portfolio_summary`` computes values at ``as_of`` from the
          financial basis; it does not read or write the cache.
    Non-goals:
        - Does not schedule itself; callers run it at ``batch_frequency``.
    """

    def __init__(
        self,
        repository: LifecycleRepository,
        clock: Clock | None = None,
        settings: ValuationSettings | None = None,
        id_factory: Callable[[str], str] | None = None,
    ) -> None:
        self._repo = repository
        self._clock = clock or SystemClock()
        self._settings = settings or ValuationSettings()
        self._id_factory = id_factory or (lambda prefix: f"{prefix}-{uuid4().hex[:12].upper()}")

    def run_periodic_recompute(
        self,
        as_of: date | None = None,
        actor_role: Role | str = Role.FINANCE,
    ) -> ValuationRunResult:
        """Revalue every non-Retired asset at ``as_of``."""
        run_date = as_of or default_as_of(self._clock.today(), self._settings.batch_frequency)
        auth = authorize(actor_role, Operation.RECOMPUTE_VALUATION)
        if not auth.allowed:
            return ValuationRunResult(
                as_of=run_date,
                error=LifecycleError.insufficient_role(
                    auth.role, Operation.RECOMPUTE_VALUATION.value,
                ),
            )

        t0 = time.monotonic()
        items: list[RevaluationItem] = []
        with LogContext.bind(actor_role=auth.role, command="PeriodicRevaluation"):
            logger.info("valuation_run_started", extra={"as_of": run_date})
            for asset in self._repo.list_assets(include_retired=False):
                items.append(self._revalue_one(asset, run_date, auth.role))

            result = ValuationRunResult(
                as_of=run_date,
                total=len(items),
                updated=sum(1 for i in items if i.status == RevaluationStatus.UPDATED),
                unchanged=sum(1 for i in items if i.status == RevaluationStatus.UNCHANGED),
                skipped=sum(1 for i in items if i.status == RevaluationStatus.SKIPPED),
                items=tuple(items),
                duration_ms=int((time.monotonic() - t0) * 1000),
            )
            logger.info(
                "valuation_run_completed",
                extra={
                    "as_of": run_date,
                    "total": result.total,
                    "updated": result.updated,
                    "unchanged": result.unchanged,
                    "skipped": result.skipped,
                    "duration_ms": result.duration_ms,
                },
            )
        return result

    def _revalue_one(self, asset: Asset, as_of: date, role: str) -> RevaluationItem:
        valued, entry = revalue(
            asset,
            as_of=as_of,
            trigger=ValuationTrigger.PERIODIC,
            actor_role=role,
            recorded_at=self._clock.now(),
            entry_id=self._id_factory("VAL"),
        )
        if entry is None:
            return RevaluationItem(asset.id, RevaluationStatus.UNCHANGED)
        try:
            with self._repo.transaction():
                self._repo.save_asset(valued, asset.version)
                self._repo.append_valuation_entry(entry)
        except OptimisticLockError as exc:
            logger.warning(
                "valuation_asset_skipped",
                extra={
                    "asset_id": asset.id,
                    "expected_version": exc.expected_version,
                    "actual_version": exc.actual_version,
                },
            )
            return RevaluationItem(asset.id, RevaluationStatus.SKIPPED)
        return RevaluationItem(
            asset.id,
            RevaluationStatus.UPDATED,
            prior_book_value=entry.prior_book_value,
            new_book_value=entry.new_book_value,
        )

    def portfolio_summary(
        self,
        as_of: date | None = None,
        actor_role: Role | str = Role.FINANCE,
    ) -> PortfolioSummary:
        """Totals over non-Retired assets purchased on or before ``as_of``."""
        value_date = as_of or self._clock.today()
        auth = authorize(actor_role, Operation.VIEW_FINANCIALS)
        if not auth.allowed:
            return PortfolioSummary(
                as_of=value_date,
                error=LifecycleError.insufficient_role(auth.role, Operation.VIEW_FINANCIALS.value),
            )

        totals = CategoryTotals()
        groups: dict[str, CategoryTotals] = {}
        for asset in self._repo.list_assets(include_retired=False):
            if asset.purchase_date > value_date:
                continue
            valued = compute_book_value(asset.basis, value_date)
            args = (asset.purchase_cost, valued.accumulated_depreciation, valued.book_value)
            totals = totals.add(*args)
            name = asset.category.value
            groups[name] = groups.get(name, CategoryTotals()).add(*args)

        return PortfolioSummary(
            as_of=value_date,
            totals=totals,
            by_category=tuple(sorted(groups.items())),
        )

    def asset_schedule(
        self,
        asset_id: str,
        actor_role: Role | str = Role.FINANCE,
        granularity_months: int = 1,
    ) -> AssetSchedule:
        """Depreciation schedule of one asset over its useful life."""
        auth = authorize(actor_role, Operation.VIEW_FINANCIALS)
        if not auth.allowed:
            return AssetSchedule(
                asset_id=asset_id,
                error=LifecycleError.insufficient_role(auth.role, Operation.VIEW_FINANCIALS.value),
            )
        try:
            asset = self._repo.load_asset(asset_id)
        except EntityNotFoundError as exc:
            return AssetSchedule(
                asset_id=asset_id,
                error=LifecycleError.not_found(exc.entity_type, exc.entity_id),
            )
        return AssetSchedule(
            asset_id=asset_id,
            lines=depreciation_schedule(asset.basis, granularity_months),
        )
