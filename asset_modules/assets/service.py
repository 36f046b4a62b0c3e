"""
Asset State Machine (``asset_modules.assets.service``).

Responsibility
--------------
Pure state machine for ``Asset.status`` and the resume-state bookkeeping
that lets maintenance and disposal excursions return an asset to where it
was.  Also owns registration validation and the ``revalue`` step that
refreshes the cached book value and produces its audit entry.

Architecture position
---------------------
**Modules layer** -- pure service.  No session, no repository.  Capability
checks, guards and transition lookup go through ``WorkflowExecutor``; the
valuation arithmetic comes from ``asset_engines.valuation``.

Invariants enforced
-------------------
* ``status`` changes only through ``ASSET_WORKFLOW``.
* Retired is absorbing: every mutation returns ``AssetRetired``.
* At most one Active allocation and one open disposal per asset
  (``AlreadyAllocated`` / ``DisposalAlreadyPending``).
* ``current_book_value`` is only ever a value returned by the valuation
  engine.

Failure modes
-------------
* Every rejected command returns ``TransitionResult(success=False)`` with a
  typed ``LifecycleError`` and the unchanged asset as ``entity``.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable

from asset_engines.valuation import DepreciationMethod, compute_book_value
from asset_kernel.domain.errors import LifecycleError
from asset_kernel.domain.validation import (
    require_date,
    require_member,
    require_non_negative,
    require_positive_int,
    require_text,
)
from asset_kernel.domain.values import MONEY_DECIMAL_PLACES
from asset_kernel.domain.workflow import TransitionResult
from asset_kernel.logging_config import get_logger
from asset_modules.assets.models import (
    Asset,
    AssetCategory,
    AssetStatus,
    FINANCIAL_FIELDS,
    ValuationAuditEntry,
    ValuationTrigger,
)
from asset_modules.assets.workflows import ASSET_WORKFLOW
from asset_services.rbac_authority import Operation, Role, authorize
from asset_services.workflow_executor import WorkflowExecutor

logger = get_logger("modules.assets.service")

ENTITY_TYPE = "asset"


# =============================================================================
# Validation
# =============================================================================


def _money_places(value: Any, name: str) -> tuple[str, ...]:
    if isinstance(value, Decimal) and value.is_finite():
        if value.as_tuple().exponent < -MONEY_DECIMAL_PLACES:
            return (f"{name} has more than {MONEY_DECIMAL_PLACES} decimal places",)
    return ()


def validate_financial_basis(
    purchase_cost: Any,
    salvage_value: Any,
    useful_life_months: Any,
    depreciation_method: Any,
    purchase_date: Any,
) -> tuple[str, ...]:
    """Collect every problem with a financial basis (empty when valid)."""
    issues: list[str] = []
    issues += require_non_negative(purchase_cost, "purchase_cost")
    issues += _money_places(purchase_cost, "purchase_cost")
    issues += require_non_negative(salvage_value, "salvage_value")
    issues += _money_places(salvage_value, "salvage_value")
    issues += require_positive_int(useful_life_months, "useful_life_months")
    issues += require_member(depreciation_method, DepreciationMethod, "depreciation_method")
    issues += require_date(purchase_date, "purchase_date")
    if not issues and salvage_value > purchase_cost:
        issues.append(
            f"salvage_value ({salvage_value}) must not exceed purchase_cost ({purchase_cost})"
        )
    return tuple(issues)


def validate_asset(asset: Asset) -> tuple[str, ...]:
    """Validate a registration draft."""
    issues: list[str] = []
    issues += require_text(asset.id, "id")
    issues += require_text(asset.name, "name")
    issues += require_member(asset.category, AssetCategory, "category")
    issues += require_text(asset.location, "location")
    issues += require_text(asset.department, "department")
    issues += validate_financial_basis(
        asset.purchase_cost,
        asset.salvage_value,
        asset.useful_life_months,
        asset.depreciation_method,
        asset.purchase_date,
    )
    if asset.warranty_expiry is not None:
        issues += require_date(asset.warranty_expiry, "warranty_expiry")
    return tuple(issues)


# =============================================================================
# Valuation
# =============================================================================


def revalue(
    asset: Asset,
    as_of: date,
    trigger: ValuationTrigger,
    actor_role: str,
    recorded_at: datetime,
    entry_id: str,
) -> tuple[Asset, ValuationAuditEntry | None]:
    """
    Recompute the cached book value of ``asset`` at ``as_of``.

    Returns the asset unchanged and ``None`` when neither the book value
    nor the valuation date would change, or when a periodic run is older
    than the cached valuation.  Otherwise returns the updated asset and the
    audit entry recording the prior value.
    """
    if (
        trigger == ValuationTrigger.PERIODIC
        and asset.valuation_date is not None
        and as_of < asset.valuation_date
    ):
        return asset, None

    result = compute_book_value(asset.basis, as_of)
    if result.book_value == asset.current_book_value and asset.valuation_date == as_of:
        return asset, None

    first_valuation = asset.valuation_date is None
    entry = ValuationAuditEntry(
        id=entry_id,
        asset_id=asset.id,
        prior_book_value=None if first_valuation else asset.current_book_value,
        new_book_value=result.book_value,
        prior_valuation_date=asset.valuation_date,
        valuation_date=as_of,
        trigger=trigger,
        recorded_at=recorded_at,
        actor_role=actor_role,
    )
    logger.info(
        "valuation_recomputed",
        extra={
            "asset_id": asset.id,
            "trigger": trigger.value,
            "prior_book_value": entry.prior_book_value,
            "new_book_value": result.book_value,
            "valuation_date": as_of,
            "elapsed_months": result.elapsed_months,
        },
    )
    updated = replace(asset, current_book_value=result.book_value, valuation_date=as_of)
    return updated, entry


# =============================================================================
# State machine
# =============================================================================


class AssetStateMachine:
    """
    Asset status transitions.

    Each method takes the loaded asset and the actor role and returns a
    ``TransitionResult`` whose ``entity`` is the updated asset on success
    or the unchanged asset on failure.
    """

    def __init__(self, executor: WorkflowExecutor):
        self._executor = executor

    # -- registration ---------------------------------------------------------

    def register(self, draft: Asset, actor_role: Role | str) -> TransitionResult:
        """Accept a new asset into the register in status Active."""
        auth = authorize(actor_role, Operation.CREATE_ASSET)
        if not auth.allowed:
            return TransitionResult(
                success=False,
                action="register",
                entity=draft,
                error=LifecycleError.insufficient_role(auth.role, Operation.CREATE_ASSET.value),
            )
        issues = validate_asset(draft)
        if issues:
            return TransitionResult(
                success=False,
                action="register",
                entity=draft,
                error=LifecycleError.validation(issues, ENTITY_TYPE, draft.id),
            )
        asset = replace(
            draft,
            status=AssetStatus.ACTIVE,
            assigned_to=None,
            maintenance_resume_state=None,
            disposal_resume_state=None,
            current_book_value=Decimal("0"),
            valuation_date=None,
            version=0,
        )
        return TransitionResult(
            success=True,
            action="register",
            new_state=AssetStatus.ACTIVE.value,
            entity=asset,
        )

    # -- status transitions ---------------------------------------------------

    def allocate(
        self,
        asset: Asset,
        actor_role: Role | str,
        assignee: str,
        active_allocation_id: str | None = None,
    ) -> TransitionResult:
        """Active -> Allocated.  Fails ``AlreadyAllocated`` while an allocation is Active."""
        def no_active_allocation() -> LifecycleError | None:
            if active_allocation_id is not None or asset.status == AssetStatus.ALLOCATED:
                return LifecycleError.already_allocated(asset.id, active_allocation_id)
            return None

        result = self._execute(asset, "allocate", actor_role, precheck=no_active_allocation)
        return self._apply(asset, result, assigned_to=assignee)

    def check_in(self, asset: Asset, actor_role: Role | str) -> TransitionResult:
        """Allocated -> Active; while away, rewrites an Allocated resume state to Active."""
        result = self._execute(asset, "check_in", actor_role)
        return self._apply(
            asset,
            result,
            assigned_to=None,
            maintenance_resume_state=_released(asset.maintenance_resume_state),
            disposal_resume_state=_released(asset.disposal_resume_state),
        )

    def reassign(
        self,
        asset: Asset,
        actor_role: Role | str,
        new_assignee: str,
        location: str | None = None,
        department: str | None = None,
    ) -> TransitionResult:
        """Point an allocated asset at a new assignee without changing status."""
        result = self._execute(asset, "reassign", actor_role)
        return self._apply(
            asset,
            result,
            assigned_to=new_assignee,
            location=location or asset.location,
            department=department or asset.department,
        )

    def start_maintenance(self, asset: Asset, actor_role: Role | str) -> TransitionResult:
        """Active|Allocated -> UnderMaintenance, remembering where to resume."""
        result = self._execute(asset, "start_maintenance", actor_role)
        return self._apply(asset, result, maintenance_resume_state=asset.status)

    def complete_maintenance(self, asset: Asset, actor_role: Role | str) -> TransitionResult:
        """UnderMaintenance -> resume state.

        If a disposal was initiated during maintenance the asset stays
        PendingDisposal and the disposal resume state inherits the
        pre-maintenance state.
        """
        def maintenance_in_progress() -> LifecycleError | None:
            if asset.maintenance_resume_state is None:
                return LifecycleError.invalid_transition(
                    ENTITY_TYPE, asset.id, asset.status.value, "complete_maintenance",
                    "no maintenance in progress",
                )
            return None

        result = self._execute(
            asset,
            "complete_maintenance",
            actor_role,
            precheck=maintenance_in_progress,
            resume_state=asset.maintenance_resume_state,
        )
        if asset.status == AssetStatus.PENDING_DISPOSAL:
            disposal_resume = asset.disposal_resume_state
            if disposal_resume == AssetStatus.UNDER_MAINTENANCE:
                disposal_resume = asset.maintenance_resume_state or AssetStatus.ACTIVE
            return self._apply(
                asset,
                result,
                maintenance_resume_state=None,
                disposal_resume_state=disposal_resume,
            )
        return self._apply(asset, result, maintenance_resume_state=None)

    def initiate_disposal(
        self,
        asset: Asset,
        actor_role: Role | str,
        open_disposal_id: str | None = None,
    ) -> TransitionResult:
        """Active|Allocated|UnderMaintenance -> PendingDisposal."""
        def no_open_disposal() -> LifecycleError | None:
            if open_disposal_id is not None or asset.status == AssetStatus.PENDING_DISPOSAL:
                return LifecycleError.disposal_already_pending(asset.id, open_disposal_id)
            return None

        result = self._execute(asset, "initiate_disposal", actor_role, precheck=no_open_disposal)
        return self._apply(asset, result, disposal_resume_state=asset.status)

    def reject_disposal(self, asset: Asset, actor_role: Role | str) -> TransitionResult:
        """PendingDisposal -> pre-disposal resume state."""
        result = self._execute(
            asset,
            "reject_disposal",
            actor_role,
            resume_state=asset.disposal_resume_state,
        )
        return self._apply(asset, result, disposal_resume_state=None)

    def retire(self, asset: Asset, actor_role: Role | str) -> TransitionResult:
        """PendingDisposal -> Retired.  Irreversible."""
        result = self._execute(asset, "retire", actor_role)
        return self._apply(
            asset,
            result,
            assigned_to=None,
            maintenance_resume_state=None,
            disposal_resume_state=None,
        )

    # -- non-status edits -----------------------------------------------------

    def update_financials(
        self,
        asset: Asset,
        actor_role: Role | str,
        changes: dict[str, Any],
    ) -> TransitionResult:
        """Apply financial basis changes; the caller recomputes the book value."""
        unknown = sorted(set(changes) - set(FINANCIAL_FIELDS))
        merged = {
            name: changes.get(name, getattr(asset, name))
            for name in FINANCIAL_FIELDS
        }

        def valid_changes() -> LifecycleError | None:
            issues = tuple(f"{name} is not an editable field" for name in unknown)
            if not changes:
                issues += ("no financial fields to update",)
            issues += validate_financial_basis(**merged)
            if issues:
                return LifecycleError.validation(issues, ENTITY_TYPE, asset.id)
            return None

        result = self._execute(asset, "update_financials", actor_role, precheck=valid_changes)
        return self._apply(asset, result, **changes)

    def authorize_revaluation(self, asset: Asset, actor_role: Role | str) -> TransitionResult:
        """Capability and status check for an on-demand recompute."""
        result = self._execute(asset, "revalue", actor_role)
        return self._apply(asset, result)

    # -- helpers --------------------------------------------------------------

    def _execute(
        self,
        asset: Asset,
        action: str,
        actor_role: Role | str,
        precheck: Callable[[], LifecycleError | None] | None = None,
        resume_state: AssetStatus | None = None,
    ) -> TransitionResult:
        def checks() -> LifecycleError | None:
            if asset.is_retired:
                return LifecycleError.asset_retired(asset.id, action)
            return precheck() if precheck is not None else None

        return self._executor.execute_transition(
            workflow=ASSET_WORKFLOW,
            entity_type=ENTITY_TYPE,
            entity_id=asset.id,
            current_state=asset.status.value,
            action=action,
            actor_role=actor_role,
            resume_state=resume_state.value if resume_state is not None else None,
            precheck=checks,
        )

    @staticmethod
    def _apply(asset: Asset, result: TransitionResult, **changes: Any) -> TransitionResult:
        if not result.success:
            return replace(result, entity=asset)
        updated = replace(asset, status=AssetStatus(result.new_state), **changes)
        return replace(result, entity=updated)


def _released(resume_state: AssetStatus | None) -> AssetStatus | None:
    """An allocation ending while away means the asset resumes as Active."""
    if resume_state == AssetStatus.ALLOCATED:
        return AssetStatus.ACTIVE
    return resume_state
