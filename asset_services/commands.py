"""
asset_services.commands -- Lifecycle command payloads.

Responsibility:
    Typed, immutable payloads accepted by ``LifecycleOrchestrator.apply``.
    Each command names the operation the capability gate checks before
    anything is loaded.

Architecture position:
    Services layer.  Pure data; no behaviour beyond ``name``.

Invariants:
    - ``expected_version`` is the version of the command's target entity
      as the caller last loaded it.  A stale value yields
      ``ConcurrentModification`` before any state is examined.
    - Creation commands carry a complete draft and no version.
    - Dates left as ``None`` default to the orchestrator clock's today.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, ClassVar

from asset_engines.valuation import DepreciationMethod
from asset_modules.allocation.models import AllocationType
from asset_modules.assets.models import Asset
from asset_modules.disposal.models import DisposalMethod, DisposalReason
from asset_modules.maintenance.models import MaintenancePriority, MaintenanceType
from asset_modules.procurement.models import ProcurementRequest
from asset_services.rbac_authority import Operation


@dataclass(frozen=True)
class LifecycleCommand:
    """Base class for every command."""

    operation: ClassVar[Operation]

    @property
    def name(self) -> str:
        return type(self).__name__


# ---------------------------------------------------------------------------
# Asset register
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RegisterAsset(LifecycleCommand):
    """Accept ``asset`` into the register and value it at ``as_of``."""

    operation: ClassVar[Operation] = Operation.CREATE_ASSET

    asset: Asset
    as_of: date | None = None


@dataclass(frozen=True)
class UpdateAssetFinancials(LifecycleCommand):
    """Change the financial basis; the book value is recomputed."""

    operation: ClassVar[Operation] = Operation.UPDATE_ASSET_FINANCIALS

    asset_id: str
    expected_version: int
    purchase_cost: Decimal | None = None
    salvage_value: Decimal | None = None
    useful_life_months: int | None = None
    depreciation_method: DepreciationMethod | None = None
    purchase_date: date | None = None
    as_of: date | None = None

    def changes(self) -> dict[str, Any]:
        """The basis fields this command sets."""
        candidates = {
            "purchase_cost": self.purchase_cost,
            "salvage_value": self.salvage_value,
            "useful_life_months": self.useful_life_months,
            "depreciation_method": self.depreciation_method,
            "purchase_date": self.purchase_date,
        }
        return {k: v for k, v in candidates.items() if v is not None}


@dataclass(frozen=True)
class RecomputeAssetValuation(LifecycleCommand):
    operation: ClassVar[Operation] = Operation.RECOMPUTE_VALUATION

    asset_id: str
    expected_version: int
    as_of: date | None = None


# ---------------------------------------------------------------------------
# Procurement
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CreateProcurementRequest(LifecycleCommand):
    operation: ClassVar[Operation] = Operation.CREATE_PROCUREMENT

    request: ProcurementRequest


@dataclass(frozen=True)
class ApproveProcurement(LifecycleCommand):
    operation: ClassVar[Operation] = Operation.APPROVE_PROCUREMENT

    request_id: str
    expected_version: int
    comment: str = ""


@dataclass(frozen=True)
class RejectProcurement(LifecycleCommand):
    operation: ClassVar[Operation] = Operation.REJECT_PROCUREMENT

    request_id: str
    expected_version: int
    reason: str


@dataclass(frozen=True)
class MarkInProcurement(LifecycleCommand):
    operation: ClassVar[Operation] = Operation.MARK_IN_PROCUREMENT

    request_id: str
    expected_version: int


@dataclass(frozen=True)
class CompleteProcurement(LifecycleCommand):
    operation: ClassVar[Operation] = Operation.COMPLETE_PROCUREMENT

    request_id: str
    expected_version: int
    completed_on: date | None = None


# ---------------------------------------------------------------------------
# Allocation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AllocateAsset(LifecycleCommand):
    """Assign an Active asset.  ``expected_version`` is the asset's."""

    operation: ClassVar[Operation] = Operation.ALLOCATE_ASSET

    asset_id: str
    expected_version: int
    assignee: str
    department: str
    location: str
    allocation_type: AllocationType
    assign_date: date | None = None
    expected_return_date: date | None = None
    notes: str | None = None


@dataclass(frozen=True)
class CheckInAllocation(LifecycleCommand):
    """Return a Temporary allocation.  ``expected_version`` is the allocation's."""

    operation: ClassVar[Operation] = Operation.CHECK_IN_ALLOCATION

    allocation_id: str
    expected_version: int
    returned_on: date | None = None


@dataclass(frozen=True)
class TransferAllocation(LifecycleCommand):
    """Close an allocation and reopen it for ``new_assignee``."""

    operation: ClassVar[Operation] = Operation.TRANSFER_ALLOCATION

    allocation_id: str
    expected_version: int
    new_assignee: str
    department: str | None = None
    location: str | None = None
    allocation_type: AllocationType | None = None
    expected_return_date: date | None = None
    transfer_date: date | None = None


# ---------------------------------------------------------------------------
# Maintenance
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScheduleMaintenance(LifecycleCommand):
    """Open a work order.  ``expected_version`` is the asset's."""

    operation: ClassVar[Operation] = Operation.SCHEDULE_MAINTENANCE

    asset_id: str
    expected_version: int
    maintenance_type: MaintenanceType
    priority: MaintenancePriority
    scheduled_date: date
    vendor: str
    estimated_cost: Decimal
    description: str | None = None


@dataclass(frozen=True)
class StartMaintenance(LifecycleCommand):
    operation: ClassVar[Operation] = Operation.START_MAINTENANCE

    record_id: str
    expected_version: int
    started_on: date | None = None


@dataclass(frozen=True)
class CompleteMaintenance(LifecycleCommand):
    operation: ClassVar[Operation] = Operation.COMPLETE_MAINTENANCE

    record_id: str
    expected_version: int
    completed_on: date | None = None
    actual_cost: Decimal | None = None


@dataclass(frozen=True)
class CancelMaintenance(LifecycleCommand):
    operation: ClassVar[Operation] = Operation.CANCEL_MAINTENANCE

    record_id: str
    expected_version: int


# ---------------------------------------------------------------------------
# Disposal
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InitiateDisposal(LifecycleCommand):
    """Open a disposal request.  ``expected_version`` is the asset's."""

    operation: ClassVar[Operation] = Operation.INITIATE_DISPOSAL

    asset_id: str
    expected_version: int
    reason: DisposalReason
    disposal_method: DisposalMethod
    estimated_value: Decimal
    salvage_value: Decimal
    requested_by: str
    description: str | None = None
    request_date: date | None = None


@dataclass(frozen=True)
class ApproveDisposal(LifecycleCommand):
    operation: ClassVar[Operation] = Operation.APPROVE_DISPOSAL

    disposal_id: str
    expected_version: int
    comment: str = ""


@dataclass(frozen=True)
class RejectDisposal(LifecycleCommand):
    operation: ClassVar[Operation] = Operation.REJECT_DISPOSAL

    disposal_id: str
    expected_version: int
    reason: str


@dataclass(frozen=True)
class CompleteDisposal(LifecycleCommand):
    """Retire the asset.  ``proceeds`` fixes the realised gain or loss."""

    operation: ClassVar[Operation] = Operation.RETIRE_ASSET

    disposal_id: str
    expected_version: int
    proceeds: Decimal | None = None
    completed_on: date | None = None


ALL_COMMANDS: tuple[type[LifecycleCommand], ...] = (
    RegisterAsset,
    UpdateAssetFinancials,
    RecomputeAssetValuation,
    CreateProcurementRequest,
    ApproveProcurement,
    RejectProcurement,
    MarkInProcurement,
    CompleteProcurement,
    AllocateAsset,
    CheckInAllocation,
    TransferAllocation,
    ScheduleMaintenance,
    StartMaintenance,
    CompleteMaintenance,
    CancelMaintenance,
    InitiateDisposal,
    ApproveDisposal,
    RejectDisposal,
    CompleteDisposal,
)
