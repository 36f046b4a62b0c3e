"""
asset_services.rbac_authority -- Role capability gate.

Responsibility:
    Decide whether a role may perform an operation.  One static table maps
    each of the fixed roles to the operations it is granted; the same
    table drives enforcement in the lifecycle core and visibility in the
    interface layer (navigation sections, action buttons).

Architecture position:
    Services layer.  Pure: no I/O, no clock, no configuration.  Called by
    WorkflowExecutor before every transition and by the module state
    machines before every record creation.

Invariants:
    - ``admin`` is granted every operation.
    - ``viewer`` is granted only read-style operations.
    - Unknown role strings are denied, never an exception.
    - Every (workflow, action) pair a module declares maps to exactly one
      Operation in ``WORKFLOW_ACTION_TO_OPERATION``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from asset_kernel.domain.errors import ErrorCode


class Role(str, Enum):
    """The fixed set of actor roles."""

    ADMIN = "admin"
    ASSET_MANAGER = "asset_manager"
    PROCUREMENT_OFFICER = "procurement_officer"
    MAINTENANCE_MANAGER = "maintenance_manager"
    IT_ASSET_MANAGER = "it_asset_manager"
    DEPARTMENT_HEAD = "department_head"
    AUDITOR = "auditor"
    FINANCE = "finance"
    DISPOSAL_OFFICER = "disposal_officer"
    EMPLOYEE = "employee"
    VIEWER = "viewer"


class Operation(str, Enum):
    """The closed set of guarded operations."""

    CREATE_ASSET = "CreateAsset"
    UPDATE_ASSET_FINANCIALS = "UpdateAssetFinancials"
    RECOMPUTE_VALUATION = "RecomputeValuation"
    VIEW_ASSET = "ViewAsset"
    VIEW_FINANCIALS = "ViewFinancials"
    VIEW_REPORTS = "ViewReports"
    VIEW_AUDIT_TRAIL = "ViewAuditTrail"
    CREATE_PROCUREMENT = "CreateProcurement"
    APPROVE_PROCUREMENT = "ApproveProcurement"
    REJECT_PROCUREMENT = "RejectProcurement"
    MARK_IN_PROCUREMENT = "MarkInProcurement"
    COMPLETE_PROCUREMENT = "CompleteProcurement"
    ALLOCATE_ASSET = "AllocateAsset"
    CHECK_IN_ALLOCATION = "CheckInAllocation"
    TRANSFER_ALLOCATION = "TransferAllocation"
    SCHEDULE_MAINTENANCE = "ScheduleMaintenance"
    START_MAINTENANCE = "StartMaintenance"
    COMPLETE_MAINTENANCE = "CompleteMaintenance"
    CANCEL_MAINTENANCE = "CancelMaintenance"
    INITIATE_DISPOSAL = "InitiateDisposal"
    APPROVE_DISPOSAL = "ApproveDisposal"
    REJECT_DISPOSAL = "RejectDisposal"
    RETIRE_ASSET = "RetireAsset"


READ_OPERATIONS: frozenset[Operation] = frozenset({
    Operation.VIEW_ASSET,
    Operation.VIEW_FINANCIALS,
    Operation.VIEW_REPORTS,
    Operation.VIEW_AUDIT_TRAIL,
})

_MAINTENANCE_OPERATIONS = frozenset({
    Operation.SCHEDULE_MAINTENANCE,
    Operation.START_MAINTENANCE,
    Operation.COMPLETE_MAINTENANCE,
    Operation.CANCEL_MAINTENANCE,
})

ROLE_OPERATIONS: dict[Role, frozenset[Operation]] = {
    Role.ADMIN: frozenset(Operation),
    Role.ASSET_MANAGER: frozenset({
        Operation.CREATE_ASSET,
        Operation.UPDATE_ASSET_FINANCIALS,
        Operation.RECOMPUTE_VALUATION,
        Operation.ALLOCATE_ASSET,
        Operation.CHECK_IN_ALLOCATION,
        Operation.TRANSFER_ALLOCATION,
        Operation.SCHEDULE_MAINTENANCE,
        Operation.INITIATE_DISPOSAL,
    }) | READ_OPERATIONS,
    Role.PROCUREMENT_OFFICER: frozenset({
        Operation.CREATE_PROCUREMENT,
        Operation.MARK_IN_PROCUREMENT,
        Operation.COMPLETE_PROCUREMENT,
        Operation.VIEW_ASSET,
    }),
    Role.MAINTENANCE_MANAGER: _MAINTENANCE_OPERATIONS | {Operation.VIEW_ASSET},
    Role.IT_ASSET_MANAGER: frozenset({
        Operation.CREATE_ASSET,
        Operation.ALLOCATE_ASSET,
        Operation.CHECK_IN_ALLOCATION,
        Operation.TRANSFER_ALLOCATION,
        Operation.SCHEDULE_MAINTENANCE,
        Operation.START_MAINTENANCE,
        Operation.COMPLETE_MAINTENANCE,
        Operation.INITIATE_DISPOSAL,
        Operation.VIEW_ASSET,
    }),
    Role.DEPARTMENT_HEAD: frozenset({
        Operation.CREATE_PROCUREMENT,
        Operation.APPROVE_PROCUREMENT,
        Operation.REJECT_PROCUREMENT,
        Operation.VIEW_ASSET,
        Operation.VIEW_REPORTS,
    }),
    Role.AUDITOR: READ_OPERATIONS,
    Role.FINANCE: frozenset({
        Operation.APPROVE_PROCUREMENT,
        Operation.REJECT_PROCUREMENT,
        Operation.APPROVE_DISPOSAL,
        Operation.REJECT_DISPOSAL,
        Operation.UPDATE_ASSET_FINANCIALS,
        Operation.RECOMPUTE_VALUATION,
        Operation.VIEW_ASSET,
        Operation.VIEW_FINANCIALS,
        Operation.VIEW_REPORTS,
    }),
    Role.DISPOSAL_OFFICER: frozenset({
        Operation.INITIATE_DISPOSAL,
        Operation.RETIRE_ASSET,
        Operation.VIEW_ASSET,
    }),
    Role.EMPLOYEE: frozenset({
        Operation.CREATE_PROCUREMENT,
        Operation.VIEW_ASSET,
    }),
    Role.VIEWER: frozenset({
        Operation.VIEW_ASSET,
        Operation.VIEW_REPORTS,
    }),
}


# (workflow_name, action) -> operation guarding the transition
WORKFLOW_ACTION_TO_OPERATION: dict[tuple[str, str], Operation] = {
    # Asset status machine
    ("asset", "allocate"): Operation.ALLOCATE_ASSET,
    ("asset", "check_in"): Operation.CHECK_IN_ALLOCATION,
    ("asset", "reassign"): Operation.TRANSFER_ALLOCATION,
    ("asset", "start_maintenance"): Operation.START_MAINTENANCE,
    ("asset", "complete_maintenance"): Operation.COMPLETE_MAINTENANCE,
    ("asset", "initiate_disposal"): Operation.INITIATE_DISPOSAL,
    ("asset", "reject_disposal"): Operation.REJECT_DISPOSAL,
    ("asset", "retire"): Operation.RETIRE_ASSET,
    ("asset", "update_financials"): Operation.UPDATE_ASSET_FINANCIALS,
    ("asset", "revalue"): Operation.RECOMPUTE_VALUATION,
    # Allocation records
    ("allocation", "check_in"): Operation.CHECK_IN_ALLOCATION,
    ("allocation", "transfer"): Operation.TRANSFER_ALLOCATION,
    ("allocation", "release"): Operation.RETIRE_ASSET,
    # Maintenance records
    ("maintenance", "start"): Operation.START_MAINTENANCE,
    ("maintenance", "complete"): Operation.COMPLETE_MAINTENANCE,
    ("maintenance", "cancel"): Operation.CANCEL_MAINTENANCE,
    # Disposal requests
    ("disposal", "approve"): Operation.APPROVE_DISPOSAL,
    ("disposal", "reject"): Operation.REJECT_DISPOSAL,
    ("disposal", "complete"): Operation.RETIRE_ASSET,
    # Procurement requests
    ("procurement", "approve"): Operation.APPROVE_PROCUREMENT,
    ("procurement", "reject"): Operation.REJECT_PROCUREMENT,
    ("procurement", "mark_in_procurement"): Operation.MARK_IN_PROCUREMENT,
    ("procurement", "complete"): Operation.COMPLETE_PROCUREMENT,
}


@dataclass(frozen=True)
class NavigationSection:
    """A navigation entry and the operation that reveals it."""

    name: str
    path: str
    operation: Operation


NAVIGATION_SECTIONS: tuple[NavigationSection, ...] = (
    NavigationSection("Dashboard", "/", Operation.VIEW_ASSET),
    NavigationSection("Asset Register", "/assets", Operation.CREATE_ASSET),
    NavigationSection("Procurement", "/procurement", Operation.CREATE_PROCUREMENT),
    NavigationSection("Allocation", "/allocation", Operation.ALLOCATE_ASSET),
    NavigationSection("Maintenance", "/maintenance", Operation.SCHEDULE_MAINTENANCE),
    NavigationSection("IT Assets", "/it-assets", Operation.ALLOCATE_ASSET),
    NavigationSection("Properties", "/properties", Operation.UPDATE_ASSET_FINANCIALS),
    NavigationSection("Depreciation", "/depreciation", Operation.VIEW_FINANCIALS),
    NavigationSection("Disposal", "/disposal", Operation.INITIATE_DISPOSAL),
    NavigationSection("Requests", "/requests", Operation.VIEW_REPORTS),
)


@dataclass(frozen=True)
class AuthorizationDecision:
    """Outcome of a capability check.  ``reason`` is set only on denial."""

    allowed: bool
    role: str
    operation: Operation
    reason: ErrorCode | None = None


def _coerce_role(role: Role | str) -> Role | None:
    if isinstance(role, Role):
        return role
    try:
        return Role(role)
    except ValueError:
        return None


def _role_value(role: Role | str) -> str:
    return role.value if isinstance(role, Role) else str(role)


def authorize(role: Role | str, operation: Operation) -> AuthorizationDecision:
    """Check whether ``role`` may perform ``operation``.

    Returns:
        AuthorizationDecision with ``allowed`` True, or ``allowed`` False and
        ``reason`` ``ErrorCode.INSUFFICIENT_ROLE``.
    """
    resolved = _coerce_role(role)
    if resolved is not None and operation in ROLE_OPERATIONS[resolved]:
        return AuthorizationDecision(
            allowed=True, role=_role_value(role), operation=operation,
        )
    return AuthorizationDecision(
        allowed=False,
        role=_role_value(role),
        operation=operation,
        reason=ErrorCode.INSUFFICIENT_ROLE,
    )


def permitted_operations(role: Role | str) -> frozenset[Operation]:
    """All operations granted to ``role`` (empty for unknown roles)."""
    resolved = _coerce_role(role)
    if resolved is None:
        return frozenset()
    return ROLE_OPERATIONS[resolved]


def visible_sections(role: Role | str) -> tuple[NavigationSection, ...]:
    """Navigation sections the interface layer shows to ``role``, in menu order."""
    granted = permitted_operations(role)
    return tuple(s for s in NAVIGATION_SECTIONS if s.operation in granted)


def get_operation_for_transition(workflow_name: str, action: str) -> Operation | None:
    """Return the operation guarding this workflow transition, or None if not mapped."""
    return WORKFLOW_ACTION_TO_OPERATION.get((workflow_name, action))
