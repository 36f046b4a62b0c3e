"""
Allocation Module (``asset_modules.allocation``).

Responsibility
--------------
Assignment of assets to people, departments and locations: creation,
check-in of Temporary allocations (with late-return detection), transfer to
a new assignee, and release on retirement.

Architecture position
---------------------
**Modules layer** -- declarative workflow, frozen models, ORM mapping and a
pure state-machine service.  Asset status effects are applied by the
orchestrator through ``AssetStateMachine``.

Invariants enforced
-------------------
* At most one Active allocation per asset (checked by the asset machine).
* Returned records are immutable.
"""

from asset_modules.allocation.models import (
    AllocationEndReason,
    AllocationRecord,
    AllocationStatus,
    AllocationTransfer,
    AllocationType,
)
from asset_modules.allocation.service import AllocationStateMachine, validate_allocation
from asset_modules.allocation.workflows import ALLOCATION_WORKFLOW

__all__ = [
    "ALLOCATION_WORKFLOW",
    "AllocationEndReason",
    "AllocationRecord",
    "AllocationStateMachine",
    "AllocationStatus",
    "AllocationTransfer",
    "AllocationType",
    "validate_allocation",
]
