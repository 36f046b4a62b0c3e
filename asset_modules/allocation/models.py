"""
Allocation Domain Models.

The nouns of asset allocation: who holds an asset, where, for how long, and
how the allocation ended.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum

from asset_kernel.logging_config import get_logger

logger = get_logger("modules.allocation.models")


class AllocationType(str, Enum):
    """How long the assignee keeps the asset."""
    PERMANENT = "Permanent"
    TEMPORARY = "Temporary"  # requires expected_return_date


class AllocationStatus(str, Enum):
    """Allocation record lifecycle states."""
    ACTIVE = "Active"
    RETURNED = "Returned"  # terminal, immutable


class AllocationEndReason(str, Enum):
    """Why an allocation was returned."""
    CHECK_IN = "check_in"
    TRANSFER = "transfer"
    RETIREMENT = "retirement"


@dataclass(frozen=True)
class AllocationRecord:
    """An assignment of an asset to a person, department and location."""
    id: str
    asset_id: str
    assignee: str
    department: str
    location: str
    allocation_type: AllocationType
    assign_date: date
    expected_return_date: date | None = None
    status: AllocationStatus = AllocationStatus.ACTIVE
    returned_on: date | None = None
    returned_late: bool = False
    transferred_to: str | None = None
    end_reason: AllocationEndReason | None = None
    notes: str | None = None
    version: int = 0

    @property
    def is_active(self) -> bool:
        return self.status == AllocationStatus.ACTIVE


@dataclass(frozen=True)
class AllocationTransfer:
    """The two records produced by a transfer, persisted together."""
    closed: AllocationRecord
    successor: AllocationRecord
