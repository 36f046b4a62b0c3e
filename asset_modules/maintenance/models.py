"""
Maintenance Domain Models.

The nouns of asset maintenance: scheduled and breakdown work orders and
their costs.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from asset_kernel.logging_config import get_logger

logger = get_logger("modules.maintenance.models")


class MaintenanceType(str, Enum):
    """Why the work is done."""
    PREVENTIVE = "Preventive"
    BREAKDOWN = "Breakdown"


class MaintenancePriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class MaintenanceStatus(str, Enum):
    """Maintenance record lifecycle states."""
    SCHEDULED = "Scheduled"
    IN_PROGRESS = "InProgress"  # asset held at UnderMaintenance
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


OPEN_MAINTENANCE_STATUSES = frozenset({
    MaintenanceStatus.SCHEDULED,
    MaintenanceStatus.IN_PROGRESS,
})


@dataclass(frozen=True)
class MaintenanceRecord:
    """A maintenance work order for one asset."""
    id: str
    asset_id: str
    maintenance_type: MaintenanceType
    priority: MaintenancePriority
    scheduled_date: date
    vendor: str
    estimated_cost: Decimal
    description: str | None = None
    status: MaintenanceStatus = MaintenanceStatus.SCHEDULED
    started_on: date | None = None
    completed_on: date | None = None
    actual_cost: Decimal | None = None
    version: int = 0

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_MAINTENANCE_STATUSES
