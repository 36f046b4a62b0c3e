"""
Maintenance Module (``asset_modules.maintenance``).

Preventive and breakdown work orders.  While a record is InProgress the
orchestrator holds its asset at UnderMaintenance; completion returns the
asset to the state it left.
"""

from asset_modules.maintenance.models import (
    MaintenancePriority,
    MaintenanceRecord,
    MaintenanceStatus,
    MaintenanceType,
)
from asset_modules.maintenance.service import MaintenanceStateMachine, validate_maintenance
from asset_modules.maintenance.workflows import MAINTENANCE_WORKFLOW

__all__ = [
    "MAINTENANCE_WORKFLOW",
    "MaintenancePriority",
    "MaintenanceRecord",
    "MaintenanceStateMachine",
    "MaintenanceStatus",
    "MaintenanceType",
    "validate_maintenance",
]
