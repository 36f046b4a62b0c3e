"""
Procurement Module (``asset_modules.procurement``).

Purchase requests with multi-stage approval under the configured
procurement approval policy.
"""

from asset_modules.procurement.models import (
    ProcurementCategory,
    ProcurementPriority,
    ProcurementRequest,
    ProcurementStatus,
)
from asset_modules.procurement.service import ProcurementStateMachine, validate_procurement
from asset_modules.procurement.workflows import PROCUREMENT_WORKFLOW

__all__ = [
    "PROCUREMENT_WORKFLOW",
    "ProcurementCategory",
    "ProcurementPriority",
    "ProcurementRequest",
    "ProcurementStateMachine",
    "ProcurementStatus",
    "validate_procurement",
]
