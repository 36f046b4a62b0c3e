"""
Procurement Domain Models.

The nouns of purchasing: requests to acquire assets and the approvals
recorded against them.  No asset exists until a request is Completed and
the asset is registered.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from asset_kernel.domain.approval import ApprovalDecisionRecord
from asset_kernel.logging_config import get_logger

logger = get_logger("modules.procurement.models")


class ProcurementCategory(str, Enum):
    IT_EQUIPMENT = "IT Equipment"
    OFFICE_FURNITURE = "Office Furniture"
    TRANSPORT = "Transport"
    IT_INFRASTRUCTURE = "IT Infrastructure"
    OFFICE_SUPPLIES = "Office Supplies"
    OTHER = "Other"


class ProcurementPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"


class ProcurementStatus(str, Enum):
    """Procurement request lifecycle states."""
    PENDING_APPROVAL = "PendingApproval"
    APPROVED = "Approved"
    IN_PROCUREMENT = "InProcurement"
    COMPLETED = "Completed"  # terminal
    REJECTED = "Rejected"  # terminal


@dataclass(frozen=True)
class ProcurementRequest:
    """
    A request to purchase goods.

    ``estimated_cost`` is the total for the request (all units) and is the
    amount approval rules are matched against.
    """
    id: str
    title: str
    category: ProcurementCategory
    priority: ProcurementPriority
    estimated_cost: Decimal
    requested_by: str
    department: str
    request_date: date
    quantity: int = 1
    justification: str | None = None
    required_by: date | None = None
    preferred_vendor: str | None = None
    budget_code: str | None = None
    status: ProcurementStatus = ProcurementStatus.PENDING_APPROVAL
    approvals: tuple[ApprovalDecisionRecord, ...] = ()
    rejection_reason: str | None = None
    completed_on: date | None = None
    version: int = 0
