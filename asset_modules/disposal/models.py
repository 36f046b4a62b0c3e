"""
Disposal Domain Models.

The nouns of asset disposal: requests to retire an asset, the approvals
recorded against them, and the realised gain or loss on completion.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from asset_kernel.domain.approval import ApprovalDecisionRecord
from asset_kernel.logging_config import get_logger

logger = get_logger("modules.disposal.models")


class DisposalReason(str, Enum):
    END_OF_LIFE = "EndOfLife"
    DAMAGED = "Damaged"
    OBSOLETE = "Obsolete"
    HIGH_MAINTENANCE_COST = "HighMaintenanceCost"
    OTHER = "Other"


class DisposalMethod(str, Enum):
    AUCTION = "Auction"
    SCRAP = "Scrap"
    SALE = "Sale"
    DONATION = "Donation"
    RECYCLE = "Recycle"


class DisposalStatus(str, Enum):
    """Disposal request lifecycle states."""
    PENDING_APPROVAL = "PendingApproval"
    APPROVED = "Approved"
    COMPLETED = "Completed"  # terminal; asset retired
    REJECTED = "Rejected"  # terminal; asset resumes


OPEN_DISPOSAL_STATUSES = frozenset({
    DisposalStatus.PENDING_APPROVAL,
    DisposalStatus.APPROVED,
})


@dataclass(frozen=True)
class DisposalRequest:
    """
    A request to dispose of one asset.

    ``estimated_value`` is the amount approval rules are matched against.
    ``gain_loss`` is ``proceeds - book_value_at_disposal`` and is set only
    on completion with recorded proceeds.
    """
    id: str
    asset_id: str
    reason: DisposalReason
    disposal_method: DisposalMethod
    estimated_value: Decimal
    salvage_value: Decimal
    requested_by: str
    request_date: date
    description: str | None = None
    status: DisposalStatus = DisposalStatus.PENDING_APPROVAL
    approvals: tuple[ApprovalDecisionRecord, ...] = ()
    rejection_reason: str | None = None
    completed_on: date | None = None
    proceeds: Decimal | None = None
    book_value_at_disposal: Decimal | None = None
    gain_loss: Decimal | None = None
    version: int = 0

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_DISPOSAL_STATUSES
