"""
Disposal ORM Models (``asset_modules.disposal.orm``).

Responsibility
--------------
SQLAlchemy persistence model for disposal requests.  Recorded approval
decisions are stored inline as a JSON array; they are never edited, only
extended.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``asset_kernel.db.base``
and sibling ``models.py``.  MUST NOT be imported by ``asset_kernel``.
"""

from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from asset_kernel.db.base import VersionedBase


class DisposalRequestModel(VersionedBase):
    """
    ORM model for ``DisposalRequest``.

    Table: ``disposal_requests``
    """

    __tablename__ = "disposal_requests"

    asset_id: Mapped[str] = mapped_column(ForeignKey("assets_assets.id"))
    reason: Mapped[str] = mapped_column(String(50))
    disposal_method: Mapped[str] = mapped_column(String(20))
    estimated_value: Mapped[Decimal]
    salvage_value: Mapped[Decimal]
    requested_by: Mapped[str] = mapped_column(String(200))
    request_date: Mapped[date]
    description: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    status: Mapped[str] = mapped_column(String(20))
    approvals: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    rejection_reason: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    completed_on: Mapped[date | None] = mapped_column(nullable=True)
    proceeds: Mapped[Decimal | None] = mapped_column(nullable=True)
    book_value_at_disposal: Mapped[Decimal | None] = mapped_column(nullable=True)
    gain_loss: Mapped[Decimal | None] = mapped_column(nullable=True)

    __table_args__ = (
        Index("idx_disposal_requests_asset_status", "asset_id", "status"),
    )

    def to_dto(self):
        from asset_kernel.domain.approval import ApprovalDecisionRecord
        from asset_modules.disposal.models import (
            DisposalMethod,
            DisposalReason,
            DisposalRequest,
            DisposalStatus,
        )
        return DisposalRequest(
            id=self.id,
            asset_id=self.asset_id,
            reason=DisposalReason(self.reason),
            disposal_method=DisposalMethod(self.disposal_method),
            estimated_value=self.estimated_value,
            salvage_value=self.salvage_value,
            requested_by=self.requested_by,
            request_date=self.request_date,
            description=self.description,
            status=DisposalStatus(self.status),
            approvals=tuple(
                ApprovalDecisionRecord.from_dict(a) for a in (self.approvals or ())
            ),
            rejection_reason=self.rejection_reason,
            completed_on=self.completed_on,
            proceeds=self.proceeds,
            book_value_at_disposal=self.book_value_at_disposal,
            gain_loss=self.gain_loss,
            version=self.version,
        )

    @classmethod
    def from_dto(cls, dto, updated_by_role: str | None = None) -> "DisposalRequestModel":
        return cls(
            id=dto.id,
            version=dto.version,
            updated_by_role=updated_by_role,
            **disposal_columns(dto),
        )

    def __repr__(self) -> str:
        return (
            f"<DisposalRequestModel(id={self.id!r}, asset_id={self.asset_id!r}, "
            f"status={self.status!r})>"
        )


def disposal_columns(dto) -> dict:
    """Column values for ``dto`` other than id and version."""
    return {
        "asset_id": dto.asset_id,
        "reason": dto.reason.value,
        "disposal_method": dto.disposal_method.value,
        "estimated_value": dto.estimated_value,
        "salvage_value": dto.salvage_value,
        "requested_by": dto.requested_by,
        "request_date": dto.request_date,
        "description": dto.description,
        "status": dto.status.value,
        "approvals": [a.to_dict() for a in dto.approvals],
        "rejection_reason": dto.rejection_reason,
        "completed_on": dto.completed_on,
        "proceeds": dto.proceeds,
        "book_value_at_disposal": dto.book_value_at_disposal,
        "gain_loss": dto.gain_loss,
    }
