"""
Procurement ORM Models (``asset_modules.procurement.orm``).

Responsibility
--------------
SQLAlchemy persistence model for procurement requests.  Recorded approval
decisions are stored inline as a JSON array.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``asset_kernel.db.base``
and sibling ``models.py``.  MUST NOT be imported by ``asset_kernel``.
"""

from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from asset_kernel.db.base import VersionedBase


class ProcurementRequestModel(VersionedBase):
    """
    ORM model for ``ProcurementRequest``.

    Table: ``procurement_requests``
    """

    __tablename__ = "procurement_requests"

    title: Mapped[str] = mapped_column(String(200))
    category: Mapped[str] = mapped_column(String(50))
    priority: Mapped[str] = mapped_column(String(20))
    estimated_cost: Mapped[Decimal]
    quantity: Mapped[int]
    requested_by: Mapped[str] = mapped_column(String(200))
    department: Mapped[str] = mapped_column(String(200))
    request_date: Mapped[date]
    justification: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    required_by: Mapped[date | None] = mapped_column(nullable=True)
    preferred_vendor: Mapped[str | None] = mapped_column(String(200), nullable=True)
    budget_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(String(20))
    approvals: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    rejection_reason: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    completed_on: Mapped[date | None] = mapped_column(nullable=True)

    __table_args__ = (
        Index("idx_procurement_requests_status", "status"),
    )

    def to_dto(self):
        from asset_kernel.domain.approval import ApprovalDecisionRecord
        from asset_modules.procurement.models import (
            ProcurementCategory,
            ProcurementPriority,
            ProcurementRequest,
            ProcurementStatus,
        )
        return ProcurementRequest(
            id=self.id,
            title=self.title,
            category=ProcurementCategory(self.category),
            priority=ProcurementPriority(self.priority),
            estimated_cost=self.estimated_cost,
            quantity=self.quantity,
            requested_by=self.requested_by,
            department=self.department,
            request_date=self.request_date,
            justification=self.justification,
            required_by=self.required_by,
            preferred_vendor=self.preferred_vendor,
            budget_code=self.budget_code,
            status=ProcurementStatus(self.status),
            approvals=tuple(
                ApprovalDecisionRecord.from_dict(a) for a in (self.approvals or ())
            ),
            rejection_reason=self.rejection_reason,
            completed_on=self.completed_on,
            version=self.version,
        )

    @classmethod
    def from_dto(cls, dto, updated_by_role: str | None = None) -> "ProcurementRequestModel":
        return cls(
            id=dto.id,
            version=dto.version,
            updated_by_role=updated_by_role,
            **procurement_columns(dto),
        )

    def __repr__(self) -> str:
        return (
            f"<ProcurementRequestModel(id={self.id!r}, title={self.title!r}, "
            f"status={self.status!r})>"
        )


def procurement_columns(dto) -> dict:
    """Column values for ``dto`` other than id and version."""
    return {
        "title": dto.title,
        "category": dto.category.value,
        "priority": dto.priority.value,
        "estimated_cost": dto.estimated_cost,
        "quantity": dto.quantity,
        "requested_by": dto.requested_by,
        "department": dto.department,
        "request_date": dto.request_date,
        "justification": dto.justification,
        "required_by": dto.required_by,
        "preferred_vendor": dto.preferred_vendor,
        "budget_code": dto.budget_code,
        "status": dto.status.value,
        "approvals": [a.to_dict() for a in dto.approvals],
        "rejection_reason": dto.rejection_reason,
        "completed_on": dto.completed_on,
    }
