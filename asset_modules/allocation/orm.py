"""
Allocation ORM Models (``asset_modules.allocation.orm``).

Responsibility
--------------
SQLAlchemy persistence model for allocation records.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``asset_kernel.db.base``
and sibling ``models.py``.  MUST NOT be imported by ``asset_kernel``.
"""

from datetime import date

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from asset_kernel.db.base import VersionedBase


class AllocationRecordModel(VersionedBase):
    """
    ORM model for ``AllocationRecord``.

    Table: ``allocation_records``
    """

    __tablename__ = "allocation_records"

    asset_id: Mapped[str] = mapped_column(ForeignKey("assets_assets.id"))
    assignee: Mapped[str] = mapped_column(String(200))
    department: Mapped[str] = mapped_column(String(200))
    location: Mapped[str] = mapped_column(String(200))
    allocation_type: Mapped[str] = mapped_column(String(20))
    assign_date: Mapped[date]
    expected_return_date: Mapped[date | None] = mapped_column(nullable=True)
    status: Mapped[str] = mapped_column(String(20))
    returned_on: Mapped[date | None] = mapped_column(nullable=True)
    returned_late: Mapped[bool] = mapped_column(default=False)
    transferred_to: Mapped[str | None] = mapped_column(String(64), nullable=True)
    end_reason: Mapped[str | None] = mapped_column(String(20), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    __table_args__ = (
        Index("idx_allocation_records_asset_status", "asset_id", "status"),
    )

    def to_dto(self):
        from asset_modules.allocation.models import (
            AllocationEndReason,
            AllocationRecord,
            AllocationStatus,
            AllocationType,
        )
        return AllocationRecord(
            id=self.id,
            asset_id=self.asset_id,
            assignee=self.assignee,
            department=self.department,
            location=self.location,
            allocation_type=AllocationType(self.allocation_type),
            assign_date=self.assign_date,
            expected_return_date=self.expected_return_date,
            status=AllocationStatus(self.status),
            returned_on=self.returned_on,
            returned_late=self.returned_late,
            transferred_to=self.transferred_to,
            end_reason=AllocationEndReason(self.end_reason) if self.end_reason else None,
            notes=self.notes,
            version=self.version,
        )

    @classmethod
    def from_dto(cls, dto, updated_by_role: str | None = None) -> "AllocationRecordModel":
        return cls(
            id=dto.id,
            version=dto.version,
            updated_by_role=updated_by_role,
            **allocation_columns(dto),
        )

    def __repr__(self) -> str:
        return (
            f"<AllocationRecordModel(id={self.id!r}, asset_id={self.asset_id!r}, "
            f"status={self.status!r})>"
        )


def allocation_columns(dto) -> dict:
    """Column values for ``dto`` other than id and version."""
    return {
        "asset_id": dto.asset_id,
        "assignee": dto.assignee,
        "department": dto.department,
        "location": dto.location,
        "allocation_type": dto.allocation_type.value,
        "assign_date": dto.assign_date,
        "expected_return_date": dto.expected_return_date,
        "status": dto.status.value,
        "returned_on": dto.returned_on,
        "returned_late": dto.returned_late,
        "transferred_to": dto.transferred_to,
        "end_reason": dto.end_reason.value if dto.end_reason else None,
        "notes": dto.notes,
    }
