"""
Maintenance ORM Models (``asset_modules.maintenance.orm``).

Responsibility
--------------
SQLAlchemy persistence model for maintenance work orders.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``asset_kernel.db.base``
and sibling ``models.py``.  MUST NOT be imported by ``asset_kernel``.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from asset_kernel.db.base import VersionedBase


class MaintenanceRecordModel(VersionedBase):
    """
    ORM model for ``MaintenanceRecord``.

    Table: ``maintenance_records``
    """

    __tablename__ = "maintenance_records"

    asset_id: Mapped[str] = mapped_column(ForeignKey("assets_assets.id"))
    maintenance_type: Mapped[str] = mapped_column(String(20))
    priority: Mapped[str] = mapped_column(String(20))
    scheduled_date: Mapped[date]
    vendor: Mapped[str] = mapped_column(String(200))
    estimated_cost: Mapped[Decimal]
    description: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    status: Mapped[str] = mapped_column(String(20))
    started_on: Mapped[date | None] = mapped_column(nullable=True)
    completed_on: Mapped[date | None] = mapped_column(nullable=True)
    actual_cost: Mapped[Decimal | None] = mapped_column(nullable=True)

    __table_args__ = (
        Index("idx_maintenance_records_asset_status", "asset_id", "status"),
    )

    def to_dto(self):
        from asset_modules.maintenance.models import (
            MaintenancePriority,
            MaintenanceRecord,
            MaintenanceStatus,
            MaintenanceType,
        )
        return MaintenanceRecord(
            id=self.id,
            asset_id=self.asset_id,
            maintenance_type=MaintenanceType(self.maintenance_type),
            priority=MaintenancePriority(self.priority),
            scheduled_date=self.scheduled_date,
            vendor=self.vendor,
            estimated_cost=self.estimated_cost,
            description=self.description,
            status=MaintenanceStatus(self.status),
            started_on=self.started_on,
            completed_on=self.completed_on,
            actual_cost=self.actual_cost,
            version=self.version,
        )

    @classmethod
    def from_dto(cls, dto, updated_by_role: str | None = None) -> "MaintenanceRecordModel":
        return cls(
            id=dto.id,
            version=dto.version,
            updated_by_role=updated_by_role,
            **maintenance_columns(dto),
        )

    def __repr__(self) -> str:
        return (
            f"<MaintenanceRecordModel(id={self.id!r}, asset_id={self.asset_id!r}, "
            f"status={self.status!r})>"
        )


def maintenance_columns(dto) -> dict:
    """Column values for ``dto`` other than id and version."""
    return {
        "asset_id": dto.asset_id,
        "maintenance_type": dto.maintenance_type.value,
        "priority": dto.priority.value,
        "scheduled_date": dto.scheduled_date,
        "vendor": dto.vendor,
        "estimated_cost": dto.estimated_cost,
        "description": dto.description,
        "status": dto.status.value,
        "started_on": dto.started_on,
        "completed_on": dto.completed_on,
        "actual_cost": dto.actual_cost,
    }
