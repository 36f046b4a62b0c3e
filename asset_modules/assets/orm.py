"""
Asset Register ORM Models (``asset_modules.assets.orm``).

Responsibility
--------------
SQLAlchemy persistence models for the asset register and the valuation
audit trail.  Maps the frozen domain dataclasses from ``models.py`` to
database tables.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``asset_kernel.db.base``
and sibling ``models.py``.  MUST NOT be imported by ``asset_kernel``.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from asset_kernel.db.base import Base, VersionedBase


# ---------------------------------------------------------------------------
# AssetModel
# ---------------------------------------------------------------------------

class AssetModel(VersionedBase):
    """
    ORM model for ``Asset`` -- a registered asset.

    Table: ``assets_assets``
    """

    __tablename__ = "assets_assets"

    name: Mapped[str] = mapped_column(String(200))
    category: Mapped[str] = mapped_column(String(50))
    status: Mapped[str] = mapped_column(String(50))
    purchase_cost: Mapped[Decimal]
    purchase_date: Mapped[date]
    salvage_value: Mapped[Decimal]
    useful_life_months: Mapped[int]
    depreciation_method: Mapped[str] = mapped_column(String(50))
    current_book_value: Mapped[Decimal]
    valuation_date: Mapped[date | None] = mapped_column(nullable=True)
    location: Mapped[str] = mapped_column(String(200))
    department: Mapped[str] = mapped_column(String(200))
    assigned_to: Mapped[str | None] = mapped_column(String(200), nullable=True)
    maintenance_resume_state: Mapped[str | None] = mapped_column(String(50), nullable=True)
    disposal_resume_state: Mapped[str | None] = mapped_column(String(50), nullable=True)
    serial_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    vendor: Mapped[str | None] = mapped_column(String(200), nullable=True)
    warranty_expiry: Mapped[date | None] = mapped_column(nullable=True)

    __table_args__ = (
        Index("idx_assets_assets_status", "status"),
        Index("idx_assets_assets_category", "category"),
    )

    def to_dto(self):
        from asset_engines.valuation import DepreciationMethod
        from asset_modules.assets.models import Asset, AssetCategory, AssetStatus
        return Asset(
            id=self.id,
            name=self.name,
            category=AssetCategory(self.category),
            status=AssetStatus(self.status),
            purchase_cost=self.purchase_cost,
            purchase_date=self.purchase_date,
            salvage_value=self.salvage_value,
            useful_life_months=self.useful_life_months,
            depreciation_method=DepreciationMethod(self.depreciation_method),
            current_book_value=self.current_book_value,
            valuation_date=self.valuation_date,
            location=self.location,
            department=self.department,
            assigned_to=self.assigned_to,
            maintenance_resume_state=(
                AssetStatus(self.maintenance_resume_state)
                if self.maintenance_resume_state else None
            ),
            disposal_resume_state=(
                AssetStatus(self.disposal_resume_state)
                if self.disposal_resume_state else None
            ),
            serial_number=self.serial_number,
            vendor=self.vendor,
            warranty_expiry=self.warranty_expiry,
            version=self.version,
        )

    @classmethod
    def from_dto(cls, dto, updated_by_role: str | None = None) -> "AssetModel":
        return cls(
            id=dto.id,
            version=dto.version,
            updated_by_role=updated_by_role,
            **asset_columns(dto),
        )

    def __repr__(self) -> str:
        return (
            f"<AssetModel(id={self.id!r}, name={self.name!r}, "
            f"status={self.status!r}, version={self.version})>"
        )


def asset_columns(dto) -> dict:
    """Column values for ``dto`` other than id and version."""
    return {
        "name": dto.name,
        "category": dto.category.value,
        "status": dto.status.value,
        "purchase_cost": dto.purchase_cost,
        "purchase_date": dto.purchase_date,
        "salvage_value": dto.salvage_value,
        "useful_life_months": dto.useful_life_months,
        "depreciation_method": dto.depreciation_method.value,
        "current_book_value": dto.current_book_value,
        "valuation_date": dto.valuation_date,
        "location": dto.location,
        "department": dto.department,
        "assigned_to": dto.assigned_to,
        "maintenance_resume_state": (
            dto.maintenance_resume_state.value if dto.maintenance_resume_state else None
        ),
        "disposal_resume_state": (
            dto.disposal_resume_state.value if dto.disposal_resume_state else None
        ),
        "serial_number": dto.serial_number,
        "vendor": dto.vendor,
        "warranty_expiry": dto.warranty_expiry,
    }


# ---------------------------------------------------------------------------
# ValuationAuditEntryModel
# ---------------------------------------------------------------------------

class ValuationAuditEntryModel(Base):
    """
    ORM model for ``ValuationAuditEntry`` -- one recomputation of an asset's
    cached book value.  Rows are inserted, never updated.

    Table: ``assets_valuation_audit``
    """

    __tablename__ = "assets_valuation_audit"

    asset_id: Mapped[str] = mapped_column(ForeignKey("assets_assets.id"))
    prior_book_value: Mapped[Decimal | None] = mapped_column(nullable=True)
    new_book_value: Mapped[Decimal]
    prior_valuation_date: Mapped[date | None] = mapped_column(nullable=True)
    valuation_date: Mapped[date]
    trigger: Mapped[str] = mapped_column(String(50))
    recorded_at: Mapped[datetime]
    actor_role: Mapped[str] = mapped_column(String(50))

    __table_args__ = (
        Index("idx_assets_valuation_audit_asset", "asset_id", "valuation_date"),
    )

    def to_dto(self):
        from asset_modules.assets.models import ValuationAuditEntry, ValuationTrigger
        return ValuationAuditEntry(
            id=self.id,
            asset_id=self.asset_id,
            prior_book_value=self.prior_book_value,
            new_book_value=self.new_book_value,
            prior_valuation_date=self.prior_valuation_date,
            valuation_date=self.valuation_date,
            trigger=ValuationTrigger(self.trigger),
            recorded_at=self.recorded_at,
            actor_role=self.actor_role,
        )

    @classmethod
    def from_dto(cls, dto) -> "ValuationAuditEntryModel":
        return cls(
            id=dto.id,
            asset_id=dto.asset_id,
            prior_book_value=dto.prior_book_value,
            new_book_value=dto.new_book_value,
            prior_valuation_date=dto.prior_valuation_date,
            valuation_date=dto.valuation_date,
            trigger=dto.trigger.value,
            recorded_at=dto.recorded_at,
            actor_role=dto.actor_role,
        )

    def __repr__(self) -> str:
        return (
            f"<ValuationAuditEntryModel(id={self.id!r}, asset_id={self.asset_id!r}, "
            f"new_book_value={self.new_book_value})>"
        )
