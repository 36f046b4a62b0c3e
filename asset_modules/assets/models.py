"""
Asset Register Domain Models.

The nouns of the asset register: assets, their status and category, and the
append-only valuation audit trail.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from asset_engines.valuation import DepreciationMethod, ValuationBasis
from asset_kernel.logging_config import get_logger

logger = get_logger("modules.assets.models")


class AssetStatus(str, Enum):
    """Asset lifecycle states."""
    ACTIVE = "Active"
    ALLOCATED = "Allocated"
    UNDER_MAINTENANCE = "UnderMaintenance"
    PENDING_DISPOSAL = "PendingDisposal"
    RETIRED = "Retired"  # terminal


class AssetCategory(str, Enum):
    """Register categories."""
    IT_EQUIPMENT = "IT Equipment"
    FURNITURE = "Furniture"
    TRANSPORT = "Transport"
    INFRASTRUCTURE = "Infrastructure"
    REAL_ESTATE = "Real Estate"


class ValuationTrigger(str, Enum):
    """Why a book value was recomputed."""
    REGISTRATION = "registration"
    BASIS_CHANGE = "basis_change"
    PERIODIC = "periodic"
    RETIREMENT = "retirement"


FINANCIAL_FIELDS = (
    "purchase_cost",
    "salvage_value",
    "useful_life_months",
    "depreciation_method",
    "purchase_date",
)


@dataclass(frozen=True)
class Asset:
    """
    A registered asset.

    ``status`` is the single authoritative lifecycle state.  Resume states
    are set only while the asset is on the corresponding excursion.
    ``version`` is 0 until first saved.
    """
    id: str
    name: str
    category: AssetCategory
    purchase_cost: Decimal
    purchase_date: date
    salvage_value: Decimal
    useful_life_months: int
    depreciation_method: DepreciationMethod
    location: str
    department: str
    current_book_value: Decimal = Decimal("0")
    valuation_date: date | None = None
    status: AssetStatus = AssetStatus.ACTIVE
    assigned_to: str | None = None
    maintenance_resume_state: AssetStatus | None = None
    disposal_resume_state: AssetStatus | None = None
    serial_number: str | None = None
    vendor: str | None = None
    warranty_expiry: date | None = None
    version: int = 0

    @property
    def basis(self) -> ValuationBasis:
        return ValuationBasis(
            purchase_cost=self.purchase_cost,
            salvage_value=self.salvage_value,
            useful_life_months=self.useful_life_months,
            depreciation_method=self.depreciation_method,
            purchase_date=self.purchase_date,
        )

    @property
    def is_retired(self) -> bool:
        return self.status == AssetStatus.RETIRED


@dataclass(frozen=True)
class ValuationAuditEntry:
    """One recomputation of an asset's cached book value. Append-only."""
    id: str
    asset_id: str
    prior_book_value: Decimal | None
    new_book_value: Decimal
    prior_valuation_date: date | None
    valuation_date: date
    trigger: ValuationTrigger
    recorded_at: datetime
    actor_role: str
