"""
ORM model tests: every DTO survives a write and read through its model.

Uses the sql_session fixture (SQLite in-memory unless DATABASE_URL is set).
"""

from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from asset_kernel.domain.approval import ApprovalDecision, ApprovalDecisionRecord
from asset_modules.allocation.models import AllocationRecord, AllocationStatus, AllocationType
from asset_modules.allocation.orm import AllocationRecordModel
from asset_modules.assets.models import AssetStatus, ValuationAuditEntry, ValuationTrigger
from asset_modules.assets.orm import AssetModel, ValuationAuditEntryModel
from asset_modules.disposal.models import (
    DisposalMethod,
    DisposalReason,
    DisposalRequest,
    DisposalStatus,
)
from asset_modules.disposal.orm import DisposalRequestModel
from asset_modules.maintenance.models import (
    MaintenancePriority,
    MaintenanceRecord,
    MaintenanceStatus,
    MaintenanceType,
)
from asset_modules.maintenance.orm import MaintenanceRecordModel
from asset_modules.procurement.models import ProcurementStatus
from asset_modules.procurement.orm import ProcurementRequestModel
from tests.conftest import TODAY


def _reload(session, model, dto):
    session.add(model.from_dto(dto))
    session.flush()
    session.expunge_all()
    return session.get(model, dto.id).to_dto()


@pytest.fixture
def stored_asset(sql_session, make_asset):
    asset = replace(
        make_asset(),
        status=AssetStatus.UNDER_MAINTENANCE,
        assigned_to="emp-007",
        maintenance_resume_state=AssetStatus.ALLOCATED,
        current_book_value=Decimal("51666.67"),
        valuation_date=TODAY,
        serial_number="SN-1",
        warranty_expiry=date(2027, 1, 15),
        version=4,
    )
    sql_session.add(AssetModel.from_dto(asset))
    sql_session.flush()
    return asset


class TestAssetModels:

    def test_asset_round_trip(self, sql_session, stored_asset):
        sql_session.expunge_all()
        loaded = sql_session.get(AssetModel, stored_asset.id).to_dto()

        assert loaded == stored_asset
        assert loaded.maintenance_resume_state == AssetStatus.ALLOCATED
        assert loaded.disposal_resume_state is None

    def test_valuation_entry_round_trip(self, sql_session, stored_asset):
        entry = ValuationAuditEntry(
            id="VAL-0001",
            asset_id=stored_asset.id,
            prior_book_value=None,
            new_book_value=Decimal("51666.67"),
            prior_valuation_date=None,
            valuation_date=TODAY,
            trigger=ValuationTrigger.REGISTRATION,
            recorded_at=datetime(2026, 1, 15, 9, 30, tzinfo=timezone.utc),
            actor_role="admin",
        )

        loaded = _reload(sql_session, ValuationAuditEntryModel, entry)

        assert loaded.trigger == ValuationTrigger.REGISTRATION
        assert loaded.new_book_value == Decimal("51666.67")
        assert loaded.prior_book_value is None
        assert loaded.recorded_at.replace(tzinfo=None) == datetime(2026, 1, 15, 9, 30)


class TestRecordModels:

    def test_allocation_round_trip(self, sql_session, stored_asset):
        record = AllocationRecord(
            id="ALC-0001",
            asset_id=stored_asset.id,
            assignee="emp-007",
            department="Engineering",
            location="HQ",
            allocation_type=AllocationType.TEMPORARY,
            assign_date=TODAY,
            expected_return_date=date(2026, 2, 1),
            status=AllocationStatus.RETURNED,
            returned_on=date(2026, 2, 3),
            returned_late=True,
            version=2,
        )
        assert _reload(sql_session, AllocationRecordModel, record) == record

    def test_maintenance_round_trip(self, sql_session, stored_asset):
        record = MaintenanceRecord(
            id="MNT-0001",
            asset_id=stored_asset.id,
            maintenance_type=MaintenanceType.PREVENTIVE,
            priority=MaintenancePriority.LOW,
            scheduled_date=TODAY,
            vendor="Acme",
            estimated_cost=Decimal("120.00"),
            status=MaintenanceStatus.IN_PROGRESS,
            started_on=TODAY,
            version=2,
        )
        assert _reload(sql_session, MaintenanceRecordModel, record) == record

    def test_disposal_round_trip_keeps_approvals(self, sql_session, stored_asset):
        request = DisposalRequest(
            id="DSP-0001",
            asset_id=stored_asset.id,
            reason=DisposalReason.HIGH_MAINTENANCE_COST,
            disposal_method=DisposalMethod.DONATION,
            estimated_value=Decimal("12000.00"),
            salvage_value=Decimal("0.00"),
            requested_by="emp-100",
            request_date=TODAY,
            status=DisposalStatus.PENDING_APPROVAL,
            approvals=(
                ApprovalDecisionRecord(
                    actor_role="finance",
                    decision=ApprovalDecision.APPROVE,
                    decided_on=TODAY,
                    comment="fine",
                ),
            ),
            version=2,
        )

        loaded = _reload(sql_session, DisposalRequestModel, request)

        assert loaded == request
        assert loaded.approvals[0].decision == ApprovalDecision.APPROVE

    def test_procurement_round_trip(self, sql_session, make_procurement):
        request = replace(
            make_procurement(quantity=3, budget_code="CAPEX-26"),
            status=ProcurementStatus.COMPLETED,
            completed_on=date(2026, 2, 1),
            version=5,
        )
        assert _reload(sql_session, ProcurementRequestModel, request) == request
