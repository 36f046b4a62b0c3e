"""
Tests for the record state machines: allocation, maintenance, disposal,
procurement.

Each machine is exercised directly with a WorkflowExecutor wired to the
default approval policies; the orchestrator is not involved.
"""

from dataclasses import replace
from datetime import date, timedelta
from decimal import Decimal

import pytest

from asset_config.bridges import build_approval_policy_map
from asset_kernel.domain.approval import ApprovalDecision
from asset_kernel.domain.errors import ErrorCode
from asset_modules.allocation.models import (
    AllocationEndReason,
    AllocationRecord,
    AllocationStatus,
    AllocationTransfer,
    AllocationType,
)
from asset_modules.allocation.service import AllocationStateMachine
from asset_modules.disposal.models import (
    DisposalMethod,
    DisposalReason,
    DisposalRequest,
    DisposalStatus,
)
from asset_modules.disposal.service import DisposalStateMachine
from asset_modules.maintenance.models import (
    MaintenancePriority,
    MaintenanceRecord,
    MaintenanceStatus,
    MaintenanceType,
)
from asset_modules.maintenance.service import MaintenanceStateMachine
from asset_modules.procurement.models import ProcurementPriority, ProcurementStatus
from asset_modules.procurement.service import ProcurementStateMachine
from asset_services.workflow_executor import WorkflowExecutor
from tests.conftest import TODAY


@pytest.fixture
def executor(lifecycle_config, clock):
    return WorkflowExecutor(
        approval_policies=build_approval_policy_map(lifecycle_config),
        clock=clock,
    )


# =============================================================================
# Allocation
# =============================================================================


def _allocation(**kwargs) -> AllocationRecord:
    fields = {
        "id": "ALC-0001",
        "asset_id": "AST-0001",
        "assignee": "emp-007",
        "department": "Engineering",
        "location": "HQ",
        "allocation_type": AllocationType.TEMPORARY,
        "assign_date": TODAY,
        "expected_return_date": TODAY + timedelta(days=14),
    }
    fields.update(kwargs)
    return AllocationRecord(**fields)


class TestAllocationStateMachine:

    @pytest.fixture
    def machine(self, executor):
        return AllocationStateMachine(executor)

    def test_create_opens_active_record(self, machine):
        result = machine.create(_allocation(status=AllocationStatus.RETURNED), "asset_manager")

        assert result.success
        assert result.entity.status == AllocationStatus.ACTIVE
        assert result.entity.version == 0

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"expected_return_date": None}, "required for Temporary"),
            ({"expected_return_date": TODAY - timedelta(days=1)}, "must not precede"),
            (
                {"allocation_type": AllocationType.PERMANENT},
                "applies only to Temporary",
            ),
            ({"assignee": ""}, "assignee is required"),
        ],
    )
    def test_create_validation(self, machine, overrides, message):
        result = machine.create(_allocation(**overrides), "asset_manager")

        assert result.error.code == ErrorCode.VALIDATION_ERROR
        assert message in result.error.message

    def test_on_time_check_in(self, machine):
        result = machine.check_in(_allocation(), "asset_manager", TODAY + timedelta(days=14))

        assert result.entity.status == AllocationStatus.RETURNED
        assert result.entity.returned_late is False
        assert result.entity.end_reason == AllocationEndReason.CHECK_IN

    def test_late_check_in_flagged(self, machine):
        result = machine.check_in(_allocation(), "asset_manager", TODAY + timedelta(days=15))
        assert result.entity.returned_late is True

    def test_permanent_cannot_check_in(self, machine):
        record = _allocation(allocation_type=AllocationType.PERMANENT, expected_return_date=None)

        result = machine.check_in(record, "asset_manager", TODAY)

        assert result.error.code == ErrorCode.INVALID_STATE_TRANSITION
        assert result.entity is record

    def test_returned_record_is_immutable(self, machine):
        returned = _allocation(status=AllocationStatus.RETURNED)
        assert machine.check_in(returned, "asset_manager", TODAY).success is False
        assert machine.release(returned, "admin", TODAY).success is False

    def test_transfer_inherits_unset_fields(self, machine):
        record = _allocation()

        result = machine.transfer(
            record, "asset_manager", successor_id="ALC-0002", new_assignee="emp-008",
            transfer_date=TODAY + timedelta(days=3),
        )

        transfer = result.entity
        assert isinstance(transfer, AllocationTransfer)
        assert transfer.closed.status == AllocationStatus.RETURNED
        assert transfer.closed.end_reason == AllocationEndReason.TRANSFER
        assert transfer.closed.transferred_to == "ALC-0002"
        assert transfer.successor.assignee == "emp-008"
        assert transfer.successor.allocation_type == AllocationType.TEMPORARY
        assert transfer.successor.expected_return_date == record.expected_return_date
        assert transfer.successor.assign_date == TODAY + timedelta(days=3)

    def test_transfer_to_permanent_drops_due_date(self, machine):
        result = machine.transfer(
            _allocation(), "asset_manager", successor_id="ALC-0002", new_assignee="emp-008",
            transfer_date=TODAY, allocation_type=AllocationType.PERMANENT,
        )
        assert result.entity.successor.expected_return_date is None

    def test_transfer_with_invalid_successor_fails(self, machine):
        record = _allocation(allocation_type=AllocationType.PERMANENT, expected_return_date=None)

        result = machine.transfer(
            record, "asset_manager", successor_id="ALC-0002", new_assignee="emp-008",
            transfer_date=TODAY, allocation_type=AllocationType.TEMPORARY,
        )

        assert result.error.code == ErrorCode.VALIDATION_ERROR
        assert result.entity is record

    def test_release_on_retirement(self, machine):
        result = machine.release(_allocation(), "disposal_officer", TODAY)

        assert result.entity.status == AllocationStatus.RETURNED
        assert result.entity.end_reason == AllocationEndReason.RETIREMENT
        assert result.entity.returned_on == TODAY


# =============================================================================
# Maintenance
# =============================================================================


def _maintenance(**kwargs) -> MaintenanceRecord:
    fields = {
        "id": "MNT-0001",
        "asset_id": "AST-0001",
        "maintenance_type": MaintenanceType.BREAKDOWN,
        "priority": MaintenancePriority.CRITICAL,
        "scheduled_date": TODAY,
        "vendor": "FixIt Ltd",
        "estimated_cost": Decimal("800.00"),
    }
    fields.update(kwargs)
    return MaintenanceRecord(**fields)


class TestMaintenanceStateMachine:

    @pytest.fixture
    def machine(self, executor):
        return MaintenanceStateMachine(executor)

    def test_schedule(self, machine):
        result = machine.schedule(_maintenance(), "maintenance_manager")
        assert result.entity.status == MaintenanceStatus.SCHEDULED
        assert result.entity.is_open

    def test_schedule_checks_in_order(self, machine):
        assert machine.schedule(_maintenance(), "finance").error.code == ErrorCode.INSUFFICIENT_ROLE
        assert machine.schedule(
            _maintenance(), "admin", asset_retired=True, open_record_id="MNT-0000",
        ).error.code == ErrorCode.ASSET_RETIRED
        assert machine.schedule(
            _maintenance(), "admin", open_record_id="MNT-0000",
        ).error.code == ErrorCode.MAINTENANCE_ALREADY_OPEN

    def test_schedule_validation(self, machine):
        result = machine.schedule(_maintenance(vendor="", estimated_cost=Decimal("-1")), "admin")
        assert len(result.error.details["issues"]) == 2

    def test_full_lifecycle(self, machine):
        started = machine.start(_maintenance(), "maintenance_manager", TODAY).entity
        assert started.status == MaintenanceStatus.IN_PROGRESS
        assert started.started_on == TODAY

        completed = machine.complete(
            started, "maintenance_manager", TODAY + timedelta(days=2), Decimal("950.00"),
        ).entity
        assert completed.status == MaintenanceStatus.COMPLETED
        assert completed.actual_cost == Decimal("950.00")
        assert not completed.is_open

    def test_complete_without_cost_uses_estimate(self, machine):
        started = _maintenance(status=MaintenanceStatus.IN_PROGRESS)
        completed = machine.complete(started, "maintenance_manager", TODAY).entity
        assert completed.actual_cost == Decimal("800.00")

    def test_cannot_cancel_in_progress(self, machine):
        started = _maintenance(status=MaintenanceStatus.IN_PROGRESS)
        result = machine.cancel(started, "maintenance_manager")
        assert result.error.code == ErrorCode.INVALID_STATE_TRANSITION

    def test_cannot_complete_scheduled(self, machine):
        result = machine.complete(_maintenance(), "maintenance_manager", TODAY)
        assert result.error.code == ErrorCode.INVALID_STATE_TRANSITION


# =============================================================================
# Disposal
# =============================================================================


def _disposal(**kwargs) -> DisposalRequest:
    fields = {
        "id": "DSP-0001",
        "asset_id": "AST-0001",
        "reason": DisposalReason.END_OF_LIFE,
        "disposal_method": DisposalMethod.RECYCLE,
        "estimated_value": Decimal("2000.00"),
        "salvage_value": Decimal("200.00"),
        "requested_by": "emp-100",
        "request_date": TODAY,
    }
    fields.update(kwargs)
    return DisposalRequest(**fields)


class TestDisposalStateMachine:

    @pytest.fixture
    def machine(self, executor):
        return DisposalStateMachine(executor)

    def test_initiate_clears_outcome_fields(self, machine):
        result = machine.initiate(_disposal(gain_loss=Decimal("5")), "asset_manager")

        assert result.entity.status == DisposalStatus.PENDING_APPROVAL
        assert result.entity.gain_loss is None

    def test_initiate_requires_capability(self, machine):
        assert machine.initiate(_disposal(), "finance").error.code == ErrorCode.INSUFFICIENT_ROLE

    def test_low_value_single_approval(self, machine):
        result = machine.approve(_disposal(), "finance", TODAY, comment="ok")

        assert result.entity.status == DisposalStatus.APPROVED
        assert result.approval_pending is False
        decision = result.entity.approvals[0]
        assert decision.decision == ApprovalDecision.APPROVE
        assert decision.comment == "ok"

    def test_admin_approves_low_value_outside_rule_roles(self, machine):
        result = machine.approve(_disposal(), "admin", TODAY)

        assert result.entity.status == DisposalStatus.APPROVED
        assert result.entity.approvals[0].actor_role == "admin"

    def test_boundary_amount_uses_high_value_rule(self, machine):
        result = machine.approve(_disposal(estimated_value=Decimal("10000.00")), "finance", TODAY)

        assert result.approval_pending is True
        assert result.entity.status == DisposalStatus.PENDING_APPROVAL

    def test_reject_from_approved(self, machine):
        approved = _disposal(status=DisposalStatus.APPROVED)

        result = machine.reject(approved, "finance", TODAY, "Buyer withdrew")

        assert result.entity.status == DisposalStatus.REJECTED
        assert result.entity.approvals[-1].decision == ApprovalDecision.REJECT

    def test_reject_requires_reason(self, machine):
        result = machine.reject(_disposal(), "finance", TODAY, "   ")
        assert result.error.code == ErrorCode.VALIDATION_ERROR

    def test_complete_computes_gain(self, machine):
        approved = _disposal(status=DisposalStatus.APPROVED)

        result = machine.complete(
            approved, "disposal_officer", TODAY,
            book_value_at_disposal=Decimal("1500.00"), proceeds=Decimal("1750.50"),
        )

        assert result.entity.status == DisposalStatus.COMPLETED
        assert result.entity.gain_loss == Decimal("250.50")

    def test_complete_without_proceeds_has_no_gain_loss(self, machine):
        approved = _disposal(status=DisposalStatus.APPROVED)

        result = machine.complete(
            approved, "disposal_officer", TODAY, book_value_at_disposal=Decimal("1500.00"),
        )

        assert result.entity.book_value_at_disposal == Decimal("1500.00")
        assert result.entity.gain_loss is None

    def test_complete_rejects_negative_proceeds(self, machine):
        approved = _disposal(status=DisposalStatus.APPROVED)
        result = machine.complete(
            approved, "disposal_officer", TODAY,
            book_value_at_disposal=Decimal("1500.00"), proceeds=Decimal("-1"),
        )
        assert result.error.code == ErrorCode.VALIDATION_ERROR

    def test_complete_blocked_by_maintenance(self, machine):
        approved = _disposal(status=DisposalStatus.APPROVED)
        result = machine.complete(
            approved, "disposal_officer", TODAY,
            book_value_at_disposal=Decimal("1500.00"), maintenance_in_progress=True,
        )
        assert result.error.code == ErrorCode.INVALID_STATE_TRANSITION


# =============================================================================
# Procurement
# =============================================================================


class TestProcurementStateMachine:

    @pytest.fixture
    def machine(self, executor):
        return ProcurementStateMachine(executor)

    def test_submit(self, machine, make_procurement):
        result = machine.submit(make_procurement(), "employee")
        assert result.entity.status == ProcurementStatus.PENDING_APPROVAL

    def test_submit_validation(self, machine, make_procurement):
        draft = make_procurement(quantity=0, required_by=TODAY - timedelta(days=1))

        result = machine.submit(draft, "employee")

        issues = result.error.details["issues"]
        assert any("quantity" in i for i in issues)
        assert any("required_by" in i for i in issues)

    def test_viewer_cannot_submit(self, machine, make_procurement):
        assert machine.submit(make_procurement(), "viewer").error.code == ErrorCode.INSUFFICIENT_ROLE

    @pytest.mark.parametrize(
        "cost,priority,pending_after_first",
        [
            (Decimal("4999.99"), ProcurementPriority.LOW, False),
            (Decimal("9000.00"), ProcurementPriority.URGENT, False),
            (Decimal("49999.99"), ProcurementPriority.HIGH, False),
            (Decimal("50000.00"), ProcurementPriority.URGENT, True),
        ],
    )
    def test_threshold_rules(self, machine, make_procurement, cost, priority, pending_after_first):
        request = replace(
            machine.submit(make_procurement(estimated_cost=cost, priority=priority), "employee").entity,
            version=1,
        )

        result = machine.approve(request, "finance", TODAY)

        assert result.success
        assert result.approval_pending is pending_after_first

    def test_fulfilment(self, machine, make_procurement):
        approved = replace(make_procurement(), status=ProcurementStatus.APPROVED)

        in_flight = machine.mark_in_procurement(approved, "procurement_officer").entity
        assert in_flight.status == ProcurementStatus.IN_PROCUREMENT

        done = machine.complete(in_flight, "procurement_officer", date(2026, 2, 1)).entity
        assert done.status == ProcurementStatus.COMPLETED
        assert done.completed_on == date(2026, 2, 1)

    def test_cannot_reject_in_procurement(self, machine, make_procurement):
        in_flight = replace(make_procurement(), status=ProcurementStatus.IN_PROCUREMENT)
        result = machine.reject(in_flight, "finance", TODAY, "Too late")
        assert result.error.code == ErrorCode.INVALID_STATE_TRANSITION
