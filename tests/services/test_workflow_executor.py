"""
Tests for WorkflowExecutor (asset_services.workflow_executor).

Covers:
- execute_transition() ordering: capability, precheck, lookup, guard,
  resume state, approval gate
- Approval gate with no policy, a single-approver rule, a distinct-role
  rule and repeat approvals by the same role
- GuardExecutor evaluators for the built-in guards
- One workflow_transition trace per call, delivered to outcome_sink
"""

from datetime import date
from decimal import Decimal

import pytest

from asset_kernel.domain.approval import (
    ApprovalDecision,
    ApprovalDecisionRecord,
    ApprovalPolicy,
    ApprovalRule,
)
from asset_kernel.domain.clock import DeterministicClock
from asset_kernel.domain.errors import ErrorCode, LifecycleError
from asset_kernel.domain.workflow import Guard
from asset_modules.allocation.workflows import ALLOCATION_WORKFLOW
from asset_modules.assets.workflows import ASSET_WORKFLOW
from asset_modules.disposal.workflows import DISPOSAL_WORKFLOW
from asset_modules.maintenance.workflows import MAINTENANCE_WORKFLOW
from asset_services.workflow_executor import (
    OUTCOME_APPROVAL_PENDING,
    OUTCOME_APPROVER_REJECTED,
    OUTCOME_DENIED,
    OUTCOME_GUARD_FAILED,
    OUTCOME_NO_TRANSITION,
    OUTCOME_PRECHECK_FAILED,
    OUTCOME_SUCCESS,
    GuardExecutor,
    WorkflowExecutor,
    default_guard_executor,
)

DECIDED_ON = date(2026, 1, 15)


def _decision(role: str) -> ApprovalDecisionRecord:
    return ApprovalDecisionRecord(
        actor_role=role, decision=ApprovalDecision.APPROVE, decided_on=DECIDED_ON,
    )


def _disposal_policy() -> ApprovalPolicy:
    return ApprovalPolicy(
        policy_name="disposal_approval",
        version=1,
        applies_to_workflow="disposal",
        rules=(
            ApprovalRule(
                rule_name="low_value",
                priority=10,
                max_amount=Decimal("10000"),
                required_roles=("finance",),
            ),
            ApprovalRule(
                rule_name="high_value",
                priority=20,
                min_amount=Decimal("10000"),
                required_roles=("finance", "admin"),
                min_approvers=2,
                require_distinct_roles=True,
            ),
        ),
    )


@pytest.fixture
def traces():
    return []


@pytest.fixture
def executor():
    return WorkflowExecutor(
        approval_policies={"disposal": _disposal_policy()},
        clock=DeterministicClock(DECIDED_ON),
    )


def _approve_disposal(executor, role, amount, approvals=(), sink=None):
    return executor.execute_transition(
        workflow=DISPOSAL_WORKFLOW,
        entity_type="disposal",
        entity_id="DSP-0001",
        current_state="PendingApproval",
        action="approve",
        actor_role=role,
        amount=amount,
        approvals=approvals,
        decision=_decision(role),
        outcome_sink=sink,
    )


# =============================================================================
# Ordering
# =============================================================================


class TestTransitionOrdering:

    def test_allowed_transition(self, executor, traces):
        result = executor.execute_transition(
            ASSET_WORKFLOW, "asset", "AST-1", "Active", "allocate", "asset_manager",
            outcome_sink=traces.append,
        )

        assert result.success
        assert result.new_state == "Allocated"
        assert traces[0]["outcome"] == OUTCOME_SUCCESS
        assert traces[0]["to_state"] == "Allocated"

    def test_capability_checked_before_state(self, executor, traces):
        """A denied role is refused even for an action the state would reject."""
        result = executor.execute_transition(
            ASSET_WORKFLOW, "asset", "AST-1", "Retired", "allocate", "viewer",
            precheck=lambda: LifecycleError.asset_retired("AST-1", "allocate"),
            outcome_sink=traces.append,
        )

        assert result.error.code == ErrorCode.INSUFFICIENT_ROLE
        assert traces[0]["outcome"] == OUTCOME_DENIED

    def test_precheck_runs_before_lookup(self, executor, traces):
        result = executor.execute_transition(
            ASSET_WORKFLOW, "asset", "AST-1", "Retired", "allocate", "admin",
            precheck=lambda: LifecycleError.asset_retired("AST-1", "allocate"),
            outcome_sink=traces.append,
        )

        assert result.error.code == ErrorCode.ASSET_RETIRED
        assert traces[0]["outcome"] == OUTCOME_PRECHECK_FAILED

    def test_missing_transition_is_invalid_state_transition(self, executor, traces):
        result = executor.execute_transition(
            ASSET_WORKFLOW, "asset", "AST-1", "Active", "check_in", "admin",
            outcome_sink=traces.append,
        )

        assert result.error.code == ErrorCode.INVALID_STATE_TRANSITION
        assert result.new_state is None
        assert traces[0]["outcome"] == OUTCOME_NO_TRANSITION

    def test_unmapped_action_raises(self, executor):
        with pytest.raises(ValueError, match="No operation guards"):
            executor.execute_transition(
                ASSET_WORKFLOW, "asset", "AST-1", "Active", "teleport", "admin",
            )

    def test_resume_state_restored(self, executor):
        result = executor.execute_transition(
            ASSET_WORKFLOW, "asset", "AST-1", "UnderMaintenance", "complete_maintenance",
            "maintenance_manager", resume_state="Allocated",
        )
        assert result.new_state == "Allocated"

    def test_missing_resume_state_fails(self, executor):
        result = executor.execute_transition(
            ASSET_WORKFLOW, "asset", "AST-1", "PendingDisposal", "reject_disposal", "finance",
        )
        assert result.error.code == ErrorCode.INVALID_STATE_TRANSITION
        assert "no resume state" in result.error.message


# =============================================================================
# Guards
# =============================================================================


class TestGuards:

    def test_permanent_allocation_cannot_be_checked_in(self, executor, traces):
        result = executor.execute_transition(
            ALLOCATION_WORKFLOW, "allocation", "ALC-1", "Active", "check_in", "asset_manager",
            context={"allocation_type": "Permanent"},
            outcome_sink=traces.append,
        )

        assert result.error.code == ErrorCode.INVALID_STATE_TRANSITION
        assert traces[0]["outcome"] == OUTCOME_GUARD_FAILED

    def test_temporary_allocation_checked_in(self, executor):
        result = executor.execute_transition(
            ALLOCATION_WORKFLOW, "allocation", "ALC-1", "Active", "check_in", "asset_manager",
            context={"allocation_type": "Temporary"},
        )
        assert result.new_state == "Returned"

    def test_maintenance_complete_rejects_negative_cost(self, executor):
        result = executor.execute_transition(
            MAINTENANCE_WORKFLOW, "maintenance", "MNT-1", "InProgress", "complete",
            "maintenance_manager", context={"actual_cost": Decimal("-1")},
        )
        assert result.success is False

    def test_guard_without_evaluator_fails_closed(self):
        ex = GuardExecutor()
        assert ex.evaluate(Guard("unregistered", "nothing evaluates this"), {}) is False

    @pytest.mark.parametrize(
        "guard_name,context,expected",
        [
            ("temporary_allocation", {"allocation_type": "Temporary"}, True),
            ("temporary_allocation", {"allocation_type": "Permanent"}, False),
            ("assignee_changes", {"assignee": "emp-1", "new_assignee": "emp-2"}, True),
            ("assignee_changes", {"assignee": "emp-1", "new_assignee": " emp-1 "}, False),
            ("assignee_changes", {"assignee": "emp-1", "new_assignee": ""}, False),
            ("no_maintenance_in_progress", {"maintenance_in_progress": False}, True),
            ("no_maintenance_in_progress", {"maintenance_in_progress": True}, False),
            ("actual_cost_recorded", {"actual_cost": None}, True),
            ("actual_cost_recorded", {"actual_cost": Decimal("0")}, True),
            ("actual_cost_recorded", {"actual_cost": Decimal("-0.01")}, False),
        ],
    )
    def test_builtin_evaluators(self, guard_name, context, expected):
        guard = Guard(guard_name, "test")
        assert default_guard_executor().evaluate(guard, context) is expected


# =============================================================================
# Approval gate
# =============================================================================


class TestApprovalGate:

    def test_single_approver_rule_moves_state(self, executor):
        result = _approve_disposal(executor, "finance", Decimal("2000"))

        assert result.success
        assert result.approval_pending is False
        assert result.new_state == "Approved"

    def test_distinct_role_rule_pends_until_second_role(self, executor, traces):
        first = _approve_disposal(executor, "finance", Decimal("25000"), sink=traces.append)

        assert first.success
        assert first.approval_pending is True
        assert first.new_state == "PendingApproval"
        assert traces[0]["outcome"] == OUTCOME_APPROVAL_PENDING

        second = _approve_disposal(
            executor, "admin", Decimal("25000"), approvals=(_decision("finance"),),
        )
        assert second.new_state == "Approved"
        assert second.approval_pending is False

    def test_same_role_cannot_approve_twice(self, executor, traces):
        result = _approve_disposal(
            executor, "finance", Decimal("25000"),
            approvals=(_decision("finance"),), sink=traces.append,
        )

        assert result.error.code == ErrorCode.VALIDATION_ERROR
        assert traces[0]["outcome"] == OUTCOME_APPROVER_REJECTED

    def test_role_outside_rule_is_refused(self):
        policy = ApprovalPolicy(
            policy_name="admin_only",
            version=1,
            applies_to_workflow="disposal",
            rules=(ApprovalRule("all", priority=1, required_roles=("admin",)),),
        )
        executor = WorkflowExecutor(approval_policies={"disposal": policy})

        result = _approve_disposal(executor, "finance", Decimal("100"))

        assert result.error.code == ErrorCode.INSUFFICIENT_ROLE
        assert result.error.details["rule"] == "all"

    def test_admin_approves_outside_rule_roles(self):
        policy = ApprovalPolicy(
            policy_name="finance_only",
            version=1,
            applies_to_workflow="disposal",
            rules=(ApprovalRule("all", priority=1, required_roles=("finance",)),),
        )
        executor = WorkflowExecutor(approval_policies={"disposal": policy})

        result = _approve_disposal(executor, "admin", Decimal("100"))

        assert result.success
        assert result.new_state == "Approved"

    def test_no_policy_one_approval_suffices(self):
        result = _approve_disposal(WorkflowExecutor(), "finance", Decimal("999999"))
        assert result.new_state == "Approved"

    def test_approval_without_decision_raises(self, executor):
        with pytest.raises(ValueError, match="requires a decision"):
            executor.execute_transition(
                DISPOSAL_WORKFLOW, "disposal", "DSP-1", "PendingApproval", "approve", "finance",
            )


# =============================================================================
# Trace records
# =============================================================================


class TestWorkflowTrace:

    def test_trace_fields(self, executor, traces):
        executor.execute_transition(
            ASSET_WORKFLOW, "asset", "AST-9", "Active", "allocate", "admin",
            outcome_sink=traces.append,
        )
        trace = traces[0]

        assert trace["message"] == "workflow_transition"
        assert trace["trace_type"] == "WORKFLOW_TRANSITION"
        assert trace["workflow"] == "asset"
        assert trace["entity_id"] == "AST-9"
        assert trace["from_state"] == "Active"
        assert trace["actor_role"] == "admin"
        assert trace["ts"].startswith("2026-01-15")

    def test_trace_logged(self, executor, captured_logs):
        executor.execute_transition(
            ASSET_WORKFLOW, "asset", "AST-9", "Active", "allocate", "viewer",
        )
        records = [r for r in captured_logs() if r["message"] == "workflow_transition"]

        assert len(records) == 1
        assert records[0]["outcome"] == OUTCOME_DENIED
