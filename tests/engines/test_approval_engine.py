"""
Approval rule evaluation (asset_engines.approval).

Covers:
- rule selection: priority order, half-open amount bands, guard expressions
- the requirement a request carries (rule, approver count, fast track)
- decision tallies: rejection wins, distinct-role counting
- actor checks used by the workflow executor

The procurement/disposal policies below mirror the shipped default set so
the thresholds tested here are the ones the orchestrator actually applies.
"""

from datetime import date
from decimal import Decimal

import pytest

from asset_engines.approval import (
    count_approvals,
    evaluate_approval_requirement,
    evaluate_approval_status,
    has_already_approved,
    select_matching_rule,
    validate_actor_authority,
)
from asset_kernel.domain.approval import (
    ApprovalDecision,
    ApprovalDecisionRecord,
    ApprovalPolicy,
    ApprovalRule,
)
from asset_modules.procurement.models import ProcurementPriority

BUYERS = ("department_head", "finance")

URGENT = ApprovalRule(
    "urgent_fast_track", 5, max_amount=Decimal("10000"), required_roles=BUYERS,
    guard_expression="request.priority == Urgent",
)
SMALL = ApprovalRule("small_purchase", 10, max_amount=Decimal("5000"), required_roles=BUYERS)
STANDARD = ApprovalRule(
    "standard_purchase", 20, min_amount=Decimal("5000"), max_amount=Decimal("50000"),
    required_roles=BUYERS,
)
CAPITAL = ApprovalRule(
    "capital_purchase", 30, min_amount=Decimal("50000"), required_roles=BUYERS,
    min_approvers=2, require_distinct_roles=True,
)
PROCUREMENT = ApprovalPolicy(
    "procurement_approval", 1, "procurement", rules=(CAPITAL, STANDARD, SMALL, URGENT),
)

HIGH_VALUE_DISPOSAL = ApprovalRule(
    "high_value_disposal", 20, min_amount=Decimal("10000"),
    required_roles=("finance", "admin"), min_approvers=2, require_distinct_roles=True,
)


def _priority(priority: ProcurementPriority) -> dict:
    return {"request": {"priority": priority}}


def _decided(*pairs: tuple[str, ApprovalDecision]) -> tuple[ApprovalDecisionRecord, ...]:
    return tuple(
        ApprovalDecisionRecord(actor_role=role, decision=decision, decided_on=date(2026, 1, 15))
        for role, decision in pairs
    )


def _approvals(*roles: str) -> tuple[ApprovalDecisionRecord, ...]:
    return _decided(*((role, ApprovalDecision.APPROVE) for role in roles))


class TestRuleSelection:

    @pytest.mark.parametrize(
        ("amount", "expected"),
        [
            (Decimal("0"), SMALL),
            (Decimal("4999.99"), SMALL),
            (Decimal("5000"), STANDARD),
            (Decimal("49999.99"), STANDARD),
            (Decimal("50000"), CAPITAL),
            (Decimal("1000000"), CAPITAL),
        ],
    )
    def test_amount_bands_are_half_open(self, amount, expected):
        context = _priority(ProcurementPriority.MEDIUM)
        assert select_matching_rule(PROCUREMENT.rules, amount, context) is expected

    def test_urgent_guard_takes_precedence(self):
        context = _priority(ProcurementPriority.URGENT)
        assert select_matching_rule(PROCUREMENT.rules, Decimal("7500"), context) is URGENT

    def test_urgent_above_band_falls_through(self):
        context = _priority(ProcurementPriority.URGENT)
        assert select_matching_rule(PROCUREMENT.rules, Decimal("10000"), context) is STANDARD

    def test_guard_on_missing_field_does_not_match(self):
        assert select_matching_rule((URGENT,), Decimal("100"), {"request": {}}) is None

    def test_guard_ignored_without_context(self):
        assert select_matching_rule((URGENT,), Decimal("100")) is URGENT

    def test_numeric_guard(self):
        bulk = ApprovalRule("bulk", 1, guard_expression="request.quantity >= 10")

        assert select_matching_rule((bulk,), None, {"request": {"quantity": 12}}) is bulk
        assert select_matching_rule((bulk,), None, {"request": {"quantity": 3}}) is None

    def test_bare_field_guard_is_truthiness(self):
        flagged = ApprovalRule("flagged", 1, guard_expression="request.capex")

        assert select_matching_rule((flagged,), None, {"request": {"capex": True}}) is flagged
        assert select_matching_rule((flagged,), None, {"request": {"capex": False}}) is None

    def test_unconvertible_literal_does_not_match(self):
        rule = ApprovalRule("bad", 1, guard_expression="request.quantity > many")
        assert select_matching_rule((rule,), None, {"request": {"quantity": 3}}) is None

    def test_no_rules(self):
        assert select_matching_rule((), Decimal("100")) is None


class TestRequirement:

    def test_no_policy_needs_one_approval(self):
        result = evaluate_approval_requirement(None, Decimal("500"))

        assert result.needs_approval is False
        assert result.required_approvers == 1
        assert result.reason == "No policy configured"

    def test_unmatched_amount_needs_one_approval(self):
        policy = ApprovalPolicy("p", 1, "disposal", rules=(HIGH_VALUE_DISPOSAL,))

        result = evaluate_approval_requirement(policy, Decimal("500"))

        assert result.needs_approval is False
        assert result.matched_rule is None

    def test_capital_purchase_needs_two(self):
        result = evaluate_approval_requirement(
            PROCUREMENT, Decimal("75000"), _priority(ProcurementPriority.HIGH),
        )

        assert result.needs_approval is True
        assert result.matched_rule is CAPITAL
        assert result.required_approvers == 2
        assert result.auto_approved is False

    def test_fast_track_overrides_band_and_count(self):
        rule = ApprovalRule(
            "board", 1, min_amount=Decimal("100"), min_approvers=3,
            auto_approve_below=Decimal("500"),
        )
        policy = ApprovalPolicy("p", 1, "procurement", rules=(rule,))

        below = evaluate_approval_requirement(policy, Decimal("50"))
        at = evaluate_approval_requirement(policy, Decimal("500"))

        assert (below.auto_approved, below.required_approvers) == (True, 1)
        assert (at.auto_approved, at.required_approvers) == (False, 3)


class TestStatus:

    def test_distinct_roles_reach_threshold(self):
        result = evaluate_approval_status(CAPITAL, _approvals("department_head", "finance"))

        assert result.is_approved is True
        assert result.current_approvers == 2
        assert result.reason == "Approved"

    def test_repeated_role_counts_once(self):
        result = evaluate_approval_status(CAPITAL, _approvals("finance", "finance"))

        assert result.is_approved is False
        assert result.reason == "1/2 approvals"

    def test_repeated_role_counts_without_diversity(self):
        pair = ApprovalRule("pair", 1, min_approvers=2)
        assert evaluate_approval_status(pair, _approvals("finance", "finance")).is_approved

    @pytest.mark.parametrize(
        "decisions",
        [
            _decided(("finance", ApprovalDecision.REJECT), ("admin", ApprovalDecision.APPROVE)),
            _decided(("admin", ApprovalDecision.APPROVE), ("finance", ApprovalDecision.REJECT)),
        ],
        ids=["reject_first", "reject_last"],
    )
    def test_any_rejection_decides(self, decisions):
        result = evaluate_approval_status(HIGH_VALUE_DISPOSAL, decisions)

        assert result.is_rejected is True
        assert result.is_approved is False
        assert result.reason == "Rejected by finance"

    def test_no_rule_one_approval(self):
        result = evaluate_approval_status(None, _approvals("finance"))
        assert (result.is_approved, result.needs_approval) == (True, False)

    def test_nothing_recorded(self):
        result = evaluate_approval_status(SMALL, ())
        assert (result.is_approved, result.is_rejected, result.current_approvers) == (
            False, False, 0,
        )

    def test_fast_track_amount(self):
        rule = ApprovalRule("r", 1, min_approvers=3, auto_approve_below=Decimal("1000"))

        result = evaluate_approval_status(rule, _approvals("finance"), Decimal("999"))

        assert result.is_approved is True
        assert result.auto_approved is True

    def test_count_ignores_rejections(self):
        decisions = _decided(
            ("finance", ApprovalDecision.APPROVE),
            ("admin", ApprovalDecision.REJECT),
        )
        assert count_approvals(HIGH_VALUE_DISPOSAL, decisions) == 1
        assert count_approvals(None, _approvals("finance", "finance")) == 2


class TestActorChecks:

    @pytest.mark.parametrize(
        ("role", "rule", "allowed"),
        [
            ("finance", HIGH_VALUE_DISPOSAL, True),
            ("admin", HIGH_VALUE_DISPOSAL, True),
            ("admin", SMALL, True),
            ("admin", CAPITAL, True),
            ("department_head", HIGH_VALUE_DISPOSAL, False),
            ("viewer", ApprovalRule("open", 1), True),
            ("viewer", None, True),
        ],
    )
    def test_validate_actor_authority(self, role, rule, allowed):
        assert validate_actor_authority(role, rule) is allowed

    def test_has_already_approved(self):
        decisions = _decided(
            ("finance", ApprovalDecision.APPROVE),
            ("admin", ApprovalDecision.REJECT),
        )
        assert has_already_approved("finance", decisions) is True
        assert has_already_approved("admin", decisions) is False
