"""
asset_engines.approval -- Pure approval rule evaluation engine.

Responsibility:
    Decide which approval rule governs a procurement or disposal request,
    who may approve under it, and whether the recorded decisions already
    satisfy it.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import asset_kernel/domain/ types.

Invariants enforced:
    - Rules are tried in ascending ``priority``; the first match governs.
    - Amount bands are half-open: ``min_amount <= amount < max_amount``.
      An amount under the rule's ``auto_approve_below`` matches regardless
      of its band.
    - With ``require_distinct_roles``, only distinct approving roles count
      toward ``min_approvers``.
    - Any recorded rejection decides the request, whatever came before it.
    - ``admin`` is an approver under every rule.

Failure modes:
    - No policy, or no rule matching the amount: the request needs one
      authorised approval (``needs_approval=False``).
    - A guard expression that cannot be resolved against the context does
      not match.
"""

from __future__ import annotations

import operator
import re
from collections.abc import Callable, Iterable
from decimal import Decimal
from typing import Any

from asset_kernel.domain.approval import (
    ADMIN_ROLE,
    ApprovalDecision,
    ApprovalDecisionRecord,
    ApprovalEvaluation,
    ApprovalPolicy,
    ApprovalRule,
)

# Longest operators first so "<=" is not read as "<".
_COMPARATORS: dict[str, Callable[[Any, Any], bool]] = {
    "<=": operator.le,
    ">=": operator.ge,
    "!=": operator.ne,
    "==": operator.eq,
    "<": operator.lt,
    ">": operator.gt,
}
_GUARD = re.compile(
    r"^\s*(?P<field>[A-Za-z_][\w.]*)\s*(?P<op><=|>=|!=|==|<|>)\s*(?P<value>.+?)\s*$"
)


def evaluate_approval_requirement(
    policy: ApprovalPolicy | None,
    amount: Decimal | None,
    context: dict[str, Any] | None = None,
) -> ApprovalEvaluation:
    """
    Which rule governs a request of ``amount``, and how many approvals it needs.

    ``context`` feeds rule guard expressions, e.g.
    ``{"request": {"priority": ProcurementPriority.URGENT}}``.
    """
    rule = select_matching_rule(policy.rules, amount, context) if policy else None
    if rule is None:
        why = "No policy configured" if policy is None else "No matching rule for amount/context"
        return ApprovalEvaluation(needs_approval=False, required_approvers=1, reason=why)

    fast_track = _fast_tracked(rule, amount)
    return ApprovalEvaluation(
        needs_approval=True,
        matched_rule=rule,
        auto_approved=fast_track,
        required_approvers=1 if fast_track else rule.min_approvers,
        reason=(
            f"Fast-track: {amount} below threshold {rule.auto_approve_below}"
            if fast_track
            else f"Approval required by rule '{rule.rule_name}'"
        ),
    )


def evaluate_approval_status(
    rule: ApprovalRule | None,
    decisions: tuple[ApprovalDecisionRecord, ...],
    amount: Decimal | None = None,
) -> ApprovalEvaluation:
    """Whether ``decisions`` satisfy ``rule`` (one approval when there is no rule)."""
    required = 1
    if rule is not None and not _fast_tracked(rule, amount):
        required = rule.min_approvers

    rejection = next(
        (d for d in decisions if d.decision == ApprovalDecision.REJECT), None
    )
    if rejection is not None:
        return ApprovalEvaluation(
            needs_approval=rule is not None,
            is_rejected=True,
            matched_rule=rule,
            required_approvers=required,
            reason=f"Rejected by {rejection.actor_role}",
        )

    counted = count_approvals(rule, decisions)
    approved = counted >= required
    return ApprovalEvaluation(
        needs_approval=rule is not None,
        is_approved=approved,
        matched_rule=rule,
        required_approvers=required,
        current_approvers=counted,
        auto_approved=rule is not None and _fast_tracked(rule, amount),
        reason="Approved" if approved else f"{counted}/{required} approvals",
    )


def count_approvals(
    rule: ApprovalRule | None,
    decisions: Iterable[ApprovalDecisionRecord],
) -> int:
    """Approvals that count toward ``rule.min_approvers``."""
    roles = [d.actor_role for d in decisions if d.decision == ApprovalDecision.APPROVE]
    if rule is not None and rule.require_distinct_roles:
        return len(set(roles))
    return len(roles)


def select_matching_rule(
    rules: tuple[ApprovalRule, ...],
    amount: Decimal | None,
    context: dict[str, Any] | None = None,
) -> ApprovalRule | None:
    """First rule, by ascending priority, matching ``amount`` and ``context``."""
    return next(
        (
            rule
            for rule in sorted(rules, key=lambda r: r.priority)
            if _in_band(rule, amount) and _guard_holds(rule, context)
        ),
        None,
    )


def validate_actor_authority(actor_role: str, rule: ApprovalRule | None) -> bool:
    """
    True if ``actor_role`` may approve under ``rule``.

    Anyone may approve without a rule or without required roles; admin
    may approve under every rule.
    """
    if actor_role == ADMIN_ROLE:
        return True
    return rule is None or not rule.required_roles or actor_role in rule.required_roles


def has_already_approved(
    actor_role: str,
    decisions: tuple[ApprovalDecisionRecord, ...],
) -> bool:
    return any(
        d.actor_role == actor_role and d.decision == ApprovalDecision.APPROVE
        for d in decisions
    )


def _fast_tracked(rule: ApprovalRule, amount: Decimal | None) -> bool:
    threshold = rule.auto_approve_below
    return threshold is not None and amount is not None and amount < threshold


def _in_band(rule: ApprovalRule, amount: Decimal | None) -> bool:
    if amount is None or _fast_tracked(rule, amount):
        return True
    above_min = rule.min_amount is None or amount >= rule.min_amount
    below_max = rule.max_amount is None or amount < rule.max_amount
    return above_min and below_max


def _guard_holds(rule: ApprovalRule, context: dict[str, Any] | None) -> bool:
    """
    Evaluate ``field.path OP literal`` (or a bare truthy ``field.path``).

    The literal is converted with the type of the resolved field, so
    ``request.priority == Urgent`` compares enum members and
    ``request.quantity >= 10`` compares integers.
    """
    if rule.guard_expression is None or context is None:
        return True

    match = _GUARD.match(rule.guard_expression)
    if match is None:
        return bool(_resolve(rule.guard_expression.strip(), context))

    actual = _resolve(match["field"], context)
    if actual is None:
        return False
    try:
        expected = type(actual)(match["value"])
    except (ValueError, TypeError, ArithmeticError):
        return False
    return _COMPARATORS[match["op"]](actual, expected)


def _resolve(path: str, context: dict[str, Any]) -> Any:
    current: Any = context
    for part in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
    return current
