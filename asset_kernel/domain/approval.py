"""
Approval domain types (``asset_kernel.domain.approval``).

Responsibility
--------------
Value objects for multi-stage sign-off of procurement and disposal
requests: the configured policy and its rules, the decisions recorded on a
request, and the engine's verdict.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* A rule needs at least one approver, and a bounded amount band is never
  empty (``min_amount < max_amount``).
* Decisions are append-only: requests hold a tuple of
  ``ApprovalDecisionRecord`` that state machines only ever extend.
* ``admin`` may approve under any rule, whatever its ``required_roles``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

ADMIN_ROLE = "admin"


class ApprovalDecision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


@dataclass(frozen=True)
class ApprovalRule:
    """
    One row of an approval policy.

    Matches requests with ``min_amount <= amount < max_amount`` (either bound
    optional) whose context satisfies ``guard_expression``.  Lower
    ``priority`` is tried first.  A request under ``auto_approve_below``
    needs a single authorised approval whatever ``min_approvers`` says.
    """

    rule_name: str
    priority: int
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None
    required_roles: tuple[str, ...] = ()
    min_approvers: int = 1
    require_distinct_roles: bool = False
    guard_expression: str | None = None
    auto_approve_below: Decimal | None = None

    def __post_init__(self) -> None:
        if self.min_approvers < 1:
            raise ValueError(f"Rule {self.rule_name!r}: min_approvers must be at least 1")
        if (
            self.min_amount is not None
            and self.max_amount is not None
            and self.min_amount >= self.max_amount
        ):
            raise ValueError(
                f"Rule {self.rule_name!r}: min_amount {self.min_amount} "
                f"must be below max_amount {self.max_amount}"
            )


@dataclass(frozen=True)
class ApprovalPolicy:
    """The rules for one workflow (``procurement`` or ``disposal``)."""

    policy_name: str
    version: int
    applies_to_workflow: str
    rules: tuple[ApprovalRule, ...] = ()
    policy_hash: str | None = None


@dataclass(frozen=True)
class ApprovalDecisionRecord:
    """A decision as stored on the request (and in its JSON column)."""

    actor_role: str
    decision: ApprovalDecision
    decided_on: date
    comment: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "actor_role": self.actor_role,
            "decision": self.decision.value,
            "decided_on": self.decided_on.isoformat(),
            "comment": self.comment,
        }

    @classmethod
    def from_dict(cls, data: dict[str, str]) -> ApprovalDecisionRecord:
        return cls(
            actor_role=data["actor_role"],
            decision=ApprovalDecision(data["decision"]),
            decided_on=date.fromisoformat(data["decided_on"]),
            comment=data.get("comment", ""),
        )


@dataclass(frozen=True)
class ApprovalEvaluation:
    """
    Engine verdict for a request.

    ``needs_approval`` is False when no rule governs the request;
    ``required_approvers``/``current_approvers`` drive the ``N/M approvals``
    progress reported while a request waits.
    """

    needs_approval: bool
    is_approved: bool = False
    is_rejected: bool = False
    matched_rule: ApprovalRule | None = None
    required_approvers: int = 0
    current_approvers: int = 0
    auto_approved: bool = False
    reason: str = ""
