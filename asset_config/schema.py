"""
Lifecycle configuration schema.

The human-authored configuration for the asset lifecycle core: valuation
defaults, allocation reminders and the approval policies for the
procurement and disposal workflows.  YAML files are parsed into these
types by the loader; bridges translate them into engine inputs.
"""

from __future__ import annotations

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ValuationSettings:
    """Valuation defaults.

    ``default_method`` applies to assets registered without a depreciation
    method.  ``batch_frequency`` (``daily`` or ``monthly``) picks the
    valuation date of a periodic recompute run when none is given.
    """

    default_method: str = "StraightLine"
    batch_frequency: str = "monthly"


@dataclass(frozen=True)
class AllocationSettings:
    """Days before a Temporary allocation's due date to remind the assignee."""

    due_reminder_days: int = 3


# ---------------------------------------------------------------------------
# Approval policies (declarative data, no executable logic)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ApprovalRuleDef:
    """YAML-authored approval rule.  Amounts stay strings until bridged."""

    rule_name: str
    priority: int
    min_amount: str | None = None
    max_amount: str | None = None
    required_roles: tuple[str, ...] = ()
    min_approvers: int = 1
    require_distinct_roles: bool = False
    guard_expression: str | None = None
    auto_approve_below: str | None = None


@dataclass(frozen=True)
class ApprovalPolicyDef:
    """YAML-authored approval policy for one workflow."""

    policy_name: str
    applies_to_workflow: str
    version: int = 1
    rules: tuple[ApprovalRuleDef, ...] = ()


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LifecycleConfig:
    """A parsed configuration set.

    ``checksum`` is the SHA-256 of the canonical source and identifies the
    configuration a run was governed by.
    """

    config_id: str
    version: int
    valuation: ValuationSettings
    allocation: AllocationSettings
    approval_policies: tuple[ApprovalPolicyDef, ...] = ()
    checksum: str = ""
    source: str | None = None

    def policy_for(self, workflow_name: str) -> ApprovalPolicyDef | None:
        for policy in self.approval_policies:
            if policy.applies_to_workflow == workflow_name:
                return policy
        return None
