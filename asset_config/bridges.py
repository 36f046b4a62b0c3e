"""
Config -> Engine Bridges.

Functions that convert ``LifecycleConfig`` definitions into the inputs the
approval engine and workflow executor expect.  They live in
``asset_config`` (the producer) because the kernel and engines must never
import configuration.

Usage:
    from asset_config.bridges import build_approval_policy_map

    config = get_active_config()
    executor = WorkflowExecutor(approval_policies=build_approval_policy_map(config))
"""

from __future__ import annotations

from decimal import Decimal

from asset_config.schema import ApprovalPolicyDef, LifecycleConfig
from asset_kernel.domain.approval import ApprovalPolicy, ApprovalRule
from asset_kernel.utils.serialization import hash_payload


def approval_policy_from_def(policy_def: ApprovalPolicyDef) -> ApprovalPolicy:
    """Convert one policy definition to the engine's ``ApprovalPolicy``."""
    rules = tuple(
        ApprovalRule(
            rule_name=r.rule_name,
            priority=r.priority,
            min_amount=Decimal(r.min_amount) if r.min_amount else None,
            max_amount=Decimal(r.max_amount) if r.max_amount else None,
            required_roles=r.required_roles,
            min_approvers=r.min_approvers,
            require_distinct_roles=r.require_distinct_roles,
            guard_expression=r.guard_expression,
            auto_approve_below=Decimal(r.auto_approve_below) if r.auto_approve_below else None,
        )
        for r in policy_def.rules
    )
    return ApprovalPolicy(
        policy_name=policy_def.policy_name,
        version=policy_def.version,
        applies_to_workflow=policy_def.applies_to_workflow,
        rules=rules,
        policy_hash=hash_payload(policy_def),
    )


def build_approval_policy_map(config: LifecycleConfig) -> dict[str, ApprovalPolicy]:
    """Approval policies keyed by workflow name."""
    return {
        p.applies_to_workflow: approval_policy_from_def(p)
        for p in config.approval_policies
    }
