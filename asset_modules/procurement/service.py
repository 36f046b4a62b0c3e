"""
Procurement State Machine (``asset_modules.procurement.service``).

Responsibility
--------------
Submit procurement requests and drive them through approval, purchasing
and completion, or rejection.

Architecture position
---------------------
**Modules layer** -- pure service.  Transition decisions go through
``WorkflowExecutor``; approval thresholds come from the procurement
approval policy it was configured with.

Invariants enforced
-------------------
* ``quantity`` is a positive integer; ``estimated_cost`` is non-negative.
* ``required_by`` may not precede ``request_date``.
* ``approvals`` only ever grows; a role approves a request at most once.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Any

from asset_kernel.domain.approval import ApprovalDecision, ApprovalDecisionRecord
from asset_kernel.domain.errors import LifecycleError
from asset_kernel.domain.validation import (
    require_date,
    require_member,
    require_non_negative,
    require_positive_int,
    require_text,
)
from asset_kernel.domain.workflow import TransitionResult
from asset_kernel.logging_config import get_logger
from asset_modules.procurement.models import (
    ProcurementCategory,
    ProcurementPriority,
    ProcurementRequest,
    ProcurementStatus,
)
from asset_modules.procurement.workflows import PROCUREMENT_WORKFLOW
from asset_services.rbac_authority import Operation, Role, authorize
from asset_services.workflow_executor import WorkflowExecutor

logger = get_logger("modules.procurement.service")

ENTITY_TYPE = "procurement"


def validate_procurement(request: ProcurementRequest) -> tuple[str, ...]:
    """Collect every problem with a new procurement request."""
    issues: list[str] = []
    issues += require_text(request.id, "id")
    issues += require_text(request.title, "title")
    issues += require_member(request.category, ProcurementCategory, "category")
    issues += require_member(request.priority, ProcurementPriority, "priority")
    issues += require_non_negative(request.estimated_cost, "estimated_cost")
    issues += require_positive_int(request.quantity, "quantity")
    issues += require_text(request.requested_by, "requested_by")
    issues += require_text(request.department, "department")
    issues += require_date(request.request_date, "request_date")
    if request.required_by is not None:
        date_issues = require_date(request.required_by, "required_by")
        issues += date_issues
        if (
            not date_issues
            and isinstance(request.request_date, date)
            and request.required_by < request.request_date
        ):
            issues.append("required_by must not precede request_date")
    return tuple(issues)


class ProcurementStateMachine:
    """Procurement request lifecycle."""

    def __init__(self, executor: WorkflowExecutor):
        self._executor = executor

    def submit(self, draft: ProcurementRequest, actor_role: Role | str) -> TransitionResult:
        """Open a PendingApproval request."""
        auth = authorize(actor_role, Operation.CREATE_PROCUREMENT)
        if not auth.allowed:
            return TransitionResult(
                success=False,
                action="submit",
                entity=draft,
                error=LifecycleError.insufficient_role(
                    auth.role, Operation.CREATE_PROCUREMENT.value,
                ),
            )
        issues = validate_procurement(draft)
        if issues:
            return TransitionResult(
                success=False,
                action="submit",
                entity=draft,
                error=LifecycleError.validation(issues, ENTITY_TYPE, draft.id),
            )
        request = replace(
            draft,
            status=ProcurementStatus.PENDING_APPROVAL,
            approvals=(),
            rejection_reason=None,
            completed_on=None,
            version=0,
        )
        return TransitionResult(
            success=True,
            action="submit",
            new_state=ProcurementStatus.PENDING_APPROVAL.value,
            entity=request,
        )

    def approve(
        self,
        request: ProcurementRequest,
        actor_role: Role | str,
        decided_on: date,
        comment: str = "",
    ) -> TransitionResult:
        """Record an approval; the request moves to Approved once the rule is met."""
        decision = ApprovalDecisionRecord(
            actor_role=getattr(actor_role, "value", actor_role),
            decision=ApprovalDecision.APPROVE,
            decided_on=decided_on,
            comment=comment,
        )
        result = self._executor.execute_transition(
            workflow=PROCUREMENT_WORKFLOW,
            entity_type=ENTITY_TYPE,
            entity_id=request.id,
            current_state=request.status.value,
            action="approve",
            actor_role=actor_role,
            context=_approval_context(request),
            amount=request.estimated_cost,
            approvals=request.approvals,
            decision=decision,
        )
        return self._apply(request, result, approvals=request.approvals + (decision,))

    def reject(
        self,
        request: ProcurementRequest,
        actor_role: Role | str,
        decided_on: date,
        reason: str,
    ) -> TransitionResult:
        result = self._execute(request, "reject", actor_role)
        if result.success and not reason.strip():
            return replace(
                result,
                success=False,
                new_state=None,
                entity=request,
                error=LifecycleError.validation(
                    ("rejection reason is required",), ENTITY_TYPE, request.id,
                ),
            )
        decision = ApprovalDecisionRecord(
            actor_role=getattr(actor_role, "value", actor_role),
            decision=ApprovalDecision.REJECT,
            decided_on=decided_on,
            comment=reason,
        )
        return self._apply(
            request,
            result,
            approvals=request.approvals + (decision,),
            rejection_reason=reason,
        )

    def mark_in_procurement(
        self,
        request: ProcurementRequest,
        actor_role: Role | str,
    ) -> TransitionResult:
        result = self._execute(request, "mark_in_procurement", actor_role)
        return self._apply(request, result)

    def complete(
        self,
        request: ProcurementRequest,
        actor_role: Role | str,
        completed_on: date,
    ) -> TransitionResult:
        result = self._execute(request, "complete", actor_role)
        return self._apply(request, result, completed_on=completed_on)

    # -- helpers --------------------------------------------------------------

    def _execute(
        self,
        request: ProcurementRequest,
        action: str,
        actor_role: Role | str,
    ) -> TransitionResult:
        return self._executor.execute_transition(
            workflow=PROCUREMENT_WORKFLOW,
            entity_type=ENTITY_TYPE,
            entity_id=request.id,
            current_state=request.status.value,
            action=action,
            actor_role=actor_role,
        )

    @staticmethod
    def _apply(request: ProcurementRequest, result: TransitionResult, **changes: Any) -> TransitionResult:
        if not result.success:
            return replace(result, entity=request)
        updated = replace(request, status=ProcurementStatus(result.new_state), **changes)
        return replace(result, entity=updated)


def _approval_context(request: ProcurementRequest) -> dict[str, Any]:
    """Fields approval guard expressions may reference as ``request.<field>``."""
    return {
        "request": {
            "category": request.category.value,
            "priority": request.priority.value,
            "quantity": request.quantity,
            "department": request.department,
            "estimated_cost": request.estimated_cost,
        },
    }
