"""
Disposal State Machine (``asset_modules.disposal.service``).

Responsibility
--------------
Open disposal requests, collect approvals, and reject or complete them.
Completion fixes the book value at disposal and the realised gain or loss.

Architecture position
---------------------
**Modules layer** -- pure service.  The orchestrator pairs initiation,
rejection and completion with ``AssetStateMachine`` transitions on the
asset (PendingDisposal, resume state, Retired).

Invariants enforced
-------------------
* ``approvals`` only ever grows; a role approves a request at most once.
* Completion is refused while the asset has maintenance in progress.
* ``gain_loss == proceeds - book_value_at_disposal`` when proceeds are
  recorded.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Any

from asset_kernel.domain.approval import ApprovalDecision, ApprovalDecisionRecord
from asset_kernel.domain.errors import LifecycleError
from asset_kernel.domain.validation import (
    require_date,
    require_member,
    require_non_negative,
    require_text,
)
from asset_kernel.domain.values import round_money
from asset_kernel.domain.workflow import TransitionResult
from asset_kernel.logging_config import get_logger
from asset_modules.disposal.models import (
    DisposalMethod,
    DisposalReason,
    DisposalRequest,
    DisposalStatus,
)
from asset_modules.disposal.workflows import DISPOSAL_WORKFLOW
from asset_services.rbac_authority import Operation, Role, authorize
from asset_services.workflow_executor import WorkflowExecutor

logger = get_logger("modules.disposal.service")

ENTITY_TYPE = "disposal"


def validate_disposal(request: DisposalRequest) -> tuple[str, ...]:
    issues: list[str] = []
    issues += require_text(request.id, "id")
    issues += require_text(request.asset_id, "asset_id")
    issues += require_member(request.reason, DisposalReason, "reason")
    issues += require_member(request.disposal_method, DisposalMethod, "disposal_method")
    issues += require_non_negative(request.estimated_value, "estimated_value")
    issues += require_non_negative(request.salvage_value, "salvage_value")
    issues += require_text(request.requested_by, "requested_by")
    issues += require_date(request.request_date, "request_date")
    return tuple(issues)


class DisposalStateMachine:
    """Disposal request lifecycle."""

    def __init__(self, executor: WorkflowExecutor):
        self._executor = executor

    def initiate(self, draft: DisposalRequest, actor_role: Role | str) -> TransitionResult:
        """Open a PendingApproval request.

        The asset-side checks (retired, one open request per asset) belong
        to ``AssetStateMachine.initiate_disposal``.
        """
        auth = authorize(actor_role, Operation.INITIATE_DISPOSAL)
        if not auth.allowed:
            return TransitionResult(
                success=False,
                action="initiate",
                entity=draft,
                error=LifecycleError.insufficient_role(
                    auth.role, Operation.INITIATE_DISPOSAL.value,
                ),
            )
        issues = validate_disposal(draft)
        if issues:
            return TransitionResult(
                success=False,
                action="initiate",
                entity=draft,
                error=LifecycleError.validation(issues, ENTITY_TYPE, draft.id),
            )
        request = replace(
            draft,
            status=DisposalStatus.PENDING_APPROVAL,
            approvals=(),
            rejection_reason=None,
            completed_on=None,
            proceeds=None,
            book_value_at_disposal=None,
            gain_loss=None,
            version=0,
        )
        return TransitionResult(
            success=True,
            action="initiate",
            new_state=DisposalStatus.PENDING_APPROVAL.value,
            entity=request,
        )

    def approve(
        self,
        request: DisposalRequest,
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
            workflow=DISPOSAL_WORKFLOW,
            entity_type=ENTITY_TYPE,
            entity_id=request.id,
            current_state=request.status.value,
            action="approve",
            actor_role=actor_role,
            context=_approval_context(request),
            amount=request.estimated_value,
            approvals=request.approvals,
            decision=decision,
        )
        return self._apply(request, result, approvals=request.approvals + (decision,))

    def reject(
        self,
        request: DisposalRequest,
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

    def complete(
        self,
        request: DisposalRequest,
        actor_role: Role | str,
        completed_on: date,
        book_value_at_disposal: Decimal,
        proceeds: Decimal | None = None,
        maintenance_in_progress: bool = False,
    ) -> TransitionResult:
        """Approved -> Completed, fixing the realised gain or loss."""
        result = self._execute(
            request,
            "complete",
            actor_role,
            context={"maintenance_in_progress": maintenance_in_progress},
        )
        if result.success and proceeds is not None:
            issues = require_non_negative(proceeds, "proceeds")
            if issues:
                return replace(
                    result,
                    success=False,
                    new_state=None,
                    entity=request,
                    error=LifecycleError.validation(issues, ENTITY_TYPE, request.id),
                )
        gain_loss = (
            round_money(proceeds - book_value_at_disposal)
            if proceeds is not None else None
        )
        return self._apply(
            request,
            result,
            completed_on=completed_on,
            proceeds=proceeds,
            book_value_at_disposal=book_value_at_disposal,
            gain_loss=gain_loss,
        )

    # -- helpers --------------------------------------------------------------

    def _execute(
        self,
        request: DisposalRequest,
        action: str,
        actor_role: Role | str,
        context: dict[str, Any] | None = None,
    ) -> TransitionResult:
        return self._executor.execute_transition(
            workflow=DISPOSAL_WORKFLOW,
            entity_type=ENTITY_TYPE,
            entity_id=request.id,
            current_state=request.status.value,
            action=action,
            actor_role=actor_role,
            context=context,
        )

    @staticmethod
    def _apply(request: DisposalRequest, result: TransitionResult, **changes: Any) -> TransitionResult:
        if not result.success:
            return replace(result, entity=request)
        updated = replace(request, status=DisposalStatus(result.new_state), **changes)
        return replace(result, entity=updated)


def _approval_context(request: DisposalRequest) -> dict[str, Any]:
    """Fields approval guard expressions may reference as ``request.<field>``."""
    return {
        "request": {
            "reason": request.reason.value,
            "disposal_method": request.disposal_method.value,
            "estimated_value": request.estimated_value,
        },
    }
