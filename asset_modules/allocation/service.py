"""
Allocation State Machine (``asset_modules.allocation.service``).

Responsibility
--------------
Create allocation records and move them to Returned by check-in, transfer
or retirement release.  A transfer closes the current record and opens its
successor as one unit.

Architecture position
---------------------
**Modules layer** -- pure service.  Transition decisions go through
``WorkflowExecutor``; the orchestrator pairs every record change with the
matching ``AssetStateMachine`` call.

Invariants enforced
-------------------
* ``expected_return_date`` is required iff the allocation is Temporary and
  may not precede ``assign_date``.
* Returned records are immutable.
* A Temporary allocation checked in after its expected return date is
  marked ``returned_late``.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Any

from asset_kernel.domain.errors import LifecycleError
from asset_kernel.domain.validation import require_date, require_member, require_text
from asset_kernel.domain.workflow import TransitionResult
from asset_kernel.logging_config import get_logger
from asset_modules.allocation.models import (
    AllocationEndReason,
    AllocationRecord,
    AllocationStatus,
    AllocationTransfer,
    AllocationType,
)
from asset_modules.allocation.workflows import ALLOCATION_WORKFLOW
from asset_services.rbac_authority import Operation, Role, authorize
from asset_services.workflow_executor import WorkflowExecutor

logger = get_logger("modules.allocation.service")

ENTITY_TYPE = "allocation"


def validate_allocation(record: AllocationRecord) -> tuple[str, ...]:
    """Collect every problem with a new allocation record."""
    issues: list[str] = []
    issues += require_text(record.id, "id")
    issues += require_text(record.asset_id, "asset_id")
    issues += require_text(record.assignee, "assignee")
    issues += require_text(record.department, "department")
    issues += require_text(record.location, "location")
    issues += require_member(record.allocation_type, AllocationType, "allocation_type")
    issues += require_date(record.assign_date, "assign_date")
    if record.allocation_type == AllocationType.TEMPORARY:
        if record.expected_return_date is None:
            issues.append("expected_return_date is required for Temporary allocations")
        else:
            issues += require_date(record.expected_return_date, "expected_return_date")
            if not issues and record.expected_return_date < record.assign_date:
                issues.append("expected_return_date must not precede assign_date")
    elif record.expected_return_date is not None:
        issues.append("expected_return_date applies only to Temporary allocations")
    return tuple(issues)


class AllocationStateMachine:
    """Allocation record lifecycle: created Active, ended Returned."""

    def __init__(self, executor: WorkflowExecutor):
        self._executor = executor

    def create(self, draft: AllocationRecord, actor_role: Role | str) -> TransitionResult:
        """Open a new Active allocation."""
        auth = authorize(actor_role, Operation.ALLOCATE_ASSET)
        if not auth.allowed:
            return TransitionResult(
                success=False,
                action="create",
                entity=draft,
                error=LifecycleError.insufficient_role(auth.role, Operation.ALLOCATE_ASSET.value),
            )
        return self._open(draft, "create")

    def check_in(
        self,
        record: AllocationRecord,
        actor_role: Role | str,
        returned_on: date,
    ) -> TransitionResult:
        """Active -> Returned for Temporary allocations."""
        result = self._execute(record, "check_in", actor_role)
        late = (
            record.expected_return_date is not None
            and returned_on > record.expected_return_date
        )
        return self._apply(
            record,
            result,
            returned_on=returned_on,
            returned_late=late,
            end_reason=AllocationEndReason.CHECK_IN,
        )

    def transfer(
        self,
        record: AllocationRecord,
        actor_role: Role | str,
        successor_id: str,
        new_assignee: str,
        transfer_date: date,
        department: str | None = None,
        location: str | None = None,
        allocation_type: AllocationType | None = None,
        expected_return_date: date | None = None,
    ) -> TransitionResult:
        """Close ``record`` and open its successor for ``new_assignee``.

        On success ``entity`` is an ``AllocationTransfer``.  The successor
        keeps the current department, location and type unless overridden.
        """
        successor = AllocationRecord(
            id=successor_id,
            asset_id=record.asset_id,
            assignee=new_assignee,
            department=department or record.department,
            location=location or record.location,
            allocation_type=allocation_type or record.allocation_type,
            assign_date=transfer_date,
            expected_return_date=(
                expected_return_date
                if allocation_type is not None or expected_return_date is not None
                else record.expected_return_date
            ),
        )
        context = {"assignee": record.assignee, "new_assignee": new_assignee}

        result = self._execute(record, "transfer", actor_role, context=context)
        if not result.success:
            return replace(result, entity=record)

        issues = validate_allocation(successor)
        if issues:
            return replace(
                result,
                success=False,
                new_state=None,
                entity=record,
                error=LifecycleError.validation(issues, ENTITY_TYPE, successor_id),
            )

        closed = replace(
            record,
            status=AllocationStatus.RETURNED,
            returned_on=transfer_date,
            transferred_to=successor_id,
            end_reason=AllocationEndReason.TRANSFER,
        )
        logger.info(
            "allocation_transferred",
            extra={
                "allocation_id": record.id,
                "successor_id": successor_id,
                "asset_id": record.asset_id,
            },
        )
        return replace(result, entity=AllocationTransfer(closed=closed, successor=successor))

    def release(
        self,
        record: AllocationRecord,
        actor_role: Role | str,
        released_on: date,
    ) -> TransitionResult:
        """Active -> Returned because the asset was retired."""
        result = self._execute(record, "release", actor_role)
        return self._apply(
            record,
            result,
            returned_on=released_on,
            end_reason=AllocationEndReason.RETIREMENT,
        )

    # -- helpers --------------------------------------------------------------

    def _open(self, draft: AllocationRecord, action: str) -> TransitionResult:
        issues = validate_allocation(draft)
        if issues:
            return TransitionResult(
                success=False,
                action=action,
                entity=draft,
                error=LifecycleError.validation(issues, ENTITY_TYPE, draft.id),
            )
        record = replace(
            draft,
            status=AllocationStatus.ACTIVE,
            returned_on=None,
            returned_late=False,
            transferred_to=None,
            end_reason=None,
            version=0,
        )
        return TransitionResult(
            success=True,
            action=action,
            new_state=AllocationStatus.ACTIVE.value,
            entity=record,
        )

    def _execute(
        self,
        record: AllocationRecord,
        action: str,
        actor_role: Role | str,
        context: dict[str, Any] | None = None,
    ) -> TransitionResult:
        ctx = {"allocation_type": record.allocation_type.value}
        ctx.update(context or {})
        return self._executor.execute_transition(
            workflow=ALLOCATION_WORKFLOW,
            entity_type=ENTITY_TYPE,
            entity_id=record.id,
            current_state=record.status.value,
            action=action,
            actor_role=actor_role,
            context=ctx,
        )

    @staticmethod
    def _apply(record: AllocationRecord, result: TransitionResult, **changes: Any) -> TransitionResult:
        if not result.success:
            return replace(result, entity=record)
        updated = replace(record, status=AllocationStatus(result.new_state), **changes)
        return replace(result, entity=updated)
