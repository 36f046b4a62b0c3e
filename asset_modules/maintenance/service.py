"""
Maintenance State Machine (``asset_modules.maintenance.service``).

Responsibility
--------------
Schedule maintenance work orders and drive them through start, completion
or cancellation.  The orchestrator pairs start and completion with the
asset's UnderMaintenance excursion.

Architecture position
---------------------
**Modules layer** -- pure service.  Transition decisions go through
``WorkflowExecutor``.

Invariants enforced
-------------------
* One open (Scheduled or InProgress) record per asset
  (``MaintenanceAlreadyOpen``).
* No maintenance is scheduled for a retired asset (``AssetRetired``).
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Any

from asset_kernel.domain.errors import LifecycleError
from asset_kernel.domain.validation import (
    require_date,
    require_member,
    require_non_negative,
    require_text,
)
from asset_kernel.domain.workflow import TransitionResult
from asset_kernel.logging_config import get_logger
from asset_modules.maintenance.models import (
    MaintenancePriority,
    MaintenanceRecord,
    MaintenanceStatus,
    MaintenanceType,
)
from asset_modules.maintenance.workflows import MAINTENANCE_WORKFLOW
from asset_services.rbac_authority import Operation, Role, authorize
from asset_services.workflow_executor import WorkflowExecutor

logger = get_logger("modules.maintenance.service")

ENTITY_TYPE = "maintenance"


def validate_maintenance(record: MaintenanceRecord) -> tuple[str, ...]:
    issues: list[str] = []
    issues += require_text(record.id, "id")
    issues += require_text(record.asset_id, "asset_id")
    issues += require_member(record.maintenance_type, MaintenanceType, "maintenance_type")
    issues += require_member(record.priority, MaintenancePriority, "priority")
    issues += require_date(record.scheduled_date, "scheduled_date")
    issues += require_text(record.vendor, "vendor")
    issues += require_non_negative(record.estimated_cost, "estimated_cost")
    return tuple(issues)


class MaintenanceStateMachine:
    """Maintenance record lifecycle."""

    def __init__(self, executor: WorkflowExecutor):
        self._executor = executor

    def schedule(
        self,
        draft: MaintenanceRecord,
        actor_role: Role | str,
        asset_retired: bool = False,
        open_record_id: str | None = None,
    ) -> TransitionResult:
        """Create a Scheduled record for an asset with no open maintenance."""
        auth = authorize(actor_role, Operation.SCHEDULE_MAINTENANCE)
        error: LifecycleError | None = None
        if not auth.allowed:
            error = LifecycleError.insufficient_role(
                auth.role, Operation.SCHEDULE_MAINTENANCE.value,
            )
        elif asset_retired:
            error = LifecycleError.asset_retired(draft.asset_id, "schedule_maintenance")
        elif open_record_id is not None:
            error = LifecycleError.maintenance_already_open(draft.asset_id, open_record_id)
        else:
            issues = validate_maintenance(draft)
            if issues:
                error = LifecycleError.validation(issues, ENTITY_TYPE, draft.id)
        if error is not None:
            return TransitionResult(success=False, action="schedule", entity=draft, error=error)

        record = replace(
            draft,
            status=MaintenanceStatus.SCHEDULED,
            started_on=None,
            completed_on=None,
            actual_cost=None,
            version=0,
        )
        return TransitionResult(
            success=True,
            action="schedule",
            new_state=MaintenanceStatus.SCHEDULED.value,
            entity=record,
        )

    def start(
        self,
        record: MaintenanceRecord,
        actor_role: Role | str,
        started_on: date,
    ) -> TransitionResult:
        result = self._execute(record, "start", actor_role)
        return self._apply(record, result, started_on=started_on)

    def complete(
        self,
        record: MaintenanceRecord,
        actor_role: Role | str,
        completed_on: date,
        actual_cost: Decimal | None = None,
    ) -> TransitionResult:
        result = self._execute(
            record, "complete", actor_role, context={"actual_cost": actual_cost},
        )
        return self._apply(
            record,
            result,
            completed_on=completed_on,
            actual_cost=actual_cost if actual_cost is not None else record.estimated_cost,
        )

    def cancel(self, record: MaintenanceRecord, actor_role: Role | str) -> TransitionResult:
        result = self._execute(record, "cancel", actor_role)
        return self._apply(record, result)

    # -- helpers --------------------------------------------------------------

    def _execute(
        self,
        record: MaintenanceRecord,
        action: str,
        actor_role: Role | str,
        context: dict[str, Any] | None = None,
    ) -> TransitionResult:
        return self._executor.execute_transition(
            workflow=MAINTENANCE_WORKFLOW,
            entity_type=ENTITY_TYPE,
            entity_id=record.id,
            current_state=record.status.value,
            action=action,
            actor_role=actor_role,
            context=context,
        )

    @staticmethod
    def _apply(record: MaintenanceRecord, result: TransitionResult, **changes: Any) -> TransitionResult:
        if not result.success:
            return replace(result, entity=record)
        updated = replace(record, status=MaintenanceStatus(result.new_state), **changes)
        return replace(result, entity=updated)
