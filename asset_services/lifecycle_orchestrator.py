"""
asset_services.lifecycle_orchestrator -- Single entry point for lifecycle commands.

Responsibility:
    Apply one command on behalf of one role: authorize it, load the
    entities it references, check the caller's version token, run the
    state machine transitions (asset plus the satellite workflow record),
    recompute valuation when the financial basis changed, persist every
    changed entity in one repository transaction, and return the changes
    together with notification intents for the external dispatcher.

Architecture position:
    Services -- orchestration over modules and engines.  The orchestrator
    performs no I/O itself; loads and saves go through the injected
    ``LifecycleRepository``.

Invariants enforced:
    - The command's operation is authorized before anything is loaded.
    - A stale ``expected_version`` yields ``ConcurrentModification`` before
      any state validation.
    - All transitions are decided before the first save; a business-rule
      failure persists nothing.
    - Saves run in one ``transaction()``; ``OptimisticLockError`` from any
      save rolls all of them back and yields ``ConcurrentModification``.
    - ``Asset.status`` changes only through ``AssetStateMachine``.

Failure modes:
    - Business-rule failures are returned as ``LifecycleResult`` with
      status ``rejected`` and a typed ``LifecycleError``.
    - ``EntityNotFoundError`` becomes ``EntityNotFound``.
    - Any other exception (storage down) propagates unmodified.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from enum import Enum
from typing import Any, Callable
from uuid import uuid4

from asset_config.bridges import build_approval_policy_map
from asset_config.schema import AllocationSettings, LifecycleConfig, ValuationSettings
from asset_engines.valuation import DepreciationMethod, compute_book_value
from asset_kernel.domain.clock import Clock, SystemClock
from asset_kernel.domain.errors import LifecycleError
from asset_kernel.domain.intents import NotificationIntent
from asset_kernel.domain.workflow import TransitionResult
from asset_kernel.exceptions import EntityNotFoundError, OptimisticLockError
from asset_kernel.logging_config import LogContext, get_logger
from asset_kernel.utils.serialization import to_jsonable
from asset_modules.allocation.models import AllocationRecord, AllocationTransfer, AllocationType
from asset_modules.allocation.service import AllocationStateMachine
from asset_modules.assets.models import Asset, ValuationAuditEntry, ValuationTrigger
from asset_modules.assets.service import AssetStateMachine, revalue
from asset_modules.disposal.models import DisposalRequest
from asset_modules.disposal.service import DisposalStateMachine
from asset_modules.maintenance.models import MaintenanceRecord, MaintenanceStatus
from asset_modules.maintenance.service import MaintenanceStateMachine
from asset_modules.procurement.models import ProcurementRequest
from asset_modules.procurement.service import ProcurementStateMachine
from asset_services import commands as cmd
from asset_services.rbac_authority import Role, authorize
from asset_services.repository import LifecycleRepository
from asset_services.workflow_executor import WorkflowExecutor

logger = get_logger("services.lifecycle_orchestrator")

IdFactory = Callable[[str], str]

# Id prefixes for records the orchestrator creates
ALLOCATION_PREFIX = "ALC"
MAINTENANCE_PREFIX = "MNT"
DISPOSAL_PREFIX = "DSP"
VALUATION_PREFIX = "VAL"


def default_id_factory(prefix: str) -> str:
    return f"{prefix}-{uuid4().hex[:12].upper()}"


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


class LifecycleStatus(str, Enum):
    """Outcome of one ``apply`` call."""

    APPLIED = "applied"
    APPROVAL_PENDING = "approval_pending"  # approval recorded, threshold not met
    UNCHANGED = "unchanged"  # accepted, nothing to write
    REJECTED = "rejected"


_ENTITY_TYPES: dict[type, str] = {
    Asset: "asset",
    AllocationRecord: "allocation",
    MaintenanceRecord: "maintenance",
    DisposalRequest: "disposal",
    ProcurementRequest: "procurement",
    ValuationAuditEntry: "valuation_entry",
}


@dataclass(frozen=True)
class EntityChange:
    """One persisted entity, at the version it was saved with."""

    entity_type: str
    entity: Any

    @property
    def entity_id(self) -> str:
        return self.entity.id

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "data": to_jsonable(self.entity),
        }


@dataclass(frozen=True)
class LifecycleResult:
    """Everything a caller needs from ``apply``.

    ``changes`` is empty unless ``status`` is applied or approval_pending.
    """

    status: LifecycleStatus
    command: str
    changes: tuple[EntityChange, ...] = ()
    notifications: tuple[NotificationIntent, ...] = ()
    error: LifecycleError | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    def changed(self, entity_type: str) -> tuple[Any, ...]:
        """Changed entities of one type, in save order."""
        return tuple(c.entity for c in self.changes if c.entity_type == entity_type)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "status": self.status.value,
            "command": self.command,
            "changes": [c.to_dict() for c in self.changes],
            "notifications": [n.to_dict() for n in self.notifications],
        }
        if self.error is not None:
            data["error"] = self.error.to_dict()
        return data


@dataclass
class _Outcome:
    """Mutable accumulator a handler fills while applying one command."""

    changes: list[EntityChange] = field(default_factory=list)
    notifications: list[NotificationIntent] = field(default_factory=list)
    error: LifecycleError | None = None
    approval_pending: bool = False
    unchanged: bool = False

    def saved(self, entity: Any) -> Any:
        self.changes.append(EntityChange(_ENTITY_TYPES[type(entity)], entity))
        return entity

    def notify(self, intent: NotificationIntent) -> None:
        self.notifications.append(intent)


class _Rejected(Exception):
    """Internal: a transition failed; carries the typed error out of a handler."""

    def __init__(self, error: LifecycleError):
        self.error = error
        super().__init__(error.message)


def _require(result: TransitionResult) -> Any:
    """Return the transition's entity or abort the command with its error."""
    if not result.success:
        raise _Rejected(result.error)
    return result.entity


def _check_version(entity_type: str, entity: Any, expected_version: int) -> None:
    if entity.version != expected_version:
        raise _Rejected(
            LifecycleError.concurrent_modification(
                entity_type, entity.id, expected_version, entity.version,
            )
        )


def _command_target(command: cmd.LifecycleCommand) -> str | None:
    for attr in ("asset_id", "allocation_id", "record_id", "disposal_id", "request_id"):
        value = getattr(command, attr, None)
        if value is not None:
            return value
    draft = getattr(command, "asset", None) or getattr(command, "request", None)
    return getattr(draft, "id", None)


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class LifecycleOrchestrator:
    """
    Applies lifecycle commands.

    Contract:
        Receives the repository, clock, configuration and id factory by
        constructor injection.  ``apply`` never raises for business-rule
        failures.

    Guarantees:
        - Each successful ``apply`` persists every changed entity
          atomically and returns them at their new versions.
        - Valuation audit entries are appended in the same transaction as
          the asset save that caused them.

    Non-goals:
        - Does NOT dispatch notifications; intents are returned.
        - Does NOT retry on ``ConcurrentModification``; callers reload.
    """

    def __init__(
        self,
        repository: LifecycleRepository,
        clock: Clock | None = None,
        config: LifecycleConfig | None = None,
        id_factory: IdFactory | None = None,
        executor: WorkflowExecutor | None = None,
    ) -> None:
        self._repo = repository
        self._clock = clock or SystemClock()
        self._valuation_settings = config.valuation if config else ValuationSettings()
        self._allocation_settings = config.allocation if config else AllocationSettings()
        self._id_factory = id_factory or default_id_factory
        self._executor = executor or WorkflowExecutor(
            approval_policies=build_approval_policy_map(config) if config else None,
            clock=self._clock,
        )

        self._assets = AssetStateMachine(self._executor)
        self._allocations = AllocationStateMachine(self._executor)
        self._maintenance = MaintenanceStateMachine(self._executor)
        self._disposals = DisposalStateMachine(self._executor)
        self._procurement = ProcurementStateMachine(self._executor)

        self._handlers: dict[type, Callable[[Any, str, _Outcome], None]] = {
            cmd.RegisterAsset: self._register_asset,
            cmd.UpdateAssetFinancials: self._update_financials,
            cmd.RecomputeAssetValuation: self._recompute_valuation,
            cmd.CreateProcurementRequest: self._create_procurement,
            cmd.ApproveProcurement: self._approve_procurement,
            cmd.RejectProcurement: self._reject_procurement,
            cmd.MarkInProcurement: self._mark_in_procurement,
            cmd.CompleteProcurement: self._complete_procurement,
            cmd.AllocateAsset: self._allocate_asset,
            cmd.CheckInAllocation: self._check_in_allocation,
            cmd.TransferAllocation: self._transfer_allocation,
            cmd.ScheduleMaintenance: self._schedule_maintenance,
            cmd.StartMaintenance: self._start_maintenance,
            cmd.CompleteMaintenance: self._complete_maintenance,
            cmd.CancelMaintenance: self._cancel_maintenance,
            cmd.InitiateDisposal: self._initiate_disposal,
            cmd.ApproveDisposal: self._approve_disposal,
            cmd.RejectDisposal: self._reject_disposal,
            cmd.CompleteDisposal: self._complete_disposal,
        }

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def repository(self) -> LifecycleRepository:
        return self._repo

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def apply(self, command: cmd.LifecycleCommand, actor_role: Role | str) -> LifecycleResult:
        """Apply ``command`` as ``actor_role``.

        Raises:
            TypeError: for an object that is not a known command.
        """
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"Unknown lifecycle command: {type(command).__name__}")

        t0 = time.monotonic()
        role = actor_role.value if isinstance(actor_role, Role) else str(actor_role)
        outcome = _Outcome()

        with LogContext.bind(
            actor_role=role,
            command=command.name,
            entity_id=_command_target(command),
        ):
            auth = authorize(actor_role, command.operation)
            if not auth.allowed:
                outcome.error = LifecycleError.insufficient_role(role, command.operation.value)
            else:
                outcome = self._run(handler, command, role)

            result = self._result(command, outcome)
            logger.info(
                "lifecycle_command_applied",
                extra={
                    "status": result.status.value,
                    "error_code": result.error.code.value if result.error else None,
                    "change_count": len(result.changes),
                    "notification_count": len(result.notifications),
                    "duration_ms": round((time.monotonic() - t0) * 1000, 3),
                },
            )
            return result

    def _run(
        self,
        handler: Callable[[Any, str, _Outcome], None],
        command: cmd.LifecycleCommand,
        role: str,
    ) -> _Outcome:
        outcome = _Outcome()
        try:
            with self._repo.acting_as(role), self._repo.transaction():
                handler(command, role, outcome)
        except _Rejected as exc:
            return _Outcome(error=exc.error)
        except EntityNotFoundError as exc:
            return _Outcome(error=LifecycleError.not_found(exc.entity_type, exc.entity_id))
        except OptimisticLockError as exc:
            logger.warning(
                "lifecycle_concurrent_modification",
                extra={
                    "entity_type": exc.entity_type,
                    "conflict_entity_id": exc.entity_id,
                    "expected_version": exc.expected_version,
                    "actual_version": exc.actual_version,
                },
            )
            return _Outcome(
                error=LifecycleError.concurrent_modification(
                    exc.entity_type, exc.entity_id, exc.expected_version, exc.actual_version,
                )
            )
        return outcome

    @staticmethod
    def _result(command: cmd.LifecycleCommand, outcome: _Outcome) -> LifecycleResult:
        if outcome.error is not None:
            return LifecycleResult(
                status=LifecycleStatus.REJECTED,
                command=command.name,
                error=outcome.error,
            )
        if outcome.approval_pending:
            status = LifecycleStatus.APPROVAL_PENDING
        elif outcome.unchanged:
            status = LifecycleStatus.UNCHANGED
        else:
            status = LifecycleStatus.APPLIED
        return LifecycleResult(
            status=status,
            command=command.name,
            changes=tuple(outcome.changes),
            notifications=tuple(outcome.notifications),
        )

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def _today(self, value: date | None) -> date:
        return value if value is not None else self._clock.today()

    def _revalue(
        self,
        asset: Asset,
        as_of: date,
        trigger: ValuationTrigger,
        role: str,
    ) -> tuple[Asset, ValuationAuditEntry | None]:
        return revalue(
            asset,
            as_of=as_of,
            trigger=trigger,
            actor_role=role,
            recorded_at=self._clock.now(),
            entry_id=self._id_factory(VALUATION_PREFIX),
        )

    def _save_asset(
        self,
        outcome: _Outcome,
        asset: Asset,
        expected_version: int,
        entry: ValuationAuditEntry | None = None,
    ) -> Asset:
        saved = outcome.saved(self._repo.save_asset(asset, expected_version))
        if entry is not None:
            self._repo.append_valuation_entry(entry)
            outcome.saved(entry)
        return saved

    def _asset_notice(self, asset: Asset, event_type: str, **payload: Any) -> NotificationIntent:
        """Notify the assignee when the asset is held by someone, else asset managers."""
        payload = {"asset_id": asset.id, "asset_name": asset.name, **payload}
        if asset.assigned_to:
            return NotificationIntent.to_recipient(asset.assigned_to, event_type, **payload)
        return NotificationIntent.to_role(Role.ASSET_MANAGER.value, event_type, **payload)

    def _allocation_notice(self, record: AllocationRecord) -> NotificationIntent:
        payload: dict[str, Any] = {
            "allocation_id": record.id,
            "asset_id": record.asset_id,
            "allocation_type": record.allocation_type.value,
            "department": record.department,
            "location": record.location,
        }
        if record.allocation_type == AllocationType.TEMPORARY and record.expected_return_date:
            payload["due_date"] = record.expected_return_date
            payload["remind_on"] = max(
                record.assign_date,
                record.expected_return_date
                - timedelta(days=self._allocation_settings.due_reminder_days),
            )
        return NotificationIntent.to_recipient(record.assignee, "allocation_created", **payload)

    # ------------------------------------------------------------------
    # Asset register
    # ------------------------------------------------------------------

    def _register_asset(self, command: cmd.RegisterAsset, role: str, outcome: _Outcome) -> None:
        draft = command.asset
        if draft.depreciation_method is None:
            draft = replace(
                draft,
                depreciation_method=DepreciationMethod(self._valuation_settings.default_method),
            )
        asset = _require(self._assets.register(draft, role))
        valued, entry = self._revalue(
            asset, self._today(command.as_of), ValuationTrigger.REGISTRATION, role,
        )
        self._save_asset(outcome, valued, 0, entry)

    def _update_financials(
        self, command: cmd.UpdateAssetFinancials, role: str, outcome: _Outcome,
    ) -> None:
        asset = self._repo.load_asset(command.asset_id)
        _check_version("asset", asset, command.expected_version)
        updated = _require(self._assets.update_financials(asset, role, command.changes()))
        valued, entry = self._revalue(
            updated, self._today(command.as_of), ValuationTrigger.BASIS_CHANGE, role,
        )
        self._save_asset(outcome, valued, asset.version, entry)

    def _recompute_valuation(
        self, command: cmd.RecomputeAssetValuation, role: str, outcome: _Outcome,
    ) -> None:
        asset = self._repo.load_asset(command.asset_id)
        _check_version("asset", asset, command.expected_version)
        _require(self._assets.authorize_revaluation(asset, role))
        valued, entry = self._revalue(
            asset, self._today(command.as_of), ValuationTrigger.PERIODIC, role,
        )
        if entry is None:
            outcome.unchanged = True
            return
        self._save_asset(outcome, valued, asset.version, entry)

    # ------------------------------------------------------------------
    # Procurement
    # ------------------------------------------------------------------

    def _create_procurement(
        self, command: cmd.CreateProcurementRequest, role: str, outcome: _Outcome,
    ) -> None:
        request = _require(self._procurement.submit(command.request, role))
        saved = outcome.saved(self._repo.save_procurement(request, 0))
        outcome.notify(NotificationIntent.to_role(
            Role.DEPARTMENT_HEAD.value,
            "procurement_submitted",
            request_id=saved.id,
            title=saved.title,
            estimated_cost=saved.estimated_cost,
            priority=saved.priority.value,
            requested_by=saved.requested_by,
        ))

    def _approve_procurement(
        self, command: cmd.ApproveProcurement, role: str, outcome: _Outcome,
    ) -> None:
        request = self._repo.load_procurement(command.request_id)
        _check_version("procurement", request, command.expected_version)
        result = self._procurement.approve(request, role, self._clock.today(), command.comment)
        updated = _require(result)
        saved = outcome.saved(self._repo.save_procurement(updated, request.version))
        if result.approval_pending:
            outcome.approval_pending = True
            return
        outcome.notify(NotificationIntent.to_recipient(
            saved.requested_by, "procurement_approved", request_id=saved.id, title=saved.title,
        ))
        outcome.notify(NotificationIntent.to_role(
            Role.PROCUREMENT_OFFICER.value,
            "procurement_approved",
            request_id=saved.id,
            title=saved.title,
        ))

    def _reject_procurement(
        self, command: cmd.RejectProcurement, role: str, outcome: _Outcome,
    ) -> None:
        request = self._repo.load_procurement(command.request_id)
        _check_version("procurement", request, command.expected_version)
        updated = _require(
            self._procurement.reject(request, role, self._clock.today(), command.reason)
        )
        saved = outcome.saved(self._repo.save_procurement(updated, request.version))
        outcome.notify(NotificationIntent.to_recipient(
            saved.requested_by,
            "procurement_rejected",
            request_id=saved.id,
            title=saved.title,
            reason=command.reason,
        ))

    def _mark_in_procurement(
        self, command: cmd.MarkInProcurement, role: str, outcome: _Outcome,
    ) -> None:
        request = self._repo.load_procurement(command.request_id)
        _check_version("procurement", request, command.expected_version)
        updated = _require(self._procurement.mark_in_procurement(request, role))
        outcome.saved(self._repo.save_procurement(updated, request.version))

    def _complete_procurement(
        self, command: cmd.CompleteProcurement, role: str, outcome: _Outcome,
    ) -> None:
        request = self._repo.load_procurement(command.request_id)
        _check_version("procurement", request, command.expected_version)
        updated = _require(
            self._procurement.complete(request, role, self._today(command.completed_on))
        )
        saved = outcome.saved(self._repo.save_procurement(updated, request.version))
        outcome.notify(NotificationIntent.to_recipient(
            saved.requested_by, "procurement_completed", request_id=saved.id, title=saved.title,
        ))

    # ------------------------------------------------------------------
    # Allocation
    # ------------------------------------------------------------------

    def _allocate_asset(self, command: cmd.AllocateAsset, role: str, outcome: _Outcome) -> None:
        asset = self._repo.load_asset(command.asset_id)
        _check_version("asset", asset, command.expected_version)
        active = self._repo.active_allocation_for(asset.id)
        allocated = _require(self._assets.allocate(
            asset, role, command.assignee, active.id if active else None,
        ))
        draft = AllocationRecord(
            id=self._id_factory(ALLOCATION_PREFIX),
            asset_id=asset.id,
            assignee=command.assignee,
            department=command.department,
            location=command.location,
            allocation_type=command.allocation_type,
            assign_date=self._today(command.assign_date),
            expected_return_date=command.expected_return_date,
            notes=command.notes,
        )
        record = _require(self._allocations.create(draft, role))

        self._save_asset(outcome, allocated, asset.version)
        saved = outcome.saved(self._repo.save_allocation(record, 0))
        outcome.notify(self._allocation_notice(saved))

    def _check_in_allocation(
        self, command: cmd.CheckInAllocation, role: str, outcome: _Outcome,
    ) -> None:
        record = self._repo.load_allocation(command.allocation_id)
        _check_version("allocation", record, command.expected_version)
        asset = self._repo.load_asset(record.asset_id)
        returned = _require(self._allocations.check_in(
            record, role, self._today(command.returned_on),
        ))
        checked_in = _require(self._assets.check_in(asset, role))

        self._save_asset(outcome, checked_in, asset.version)
        saved = outcome.saved(self._repo.save_allocation(returned, record.version))
        if saved.returned_late:
            outcome.notify(NotificationIntent.to_role(
                Role.DEPARTMENT_HEAD.value,
                "allocation_returned_late",
                allocation_id=saved.id,
                asset_id=saved.asset_id,
                assignee=saved.assignee,
                expected_return_date=saved.expected_return_date,
                returned_on=saved.returned_on,
            ))

    def _transfer_allocation(
        self, command: cmd.TransferAllocation, role: str, outcome: _Outcome,
    ) -> None:
        record = self._repo.load_allocation(command.allocation_id)
        _check_version("allocation", record, command.expected_version)
        asset = self._repo.load_asset(record.asset_id)
        transfer: AllocationTransfer = _require(self._allocations.transfer(
            record,
            role,
            successor_id=self._id_factory(ALLOCATION_PREFIX),
            new_assignee=command.new_assignee,
            transfer_date=self._today(command.transfer_date),
            department=command.department,
            location=command.location,
            allocation_type=command.allocation_type,
            expected_return_date=command.expected_return_date,
        ))
        reassigned = _require(self._assets.reassign(
            asset,
            role,
            command.new_assignee,
            location=transfer.successor.location,
            department=transfer.successor.department,
        ))

        self._save_asset(outcome, reassigned, asset.version)
        outcome.saved(self._repo.save_allocation(transfer.closed, record.version))
        successor = outcome.saved(self._repo.save_allocation(transfer.successor, 0))
        outcome.notify(self._allocation_notice(successor))

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def _schedule_maintenance(
        self, command: cmd.ScheduleMaintenance, role: str, outcome: _Outcome,
    ) -> None:
        asset = self._repo.load_asset(command.asset_id)
        _check_version("asset", asset, command.expected_version)
        open_record = next(
            (r for r in self._repo.maintenance_for(asset.id) if r.is_open), None,
        )
        draft = MaintenanceRecord(
            id=self._id_factory(MAINTENANCE_PREFIX),
            asset_id=asset.id,
            maintenance_type=command.maintenance_type,
            priority=command.priority,
            scheduled_date=command.scheduled_date,
            vendor=command.vendor,
            estimated_cost=command.estimated_cost,
            description=command.description,
        )
        record = _require(self._maintenance.schedule(
            draft,
            role,
            asset_retired=asset.is_retired,
            open_record_id=open_record.id if open_record else None,
        ))

        # The asset version is bumped so that concurrent schedules conflict
        self._save_asset(outcome, asset, asset.version)
        outcome.saved(self._repo.save_maintenance(record, 0))

    def _start_maintenance(
        self, command: cmd.StartMaintenance, role: str, outcome: _Outcome,
    ) -> None:
        record = self._repo.load_maintenance(command.record_id)
        _check_version("maintenance", record, command.expected_version)
        asset = self._repo.load_asset(record.asset_id)
        held = _require(self._assets.start_maintenance(asset, role))
        started = _require(self._maintenance.start(
            record, role, self._today(command.started_on),
        ))

        saved_asset = self._save_asset(outcome, held, asset.version)
        outcome.saved(self._repo.save_maintenance(started, record.version))
        outcome.notify(self._asset_notice(
            saved_asset,
            "maintenance_started",
            maintenance_id=started.id,
            maintenance_type=started.maintenance_type.value,
            vendor=started.vendor,
        ))

    def _complete_maintenance(
        self, command: cmd.CompleteMaintenance, role: str, outcome: _Outcome,
    ) -> None:
        record = self._repo.load_maintenance(command.record_id)
        _check_version("maintenance", record, command.expected_version)
        asset = self._repo.load_asset(record.asset_id)
        completed = _require(self._maintenance.complete(
            record, role, self._today(command.completed_on), command.actual_cost,
        ))
        resumed = _require(self._assets.complete_maintenance(asset, role))

        saved_asset = self._save_asset(outcome, resumed, asset.version)
        outcome.saved(self._repo.save_maintenance(completed, record.version))
        outcome.notify(self._asset_notice(
            saved_asset,
            "maintenance_completed",
            maintenance_id=completed.id,
            actual_cost=completed.actual_cost,
        ))

    def _cancel_maintenance(
        self, command: cmd.CancelMaintenance, role: str, outcome: _Outcome,
    ) -> None:
        record = self._repo.load_maintenance(command.record_id)
        _check_version("maintenance", record, command.expected_version)
        cancelled = _require(self._maintenance.cancel(record, role))
        outcome.saved(self._repo.save_maintenance(cancelled, record.version))

    # ------------------------------------------------------------------
    # Disposal
    # ------------------------------------------------------------------

    def _initiate_disposal(
        self, command: cmd.InitiateDisposal, role: str, outcome: _Outcome,
    ) -> None:
        asset = self._repo.load_asset(command.asset_id)
        _check_version("asset", asset, command.expected_version)
        open_request = self._repo.open_disposal_for(asset.id)
        pending = _require(self._assets.initiate_disposal(
            asset, role, open_request.id if open_request else None,
        ))
        draft = DisposalRequest(
            id=self._id_factory(DISPOSAL_PREFIX),
            asset_id=asset.id,
            reason=command.reason,
            disposal_method=command.disposal_method,
            estimated_value=command.estimated_value,
            salvage_value=command.salvage_value,
            requested_by=command.requested_by,
            request_date=self._today(command.request_date),
            description=command.description,
        )
        request = _require(self._disposals.initiate(draft, role))

        self._save_asset(outcome, pending, asset.version)
        saved = outcome.saved(self._repo.save_disposal(request, 0))
        outcome.notify(NotificationIntent.to_role(
            Role.FINANCE.value,
            "disposal_initiated",
            disposal_id=saved.id,
            asset_id=asset.id,
            reason=saved.reason.value,
            estimated_value=saved.estimated_value,
        ))

    def _approve_disposal(
        self, command: cmd.ApproveDisposal, role: str, outcome: _Outcome,
    ) -> None:
        request = self._repo.load_disposal(command.disposal_id)
        _check_version("disposal", request, command.expected_version)
        result = self._disposals.approve(request, role, self._clock.today(), command.comment)
        updated = _require(result)
        saved = outcome.saved(self._repo.save_disposal(updated, request.version))
        if result.approval_pending:
            outcome.approval_pending = True
            return
        outcome.notify(NotificationIntent.to_role(
            Role.DISPOSAL_OFFICER.value,
            "disposal_approved",
            disposal_id=saved.id,
            asset_id=saved.asset_id,
            disposal_method=saved.disposal_method.value,
        ))

    def _reject_disposal(
        self, command: cmd.RejectDisposal, role: str, outcome: _Outcome,
    ) -> None:
        request = self._repo.load_disposal(command.disposal_id)
        _check_version("disposal", request, command.expected_version)
        asset = self._repo.load_asset(request.asset_id)
        rejected = _require(self._disposals.reject(
            request, role, self._clock.today(), command.reason,
        ))
        resumed = _require(self._assets.reject_disposal(asset, role))

        self._save_asset(outcome, resumed, asset.version)
        saved = outcome.saved(self._repo.save_disposal(rejected, request.version))
        outcome.notify(NotificationIntent.to_recipient(
            saved.requested_by,
            "disposal_rejected",
            disposal_id=saved.id,
            asset_id=saved.asset_id,
            reason=command.reason,
        ))

    def _complete_disposal(
        self, command: cmd.CompleteDisposal, role: str, outcome: _Outcome,
    ) -> None:
        request = self._repo.load_disposal(command.disposal_id)
        _check_version("disposal", request, command.expected_version)
        asset = self._repo.load_asset(request.asset_id)
        completed_on = self._today(command.completed_on)

        retired = _require(self._assets.retire(asset, role))
        in_progress = any(
            r.status == MaintenanceStatus.IN_PROGRESS
            for r in self._repo.maintenance_for(asset.id)
        )
        book_value = compute_book_value(asset.basis, completed_on).book_value
        completed = _require(self._disposals.complete(
            request,
            role,
            completed_on=completed_on,
            book_value_at_disposal=book_value,
            proceeds=command.proceeds,
            maintenance_in_progress=in_progress,
        ))
        active = self._repo.active_allocation_for(asset.id)
        released = (
            _require(self._allocations.release(active, role, completed_on))
            if active is not None else None
        )

        retired, entry = self._revalue(retired, completed_on, ValuationTrigger.RETIREMENT, role)
        self._save_asset(outcome, retired, asset.version, entry)
        saved = outcome.saved(self._repo.save_disposal(completed, request.version))
        if released is not None:
            outcome.saved(self._repo.save_allocation(released, active.version))

        outcome.notify(NotificationIntent.to_recipient(
            saved.requested_by,
            "disposal_completed",
            disposal_id=saved.id,
            asset_id=asset.id,
            book_value_at_disposal=saved.book_value_at_disposal,
            proceeds=saved.proceeds,
            gain_loss=saved.gain_loss,
        ))
        outcome.notify(NotificationIntent.to_role(
            Role.ASSET_MANAGER.value,
            "asset_retired",
            asset_id=asset.id,
            asset_name=asset.name,
            retired_on=completed_on,
        ))
