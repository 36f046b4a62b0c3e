"""
asset_services.workflow_executor -- Workflow transition execution.

Responsibility:
    Executes state transitions with capability enforcement, guard
    evaluation and approval gate enforcement.  Thin coordinator --
    delegates role checks to the rbac_authority gate, rule evaluation to
    the pure approval engine, and guard evaluation to GuardExecutor.
    Never mutates an entity: it decides the target state and the module
    state machine builds the updated record.

Architecture position:
    Services layer.  May import from asset_engines/ (pure engines)
    and asset_kernel/ (domain, logging).

Invariants enforced:
    - Every transition is authorized before anything else is examined;
      a denied role learns nothing about entity state.
    - Rule ordering delegated to engine (select_matching_rule).
    - Role diversity delegated to engine (evaluate_approval_status).
    - A role that already approved a request cannot approve it again.
    - Every outcome (success or failure) emits one ``workflow_transition``
      trace record.
"""

from __future__ import annotations

import time
from decimal import Decimal
from typing import Any, Callable

from asset_engines.approval import (
    evaluate_approval_requirement,
    evaluate_approval_status,
    has_already_approved,
    validate_actor_authority,
)
from asset_kernel.domain.approval import ApprovalDecisionRecord, ApprovalPolicy
from asset_kernel.domain.clock import Clock, SystemClock
from asset_kernel.domain.errors import ErrorCode, LifecycleError
from asset_kernel.domain.workflow import Guard, TransitionResult, Workflow
from asset_kernel.logging_config import LogContext, get_logger
from asset_services.rbac_authority import Role, authorize, get_operation_for_transition

logger = get_logger("services.workflow_executor")

# Trace message and outcome codes for structured logging and traceability
TRACE_TYPE_WORKFLOW_TRANSITION = "WORKFLOW_TRANSITION"
OUTCOME_SUCCESS = "success"
OUTCOME_DENIED = "denied"
OUTCOME_PRECHECK_FAILED = "precheck_failed"
OUTCOME_GUARD_FAILED = "guard_failed"
OUTCOME_NO_TRANSITION = "no_transition"
OUTCOME_APPROVAL_PENDING = "approval_pending"
OUTCOME_APPROVER_REJECTED = "approver_rejected"

Precheck = Callable[[], "LifecycleError | None"]


def _emit_workflow_trace(
    timestamp: str,
    workflow_name: str,
    action: str,
    entity_type: str,
    entity_id: str,
    from_state: str,
    outcome: str,
    reason: str,
    duration_ms: float,
    actor_role: str,
    to_state: str | None = None,
    outcome_sink: Callable[[dict], None] | None = None,
) -> None:
    """Emit a structured workflow transition record for traceability and lookback."""
    record: dict[str, Any] = {
        "trace_type": TRACE_TYPE_WORKFLOW_TRANSITION,
        "ts": timestamp,
        "workflow": workflow_name,
        "action": action,
        "entity_type": entity_type,
        "entity_id": entity_id,
        "from_state": from_state,
        "outcome": outcome,
        "reason": reason,
        "duration_ms": round(duration_ms, 3),
    }
    if to_state is not None:
        record["to_state"] = to_state
    record = {**LogContext.get_all(), **record, "actor_role": actor_role}
    logger.info("workflow_transition", extra=record)
    # Sink consumers expect the event name alongside the fields
    record["message"] = "workflow_transition"
    if outcome_sink is not None:
        outcome_sink(record)


# ---------------------------------------------------------------------------
# Guard evaluation (business-rule guards on transitions)
# ---------------------------------------------------------------------------


def _get_attr(context: Any, key: str, default: Any = None) -> Any:
    """Get attribute from context (object or dict)."""
    if context is None:
        return default
    if hasattr(context, "get") and callable(getattr(context, "get")):
        return context.get(key, default)
    return getattr(context, key, default)


def _temporary_allocation(context: Any) -> bool:
    """Allocation check-in: only Temporary allocations are returned by check-in."""
    kind = _get_attr(context, "allocation_type")
    return str(getattr(kind, "value", kind)) == "Temporary"


def _assignee_changes(context: Any) -> bool:
    """Transfer: the new assignee must differ from the current one."""
    current = _get_attr(context, "assignee")
    new = _get_attr(context, "new_assignee")
    if not new:
        return False
    return str(new).strip() != str(current or "").strip()


def _no_maintenance_in_progress(context: Any) -> bool:
    """Disposal completion: the asset may not be held in maintenance."""
    return not bool(_get_attr(context, "maintenance_in_progress", False))


def _actual_cost_recorded(context: Any) -> bool:
    """Maintenance completion: actual cost, when given, is non-negative."""
    cost = _get_attr(context, "actual_cost")
    if cost is None:
        return True
    return isinstance(cost, Decimal) and cost >= 0


class GuardExecutor:
    """Evaluates workflow guards against context.

    Guards are declared on transitions (name + description). This executor
    holds the actual evaluation logic per guard name and is called by
    WorkflowExecutor before allowing a transition.
    """

    def __init__(self) -> None:
        self._evaluators: dict[str, Callable[[Any], bool]] = {}

    def register(self, guard_name: str, evaluator: Callable[[Any], bool]) -> None:
        """Register an evaluator for a guard by name."""
        self._evaluators[guard_name] = evaluator

    def evaluate(self, guard: Guard, context: Any = None) -> bool:
        """Evaluate a guard against context. Returns True if guard passes."""
        fn = self._evaluators.get(guard.name)
        if fn is None:
            logger.warning(
                "guard_no_evaluator",
                extra={"guard_name": guard.name},
            )
            return False
        return bool(fn(context))


def default_guard_executor() -> GuardExecutor:
    """Return a GuardExecutor with built-in evaluators registered."""
    ex = GuardExecutor()
    ex.register("temporary_allocation", _temporary_allocation)
    ex.register("assignee_changes", _assignee_changes)
    ex.register("no_maintenance_in_progress", _no_maintenance_in_progress)
    ex.register("actual_cost_recorded", _actual_cost_recorded)
    return ex


# ---------------------------------------------------------------------------
# WorkflowExecutor
# ---------------------------------------------------------------------------


class WorkflowExecutor:
    """Executes workflow transitions with capability, guard and approval enforcement.

    Thin coordinator -- delegates authorization to the rbac gate, approval
    rules to the approval engine and guards to GuardExecutor.
    """

    def __init__(
        self,
        approval_policies: dict[str, ApprovalPolicy] | None = None,
        clock: Clock | None = None,
        guard_executor: GuardExecutor | None = None,
    ) -> None:
        self._policies = approval_policies or {}
        self._clock = clock or SystemClock()
        self._guard_executor = guard_executor or default_guard_executor()

    @property
    def clock(self) -> Clock:
        return self._clock

    def execute_transition(
        self,
        workflow: Workflow,
        entity_type: str,
        entity_id: str,
        current_state: str,
        action: str,
        actor_role: Role | str,
        context: dict[str, Any] | None = None,
        resume_state: str | None = None,
        precheck: Precheck | None = None,
        amount: Decimal | None = None,
        approvals: tuple[ApprovalDecisionRecord, ...] = (),
        decision: ApprovalDecisionRecord | None = None,
        outcome_sink: Callable[[dict], None] | None = None,
    ) -> TransitionResult:
        """Decide a state transition.

        Order: capability check, caller precheck (terminal entity,
        uniqueness), transition lookup, guard, resume-state resolution,
        approval gate.  The first failure is returned as a typed
        ``LifecycleError``; nothing is raised for business-rule failures.

        For transitions that require approval, ``decision`` is the approval
        being recorded now and ``approvals`` those already on the request.
        When the matched rule is not yet satisfied the result succeeds with
        ``approval_pending=True`` and ``new_state == current_state``.

        Raises:
            ValueError: if (workflow, action) has no guarding operation, or
                an approval transition is executed without a decision.
        """
        t0 = time.monotonic()
        role = actor_role.value if isinstance(actor_role, Role) else str(actor_role)

        def finish(
            outcome: str,
            reason: str,
            error: LifecycleError | None = None,
            new_state: str | None = None,
            approval_pending: bool = False,
        ) -> TransitionResult:
            _emit_workflow_trace(
                timestamp=self._clock.now().isoformat(),
                workflow_name=workflow.name,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                from_state=current_state,
                outcome=outcome,
                reason=reason,
                duration_ms=(time.monotonic() - t0) * 1000,
                actor_role=role,
                to_state=new_state,
                outcome_sink=outcome_sink,
            )
            return TransitionResult(
                success=error is None,
                action=action,
                from_state=current_state,
                new_state=new_state,
                error=error,
                approval_pending=approval_pending,
            )

        # 1. Capability check
        operation = get_operation_for_transition(workflow.name, action)
        if operation is None:
            raise ValueError(
                f"No operation guards action '{action}' in workflow '{workflow.name}'"
            )
        auth = authorize(actor_role, operation)
        if not auth.allowed:
            error = LifecycleError.insufficient_role(role, operation.value)
            return finish(OUTCOME_DENIED, error.message, error)

        # 2. Caller precheck (terminal entity, uniqueness invariants)
        if precheck is not None:
            error = precheck()
            if error is not None:
                return finish(OUTCOME_PRECHECK_FAILED, error.message, error)

        # 3. Find the matching transition in the workflow
        transition = workflow.transition_for(current_state, action)
        if transition is None:
            error = LifecycleError.invalid_transition(
                entity_type, entity_id, current_state, action,
            )
            return finish(OUTCOME_NO_TRANSITION, error.message, error)

        # 4. Evaluate guard if present
        guard = transition.guard
        if guard is not None and not self._guard_executor.evaluate(guard, context or {}):
            code = guard.failure_code or ErrorCode.INVALID_STATE_TRANSITION
            if code == ErrorCode.INVALID_STATE_TRANSITION:
                error = LifecycleError.invalid_transition(
                    entity_type, entity_id, current_state, action, guard.description,
                )
            else:
                error = LifecycleError(
                    code=code,
                    message=guard.description,
                    entity_type=entity_type,
                    entity_id=entity_id,
                    details={"guard": guard.name, "state": current_state, "action": action},
                )
            return finish(OUTCOME_GUARD_FAILED, f"Guard not satisfied: {guard.name}", error)

        # 5. Resolve the target state
        target = transition.to_state
        if transition.restores_resume_state:
            if resume_state is None:
                error = LifecycleError.invalid_transition(
                    entity_type, entity_id, current_state, action,
                    "no resume state recorded",
                )
                return finish(OUTCOME_NO_TRANSITION, error.message, error)
            target = resume_state

        # 6. Approval gate
        if transition.requires_approval:
            return self._apply_approval(
                workflow, entity_type, entity_id, current_state, target,
                role, amount, context, approvals, decision, finish,
            )

        return finish(OUTCOME_SUCCESS, "transition allowed", new_state=target)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _apply_approval(
        self,
        workflow: Workflow,
        entity_type: str,
        entity_id: str,
        current_state: str,
        target: str,
        role: str,
        amount: Decimal | None,
        context: dict[str, Any] | None,
        approvals: tuple[ApprovalDecisionRecord, ...],
        decision: ApprovalDecisionRecord | None,
        finish: Callable[..., TransitionResult],
    ) -> TransitionResult:
        if decision is None:
            raise ValueError(
                f"Approval transition in workflow '{workflow.name}' requires a decision"
            )

        policy = self._policies.get(workflow.name)
        requirement = evaluate_approval_requirement(policy, amount, context)
        rule = requirement.matched_rule

        if not validate_actor_authority(role, rule):
            error = LifecycleError(
                code=ErrorCode.INSUFFICIENT_ROLE,
                message=(
                    f"Role '{role}' is not an approver under rule "
                    f"'{rule.rule_name}'"
                ),
                entity_type=entity_type,
                entity_id=entity_id,
                details={
                    "role": role,
                    "rule": rule.rule_name,
                    "required_roles": list(rule.required_roles),
                },
            )
            return finish(OUTCOME_APPROVER_REJECTED, error.message, error)

        if has_already_approved(role, approvals):
            error = LifecycleError.validation(
                (f"role '{role}' has already approved {entity_type} {entity_id}",),
                entity_type=entity_type,
                entity_id=entity_id,
            )
            return finish(OUTCOME_APPROVER_REJECTED, error.message, error)

        status = evaluate_approval_status(rule, approvals + (decision,), amount)
        if status.is_approved:
            return finish(OUTCOME_SUCCESS, status.reason, new_state=target)
        return finish(
            OUTCOME_APPROVAL_PENDING,
            status.reason,
            new_state=current_state,
            approval_pending=True,
        )
