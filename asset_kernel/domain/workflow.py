"""
Canonical workflow types (``asset_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for the lifecycle state machines.  Used by every module
(assets, allocation, maintenance, disposal, procurement) so that Guard,
Transition, Workflow and TransitionResult are defined once.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, services, or outer layers.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* ``terminal_states`` have no outgoing transitions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from asset_kernel.domain.errors import ErrorCode, LifecycleError


@dataclass(frozen=True)
class Guard:
    """A condition that must be satisfied before a transition fires.

    Contract: frozen, descriptive only.
    ``failure_code`` is the error reported when the guard fails
    (InvalidStateTransition when unset).

    Non-goals: does not evaluate the condition -- the workflow executor does.
    """
    name: str
    description: str
    failure_code: ErrorCode | None = None


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow.

    ``to_state=None`` means the transition restores the resume state the
    entity recorded when it entered ``from_state``; ``records_resume_state``
    marks the transitions that record it.  ``requires_approval``
    routes the action through the approval engine before it fires.
    """
    from_state: str
    to_state: str | None
    action: str
    guard: Guard | None = None
    records_resume_state: bool = False
    requires_approval: bool = False

    @property
    def restores_resume_state(self) -> bool:
        return self.to_state is None


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for an entity lifecycle.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"Workflow '{self.name}': initial state '{self.initial_state}' "
                "is not a declared state"
            )
        for t in self.transitions:
            targets = (t.from_state,) if t.to_state is None else (t.from_state, t.to_state)
            for state in targets:
                if state not in self.states:
                    raise ValueError(
                        f"Workflow '{self.name}': transition '{t.action}' "
                        f"references unknown state '{state}'"
                    )
            if t.from_state in self.terminal_states:
                raise ValueError(
                    f"Workflow '{self.name}': terminal state '{t.from_state}' "
                    f"has outgoing transition '{t.action}'"
                )
        recorded = {
            t.to_state for t in self.transitions if t.records_resume_state
        }
        for t in self.transitions:
            if t.restores_resume_state and t.from_state not in recorded:
                raise ValueError(
                    f"Workflow '{self.name}': transition '{t.action}' restores a "
                    f"resume state that no transition into '{t.from_state}' records"
                )

    def is_terminal(self, state: str) -> bool:
        return state in self.terminal_states

    def transition_for(self, state: str, action: str) -> Transition | None:
        for t in self.transitions:
            if t.from_state == state and t.action == action:
                return t
        return None

    def actions_from(self, state: str) -> tuple[str, ...]:
        """Actions available from ``state`` in declaration order."""
        seen: list[str] = []
        for t in self.transitions:
            if t.from_state == state and t.action not in seen:
                seen.append(t.action)
        return tuple(seen)


@dataclass(frozen=True)
class TransitionResult:
    """Result of executing a workflow transition.

    On success ``entity`` is the updated entity; on failure it is the
    unchanged input and ``error`` carries the typed reason.
    ``approval_pending`` marks an approve action that was recorded but has
    not yet met its approval rule (the state did not move).
    """

    success: bool
    action: str
    from_state: str | None = None
    new_state: str | None = None
    entity: Any = None
    error: LifecycleError | None = None
    approval_pending: bool = False

    @property
    def is_failure(self) -> bool:
        return not self.success
