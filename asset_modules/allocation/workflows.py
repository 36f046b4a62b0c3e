"""
Allocation Workflows.

State machine for allocation records.  Records are created Active; every
way out ends in Returned.
"""

from asset_kernel.domain.errors import ErrorCode
from asset_kernel.domain.workflow import Guard, Transition, Workflow
from asset_kernel.logging_config import get_logger

logger = get_logger("modules.allocation.workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

TEMPORARY_ALLOCATION = Guard(
    name="temporary_allocation",
    description=(
        "Only Temporary allocations are checked in; "
        "Permanent allocations end by transfer or retirement"
    ),
)

ASSIGNEE_CHANGES = Guard(
    name="assignee_changes",
    description="Transfer requires a new assignee different from the current one",
    failure_code=ErrorCode.VALIDATION_ERROR,
)

logger.info(
    "allocation_workflow_guards_defined",
    extra={
        "guards": [
            TEMPORARY_ALLOCATION.name,
            ASSIGNEE_CHANGES.name,
        ],
    },
)


# -----------------------------------------------------------------------------
# Allocation Workflow
# -----------------------------------------------------------------------------

ALLOCATION_WORKFLOW = Workflow(
    name="allocation",
    description="Asset allocation record lifecycle",
    initial_state="Active",
    states=("Active", "Returned"),
    transitions=(
        Transition("Active", "Returned", action="check_in", guard=TEMPORARY_ALLOCATION),
        Transition("Active", "Returned", action="transfer", guard=ASSIGNEE_CHANGES),
        Transition("Active", "Returned", action="release"),
    ),
    terminal_states=("Returned",),
)

logger.info(
    "allocation_workflow_registered",
    extra={
        "workflow_name": ALLOCATION_WORKFLOW.name,
        "state_count": len(ALLOCATION_WORKFLOW.states),
        "transition_count": len(ALLOCATION_WORKFLOW.transitions),
        "initial_state": ALLOCATION_WORKFLOW.initial_state,
    },
)
