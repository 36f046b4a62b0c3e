"""
Disposal Workflows.

State machine for disposal requests.  Approval is multi-stage: ``approve``
stays in PendingApproval until the matched approval rule is satisfied.
"""

from asset_kernel.domain.workflow import Guard, Transition, Workflow
from asset_kernel.logging_config import get_logger

logger = get_logger("modules.disposal.workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

NO_MAINTENANCE_IN_PROGRESS = Guard(
    name="no_maintenance_in_progress",
    description="Asset has maintenance in progress",
)

logger.info(
    "disposal_workflow_guards_defined",
    extra={"guards": [NO_MAINTENANCE_IN_PROGRESS.name]},
)


# -----------------------------------------------------------------------------
# Disposal Workflow
# -----------------------------------------------------------------------------

DISPOSAL_WORKFLOW = Workflow(
    name="disposal",
    description="Disposal request lifecycle",
    initial_state="PendingApproval",
    states=("PendingApproval", "Approved", "Completed", "Rejected"),
    transitions=(
        Transition("PendingApproval", "Approved", action="approve", requires_approval=True),
        Transition("PendingApproval", "Rejected", action="reject"),
        Transition("Approved", "Rejected", action="reject"),
        Transition("Approved", "Completed", action="complete", guard=NO_MAINTENANCE_IN_PROGRESS),
    ),
    terminal_states=("Completed", "Rejected"),
)

logger.info(
    "disposal_workflow_registered",
    extra={
        "workflow_name": DISPOSAL_WORKFLOW.name,
        "state_count": len(DISPOSAL_WORKFLOW.states),
        "transition_count": len(DISPOSAL_WORKFLOW.transitions),
        "initial_state": DISPOSAL_WORKFLOW.initial_state,
    },
)
