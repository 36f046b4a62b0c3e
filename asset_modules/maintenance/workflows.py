"""
Maintenance Workflows.

State machine for maintenance records.
"""

from asset_kernel.domain.errors import ErrorCode
from asset_kernel.domain.workflow import Guard, Transition, Workflow
from asset_kernel.logging_config import get_logger

logger = get_logger("modules.maintenance.workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

ACTUAL_COST_RECORDED = Guard(
    name="actual_cost_recorded",
    description="Actual cost must be a non-negative Decimal when recorded",
    failure_code=ErrorCode.VALIDATION_ERROR,
)

logger.info(
    "maintenance_workflow_guards_defined",
    extra={"guards": [ACTUAL_COST_RECORDED.name]},
)


# -----------------------------------------------------------------------------
# Maintenance Workflow
# -----------------------------------------------------------------------------

MAINTENANCE_WORKFLOW = Workflow(
    name="maintenance",
    description="Maintenance work order lifecycle",
    initial_state="Scheduled",
    states=("Scheduled", "InProgress", "Completed", "Cancelled"),
    transitions=(
        Transition("Scheduled", "InProgress", action="start"),
        Transition("InProgress", "Completed", action="complete", guard=ACTUAL_COST_RECORDED),
        Transition("Scheduled", "Cancelled", action="cancel"),
    ),
    terminal_states=("Completed", "Cancelled"),
)

logger.info(
    "maintenance_workflow_registered",
    extra={
        "workflow_name": MAINTENANCE_WORKFLOW.name,
        "state_count": len(MAINTENANCE_WORKFLOW.states),
        "transition_count": len(MAINTENANCE_WORKFLOW.transitions),
        "initial_state": MAINTENANCE_WORKFLOW.initial_state,
    },
)
