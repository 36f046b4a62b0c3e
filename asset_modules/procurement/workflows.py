"""
Procurement Workflows.

State machine for procurement requests.  Approval is multi-stage: ``approve``
stays in PendingApproval until the matched approval rule is satisfied.
"""

from asset_kernel.domain.workflow import Transition, Workflow
from asset_kernel.logging_config import get_logger

logger = get_logger("modules.procurement.workflows")


# -----------------------------------------------------------------------------
# Procurement Workflow
# -----------------------------------------------------------------------------

PROCUREMENT_WORKFLOW = Workflow(
    name="procurement",
    description="Procurement request lifecycle",
    initial_state="PendingApproval",
    states=("PendingApproval", "Approved", "InProcurement", "Completed", "Rejected"),
    transitions=(
        Transition("PendingApproval", "Approved", action="approve", requires_approval=True),
        Transition("PendingApproval", "Rejected", action="reject"),
        Transition("Approved", "Rejected", action="reject"),
        Transition("Approved", "InProcurement", action="mark_in_procurement"),
        Transition("InProcurement", "Completed", action="complete"),
    ),
    terminal_states=("Completed", "Rejected"),
)

logger.info(
    "procurement_workflow_registered",
    extra={
        "workflow_name": PROCUREMENT_WORKFLOW.name,
        "state_count": len(PROCUREMENT_WORKFLOW.states),
        "transition_count": len(PROCUREMENT_WORKFLOW.transitions),
        "initial_state": PROCUREMENT_WORKFLOW.initial_state,
    },
)
