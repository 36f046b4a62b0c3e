"""
Asset Workflows.

State machine for the asset lifecycle.  Self-loop transitions cover edits
that leave the status unchanged (reassignment, financial updates,
revaluation) so that they are capability-checked and refused on Retired
assets like every other change.
"""

from asset_kernel.domain.workflow import Transition, Workflow
from asset_kernel.logging_config import get_logger

logger = get_logger("modules.assets.workflows")

ACTIVE = "Active"
ALLOCATED = "Allocated"
UNDER_MAINTENANCE = "UnderMaintenance"
PENDING_DISPOSAL = "PendingDisposal"
RETIRED = "Retired"

_NON_TERMINAL = (ACTIVE, ALLOCATED, UNDER_MAINTENANCE, PENDING_DISPOSAL)


# -----------------------------------------------------------------------------
# Asset Workflow
# -----------------------------------------------------------------------------

ASSET_WORKFLOW = Workflow(
    name="asset",
    description="Asset lifecycle",
    initial_state=ACTIVE,
    states=(ACTIVE, ALLOCATED, UNDER_MAINTENANCE, PENDING_DISPOSAL, RETIRED),
    transitions=(
        Transition(ACTIVE, ALLOCATED, action="allocate"),
        Transition(ALLOCATED, ACTIVE, action="check_in"),
        # Allocation ends while the asset is away: only the resume state changes
        Transition(UNDER_MAINTENANCE, UNDER_MAINTENANCE, action="check_in"),
        Transition(PENDING_DISPOSAL, PENDING_DISPOSAL, action="check_in"),
        Transition(ALLOCATED, ALLOCATED, action="reassign"),
        Transition(UNDER_MAINTENANCE, UNDER_MAINTENANCE, action="reassign"),
        Transition(PENDING_DISPOSAL, PENDING_DISPOSAL, action="reassign"),
        Transition(ACTIVE, UNDER_MAINTENANCE, action="start_maintenance", records_resume_state=True),
        Transition(ALLOCATED, UNDER_MAINTENANCE, action="start_maintenance", records_resume_state=True),
        Transition(UNDER_MAINTENANCE, None, action="complete_maintenance"),
        Transition(PENDING_DISPOSAL, PENDING_DISPOSAL, action="complete_maintenance"),
        Transition(ACTIVE, PENDING_DISPOSAL, action="initiate_disposal", records_resume_state=True),
        Transition(ALLOCATED, PENDING_DISPOSAL, action="initiate_disposal", records_resume_state=True),
        Transition(UNDER_MAINTENANCE, PENDING_DISPOSAL, action="initiate_disposal", records_resume_state=True),
        Transition(PENDING_DISPOSAL, None, action="reject_disposal"),
        Transition(PENDING_DISPOSAL, RETIRED, action="retire"),
        *(Transition(s, s, action="update_financials") for s in _NON_TERMINAL),
        *(Transition(s, s, action="revalue") for s in _NON_TERMINAL),
    ),
    terminal_states=(RETIRED,),
)

logger.info(
    "asset_workflow_registered",
    extra={
        "workflow_name": ASSET_WORKFLOW.name,
        "state_count": len(ASSET_WORKFLOW.states),
        "transition_count": len(ASSET_WORKFLOW.transitions),
        "initial_state": ASSET_WORKFLOW.initial_state,
    },
)
