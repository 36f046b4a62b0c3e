"""
Structural checks on the declared workflows.

The Workflow constructor rejects malformed definitions; these tests pin
the shape each module relies on.
"""

import pytest

from asset_kernel.domain.workflow import Transition, Workflow
from asset_modules.allocation.workflows import ALLOCATION_WORKFLOW
from asset_modules.assets.workflows import ASSET_WORKFLOW
from asset_modules.disposal.workflows import DISPOSAL_WORKFLOW
from asset_modules.maintenance.workflows import MAINTENANCE_WORKFLOW
from asset_modules.procurement.workflows import PROCUREMENT_WORKFLOW

ALL_WORKFLOWS = [
    ASSET_WORKFLOW,
    ALLOCATION_WORKFLOW,
    MAINTENANCE_WORKFLOW,
    DISPOSAL_WORKFLOW,
    PROCUREMENT_WORKFLOW,
]


class TestWorkflowShape:

    @pytest.mark.parametrize("workflow", ALL_WORKFLOWS, ids=lambda w: w.name)
    def test_action_is_unique_per_state(self, workflow):
        pairs = [(t.from_state, t.action) for t in workflow.transitions]
        assert len(pairs) == len(set(pairs))

    @pytest.mark.parametrize("workflow", ALL_WORKFLOWS, ids=lambda w: w.name)
    def test_terminal_states_have_no_actions(self, workflow):
        for state in workflow.terminal_states:
            assert workflow.actions_from(state) == ()

    @pytest.mark.parametrize("workflow", ALL_WORKFLOWS, ids=lambda w: w.name)
    def test_every_non_terminal_state_has_an_exit(self, workflow):
        for state in workflow.states:
            if not workflow.is_terminal(state):
                assert workflow.actions_from(state), state

    def test_only_approve_transitions_are_approval_gated(self):
        gated = [
            (w.name, t.action)
            for w in ALL_WORKFLOWS
            for t in w.transitions
            if t.requires_approval
        ]
        assert sorted(gated) == [("disposal", "approve"), ("procurement", "approve")]


class TestAssetWorkflow:

    def test_retired_is_the_only_terminal_state(self):
        assert ASSET_WORKFLOW.terminal_states == ("Retired",)

    def test_resume_transitions(self):
        restoring = {
            t.action for t in ASSET_WORKFLOW.transitions if t.restores_resume_state
        }
        assert restoring == {"complete_maintenance", "reject_disposal"}

    def test_excursions_record_resume_state(self):
        recording = {
            (t.action, t.to_state)
            for t in ASSET_WORKFLOW.transitions
            if t.records_resume_state
        }
        assert recording == {
            ("start_maintenance", "UnderMaintenance"),
            ("initiate_disposal", "PendingDisposal"),
        }

    def test_retire_only_from_pending_disposal(self):
        sources = [t.from_state for t in ASSET_WORKFLOW.transitions if t.action == "retire"]
        assert sources == ["PendingDisposal"]

    def test_revalue_allowed_in_every_live_state(self):
        for state in ASSET_WORKFLOW.states:
            has_revalue = ASSET_WORKFLOW.transition_for(state, "revalue") is not None
            assert has_revalue is (state != "Retired")


class TestWorkflowConstruction:

    def test_unknown_state_rejected(self):
        with pytest.raises(ValueError, match="unknown state"):
            Workflow(
                name="broken",
                description="",
                initial_state="A",
                states=("A",),
                transitions=(Transition("A", "B", action="go"),),
            )

    def test_terminal_state_with_exit_rejected(self):
        with pytest.raises(ValueError, match="terminal state"):
            Workflow(
                name="broken",
                description="",
                initial_state="A",
                states=("A", "B"),
                transitions=(Transition("B", "A", action="undo"),),
                terminal_states=("B",),
            )

    def test_restore_without_recording_transition_rejected(self):
        with pytest.raises(ValueError, match="no transition into 'B' records"):
            Workflow(
                name="broken",
                description="",
                initial_state="A",
                states=("A", "B"),
                transitions=(
                    Transition("A", "B", action="hold"),
                    Transition("B", None, action="release"),
                ),
            )

    def test_restore_after_recording_transition_accepted(self):
        workflow = Workflow(
            name="excursion",
            description="",
            initial_state="A",
            states=("A", "B"),
            transitions=(
                Transition("A", "B", action="hold", records_resume_state=True),
                Transition("B", None, action="release"),
            ),
        )
        assert workflow.transition_for("B", "release").restores_resume_state
