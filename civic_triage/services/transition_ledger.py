"""
Transition Ledger - idempotent trust credits and penalties per report.

DESIGN PRINCIPLES:
- Pure computation; the store persists the outcome in one transaction
- The ledger state is what has been applied so far, so re-applying the same
  transition finds nothing owed and changes nothing
- Credits and penalties are reversed only when LEAVING the state that
  earned them, never just because the ledger holds one
- Every score step is exactly +1, -1, +2 or -2

Rules:
1. New status negative (Invalid):
   - reverse an outstanding credit (-1)
   - apply the penalty if not yet applied (-2)
2. Leaving Invalid with a penalty outstanding: reverse it (+2)
3. New status positive (In Progress, Resolved): apply the credit if nothing is owed (+1)
4. Leaving a positive status for a neutral one with a credit outstanding: reverse it (-1)
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from civic_triage.models.trust import LedgerState
from civic_triage.services.status_workflow import StatusClass, StatusWorkflowEngine


class LedgerStep(str, Enum):
    CREDIT_APPLIED = "CREDIT_APPLIED"
    CREDIT_REVERSED = "CREDIT_REVERSED"
    PENALTY_APPLIED = "PENALTY_APPLIED"
    PENALTY_REVERSED = "PENALTY_REVERSED"

    @property
    def delta(self) -> int:
        return _STEP_DELTAS[self]


_STEP_DELTAS = {
    LedgerStep.CREDIT_APPLIED: 1,
    LedgerStep.CREDIT_REVERSED: -1,
    LedgerStep.PENALTY_APPLIED: -2,
    LedgerStep.PENALTY_REVERSED: 2,
}


class LedgerOutcome(BaseModel):
    """New ledger state and the score steps that produced it."""
    state: LedgerState
    steps: List[LedgerStep] = Field(default_factory=list)

    @property
    def score_delta(self) -> int:
        return sum(step.delta for step in self.steps)

    @property
    def changed(self) -> bool:
        return bool(self.steps)


def apply_transition(
    previous_status: Optional[str],
    new_status: Optional[str],
    state: LedgerState,
    has_owner: bool = True
) -> LedgerOutcome:
    """
    Compute the ledger outcome of one status change.

    Args:
        previous_status: Status before the change
        new_status: Status after the change
        state: Ledger state before the change
        has_owner: False for anonymous reports, which never touch the ledger

    Returns:
        LedgerOutcome with the new state and the applied steps
    """
    state = LedgerState(state)
    if not has_owner:
        return LedgerOutcome(state=state)

    was = StatusWorkflowEngine.classify(previous_status)
    now = StatusWorkflowEngine.classify(new_status)
    steps: List[LedgerStep] = []

    if now is StatusClass.NEGATIVE:
        if state is LedgerState.CREDIT_APPLIED:
            steps.append(LedgerStep.CREDIT_REVERSED)
            state = LedgerState.NONE
        if state is not LedgerState.PENALTY_APPLIED:
            steps.append(LedgerStep.PENALTY_APPLIED)
            state = LedgerState.PENALTY_APPLIED
        return LedgerOutcome(state=state, steps=steps)

    if state is LedgerState.PENALTY_APPLIED and was is StatusClass.NEGATIVE:
        steps.append(LedgerStep.PENALTY_REVERSED)
        state = LedgerState.NONE

    if now is StatusClass.POSITIVE:
        # A penalty still outstanding here was not earned by the previous
        # status; it stays, and no credit is stacked on top of it.
        if state is LedgerState.NONE:
            steps.append(LedgerStep.CREDIT_APPLIED)
            state = LedgerState.CREDIT_APPLIED
        return LedgerOutcome(state=state, steps=steps)

    if state is LedgerState.CREDIT_APPLIED and was is StatusClass.POSITIVE:
        steps.append(LedgerStep.CREDIT_REVERSED)
        state = LedgerState.NONE

    return LedgerOutcome(state=state, steps=steps)
