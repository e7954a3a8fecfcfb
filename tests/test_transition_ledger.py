"""Tests for the idempotent trust ledger."""

from itertools import product

import pytest

from civic_triage.models.report import ReportStatus
from civic_triage.models.trust import LedgerState
from civic_triage.services.transition_ledger import LedgerStep, apply_transition

STATUSES = [status.value for status in ReportStatus] + ["Escalated"]


def run(sequence, state=LedgerState.NONE):
    """Apply a chain of statuses; return (final state, total score change)."""
    total = 0
    for previous, new in zip(sequence, sequence[1:]):
        outcome = apply_transition(previous, new, state)
        state = outcome.state
        total += outcome.score_delta
    return state, total


@pytest.mark.parametrize("previous, new, state", list(product(STATUSES, STATUSES, list(LedgerState))))
def test_reapplying_a_transition_changes_nothing(previous, new, state):
    first = apply_transition(previous, new, state)
    second = apply_transition(previous, new, first.state)

    assert second.score_delta == 0
    assert second.steps == []
    assert second.state is first.state


@pytest.mark.parametrize("previous, new, state", list(product(STATUSES, STATUSES, list(LedgerState))))
def test_steps_only_use_allowed_magnitudes(previous, new, state):
    outcome = apply_transition(previous, new, state)
    assert all(step.delta in (1, -1, 2, -2) for step in outcome.steps)


def test_resolve_then_reopen_nets_zero():
    outcome = apply_transition("Pending", "Resolved", LedgerState.NONE)
    assert outcome.score_delta == 1
    assert outcome.state.credit_applied

    reopened = apply_transition("Resolved", "Pending", outcome.state)
    assert reopened.score_delta == -1
    assert reopened.state is LedgerState.NONE


@pytest.mark.parametrize("positive", ["In Progress", "Resolved"])
def test_neutral_positive_neutral_returns_to_start(positive):
    state, total = run(["Pending", positive, "Pending"])
    assert total == 0
    assert state is LedgerState.NONE


def test_penalty_then_correction_nets_zero():
    penalized = apply_transition("Pending", "Invalid", LedgerState.NONE)
    assert penalized.score_delta == -2
    assert penalized.state.penalty_applied

    corrected = apply_transition("Invalid", "Pending", penalized.state)
    assert corrected.score_delta == 2
    assert corrected.state is LedgerState.NONE


def test_invalid_twice_penalizes_once():
    first = apply_transition("Pending", "Invalid", LedgerState.NONE)
    second = apply_transition("Invalid", "Invalid", first.state)

    assert second.score_delta == 0
    assert second.state is LedgerState.PENALTY_APPLIED


def test_invalidating_a_credited_report_withdraws_the_credit():
    outcome = apply_transition("Resolved", "Invalid", LedgerState.CREDIT_APPLIED)

    assert outcome.steps == [LedgerStep.CREDIT_REVERSED, LedgerStep.PENALTY_APPLIED]
    assert outcome.score_delta == -3
    assert outcome.state is LedgerState.PENALTY_APPLIED


def test_correcting_invalid_straight_to_resolved():
    outcome = apply_transition("Invalid", "Resolved", LedgerState.PENALTY_APPLIED)

    assert outcome.steps == [LedgerStep.PENALTY_REVERSED, LedgerStep.CREDIT_APPLIED]
    assert outcome.score_delta == 3
    assert outcome.state is LedgerState.CREDIT_APPLIED


def test_in_progress_to_resolved_keeps_single_credit():
    state, total = run(["Pending", "In Progress", "Resolved"])
    assert total == 1
    assert state is LedgerState.CREDIT_APPLIED


def test_credit_is_not_reversed_unless_leaving_positive():
    outcome = apply_transition("Pending", "Cancelled", LedgerState.CREDIT_APPLIED)
    assert outcome.score_delta == 0
    assert outcome.state is LedgerState.CREDIT_APPLIED


def test_penalty_is_not_reversed_unless_leaving_invalid():
    outcome = apply_transition("Pending", "Cancelled", LedgerState.PENALTY_APPLIED)
    assert outcome.score_delta == 0
    assert outcome.state is LedgerState.PENALTY_APPLIED


def test_outstanding_penalty_blocks_credit_when_not_leaving_invalid():
    outcome = apply_transition("Pending", "Resolved", LedgerState.PENALTY_APPLIED)
    assert outcome.steps == []
    assert outcome.state is LedgerState.PENALTY_APPLIED


def test_status_comparison_is_case_insensitive():
    outcome = apply_transition("pending", "RESOLVED", LedgerState.NONE)
    assert outcome.score_delta == 1


def test_unknown_statuses_are_neutral():
    outcome = apply_transition("Resolved", "Escalated", LedgerState.CREDIT_APPLIED)
    assert outcome.score_delta == -1
    assert apply_transition("Pending", "Escalated", LedgerState.NONE).steps == []


def test_anonymous_reports_skip_the_ledger():
    outcome = apply_transition("Pending", "Invalid", LedgerState.NONE, has_owner=False)
    assert outcome.steps == []
    assert outcome.state is LedgerState.NONE


def test_missing_previous_status_is_neutral():
    outcome = apply_transition(None, "Resolved", LedgerState.NONE)
    assert outcome.score_delta == 1


def test_ledger_state_from_legacy_flags():
    assert LedgerState.from_flags(False, False) is LedgerState.NONE
    assert LedgerState.from_flags(True, False) is LedgerState.CREDIT_APPLIED
    assert LedgerState.from_flags(False, True) is LedgerState.PENALTY_APPLIED
    with pytest.raises(ValueError):
        LedgerState.from_flags(True, True)
