"""Tests for trust level classification and tier policy."""

import math

import pytest

from civic_triage.models.trust import TrustLevel
from civic_triage.services.trust_engine import (
    compute_trust_level,
    daily_report_limit,
    initial_status_for_level,
    requires_manual_review,
)


@pytest.mark.parametrize("score, expected", [
    (-100, TrustLevel.LOW),
    (-3, TrustLevel.LOW),
    (-2, TrustLevel.LOW),
    (-1.999, TrustLevel.MEDIUM),
    (-1, TrustLevel.MEDIUM),
    (0, TrustLevel.MEDIUM),
    (2, TrustLevel.MEDIUM),
    (2.999, TrustLevel.MEDIUM),
    (3, TrustLevel.HIGH),
    (42, TrustLevel.HIGH),
])
def test_compute_trust_level_thresholds(score, expected):
    assert compute_trust_level(score) is expected


@pytest.mark.parametrize("score", [None, math.nan, math.inf, -math.inf])
def test_missing_or_non_finite_scores_count_as_zero(score):
    assert compute_trust_level(score) is TrustLevel.MEDIUM


def test_daily_report_limits():
    assert daily_report_limit(TrustLevel.LOW) == 1
    assert daily_report_limit(TrustLevel.MEDIUM) == 5
    assert daily_report_limit(TrustLevel.HIGH) is None


def test_only_low_trust_requires_manual_review():
    assert requires_manual_review(TrustLevel.LOW) is True
    assert requires_manual_review(TrustLevel.MEDIUM) is False
    assert requires_manual_review(TrustLevel.HIGH) is False


def test_initial_status_for_low_trust_is_manual_review():
    initial = initial_status_for_level(TrustLevel.LOW)
    assert initial.status == "Manual Review"
    assert initial.requires_manual_review is True


@pytest.mark.parametrize("level", [TrustLevel.MEDIUM, TrustLevel.HIGH])
def test_initial_status_for_other_levels_is_pending(level):
    initial = initial_status_for_level(level)
    assert initial.status == "Pending"
    assert initial.requires_manual_review is False


def test_level_accepts_plain_strings():
    assert daily_report_limit("MEDIUM") == 5
