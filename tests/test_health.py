from datetime import date, datetime, timezone

import pytest

from objectives.engine import classify_health
from objectives.engine.health import confidence_factor, risk_level_for, urgency_multiplier

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
CREATED = datetime(2026, 1, 1, tzinfo=timezone.utc)
DUE = date(2026, 5, 1)


def krs(*confidences):
    return [{"confidence": c} for c in confidences]


def test_completed_wins_even_when_past_due():
    report = classify_health(100, date(2026, 2, 1), CREATED, krs("low"), now=NOW)
    assert report.status == "completed"
    assert report.metrics.risk_level == "low"
    assert report.metrics.recommendation is None


def test_no_due_date_without_progress_is_draft():
    report = classify_health(0, None, CREATED, [], now=NOW)
    assert report.status == "draft"
    assert report.metrics.pace_ratio == 1.0
    assert report.metrics.days_remaining is None
    assert report.metrics.risk_level == "low"


def test_no_due_date_with_progress_is_on_track():
    assert classify_health(30, None, CREATED, [], now=NOW).status == "on-track"


def test_past_due_and_incomplete_is_off_track_and_critical():
    report = classify_health(80, date(2026, 2, 28), CREATED, krs("high"), now=NOW)
    assert report.status == "off-track"
    metrics = report.metrics
    assert metrics.risk_level == "critical"
    assert metrics.expected_progress == 100
    assert metrics.pace_ratio == 0
    assert metrics.progress_gap == 20
    assert metrics.percent_time_elapsed == 100
    assert metrics.days_remaining == -1
    assert "Overdue" in metrics.recommendation


def test_due_today_is_not_overdue():
    report = classify_health(90, date(2026, 3, 1), CREATED, [], now=NOW)
    assert report.metrics.days_remaining == 0
    assert report.status == "on-track"


def test_ahead_of_pace_is_on_track():
    report = classify_health(60, DUE, CREATED, krs("high", "high"), now=NOW)
    assert report.status == "on-track"
    metrics = report.metrics
    assert metrics.expected_progress == 50
    assert metrics.percent_time_elapsed == 50
    assert metrics.pace_ratio == 1.21
    assert metrics.days_remaining == 61
    assert metrics.days_elapsed == 59
    assert metrics.total_days == 120
    assert metrics.risk_level == "low"


def test_slightly_behind_is_at_risk():
    report = classify_health(35, DUE, CREATED, krs("medium"), now=NOW)
    assert report.status == "at-risk"
    assert report.metrics.risk_level == "medium"
    assert report.metrics.recommendation


def test_low_confidence_pushes_to_off_track():
    report = classify_health(20, DUE, CREATED, krs("low", "low"), now=NOW)
    assert report.status == "off-track"
    assert report.metrics.risk_level == "critical"


def test_deadline_within_a_week_is_strict():
    report = classify_health(65, date(2026, 3, 5), datetime(2026, 2, 20, tzinfo=timezone.utc), krs("high"), now=NOW)
    assert report.metrics.days_remaining == 4
    assert report.status == "off-track"


def test_no_elapsed_time_uses_neutral_pace():
    report = classify_health(0, DUE, NOW, [], now=NOW)
    assert report.metrics.expected_progress == 0
    assert report.metrics.pace_ratio == 0.5
    assert report.status == "at-risk"

    report = classify_health(10, DUE, NOW, [], now=NOW)
    assert report.metrics.pace_ratio == 1.5
    assert report.status == "on-track"


def test_accepts_naive_and_iso_inputs():
    aware = classify_health(60, DUE, CREATED, krs("high"), now=NOW)
    naive = classify_health(60, "2026-05-01", datetime(2026, 1, 1), krs("high"), now=datetime(2026, 3, 1, 12, 0))
    assert naive.status == aware.status
    assert naive.metrics.as_dict() == aware.metrics.as_dict()


def test_confidence_factor():
    assert confidence_factor([]) == 0.8
    assert confidence_factor(krs("high", "low")) == pytest.approx(0.8)
    assert confidence_factor(krs("high", "unknown")) == pytest.approx(0.9)
    assert confidence_factor(krs("high")) == 1.0


@pytest.mark.parametrize("days,expected", [(-2, 1.5), (7, 1.5), (8, 1.3), (14, 1.3), (30, 1.1), (31, 1.0)])
def test_urgency_multiplier(days, expected):
    assert urgency_multiplier(days) == expected


@pytest.mark.parametrize(
    "pace,expected",
    [(1.2, "low"), (0.9, "low"), (0.89, "medium"), (0.7, "medium"), (0.5, "high"), (0.49, "critical"), (0, "critical")],
)
def test_risk_level_for(pace, expected):
    assert risk_level_for(pace) == expected
