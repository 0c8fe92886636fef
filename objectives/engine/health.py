"""
Health classification for objectives.

Combines the elapsed share of an objective's time window, its progress and the
confidence declared on its key results into a status label and a set of
health metrics. The status label drives filtering and sorting, the risk level
drives notification severity; both are exposed.
"""
import math
from dataclasses import asdict, dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Iterable, Optional

from ..choices import Confidence, ObjectiveStatus, RiskLevel
from .progress import clamp, read_field, round_half_up

DAY = timedelta(days=1)

CONFIDENCE_SCORES = {
    Confidence.HIGH: 1.0,
    Confidence.MEDIUM: 0.8,
    Confidence.LOW: 0.6,
}
DEFAULT_CONFIDENCE_FACTOR = 0.8

# Pace used when no time has elapsed yet. Tunable.
NEUTRAL_PACE_WITH_PROGRESS = 1.5
NEUTRAL_PACE_WITHOUT_PROGRESS = 0.5

# (days remaining upper bound, multiplier), tightest window first
URGENCY_STEPS = ((7, 1.5), (14, 1.3), (30, 1.1))

# Objectives created without a known creation time are assumed to span 90 days.
DEFAULT_WINDOW = timedelta(days=90)

OVERDUE_RECOMMENDATION = "Overdue: the objective was not reached by its due date. Urgent action required."

RISK_RECOMMENDATIONS = {
    RiskLevel.LOW: None,
    RiskLevel.MEDIUM: "Slightly behind pace. Consider accelerating.",
    RiskLevel.HIGH: "Significantly behind pace. Intervention required.",
    RiskLevel.CRITICAL: "Critically behind pace. Reassess the objective or its resources.",
}


@dataclass
class HealthMetrics:
    pace_ratio: float = 1.0
    expected_progress: int = 0
    progress_gap: int = 0
    days_remaining: Optional[int] = None
    days_elapsed: int = 0
    total_days: int = 0
    percent_time_elapsed: int = 0
    risk_level: str = RiskLevel.LOW.value
    recommendation: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class HealthReport:
    status: str
    metrics: HealthMetrics


def to_datetime(value: Any) -> datetime:
    """Normalize a date or datetime to an aware UTC datetime (dates at midnight)."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, str):
        return to_datetime(datetime.fromisoformat(value))
    raise TypeError(f"Cannot interpret {value!r} as a date")


def confidence_factor(key_results: Iterable[Any]) -> float:
    scores = [
        CONFIDENCE_SCORES.get(read_field(kr, "confidence"), DEFAULT_CONFIDENCE_FACTOR)
        for kr in key_results
    ]
    if not scores:
        return DEFAULT_CONFIDENCE_FACTOR
    return sum(scores) / len(scores)


def urgency_multiplier(days_remaining: int) -> float:
    for bound, multiplier in URGENCY_STEPS:
        if days_remaining <= bound:
            return multiplier
    return 1.0


def risk_level_for(pace_ratio: float) -> str:
    if pace_ratio >= 0.9:
        return RiskLevel.LOW.value
    if pace_ratio >= 0.7:
        return RiskLevel.MEDIUM.value
    if pace_ratio >= 0.5:
        return RiskLevel.HIGH.value
    return RiskLevel.CRITICAL.value


def decide_status(
    progress: float,
    days_remaining: int,
    adjusted_pace_ratio: float,
    progress_gap: float,
    urgency: float,
) -> str:
    """Apply the off-track / at-risk decision tree, evaluated top-down."""
    if (
        adjusted_pace_ratio < 0.4
        or (days_remaining <= 7 and progress < 70)
        or (days_remaining <= 14 and progress < 50)
        or progress_gap > 40 * urgency
    ):
        return ObjectiveStatus.OFF_TRACK.value

    if (
        adjusted_pace_ratio < 0.7
        or (days_remaining <= 7 and progress < 85)
        or (days_remaining <= 14 and progress < 70)
        or (days_remaining <= 30 and progress < 50)
        or progress_gap > 20 * urgency
    ):
        return ObjectiveStatus.AT_RISK.value

    return ObjectiveStatus.ON_TRACK.value


def classify_health(
    progress: Optional[int],
    due_date: Any,
    created_at: Any,
    key_results: Iterable[Any] = (),
    now: Optional[datetime] = None,
) -> HealthReport:
    """
    Classify an objective's health.

    Args:
        progress: Objective progress (0-100)
        due_date: Due date (date or datetime), or None
        created_at: Creation timestamp of the objective
        key_results: The same key results progress was computed from
        now: Reference instant, defaults to the current UTC time

    Returns:
        HealthReport with the status label and the health metrics
    """
    progress = progress or 0
    key_results = list(key_results)
    completed = progress >= 100
    now = to_datetime(now) if now is not None else datetime.now(timezone.utc)

    if due_date is None:
        if completed:
            status = ObjectiveStatus.COMPLETED.value
        elif progress > 0:
            status = ObjectiveStatus.ON_TRACK.value
        else:
            status = ObjectiveStatus.DRAFT.value
        return HealthReport(status=status, metrics=HealthMetrics())

    due = to_datetime(due_date)
    created = to_datetime(created_at) if created_at is not None else due - DEFAULT_WINDOW

    days_remaining = math.ceil((due - now) / DAY)
    elapsed = now - created
    total = due - created
    days_elapsed = max(0, math.floor(elapsed / DAY))
    total_days = max(0, math.ceil(total / DAY))

    if days_remaining < 0 and not completed:
        metrics = HealthMetrics(
            pace_ratio=0.0,
            expected_progress=100,
            progress_gap=100 - progress,
            days_remaining=days_remaining,
            days_elapsed=days_elapsed,
            total_days=total_days,
            percent_time_elapsed=100,
            risk_level=RiskLevel.CRITICAL.value,
            recommendation=OVERDUE_RECOMMENDATION,
        )
        return HealthReport(status=ObjectiveStatus.OFF_TRACK.value, metrics=metrics)

    if total > timedelta(0):
        expected = clamp(elapsed / total * 100.0, 0.0, 100.0)
    else:
        expected = 100.0

    progress_gap = expected - progress
    if expected > 0:
        pace_ratio = progress / expected
    elif progress > 0:
        pace_ratio = NEUTRAL_PACE_WITH_PROGRESS
    else:
        pace_ratio = NEUTRAL_PACE_WITHOUT_PROGRESS

    risk_level = risk_level_for(pace_ratio)
    metrics = HealthMetrics(
        pace_ratio=round(pace_ratio, 2),
        expected_progress=round_half_up(expected),
        progress_gap=round_half_up(progress_gap),
        days_remaining=days_remaining,
        days_elapsed=days_elapsed,
        total_days=total_days,
        percent_time_elapsed=round_half_up(expected),
        risk_level=risk_level,
        recommendation=RISK_RECOMMENDATIONS[risk_level],
    )

    if completed:
        metrics.risk_level = RiskLevel.LOW.value
        metrics.recommendation = None
        return HealthReport(status=ObjectiveStatus.COMPLETED.value, metrics=metrics)

    adjusted_pace_ratio = pace_ratio * confidence_factor(key_results)
    status = decide_status(
        progress=progress,
        days_remaining=days_remaining,
        adjusted_pace_ratio=adjusted_pace_ratio,
        progress_gap=progress_gap,
        urgency=urgency_multiplier(days_remaining),
    )
    return HealthReport(status=status, metrics=metrics)
