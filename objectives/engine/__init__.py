from .health import HealthMetrics, HealthReport, classify_health
from .hierarchy import ALLOWED_PARENT_LEVELS, LEVEL_RANK, check_parent_level
from .progress import compute_progress, key_result_progress
from .workflow import TRANSITIONS, Transition, TransitionResult, apply_transition

__all__ = [
    "ALLOWED_PARENT_LEVELS",
    "HealthMetrics",
    "HealthReport",
    "LEVEL_RANK",
    "TRANSITIONS",
    "Transition",
    "TransitionResult",
    "apply_transition",
    "check_parent_level",
    "classify_health",
    "compute_progress",
    "key_result_progress",
]
