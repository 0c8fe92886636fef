"""
Progress aggregation for objectives.
"""
import math
from decimal import Decimal
from typing import Any, Iterable, Optional


def read_field(item: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from a model instance, a plain object or a mapping."""
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def to_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, str):
        value = Decimal(value)
    return float(value)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""
    return int(math.floor(value + 0.5))


def clamp(value: float, min_val: float, max_val: float) -> float:
    return max(min_val, min(max_val, value))


def key_result_progress(key_result: Any) -> float:
    """
    Compute the completion ratio of a single key result, scaled to 0-100.

    Args:
        key_result: Object or mapping with start_value, target_value, current_value

    Returns:
        Ratio clamped to [0, 100]. A zero-width range yields 100 when the
        current value reached the target, else 0.
    """
    start = to_float(read_field(key_result, "start_value"))
    if start is None:
        start = 0.0
    target = to_float(read_field(key_result, "target_value"))
    if target is None:
        target = start
    current = to_float(read_field(key_result, "current_value"))
    if current is None:
        current = start

    value_range = target - start
    if value_range == 0:
        return 100.0 if current >= target else 0.0

    return clamp((current - start) / value_range * 100.0, 0.0, 100.0)


def compute_progress(key_results: Iterable[Any]) -> int:
    """
    Derive an objective's completion percentage from its key results.

    The result is the unweighted mean of the per key result ratios, rounded to
    the nearest integer. An objective without key results has progress 0.

    Args:
        key_results: The objective's key results (possibly empty)

    Returns:
        Integer progress in [0, 100]
    """
    ratios = [key_result_progress(kr) for kr in key_results]
    if not ratios:
        return 0
    return int(clamp(round_half_up(sum(ratios) / len(ratios)), 0, 100))
