"""Scalar smoothing helpers shared by the per-tick estimators."""


def lerp(current: float, target: float, weight: float) -> float:
    """Move ``current`` toward ``target`` by ``weight`` (one EMA step)."""
    return current + (target - current) * weight


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))
