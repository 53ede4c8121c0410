"""
features/stats.py — Population statistics with empty-input guards
==================================================================
Small helpers shared by the detector, HRV metrics and the classifier.
All of them return 0 on empty input instead of raising (numpy would warn
and return NaN).
"""

import math

import numpy as np
from utils.logger import get_logger

logger = get_logger("features.stats")


def _as_array(values) -> np.ndarray:
    if values is None:
        return np.zeros(0)
    return np.asarray(values, dtype=np.float64).ravel()


def calculate_mean(values) -> float:
    x = _as_array(values)
    return float(x.mean()) if x.size else 0.0


def calculate_median(values) -> float:
    """Median; the mean of the two middle values for even lengths."""
    x = _as_array(values)
    return float(np.median(x)) if x.size else 0.0


def calculate_variance(values) -> float:
    """Population variance (ddof = 0)."""
    x = _as_array(values)
    return float(x.var()) if x.size else 0.0


def calculate_std_dev(values) -> float:
    """Population standard deviation (ddof = 0)."""
    x = _as_array(values)
    return float(x.std()) if x.size else 0.0


def is_valid_number(value) -> bool:
    try:
        return value is not None and math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def validate_value(value, minimum: float, maximum: float, default: float) -> float:
    """
    Guard a physiological quantity.

    NaN / inf / non-numeric → `default` (logged).  Finite but outside
    [minimum, maximum] → clamped to the nearest bound (logged).
    """
    if not is_valid_number(value):
        logger.warning("Invalid value %r — using default %s.", value, default)
        return float(default)

    value = float(value)
    if value < minimum or value > maximum:
        clamped = min(max(value, minimum), maximum)
        logger.warning("Value %.3f outside [%s, %s] — clamped to %s.", value, minimum, maximum, clamped)
        return clamped
    return value
