"""
model/stress.py — Stress quadrant, state label & stress level
=============================================================

⚠️  DISCLAIMER: This is a heuristic WELLNESS INDICATOR, not a validated
    clinical stress measure.  A 30-second camera recording cannot
    establish a psychological state; treat the output as one data point.

────────────────────────────────────────────────────────────────────────
LF–HF plane
────────────────────────────────────────────────────────────────────────
The display-scaled LF and HF instantaneous amplitudes split the plane
into four quadrants at LF = 25, HF = 25:

                 HF < 25                 HF ≥ 25
    LF > 25   mental stress           resting
    LF ≤ 25   physical stress         deep relaxation

`determine_stress_state` refines the quadrant with heart rate and RMSSD:

    deep relaxation  → "deep relaxation (near-meditative)" if HR < 65 and
                       RMSSD > 50, else "relaxed"
    physical stress  → "strong physical stress" if HR > 90, else "mild …"
    resting          → "resting"
    mental stress    → "strong mental stress" if HR > 85 or RMSSD < 20,
                       else "mild mental stress"

`estimate_stress_level` is an additive score:

    RMSSD      ≥50 → 0, ≥40 → 1, ≥30 → 2, ≥20 → 3, else 4
    quadrant   deep relaxation 0, resting 1, mental 3, physical 4
    LF/HF      > 3 → +2, > 2 → +1, < 0.5 → −1
    quality    < 0.4 → +1 (poor signals read as more stressed)

bucketed at 0 / 2 / 4 / 6 / 8 into six ordered labels.
────────────────────────────────────────────────────────────────────────
"""

from enum import Enum

from features.stats import is_valid_number, validate_value
from utils.logger import get_logger
from config import (
    DEEP_RELAX_MAX_HR,
    DEEP_RELAX_MIN_RMSSD,
    DEFAULT_LF_HF_RATIO,
    MENTAL_STRONG_MAX_RMSSD,
    MENTAL_STRONG_MIN_HR,
    PHYSICAL_STRONG_MIN_HR,
    QUADRANT_HF_BOUNDARY,
    QUADRANT_LF_BOUNDARY,
    QUALITY_GATE,
    STRESS_HF_LIMITS,
    STRESS_HR_LIMITS,
    STRESS_LEVEL_BUCKETS,
    STRESS_LF_LIMITS,
    STRESS_RATIO_HIGH,
    STRESS_RATIO_LIMITS,
    STRESS_RATIO_LOW,
    STRESS_RATIO_VERY_HIGH,
    STRESS_RMSSD_LIMITS,
    STRESS_RMSSD_SCORE_EDGES,
)

logger = get_logger("model.stress")


class StressQuadrant(Enum):
    DEEP_RELAXATION = ("deep relaxation", "#4caf50", 0)
    RESTING = ("resting", "#2196f3", 1)
    MENTAL_STRESS = ("mental stress", "#ff9800", 3)
    PHYSICAL_STRESS = ("physical stress", "#f44336", 4)

    def __init__(self, label: str, colour: str, score: int):
        self.label = label
        self.colour = colour
        self.score = score


STRESS_LEVEL_LABELS = (
    "very low (deep relaxation)",
    "low (relaxed)",
    "slightly low (normal)",
    "moderate (mild stress)",
    "high (stressed)",
    "very high (strong stress)",
)


def classify_quadrant(lf_ia: float, hf_ia: float) -> StressQuadrant:
    """Quadrant of the (HF, LF) point; boundary values fall on the low-LF / high-HF side."""
    high_lf = lf_ia > QUADRANT_LF_BOUNDARY
    high_hf = hf_ia >= QUADRANT_HF_BOUNDARY
    if high_lf:
        return StressQuadrant.RESTING if high_hf else StressQuadrant.MENTAL_STRESS
    return StressQuadrant.DEEP_RELAXATION if high_hf else StressQuadrant.PHYSICAL_STRESS


def lf_hf_ratio(lf_ia: float, hf_ia: float) -> float:
    """LF / HF, 1.5 when HF is not positive or the quotient is not finite."""
    if not is_valid_number(hf_ia) or hf_ia <= 0 or not is_valid_number(lf_ia):
        return float(DEFAULT_LF_HF_RATIO)
    ratio = lf_ia / hf_ia
    return float(ratio) if is_valid_number(ratio) else float(DEFAULT_LF_HF_RATIO)


def determine_stress_state(lf_ia, hf_ia, heart_rate, rmssd) -> str:
    """
    Descriptive autonomic state for one measurement.

    Every input is validated first (NaN → default, out of range → clamped),
    so any combination of values yields one of seven labels.
    """
    lf = validate_value(lf_ia, *STRESS_LF_LIMITS)
    hf = validate_value(hf_ia, *STRESS_HF_LIMITS)
    hr = validate_value(heart_rate, *STRESS_HR_LIMITS)
    rm = validate_value(rmssd, *STRESS_RMSSD_LIMITS)

    quadrant = classify_quadrant(lf, hf)
    logger.debug("State inputs LF=%.1f HF=%.1f HR=%.0f RMSSD=%.0f ratio=%.2f → %s",
                 lf, hf, hr, rm, lf_hf_ratio(lf, hf), quadrant.label)

    if quadrant is StressQuadrant.DEEP_RELAXATION:
        if hr < DEEP_RELAX_MAX_HR and rm > DEEP_RELAX_MIN_RMSSD:
            return "deep relaxation (near-meditative)"
        return "relaxed"
    if quadrant is StressQuadrant.PHYSICAL_STRESS:
        return "strong physical stress" if hr > PHYSICAL_STRONG_MIN_HR else "mild physical stress"
    if quadrant is StressQuadrant.RESTING:
        return "resting"
    if hr > MENTAL_STRONG_MIN_HR or rm < MENTAL_STRONG_MAX_RMSSD:
        return "strong mental stress"
    return "mild mental stress"


def _rmssd_score(rmssd: float) -> int:
    for score, edge in enumerate(STRESS_RMSSD_SCORE_EDGES):
        if rmssd >= edge:
            return score
    return len(STRESS_RMSSD_SCORE_EDGES)


def _ratio_score(ratio: float) -> int:
    if ratio > STRESS_RATIO_VERY_HIGH:
        return 2
    if ratio > STRESS_RATIO_HIGH:
        return 1
    if ratio < STRESS_RATIO_LOW:
        return -1
    return 0


def estimate_stress_level(rmssd, ratio, lf_ia, hf_ia, signal_quality: float | None = None) -> str:
    """
    Ordered stress-level label.

    Parameters
    ----------
    rmssd          : float        RMSSD in ms.
    ratio          : float        LF/HF ratio.
    lf_ia, hf_ia   : float        Display-scaled iA values.
    signal_quality : float | None Session quality in [0, 1]; None skips the penalty.

    Returns
    -------
    One of `STRESS_LEVEL_LABELS`.
    """
    rm = validate_value(rmssd, *STRESS_RMSSD_LIMITS)
    r = validate_value(ratio, *STRESS_RATIO_LIMITS)
    lf = validate_value(lf_ia, *STRESS_LF_LIMITS)
    hf = validate_value(hf_ia, *STRESS_HF_LIMITS)

    quadrant = classify_quadrant(lf, hf)
    score = _rmssd_score(rm) + quadrant.score + _ratio_score(r)
    if signal_quality is not None and is_valid_number(signal_quality) and signal_quality < QUALITY_GATE:
        score += 1

    for label, upper in zip(STRESS_LEVEL_LABELS, STRESS_LEVEL_BUCKETS):
        if score <= upper:
            break
    else:
        label = STRESS_LEVEL_LABELS[-1]

    logger.info("Stress level: score=%d → %s", score, label)
    return label
