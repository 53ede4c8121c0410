"""
features/quality.py — PPG signal-quality score
==============================================
Scores the most recent window of the PPG stream in [0, 1].  The score is
stored with every live iA evaluation so the session-end pass can ignore
amplitudes computed while the finger / face was moving.

Early exits (fixed scores):
    cv < 0.5 %                    → 0.1   no pulse visible
    cv > 20 %                     → 0.3   motion / lighting changes
    direction changes > 70 %      → 0.4   noise-dominated
    autocorrelation peak < 0.3    → 0.5   not periodic

Otherwise:
    0.4 · (1 − |cv − 5| / 15) + 0.3 · (1 − change_ratio) + 0.3 · peak_corr
clamped to [0, 1].
"""

from dataclasses import dataclass

import numpy as np

from ppg.spectral import as_finite_array
from utils.logger import get_logger
from config import QUALITY_WINDOW

logger = get_logger("features.quality")

AUTOCORR_MIN_VARIANCE = 1e-4
AUTOCORR_FIRST_LAG = 3


@dataclass(frozen=True)
class QualityAssessment:
    quality: float
    reason: str


def calculate_autocorrelation(signal) -> np.ndarray:
    """
    Normalised autocorrelation for every lag 0 … n−1:

        r[lag] = Σ (x[i] − μ)(x[i+lag] − μ) / ((n − lag) · σ²)

    Zeros when the variance is below 1e-4.
    """
    x = as_finite_array(signal)
    n = x.size
    if n == 0:
        return x
    centred = x - x.mean()
    variance = float(np.mean(centred ** 2))
    if variance < AUTOCORR_MIN_VARIANCE:
        return np.zeros(n)

    full = np.correlate(centred, centred, mode="full")[n - 1:]
    return full / ((n - np.arange(n)) * variance)


def _direction_changes(x: np.ndarray) -> int:
    signs = np.sign(np.diff(x))
    signs = signs[signs != 0]
    return int(np.count_nonzero(signs[1:] != signs[:-1]))


def assess_ppg_quality(signal, window: int = QUALITY_WINDOW) -> QualityAssessment:
    """Quality of the last `window` samples of `signal`."""
    x = as_finite_array(signal)
    if x.size < window:
        return QualityAssessment(0.0, "insufficient data")

    recent = x[-window:]
    mean = float(recent.mean())
    if mean == 0:
        return QualityAssessment(0.1, "no signal level")
    cv = float(recent.std()) / abs(mean) * 100.0

    if cv < 0.5:
        return QualityAssessment(0.1, "variation too small")
    if cv > 20:
        return QualityAssessment(0.3, "variation too large")

    change_ratio = _direction_changes(recent) / recent.size
    if change_ratio > 0.7:
        return QualityAssessment(0.4, "direction changes too frequent")

    autocorr = calculate_autocorrelation(recent)
    lags = autocorr[AUTOCORR_FIRST_LAG:autocorr.size // 2]
    max_corr = max(0.0, float(lags.max())) if lags.size else 0.0
    if max_corr < 0.3:
        return QualityAssessment(0.5, "weak periodicity")

    score = (
        0.4 * (1 - abs(cv - 5) / 15)
        + 0.3 * (1 - change_ratio)
        + 0.3 * max_corr
    )
    score = float(np.clip(score, 0.0, 1.0))
    logger.debug("PPG quality %.2f (cv=%.2f%%, changes=%.2f, corr=%.2f)", score, cv, change_ratio, max_corr)
    return QualityAssessment(score, "good" if score > 0.7 else "marginal")
