"""
features/respiration.py — Breathing rate from the audio amplitude stream
========================================================================
Each breath shows up as a bump in the ambient audio amplitude polled every
25 ms.  Bumps are found with `ppg.peaks.detect_respiration_peaks`; the gaps
between them (in samples) are trimmed to the 10th–90th percentile band,
averaged, and converted to breaths per minute:

    rate = round(60000 / (mean_gap · interval_ms))     clamped to [8, 25]

Sentinels instead of numbers:
    "--"     fewer than 100 samples (nothing measured yet)
    "12-16"  fewer than 2 peaks, or no gap survives the trim
"""

from ppg.peaks import detect_respiration_peaks
from ppg.spectral import as_finite_array
from features.stats import calculate_mean
from utils.fallback import Estimate, FallbackReason
from utils.logger import get_logger
from config import (
    AUDIO_SAMPLING_INTERVAL_MS,
    RESPIRATION_DEFAULT_RANGE,
    RESPIRATION_MIN_SAMPLES,
    RESPIRATION_NO_DATA,
    RESPIRATION_RANGE,
)

logger = get_logger("features.respiration")


def estimate_respiration(audio, sampling_interval_ms: float = AUDIO_SAMPLING_INTERVAL_MS) -> Estimate:
    x = as_finite_array(audio if audio is not None else [])
    if x.size < RESPIRATION_MIN_SAMPLES:
        return Estimate.default(RESPIRATION_NO_DATA, FallbackReason.INSUFFICIENT_DATA)

    peaks = detect_respiration_peaks(x)
    if len(peaks) < 2:
        logger.debug("Only %d breath peaks in %d samples.", len(peaks), x.size)
        return Estimate.default(RESPIRATION_DEFAULT_RANGE, FallbackReason.INSUFFICIENT_DATA)

    gaps = sorted(b - a for a, b in zip(peaks, peaks[1:]))
    lower = gaps[int(len(gaps) * 0.1)]
    upper = gaps[int(len(gaps) * 0.9)]
    kept = [g for g in gaps if lower <= g <= upper]
    if not kept:
        return Estimate.default(RESPIRATION_DEFAULT_RANGE, FallbackReason.DEGENERATE_SIGNAL)

    period_ms = calculate_mean(kept) * sampling_interval_ms
    rate = int(round(60000.0 / period_ms))
    low, high = RESPIRATION_RANGE
    clamped = min(max(rate, low), high)
    if clamped != rate:
        logger.debug("Respiration %d/min clamped to %d/min.", rate, clamped)
    return Estimate.computed(clamped)


def estimate_respiration_rate(audio, sampling_interval_ms: float = AUDIO_SAMPLING_INTERVAL_MS) -> int | str:
    """Breaths per minute in [8, 25], or one of the sentinels "--" / "12-16"."""
    return estimate_respiration(audio, sampling_interval_ms).value
