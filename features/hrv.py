"""
features/hrv.py — Heart Rate Variability (HRV) time-domain features
=====================================================================
Computes time-domain HRV metrics from a sequence of RR intervals (the time
between consecutive heartbeats, in **milliseconds**):

    RMSSD — Root Mean Square of Successive Differences
    SDNN  — Standard Deviation of NN intervals
    pNN50 — Percentage of successive differences > 50 ms

RMSSD outlier suppression
-------------------------
Camera-derived beats are noisy: one missed or doubled beat produces a pair
of huge successive differences that dominate the mean square.  Two passes
are layered on the textbook formula:

    1. Drop a difference whose magnitude exceeds 80 % of the earlier
       interval of the pair (a missed / doubled beat, not variability).
    2. When more than 3 differences remain, drop the largest 10 %.

The result is rounded to whole milliseconds.  Fewer than 2 intervals, no
surviving differences, or a result outside [1, 200] ms yield the default of
30 ms (a typical healthy-adult value) flagged as a fallback.

⚠️  With only 30–45 seconds of data these estimates have high variance
    compared to the clinical standard of 5-minute recordings.
"""

import math

import numpy as np
from features.stats import calculate_mean, calculate_std_dev
from utils.fallback import Estimate, FallbackReason
from utils.logger import get_logger
from config import (
    DEFAULT_RMSSD_MS,
    HRV_MIN_PEAKS,
    RMSSD_MAX_RELATIVE_CHANGE,
    RMSSD_TRIM_FRACTION,
    RMSSD_VALID_RANGE,
)

logger = get_logger("features.hrv")


def _successive_differences(rr: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Absolute successive differences and their change relative to the earlier interval."""
    diffs = np.abs(np.diff(rr))
    earlier = rr[:-1]
    with np.errstate(divide="ignore", invalid="ignore"):
        relative = np.where(earlier > 0, diffs / earlier, np.inf)
    return diffs, relative


def estimate_rmssd(rr_intervals) -> Estimate[int]:
    """RMSSD in whole ms, with the fallback reason when the default was used."""
    rr = np.asarray(rr_intervals if rr_intervals is not None else [], dtype=np.float64).ravel()
    rr = rr[np.isfinite(rr)]

    if rr.size < 2:
        return Estimate.default(DEFAULT_RMSSD_MS, FallbackReason.INSUFFICIENT_DATA)

    diffs, relative = _successive_differences(rr)
    kept = diffs[relative <= RMSSD_MAX_RELATIVE_CHANGE]

    if kept.size > 3:
        kept = np.sort(kept)[: int(kept.size * (1.0 - RMSSD_TRIM_FRACTION))]

    if kept.size == 0:
        logger.warning("No usable successive differences — RMSSD defaults to %d ms.", DEFAULT_RMSSD_MS)
        return Estimate.default(DEFAULT_RMSSD_MS, FallbackReason.INSUFFICIENT_DATA)

    rmssd = int(round(math.sqrt(float(np.mean(kept ** 2)))))

    low, high = RMSSD_VALID_RANGE
    if not low <= rmssd <= high:
        logger.warning("RMSSD %d ms outside [%g, %g] — using %d ms.", rmssd, low, high, DEFAULT_RMSSD_MS)
        return Estimate.default(DEFAULT_RMSSD_MS, FallbackReason.INVALID_NUMERIC)

    return Estimate.computed(rmssd)


def calculate_rmssd(rr_intervals) -> int:
    """RMSSD in whole ms (see module docstring for the outlier passes)."""
    return estimate_rmssd(rr_intervals).value


def calculate_sdnn(rr_intervals) -> float:
    """Population standard deviation of the RR series (ms)."""
    return calculate_std_dev(rr_intervals)


def calculate_pnn50(rr_intervals) -> float:
    """Percentage [0, 100] of successive differences larger than 50 ms."""
    diffs = np.abs(np.diff(np.asarray(rr_intervals, dtype=np.float64)))
    if diffs.size == 0:
        return 0.0
    return float(np.count_nonzero(diffs > 50.0) * 100.0 / diffs.size)


def compute_hrv(rr_intervals) -> dict:
    """
    Time-domain HRV summary of one RR series.

    Returns a dict with `sdnn_ms`, `rmssd_ms`, `pnn50`, `mean_rr_ms`,
    `num_beats` and `valid`.  With fewer than `HRV_MIN_PEAKS` intervals
    every metric is None and `valid` is False.
    """
    rr = np.asarray(rr_intervals if rr_intervals is not None else [], dtype=np.float64).ravel()
    summary = {
        "sdnn_ms": None,
        "rmssd_ms": None,
        "pnn50": None,
        "mean_rr_ms": None,
        "num_beats": int(rr.size),
        "valid": False,
    }
    if rr.size < HRV_MIN_PEAKS:
        logger.debug("HRV summary skipped: %d of %d RR intervals.", rr.size, HRV_MIN_PEAKS)
        return summary

    summary.update(
        sdnn_ms=round(calculate_sdnn(rr), 2),
        rmssd_ms=calculate_rmssd(rr),
        pnn50=round(calculate_pnn50(rr), 2),
        mean_rr_ms=round(calculate_mean(rr), 2),
        valid=True,
    )
    logger.info(
        "HRV — SDNN=%.1f ms, RMSSD=%d ms, pNN50=%.1f%% over %d beats",
        summary["sdnn_ms"], summary["rmssd_ms"], summary["pnn50"], rr.size,
    )
    return summary
