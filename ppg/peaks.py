"""
ppg/peaks.py — Heartbeat, RR-interval & respiration peak detection
===================================================================
Live detector
-------------
`HeartbeatDetector.process()` runs once per new PPG sample and decides
whether that sample is a heartbeat:

    window     = min(30, max(5, len(buffer) // 4))
    detrended  = x[-1] − mean(last `window` samples)
    threshold  = max(2, std(Δx over the last 2·window) × k),
                 k = 2.0 when mean/std < 5 (low SNR) else 1.5

A sample is a beat when it is above the threshold, still rising (both in
the detrended and the raw signal, with at least one of the three previous
raw gradients positive) and at least 250 ms after the previous beat.

The RR interval to the previous beat is then screened (≤ 2000 ms; with five
or more intervals it must lie within 0.3–1.7 × their median, before that
within 300–2000 ms).  Rejected intervals still move the beat reference.

Offline extraction
------------------
`extract_hrv_from_ppg()` re-detects beats over a whole buffer by template
matching: a coarse threshold scan provides the first beat, its waveform is
correlated against the signal, and correlation maxima above 0.7 spaced at
least 70 % of the FFT-estimated beat period apart become peaks.
"""

import math
from dataclasses import dataclass

import numpy as np

from ppg.filters import preprocess_ppg
from ppg.spectral import as_finite_array
from features.hr import estimate_heart_rate_frequency, median_recent_heart_rate
from features.stats import calculate_median, calculate_std_dev
from utils.logger import get_logger
from config import (
    HEARTBEAT_LOW_SNR,
    HEARTBEAT_MIN_SAMPLES,
    HEARTBEAT_THRESHOLD_FACTOR,
    HEARTBEAT_THRESHOLD_FACTOR_LOW_SNR,
    HEARTBEAT_THRESHOLD_FLOOR,
    HEARTBEAT_WINDOW_RANGE,
    LIVE_HR_RANGE_BPM,
    OFFLINE_RR_RANGE_MS,
    REFRACTORY_MS,
    RESPIRATION_MIN_PEAK_DISTANCE,
    RESPIRATION_PEAK_THRESHOLD,
    RR_CEILING_MS,
    RR_FLOOR_MS,
    RR_MEDIAN_MIN_COUNT,
    RR_MEDIAN_TOLERANCE,
)

logger = get_logger("ppg.peaks")

TEMPLATE_MIN_SAMPLES = 30
TEMPLATE_MAX_RADIUS = 15
TEMPLATE_CORRELATION = 0.7
BASIC_PEAK_MIN_DISTANCE = 10
BASIC_PEAK_EDGE = 5
BASIC_PEAK_OFFSET = 0.2


@dataclass(frozen=True)
class HeartbeatEvent:
    """One accepted heartbeat."""
    timestamp_ms: int
    rr_interval_ms: int | None = None   # None for the first beat or a rejected interval
    heart_rate_bpm: int | None = None   # None when the interval gave no plausible rate


class HeartbeatDetector:
    """
    Per-session heartbeat state machine.

    Attributes
    ----------
    last_heartbeat_ms  : int | None   Timestamp of the last accepted beat.
    rr_intervals       : list[int]    Accepted RR intervals (ms).
    heart_rates        : list[int]    BPM per accepted interval within 40–180.
    rejected_intervals : int          Intervals dropped by the screening rules.
    """

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.last_heartbeat_ms: int | None = None
        self.rr_intervals: list[int] = []
        self.heart_rates: list[int] = []
        self.rejected_intervals = 0

    @property
    def current_heart_rate(self) -> int | None:
        """Median of the five most recent rates, once three exist."""
        return median_recent_heart_rate(self.heart_rates)

    # ── Candidate test ───────────────────────────────────────────────────────

    def _is_candidate(self, x: np.ndarray, timestamp_ms: int) -> bool:
        n = x.size
        lo, hi = HEARTBEAT_WINDOW_RANGE
        window = min(hi, max(lo, n // 4))
        recent = x[-2 * window:]

        detrended = recent[-1] - recent[-window:].mean()
        prev_detrended = recent[-2] - recent[-window - 1:-1].mean()

        variability = float(np.diff(recent).std())
        spread = float(recent.std())
        snr = float(recent.mean()) / spread if spread > 0 else 0.0
        factor = HEARTBEAT_THRESHOLD_FACTOR_LOW_SNR if snr < HEARTBEAT_LOW_SNR else HEARTBEAT_THRESHOLD_FACTOR
        threshold = max(HEARTBEAT_THRESHOLD_FLOOR, variability * factor)

        if detrended <= threshold or detrended <= prev_detrended:
            return False
        if x[-1] - x[-2] <= 0:
            return False
        # Require a rising trend, not a one-sample spike
        if not any(x[-k] - x[-k - 1] > 0 for k in (2, 3, 4)):
            return False
        if self.last_heartbeat_ms is not None and timestamp_ms - self.last_heartbeat_ms < REFRACTORY_MS:
            return False
        return True

    def _accept_interval(self, rr: int) -> bool:
        if rr > RR_CEILING_MS:
            return False
        if len(self.rr_intervals) >= RR_MEDIAN_MIN_COUNT:
            median = float(np.median(self.rr_intervals))
            low, high = RR_MEDIAN_TOLERANCE
            return low * median <= rr <= high * median
        return RR_FLOOR_MS <= rr <= RR_CEILING_MS

    # ── Public ───────────────────────────────────────────────────────────────

    def process(self, buffer, timestamp_ms: int) -> HeartbeatEvent | None:
        """
        Decide whether the newest sample of `buffer` is a heartbeat.

        Parameters
        ----------
        buffer       : array-like   All PPG samples so far (newest last).
        timestamp_ms : int          Timestamp of the newest sample.

        Returns
        -------
        HeartbeatEvent when a beat was accepted, else None.
        """
        x = as_finite_array(buffer)
        if x.size < HEARTBEAT_MIN_SAMPLES:
            return None
        if not self._is_candidate(x, timestamp_ms):
            return None

        rr_interval = heart_rate = None
        if self.last_heartbeat_ms is not None:
            rr = int(timestamp_ms - self.last_heartbeat_ms)
            if self._accept_interval(rr):
                rr_interval = rr
                self.rr_intervals.append(rr)
                bpm = int(round(60000.0 / rr))
                low, high = LIVE_HR_RANGE_BPM
                if low <= bpm <= high:
                    heart_rate = bpm
                    self.heart_rates.append(bpm)
            else:
                self.rejected_intervals += 1
                logger.debug("Rejected RR interval %d ms at t=%d ms.", rr, timestamp_ms)

        self.last_heartbeat_ms = int(timestamp_ms)
        return HeartbeatEvent(int(timestamp_ms), rr_interval, heart_rate)


# ─────────────────────────────────────────────────────────────────────────────
# Offline template-matching extraction
# ─────────────────────────────────────────────────────────────────────────────

def detect_basic_peaks(signal) -> list[int]:
    """
    Coarse peak scan used to seed the template.

    The signal is normalised to [0, 1]; samples above median + 0.2 that are
    strict maxima over ±2 neighbours become peaks, at least 10 samples apart.
    The first and last 5 samples are skipped.
    """
    x = as_finite_array(signal)
    if x.size < 2 * BASIC_PEAK_EDGE + 1:
        return []
    span = float(x.max() - x.min())
    if span <= 0:
        logger.debug("Flat signal — no coarse peaks.")
        return []

    norm = (x - x.min()) / span
    threshold = np.sort(norm)[norm.size // 2] + BASIC_PEAK_OFFSET

    peaks: list[int] = []
    for i in range(BASIC_PEAK_EDGE, norm.size - BASIC_PEAK_EDGE):
        v = norm[i]
        if v <= threshold:
            continue
        if not (v > norm[i - 1] and v > norm[i + 1] and v > norm[i - 2] and v > norm[i + 2]):
            continue
        if not peaks or i - peaks[-1] >= BASIC_PEAK_MIN_DISTANCE:
            peaks.append(i)
    return peaks


def _pearson(a: np.ndarray, b: np.ndarray) -> float:
    da = a - a.mean()
    db = b - b.mean()
    denom = math.sqrt(float(np.dot(da, da)) * float(np.dot(db, db)))
    if denom == 0:
        return 0.0
    return float(np.dot(da, db)) / denom


def _is_local_maximum(values: np.ndarray, index: int, radius: int) -> bool:
    lo = max(0, index - radius)
    hi = min(values.size, index + radius + 1)
    return bool(values[index] >= values[lo:hi].max())


def detect_peaks_template(signal, sample_rate_hz: float) -> list[int]:
    """
    Template-matching peak detector.

    Returns
    -------
    list[int]  Sample indices of detected beats (ascending).  Falls back to
    the coarse peaks when fewer than 3 of them exist; [] for < 30 samples.
    """
    x = as_finite_array(signal)
    if x.size < TEMPLATE_MIN_SAMPLES:
        logger.debug("Signal too short for template matching (%d samples).", x.size)
        return []

    heart_freq = estimate_heart_rate_frequency(x, sample_rate_hz)
    expected = max(1, int(round(sample_rate_hz / heart_freq)))

    coarse = detect_basic_peaks(x)
    if len(coarse) < 3:
        return coarse

    radius = max(1, min(int(math.floor(expected * 0.3)), TEMPLATE_MAX_RADIUS))
    # First coarse peak with a full template window around it
    centre = next((p for p in coarse if radius <= p < x.size - radius), None)
    if centre is None:
        return coarse
    template = x[centre - radius:centre + radius + 1]

    # correlation[j] belongs to signal index j + radius
    n_windows = x.size - 2 * radius
    if n_windows <= 0:
        return coarse
    windows = np.lib.stride_tricks.sliding_window_view(x, 2 * radius + 1)
    correlation = np.array([_pearson(template, w) for w in windows[:n_windows]])

    min_distance = int(math.floor(expected * 0.7))
    peaks: list[int] = []
    for j in range(radius, correlation.size - radius):
        if correlation[j] <= TEMPLATE_CORRELATION:
            continue
        if not _is_local_maximum(correlation, j, radius):
            continue
        index = j + radius
        if not peaks or index - peaks[-1] >= min_distance:
            peaks.append(index)
    return peaks


def validate_rr_series(rr_intervals) -> list[float]:
    """
    Keep intervals inside 300–1300 ms and within
    median ± min(30 % of median, 2 × stddev).  Fewer than 3 → unchanged.
    """
    rr = list(rr_intervals or [])
    if len(rr) < 3:
        return rr

    low, high = OFFLINE_RR_RANGE_MS
    plausible = [v for v in rr if low <= v <= high]
    if len(plausible) < 3:
        logger.debug("Only %d physiologically plausible RR intervals.", len(plausible))
        return plausible

    median = calculate_median(plausible)
    max_deviation = min(0.3 * median, 2.0 * calculate_std_dev(plausible))
    valid = [v for v in plausible if abs(v - median) <= max_deviation]
    logger.debug("RR validation kept %d of %d intervals.", len(valid), len(rr))
    return valid


def remove_rr_outliers(rr_intervals, max_change: float = 0.2) -> list[float]:
    """Drop intervals that differ from the last kept one by more than `max_change`."""
    rr = list(rr_intervals or [])
    if len(rr) < 3:
        return rr
    kept = [rr[0]]
    for v in rr[1:]:
        if kept[-1] > 0 and abs(v - kept[-1]) / kept[-1] <= max_change:
            kept.append(v)
    return kept


def extract_hrv_from_ppg(ppg, sample_rate_hz: float = 40.0) -> list[float]:
    """
    Full-buffer RR extraction.

    preprocess → template peaks → index gaps × 1000 / fs → keep 300–1300 ms
    → `validate_rr_series`.  Fewer than 3 peaks → [].
    """
    filtered = preprocess_ppg(ppg, sample_rate_hz)
    peaks = detect_peaks_template(filtered, sample_rate_hz)
    if len(peaks) < 3:
        logger.debug("Only %d peaks found — no RR series.", len(peaks))
        return []

    low, high = OFFLINE_RR_RANGE_MS
    gaps = np.diff(peaks) * (1000.0 / sample_rate_hz)
    rr = [float(g) for g in gaps if low <= g <= high]
    if len(rr) < gaps.size:
        logger.debug("Dropped %d implausible RR intervals.", gaps.size - len(rr))
    return validate_rr_series(rr)


# ─────────────────────────────────────────────────────────────────────────────
# Respiration
# ─────────────────────────────────────────────────────────────────────────────

def detect_respiration_peaks(
    audio,
    threshold: float = RESPIRATION_PEAK_THRESHOLD,
    min_distance: int = RESPIRATION_MIN_PEAK_DISTANCE,
) -> list[int]:
    """
    Indices of breaths in an audio-amplitude stream: samples above
    `threshold` that are strict maxima over ±2 neighbours, at least
    `min_distance` samples after the previous one.
    """
    x = as_finite_array(audio)
    peaks: list[int] = []
    last = -min_distance
    for i in range(2, x.size - 2):
        v = x[i]
        if v > threshold and v > x[i - 1] and v > x[i - 2] and v > x[i + 1] and v > x[i + 2]:
            if i - last >= min_distance:
                peaks.append(i)
                last = i
    return peaks
