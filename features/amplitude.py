"""
features/amplitude.py — LF / HF instantaneous amplitude (iA)
============================================================
Autonomic balance is read from how strongly the heart period oscillates in
two bands:

    LF  0.04–0.15 Hz   (sympathetic + parasympathetic)
    HF  0.15–0.40 Hz   (parasympathetic, respiratory sinus arrhythmia)

For each band the series is band-passed, its analytic signal taken, and
the magnitude (the amplitude envelope) collapsed into one scalar with a
trimmed mean:

    RR (ms) ──► uniform 4 Hz grid (128 pts) ──► band-pass LF / HF
        ──► |analytic signal| ──► robust mean (20 % trimmed) ──► iA

The RR route is the one used in production.  The raw-signal route exists
for inspection of the band waveforms (demo / tests).

Display scaling
---------------
    LF: 5 + min(v / 50, 1) · 55   → [5, 60]
    HF: 5 + min(v / 40, 1) · 45   → [5, 50]
"""

import math
from dataclasses import dataclass

import numpy as np

from ppg.filters import bandpass_filter, interpolate_to_uniform
from ppg.spectral import as_finite_array, instantaneous_amplitude
from features.stats import is_valid_number
from utils.fallback import Estimate, FallbackReason
from utils.logger import get_logger
from config import (
    DEFAULT_HF_IA,
    DEFAULT_LF_IA,
    HF_BAND,
    HF_DISPLAY_RANGE,
    HF_TYPICAL_MAX,
    IA_MIN_RR_INTERVALS,
    IA_MIN_SIGNAL_SAMPLES,
    IA_OUTLIER_PERCENT,
    LF_BAND,
    LF_DISPLAY_RANGE,
    LF_TYPICAL_MAX,
    RR_RESAMPLE_LENGTH,
    RR_RESAMPLE_RATE_HZ,
)

logger = get_logger("features.amplitude")

_BANDS = {
    "LF": (LF_DISPLAY_RANGE, LF_TYPICAL_MAX, DEFAULT_LF_IA),
    "HF": (HF_DISPLAY_RANGE, HF_TYPICAL_MAX, DEFAULT_HF_IA),
}


@dataclass(frozen=True)
class BandAmplitudes:
    lf_filtered: np.ndarray
    hf_filtered: np.ndarray
    lf_ia: float
    hf_ia: float
    reason: FallbackReason | None = None

    @property
    def used_default(self) -> bool:
        return self.reason is not None


def calculate_robust_mean(values, percent_to_exclude: float = IA_OUTLIER_PERCENT) -> float:
    """
    Trimmed mean: sort ascending, drop floor(n · p / 200) values from each
    end, average the rest.  0 for empty input.
    """
    x = np.sort(as_finite_array(values))
    if x.size == 0:
        return 0.0
    cut = int(math.floor(x.size * percent_to_exclude / 200.0))
    kept = x[cut:x.size - cut] if cut else x
    if kept.size == 0:
        kept = x
    return float(kept.mean())


def amplitude_envelope(band_signal) -> np.ndarray:
    """Instantaneous amplitude of a band signal around its own mean."""
    x = as_finite_array(band_signal)
    if x.size == 0:
        return x
    return instantaneous_amplitude(x - x.mean())


def _band_ia(series: np.ndarray, band: tuple[float, float], sample_rate_hz: float):
    filtered = bandpass_filter(series, band[0], band[1], sample_rate_hz)
    envelope = amplitude_envelope(filtered)
    return filtered, calculate_robust_mean(envelope, IA_OUTLIER_PERCENT)


def calculate_instantaneous_amplitude(signal, sample_rate_hz: float) -> BandAmplitudes:
    """
    Raw-signal LF / HF iA.

    Parameters
    ----------
    signal         : array-like   Uniformly sampled series.
    sample_rate_hz : float        Its sampling rate.

    Returns
    -------
    BandAmplitudes with the band waveforms and unscaled iA values.  Fewer
    than 50 samples give empty waveforms and the display defaults.
    """
    x = as_finite_array(signal)
    if x.size < IA_MIN_SIGNAL_SAMPLES:
        logger.debug("Only %d samples — iA defaults used.", x.size)
        empty = np.zeros(0)
        return BandAmplitudes(empty, empty, float(DEFAULT_LF_IA), float(DEFAULT_HF_IA),
                              FallbackReason.INSUFFICIENT_DATA)

    lf_filtered, lf_ia = _band_ia(x, LF_BAND, sample_rate_hz)
    hf_filtered, hf_ia = _band_ia(x, HF_BAND, sample_rate_hz)
    return BandAmplitudes(lf_filtered, hf_filtered, lf_ia, hf_ia)


def scale_to_visual_range(value, band: str) -> float:
    """Map a raw iA onto the display range of `band` ("LF" or "HF")."""
    (low, high), typical_max, default = _BANDS[band.upper()]
    if not is_valid_number(value) or float(value) < 0:
        logger.warning("Invalid %s iA %r — using %s.", band, value, default)
        return float(default)
    normalised = min(float(value) / typical_max, 1.0)
    return low + normalised * (high - low)


def estimate_rr_instantaneous_amplitude(rr_intervals) -> tuple[Estimate[float], Estimate[float]]:
    """LF and HF iA (display scale) from an RR series, each flagged when defaulted."""
    rr = as_finite_array(rr_intervals if rr_intervals is not None else [])
    if rr.size < IA_MIN_RR_INTERVALS:
        logger.debug("Only %d RR intervals — iA defaults used.", rr.size)
        return (Estimate.default(float(DEFAULT_LF_IA), FallbackReason.INSUFFICIENT_DATA),
                Estimate.default(float(DEFAULT_HF_IA), FallbackReason.INSUFFICIENT_DATA))

    uniform = interpolate_to_uniform(rr, RR_RESAMPLE_LENGTH, RR_RESAMPLE_RATE_HZ)
    if float(uniform.std()) == 0.0:
        # A perfectly regular rhythm has no band energy at all
        return (Estimate.default(float(DEFAULT_LF_IA), FallbackReason.DEGENERATE_SIGNAL),
                Estimate.default(float(DEFAULT_HF_IA), FallbackReason.DEGENERATE_SIGNAL))

    _, lf_raw = _band_ia(uniform, LF_BAND, RR_RESAMPLE_RATE_HZ)
    _, hf_raw = _band_ia(uniform, HF_BAND, RR_RESAMPLE_RATE_HZ)

    results = []
    for band, raw in (("LF", lf_raw), ("HF", hf_raw)):
        default = _BANDS[band][2]
        if not is_valid_number(raw) or raw < 0:
            results.append(Estimate.default(float(default), FallbackReason.INVALID_NUMERIC))
        else:
            results.append(Estimate.computed(scale_to_visual_range(raw, band)))

    logger.debug("RR iA — LF %.2f, HF %.2f (raw %.2f / %.2f).",
                 results[0].value, results[1].value, lf_raw, hf_raw)
    return results[0], results[1]


def calculate_rr_instantaneous_amplitude(rr_intervals) -> tuple[float, float]:
    """(lf_ia, hf_ia) on the display scale; (20, 15) for fewer than 10 intervals."""
    lf, hf = estimate_rr_instantaneous_amplitude(rr_intervals)
    return lf.value, hf.value


@dataclass(frozen=True)
class IAEvaluation:
    """One live iA evaluation and the signal quality current at the time."""
    lf_ia: float
    hf_ia: float
    quality: float
