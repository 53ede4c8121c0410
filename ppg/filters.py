"""
ppg/filters.py — Band-pass, smoothing, detrending & resampling
===============================================================
All conditioning steps applied to the PPG brightness stream and to RR-interval
series before peak detection and amplitude estimation.

FFT band-pass
-------------
Filtering happens in the frequency domain using the project's own kernel
(`ppg.spectral`):

    remove mean → zero-pad (≥ 2 × N, power of two) → FFT
    → zero every bin whose |frequency| is outside [low, high]
    → IFFT → add the mean back → truncate to N

Bins above N/2 represent negative frequencies, so bin k is treated as
frequency (k − N) · fs / N there; masking on the absolute value keeps the
spectrum Hermitian and the output real.

The sample rate is a *configuration parameter*: 4 Hz for RR series
resampled onto a uniform grid, or the assumed camera frame rate for raw
PPG.  It is never derived from timestamps.

Short input
-----------
No function here raises on short or degenerate input.  Each one has a
minimum working length below which it returns the input unchanged (or
zeros of equal length for the band-pass).
"""

import math
import warnings

import numpy as np
from scipy.signal import lfilter

from ppg.spectral import as_finite_array, fft, ifft, next_power_of_two
from config import RR_RESAMPLE_LENGTH, RR_RESAMPLE_RATE_HZ
from utils.logger import get_logger

logger = get_logger("ppg.filters")

BANDPASS_MIN_LENGTH = 4
TREND_MIN_LENGTH = 10
OUTLIER_MIN_LENGTH = 10
LOWPASS_MIN_LENGTH = 10
INTERPOLATE_MIN_LENGTH = 5


def bandpass_filter(signal, low_hz: float, high_hz: float, sample_rate_hz: float) -> np.ndarray:
    """
    Ideal (brick-wall) FFT band-pass filter.

    Parameters
    ----------
    signal         : array-like, shape (N,)
    low_hz, high_hz: float   Pass band edges, inclusive.
    sample_rate_hz : float   Assumed sampling rate of `signal`.

    Returns
    -------
    filtered : ndarray, shape (N,)
        Band-limited signal with the original mean restored.  Zeros when
        N < 4.
    """
    x = as_finite_array(signal)
    n = x.size
    if n < BANDPASS_MIN_LENGTH:
        return np.zeros(n)

    nyquist = sample_rate_hz / 2.0
    if high_hz > nyquist:
        warnings.warn(
            f"Upper cutoff {high_hz} Hz exceeds Nyquist ({nyquist} Hz) at "
            f"{sample_rate_hz} Hz sampling; bins above Nyquist do not exist.",
            stacklevel=2,
        )

    mean = float(x.mean())
    size = next_power_of_two(2 * n)
    padded = np.zeros(size)
    padded[:n] = x - mean

    re, im = fft(padded, np.zeros(size))

    # Signed bin frequencies: 0 … N/2 positive, N/2+1 … N−1 negative
    k = np.arange(size)
    freqs = np.where(k <= size // 2, k, k - size) * (sample_rate_hz / size)
    reject = (np.abs(freqs) < low_hz) | (np.abs(freqs) > high_hz)
    re[reject] = 0.0
    im[reject] = 0.0

    out, _ = ifft(re, im)
    return out[:n] + mean


def smooth_signal(signal, window_radius: int) -> np.ndarray:
    """
    Centred moving average over [i − r, i + r].  Windows shrink at the
    edges, so the output has the same length as the input.
    """
    x = as_finite_array(signal)
    n = x.size
    r = int(window_radius)
    if n == 0 or r <= 0:
        return x.copy()

    csum = np.concatenate([[0.0], np.cumsum(x)])
    idx = np.arange(n)
    lo = np.maximum(0, idx - r)
    hi = np.minimum(n - 1, idx + r) + 1
    return (csum[hi] - csum[lo]) / (hi - lo)


def remove_trend(signal) -> np.ndarray:
    """
    Baseline-wander removal: subtract a long moving average whose radius is
    ceil(N / 10).  Inputs shorter than 10 samples are returned unchanged.
    """
    x = as_finite_array(signal)
    if x.size < TREND_MIN_LENGTH:
        return x
    trend = smooth_signal(x, math.ceil(x.size / 10))
    return x - trend


def _iqr_fences(sorted_values: np.ndarray) -> tuple[float, float]:
    n = sorted_values.size
    q1 = sorted_values[int(n * 0.25)]
    q3 = sorted_values[int(n * 0.75)]
    iqr = q3 - q1
    return q1 - 1.5 * iqr, q3 + 1.5 * iqr


def remove_outliers_iqr(signal) -> np.ndarray:
    """
    Clip (not drop) samples outside [Q1 − 1.5·IQR, Q3 + 1.5·IQR] so the
    series keeps its length and time alignment.
    """
    x = as_finite_array(signal)
    if x.size < OUTLIER_MIN_LENGTH:
        return x
    lower, upper = _iqr_fences(np.sort(x))
    return np.clip(x, lower, upper)


def lowpass_filter(signal, cutoff_hz: float, sample_rate_hz: float) -> np.ndarray:
    """
    Zero-phase first-order RC low-pass: one causal pass forward, one over
    the reversed result, so peaks are not shifted in time.

        α = dt / (RC + dt),   RC = 1 / (2π · cutoff)
        y[i] = y[i−1] + α · (x[i] − y[i−1]),   y[0] = x[0]
    """
    x = as_finite_array(signal)
    if x.size < LOWPASS_MIN_LENGTH:
        return x

    dt = 1.0 / sample_rate_hz
    rc = 1.0 / (2.0 * math.pi * cutoff_hz)
    alpha = dt / (rc + dt)
    b, a = [alpha], [1.0, alpha - 1.0]

    # Initial state chosen so the first output equals the first input
    forward, _ = lfilter(b, a, x, zi=[(1.0 - alpha) * x[0]])
    reversed_fwd = forward[::-1]
    backward, _ = lfilter(b, a, reversed_fwd, zi=[(1.0 - alpha) * reversed_fwd[0]])
    return backward[::-1]


def preprocess_ppg(signal, sample_rate_hz: float, cutoff_hz: float = 5.0) -> np.ndarray:
    """
    Offline PPG conditioning ahead of template peak detection:

        5-point smoothing → baseline removal → zero-phase low-pass
        → IQR clipping
    """
    x = as_finite_array(signal)
    if x.size < TREND_MIN_LENGTH:
        return x

    smoothed = smooth_signal(x, 2)
    detrended = remove_trend(smoothed)
    filtered = lowpass_filter(detrended, cutoff_hz, sample_rate_hz)
    return remove_outliers_iqr(filtered)


def interpolate_to_uniform(
    rr_intervals,
    target_length: int | None = RR_RESAMPLE_LENGTH,
    target_rate_hz: float = RR_RESAMPLE_RATE_HZ,
) -> np.ndarray:
    """
    Resample an irregularly-timed RR series onto a uniform grid.

    Beat i is placed at the cumulative time of the intervals before it
    (beat 0 at t = 0); `target_length` equally spaced points spanning the
    whole duration are then filled by linear interpolation.  When
    `target_length` is None the length is derived from `target_rate_hz`.

    Fewer than 5 intervals are returned unchanged.
    """
    rr = as_finite_array(rr_intervals)
    if rr.size < INTERPOLATE_MIN_LENGTH:
        logger.debug("Only %d RR intervals — skipping interpolation.", rr.size)
        return rr

    times = np.concatenate([[0.0], np.cumsum(rr[:-1])])
    total_ms = times[-1]
    if total_ms <= 0:
        return rr

    if target_length is None:
        target_length = max(2, int(total_ms / 1000.0 * target_rate_hz) + 1)

    grid = np.linspace(0.0, total_ms, int(target_length))
    logger.debug(
        "Interpolated %d RR intervals onto %d points (%.2f Hz effective, %.1f Hz nominal).",
        rr.size, grid.size, (grid.size - 1) / (total_ms / 1000.0), target_rate_hz,
    )
    return np.interp(grid, times, rr)
