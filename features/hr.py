"""
features/hr.py — Heart Rate estimation & aggregation
=====================================================
Two complementary views of heart rate are used in the pipeline:

1. **Dominant frequency (frequency-domain)**
   The detrended, Hamming-windowed PPG is zero-padded and transformed with
   the project FFT; the strongest bin inside 0.5–3.0 Hz (30–180 BPM) is
   the heart-rate frequency.  The offline peak detector uses it to size its
   beat template and the minimum distance between beats.

2. **Beat-to-beat rates (time-domain)**
   Each accepted RR interval yields `round(60000 / RR)` BPM.  These are
   aggregated with the *median*, not the mean, so a single missed or
   doubled beat cannot drag the reported value:

       live display  : median of the last 5 rates, once ≥ 3 exist
       session end   : median of every rate inside [40, 240] BPM
"""

import numpy as np
from scipy.signal.windows import hamming

from ppg.filters import remove_trend
from ppg.spectral import as_finite_array, next_power_of_two, power_spectrum
from features.stats import calculate_median
from utils.fallback import Estimate, FallbackReason
from utils.logger import get_logger
from config import DEFAULT_HEART_RATE, FINAL_HR_RANGE_BPM

logger = get_logger("features.hr")

# Cardiac search band for the dominant-frequency estimate (Hz)
HR_FREQ_LOW_HZ = 0.5
HR_FREQ_HIGH_HZ = 3.0
DEFAULT_HR_FREQ_HZ = 1.2          # ≈ 72 BPM
HR_FREQ_MIN_SAMPLES = 100


def estimate_heart_rate_frequency_estimate(signal, sample_rate_hz: float) -> Estimate[float]:
    """Dominant cardiac frequency in Hz, flagged when the default is used."""
    x = as_finite_array(signal)
    if x.size < HR_FREQ_MIN_SAMPLES:
        return Estimate.default(DEFAULT_HR_FREQ_HZ, FallbackReason.INSUFFICIENT_DATA)

    detrended = remove_trend(x)
    windowed = detrended * hamming(detrended.size, sym=True)

    n_fft = next_power_of_two(windowed.size)
    spectrum = power_spectrum(windowed, n_fft)
    freqs = np.arange(spectrum.size) * (sample_rate_hz / n_fft)

    cardiac = (freqs >= HR_FREQ_LOW_HZ) & (freqs <= HR_FREQ_HIGH_HZ)
    if not cardiac.any() or spectrum[cardiac].max() <= 0:
        logger.debug("No cardiac-band energy — assuming %.1f Hz.", DEFAULT_HR_FREQ_HZ)
        return Estimate.default(DEFAULT_HR_FREQ_HZ, FallbackReason.DEGENERATE_SIGNAL)

    band_freqs = freqs[cardiac]
    dominant = float(band_freqs[np.argmax(spectrum[cardiac])])
    return Estimate.computed(float(np.clip(dominant, HR_FREQ_LOW_HZ, HR_FREQ_HIGH_HZ)))


def estimate_heart_rate_frequency(signal, sample_rate_hz: float) -> float:
    """
    Estimate the heart-rate frequency (Hz) from the PPG spectrum.

    Parameters
    ----------
    signal         : array-like   PPG samples (raw or pre-processed).
    sample_rate_hz : float        Sampling rate of `signal`.

    Returns
    -------
    float in [0.5, 3.0].  1.2 Hz when fewer than 100 samples are given or
    the band holds no energy.
    """
    return estimate_heart_rate_frequency_estimate(signal, sample_rate_hz).value


def median_recent_heart_rate(heart_rates, count: int = 5, minimum: int = 3) -> int | None:
    """Median of the last `count` rates, or None until `minimum` exist."""
    if heart_rates is None or len(heart_rates) < minimum:
        return None
    return int(round(calculate_median(list(heart_rates)[-count:])))


def aggregate_heart_rate_estimate(
    heart_rates,
    low: int = FINAL_HR_RANGE_BPM[0],
    high: int = FINAL_HR_RANGE_BPM[1],
    default: int = DEFAULT_HEART_RATE,
) -> Estimate[int]:
    rates = [r for r in (heart_rates or []) if low <= r <= high]
    if not rates:
        logger.warning("No heart rates inside [%d, %d] BPM — using %d BPM.", low, high, default)
        return Estimate.default(default, FallbackReason.INSUFFICIENT_DATA)
    return Estimate.computed(int(round(calculate_median(rates))))


def aggregate_heart_rate(heart_rates, low: int = FINAL_HR_RANGE_BPM[0],
                         high: int = FINAL_HR_RANGE_BPM[1],
                         default: int = DEFAULT_HEART_RATE) -> int:
    """Session-end heart rate: median of all rates within [low, high]."""
    return aggregate_heart_rate_estimate(heart_rates, low, high, default).value
