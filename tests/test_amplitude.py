"""Tests for the LF / HF instantaneous-amplitude estimator."""

import math

import numpy as np
import pytest

from features.amplitude import (
    amplitude_envelope,
    calculate_instantaneous_amplitude,
    calculate_robust_mean,
    calculate_rr_instantaneous_amplitude,
    estimate_rr_instantaneous_amplitude,
    scale_to_visual_range,
)
from utils.fallback import FallbackReason


def test_robust_mean_drops_one_value_per_tail():
    assert calculate_robust_mean(list(range(1, 11)), 20) == pytest.approx(5.5)


def test_robust_mean_ignores_extremes():
    assert calculate_robust_mean([1, 2, 3, 4, 5, 6, 7, 8, 9, 1000], 20) == pytest.approx(5.5)


def test_robust_mean_empty_is_zero():
    assert calculate_robust_mean([], 20) == 0.0


def test_robust_mean_without_trim_is_plain_mean():
    assert calculate_robust_mean([2, 4, 9], 20) == pytest.approx(5.0)


@pytest.mark.parametrize("value, band, expected", [
    (0.0, "LF", 5.0),
    (25.0, "LF", 32.5),
    (50.0, "LF", 60.0),
    (500.0, "LF", 60.0),
    (20.0, "HF", 27.5),
    (40.0, "hf", 50.0),
])
def test_scale_to_visual_range(value, band, expected):
    assert scale_to_visual_range(value, band) == pytest.approx(expected)


@pytest.mark.parametrize("bad", [math.nan, math.inf, -1.0, None])
def test_scale_to_visual_range_invalid_input_uses_default(bad):
    assert scale_to_visual_range(bad, "LF") == 20.0
    assert scale_to_visual_range(bad, "HF") == 15.0


def test_envelope_of_sine_is_its_amplitude():
    t = np.arange(512) / 64.0
    envelope = amplitude_envelope(10.0 + 2.0 * np.sin(2 * np.pi * 2.0 * t))
    assert np.all(np.abs(envelope[128:384] - 2.0) < 0.15)


def test_raw_signal_iA_short_input_defaults():
    result = calculate_instantaneous_amplitude(np.ones(20), 4.0)
    assert result.used_default
    assert (result.lf_ia, result.hf_ia) == (20.0, 15.0)


def test_raw_signal_iA_picks_the_dominant_band():
    t = np.arange(256) / 4.0
    lf_signal = calculate_instantaneous_amplitude(3.0 * np.sin(2 * np.pi * 0.1 * t), 4.0)
    hf_signal = calculate_instantaneous_amplitude(3.0 * np.sin(2 * np.pi * 0.3 * t), 4.0)
    assert not lf_signal.used_default
    assert lf_signal.lf_ia > lf_signal.hf_ia
    assert hf_signal.hf_ia > hf_signal.lf_ia
    assert lf_signal.lf_filtered.shape == (256,)


def test_rr_iA_needs_ten_intervals():
    lf, hf = estimate_rr_instantaneous_amplitude([800.0] * 9)
    assert lf.used_default and hf.used_default
    assert lf.reason is FallbackReason.INSUFFICIENT_DATA
    assert calculate_rr_instantaneous_amplitude([800.0] * 9) == (20.0, 15.0)


def test_rr_iA_of_constant_rhythm_is_flagged():
    lf, hf = estimate_rr_instantaneous_amplitude([800.0] * 40)
    assert lf.reason is FallbackReason.DEGENERATE_SIGNAL
    assert hf.used_default


def test_rr_iA_respiratory_modulation_raises_hf():
    # ~32 s of beats whose period swings ±40 ms with 4 s breathing
    rr, t = [], 0.0
    while t < 32000.0:
        interval = 850.0 + 40.0 * math.sin(2 * math.pi * 0.25 * t / 1000.0)
        rr.append(interval)
        t += interval

    lf, hf = estimate_rr_instantaneous_amplitude(rr)
    assert not lf.used_default and not hf.used_default
    assert hf.value > lf.value
    assert 5.0 <= lf.value <= 60.0
    assert 5.0 <= hf.value <= 50.0
