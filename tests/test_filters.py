"""Tests for band-pass, smoothing, detrending, outlier and resampling filters."""

import numpy as np
import pytest

from ppg.filters import (
    bandpass_filter,
    interpolate_to_uniform,
    lowpass_filter,
    preprocess_ppg,
    remove_outliers_iqr,
    remove_trend,
    smooth_signal,
)


def test_bandpass_separates_lf_from_hf():
    fs = 4.0
    t = np.arange(256) / fs
    lf = np.sin(2 * np.pi * 0.1 * t)
    hf = np.sin(2 * np.pi * 0.3 * t)

    out_lf = bandpass_filter(lf + hf, 0.04, 0.15, fs)
    out_hf = bandpass_filter(lf + hf, 0.15, 0.40, fs)

    interior = slice(32, -32)
    assert np.corrcoef(out_lf[interior], lf[interior])[0, 1] > 0.9
    assert np.corrcoef(out_hf[interior], hf[interior])[0, 1] > 0.9


def test_bandpass_restores_mean():
    fs = 4.0
    t = np.arange(200) / fs
    out = bandpass_filter(5.0 + np.sin(2 * np.pi * 1.5 * t), 0.04, 0.15, fs)
    assert out.shape == (200,)
    assert abs(out.mean() - 5.0) < 0.1


def test_bandpass_short_input_gives_zeros():
    np.testing.assert_array_equal(bandpass_filter([1.0, 2.0, 3.0], 0.1, 0.2, 4.0), np.zeros(3))


def test_bandpass_warns_above_nyquist():
    with pytest.warns(UserWarning):
        bandpass_filter(np.ones(32), 0.5, 5.0, 4.0)


def test_smooth_signal_shrinks_edge_windows():
    np.testing.assert_allclose(smooth_signal([1, 2, 3, 4, 5], 1), [1.5, 2.0, 3.0, 4.0, 4.5])


def test_remove_trend_flattens_baseline_wander():
    t = np.arange(300) / 30.0
    x = 50.0 + 2.0 * t + np.sin(2 * np.pi * 1.2 * t)
    out = remove_trend(x)
    assert abs(out[30:-30].mean()) < 0.5


def test_remove_trend_short_input_unchanged():
    np.testing.assert_array_equal(remove_trend([1.0, 5.0, 2.0]), [1.0, 5.0, 2.0])


def test_remove_outliers_iqr_clips_but_keeps_length():
    x = np.array([10.0, 11, 12, 10, 11, 12, 10, 11, 12, 10, 100])
    out = remove_outliers_iqr(x)
    assert out.size == x.size
    assert out.max() < 100
    np.testing.assert_array_equal(out[:10], x[:10])


def test_interpolate_to_uniform_spans_series():
    rr = [800.0, 850, 900, 850, 800, 820, 840]
    out = interpolate_to_uniform(rr, target_length=128)
    assert out.size == 128
    assert out[0] == pytest.approx(800.0)
    assert out[-1] == pytest.approx(840.0)
    assert out.min() >= 800.0 and out.max() <= 900.0


def test_interpolate_to_uniform_short_series_unchanged():
    np.testing.assert_array_equal(interpolate_to_uniform([800.0, 810.0]), [800.0, 810.0])


def test_lowpass_keeps_constant_and_length():
    out = lowpass_filter(np.full(50, 7.0), 5.0, 30.0)
    np.testing.assert_allclose(out, 7.0)


def test_lowpass_attenuates_high_frequency():
    fs = 30.0
    t = np.arange(300) / fs
    slow = np.sin(2 * np.pi * 1.0 * t)
    fast = np.sin(2 * np.pi * 12.0 * t)
    out = lowpass_filter(slow + fast, 2.0, fs)
    assert np.std(out - slow) < np.std(fast)


def test_preprocess_ppg_keeps_length():
    x = 128 + 10 * np.sin(np.linspace(0, 40, 400))
    assert preprocess_ppg(x, 30.0).shape == (400,)
