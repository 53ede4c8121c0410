"""Tests for the PPG signal-quality score."""

import numpy as np
import pytest

from conftest import make_ppg
from features.quality import assess_ppg_quality, calculate_autocorrelation


def test_insufficient_data():
    result = assess_ppg_quality(np.ones(10))
    assert result.quality == 0.0
    assert result.reason == "insufficient data"


def test_flat_signal_scores_low():
    assert assess_ppg_quality(np.full(60, 128.0)).quality == pytest.approx(0.1)


def test_wildly_varying_signal_scores_low():
    assert assess_ppg_quality(np.tile([50.0, 150.0], 30)).quality == pytest.approx(0.3)


def test_clean_pulse_scores_good():
    values, _ = make_ppg(5.0)
    result = assess_ppg_quality(values)
    assert result.quality > 0.7
    assert result.reason == "good"
    assert 0.0 <= result.quality <= 1.0


def test_autocorrelation_of_flat_signal_is_zero():
    np.testing.assert_array_equal(calculate_autocorrelation(np.full(20, 3.0)), np.zeros(20))


def test_autocorrelation_lag_zero_is_one():
    acf = calculate_autocorrelation(np.sin(np.arange(50) * 0.4))
    assert acf[0] == pytest.approx(1.0)
    assert acf.size == 50
