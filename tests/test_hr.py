"""Tests for heart-rate aggregation and the dominant-frequency estimate."""

import numpy as np
import pytest

from conftest import make_ppg
from features.hr import (
    aggregate_heart_rate,
    aggregate_heart_rate_estimate,
    estimate_heart_rate_frequency,
    estimate_heart_rate_frequency_estimate,
    median_recent_heart_rate,
)


def test_median_recent_needs_three_rates():
    assert median_recent_heart_rate([70, 72]) is None
    assert median_recent_heart_rate([70, 72, 74]) == 72


def test_median_recent_uses_last_five():
    assert median_recent_heart_rate([200, 200, 200, 60, 62, 64, 66, 68]) == 64


def test_aggregate_filters_implausible_rates():
    assert aggregate_heart_rate([30, 70, 72, 250]) == 71


def test_aggregate_without_rates_defaults():
    est = aggregate_heart_rate_estimate([])
    assert est.value == 70 and est.used_default


def test_dominant_frequency_of_72_bpm_sine():
    values, _ = make_ppg(20.0, bpm=72)
    assert estimate_heart_rate_frequency(values, 30.0) == pytest.approx(1.2, abs=0.05)


def test_dominant_frequency_short_input_defaults():
    est = estimate_heart_rate_frequency_estimate(np.ones(50), 30.0)
    assert est.value == 1.2 and est.used_default


def test_dominant_frequency_is_clamped_to_cardiac_band():
    t = np.arange(600) / 30.0
    # 5 Hz is outside 0.5–3 Hz, so the answer still lies in the band
    freq = estimate_heart_rate_frequency(np.sin(2 * np.pi * 5.0 * t), 30.0)
    assert 0.5 <= freq <= 3.0
