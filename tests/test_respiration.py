"""Tests for the audio-based respiration rate."""

import numpy as np

from conftest import make_breathing_audio
from features.respiration import estimate_respiration, estimate_respiration_rate
from utils.fallback import FallbackReason


def test_short_buffer_returns_no_data_sentinel():
    assert estimate_respiration_rate(np.full(99, 50.0)) == "--"
    assert estimate_respiration_rate([]) == "--"


def test_too_few_peaks_returns_default_range():
    est = estimate_respiration(np.full(400, 5.0))
    assert est.value == "12-16"
    assert est.reason is FallbackReason.INSUFFICIENT_DATA


def test_fifteen_breaths_per_minute():
    assert estimate_respiration_rate(make_breathing_audio(30.0, breaths_per_min=15)) == 15


def test_rate_is_clamped_to_plausible_range():
    # one bump per second would be 60/min
    assert estimate_respiration_rate(make_breathing_audio(30.0, breaths_per_min=60)) == 25


def test_sampling_interval_scales_rate():
    audio = make_breathing_audio(30.0, breaths_per_min=15)
    # the same samples read as 50 ms apart span twice the time
    assert estimate_respiration_rate(audio, sampling_interval_ms=50) == 8
