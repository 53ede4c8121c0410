"""Shared synthetic-signal helpers for the test suite."""

import numpy as np
import pytest


def make_ppg(duration_s: float, bpm: float = 72.0, fs: float = 30.0,
             amplitude: float = 10.0, baseline: float = 128.0):
    """Pure-sine PPG and integer-millisecond timestamps."""
    n = int(duration_s * fs)
    i = np.arange(n)
    values = baseline + amplitude * np.sin(2 * np.pi * (bpm / 60.0) * i / fs)
    timestamps = [int(round(k * 1000.0 / fs)) for k in range(n)]
    return values, timestamps


def make_breathing_audio(duration_s: float, breaths_per_min: float = 15.0, interval_ms: float = 25.0):
    """One narrow amplitude bump per breath, peaking at 23."""
    t = np.arange(int(duration_s * 1000.0 / interval_ms)) * interval_ms / 1000.0
    return 3.0 + 20.0 * np.sin(np.pi * breaths_per_min / 60.0 * t) ** 8


@pytest.fixture
def sine_ppg():
    return make_ppg(35.0)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
