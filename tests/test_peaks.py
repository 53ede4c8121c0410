"""Tests for the live heartbeat detector and the offline RR extraction."""

import numpy as np
import pytest

from conftest import make_breathing_audio, make_ppg
from ppg.peaks import (
    HeartbeatDetector,
    detect_basic_peaks,
    detect_peaks_template,
    detect_respiration_peaks,
    extract_hrv_from_ppg,
    remove_rr_outliers,
    validate_rr_series,
)


def _run_detector(values, timestamps):
    detector = HeartbeatDetector()
    buffer, events = [], []
    for value, ts in zip(values, timestamps):
        buffer.append(value)
        event = detector.process(buffer, ts)
        if event is not None:
            events.append(event)
    return detector, events


def test_detector_tracks_72_bpm_sine():
    values, timestamps = make_ppg(20.0, bpm=72)
    detector, events = _run_detector(values, timestamps)

    assert len(events) >= 20
    assert abs(np.median(detector.heart_rates) - 72) <= 2
    steady = detector.rr_intervals[8:]
    assert steady and all(833 <= rr <= 834 for rr in steady), steady


@pytest.mark.parametrize("amplitude", [5.0, 50.0, 200.0, 5000.0])
def test_refractory_period_holds_at_any_amplitude(amplitude):
    # 5 Hz oscillation (200 ms period) at 100 Hz sampling
    fs = 100.0
    n = 600
    values = 500 + amplitude * np.sin(2 * np.pi * 5.0 * np.arange(n) / fs)
    timestamps = [int(k * 10) for k in range(n)]
    _, events = _run_detector(values, timestamps)

    beats = [e.timestamp_ms for e in events]
    assert len(beats) >= 2
    assert all(b - a >= 250 for a, b in zip(beats, beats[1:]))


def test_detector_needs_fifteen_samples():
    detector = HeartbeatDetector()
    assert detector.process([128.0, 140.0] * 7, 500) is None
    assert detector.last_heartbeat_ms is None


def test_flat_signal_gives_no_beats():
    detector, events = _run_detector(np.full(300, 128.0), [k * 33 for k in range(300)])
    assert events == []
    assert detector.rr_intervals == []


def test_current_heart_rate_needs_three_values():
    detector = HeartbeatDetector()
    detector.heart_rates = [70, 72]
    assert detector.current_heart_rate is None
    detector.heart_rates = [60, 70, 80, 90, 100, 200]
    assert detector.current_heart_rate == 90


def test_reset_clears_state():
    values, timestamps = make_ppg(5.0)
    detector, _ = _run_detector(values, timestamps)
    detector.reset()
    assert detector.last_heartbeat_ms is None
    assert detector.rr_intervals == [] and detector.heart_rates == []


def test_basic_peaks_on_flat_signal():
    assert detect_basic_peaks(np.ones(100)) == []


def test_basic_peaks_respect_min_distance():
    values, _ = make_ppg(10.0, bpm=72)
    peaks = detect_basic_peaks(values)
    assert len(peaks) >= 10
    assert all(b - a >= 10 for a, b in zip(peaks, peaks[1:]))


def test_template_peaks_short_signal():
    assert detect_peaks_template(np.ones(20), 30.0) == []


def test_extract_hrv_from_regular_ppg():
    values, _ = make_ppg(20.0, bpm=72)
    rr = extract_hrv_from_ppg(values, sample_rate_hz=30.0)
    assert len(rr) >= 10
    assert abs(np.median(rr) - 1000.0 / 1.2) < 1.0


def test_extract_hrv_from_noise_free_flat_signal_is_empty():
    assert extract_hrv_from_ppg(np.full(300, 100.0), 30.0) == []


def test_validate_rr_series_drops_implausible_and_deviant():
    out = validate_rr_series([800, 810, 790, 2000, 805])
    assert out == [800, 810, 790, 805]


def test_validate_rr_series_short_unchanged():
    assert validate_rr_series([5000, 100]) == [5000, 100]


def test_remove_rr_outliers_uses_successive_change():
    assert remove_rr_outliers([800, 820, 1200, 810]) == [800, 820, 810]


def test_respiration_peaks_every_breath():
    audio = make_breathing_audio(30.0, breaths_per_min=15)
    peaks = detect_respiration_peaks(audio)
    assert len(peaks) >= 6
    assert all(b - a == 160 for a, b in zip(peaks, peaks[1:]))


def test_respiration_peaks_below_threshold():
    assert detect_respiration_peaks(np.full(200, 5.0) + np.sin(np.arange(200))) == []
