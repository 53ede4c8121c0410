"""Tests for quadrant assignment, stress state and stress level."""

import itertools
import math

import pytest

from model.stress import (
    STRESS_LEVEL_LABELS,
    StressQuadrant,
    classify_quadrant,
    determine_stress_state,
    estimate_stress_level,
    lf_hf_ratio,
)


@pytest.mark.parametrize("lf, hf, quadrant", [
    (40, 10, StressQuadrant.MENTAL_STRESS),
    (40, 40, StressQuadrant.RESTING),
    (10, 10, StressQuadrant.PHYSICAL_STRESS),
    (10, 40, StressQuadrant.DEEP_RELAXATION),
    (25, 25, StressQuadrant.DEEP_RELAXATION),
])
def test_classify_quadrant(lf, hf, quadrant):
    assert classify_quadrant(lf, hf) is quadrant


def test_ratio_defaults_when_hf_not_positive():
    assert lf_hf_ratio(20, 0) == 1.5
    assert lf_hf_ratio(20, math.nan) == 1.5
    assert lf_hf_ratio(30, 15) == pytest.approx(2.0)


@pytest.mark.parametrize("args, label", [
    ((10, 40, 60, 60), "deep relaxation (near-meditative)"),
    ((10, 40, 80, 30), "relaxed"),
    ((10, 10, 100, 30), "strong physical stress"),
    ((10, 10, 70, 30), "mild physical stress"),
    ((40, 40, 70, 30), "resting"),
    ((40, 10, 90, 30), "strong mental stress"),
    ((40, 10, 70, 15), "strong mental stress"),
    ((40, 10, 70, 30), "mild mental stress"),
])
def test_determine_stress_state(args, label):
    assert determine_stress_state(*args) == label


def test_invalid_inputs_fall_back_to_defaults():
    # LF 20 / HF 15 / HR 70 / RMSSD 30 → low LF, low HF, calm heart
    assert determine_stress_state(math.nan, None, math.inf, "x") == "mild physical stress"


def test_out_of_range_inputs_are_clamped():
    # LF clamps to 60, HF to 5 → mental quadrant; HR clamps to 200
    assert determine_stress_state(1000, -5, 500, 30) == "strong mental stress"


@pytest.mark.parametrize("args, quality, label", [
    ((60, 0.4, 10, 40), None, "very low (deep relaxation)"),
    ((35, 1.0, 40, 40), None, "slightly low (normal)"),
    ((10, 1.0, 10, 10), None, "high (stressed)"),
    ((10, 1.0, 10, 10), 0.2, "very high (strong stress)"),
    ((45, 2.5, 40, 10), None, "moderate (mild stress)"),
])
def test_estimate_stress_level(args, quality, label):
    assert estimate_stress_level(*args, signal_quality=quality) == label


def test_classifier_is_total_and_deterministic():
    grid = [math.nan, -10, 0, 5, 24.9, 25, 25.1, 45, 60, 1e6]
    for lf, hf, hr, rm in itertools.product(grid, grid, [math.nan, 30, 64, 86, 95, 300], [math.nan, 10, 55]):
        state = determine_stress_state(lf, hf, hr, rm)
        level = estimate_stress_level(rm, lf_hf_ratio(lf, hf), lf, hf)
        assert state and level in STRESS_LEVEL_LABELS
        assert determine_stress_state(lf, hf, hr, rm) == state
