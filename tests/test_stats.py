"""Tests for the population statistics helpers."""

import math

import pytest

from features.stats import (
    calculate_mean,
    calculate_median,
    calculate_std_dev,
    calculate_variance,
    is_valid_number,
    validate_value,
)


@pytest.mark.parametrize("fn", [calculate_mean, calculate_median, calculate_variance, calculate_std_dev])
def test_empty_input_is_zero(fn):
    assert fn([]) == 0.0
    assert fn(None) == 0.0


def test_median_even_length_averages_middle_pair():
    assert calculate_median([4, 1, 3, 2]) == 2.5


def test_population_variance():
    assert calculate_variance([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(4.0)
    assert calculate_std_dev([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)


@pytest.mark.parametrize("value, ok", [(1, True), (0.0, True), (math.nan, False), (math.inf, False),
                                       (None, False), ("abc", False), ("3.5", True)])
def test_is_valid_number(value, ok):
    assert is_valid_number(value) is ok


def test_validate_value_defaults_and_clamps():
    assert validate_value(math.nan, 5, 60, 20) == 20
    assert validate_value(None, 5, 60, 20) == 20
    assert validate_value(100, 5, 60, 20) == 60
    assert validate_value(-3, 5, 60, 20) == 5
    assert validate_value(33.3, 5, 60, 20) == pytest.approx(33.3)
