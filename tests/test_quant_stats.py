"""Tests for quant_stats.py"""

import math

import numpy as np
import pytest

from quant_stats import (
    clamp, covariance, exponential_moving_average, log_returns, mean,
    normalize_to_100, percentile, round_half_up, simple_moving_average,
    standard_deviation,
)


class TestDescriptive:

    def test_empty_input_is_neutral(self):
        assert mean([]) == 0.0
        assert standard_deviation([]) == 0.0
        assert percentile([], 50) == 0.0
        assert covariance([], []) == 0.0

    def test_single_value_std_is_zero(self):
        assert standard_deviation([42.0]) == 0.0

    def test_population_std(self):
        assert standard_deviation([1, 2, 3, 4]) == pytest.approx(math.sqrt(1.25))

    def test_percentile_interpolates(self):
        assert percentile([1, 2, 3, 4], 50) == pytest.approx(2.5)
        assert percentile([10, 20], 25) == pytest.approx(12.5)

    def test_covariance_of_series_with_itself_is_variance(self):
        values = [1.0, 3.0, 2.0, 5.0]
        assert covariance(values, values) == pytest.approx(standard_deviation(values) ** 2)

    def test_covariance_length_mismatch(self):
        assert covariance([1, 2, 3], [1, 2]) == 0.0


class TestReturns:

    def test_log_returns_length(self):
        r = log_returns([100, 110, 121])
        assert len(r) == 2
        assert r[0] == pytest.approx(math.log(1.1))
        assert r[1] == pytest.approx(math.log(1.1))

    def test_log_returns_short(self):
        assert log_returns([100]).size == 0


class TestMovingAverages:

    def test_sma_warmup_is_nan(self):
        sma = simple_moving_average([1, 2, 3, 4], 3)
        assert np.isnan(sma[0]) and np.isnan(sma[1])
        assert sma[2] == pytest.approx(2.0)
        assert sma[3] == pytest.approx(3.0)

    def test_ema_first_seed_passes_first_value(self):
        ema = exponential_moving_average([10, 20, 30], 3)
        assert ema[0] == 10
        # alpha = 0.5
        assert ema[1] == pytest.approx(15.0)
        assert ema[2] == pytest.approx(22.5)

    def test_ema_sma_seed_warmup(self):
        ema = exponential_moving_average([1, 2, 3, 4, 5], 3, seed="sma")
        assert list(ema[:2]) == [1.0, 2.0]
        assert ema[2] == pytest.approx(2.0)
        assert ema[3] == pytest.approx(3.0)
        assert ema[4] == pytest.approx(4.0)

    def test_ema_sma_seed_shorter_than_period(self):
        assert list(exponential_moving_average([1, 2], 3, seed="sma")) == [1.0, 2.0]

    def test_ema_seed_variants_converge(self):
        values = list(np.linspace(50, 80, 300))
        first = exponential_moving_average(values, 12)
        sma = exponential_moving_average(values, 12, seed="sma")
        assert first[-1] == pytest.approx(sma[-1], rel=1e-6)

    def test_ema_empty(self):
        assert exponential_moving_average([], 5).size == 0

    def test_ema_unknown_seed(self):
        with pytest.raises(ValueError):
            exponential_moving_average([1, 2, 3], 2, seed="median")


class TestScaling:

    def test_normalize_midpoint_and_clamp(self):
        assert normalize_to_100(0, -2, 2) == pytest.approx(50.0)
        assert normalize_to_100(5, -2, 2) == 100.0
        assert normalize_to_100(-5, -2, 2) == 0.0

    def test_normalize_degenerate_range(self):
        assert normalize_to_100(3, 1, 1) == 50.0

    def test_clamp(self):
        assert clamp(5, 0, 3) == 3
        assert clamp(-1, 0, 3) == 0

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(64.5) == 65
        assert round_half_up(0.49) == 0
        assert round_half_up(-2.5) == -2
