"""
Tests for the offset estimator.
"""

import logging

import numpy as np
import pytest

from owd_offset import estimate, estimate_with_seed
from owd_offset.config import EstimatorConfig
from owd_offset.errors import (
    ConfigurationError,
    DegenerateSampleError,
    InsufficientDataError,
    InsufficientFilteredDataError,
    InvalidParameterError,
    OffsetRangeError,
)
from owd_offset.estimator import (
    OffsetEstimate,
    OffsetEstimator,
    percentile_threshold,
    seconds_to_nanoseconds,
)


class TestEndToEnd:
    """Test the public entry points"""

    def test_reference_baseline(self, owd_sample, fixed_seed):
        """
        Shape clamps to 4, so the threshold falls between 0.345 s and 0.350 s;
        the line through (0, 0.340) and (3, 0.345) has intercept 0.340 s.
        """
        assert estimate_with_seed(owd_sample, fixed_seed) == 340_000_000

    @pytest.mark.parametrize("seed", [0, 1, 2024, 2 ** 64 - 1])
    def test_baseline_holds_across_seeds(self, owd_sample, seed):
        assert estimate_with_seed(owd_sample, seed) == 340_000_000

    def test_time_seeded(self, owd_sample):
        offset = estimate(owd_sample)
        assert isinstance(offset, int)
        assert offset == 340_000_000

    def test_deterministic(self, synthetic_delays):
        first = estimate_with_seed(synthetic_delays, 99)
        second = estimate_with_seed(synthetic_delays, 99)
        assert first == second

    def test_synthetic_offset(self, synthetic_delays):
        """The estimate sits near the 50 ms base delay"""
        offset = estimate_with_seed(synthetic_delays, 99)
        assert 45_000_000 < offset < 60_000_000

    def test_returns_int(self, owd_sample, fixed_seed):
        assert type(estimate_with_seed(owd_sample, fixed_seed)) is int


class TestOffsetEstimator:
    """Test OffsetEstimator details"""

    def test_detailed_result(self, owd_sample, fixed_seed):
        result = OffsetEstimator().estimate_detailed(owd_sample, seed=fixed_seed)

        assert isinstance(result, OffsetEstimate)
        assert result.method == "threshold"
        assert result.seed == fixed_seed
        assert result.offset_ns == 340_000_000
        assert result.offset_seconds == pytest.approx(0.340)
        assert result.params.alpha == 4.0
        assert 0.345 <= result.threshold < 0.350
        np.testing.assert_array_equal(result.kept_indices, [0, 3])
        assert result.drift == pytest.approx(0.005 / 3)
        assert result.regression.predict(0.0) == result.offset_seconds

    def test_detailed_is_reproducible(self, synthetic_delays):
        estimator = OffsetEstimator()
        a = estimator.estimate_detailed(synthetic_delays, seed=5)
        b = estimator.estimate_detailed(synthetic_delays, seed=5)
        assert a.threshold == b.threshold
        assert a.offset_ns == b.offset_ns
        np.testing.assert_array_equal(a.kept_indices, b.kept_indices)

    def test_kept_values_below_threshold(self, synthetic_delays):
        result = OffsetEstimator().estimate_detailed(synthetic_delays, seed=5)
        kept = synthetic_delays[result.kept_indices]
        assert len(kept) >= 2
        assert np.all(kept <= result.threshold)
        assert np.all(np.diff(result.kept_indices) > 0)

    def test_timestamps_scale_slope(self, owd_sample, fixed_seed):
        """Doubling the time axis halves the drift and keeps the intercept"""
        timestamps = 2.0 * np.arange(len(owd_sample))
        result = OffsetEstimator().estimate_detailed(owd_sample, seed=fixed_seed, timestamps=timestamps)
        assert result.offset_ns == 340_000_000
        assert result.drift == pytest.approx(0.005 / 6)

    def test_timestamps_shift_intercept(self, owd_sample, fixed_seed):
        """The intercept is taken at timestamp zero"""
        timestamps = 10.0 + np.arange(len(owd_sample))
        offset = OffsetEstimator().estimate(owd_sample, seed=fixed_seed, timestamps=timestamps)
        assert offset == 323_333_333

    def test_qq_method(self, synthetic_delays):
        estimator = OffsetEstimator(EstimatorConfig(method="qq"))
        result = estimator.estimate_detailed(synthetic_delays, seed=17)
        assert result.method == "qq"
        assert result.threshold is None
        assert result.drift is None
        assert isinstance(result.offset_ns, int)
        assert estimator.estimate(synthetic_delays, seed=17) == result.offset_ns

    def test_percentile_changes_threshold(self, synthetic_delays):
        low = OffsetEstimator(EstimatorConfig(threshold_percentile=10.0))
        high = OffsetEstimator(EstimatorConfig(threshold_percentile=50.0))
        a = low.estimate_detailed(synthetic_delays, seed=3)
        b = high.estimate_detailed(synthetic_delays, seed=3)
        assert a.threshold < b.threshold
        assert len(a.kept_indices) <= len(b.kept_indices)

    def test_invalid_config(self):
        with pytest.raises(ConfigurationError):
            OffsetEstimator(EstimatorConfig(monte_carlo_samples=0))

    def test_nan_shape_bound_rejected(self, shape_sample, fixed_seed):
        """A low-shape sample is clamped, never passed on to the sampler"""
        with pytest.raises(ConfigurationError):
            OffsetEstimator(EstimatorConfig(min_alpha=float("nan")))
        result = OffsetEstimator().estimate_detailed(shape_sample(0.5), seed=fixed_seed)
        assert result.params.alpha == 1.0


class TestEstimatorErrors:
    """Test error reporting"""

    def test_single_measurement(self, fixed_seed):
        with pytest.raises(InsufficientDataError):
            estimate_with_seed([0.34], fixed_seed)

    def test_empty(self, fixed_seed):
        with pytest.raises(InsufficientDataError):
            estimate_with_seed([], fixed_seed)

    def test_identical_measurements(self, fixed_seed):
        with pytest.raises(DegenerateSampleError):
            estimate_with_seed([0.35, 0.35, 0.35, 0.35], fixed_seed)

    def test_filtered_too_few(self, fixed_seed):
        """Only one measurement is below the threshold; it is not widened"""
        samples = [0.340, 0.360, 0.361, 0.362, 0.363, 0.364]
        with pytest.raises(InsufficientFilteredDataError) as exc_info:
            estimate_with_seed(samples, fixed_seed)
        assert exc_info.value.kept == 1
        assert exc_info.value.threshold < 0.360
        assert isinstance(exc_info.value, InsufficientDataError)

    def test_mismatched_timestamps(self, owd_sample, fixed_seed):
        with pytest.raises(InvalidParameterError):
            OffsetEstimator().estimate(owd_sample, seed=fixed_seed, timestamps=[0.0, 1.0])

    def test_invalid_seed(self, owd_sample):
        with pytest.raises(ConfigurationError):
            estimate_with_seed(owd_sample, -1)

    def test_failure_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="owd_offset"):
            with pytest.raises(InsufficientDataError):
                estimate_with_seed([0.34], 1)
        assert "Offset estimation failed" in caplog.text
        assert "InsufficientDataError" in caplog.text


class TestHelpers:
    """Test conversion and percentile helpers"""

    @pytest.mark.parametrize("seconds,expected", [
        (0.340, 340_000_000),
        (1.5, 1_500_000_000),
        (-0.25, -250_000_000),
        (0.0, 0),
        (1.2345678904e-3, 1_234_568),
    ])
    def test_seconds_to_nanoseconds(self, seconds, expected):
        assert seconds_to_nanoseconds(seconds) == expected

    @pytest.mark.parametrize("seconds", [float("inf"), float("nan"), 1e10, -1e10])
    def test_seconds_to_nanoseconds_range(self, seconds):
        with pytest.raises(OffsetRangeError):
            seconds_to_nanoseconds(seconds)

    def test_percentile_threshold(self):
        draws = np.arange(100, 0, -1, dtype=float)
        assert percentile_threshold(draws, 25.0) == 25.0
        assert percentile_threshold(draws, 100.0) == 100.0
        assert percentile_threshold(draws, 0.5) == 1.0

    def test_percentile_threshold_empty(self):
        with pytest.raises(InsufficientDataError):
            percentile_threshold(np.array([]), 25.0)

    @pytest.mark.parametrize("percentile", range(1, 101))
    def test_percentile_threshold_integer_ranks(self, percentile):
        """Integer percentiles of 1..100 select exactly that order statistic"""
        draws = np.arange(1, 101, dtype=float)
        assert percentile_threshold(draws[::-1], float(percentile)) == float(percentile)

    def test_percentile_threshold_fractional_rank(self):
        draws = np.arange(1, 1001, dtype=float)
        assert percentile_threshold(draws, 7.0) == 70.0
        assert percentile_threshold(draws, 0.15) == 2.0
