"""
Model-based clock offset estimation from one-way-delay measurements.

The delays are modelled as a Gamma process. A Monte-Carlo sample of the fitted
model gives a threshold for the least-congested delays; a linear regression
through those measurements over time yields the offset (intercept) and the
drift (slope).

References:
    E. Mota-Garcia, R. Hasimoto-Beltran. "A new model-based clock-offset
    approximation over IP networks". Computer Communications 53, 2014,
    pp. 26-36. https://doi.org/10.1016/j.comcom.2014.07.006
"""

import logging
import math
from dataclasses import dataclass
from fractions import Fraction
from typing import Optional, Sequence, Union

import numpy as np

from .config import EstimatorConfig
from .errors import (
    InsufficientDataError,
    InsufficientFilteredDataError,
    InvalidParameterError,
    OffsetEstimationError,
    OffsetRangeError,
)
from .fitting import GammaParams, fit_gamma
from .regression import RegressionResult, linear_regression, quantile_regression_offset
from .rng import time_seed
from .sampling import GammaSampler
from .utils.logging import debug_log_call, debug_log_variable

logger = logging.getLogger(__name__)

NANOSECONDS_PER_SECOND = 1_000_000_000
I64_MIN = -2 ** 63
I64_MAX = 2 ** 63 - 1

SampleLike = Union[Sequence[float], np.ndarray]


@dataclass
class OffsetEstimate:
    """Result of one estimation, with the intermediate values that produced it."""
    offset_ns: int
    offset_seconds: float
    params: GammaParams
    seed: int
    method: str
    threshold: Optional[float] = None            # Delay threshold (threshold method)
    kept_indices: Optional[np.ndarray] = None    # Positions of measurements used
    regression: Optional[RegressionResult] = None

    @property
    def drift(self) -> Optional[float]:
        """Regression slope: seconds of delay change per index (or timestamp) unit."""
        return self.regression.slope if self.regression is not None else None


def seconds_to_nanoseconds(seconds: float) -> int:
    """
    Convert an offset in seconds to signed 64-bit nanoseconds.

    Raises:
        OffsetRangeError: If the value is not finite or overflows int64
    """
    if not math.isfinite(seconds):
        raise OffsetRangeError(f"Offset is not finite: {seconds}")
    nanoseconds = int(round(seconds * NANOSECONDS_PER_SECOND))
    if not I64_MIN <= nanoseconds <= I64_MAX:
        raise OffsetRangeError(f"Offset {seconds}s does not fit in signed 64-bit nanoseconds")
    return nanoseconds


def percentile_threshold(draws: np.ndarray, percentile: float) -> float:
    """
    Nearest-rank percentile of the Monte-Carlo draws.

    Args:
        draws: Simulated delays
        percentile: In (0, 100]

    Returns:
        The order statistic at rank ceil(percentile / 100 * n), computed
        exactly so integer percentiles never round up a rank
    """
    if len(draws) == 0:
        raise InsufficientDataError("Cannot take a percentile of an empty Monte-Carlo sample")
    ordered = np.sort(draws)
    rank = math.ceil(Fraction(percentile) * len(ordered) / 100)
    index = min(max(rank - 1, 0), len(ordered) - 1)
    return float(ordered[index])


class OffsetEstimator:
    """
    Offset estimator.

    Holds configuration only; every call builds its own generator, so one
    instance can serve concurrent callers.
    """

    def __init__(self, config: Optional[EstimatorConfig] = None):
        self.config = (config or EstimatorConfig()).validate()

    def _sampler(self, seed: int) -> GammaSampler:
        return GammaSampler.from_seed(
            seed,
            max_iterations=self.config.max_iterations,
            cache_normal=self.config.cache_normal,
        )

    def estimate(self, samples: SampleLike,
                 seed: Optional[int] = None,
                 timestamps: Optional[SampleLike] = None) -> int:
        """
        Estimate the clock offset in nanoseconds.

        Args:
            samples: Time-ordered one-way delays in seconds
            seed: Generator seed; derived from the system clock when None,
                which makes the result non-deterministic
            timestamps: Optional measurement times used as the regression
                axis instead of the position index

        Returns:
            Offset in nanoseconds
        """
        return self.estimate_detailed(samples, seed=seed, timestamps=timestamps).offset_ns

    @debug_log_call
    def estimate_detailed(self, samples: SampleLike,
                          seed: Optional[int] = None,
                          timestamps: Optional[SampleLike] = None) -> OffsetEstimate:
        """Estimate the clock offset and return every intermediate result."""
        try:
            data = np.asarray(samples, dtype=np.float64)
            if data.ndim != 1 or len(data) < 2:
                raise InsufficientDataError(f"Need at least 2 delay measurements, got {data.size}")

            times = None
            if timestamps is not None:
                times = np.asarray(timestamps, dtype=np.float64)
                if times.shape != data.shape:
                    raise InvalidParameterError(
                        f"timestamps length {times.size} does not match {len(data)} delay measurements"
                    )

            params = fit_gamma(data, self.config.min_alpha, self.config.max_alpha)
            if seed is None:
                seed = time_seed()
            sampler = self._sampler(seed)

            if self.config.method == "qq":
                result = self._estimate_qq(data, params, sampler, seed)
            else:
                result = self._estimate_threshold(data, times, params, sampler, seed)
        except OffsetEstimationError as e:
            logger.warning(f"Offset estimation failed: {type(e).__name__}: {e}")
            raise

        logger.info(f"Estimated offset {result.offset_ns} ns from {len(data)} measurements "
                    f"(method={result.method}, alpha={params.alpha:.3f}, theta={params.theta:.6g})")
        return result

    def _estimate_threshold(self, data: np.ndarray,
                            times: Optional[np.ndarray],
                            params: GammaParams,
                            sampler: GammaSampler,
                            seed: int) -> OffsetEstimate:
        draws = sampler.sample_many(params.alpha, params.theta, self.config.monte_carlo_samples)
        threshold = params.location + percentile_threshold(draws, self.config.threshold_percentile)
        debug_log_variable("threshold", threshold)

        kept = np.flatnonzero(data <= threshold)
        if len(kept) < 2:
            raise InsufficientFilteredDataError(
                f"Only {len(kept)} of {len(data)} measurements at or below the "
                f"{self.config.threshold_percentile}th percentile threshold {threshold:.6g}s",
                threshold=threshold,
                kept=len(kept),
            )
        logger.debug(f"Kept {len(kept)}/{len(data)} measurements below threshold {threshold:.6g}s")

        x = times[kept] if times is not None else kept.astype(np.float64)
        regression = linear_regression(x, data[kept])
        # Offset is the fitted delay at the origin of the regression axis
        offset = regression.predict(0.0)

        return OffsetEstimate(
            offset_ns=seconds_to_nanoseconds(offset),
            offset_seconds=offset,
            params=params,
            seed=seed,
            method="threshold",
            threshold=threshold,
            kept_indices=kept,
            regression=regression,
        )

    def _estimate_qq(self, data: np.ndarray,
                     params: GammaParams,
                     sampler: GammaSampler,
                     seed: int) -> OffsetEstimate:
        draws = sampler.sample_many(params.alpha, params.theta, len(data))
        offset = quantile_regression_offset(np.sort(data), np.sort(draws))

        return OffsetEstimate(
            offset_ns=seconds_to_nanoseconds(offset),
            offset_seconds=offset,
            params=params,
            seed=seed,
            method="qq",
            kept_indices=np.arange(len(data)),
        )


def estimate(samples: SampleLike, config: Optional[EstimatorConfig] = None) -> int:
    """
    Estimate the offset with a time-derived seed.

    The result varies between calls; use estimate_with_seed() for
    reproducible output.
    """
    return OffsetEstimator(config).estimate(samples)


def estimate_with_seed(samples: SampleLike, seed: int,
                       config: Optional[EstimatorConfig] = None) -> int:
    """Estimate the offset deterministically from an explicit 64-bit seed."""
    return OffsetEstimator(config).estimate(samples, seed=seed)
