"""
Gamma model fitting for one-way-delay samples.

Shape and scale are estimated by the method of moments. The shape is clamped
into [1.0, 4.0], the empirically validated range for network delay.
"""

import logging
from dataclasses import dataclass
from typing import Sequence, Tuple, Union

import numpy as np

from .errors import DegenerateSampleError, InsufficientDataError, InvalidParameterError
from .utils.logging import debug_log_call

logger = logging.getLogger(__name__)

MIN_ALPHA = 1.0
MAX_ALPHA = 4.0

SampleLike = Union[Sequence[float], np.ndarray]


@dataclass(frozen=True)
class GammaParams:
    """Fitted Gamma model of the delay sample."""
    alpha: float              # Shape, clamped
    theta: float              # Scale
    raw_alpha: float          # Method-of-moments shape before clamping
    mean: float               # Sample mean (seconds)
    variance: float           # Unbiased sample variance (seconds^2)

    @property
    def clamped(self) -> bool:
        return self.alpha != self.raw_alpha

    @property
    def location(self) -> float:
        """
        Shift that gives the clamped model the observed mean.

        Without clamping alpha * theta equals the sample mean and the
        location is zero up to rounding.
        """
        return self.mean - self.alpha * self.theta


def _as_sample(samples: SampleLike) -> np.ndarray:
    data = np.asarray(samples, dtype=np.float64)
    if data.ndim != 1:
        raise DegenerateSampleError(f"Delay sample must be one-dimensional, got shape {data.shape}")
    if len(data) < 2:
        raise InsufficientDataError(f"Need at least 2 delay measurements, got {len(data)}")
    if not np.all(np.isfinite(data)):
        raise DegenerateSampleError("Delay sample contains non-finite values")
    return data


def _moments(samples: SampleLike) -> Tuple[float, float]:
    """Sample mean and unbiased variance of a usable delay sample."""
    data = _as_sample(samples)
    mean = float(np.mean(data))
    variance = float(np.var(data, ddof=1))

    if mean <= 0.0:
        raise DegenerateSampleError(f"Delay sample mean must be positive, got {mean}")
    # Rounding in the mean can leave a tiny non-zero variance for identical values
    if variance == 0.0 or np.all(data == data[0]):
        raise DegenerateSampleError("Delay sample has zero variance (all measurements identical)")
    return mean, variance


def method_of_moments(samples: SampleLike) -> Tuple[float, float]:
    """
    Unclamped method-of-moments Gamma estimates.

    Uses the unbiased (n - 1) sample variance.

    Args:
        samples: Delay measurements in seconds

    Returns:
        Tuple of (alpha_hat, theta_hat)

    Raises:
        InsufficientDataError: Fewer than 2 values
        DegenerateSampleError: Zero variance, non-positive mean or
            non-finite values
    """
    mean, variance = _moments(samples)
    return mean * mean / variance, variance / mean


@debug_log_call
def fit_gamma(samples: SampleLike,
              min_alpha: float = MIN_ALPHA,
              max_alpha: float = MAX_ALPHA) -> GammaParams:
    """
    Fit a Gamma model to a delay sample.

    Args:
        samples: Delay measurements in seconds, at least 2
        min_alpha: Lower shape bound, at least 1
        max_alpha: Upper shape bound

    Returns:
        GammaParams with alpha clamped into [min_alpha, max_alpha]

    Raises:
        InvalidParameterError: Bounds that are NaN, below 1 or reversed
    """
    # Also rejects NaN bounds
    if not 1.0 <= min_alpha <= max_alpha:
        raise InvalidParameterError(
            f"Shape bounds must satisfy 1 <= min_alpha <= max_alpha, got [{min_alpha}, {max_alpha}]"
        )

    mean, variance = _moments(samples)
    raw_alpha = mean * mean / variance
    theta = variance / mean
    alpha = min(max(raw_alpha, min_alpha), max_alpha)

    params = GammaParams(
        alpha=alpha,
        theta=theta,
        raw_alpha=raw_alpha,
        mean=mean,
        variance=variance,
    )

    if params.clamped:
        logger.debug(f"Gamma shape {raw_alpha:.4f} clamped to {alpha:.1f}")
    logger.debug(f"Fitted Gamma: alpha={alpha:.4f}, theta={theta:.6g}, location={params.location:.6g}")
    return params
