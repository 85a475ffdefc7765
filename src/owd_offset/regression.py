"""
Least-squares regression helpers for offset extraction.
"""

import logging
from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np

from .errors import DegenerateSampleError, InsufficientDataError

logger = logging.getLogger(__name__)

ArrayLike = Union[Sequence[float], np.ndarray]


@dataclass(frozen=True)
class RegressionResult:
    """Best-fit line y = slope * x + intercept."""
    slope: float
    intercept: float

    def predict(self, x: float) -> float:
        return self.slope * x + self.intercept


def linear_regression(x: ArrayLike, y: ArrayLike) -> RegressionResult:
    """
    Ordinary least squares fit of y against x.

    Args:
        x: Regressor values (indices or timestamps)
        y: Observed values

    Returns:
        RegressionResult

    Raises:
        InsufficientDataError: Fewer than 2 points or mismatched lengths
        DegenerateSampleError: All x values are equal
    """
    x_arr = np.asarray(x, dtype=np.float64)
    y_arr = np.asarray(y, dtype=np.float64)

    if len(x_arr) != len(y_arr):
        raise InsufficientDataError(f"Regression needs paired data, got {len(x_arr)} x and {len(y_arr)} y")
    if len(x_arr) < 2:
        raise InsufficientDataError(f"Regression needs at least 2 points, got {len(x_arr)}")

    x_mean = float(np.mean(x_arr))
    y_mean = float(np.mean(y_arr))
    dx = x_arr - x_mean

    denominator = float(np.sum(dx * dx))
    if denominator == 0.0:
        raise DegenerateSampleError("Regression is undefined when all x values are equal")

    slope = float(np.sum(dx * (y_arr - y_mean))) / denominator
    intercept = y_mean - slope * x_mean
    return RegressionResult(slope=slope, intercept=intercept)


def quantile_regression_offset(sorted_delays: ArrayLike, sorted_model: ArrayLike) -> float:
    """
    Offset from a quantile-quantile regression of model draws on delays.

    For rank i (1-based) of n the plotting position is p_i = (i - 0.5) / n.
    The model quantiles are regressed on delay[i] - p_i and the offset is the
    point where that line crosses y = 0.

    References:
        E. Mota-Garcia, R. Hasimoto-Beltran. "A new model-based clock-offset
        approximation over IP networks". Computer Communications 53, 2014,
        pp. 26-36. https://doi.org/10.1016/j.comcom.2014.07.006

    Args:
        sorted_delays: Observed delays, ascending
        sorted_model: Same number of Gamma draws, ascending

    Returns:
        Offset in seconds
    """
    delays = np.asarray(sorted_delays, dtype=np.float64)
    model = np.asarray(sorted_model, dtype=np.float64)
    if len(delays) != len(model):
        raise InsufficientDataError(
            f"Quantile regression needs equal-length series, got {len(delays)} and {len(model)}"
        )

    n = len(delays)
    p_values = (np.arange(1, n + 1) - 0.5) / n
    fit = linear_regression(delays - p_values, model)
    if fit.slope == 0.0:
        raise DegenerateSampleError("Quantile regression slope is zero; offset is undefined")

    offset = -fit.intercept / fit.slope
    logger.debug(f"Quantile regression: slope={fit.slope:.6g}, intercept={fit.intercept:.6g}, offset={offset:.6g}")
    return offset
