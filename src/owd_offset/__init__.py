"""
owd_offset - Model-based clock offset estimation

Estimates the clock offset between two hosts from one-way-delay measurements
by modelling network delay as a Gamma process.
"""

__version__ = "0.1.0"
__author__ = "ChronoTick Team"

from .config import EstimatorConfig, load_config
from .errors import (
    OffsetEstimationError,
    ConfigurationError,
    InvalidParameterError,
    DegenerateSampleError,
    InsufficientDataError,
    InsufficientFilteredDataError,
    SamplerExhaustedError,
    OffsetRangeError,
)
from .estimator import (
    OffsetEstimator,
    OffsetEstimate,
    estimate,
    estimate_with_seed,
)
from .fitting import GammaParams, fit_gamma
from .regression import RegressionResult, linear_regression
from .rng import LcgRng, time_seed
from .sampling import NormalSampler, GammaSampler

__all__ = [
    "estimate",
    "estimate_with_seed",
    "OffsetEstimator",
    "OffsetEstimate",
    "EstimatorConfig",
    "load_config",
    "GammaParams",
    "fit_gamma",
    "RegressionResult",
    "linear_regression",
    "LcgRng",
    "time_seed",
    "NormalSampler",
    "GammaSampler",
    "OffsetEstimationError",
    "ConfigurationError",
    "InvalidParameterError",
    "DegenerateSampleError",
    "InsufficientDataError",
    "InsufficientFilteredDataError",
    "SamplerExhaustedError",
    "OffsetRangeError",
    "__version__",
]
