"""
Exception types for owd_offset.

Every failure of an estimation is raised to the caller as a subclass of
OffsetEstimationError; there is no fallback offset.
"""

from typing import Optional


class OffsetEstimationError(Exception):
    """Base class for all owd_offset errors."""


class ConfigurationError(OffsetEstimationError, ValueError):
    """Invalid generator constants or estimator configuration."""


class InvalidParameterError(OffsetEstimationError, ValueError):
    """Gamma sampler called with alpha < 1 or theta <= 0."""


class DegenerateSampleError(OffsetEstimationError, ValueError):
    """Zero-variance, non-positive-mean or non-finite input."""


class InsufficientDataError(OffsetEstimationError, ValueError):
    """Fewer than 2 measurements."""


class InsufficientFilteredDataError(InsufficientDataError):
    """Fewer than 2 measurements survived the Monte-Carlo threshold."""

    def __init__(self, message: str, threshold: Optional[float] = None, kept: int = 0):
        super().__init__(message)
        self.threshold = threshold
        self.kept = kept


class SamplerExhaustedError(OffsetEstimationError, RuntimeError):
    """A rejection sampler hit its iteration cap."""


class OffsetRangeError(OffsetEstimationError, OverflowError):
    """Offset does not fit in a signed 64-bit nanosecond value."""


__all__ = [
    "OffsetEstimationError",
    "ConfigurationError",
    "InvalidParameterError",
    "DegenerateSampleError",
    "InsufficientDataError",
    "InsufficientFilteredDataError",
    "SamplerExhaustedError",
    "OffsetRangeError",
]
