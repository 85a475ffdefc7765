"""
Pytest configuration and shared fixtures for owd_offset tests.
"""

import logging

import numpy as np
import pytest

from owd_offset.sampling import GammaSampler
from owd_offset.utils.logging import disable_debug


@pytest.fixture
def owd_sample():
    """Five time-ordered one-way delays (seconds)."""
    return [0.340, 0.360, 0.350, 0.345, 0.355]


@pytest.fixture
def fixed_seed():
    return 12345


@pytest.fixture
def synthetic_delays():
    """
    200 delays: 50 ms base delay, 10 us/sample drift and Gamma(2, 2 ms) queueing.

    Generated with the package's own sampler so the fixture is reproducible
    without any global random state.
    """
    sampler = GammaSampler.from_seed(7)
    queueing = sampler.sample_many(2.0, 0.002, 200)
    drift = 1e-5 * np.arange(200)
    return 0.050 + drift + queueing


@pytest.fixture(autouse=True)
def reset_package_logging():
    """Undo any logging configuration a test applied."""
    yield
    disable_debug()
    package_logger = logging.getLogger("owd_offset")
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)


# Test markers for different test categories
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests"
    )
    config.addinivalue_line(
        "markers", "slow: Slow running tests"
    )


@pytest.fixture
def shape_sample():
    """
    Factory for [1, 1, 1, x] samples with a chosen method-of-moments shape.

    With the unbiased variance, alpha_hat = (3 + x)^2 / (4 (x - 1)^2), so
    x = (3 + 2 sqrt(t)) / (2 sqrt(t) - 1) for t > 0.25.
    """
    def build(target_alpha: float) -> list:
        root = 2.0 * np.sqrt(target_alpha)
        x = (3.0 + root) / (root - 1.0)
        return [1.0, 1.0, 1.0, float(x)]

    return build
