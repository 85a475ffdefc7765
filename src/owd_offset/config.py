"""
Estimator configuration.

Settings live in a YAML file with an `estimator` section and an optional
`logging` section. The packaged configs/default.yaml documents every key.
"""

import logging
import math
from dataclasses import dataclass, fields, asdict
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .errors import ConfigurationError
from .utils.logging import setup_logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "configs" / "default.yaml"

METHODS = ("threshold", "qq")


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _is_finite_number(value: Any) -> bool:
    return (isinstance(value, (int, float)) and not isinstance(value, bool)
            and math.isfinite(value))


@dataclass
class EstimatorConfig:
    """Offset estimator configuration"""
    monte_carlo_samples: int = 1000      # Gamma draws used to locate the threshold
    threshold_percentile: float = 25.0   # Low percentile of the draws kept as threshold
    min_alpha: float = 1.0
    max_alpha: float = 4.0
    max_iterations: int = 1000           # Rejection cap per variate
    method: str = "threshold"            # "threshold" or "qq"
    cache_normal: bool = True            # Reuse the paired polar-method variate

    def validate(self) -> "EstimatorConfig":
        """
        Check value ranges.

        Returns:
            self, for chaining

        Raises:
            ConfigurationError: On any out-of-range or wrongly typed value
        """
        if self.method not in METHODS:
            raise ConfigurationError(f"Unknown estimation method '{self.method}', expected one of {METHODS}")
        if not _is_positive_int(self.monte_carlo_samples):
            raise ConfigurationError(f"monte_carlo_samples must be a positive integer, got {self.monte_carlo_samples}")
        for name in ("threshold_percentile", "min_alpha", "max_alpha"):
            value = getattr(self, name)
            if not _is_finite_number(value):
                raise ConfigurationError(f"{name} must be a finite number, got {value!r}")
        if not isinstance(self.cache_normal, bool):
            raise ConfigurationError(f"cache_normal must be true or false, got {self.cache_normal!r}")
        if not 0.0 < self.threshold_percentile <= 100.0:
            raise ConfigurationError(f"threshold_percentile must be in (0, 100], got {self.threshold_percentile}")
        if self.min_alpha < 1.0:
            raise ConfigurationError(f"min_alpha must be >= 1.0 for the Gamma sampler, got {self.min_alpha}")
        if self.max_alpha < self.min_alpha:
            raise ConfigurationError(f"max_alpha ({self.max_alpha}) must be >= min_alpha ({self.min_alpha})")
        if not _is_positive_int(self.max_iterations):
            raise ConfigurationError(f"max_iterations must be a positive integer, got {self.max_iterations}")
        return self

    @classmethod
    def from_dict(cls, values: Optional[Dict[str, Any]]) -> "EstimatorConfig":
        """Build a validated config, ignoring unknown keys."""
        values = values or {}
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            logger.warning(f"Ignoring unknown estimator settings: {unknown}")
        return cls(**{k: v for k, v in values.items() if k in known}).validate()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config_file(path: Union[str, Path, None] = None) -> Dict[str, Any]:
    """Load the raw YAML configuration."""
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except FileNotFoundError:
        logger.error(f"Configuration file not found: {config_path}")
        raise
    except yaml.YAMLError as e:
        logger.error(f"Error parsing configuration file: {e}")
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")
    return config


def load_config(path: Union[str, Path, None] = None) -> EstimatorConfig:
    """
    Load estimator settings from YAML.

    Args:
        path: Configuration file; the packaged default when None

    Returns:
        Validated EstimatorConfig
    """
    config = load_config_file(path)
    estimator = EstimatorConfig.from_dict(config.get('estimator'))
    logger.debug(f"Loaded estimator configuration: {estimator.to_dict()}")
    return estimator


def apply_logging_config(config: Dict[str, Any]) -> None:
    """Configure logging from the `logging` section of a raw config."""
    logging_config = config.get('logging') or {}
    setup_logging(
        level=logging_config.get('level', 'INFO'),
        log_file=logging_config.get('file'),
        format_string=logging_config.get('format'),
    )
