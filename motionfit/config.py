#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Motion Fit Configuration Module
===============================

Handles YAML configuration loading and validation for the IMU/GPS
speed fusion pipeline.

Configuration Structure:
------------------------
The YAML config file contains:
- calibration: sliding window size/stride and L-BFGS budget
- smoothing: Gaussian kernel width for the final velocity series
- rotation_axis: PCA sample budget and degenerate-axis fallback
- runtime: number of worker threads for window fitting
- paths: optional input/output JSON paths (CLI values take precedence)

Units:
------
- window_size, stride: number of GPS measurements
- smoothing sigma: seconds
- timestamps in all data files: integer microseconds

Author: motionfit project
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np
import yaml

from .errors import ConfigError


# =============================================================================
# Defaults (match the original command line tool)
# =============================================================================

DEFAULT_WINDOW_SIZE = 40
DEFAULT_STRIDE = 5
DEFAULT_MAX_OPTIMIZER_ITERATIONS = 500
DEFAULT_GRADIENT_TOLERANCE = 1e-6
DEFAULT_SMOOTHING_SIGMA_SEC = 0.003
DEFAULT_SMOOTHING_CUTOFF_SIGMAS = 6.0
DEFAULT_PCA_MAX_SAMPLES = 500000
DEFAULT_VERTICAL_AXIS = (0.0, 0.0, 1.0)
DEFAULT_DEGENERATE_AXIS_RATIO = 0.99

PATH_FIELDS = (
    "rotations_json",
    "accelerations_json",
    "locations_json",
    "velocities_out_json",
    "steering_out_json",
)


@dataclass
class FitConfig:
    """Settings for one offline fitting run."""

    # Sliding window calibration
    window_size: int = DEFAULT_WINDOW_SIZE  # GPS samples per window
    stride: int = DEFAULT_STRIDE  # GPS samples between window starts
    max_optimizer_iterations: int = DEFAULT_MAX_OPTIMIZER_ITERATIONS
    gradient_tolerance: float = DEFAULT_GRADIENT_TOLERANCE

    # Post smoothing
    smoothing_sigma_seconds: float = DEFAULT_SMOOTHING_SIGMA_SEC
    smoothing_cutoff_sigmas: float = DEFAULT_SMOOTHING_CUTOFF_SIGMAS

    # Vertical axis detection
    pca_max_samples: int = DEFAULT_PCA_MAX_SAMPLES
    fallback_vertical_axis: List[float] = field(
        default_factory=lambda: list(DEFAULT_VERTICAL_AXIS))
    # Second/first principal energy ratio above which the axis is ambiguous
    degenerate_axis_ratio: float = DEFAULT_DEGENERATE_AXIS_RATIO

    # Runtime
    num_workers: int = 1

    # Paths
    rotations_json: Optional[str] = None
    accelerations_json: Optional[str] = None
    locations_json: Optional[str] = None
    velocities_out_json: Optional[str] = None
    steering_out_json: Optional[str] = None

    def validate(self) -> "FitConfig":
        """Check algorithm settings, raising ConfigError on the first problem."""
        _require_positive_int("window_size", self.window_size)
        _require_positive_int("stride", self.stride)
        if self.stride > self.window_size:
            raise ConfigError(
                f"stride ({self.stride}) must not exceed window_size "
                f"({self.window_size}), windows would leave coverage gaps")
        _require_positive_int("max_optimizer_iterations", self.max_optimizer_iterations)
        _require_positive_float("gradient_tolerance", self.gradient_tolerance)
        _require_positive_float("smoothing_sigma_seconds", self.smoothing_sigma_seconds)
        _require_positive_float("smoothing_cutoff_sigmas", self.smoothing_cutoff_sigmas)
        _require_positive_int("pca_max_samples", self.pca_max_samples)
        _require_positive_int("num_workers", self.num_workers)

        axis = np.asarray(self.fallback_vertical_axis, dtype=float)
        if axis.shape != (3,) or not np.all(np.isfinite(axis)) or np.linalg.norm(axis) < 1e-12:
            raise ConfigError(
                f"fallback_vertical_axis must be a non-zero 3-vector, got {self.fallback_vertical_axis}")
        ratio = self.degenerate_axis_ratio
        if not isinstance(ratio, (int, float)) or not 0.0 < float(ratio) <= 1.0:
            raise ConfigError(f"degenerate_axis_ratio must be in (0, 1], got {ratio}")
        return self

    def require_paths(self) -> "FitConfig":
        """Check that every input and output path is set."""
        for name in PATH_FIELDS:
            if not getattr(self, name):
                raise ConfigError(f"Missing required path: {name}")
        return self

    def summary_lines(self) -> List[str]:
        return [
            f"  window_size: {self.window_size} GPS samples",
            f"  stride: {self.stride} GPS samples",
            f"  max_optimizer_iterations: {self.max_optimizer_iterations}",
            f"  gradient_tolerance: {self.gradient_tolerance:g}",
            f"  smoothing_sigma_seconds: {self.smoothing_sigma_seconds:g}",
            f"  pca_max_samples: {self.pca_max_samples}",
            f"  num_workers: {self.num_workers}",
        ]


def _require_positive_int(name: str, value: Any):
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value <= 0:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")


def _require_positive_float(name: str, value: Any):
    if isinstance(value, bool) or not isinstance(value, (int, float, np.number)):
        raise ConfigError(f"{name} must be a positive number, got {value!r}")
    if not np.isfinite(value) or value <= 0:
        raise ConfigError(f"{name} must be a positive number, got {value!r}")


# =============================================================================
# YAML loading
# =============================================================================

# YAML section -> {yaml key: FitConfig field}
_SECTION_KEYS = {
    "calibration": {
        "window_size": "window_size",
        "stride": "stride",
        "max_optimizer_iterations": "max_optimizer_iterations",
        "gradient_tolerance": "gradient_tolerance",
    },
    "smoothing": {
        "sigma_seconds": "smoothing_sigma_seconds",
        "cutoff_sigmas": "smoothing_cutoff_sigmas",
    },
    "rotation_axis": {
        "pca_max_samples": "pca_max_samples",
        "fallback_vertical_axis": "fallback_vertical_axis",
        "degenerate_axis_ratio": "degenerate_axis_ratio",
    },
    "runtime": {
        "num_workers": "num_workers",
    },
    "paths": {name: name for name in PATH_FIELDS},
}


def config_from_dict(raw: Optional[Dict[str, Any]]) -> FitConfig:
    """
    Build a validated FitConfig from a parsed YAML mapping.

    Missing sections and keys keep their defaults; unknown sections are
    ignored.

    Raises:
        ConfigError: If a section is not a mapping or a value is invalid
    """
    raw = raw or {}
    if not isinstance(raw, dict):
        raise ConfigError("Config root must be a mapping")

    kwargs = {}
    for section, keys in _SECTION_KEYS.items():
        values = raw.get(section) or {}
        if not isinstance(values, dict):
            raise ConfigError(f"Config section '{section}' must be a mapping")
        for yaml_key, attr in keys.items():
            if yaml_key in values:
                kwargs[attr] = values[yaml_key]
    return FitConfig(**kwargs).validate()


def load_config(config_path: str) -> FitConfig:
    """
    Load YAML configuration file into a validated FitConfig.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        FitConfig with defaults for anything the file does not set

    Raises:
        ConfigError: If the file is missing, malformed or has invalid values

    Example:
        >>> config = load_config("configs/fit_motion_default.yaml")
        >>> print(config.window_size, config.stride)
    """
    try:
        with open(config_path, 'r') as f:
            raw = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {config_path}")
    except yaml.YAMLError as e:
        raise ConfigError(f"Malformed YAML config {config_path}: {e}")
    return config_from_dict(raw)
