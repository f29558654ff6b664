"""
motionfit - IMU/GPS speed fusion and steering extraction

Offline post-processing of phone sensor logs recorded in a car:
- Steering: the gyroscope's principal rotation axis is taken as the car's
  vertical axis, and rotation about it is integrated into a heading angle
- Speed: accelerometer bias terms and initial velocity are fitted against
  GPS speed over short overlapping windows (L-BFGS), and the per-timestamp
  speed estimates of all windows are averaged and Gaussian-smoothed

Submodules:
- config: FitConfig dataclass and YAML loading
- errors: ConfigError, DataError, ConvergenceWarning
- data_loaders: Sensor/GPS containers and JSON loaders
- timeline: MergedTimeline joining gyro and accelerometer streams
- math_utils: Quaternion helpers, gyro orientation integration
- rotation_axis: Vertical axis PCA, steering angles
- calibration: AccelerometerCalibrator objective
- optimizer: Per-window L-BFGS driver
- sliding_window: Sliding window orchestration and estimate merging
- smoothing: Estimate averaging and Gaussian smoothing
- output_utils: JSON output writers, run summary
- main_loop: FitMotionRunner for the complete pipeline

Usage:
    from motionfit.config import load_config
    from motionfit.main_loop import FitMotionRunner
    from motionfit.calibration import AccelerometerCalibrator
"""

__version__ = "1.0.0"

# Lazy module imports - access as motionfit.config, motionfit.calibration, etc.
import importlib

_SUBMODULES = {
    "config", "errors", "data_loaders", "timeline", "math_utils",
    "rotation_axis", "calibration", "optimizer", "sliding_window",
    "smoothing", "output_utils", "main_loop",
}


def __getattr__(name):
    """Lazy module loading to avoid importing scipy/pandas until needed."""
    if name in _SUBMODULES:
        module = importlib.import_module(f".{name}", __name__)
        globals()[name] = module
        return module
    raise AttributeError(f"module 'motionfit' has no attribute '{name}'")


def __dir__():
    return list(_SUBMODULES)


__all__ = list(_SUBMODULES)
