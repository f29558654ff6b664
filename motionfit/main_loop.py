"""
Main Motion Fit Runner

This module provides the FitMotionRunner class that orchestrates the
complete offline pipeline:

- Data loading (gyroscope, accelerometer, GPS speed JSON logs)
- Merged IMU timeline
- Vertical axis detection and steering angle extraction
- Sliding-window accelerometer calibration against GPS speed
- Averaging and temporal smoothing of the speed estimates
- Output JSON files (steering, velocities)

Usage:
    from motionfit.config import load_config
    from motionfit.main_loop import FitMotionRunner

    config = load_config("configs/fit_motion_default.yaml")
    config.rotations_json = "rotations.json"
    # ... other paths

    result = FitMotionRunner(config).run()

Author: motionfit project
"""

from dataclasses import dataclass, field
from typing import List

import numpy as np

from .config import FitConfig
from .data_loaders import (
    GpsSeries, SensorSeries,
    load_accelerations_json, load_gps_json, load_rotations_json,
)
from .errors import DataError
from .optimizer import WindowFit
from .output_utils import print_fit_summary, write_fit_outputs
from .rotation_axis import horizontal_turn_angles, vertical_axis
from .sliding_window import fit_sliding_windows
from .smoothing import fuse_velocities
from .timeline import MergedTimeline


@dataclass
class FitMotionResult:
    """Everything one run produces."""
    vertical_axis: np.ndarray
    used_fallback_axis: bool
    steering_timestamps_usec: np.ndarray
    steering_angles: np.ndarray
    velocity_timestamps_usec: np.ndarray
    speeds: np.ndarray
    fits: List[WindowFit] = field(default_factory=list)


def run_pipeline(rotations: SensorSeries,
                 accelerations: SensorSeries,
                 gps: GpsSeries,
                 config: FitConfig) -> FitMotionResult:
    """
    Run steering extraction and speed fusion on in-memory streams.

    Raises:
        ConfigError: Invalid settings (checked before anything else)
        DataError: Empty or unordered input streams
    """
    config.validate()
    for name, stream in (("rotations", rotations), ("accelerations", accelerations), ("GPS", gps)):
        if len(stream) == 0:
            raise DataError(f"{name} stream is empty")

    timeline = MergedTimeline(rotations, accelerations)
    print(f"[TIMELINE] {len(timeline)} merged IMU events "
          f"({timeline.times_sec[-1]:.1f}s)")

    # Steering: rotation about the detected vertical axis
    axis, used_fallback = vertical_axis(
        rotations, config.pca_max_samples,
        fallback_axis=config.fallback_vertical_axis,
        degenerate_ratio=config.degenerate_axis_ratio,
    )
    angles = horizontal_turn_angles(rotations, axis)

    # Speed: sliding window calibration, averaging, smoothing
    windows = fit_sliding_windows(timeline, gps, config)
    timestamps_usec, speeds = fuse_velocities(
        timeline, windows.estimates,
        config.smoothing_sigma_seconds, config.smoothing_cutoff_sigmas,
    )

    print_fit_summary(
        [f.cost for f in windows.fits],
        [f.iterations for f in windows.fits],
        windows.num_unconverged,
        speeds,
    )
    return FitMotionResult(
        vertical_axis=axis,
        used_fallback_axis=used_fallback,
        steering_timestamps_usec=rotations.timestamps_usec.copy(),
        steering_angles=angles,
        velocity_timestamps_usec=timestamps_usec,
        speeds=speeds,
        fits=windows.fits,
    )


class FitMotionRunner:
    """
    File-to-file runner.

    All configuration and path checks happen before data is loaded, and
    both output files are written only after both series are computed.
    """

    def __init__(self, config: FitConfig):
        self.config = config

    def run(self) -> FitMotionResult:
        cfg = self.config
        cfg.validate()
        cfg.require_paths()

        rotations = load_rotations_json(cfg.rotations_json)
        accelerations = load_accelerations_json(cfg.accelerations_json)
        gps = load_gps_json(cfg.locations_json)

        result = run_pipeline(rotations, accelerations, gps, cfg)

        write_fit_outputs(
            cfg.steering_out_json, result.steering_timestamps_usec, result.steering_angles,
            cfg.velocities_out_json, result.velocity_timestamps_usec, result.speeds,
        )
        return result
