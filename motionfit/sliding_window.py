#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Sliding-Window Calibration
==========================

IMU drift grows with integration time, so instead of one global fit the
calibration is repeated over short overlapping windows of GPS
measurements, and every IMU timestamp collects one speed estimate from
each window covering it.

Windows share no state. Each one is a pure task returning its own
partial {index: [speed]} map; partial maps are merged by concatenating
the per-index lists, so no locking is needed when windows run in a
thread pool.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .calibration import AccelerometerCalibrator
from .config import FitConfig
from .data_loaders import GpsSeries
from .errors import ConfigError, DataError
from .optimizer import WindowFit, fit_window
from .timeline import MergedTimeline


# merged-timeline index -> speed estimates from every covering window
PerTimestampEstimates = Dict[int, List[float]]


@dataclass
class WindowOutcome:
    """Result of one sliding window."""
    window_id: int
    gps_start: int
    gps_end: int
    fit: WindowFit
    estimates: PerTimestampEstimates


@dataclass
class SlidingWindowResult:
    estimates: PerTimestampEstimates = field(default_factory=dict)
    outcomes: List[WindowOutcome] = field(default_factory=list)

    @property
    def fits(self) -> List[WindowFit]:
        return [o.fit for o in self.outcomes]

    @property
    def num_unconverged(self) -> int:
        return sum(1 for o in self.outcomes if not o.fit.converged)


def window_bounds(num_gps: int, window_size: int, stride: int) -> Iterator[Tuple[int, int]]:
    """
    Yield [start, end) GPS index ranges of the sliding windows.

    Starts at 0 and advances by stride while start < num_gps; the last
    windows are clipped to num_gps. Produces ceil(num_gps / stride) windows.
    """
    if window_size <= 0 or stride <= 0:
        raise ConfigError(f"window_size and stride must be positive, got {window_size}, {stride}")
    if stride > window_size:
        raise ConfigError(f"stride ({stride}) must not exceed window_size ({window_size})")
    for start in range(0, num_gps, stride):
        yield start, min(start + window_size, num_gps)


def run_window(timeline: MergedTimeline,
               gps: GpsSeries,
               gps_start: int,
               gps_end: int,
               max_iterations: int,
               gradient_tolerance: float,
               window_id: int = 0,
               num_windows: int = 0) -> WindowOutcome:
    """Calibrate one window and integrate its velocity magnitudes."""
    tag = f"[WINDOW {window_id + 1}/{num_windows}] " if num_windows else f"[WINDOW {window_id + 1}] "
    calibrator = AccelerometerCalibrator(gps[gps_start:gps_end], timeline)
    fit = fit_window(calibrator, max_iterations, gradient_tolerance, label=tag)

    trajectory = calibrator.integrate_with(fit.params)
    estimates = {idx: [point.speed] for idx, point in trajectory.items()}

    print(f"{tag}gps[{gps_start}:{gps_end}) imu_samples={len(estimates)} "
          f"iters={fit.iterations} cost={fit.cost:.6g}"
          f"{'' if fit.converged else f' (not converged: {fit.message})'}")
    return WindowOutcome(window_id=window_id, gps_start=gps_start, gps_end=gps_end,
                         fit=fit, estimates=estimates)


def merge_estimates(partials: Iterable[PerTimestampEstimates],
                    into: Optional[PerTimestampEstimates] = None) -> PerTimestampEstimates:
    """Concatenate per-index estimate lists from several windows."""
    merged = {} if into is None else into
    for partial in partials:
        for idx, speeds in partial.items():
            merged.setdefault(idx, []).extend(speeds)
    return merged


def fit_sliding_windows(timeline: MergedTimeline, gps: GpsSeries, config: FitConfig) -> SlidingWindowResult:
    """
    Run the calibration over every sliding window of the GPS stream.

    Windows run sequentially, or on config.num_workers threads. Outcomes
    are merged in window order either way.
    """
    config.validate()
    if len(gps) == 0:
        raise DataError("GPS stream is empty")

    bounds = list(window_bounds(len(gps), config.window_size, config.stride))
    n = len(bounds)
    print(f"[WINDOW] {n} windows of {config.window_size} GPS samples, stride {config.stride}")

    def task(item):
        window_id, (start, end) = item
        return run_window(timeline, gps, start, end,
                          config.max_optimizer_iterations, config.gradient_tolerance,
                          window_id=window_id, num_windows=n)

    if config.num_workers > 1:
        with ThreadPoolExecutor(max_workers=config.num_workers) as pool:
            outcomes = list(pool.map(task, enumerate(bounds)))
    else:
        outcomes = [task(item) for item in enumerate(bounds)]

    result = SlidingWindowResult(outcomes=outcomes)
    merge_estimates((o.estimates for o in outcomes), into=result.estimates)
    if result.num_unconverged:
        print(f"[WINDOW] {result.num_unconverged}/{n} windows hit the iteration budget")
    return result
