#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Averaging and Gaussian smoothing of the per-timestamp speed estimates.
"""

from typing import Dict, List, Tuple

import numpy as np

from .config import DEFAULT_SMOOTHING_CUTOFF_SIGMAS
from .errors import ConfigError
from .timeline import MergedTimeline


def average_estimates(estimates: Dict[int, List[float]]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Mean of the collected estimates for every covered index.

    Returns:
        indices: (M,) sorted merged-timeline indices
        means: (M,) mean speed per index
    """
    indices = np.array(sorted(idx for idx, vals in estimates.items() if len(vals) > 0), dtype=np.int64)
    means = np.array([float(np.mean(estimates[int(i)])) for i in indices], dtype=float)
    return indices, means


def smooth_time_series(values: np.ndarray,
                       times_in: np.ndarray,
                       times_out: np.ndarray,
                       sigma: float,
                       cutoff_sigmas: float = DEFAULT_SMOOTHING_CUTOFF_SIGMAS) -> np.ndarray:
    """
    Gaussian kernel smoother.

    Each output is the normalized weighted mean of the inputs with weights
    exp(-Δt² / (2 sigma²)). Inputs further than cutoff_sigmas * sigma
    contribute nothing; the nearest input is always included so every
    output is defined.

    Args:
        values: (N,) input series
        times_in: (N,) sorted input times [s]
        times_out: (M,) output times [s]
        sigma: Kernel width [s]
    """
    if sigma <= 0:
        raise ConfigError(f"Smoothing sigma must be positive, got {sigma}")
    values = np.asarray(values, dtype=float)
    times_in = np.asarray(times_in, dtype=float)
    times_out = np.asarray(times_out, dtype=float)
    if len(values) != len(times_in):
        raise ValueError(f"{len(values)} values for {len(times_in)} timestamps")
    if len(values) == 0:
        return np.zeros(len(times_out))

    radius = cutoff_sigmas * sigma
    lo = np.searchsorted(times_in, times_out - radius, side="left")
    hi = np.searchsorted(times_in, times_out + radius, side="right")
    nearest = np.clip(np.searchsorted(times_in, times_out), 0, len(times_in) - 1)

    out = np.empty(len(times_out))
    for k, t in enumerate(times_out):
        a, b = int(lo[k]), int(hi[k])
        if b <= a:
            # nothing within the cutoff, fall back to the closest neighbour
            j = int(nearest[k])
            if j > 0 and abs(times_in[j - 1] - t) <= abs(times_in[j] - t):
                j -= 1
            out[k] = values[j]
            continue
        dt = times_in[a:b] - t
        w = np.exp(-dt * dt / (2.0 * sigma * sigma))
        out[k] = float(np.dot(w, values[a:b]) / np.sum(w))
    return out


def fuse_velocities(timeline: MergedTimeline,
                    estimates: Dict[int, List[float]],
                    sigma: float,
                    cutoff_sigmas: float = DEFAULT_SMOOTHING_CUTOFF_SIGMAS) -> Tuple[np.ndarray, np.ndarray]:
    """
    Average overlapping window estimates and smooth them in time.

    Returns:
        timestamps_usec: (M,) merged event times of the covered indices
        speeds: (M,) smoothed speed [m/s]
    """
    indices, means = average_estimates(estimates)
    if len(indices) == 0:
        return np.zeros(0, dtype=np.int64), np.zeros(0)
    timestamps_usec = timeline.timestamps_usec[indices]
    times_sec = (timestamps_usec - timestamps_usec[0]).astype(float) * 1e-6
    smoothed = smooth_time_series(means, times_sec, times_sec, sigma, cutoff_sigmas)
    print(f"[SMOOTH] {len(indices)} fused speeds, sigma={sigma:g}s")
    return timestamps_usec, smoothed
