#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Vertical Axis Detection and Steering Angles
===========================================

A phone lying in a car rotates mostly about the car's vertical axis
(yaw from steering); pitch and roll rates are small. The principal axis
of the raw gyroscope readings therefore approximates the vertical axis,
whatever the phone's mounting orientation.

Algorithm:
----------
1. Take up to `max_samples` leading gyro readings as points in R³
2. Compute the second-moment matrix (1/n) Σ ω ωᵀ. It is not mean
   centred: a steady turn is all "rotational energy" about one axis and
   must not collapse to zero variance
3. Eigenvectors sorted by eigenvalue are the principal axes; the first
   one is the vertical axis
4. Rotation within the horizontal plane is the angular velocity
   component about the vertical axis, integrated over time into a
   heading angle

Degenerate recordings (no rotation, or isotropic rotation with no
dominant axis) fall back to a configured axis instead of whatever
eigenvector the solver happens to return.
"""

from typing import Optional, Tuple

import numpy as np

from .data_loaders import SensorSeries
from .errors import DataError


MIN_ROTATION_ENERGY = 1e-12  # (rad/s)²


def principal_rotation_axes(rotations: SensorSeries, max_samples: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Principal axes of the leading gyroscope readings.

    Args:
        rotations: Gyroscope stream
        max_samples: Number of leading samples to use

    Returns:
        axes: (3, 3) unit axes as rows, by descending energy
        energies: (3,) mean squared angular rate about each axis
    """
    if len(rotations) == 0:
        raise DataError("rotations: stream is empty")
    w = rotations.values[:max(1, int(max_samples))]
    moment = w.T @ w / float(len(w))
    eigvals, eigvecs = np.linalg.eigh(moment)
    order = np.argsort(eigvals)[::-1]
    return eigvecs[:, order].T.copy(), np.maximum(eigvals[order], 0.0)


def _orient_like(axis: np.ndarray, reference: np.ndarray) -> np.ndarray:
    """Flip sign so the axis points the same way as reference."""
    d = float(np.dot(axis, reference))
    if d < 0:
        return -axis
    if d == 0:
        k = int(np.argmax(np.abs(axis)))
        return -axis if axis[k] < 0 else axis
    return axis


def vertical_axis(rotations: SensorSeries,
                  max_samples: int,
                  fallback_axis=(0.0, 0.0, 1.0),
                  degenerate_ratio: float = 0.99) -> Tuple[np.ndarray, bool]:
    """
    Detect the vehicle vertical axis in the sensor frame.

    Args:
        rotations: Gyroscope stream
        max_samples: Leading samples used for PCA
        fallback_axis: Axis used when the data has no dominant rotation axis
        degenerate_ratio: If second/first principal energy reaches this
            ratio, the dominant axis is considered ambiguous

    Returns:
        axis: Unit 3-vector, sign chosen to agree with fallback_axis
        used_fallback: True if the fallback axis was returned
    """
    fallback = np.asarray(fallback_axis, dtype=float)
    fallback = fallback / np.linalg.norm(fallback)

    axes, energies = principal_rotation_axes(rotations, max_samples)
    if energies[0] <= MIN_ROTATION_ENERGY:
        print(f"[PCA] WARNING: no rotation in leading samples, using fallback axis {fallback}")
        return fallback, True
    ratio = energies[1] / energies[0]
    if ratio >= degenerate_ratio:
        print(f"[PCA] WARNING: no dominant rotation axis (energy ratio {ratio:.3f}), "
              f"using fallback axis {fallback}")
        return fallback, True

    axis = _orient_like(axes[0], fallback)
    print(f"[PCA] vertical axis = [{axis[0]:+.4f}, {axis[1]:+.4f}, {axis[2]:+.4f}] "
          f"(energy ratio {ratio:.3f})")
    return axis, False


def horizontal_turn_rates(rotations: SensorSeries, axis: np.ndarray) -> np.ndarray:
    """Angular velocity about the vertical axis [rad/s], one per sample."""
    a = np.asarray(axis, dtype=float)
    return rotations.values @ (a / np.linalg.norm(a))


def horizontal_turn_angles(rotations: SensorSeries, axis: np.ndarray,
                           rates: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Running heading angle [rad] in the horizontal plane, one per sample.

    The first sample is at angle 0; each later angle adds the previous
    sample's rate over the step length.
    """
    if rates is None:
        rates = horizontal_turn_rates(rotations, axis)
    dt = np.diff(rotations.timestamps_usec).astype(float) * 1e-6
    angles = np.zeros(len(rates))
    if len(rates) > 1:
        angles[1:] = np.cumsum(rates[:-1] * dt)
    return angles
