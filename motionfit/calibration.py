#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Accelerometer Auto-Calibration Against GPS Speed
================================================

Fits accelerometer calibration terms for one window of GPS measurements
by matching the magnitude of IMU-integrated velocity to GPS speed.

Model:
------
Orientation R_k (sensor -> world) is integrated from the gyro starting at
identity at the last merged event at or before the first GPS timestamp.
Velocity follows a forward Euler recurrence:

    v_0     = v_init
    v_{k+1} = v_k + dt_k * ( R_k (a_k - b_local) - b_global )

b_local is a sensor-frame offset (absorbs gravity as seen by a phone
that does not move relative to the car, plus sensor bias); b_global is
a world-frame offset applied after rotation.

Parameter vector (9):
    x[0:3] = b_global, x[3:6] = b_local, x[6:9] = v_init

Because orientation does not depend on x, every velocity is affine in x:

    v_k = v_init + S_k - M_k b_local - T_k b_global
    S_k = Σ_{j<k} dt_j R_j a_j,  M_k = Σ_{j<k} dt_j R_j,  T_k = Σ_{j<k} dt_j

These prefix sums are computed once per window, so evaluating the cost
and its analytic gradient is cheap and free of side effects.

Cost:
-----
Mean over merged events inside the GPS window span of
(|v_k| - gps_speed(t_k))², GPS speed linearly interpolated at t_k.
"""

from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np

from .data_loaders import GpsSeries
from .errors import DataError
from .math_utils import integrate_orientations
from .timeline import MergedTimeline


NUM_PARAMS = 9
MIN_SPEED_FOR_GRADIENT = 1e-9  # m/s, direction of v undefined below


@dataclass(frozen=True)
class CalibrationParameters:
    """Accelerometer calibration for one window."""
    global_bias: np.ndarray  # world frame [m/s²]
    local_bias: np.ndarray  # sensor frame [m/s²]
    initial_velocity: np.ndarray  # world frame [m/s]

    def to_vector(self) -> np.ndarray:
        return np.concatenate([self.global_bias, self.local_bias, self.initial_velocity]).astype(float)

    @classmethod
    def from_vector(cls, x) -> "CalibrationParameters":
        x = np.asarray(x, dtype=float).reshape(-1)
        if x.shape[0] != NUM_PARAMS:
            raise ValueError(f"Expected {NUM_PARAMS} calibration parameters, got {x.shape[0]}")
        return cls(global_bias=x[0:3].copy(), local_bias=x[3:6].copy(), initial_velocity=x[6:9].copy())

    @classmethod
    def zeros(cls) -> "CalibrationParameters":
        return cls.from_vector(np.zeros(NUM_PARAMS))


@dataclass(frozen=True)
class IntegratedPoint:
    """Integrated velocity at one merged-timeline index."""
    index: int
    velocity: np.ndarray  # world frame [m/s]

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))


class AccelerometerCalibrator:
    """
    Calibration objective for one GPS reference window.

    Usage:
        calibrator = AccelerometerCalibrator(gps[0:40], timeline)
        cost, grad = calibrator.evaluate(np.zeros(9))
    """

    def __init__(self, reference: GpsSeries, timeline: MergedTimeline):
        if len(reference) == 0:
            raise DataError("Calibration window has no GPS measurements")
        if len(timeline) == 0:
            raise DataError("Calibration needs a non-empty IMU timeline")

        self.reference = reference
        self.timeline = timeline

        t_first = int(reference.timestamps_usec[0])
        t_last = int(reference.timestamps_usec[-1])
        self._lo, self._hi = timeline.indices_in_span(t_first, t_last)
        self._start = max(0, timeline.last_index_at_or_before(t_first))
        end = max(self._start, self._hi - 1)

        # Orientation and velocity prefix sums over [start, end]
        t_run = timeline.timestamps_usec[self._start:end + 1]
        dt = np.diff(t_run).astype(float) * 1e-6
        rots = integrate_orientations(timeline.rotations[self._start:end + 1], dt)
        acc = timeline.accelerations[self._start:end + 1]

        n_run = len(t_run)
        self._dt = dt
        self._rots = rots
        self._acc = acc
        self._S = np.zeros((n_run, 3))
        self._M = np.zeros((n_run, 3, 3))
        self._T = np.zeros(n_run)
        if n_run > 1:
            steps = dt[:, None] * np.einsum('nij,nj->ni', rots[:-1], acc[:-1])
            self._S[1:] = np.cumsum(steps, axis=0)
            self._M[1:] = np.cumsum(dt[:, None, None] * rots[:-1], axis=0)
            self._T[1:] = np.cumsum(dt)

        # Residual rows: merged events inside the GPS span
        rows = slice(self._lo - self._start, self._hi - self._start)
        self._res_S = self._S[rows]
        self._res_M = self._M[rows]
        self._res_T = self._T[rows]
        event_t = timeline.timestamps_usec[self._lo:self._hi].astype(float)
        self._gps_speed = np.interp(event_t, reference.timestamps_usec.astype(float), reference.speeds)

    # -------------------------------------------------------------------------

    @property
    def window_indices(self) -> range:
        """Merged-timeline indices whose time lies inside the GPS window span."""
        return range(self._lo, self._hi)

    @property
    def num_residuals(self) -> int:
        return self._hi - self._lo

    @property
    def reference_speeds(self) -> np.ndarray:
        """GPS speed interpolated at every index in window_indices."""
        return self._gps_speed.copy()

    def model_velocities(self, x) -> np.ndarray:
        """(num_residuals, 3) integrated velocities for parameter vector x."""
        p = CalibrationParameters.from_vector(x)
        return (p.initial_velocity + self._res_S
                - np.einsum('nij,j->ni', self._res_M, p.local_bias)
                - self._res_T[:, None] * p.global_bias)

    def evaluate(self, x) -> Tuple[float, np.ndarray]:
        """
        Cost and gradient for parameter vector x.

        Returns:
            cost: Mean squared speed error [m²/s²]
            grad: (9,) d cost / d x
        """
        n = self.num_residuals
        if n == 0:
            return 0.0, np.zeros(NUM_PARAMS)

        v = self.model_velocities(x)
        speed = np.linalg.norm(v, axis=1)
        err = speed - self._gps_speed
        cost = float(np.mean(err ** 2))

        safe = np.where(speed > MIN_SPEED_FOR_GRADIENT, speed, 1.0)
        unit = np.where((speed > MIN_SPEED_FOR_GRADIENT)[:, None], v / safe[:, None], 0.0)
        d_v = (2.0 / n) * err[:, None] * unit  # d cost / d v_k

        grad = np.empty(NUM_PARAMS)
        grad[0:3] = -np.sum(self._res_T[:, None] * d_v, axis=0)
        grad[3:6] = -np.einsum('nij,ni->j', self._res_M, d_v)
        grad[6:9] = np.sum(d_v, axis=0)
        return cost, grad

    def __call__(self, x) -> Tuple[float, np.ndarray]:
        return self.evaluate(x)

    def integrate_trajectory(self,
                             global_bias: np.ndarray,
                             local_bias: np.ndarray,
                             initial_velocity: np.ndarray) -> Dict[int, IntegratedPoint]:
        """
        Integrate velocity with fixed calibration over the window.

        Re-runs the orientation/velocity recurrence from the window start
        and returns the points for every merged index inside the GPS span.
        """
        bg = np.asarray(global_bias, dtype=float).reshape(3)
        bl = np.asarray(local_bias, dtype=float).reshape(3)
        v0 = np.asarray(initial_velocity, dtype=float).reshape(3)

        n_run = len(self._rots)
        velocities = np.empty((n_run, 3))
        velocities[0] = v0
        if n_run > 1:
            world_acc = np.einsum('nij,nj->ni', self._rots[:-1], self._acc[:-1] - bl) - bg
            velocities[1:] = v0 + np.cumsum(self._dt[:, None] * world_acc, axis=0)

        return {
            idx: IntegratedPoint(index=idx, velocity=velocities[idx - self._start])
            for idx in self.window_indices
        }

    def integrate_with(self, params: CalibrationParameters) -> Dict[int, IntegratedPoint]:
        return self.integrate_trajectory(params.global_bias, params.local_bias, params.initial_velocity)
