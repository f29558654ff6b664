#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Motion Fit Math Utilities Module
================================

Quaternion helpers for integrating gyroscope readings into orientation.

Quaternion Convention:
----------------------
All quaternions use Hamilton convention with [w, x, y, z] ordering.
An orientation quaternion q maps sensor-frame vectors into the world
frame: v_world = R(q) @ v_sensor. The world frame is the sensor frame at
the start of an integration run.

Key Operations:
---------------
- quat_multiply: Hamilton quaternion product
- quat_normalize: Ensure unit quaternion
- quat_to_rot: Convert to 3x3 rotation matrix
- rotvec_to_quat: Rotation vector -> quaternion (exact)
- quat_boxplus: Quaternion ⊞ rotation vector (body-frame increment)
- integrate_orientations: Euler-step gyro integration over a sample run
"""

import numpy as np


IDENTITY_QUAT = np.array([1.0, 0.0, 0.0, 0.0])


def quat_multiply(q1: np.ndarray, q2: np.ndarray) -> np.ndarray:
    """
    Quaternion multiplication q1 ⊗ q2, both [w,x,y,z].
    Represents rotation q2 followed by rotation q1.
    """
    w1, x1, y1, z1 = q1
    w2, x2, y2, z2 = q2
    return np.array([
        w1*w2 - x1*x2 - y1*y2 - z1*z2,
        w1*x2 + x1*w2 + y1*z2 - z1*y2,
        w1*y2 - x1*z2 + y1*w2 + z1*x2,
        w1*z2 + x1*y2 - y1*x2 + z1*w2
    ])


def quat_normalize(q: np.ndarray) -> np.ndarray:
    """Normalize to unit length; degenerate input maps to identity."""
    norm = np.linalg.norm(q)
    if norm < 1e-10:
        return IDENTITY_QUAT.copy()
    return q / norm


def quat_to_rot(q: np.ndarray) -> np.ndarray:
    """Convert quaternion [w,x,y,z] to 3x3 rotation matrix."""
    w, x, y, z = q
    return np.array([
        [1-2*(y*y+z*z), 2*(x*y-w*z),   2*(x*z+w*y)],
        [2*(x*y+w*z),   1-2*(x*x+z*z), 2*(y*z-w*x)],
        [2*(x*z-w*y),   2*(y*z+w*x),   1-2*(x*x+y*y)]
    ])


def rotvec_to_quat(dtheta: np.ndarray) -> np.ndarray:
    """
    Convert rotation vector (axis * angle, radians) to quaternion.
    Falls back to first-order form for tiny angles.
    """
    theta = np.linalg.norm(dtheta)
    if theta < 1e-8:
        return quat_normalize(np.array([1.0, dtheta[0]/2, dtheta[1]/2, dtheta[2]/2]))
    half_theta = theta / 2
    axis = dtheta / theta
    return np.array([
        np.cos(half_theta),
        np.sin(half_theta) * axis[0],
        np.sin(half_theta) * axis[1],
        np.sin(half_theta) * axis[2]
    ])


def quat_boxplus(q: np.ndarray, dtheta: np.ndarray) -> np.ndarray:
    """
    Apply a body-frame rotation increment.
    q_new = q ⊗ exp(δθ)
    """
    return quat_normalize(quat_multiply(q, rotvec_to_quat(dtheta)))


def integrate_orientations(angular_velocities: np.ndarray, dt: np.ndarray) -> np.ndarray:
    """
    Integrate gyroscope readings into a sequence of rotation matrices.

    Forward Euler on the manifold: orientation k is orientation k-1
    advanced by the angular velocity of sample k-1 over dt[k-1].

    Args:
        angular_velocities: (N, 3) body rates [rad/s]
        dt: (N-1,) step lengths [s]

    Returns:
        (N, 3, 3) sensor-to-world rotations, the first one identity
    """
    n = len(angular_velocities)
    rots = np.empty((n, 3, 3))
    if n == 0:
        return rots
    q = IDENTITY_QUAT.copy()
    rots[0] = np.eye(3)
    for k in range(1, n):
        q = quat_boxplus(q, angular_velocities[k - 1] * dt[k - 1])
        rots[k] = quat_to_rot(q)
    return rots
