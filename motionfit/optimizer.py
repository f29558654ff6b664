#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Per-window L-BFGS driver for the accelerometer calibration objective.

Every window starts from the zero parameter vector, so a window's fit
depends only on its own data.
"""

import warnings
from dataclasses import dataclass

import numpy as np
from scipy.optimize import minimize

from .calibration import AccelerometerCalibrator, CalibrationParameters, NUM_PARAMS
from .config import DEFAULT_GRADIENT_TOLERANCE, DEFAULT_MAX_OPTIMIZER_ITERATIONS
from .errors import ConfigError, ConvergenceWarning


@dataclass(frozen=True)
class WindowFit:
    """Outcome of one window calibration."""
    params: CalibrationParameters
    iterations: int
    cost: float
    converged: bool
    message: str = ""


def fit_window(calibrator: AccelerometerCalibrator,
               max_iterations: int = DEFAULT_MAX_OPTIMIZER_ITERATIONS,
               gradient_tolerance: float = DEFAULT_GRADIENT_TOLERANCE,
               label: str = "") -> WindowFit:
    """
    Minimize the calibration cost of one window with L-BFGS.

    Args:
        calibrator: Objective for the window
        max_iterations: L-BFGS iteration budget
        gradient_tolerance: Stop when the projected gradient max-norm is below this
        label: Prefix for log messages

    Returns:
        WindowFit with the best parameters found. If L-BFGS reports failure
        (budget exhausted, abnormal line search), a ConvergenceWarning is
        issued and the last iterate is still returned.
    """
    if max_iterations <= 0:
        raise ConfigError(f"max_iterations must be positive, got {max_iterations}")

    x0 = np.zeros(NUM_PARAMS)
    if calibrator.num_residuals == 0:
        return WindowFit(params=CalibrationParameters.zeros(), iterations=0, cost=0.0,
                         converged=True, message="no IMU samples inside GPS window")

    result = minimize(
        calibrator.evaluate,
        x0=x0,
        jac=True,
        method='L-BFGS-B',
        options={'maxiter': int(max_iterations), 'gtol': float(gradient_tolerance)},
    )

    converged = bool(result.success)
    message = result.message if isinstance(result.message, str) else str(result.message)
    if not converged:
        text = (f"{label}calibration did not converge after {int(result.nit)} iterations "
                f"(status {result.status}: {message}, cost={float(result.fun):.6g}); "
                f"using best-effort parameters")
        print(f"[WINDOW] WARNING: {text}")
        warnings.warn(text, ConvergenceWarning, stacklevel=2)

    return WindowFit(
        params=CalibrationParameters.from_vector(result.x),
        iterations=int(result.nit),
        cost=float(result.fun),
        converged=converged,
        message=message,
    )
