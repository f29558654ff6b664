import numpy as np
import pytest
from scipy.optimize import OptimizeResult

from motionfit import optimizer
from motionfit.calibration import AccelerometerCalibrator
from motionfit.data_loaders import GpsSeries, SensorSeries
from motionfit.errors import ConfigError, ConvergenceWarning
from motionfit.optimizer import fit_window
from motionfit.timeline import MergedTimeline


def _straight_line_calibrator(v0=2.0, accel=0.5, gravity=0.0, duration_s=40.0):
    n = int(duration_s * 100) + 1
    t_usec = np.arange(n, dtype=np.int64) * 10000
    acc = np.tile([accel, 0.0, gravity], (n, 1))
    timeline = MergedTimeline(
        SensorSeries.from_arrays(t_usec, np.zeros((n, 3))),
        SensorSeries.from_arrays(t_usec, acc),
    )
    gps_t = np.round(np.linspace(0.0, duration_s * 1e6, 10)).astype(np.int64)
    gps = GpsSeries.from_arrays(gps_t, v0 + accel * gps_t * 1e-6)
    return AccelerometerCalibrator(gps, timeline)


def test_fit_recovers_initial_velocity_and_zero_bias():
    fit = fit_window(_straight_line_calibrator(), max_iterations=500)

    assert fit.converged
    assert fit.cost < 1e-4
    np.testing.assert_allclose(np.abs(fit.params.initial_velocity), [2.0, 0.0, 0.0], atol=0.05)
    np.testing.assert_allclose(fit.params.global_bias, 0.0, atol=0.02)
    np.testing.assert_allclose(fit.params.local_bias, 0.0, atol=0.02)


def test_fit_absorbs_gravity_into_bias():
    calib = _straight_line_calibrator(gravity=9.81)
    fit = fit_window(calib, max_iterations=500)

    assert fit.cost < 1e-3
    speeds = np.linalg.norm(calib.model_velocities(fit.params.to_vector()), axis=1)
    np.testing.assert_allclose(speeds, calib.reference_speeds, atol=0.2)


def test_fit_is_deterministic():
    a = fit_window(_straight_line_calibrator(), max_iterations=200)
    b = fit_window(_straight_line_calibrator(), max_iterations=200)

    np.testing.assert_array_equal(a.params.to_vector(), b.params.to_vector())
    assert a.iterations == b.iterations
    assert a.cost == b.cost


def test_zero_data_converges_immediately():
    n = 101
    t_usec = np.arange(n, dtype=np.int64) * 10000
    zeros = SensorSeries.from_arrays(t_usec, np.zeros((n, 3)))
    calib = AccelerometerCalibrator(GpsSeries.from_arrays(t_usec[::20], np.zeros(6)),
                                    MergedTimeline(zeros, zeros))
    fit = fit_window(calib, max_iterations=10)

    assert fit.converged
    assert fit.cost == pytest.approx(0.0, abs=1e-12)
    np.testing.assert_allclose(fit.params.to_vector(), 0.0)


def test_budget_exhaustion_warns_and_returns_best_effort():
    calib = _straight_line_calibrator(gravity=9.81)
    start_cost, _ = calib.evaluate(np.zeros(9))

    with pytest.warns(ConvergenceWarning):
        fit = fit_window(calib, max_iterations=1)

    assert fit.converged is False
    assert fit.iterations == 1
    assert fit.cost < start_cost


def test_invalid_budget_raises():
    with pytest.raises(ConfigError):
        fit_window(_straight_line_calibrator(duration_s=2.0), max_iterations=0)


def test_abnormal_line_search_counts_as_not_converged(monkeypatch):
    calib = _straight_line_calibrator(duration_s=2.0)
    best = np.arange(9, dtype=float)

    def failed_minimize(fun, x0, **kwargs):
        return OptimizeResult(x=best, fun=0.5, nit=7, status=2, success=False,
                              message="ABNORMAL_TERMINATION_IN_LNSRCH")

    monkeypatch.setattr(optimizer, "minimize", failed_minimize)
    with pytest.warns(ConvergenceWarning, match="ABNORMAL_TERMINATION_IN_LNSRCH"):
        fit = fit_window(calib, max_iterations=50)

    assert fit.converged is False
    assert fit.message == "ABNORMAL_TERMINATION_IN_LNSRCH"
    np.testing.assert_array_equal(fit.params.to_vector(), best)
    assert fit.iterations == 7
