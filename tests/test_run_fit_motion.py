import json

import numpy as np

import run_fit_motion


def _write_recording(tmp_path, n=501, n_gps=6):
    t_usec = np.arange(n, dtype=np.int64) * 10000
    rot = [{"x": 0.0, "y": 0.0, "z": 0.05, "timestamp_usec": int(t)} for t in t_usec]
    acc = [{"x": 0.3, "y": 0.0, "z": 0.0, "timestamp_usec": int(t)} for t in t_usec]
    gps_t = np.linspace(0, t_usec[-1], n_gps).astype(np.int64)
    loc = [{"speed_m_s": 1.0 + 0.3 * t * 1e-6, "timestamp_usec": int(t)} for t in gps_t]
    (tmp_path / "rot.json").write_text(json.dumps({"rotations": rot}))
    (tmp_path / "acc.json").write_text(json.dumps({"accelerations": acc}))
    (tmp_path / "loc.json").write_text(json.dumps({"locations": loc}))


def _args(tmp_path, config):
    return [
        "--config", str(config),
        "--rotations", str(tmp_path / "rot.json"),
        "--accelerations", str(tmp_path / "acc.json"),
        "--locations", str(tmp_path / "loc.json"),
        "--velocities_out", str(tmp_path / "vel.json"),
        "--steering_out", str(tmp_path / "steer.json"),
    ]


def test_cli_runs_pipeline(tmp_path):
    _write_recording(tmp_path)
    config = tmp_path / "cfg.yaml"
    config.write_text("calibration:\n  window_size: 4\n  stride: 2\n")

    assert run_fit_motion.main(_args(tmp_path, config)) == 0
    assert (tmp_path / "vel.json").exists()
    assert (tmp_path / "steer.json").exists()


def test_cli_reports_config_error(tmp_path, capsys):
    _write_recording(tmp_path)
    config = tmp_path / "cfg.yaml"
    config.write_text("calibration:\n  window_size: 2\n  stride: 4\n")

    assert run_fit_motion.main(_args(tmp_path, config)) == 1
    assert "ConfigError" in capsys.readouterr().out
    assert not (tmp_path / "vel.json").exists()
