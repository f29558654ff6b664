import json

import pytest

from motionfit.output_utils import timestamped_payload, write_fit_outputs, write_json_files


def test_write_fit_outputs_creates_both_files(tmp_path):
    write_fit_outputs(
        str(tmp_path / "a" / "steering.json"), [0, 10], [0.0, 0.25],
        str(tmp_path / "b" / "velocities.json"), [0, 10], [1.0, 1.5],
    )

    steering = json.loads((tmp_path / "a" / "steering.json").read_text())
    velocities = json.loads((tmp_path / "b" / "velocities.json").read_text())
    assert steering == {"steering": [
        {"timestamp_usec": 0, "angular_value": 0.0},
        {"timestamp_usec": 10, "angular_value": 0.25},
    ]}
    assert velocities["velocities"][1] == {"timestamp_usec": 10, "speed_m_s": 1.5}
    assert list(tmp_path.rglob(".motionfit-*")) == []


def test_failed_write_keeps_existing_targets(tmp_path):
    target = tmp_path / "steering.json"
    target.write_text("previous run")
    (tmp_path / "blocker").write_text("")

    with pytest.raises(OSError):
        write_json_files([
            (str(target), {"steering": []}),
            (str(tmp_path / "blocker" / "velocities.json"), {"velocities": []}),
        ])
    assert target.read_text() == "previous run"
    assert list(tmp_path.glob(".motionfit-*")) == []


def test_unserializable_payload_removes_temp_files(tmp_path):
    with pytest.raises(TypeError):
        write_json_files([
            (str(tmp_path / "ok.json"), {"a": 1}),
            (str(tmp_path / "bad.json"), {"a": object()}),
        ])
    assert not (tmp_path / "ok.json").exists()
    assert not (tmp_path / "bad.json").exists()
    assert list(tmp_path.glob(".motionfit-*")) == []


def test_payload_length_mismatch_raises():
    with pytest.raises(ValueError):
        timestamped_payload([0, 1], [0.0], "steering", "angular_value")
