import json

import numpy as np
import pytest

from motionfit.data_loaders import (
    GpsSeries, GpsSpeedSample, SensorSeries, TimestampedSample,
    load_accelerations_json, load_gps_json, load_rotations_json,
)
from motionfit.errors import DataError


def _write(path, payload):
    path.write_text(json.dumps(payload))
    return str(path)


def test_load_rotations_json(tmp_path):
    path = _write(tmp_path / "rot.json", {"rotations": [
        {"x": 0.1, "y": 0.2, "z": 0.3, "timestamp_usec": 1000},
        {"x": 0.4, "y": 0.5, "z": 0.6, "timestamp_usec": 2000},
    ]})
    rot = load_rotations_json(path)

    assert len(rot) == 2
    np.testing.assert_allclose(rot.values[1], [0.4, 0.5, 0.6])
    assert rot[0].timestamp_usec == 1000
    assert rot.timestamps_usec.dtype == np.int64


def test_load_gps_json_ignores_extra_fields(tmp_path):
    path = _write(tmp_path / "loc.json", {"locations": [
        {"speed_m_s": 1.5, "timestamp_usec": 0, "latitude": 55.0},
        {"speed_m_s": 2.5, "timestamp_usec": 1000000, "latitude": 55.1},
    ]})
    gps = load_gps_json(path)

    np.testing.assert_allclose(gps.speeds, [1.5, 2.5])
    np.testing.assert_allclose(gps.times_sec, [0.0, 1.0])
    assert gps[1] == GpsSpeedSample(speed_m_s=2.5, timestamp_usec=1000000)


def test_missing_file_and_key_raise(tmp_path):
    with pytest.raises(DataError):
        load_rotations_json(str(tmp_path / "missing.json"))
    path = _write(tmp_path / "acc.json", {"rotations": []})
    with pytest.raises(DataError):
        load_accelerations_json(path)


def test_empty_list_raises(tmp_path):
    path = _write(tmp_path / "acc.json", {"accelerations": []})
    with pytest.raises(DataError, match="empty"):
        load_accelerations_json(path)


def test_missing_field_raises(tmp_path):
    path = _write(tmp_path / "acc.json", {"accelerations": [{"x": 1.0, "y": 0.0, "timestamp_usec": 5}]})
    with pytest.raises(DataError, match="z"):
        load_accelerations_json(path)


def test_decreasing_timestamps_raise(tmp_path):
    path = _write(tmp_path / "rot.json", {"rotations": [
        {"x": 0, "y": 0, "z": 0, "timestamp_usec": 2000},
        {"x": 0, "y": 0, "z": 0, "timestamp_usec": 1000},
    ]})
    with pytest.raises(DataError, match="not ordered"):
        load_rotations_json(path)


def test_negative_gps_speed_raises():
    with pytest.raises(DataError):
        GpsSeries.from_arrays([0, 1], [1.0, -0.5])


def test_gps_slice_returns_series():
    gps = GpsSeries.from_arrays([0, 10, 20, 30], [0.0, 1.0, 2.0, 3.0])
    sub = gps[1:3]

    assert isinstance(sub, GpsSeries)
    np.testing.assert_array_equal(sub.timestamps_usec, [10, 20])


def test_sensor_series_from_samples():
    samples = [
        TimestampedSample(values=np.array([1.0, 0.0, 0.0]), timestamp_usec=0),
        TimestampedSample(values=np.array([0.0, 1.0, 0.0]), timestamp_usec=0),
    ]
    series = SensorSeries.from_samples(samples)
    assert len(series) == 2

    with pytest.raises(DataError):
        SensorSeries.from_samples([])
    with pytest.raises(DataError):
        SensorSeries.from_arrays([0, 1], np.zeros((2, 2)))


def test_non_numeric_field_raises_data_error(tmp_path):
    path = _write(tmp_path / "rot.json", {"rotations": [
        {"x": "abc", "y": 0.0, "z": 0.0, "timestamp_usec": 1000},
    ]})
    with pytest.raises(DataError, match="non-numeric"):
        load_rotations_json(path)

    path = _write(tmp_path / "loc.json", {"locations": [
        {"speed_m_s": [1.0], "timestamp_usec": 0},
    ]})
    with pytest.raises(DataError):
        load_gps_json(path)


def test_non_object_records_raise_data_error(tmp_path):
    path = _write(tmp_path / "loc.json", {"locations": [1, 2, 3]})
    with pytest.raises(DataError, match="not an object"):
        load_gps_json(path)


def test_gps_series_from_samples():
    samples = [
        GpsSpeedSample(speed_m_s=1.0, timestamp_usec=0),
        GpsSpeedSample(speed_m_s=3.0, timestamp_usec=2000000),
    ]
    gps = GpsSeries.from_samples(samples)

    np.testing.assert_allclose(gps.speeds, [1.0, 3.0])
    np.testing.assert_allclose(gps.times_sec, [0.0, 2.0])
    with pytest.raises(DataError):
        GpsSeries.from_samples([])
