#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Motion Fit Data Loaders Module

Data containers and JSON loaders for the gyroscope, accelerometer and GPS
speed logs produced by the phone recorder app.

All timestamps are integer microseconds. Streams are stored column-wise
(numpy arrays) and must be ordered by non-decreasing timestamp.
"""

import json
import os
from dataclasses import dataclass
from typing import List, Sequence, Union

import numpy as np
import pandas as pd

from .errors import DataError


# JSON field names
KEY_ROTATIONS = "rotations"
KEY_ACCELERATIONS = "accelerations"
KEY_LOCATIONS = "locations"
FIELD_TIME_USEC = "timestamp_usec"
FIELD_SPEED_MS = "speed_m_s"
VECTOR_FIELDS = ("x", "y", "z")


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class TimestampedSample:
    """Single 3D sensor reading (rad/s for gyro, m/s² for accelerometer)."""
    values: np.ndarray
    timestamp_usec: int


@dataclass(frozen=True)
class GpsSpeedSample:
    """Single GPS speed reading."""
    speed_m_s: float
    timestamp_usec: int


@dataclass(frozen=True)
class SensorSeries:
    """Ordered stream of 3D sensor readings."""
    timestamps_usec: np.ndarray  # (N,) int64
    values: np.ndarray  # (N, 3) float

    def __len__(self) -> int:
        return len(self.timestamps_usec)

    def __getitem__(self, idx: int) -> TimestampedSample:
        return TimestampedSample(values=self.values[idx], timestamp_usec=int(self.timestamps_usec[idx]))

    @classmethod
    def from_arrays(cls, timestamps_usec, values, name: str = "sensor") -> "SensorSeries":
        t = np.asarray(timestamps_usec, dtype=np.int64).reshape(-1)
        v = np.asarray(values, dtype=float)
        if v.ndim != 2 or v.shape[1] != 3 or v.shape[0] != t.shape[0]:
            raise DataError(f"{name}: expected (N, 3) values matching {t.shape[0]} timestamps, got {v.shape}")
        if not np.all(np.isfinite(v)):
            raise DataError(f"{name}: non-finite sensor values")
        validate_timestamps(t, name)
        return cls(timestamps_usec=t, values=v)

    @classmethod
    def from_samples(cls, samples: Sequence[TimestampedSample], name: str = "sensor") -> "SensorSeries":
        if len(samples) == 0:
            raise DataError(f"{name}: stream is empty")
        return cls.from_arrays(
            [s.timestamp_usec for s in samples],
            np.array([s.values for s in samples], dtype=float),
            name=name,
        )


@dataclass(frozen=True)
class GpsSeries:
    """Ordered stream of GPS speed readings."""
    timestamps_usec: np.ndarray  # (N,) int64
    speeds: np.ndarray  # (N,) float, m/s

    def __len__(self) -> int:
        return len(self.timestamps_usec)

    def __getitem__(self, idx: Union[int, slice]):
        if isinstance(idx, slice):
            return GpsSeries(timestamps_usec=self.timestamps_usec[idx], speeds=self.speeds[idx])
        return GpsSpeedSample(speed_m_s=float(self.speeds[idx]), timestamp_usec=int(self.timestamps_usec[idx]))

    @property
    def times_sec(self) -> np.ndarray:
        return self.timestamps_usec.astype(float) * 1e-6

    @classmethod
    def from_arrays(cls, timestamps_usec, speeds, name: str = "gps") -> "GpsSeries":
        t = np.asarray(timestamps_usec, dtype=np.int64).reshape(-1)
        s = np.asarray(speeds, dtype=float).reshape(-1)
        if s.shape != t.shape:
            raise DataError(f"{name}: {s.shape[0]} speeds for {t.shape[0]} timestamps")
        if not np.all(np.isfinite(s)):
            raise DataError(f"{name}: non-finite speed values")
        if np.any(s < 0):
            raise DataError(f"{name}: negative speed values")
        validate_timestamps(t, name)
        return cls(timestamps_usec=t, speeds=s)

    @classmethod
    def from_samples(cls, samples: Sequence[GpsSpeedSample], name: str = "gps") -> "GpsSeries":
        return cls.from_arrays(
            [s.timestamp_usec for s in samples],
            [s.speed_m_s for s in samples],
            name=name,
        )


def validate_timestamps(timestamps_usec: np.ndarray, name: str):
    """Raise DataError for an empty or decreasing timestamp sequence."""
    if len(timestamps_usec) == 0:
        raise DataError(f"{name}: stream is empty")
    diffs = np.diff(timestamps_usec)
    if np.any(diffs < 0):
        bad = int(np.argmax(diffs < 0)) + 1
        raise DataError(
            f"{name}: timestamps not ordered at sample {bad} "
            f"({int(timestamps_usec[bad - 1])} -> {int(timestamps_usec[bad])})")


# =============================================================================
# Loader Functions
# =============================================================================

def _read_records(path: str, list_key: str, columns: List[str]) -> pd.DataFrame:
    if not path or not os.path.exists(path):
        raise DataError(f"Input JSON not found: {path}")
    try:
        with open(path, 'r') as f:
            root = json.load(f)
    except json.JSONDecodeError as e:
        raise DataError(f"Malformed JSON {path}: {e}")

    if not isinstance(root, dict) or list_key not in root:
        raise DataError(f"{path}: missing top-level '{list_key}' list")
    entries = root[list_key]
    if not isinstance(entries, list) or len(entries) == 0:
        raise DataError(f"{path}: '{list_key}' is empty")
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise DataError(f"{path}: '{list_key}' entry {i} is not an object: {entry!r}")

    df = pd.DataFrame.from_records(entries)
    for c in columns:
        if c not in df.columns:
            raise DataError(f"{path}: '{list_key}' records missing field: {c}")
    try:
        df = df[columns].apply(pd.to_numeric, errors="raise")
    except (TypeError, ValueError) as e:
        raise DataError(f"{path}: '{list_key}' has non-numeric values: {e}")
    if df.isna().any().any():
        raise DataError(f"{path}: '{list_key}' has records with missing values")
    return df


def load_vector_json(path: str, list_key: str) -> SensorSeries:
    """
    Load timestamped 3D readings ({x, y, z, timestamp_usec} records).

    Args:
        path: JSON file path
        list_key: Top-level key holding the record list ("rotations" or
            "accelerations")

    Raises:
        DataError: Missing file/key/field, empty list, bad ordering
    """
    df = _read_records(path, list_key, list(VECTOR_FIELDS) + [FIELD_TIME_USEC])
    series = SensorSeries.from_arrays(
        df[FIELD_TIME_USEC].to_numpy(dtype=np.int64),
        df[list(VECTOR_FIELDS)].to_numpy(dtype=float),
        name=f"{list_key} ({os.path.basename(path)})",
    )
    print(f"[DATA] Loaded {len(series)} {list_key} samples from {path}")
    return series


def load_rotations_json(path: str) -> SensorSeries:
    return load_vector_json(path, KEY_ROTATIONS)


def load_accelerations_json(path: str) -> SensorSeries:
    return load_vector_json(path, KEY_ACCELERATIONS)


def load_gps_json(path: str) -> GpsSeries:
    """Load GPS speeds from a locations log; other location fields are ignored."""
    df = _read_records(path, KEY_LOCATIONS, [FIELD_SPEED_MS, FIELD_TIME_USEC])
    series = GpsSeries.from_arrays(
        df[FIELD_TIME_USEC].to_numpy(dtype=np.int64),
        df[FIELD_SPEED_MS].to_numpy(dtype=float),
        name=f"{KEY_LOCATIONS} ({os.path.basename(path)})",
    )
    duration = (series.timestamps_usec[-1] - series.timestamps_usec[0]) * 1e-6
    print(f"[DATA] Loaded {len(series)} GPS speed samples ({duration:.1f}s) from {path}")
    return series
