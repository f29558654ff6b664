#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Merged IMU Timeline

Joins the gyroscope and accelerometer streams onto one dense index space.
The merged events are the sorted union of both streams' timestamps,
restricted to the span where both streams have data. Every merged event
is paired with the nearest rotation sample and the nearest acceleration
sample, so phones that deliver the two sensors interleaved (or with
identical timestamps) both resolve cleanly.

Built once per recording, read-only afterwards.
"""

from typing import Tuple

import numpy as np
import pandas as pd

from .data_loaders import SensorSeries, TimestampedSample, validate_timestamps
from .errors import DataError


def _nearest_indices(event_t: np.ndarray, sample_t: np.ndarray) -> np.ndarray:
    """Index of the nearest sample for every event (both sorted)."""
    events = pd.DataFrame({"timestamp_usec": event_t})
    samples = pd.DataFrame({
        "timestamp_usec": sample_t,
        "sample_idx": np.arange(len(sample_t), dtype=np.int64),
    })
    merged = pd.merge_asof(events, samples, on="timestamp_usec", direction="nearest")
    return merged["sample_idx"].to_numpy(dtype=np.int64)


class MergedTimeline:
    """
    Dense index [0, N) over the joint rotation/acceleration timeline.

    Attributes:
        timestamps_usec: (N,) strictly increasing merged event times
        rotation_index: (N,) index into the rotation stream per event
        acceleration_index: (N,) index into the acceleration stream per event
        rotations: (N, 3) angular velocity [rad/s] per event
        accelerations: (N, 3) raw accelerometer reading [m/s²] per event
    """

    def __init__(self, rotations: SensorSeries, accelerations: SensorSeries):
        validate_timestamps(rotations.timestamps_usec, "rotations")
        validate_timestamps(accelerations.timestamps_usec, "accelerations")

        rot_t = rotations.timestamps_usec
        acc_t = accelerations.timestamps_usec
        t_start = max(rot_t[0], acc_t[0])
        t_end = min(rot_t[-1], acc_t[-1])
        if t_start > t_end:
            raise DataError(
                f"Rotation [{rot_t[0]}, {rot_t[-1]}] and acceleration "
                f"[{acc_t[0]}, {acc_t[-1]}] streams do not overlap in time")

        union = np.union1d(rot_t, acc_t)
        events = union[(union >= t_start) & (union <= t_end)]

        self.timestamps_usec = events.astype(np.int64)
        self.rotation_index = _nearest_indices(self.timestamps_usec, rot_t)
        self.acceleration_index = _nearest_indices(self.timestamps_usec, acc_t)
        self.rotations = rotations.values[self.rotation_index]
        self.accelerations = accelerations.values[self.acceleration_index]
        self._rotation_t = rot_t
        self._acceleration_t = acc_t

    def __len__(self) -> int:
        return len(self.timestamps_usec)

    @property
    def times_sec(self) -> np.ndarray:
        """Event times in seconds relative to the first merged event."""
        return (self.timestamps_usec - self.timestamps_usec[0]).astype(float) * 1e-6

    def merged_event_time_usec(self, idx: int) -> int:
        return int(self.timestamps_usec[idx])

    def rotation(self, idx: int) -> TimestampedSample:
        j = self.rotation_index[idx]
        return TimestampedSample(values=self.rotations[idx], timestamp_usec=int(self._rotation_t[j]))

    def acceleration(self, idx: int) -> TimestampedSample:
        j = self.acceleration_index[idx]
        return TimestampedSample(values=self.accelerations[idx], timestamp_usec=int(self._acceleration_t[j]))

    def indices_in_span(self, t_start_usec: int, t_end_usec: int) -> Tuple[int, int]:
        """Half-open index range [lo, hi) of events with t_start <= t <= t_end."""
        lo = int(np.searchsorted(self.timestamps_usec, t_start_usec, side="left"))
        hi = int(np.searchsorted(self.timestamps_usec, t_end_usec, side="right"))
        return lo, max(lo, hi)

    def last_index_at_or_before(self, t_usec: int) -> int:
        """Last event index with time <= t_usec, or -1 if every event is later."""
        return int(np.searchsorted(self.timestamps_usec, t_usec, side="right")) - 1
