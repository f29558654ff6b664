#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Motion Fit Output Utilities Module

Writes the timestamped steering and velocity series as JSON, and prints
the end-of-run summary.
"""

import json
import os
import tempfile
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np

from .data_loaders import FIELD_SPEED_MS, FIELD_TIME_USEC


KEY_STEERING = "steering"
KEY_VELOCITIES = "velocities"
FIELD_ANGULAR_VALUE = "angular_value"


def timestamped_payload(timestamps_usec: Sequence[int], values: Sequence[float],
                        list_key: str, value_field: str) -> Dict[str, Any]:
    """Build {list_key: [{timestamp_usec, value_field}, ...]}."""
    if len(timestamps_usec) != len(values):
        raise ValueError(f"{len(values)} values for {len(timestamps_usec)} timestamps")
    return {list_key: [
        {FIELD_TIME_USEC: int(t), value_field: float(v)}
        for t, v in zip(timestamps_usec, values)
    ]}


def write_json_files(outputs: Sequence[Tuple[str, Dict[str, Any]]]):
    """
    Write several JSON files all-or-nothing.

    Every payload is first dumped to a temp file next to its target
    (parent directories are created if needed). Targets are replaced only
    after all temp files were written; on any failure the temp files are
    removed and no target is touched.
    """
    staged = []
    try:
        for path, payload in outputs:
            out_dir = os.path.dirname(os.path.abspath(path))
            os.makedirs(out_dir, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=out_dir, prefix=".motionfit-", suffix=".json.tmp")
            staged.append((tmp_path, path))
            with os.fdopen(fd, 'w') as f:
                json.dump(payload, f, indent=1)
    except Exception:
        for tmp_path, _ in staged:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
        raise

    for tmp_path, path in staged:
        os.replace(tmp_path, path)


def write_fit_outputs(steering_path: str, steering_timestamps_usec: Sequence[int], angles: Sequence[float],
                      velocities_path: str, velocity_timestamps_usec: Sequence[int], speeds: Sequence[float]):
    """Write the steering and velocities files together; neither exists if either write fails."""
    write_json_files([
        (steering_path, timestamped_payload(steering_timestamps_usec, angles,
                                            KEY_STEERING, FIELD_ANGULAR_VALUE)),
        (velocities_path, timestamped_payload(velocity_timestamps_usec, speeds,
                                              KEY_VELOCITIES, FIELD_SPEED_MS)),
    ])
    print(f"[OUTPUT] Steering angles ({len(angles)}) -> {steering_path}")
    print(f"[OUTPUT] Velocities ({len(speeds)}) -> {velocities_path}")


def print_fit_summary(costs: List[float], iterations: List[int], unconverged: int,
                      speeds: np.ndarray):
    """Print calibration statistics across all windows."""
    print("\n" + "=" * 70)
    print("FIT SUMMARY")
    print("=" * 70)
    if not costs:
        print("  No calibration windows")
        return
    c = np.asarray(costs, dtype=float)
    it = np.asarray(iterations, dtype=int)
    print(f"  Windows: {len(c)} ({unconverged} hit iteration budget)")
    print(f"  Cost [m²/s²]: median={np.median(c):.4g} max={np.max(c):.4g}")
    print(f"  Iterations: mean={np.mean(it):.1f} max={int(np.max(it))}")
    if len(speeds) > 0:
        print(f"  Fused speed [m/s]: mean={np.mean(speeds):.2f} max={np.max(speeds):.2f}")
    print("=" * 70)
