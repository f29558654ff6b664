#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Motion Fit Entry Point (run_fit_motion.py)

Infers steering angles and GPS-calibrated vehicle speed from phone
gyroscope, accelerometer and GPS logs.

Configuration Model:
--------------------
    YAML config is the single source of truth for algorithm settings
    (window size/stride, optimizer budget, smoothing width, PCA settings).
    CLI provides only paths.

Usage:
    python run_fit_motion.py --config configs/fit_motion_default.yaml \\
        --rotations rotations.json \\
        --accelerations accelerations.json \\
        --locations locations.json \\
        --velocities_out velocities.json \\
        --steering_out steering.json

Author: motionfit project
"""

import argparse
import sys
import traceback


def parse_args(argv=None):
    """
    Parse command line arguments.

    Inputs are the raw recorder logs: rotations (gyro), accelerations
    (no gravity removal needed, the fit absorbs it) and locations (GPS
    speeds used as coarse reference).
    """
    parser = argparse.ArgumentParser(
        description="IMU/GPS speed fusion and steering extraction",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Algorithm Settings (in YAML):
  calibration.window_size, calibration.stride, calibration.max_optimizer_iterations
  smoothing.sigma_seconds
  rotation_axis.pca_max_samples, rotation_axis.fallback_vertical_axis
  runtime.num_workers

Example:
  python run_fit_motion.py --rotations rot.json --accelerations acc.json \\
      --locations loc.json --velocities_out vel.json --steering_out steer.json
        """
    )

    parser.add_argument("--config", type=str, default="configs/fit_motion_default.yaml",
                        help="Path to YAML config file")
    parser.add_argument("--rotations", type=str, default=None,
                        help="JSON with raw timestamped gyroscope rotations")
    parser.add_argument("--accelerations", type=str, default=None,
                        help="JSON with raw timestamped accelerations")
    parser.add_argument("--locations", type=str, default=None,
                        help="JSON with GPS locations and speeds")
    parser.add_argument("--velocities_out", type=str, default=None,
                        help="Output JSON for fused speeds")
    parser.add_argument("--steering_out", type=str, default=None,
                        help="Output JSON for horizontal-plane rotation angles")
    return parser.parse_args(argv)


def main(argv=None):
    """Load YAML config, apply CLI paths and run the pipeline."""
    args = parse_args(argv)

    from motionfit import __version__
    from motionfit.config import load_config
    from motionfit.errors import MotionFitError
    from motionfit.main_loop import FitMotionRunner

    print("=" * 70)
    print(f"Motion Fit - IMU/GPS speed fusion (v{__version__})")
    print("=" * 70)

    try:
        print(f"\nLoading config: {args.config}")
        config = load_config(args.config)

        if args.rotations:
            config.rotations_json = args.rotations
        if args.accelerations:
            config.accelerations_json = args.accelerations
        if args.locations:
            config.locations_json = args.locations
        if args.velocities_out:
            config.velocities_out_json = args.velocities_out
        if args.steering_out:
            config.steering_out_json = args.steering_out
        config.require_paths()

        print("\nConfiguration Summary:")
        for line in config.summary_lines():
            print(line)
        print("=" * 70)

        FitMotionRunner(config).run()

        print("=" * 70)
        print("✅ Motion fit completed successfully")
        print(f"   Velocities: {config.velocities_out_json}")
        print(f"   Steering: {config.steering_out_json}")
        print("=" * 70)
        return 0

    except MotionFitError as e:
        print(f"❌ {type(e).__name__}: {e}")
        return 1
    except Exception as e:
        print(f"❌ Error running motion fit: {e}")
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
