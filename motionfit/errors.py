#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Error taxonomy for the motion fitting pipeline.

- ConfigError: invalid or missing parameter, raised before any computation
- DataError: empty, malformed or unordered input stream
- ConvergenceWarning: optimizer ran out of iterations (non-fatal)
"""


class MotionFitError(Exception):
    """Base class for fatal pipeline errors."""


class ConfigError(MotionFitError, ValueError):
    """Invalid or missing configuration parameter."""


class DataError(MotionFitError, ValueError):
    """Empty, malformed or non-monotonic input data."""


class ConvergenceWarning(UserWarning):
    """Window calibration stopped at the iteration budget."""
