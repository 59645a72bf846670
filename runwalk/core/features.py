from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np

from .buffers import SampleWindow
from .errors import InsufficientDataError, InvalidSampleError


AXES: Tuple[str, ...] = ("accel_x", "accel_y", "accel_z", "gyro_x", "gyro_y", "gyro_z")

# Positions are a contract with the scaler fitted offline; never reorder.
FEATURE_NAMES: Tuple[str, ...] = (
    *(f"{axis}_mean" for axis in AXES),
    *(f"{axis}_std" for axis in AXES),
    "accel_mag_mean",
    "accel_mag_std",
    "gyro_mag_mean",
    "gyro_mag_std",
)

FEATURE_COUNT = len(FEATURE_NAMES)

FeatureVector = List[float]


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean, 0.0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.mean(np.asarray(values, dtype=np.float64)))


def std(values: Sequence[float]) -> float:
    """Population standard deviation.

    Deviations are taken from the first value before averaging. Variance is
    shift invariant, and a constant sequence then reduces to exact zeros so its
    deviation is exactly 0.0 regardless of length. Deviations are divided by
    their largest magnitude before squaring, so very large readings do not
    overflow.
    """
    if len(values) == 0:
        return 0.0
    arr = np.asarray(values, dtype=np.float64)
    shifted = arr - arr[0]
    deviations = shifted - shifted.mean()
    peak = float(np.max(np.abs(deviations)))
    if peak == 0.0:
        return 0.0
    return float(peak * np.sqrt(np.mean((deviations / peak) ** 2)))


def magnitude(x: Sequence[float], y: Sequence[float], z: Sequence[float]) -> List[float]:
    """Per-sample Euclidean norm of three equally long axis sequences."""
    return np.hypot(np.hypot(np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64)), z).tolist()


def window_to_array(window: SampleWindow) -> np.ndarray:
    """Stack a window into a (len, 6) float64 array, rejecting non-finite readings."""
    if len(window) == 0:
        raise InsufficientDataError("cannot extract features from an empty window")
    arr = np.asarray([s.as_tuple() for s in window], dtype=np.float64)
    if not np.all(np.isfinite(arr)):
        bad_rows = np.where(~np.isfinite(arr).all(axis=1))[0]
        raise InvalidSampleError(f"non-finite sensor reading at window positions {bad_rows.tolist()}")
    return arr


def extract(window: SampleWindow) -> FeatureVector:
    """Summarize a window into the 16-value statistical feature vector.

    Layout: per-axis means (accel x/y/z, gyro x/y/z), per-axis population
    standard deviations in the same axis order, then mean and deviation of the
    accelerometer magnitude and of the gyroscope magnitude.
    """
    arr = window_to_array(window)
    columns = [arr[:, i] for i in range(len(AXES))]
    accel_mag = magnitude(*columns[0:3])
    gyro_mag = magnitude(*columns[3:6])

    features = (
        [mean(col) for col in columns]
        + [std(col) for col in columns]
        + [mean(accel_mag), std(accel_mag), mean(gyro_mag), std(gyro_mag)]
    )
    if not all(np.isfinite(features)):
        raise InvalidSampleError("sensor readings too large to summarize")
    return features


def extract_latest(window: SampleWindow) -> FeatureVector:
    """Raw readings of the newest sample; the legacy single-sample feature set."""
    arr = window_to_array(window)
    return arr[-1].tolist()
