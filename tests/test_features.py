from __future__ import annotations

import math

import pytest

from fakes import sample
from runwalk.core.errors import InsufficientDataError, InvalidSampleError
from runwalk.core.features import FEATURE_COUNT, FEATURE_NAMES, extract, extract_latest, magnitude, mean, std


def test_feature_layout() -> None:
    assert FEATURE_COUNT == 16
    assert FEATURE_NAMES[:3] == ("accel_x_mean", "accel_y_mean", "accel_z_mean")
    assert FEATURE_NAMES[6] == "accel_x_std"
    assert FEATURE_NAMES[12:] == ("accel_mag_mean", "accel_mag_std", "gyro_mag_mean", "gyro_mag_std")


@pytest.mark.parametrize("length", [1, 2, 37, 100])
def test_extract_any_nonempty_window(length: int) -> None:
    window = tuple(sample(ax=i * 0.3, ay=-i, az=9.81, gx=0.01 * i, gy=0.5, gz=-0.2) for i in range(length))
    features = extract(window)
    assert len(features) == 16
    assert all(isinstance(v, float) and math.isfinite(v) for v in features)


def test_extract_empty_window() -> None:
    with pytest.raises(InsufficientDataError):
        extract(())


def test_extract_rejects_non_finite() -> None:
    window = (sample(ax=1.0), sample(ax=float("nan")))
    with pytest.raises(InvalidSampleError):
        extract(window)


@pytest.mark.parametrize("value", [0.1, 1.0 / 3.0, -7.25, 9.80665, 1e-12])
@pytest.mark.parametrize("length", [1, 3, 100, 257])
def test_std_of_constant_is_exactly_zero(value: float, length: int) -> None:
    assert std([value] * length) == 0.0


def test_mean_and_std_helpers() -> None:
    assert mean([]) == 0.0
    assert std([]) == 0.0
    assert mean([1.0, 2.0, 3.0, 4.0]) == 2.5
    # population deviation, not sample deviation
    assert std([1.0, 3.0]) == pytest.approx(1.0)
    assert std([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]) == pytest.approx(2.0)


def test_magnitude_helper() -> None:
    assert magnitude([3.0, 0.0], [4.0, 0.0], [0.0, 2.0]) == [5.0, 2.0]


def test_identical_unit_samples() -> None:
    window = tuple(sample(ax=1.0) for _ in range(100))
    features = extract(window)
    assert features[0] == 1.0
    assert features[6] == 0.0
    assert features[12] == 1.0
    assert features[13] == 0.0


def test_all_zero_window() -> None:
    window = tuple(sample() for _ in range(100))
    assert extract(window) == [0.0] * 16


def test_feature_positions() -> None:
    window = (
        sample(ax=1.0, ay=2.0, az=2.0, gx=0.0, gy=3.0, gz=4.0),
        sample(ax=3.0, ay=2.0, az=2.0, gx=0.0, gy=0.0, gz=0.0),
    )
    f = extract(window)
    assert f[0:3] == pytest.approx([2.0, 2.0, 2.0])
    assert f[3:6] == pytest.approx([0.0, 1.5, 2.0])
    assert f[6:9] == pytest.approx([1.0, 0.0, 0.0])
    assert f[9:12] == pytest.approx([0.0, 1.5, 2.0])
    accel_mags = [3.0, math.sqrt(17.0)]
    assert f[12] == pytest.approx(sum(accel_mags) / 2)
    assert f[13] == pytest.approx(abs(accel_mags[1] - accel_mags[0]) / 2)
    assert f[14] == pytest.approx(2.5)
    assert f[15] == pytest.approx(2.5)


def test_extract_latest_uses_newest_sample() -> None:
    window = (sample(ax=1.0), sample(ax=2.0, gz=-1.0))
    assert extract_latest(window) == [2.0, 0.0, 0.0, 0.0, 0.0, -1.0]
    with pytest.raises(InsufficientDataError):
        extract_latest(())


def test_large_finite_readings_stay_finite() -> None:
    window = (sample(ax=1e160, gz=-3e155), sample(ax=-1e160, gz=3e155))
    f = extract(window)
    assert all(math.isfinite(v) for v in f)
    assert f[6] == pytest.approx(1e160)
    assert f[12] == pytest.approx(1e160)
    assert f[13] == 0.0


def test_readings_beyond_float_range_rejected() -> None:
    window = (sample(ax=1.5e308), sample(ax=-1.5e308))
    with pytest.raises(InvalidSampleError):
        extract(window)
