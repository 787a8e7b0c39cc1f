from __future__ import annotations

import numpy as np
import pytest

from common import settings
from palette import Color, InterpolationKind, interpolate
from palette.errors import InvalidOperationArguments
from palette.interpolation import (
    clear_ramp_cache,
    oklab_to_srgb,
    ramp_cache_info,
    ramp_fractions,
    srgb_to_oklab,
)


def test_fractions_exclude_endpoints() -> None:
    np.testing.assert_allclose(ramp_fractions(3), [0.25, 0.5, 0.75])


def test_rgb_ramp_truncates_toward_lower_endpoint() -> None:
    steps = interpolate(Color(50, 50, 78), Color(0, 0, 255), 6)
    assert [c.to_hex() for c in steps] == [
        "#2A2A67",
        "#232380",
        "#1C1C99",
        "#1515B3",
        "#0E0ECC",
        "#0707E5",
    ]
    assert all(isinstance(v, int) for c in steps for v in c.as_tuple())


def test_rgb_ramp_descending_channels_use_single_precision() -> None:
    # 3 * (1 - 1/3) は単精度で 1.9999999 となり 1 に切り捨てられる
    assert interpolate(Color(3, 3, 3), Color(0, 0, 0), 2) == (Color(1, 1, 1), Color(0, 0, 0))
    assert interpolate(Color(6, 6, 6), Color(0, 0, 0), 2) == (Color(3, 3, 3), Color(1, 1, 1))
    # 昇順/降順チャネルの混在
    assert interpolate(Color(3, 0, 6), Color(0, 3, 0), 2) == (Color(1, 1, 3), Color(0, 2, 1))


def test_single_step_is_midpoint() -> None:
    (mid,) = interpolate(Color(0, 0, 0), Color(255, 255, 255), 1)
    assert mid == Color(127, 127, 127)


def test_equal_endpoints_give_constant_ramp() -> None:
    steps = interpolate(Color(10, 20, 30), Color(10, 20, 30), 4)
    assert set(steps) == {Color(10, 20, 30)}


def test_float_channels_are_not_truncated() -> None:
    steps = interpolate(Color(0.0, 0.0, 0.0), Color(1.0, 1.0, 1.0), 3, channel_max=1.0)
    np.testing.assert_allclose([c.r for c in steps], [0.25, 0.5, 0.75])


@pytest.mark.parametrize("kind", [InterpolationKind.LINEAR_LIGHT, InterpolationKind.OKLAB, "oklab"])
def test_perceptual_kinds_stay_in_channel_range(kind) -> None:
    steps = interpolate(Color(255, 0, 0), Color(0, 0, 255), 5, kind)
    assert len(steps) == 5
    assert all(c.within(255) for c in steps)
    assert all(isinstance(v, int) for c in steps for v in c.as_tuple())


def test_linear_light_red_channel_decreases_monotonically() -> None:
    steps = interpolate(Color(255, 0, 0), Color(0, 0, 255), 5, InterpolationKind.LINEAR_LIGHT)
    reds = [c.r for c in steps]
    assert reds == sorted(reds, reverse=True)


def test_linear_light_midpoint_is_brighter_than_rgb() -> None:
    (rgb,) = interpolate(Color(0, 0, 0), Color(255, 255, 255), 1, InterpolationKind.RGB)
    (lin,) = interpolate(Color(0, 0, 0), Color(255, 255, 255), 1, InterpolationKind.LINEAR_LIGHT)
    assert lin.r > rgb.r


def test_oklab_round_trip() -> None:
    rgb = np.array([[0.2, 0.4, 0.6], [1.0, 1.0, 1.0], [0.0, 0.0, 0.0]])
    np.testing.assert_allclose(oklab_to_srgb(srgb_to_oklab(rgb)), rgb, atol=1e-4)


def test_invalid_count_and_kind() -> None:
    with pytest.raises(InvalidOperationArguments):
        interpolate(Color(0, 0, 0), Color(1, 1, 1), 0)
    with pytest.raises(InvalidOperationArguments):
        interpolate(Color(0, 0, 0), Color(1, 1, 1), 2, "hsv")


def test_ramp_cache_hits_and_bounded_size() -> None:
    settings.reload_from_env({"ramp_cache_maxsize": 2})
    clear_ramp_cache()
    a = interpolate(Color(0, 0, 0), Color(9, 9, 9), 2)
    b = interpolate(Color(0, 0, 0), Color(9, 9, 9), 2)
    assert a is b
    interpolate(Color(0, 0, 0), Color(9, 9, 9), 3)
    interpolate(Color(0, 0, 0), Color(9, 9, 9), 4)
    info = ramp_cache_info()
    assert info["hits"] == 1
    assert info["size"] == 2


def test_ramp_cache_disabled_via_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PXP_RAMP_CACHE_MAXSIZE", "0")
    settings.reload_from_env({})
    clear_ramp_cache()
    a = interpolate(Color(0, 0, 0), Color(9, 9, 9), 2)
    b = interpolate(Color(0, 0, 0), Color(9, 9, 9), 2)
    assert a == b and a is not b
    assert ramp_cache_info()["size"] == 0
