"""Tests for font-metric based resolution estimates."""

from __future__ import annotations

import math

import pytest

from texoverlay.errors import HostMetricsError
from texoverlay.host import MemoryHost
from texoverlay.resolution import estimate_resolution


def test_twenty_pixel_font_gives_144():
    assert estimate_resolution(MemoryHost(font_px=20)) == 144


def test_fractional_font_height_rounds_up():
    # 13.5px -> 72 * 1.35 = 97.2
    assert estimate_resolution(MemoryHost(font_px=13.5)) == 98


def test_matches_two_stage_ratio():
    for font_px in (1, 7, 10, 11.25, 16, 17.3, 24, 33.33, 96):
        expected = math.ceil(72.0 * (font_px / (72.0 * (10.0 / 72.0))))
        assert estimate_resolution(MemoryHost(font_px=font_px)) == expected


def test_positive_and_monotonic():
    heights = [0.5 + step * 0.25 for step in range(400)]
    results = [estimate_resolution(MemoryHost(font_px=h)) for h in heights]
    assert all(isinstance(value, int) and value > 0 for value in results)
    assert results == sorted(results)


@pytest.mark.parametrize("font_px", [0, -3, 0.0, float("nan"), float("inf"), None, "16", True])
def test_invalid_font_height_is_fatal(font_px):
    with pytest.raises(HostMetricsError):
        estimate_resolution(MemoryHost(font_px=font_px))
