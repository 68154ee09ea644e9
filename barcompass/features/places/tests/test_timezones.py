"""Tests for the static timezone fallback table."""

import pytest

from barcompass.features.places.timezones import fallback_timezone


@pytest.mark.parametrize(
    ("lat", "lng", "expected"),
    [
        (22.2808, 114.1557, "Asia/Hong_Kong"),
        (25.0330, 121.5654, "Asia/Taipei"),
        (22.6273, 120.3014, "Asia/Taipei"),
    ],
)
def test_known_regions(lat, lng, expected):
    assert fallback_timezone(lat, lng) == expected


def test_unknown_region_uses_default():
    assert fallback_timezone(51.5072, -0.1276) == "Asia/Hong_Kong"
    assert fallback_timezone(51.5072, -0.1276, default="Europe/London") == "Europe/London"
