"""Static timezone fallback used when the timezone API is unavailable."""

from dataclasses import dataclass


@dataclass(frozen=True)
class TimezoneBox:
    """Latitude/longitude bounding box mapped to an IANA timezone id."""

    timezone: str
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, lat: float, lng: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lng <= lng <= self.max_lng


# Checked in order; the first matching box wins.
TIMEZONE_BOXES: tuple[TimezoneBox, ...] = (
    TimezoneBox("Asia/Hong_Kong", 22.0, 22.6, 113.8, 114.5),
    TimezoneBox("Asia/Taipei", 21.8, 25.3, 119.2, 122.1),
)


def fallback_timezone(lat: float, lng: float, default: str = "Asia/Hong_Kong") -> str:
    """Resolve a timezone from the static table.

    Args:
        lat: Latitude in degrees.
        lng: Longitude in degrees.
        default: Returned when no box contains the coordinates.

    Returns:
        IANA timezone identifier.
    """
    for box in TIMEZONE_BOXES:
        if box.contains(lat, lng):
            return box.timezone
    return default
