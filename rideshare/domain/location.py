"""
``"lat,lng"`` location values.

Locations travel through forms and the API as plain ``"lat,lng"`` strings.
They are parsed once at the edge into :class:`Location` and serialised
back with Python's shortest float ``repr`` so a value such as
``"10.85,76.27"`` round-trips unchanged.

Stored points are the normalised form, not the caller's text: integral
parts gain a decimal (``"10,76"`` -> ``"10.0,76.0"``) and surrounding
whitespace is dropped.  Compare locations as :class:`Location` values.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from .errors import InvalidInput


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float

    def __str__(self) -> str:
        return f"{self.latitude!r},{self.longitude!r}"


def parse_location(raw: str) -> Location:
    """Parse ``"lat,lng"`` into a :class:`Location` or raise ``InvalidInput``."""
    if not isinstance(raw, str):
        raise InvalidInput(f"Location must be a 'lat,lng' string, got {raw!r}")

    parts = raw.split(",")
    if len(parts) != 2:
        raise InvalidInput(f"Location must be 'lat,lng', got {raw!r}")

    try:
        lat, lng = float(parts[0]), float(parts[1])
    except ValueError:
        raise InvalidInput(f"Location must be numeric 'lat,lng', got {raw!r}")

    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise InvalidInput(f"Location must be finite, got {raw!r}")
    if not -90 <= lat <= 90:
        raise InvalidInput(f"Latitude {lat} outside [-90, 90]")
    if not -180 <= lng <= 180:
        raise InvalidInput(f"Longitude {lng} outside [-180, 180]")

    return Location(lat, lng)


def is_valid_location(raw: str) -> bool:
    try:
        parse_location(raw)
    except InvalidInput:
        return False
    return True
