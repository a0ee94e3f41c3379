"""
===============================================================================
COORDINATE CODEC — "(lat, lng)" TEXT <-> TYPED COORDINATE
===============================================================================

Purpose:
    Stores are persisted by the backend with their location embedded in a
    string column, e.g. "(-6.2, 106.816666)". This module is the only place
    that text is produced or read. Everywhere else in the app a location is a
    Coordinate (two floats).

Key behaviors:
    - format_coordinate(): writes "(lat, lng)" using natural float text.
      Integral floats are written without ".0" so records written by the app
      look the same as records written by the browser client.
    - parse_coordinate(): finds the first "(number, number)" pair in the text.
      Returns None when the pattern is absent or malformed.
    - No range checks here. Map clicks and GPS fixes are accepted as-is.

===============================================================================
"""

import math
import re
from typing import NamedTuple, Optional


# Fallback point used whenever a draft has no usable location (Jakarta).
DEFAULT_LAT = -6.2
DEFAULT_LNG = 106.816666


class Coordinate(NamedTuple):
    """A WGS84 point in decimal degrees."""
    lat: float
    lng: float

    def as_list(self):
        # folium / Leaflet expect [lat, lng]
        return [self.lat, self.lng]


DEFAULT_COORDINATE = Coordinate(DEFAULT_LAT, DEFAULT_LNG)


# Signed number, optional fraction, optional exponent (python writes 1e-07).
_NUMBER = r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?"
_COORD_RE = re.compile(rf"\(\s*({_NUMBER})\s*,\s*({_NUMBER})\s*\)")


def _num_text(value) -> str:
    """Natural string form of a number, without a trailing '.0'."""
    value = float(value)
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


def format_coordinate(lat, lng) -> str:
    """
    Serialize a coordinate to the stored text form.

    Example:
        format_coordinate(-6.2, 106.816666) -> "(-6.2, 106.816666)"
    """
    return f"({_num_text(lat)}, {_num_text(lng)})"


def parse_coordinate(text) -> Optional[Coordinate]:
    """
    Extract a Coordinate from stored text.

    Returns:
        Coordinate when a "(number, number)" pair is found, otherwise None.
    """
    if not isinstance(text, str):
        return None

    match = _COORD_RE.search(text.strip())
    if not match:
        return None

    try:
        lat = float(match.group(1))
        lng = float(match.group(2))
    except ValueError:
        return None

    if not (math.isfinite(lat) and math.isfinite(lng)):
        return None

    return Coordinate(lat, lng)
