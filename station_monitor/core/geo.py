"""
Geospatial helpers shared by the resolver, sequencer and reverse geocoder.

This module defines:
- Coordinate parsing for loosely typed upstream values
- Latitude/longitude axis-order correction
- Great-circle (haversine) angular distance
"""

import math
from typing import Any, Optional, Tuple

# (latitude, longitude) in decimal degrees, WGS84
Coordinate = Tuple[float, float]


# ============ Parsing & Validation ============

def parse_number(value: Any) -> Optional[float]:
    """
    Parse a coordinate component that may arrive as a number or a string.
    
    Strings may contain thousands separators ("1,234.5"). Booleans,
    non-finite values and anything unparseable yield None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None
    if isinstance(value, str):
        sanitized = value.replace(",", "").strip()
        if not sanitized:
            return None
        try:
            number = float(sanitized)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def normalize_axis_order(first: float, second: float) -> Coordinate:
    """
    Return (lat, lng) from a pair whose axis order is not trusted.
    
    Some upstream records store [lng, lat]. When the first value cannot be a
    latitude (|v| > 90) and the second can, the pair is swapped. Two small
    values in the wrong order are not detectable and pass through unchanged.
    """
    if abs(first) > 90 and abs(second) <= 90:
        return second, first
    return first, second


def is_valid_coordinate(lat: float, lng: float) -> bool:
    """Check latitude/longitude ranges"""
    return -90 <= lat <= 90 and -180 <= lng <= 180


def coerce_coordinate(first: Any, second: Any) -> Optional[Coordinate]:
    """
    Parse two raw values into a validated (lat, lng) pair.
    
    Returns:
        Coordinate after axis-order correction, or None if either value is
        unparseable or the corrected pair is out of range
    """
    first_value = parse_number(first)
    second_value = parse_number(second)
    if first_value is None or second_value is None:
        return None
    
    lat, lng = normalize_axis_order(first_value, second_value)
    if not is_valid_coordinate(lat, lng):
        return None
    return lat, lng


# ============ Distance Functions ============

def angular_distance(a: Coordinate, b: Coordinate) -> float:
    """
    Central angle between two points in radians (haversine formula).
    
    Only used to compare distances, so no Earth radius is applied.
    """
    lat1, lon1 = a
    lat2, lon2 = b
    
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)
    
    h = math.sin(delta_lat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    return 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
