"""
Normalization of raw station/place records returned by lookup sources.

Upstream payloads use several names for the same logical field. Each alias
table below is ordered by preference; the first non-empty value wins.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from station_monitor.core.geo import Coordinate, coerce_coordinate

# Canonical station name first, generic names after
NAME_ALIASES = ("stationName", "name", "place_name")

CODE_ALIASES = ("codeNumber", "codeName", "code_number", "code", "codeNum", "stationCode", "id")

COORD_PAIR_ALIASES = ("coords",)

LATITUDE_ALIASES = ("latitude", "lat", "y")

LONGITUDE_ALIASES = ("longitude", "lng", "lon", "x")


@dataclass
class StationRecord:
    """Canonical view over one raw lookup record"""
    name: str = ""
    code: Optional[str] = None
    coords: Optional[Coordinate] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)


def _first_present(raw: Dict[str, Any], aliases: Sequence[str]) -> Any:
    for alias in aliases:
        value = raw.get(alias)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def extract_name(raw: Dict[str, Any]) -> str:
    value = _first_present(raw, NAME_ALIASES)
    return str(value).strip() if value is not None else ""


def extract_code(raw: Dict[str, Any]) -> Optional[str]:
    value = _first_present(raw, CODE_ALIASES)
    if value is None:
        return None
    return str(value).strip() or None


def extract_coords(raw: Dict[str, Any]) -> Optional[Coordinate]:
    """
    Extract a validated (lat, lng) pair from a raw record.
    
    A 2-element coordinate array is tried first, then separate
    latitude/longitude scalar fields. Both forms go through the same
    axis-order correction.
    """
    pair = _first_present(raw, COORD_PAIR_ALIASES)
    if isinstance(pair, (list, tuple)) and len(pair) >= 2:
        coords = coerce_coordinate(pair[0], pair[1])
        if coords is not None:
            return coords
    
    lat_raw = _first_present(raw, LATITUDE_ALIASES)
    lng_raw = _first_present(raw, LONGITUDE_ALIASES)
    if lat_raw is None or lng_raw is None:
        return None
    return coerce_coordinate(lat_raw, lng_raw)


def normalize_station_record(raw: Any) -> StationRecord:
    """Build a StationRecord from any upstream payload (non-dicts become empty records)"""
    if not isinstance(raw, dict):
        return StationRecord()
    return StationRecord(
        name=extract_name(raw),
        code=extract_code(raw),
        coords=extract_coords(raw),
        raw=raw,
    )


def suggestions_from_rows(rows: Sequence[Any]) -> List[Dict[str, Any]]:
    """
    Turn name-lookup rows into autocomplete suggestions.
    
    Rows without a name or usable coordinates are dropped.
    """
    suggestions = []
    for row in rows:
        record = normalize_station_record(row)
        if not record.name or record.coords is None:
            continue
        suggestions.append({
            "id": record.code or record.name,
            "name": record.name,
            "lat": record.coords[0],
            "lng": record.coords[1],
            "code_number": record.code,
        })
    return suggestions
