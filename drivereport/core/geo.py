"""
Geocoordinate Utilities

Recovers latitude/longitude from the map links embedded in scene records:
a map search URL (`query=lat,lng`) first, then a Street View URL
(`viewpoint=lat,lng`). Parsing never raises; anything unreadable counts as
"not found".
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import parse_qs, urlsplit

from drivereport.utils.constants import MAP_SEARCH_URL_TEMPLATE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeoPoint:
    """Resolved scene location; lat/lon are None when not recoverable."""
    lat: Optional[float] = None
    lon: Optional[float] = None
    map_url: Optional[str] = None

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lon is not None


def format_coordinate(value: float) -> str:
    """Render a coordinate without a trailing '.0' for whole numbers."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def build_map_url(lat: float, lon: float) -> str:
    """Canonical map search URL for a coordinate pair."""
    return MAP_SEARCH_URL_TEMPLATE.format(lat=format_coordinate(lat), lon=format_coordinate(lon))


def parse_lat_lng(value: Optional[str]) -> Optional[Tuple[float, float]]:
    """
    Parse a "lat,lng" string.

    Returns:
        (lat, lng) when both parts are finite numbers, else None
    """
    if not value:
        return None
    parts = [p.strip() for p in str(value).split(",")]
    if len(parts) < 2:
        return None
    try:
        lat = float(parts[0])
        lng = float(parts[1])
    except ValueError:
        return None
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return None
    return lat, lng


def _query_param(url: str, name: str) -> Optional[str]:
    try:
        query = urlsplit(url).query
    except ValueError:
        return None
    values = parse_qs(query).get(name)
    return values[0] if values else None


def _raw_viewpoint(url: str) -> Optional[str]:
    marker = "viewpoint="
    if marker not in url:
        return None
    tail = url.split(marker, 1)[1]
    for stop in ("&", "#"):
        tail = tail.split(stop, 1)[0]
    return tail


def extract_lat_lng(map_view_url: Any, street_view_url: Any) -> GeoPoint:
    """
    Extract coordinates and a normalized map URL from scene links.

    Args:
        map_view_url: Map search URL (`...?api=1&query=lat,lng`), may be None/garbage
        street_view_url: Street View URL (`...&viewpoint=lat,lng`), may be None/garbage

    Returns:
        GeoPoint(lat, lon, map_url). When no coordinates are found map_url is
        the raw map URL, else the raw Street View URL, else None.

    Example:
        >>> extract_lat_lng("https://www.google.com/maps/search/?api=1&query=35.6,139.7", None)
        GeoPoint(lat=35.6, lon=139.7, map_url='https://www.google.com/maps/search/?api=1&query=35.6,139.7')
    """
    map_view_url = map_view_url if isinstance(map_view_url, str) and map_view_url else None
    street_view_url = street_view_url if isinstance(street_view_url, str) and street_view_url else None

    lat: Optional[float] = None
    lon: Optional[float] = None
    map_url: Optional[str] = None

    if map_view_url:
        coords = parse_lat_lng(_query_param(map_view_url, "query"))
        if coords:
            lat, lon = coords
            map_url = build_map_url(lat, lon)

    if (lat is None or lon is None) and street_view_url:
        viewpoint = _query_param(street_view_url, "viewpoint") or _raw_viewpoint(street_view_url)
        coords = parse_lat_lng(viewpoint)
        if coords:
            lat = coords[0] if lat is None else lat
            lon = coords[1] if lon is None else lon
            if not map_url:
                map_url = build_map_url(coords[0], coords[1])

    if not map_url:
        map_url = map_view_url or street_view_url or None

    return GeoPoint(lat=lat, lon=lon, map_url=map_url)


def collect_map_points(scene_links: Iterable[Tuple[Any, Any]]) -> List[Dict[str, float]]:
    """
    Collect plottable points from (map_view_url, street_view_url) pairs.

    Scenes without recoverable coordinates are left out.
    """
    points = []
    for map_view_url, street_view_url in scene_links:
        point = extract_lat_lng(map_view_url, street_view_url)
        if point.has_coordinates:
            points.append({"lat": point.lat, "lon": point.lon})
    return points
