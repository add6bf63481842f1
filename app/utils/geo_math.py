import math

from pydantic import BaseModel
from typing import List, Optional, Sequence

from app.core.exceptions import ValidationError

EARTH_RADIUS_KM = 6371.0


class GeoPoint(BaseModel):
    lat: float
    lng: float


class SafeZone(BaseModel):
    north: float
    south: float
    east: float
    west: float
    center: GeoPoint
    radius_km: float


class NearestZone(BaseModel):
    zone: SafeZone
    distance_km: float
    bearing: float


def distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Great-circle distance between two points using the Haversine formula
    Returns distance in kilometers
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lng = math.radians(lng2 - lng1)

    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lng / 2) ** 2
    )
    # rounding can push a past 1 for antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def bearing(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Initial bearing from point 1 to point 2, in degrees within [0, 360)"""
    start_lat = math.radians(lat1)
    end_lat = math.radians(lat2)
    delta_lng = math.radians(lng2 - lng1)

    y = math.sin(delta_lng) * math.cos(end_lat)
    x = math.cos(start_lat) * math.sin(end_lat) - math.sin(start_lat) * math.cos(
        end_lat
    ) * math.cos(delta_lng)

    result = math.degrees(math.atan2(y, x)) % 360.0
    # tiny negative angles round up to exactly 360.0
    if result >= 360.0:
        result = 0.0
    return result


def angular_degrees(radius_km: float) -> float:
    return math.degrees(radius_km / EARTH_RADIUS_KM)


def _longitude_scale(center_lat: float) -> float:
    cos_lat = math.cos(math.radians(center_lat))
    if abs(center_lat) >= 90 or cos_lat <= 1e-12:
        raise ValidationError("safe zone is undefined at the poles")
    return 1.0 / cos_lat


def safe_zone(center_lat: float, center_lng: float, radius_km: float) -> SafeZone:
    """
    Rectangular bounding box around a center point.

    Longitude span is widened by 1/cos(lat), so the box degenerates at the
    poles; callers get a ValidationError there instead of a division by zero.
    """
    if radius_km < 0:
        raise ValidationError("radius cannot be negative")

    lat_delta = angular_degrees(radius_km)
    lng_delta = lat_delta * _longitude_scale(center_lat)

    return SafeZone(
        north=center_lat + lat_delta,
        south=center_lat - lat_delta,
        east=center_lng + lng_delta,
        west=center_lng - lng_delta,
        center=GeoPoint(lat=center_lat, lng=center_lng),
        radius_km=radius_km,
    )


def is_in_zone(lat: float, lng: float, zone: SafeZone) -> bool:
    return zone.south <= lat <= zone.north and zone.west <= lng <= zone.east


def zone_polygon(
    center_lat: float, center_lng: float, radius_km: float, sides: int = 12
) -> List[GeoPoint]:
    """Regular polygon approximating the safe-zone perimeter, first vertex due north"""
    if sides < 3:
        raise ValidationError("a polygon needs at least 3 sides")

    angular = angular_degrees(radius_km)
    lng_scale = _longitude_scale(center_lat)

    points = []
    for i in range(sides):
        angle = (i * 2 * math.pi) / sides
        points.append(
            GeoPoint(
                lat=center_lat + angular * math.cos(angle),
                lng=center_lng + angular * math.sin(angle) * lng_scale,
            )
        )

    return points


def nearest_zone(
    lat: float, lng: float, zones: Sequence[SafeZone]
) -> Optional[NearestZone]:
    """Linear scan over explicit zones; None when there is nothing to scan"""
    nearest = None
    min_distance = math.inf

    for zone in zones:
        distance = distance_km(lat, lng, zone.center.lat, zone.center.lng)
        # strict comparison keeps the first zone on ties
        if distance < min_distance:
            min_distance = distance
            nearest = zone

    if nearest is None:
        return None

    return NearestZone(
        zone=nearest,
        distance_km=min_distance,
        bearing=bearing(lat, lng, nearest.center.lat, nearest.center.lng),
    )
