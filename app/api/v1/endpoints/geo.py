from fastapi import APIRouter, Query
from typing import List, Optional

from app.schemas.geo import DistanceResult, NearestZoneQuery, ZoneCheck, ZoneCheckResult
from app.utils import geo_math

router = APIRouter()


@router.get("/distance", response_model=DistanceResult)
def get_distance(
    lat1: float = Query(..., ge=-90, le=90),
    lng1: float = Query(..., ge=-180, le=180),
    lat2: float = Query(..., ge=-90, le=90),
    lng2: float = Query(..., ge=-180, le=180),
):
    """Great-circle distance and initial bearing from the first point to the second"""
    return DistanceResult(
        distance_km=geo_math.distance_km(lat1, lng1, lat2, lng2),
        bearing=geo_math.bearing(lat1, lng1, lat2, lng2),
    )


@router.get("/safe-zone", response_model=geo_math.SafeZone)
def get_safe_zone(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius_km: float = Query(..., ge=0),
):
    return geo_math.safe_zone(lat, lng, radius_km)


@router.get("/safe-zone/polygon", response_model=List[geo_math.GeoPoint])
def get_safe_zone_polygon(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius_km: float = Query(..., ge=0),
    sides: int = Query(12, ge=3, le=360),
):
    return geo_math.zone_polygon(lat, lng, radius_km, sides)


@router.post("/safe-zone/contains", response_model=ZoneCheckResult)
def check_in_zone(payload: ZoneCheck):
    return ZoneCheckResult(
        inside=geo_math.is_in_zone(payload.latitude, payload.longitude, payload.zone)
    )


@router.post("/nearest", response_model=Optional[geo_math.NearestZone])
def get_nearest_zone(payload: NearestZoneQuery):
    """Closest zone center to the point; null when no zones are given"""
    return geo_math.nearest_zone(payload.latitude, payload.longitude, payload.zones)
