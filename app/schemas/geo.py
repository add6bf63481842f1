from pydantic import BaseModel, Field
from typing import List

from app.utils.geo_math import SafeZone


class DistanceResult(BaseModel):
    distance_km: float
    bearing: float


class NearestZoneQuery(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    zones: List[SafeZone] = []


class ZoneCheck(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    zone: SafeZone


class ZoneCheckResult(BaseModel):
    inside: bool
