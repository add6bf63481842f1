from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field, field_serializer, field_validator
from typing import Dict, List, Optional
from uuid import UUID

from app.core.levels import RiskLevel


class WeatherCondition(str, Enum):
    CLEAR = "CLEAR"
    CLOUDS = "CLOUDS"
    RAIN = "RAIN"
    DRIZZLE = "DRIZZLE"
    THUNDERSTORM = "THUNDERSTORM"
    SNOW = "SNOW"
    MIST = "MIST"
    SMOKE = "SMOKE"
    HAZE = "HAZE"
    DUST = "DUST"
    FOG = "FOG"
    SAND = "SAND"
    ASH = "ASH"
    SQUALL = "SQUALL"
    TORNADO = "TORNADO"


class TideState(str, Enum):
    LOW = "LOW"
    RISING = "RISING"
    HIGH = "HIGH"
    FALLING = "FALLING"


class FishingRating(str, Enum):
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    FAIR = "FAIR"
    POOR = "POOR"
    DANGEROUS = "DANGEROUS"


class Recommendation(str, Enum):
    SAFE_TO_FISH = "SAFE_TO_FISH"
    EXERCISE_CAUTION = "EXERCISE_CAUTION"
    RETURN_TO_SHORE = "RETURN_TO_SHORE"
    AVOID_AREA = "AVOID_AREA"
    MONITOR_CONDITIONS = "MONITOR_CONDITIONS"


class ConditionInputs(BaseModel):
    """The fields risk and fishing assessment depend on"""

    wind_speed_kmh: float = Field(..., ge=0, le=400)
    condition: WeatherCondition
    wave_height_m: Optional[float] = Field(default=None, ge=0, le=50)
    precipitation_mm: Optional[float] = Field(default=None, ge=0)
    visibility_km: Optional[float] = Field(default=None, ge=0, le=100)
    water_temperature_c: Optional[float] = Field(default=None, ge=-2, le=40)


class Factor(BaseModel):
    name: str
    impact: str  # POSITIVE, NEGATIVE, NEUTRAL
    severity: str  # LOW, MEDIUM, HIGH


class FishingConditions(BaseModel):
    score: int = Field(..., ge=0, le=100)
    rating: FishingRating
    factors: List[Factor] = []


class SafetyAssessment(BaseModel):
    risk_level: RiskLevel
    risk_factors: List[Factor] = []
    fishing_conditions: FishingConditions
    recommendations: List[Recommendation]

    @field_validator("risk_level", mode="before")
    @classmethod
    def parse_risk_level(cls, v):
        return RiskLevel.parse(v)

    @field_serializer("risk_level")
    def serialize_risk_level(self, level: RiskLevel) -> str:
        return RiskLevel(level).name


class CreateWeatherSnapshot(ConditionInputs):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    location_name: Optional[str] = None

    temperature_c: float = Field(..., ge=-50, le=60)
    humidity: float = Field(..., ge=0, le=100)
    pressure_hpa: float = Field(..., ge=800, le=1100)

    wind_direction: Optional[float] = Field(default=None, ge=0, le=360)
    wind_gust_kmh: Optional[float] = Field(default=None, ge=0, le=400)

    precipitation_probability: Optional[float] = Field(default=None, ge=0, le=100)
    cloud_cover: Optional[float] = Field(default=None, ge=0, le=100)

    wave_direction: Optional[float] = Field(default=None, ge=0, le=360)
    wave_period_s: Optional[float] = Field(default=None, ge=0)
    swell_height_m: Optional[float] = Field(default=None, ge=0, le=50)
    swell_direction: Optional[float] = Field(default=None, ge=0, le=360)
    swell_period_s: Optional[float] = Field(default=None, ge=0)
    tide_state: Optional[TideState] = None
    tide_height_m: Optional[float] = Field(default=None, ge=-10, le=10)
    current_speed_ms: Optional[float] = Field(default=None, ge=0, le=10)
    current_direction: Optional[float] = Field(default=None, ge=0, le=360)

    condition_description: Optional[str] = None
    sunrise: Optional[datetime] = None
    sunset: Optional[datetime] = None
    moon_phase: Optional[str] = None

    provider: str = "CUSTOM"
    recorded_at: Optional[datetime] = None
    is_forecast: bool = False


class UpdateWeatherSnapshot(BaseModel):
    """Partial update; safety is re-derived when an assessed field changes"""

    temperature_c: Optional[float] = Field(default=None, ge=-50, le=60)
    humidity: Optional[float] = Field(default=None, ge=0, le=100)
    pressure_hpa: Optional[float] = Field(default=None, ge=800, le=1100)
    wind_speed_kmh: Optional[float] = Field(default=None, ge=0, le=400)
    wind_direction: Optional[float] = Field(default=None, ge=0, le=360)
    wind_gust_kmh: Optional[float] = Field(default=None, ge=0, le=400)
    condition: Optional[WeatherCondition] = None
    condition_description: Optional[str] = None
    wave_height_m: Optional[float] = Field(default=None, ge=0, le=50)
    precipitation_mm: Optional[float] = Field(default=None, ge=0)
    visibility_km: Optional[float] = Field(default=None, ge=0, le=100)
    water_temperature_c: Optional[float] = Field(default=None, ge=-2, le=40)
    tide_state: Optional[TideState] = None


class WeatherSnapshotOut(BaseModel):
    id: UUID
    latitude: float
    longitude: float
    location_name: Optional[str] = None
    temperature_c: float
    humidity: float
    pressure_hpa: float
    visibility_km: Optional[float] = None
    wind_speed_kmh: float
    wind_direction: Optional[float] = None
    wind_gust_kmh: Optional[float] = None
    precipitation_mm: Optional[float] = None
    wave_height_m: Optional[float] = None
    water_temperature_c: Optional[float] = None
    tide_state: Optional[str] = None
    condition: str
    risk_level: RiskLevel
    risk_factors: Optional[List[Factor]] = None
    fishing_score: int
    fishing_rating: FishingRating
    fishing_factors: Optional[List[Factor]] = None
    recommendations: Optional[List[Recommendation]] = None
    recorded_at: datetime
    expires_at: datetime
    is_current: bool

    @field_validator("risk_level", mode="before")
    @classmethod
    def parse_risk_level(cls, v):
        return RiskLevel.parse(v)

    @field_serializer("risk_level")
    def serialize_risk_level(self, level: RiskLevel) -> str:
        return RiskLevel(level).name

    class Config:
        from_attributes = True


class WeatherStatistics(BaseModel):
    window_days: int
    total_records: int
    avg_temperature_c: float
    avg_wind_speed_kmh: float
    avg_wave_height_m: float
    risk_distribution: Dict[str, int]
    avg_fishing_score: float
