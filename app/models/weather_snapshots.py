import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Uuid,
    func,
)

from app.core.levels import RiskLevel
from app.db.base_class import Base
from app.models.alerts import JSONType


class WeatherSnapshot(Base):
    __tablename__ = "weather_snapshots"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # location
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    location_name = Column(String(255), nullable=True)

    # atmosphere
    temperature_c = Column(Float, nullable=False)
    humidity = Column(Float, nullable=False)
    pressure_hpa = Column(Float, nullable=False)
    visibility_km = Column(Float, nullable=True)

    # wind
    wind_speed_kmh = Column(Float, nullable=False)
    wind_direction = Column(Float, nullable=True)
    wind_gust_kmh = Column(Float, nullable=True)

    # precipitation and clouds
    precipitation_mm = Column(Float, nullable=True)
    precipitation_probability = Column(Float, nullable=True)
    cloud_cover = Column(Float, nullable=True)

    # marine
    wave_height_m = Column(Float, nullable=True)
    wave_direction = Column(Float, nullable=True)
    wave_period_s = Column(Float, nullable=True)
    swell_height_m = Column(Float, nullable=True)
    swell_direction = Column(Float, nullable=True)
    swell_period_s = Column(Float, nullable=True)
    water_temperature_c = Column(Float, nullable=True)
    tide_state = Column(String(20), nullable=True)
    tide_height_m = Column(Float, nullable=True)
    current_speed_ms = Column(Float, nullable=True)
    current_direction = Column(Float, nullable=True)

    # conditions and astronomy
    condition = Column(String(30), nullable=False)
    condition_description = Column(String(255), nullable=True)
    sunrise = Column(DateTime, nullable=True)
    sunset = Column(DateTime, nullable=True)
    moon_phase = Column(String(30), nullable=True)

    # derived safety block, always recomputed before a write
    risk_level = Column(Integer, nullable=False, default=RiskLevel.LOW)
    risk_factors = Column(JSONType, nullable=True)
    fishing_score = Column(Integer, nullable=False, default=0)
    fishing_rating = Column(String(20), nullable=False, default="DANGEROUS")
    fishing_factors = Column(JSONType, nullable=True)
    recommendations = Column(JSONType, nullable=True)

    # data source and lifetime
    provider = Column(String(50), nullable=False, default="CUSTOM")
    recorded_at = Column(DateTime, nullable=False, server_default=func.now())
    expires_at = Column(DateTime, nullable=False)
    is_current = Column(Boolean, nullable=False, default=True)
    is_forecast = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_weather_location", "latitude", "longitude"),
        Index("idx_weather_recorded", "recorded_at"),
        Index("idx_weather_expires", "expires_at"),
        Index("idx_weather_current", "is_current"),
        Index("idx_weather_risk", "risk_level"),
    )
