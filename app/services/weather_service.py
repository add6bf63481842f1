"""Weather snapshots: validate, then derive the safety block, then persist.

The safety block (risk level, factors, fishing score, recommendations) is a
pure function of the observed fields. It is recomputed here before every
write that touches an assessed field, never by a persistence hook.
"""

import logging

from datetime import datetime, timedelta
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.core.levels import RiskLevel
from app.crud import weather as weather_crud
from app.models.weather_snapshots import WeatherSnapshot
from app.schemas.weather import (
    ConditionInputs,
    CreateWeatherSnapshot,
    SafetyAssessment,
    UpdateWeatherSnapshot,
    WeatherStatistics,
)
from app.services.risk_assessor import risk_assessor
from app.utils.clock import to_naive_utc, utc_now

logger = logging.getLogger(__name__)
LOG_MSG = "Service:"

ASSESSED_FIELDS = set(ConditionInputs.model_fields)
REQUIRED_FIELDS = {"temperature_c", "humidity", "pressure_hpa", "wind_speed_kmh", "condition"}


def _enum_value(value):
    return getattr(value, "value", value)


class WeatherService:

    @staticmethod
    def assess(inputs: ConditionInputs) -> SafetyAssessment:
        return risk_assessor.assess(inputs)

    def _derive(self, inputs: ConditionInputs) -> dict:
        assessment = self.assess(inputs)
        fishing = assessment.fishing_conditions

        return {
            "risk_level": int(assessment.risk_level),
            "risk_factors": [f.model_dump() for f in assessment.risk_factors],
            "fishing_score": fishing.score,
            "fishing_rating": fishing.rating.value,
            "fishing_factors": [f.model_dump() for f in fishing.factors],
            "recommendations": [r.value for r in assessment.recommendations],
        }

    def record_snapshot(
        self, db: Session, payload: CreateWeatherSnapshot, now: Optional[datetime] = None
    ) -> WeatherSnapshot:
        now = to_naive_utc(now) if now else utc_now()

        # validate
        recorded_at = to_naive_utc(payload.recorded_at) or now
        expires_at = recorded_at + timedelta(hours=settings.WEATHER_VALIDITY_HOURS)
        if expires_at <= now:
            raise ValidationError("snapshot is older than its validity window")

        # derive
        data = payload.model_dump(exclude={"recorded_at"})
        data["condition"] = _enum_value(payload.condition)
        data["tide_state"] = _enum_value(payload.tide_state)
        data["sunrise"] = to_naive_utc(payload.sunrise)
        data["sunset"] = to_naive_utc(payload.sunset)
        data.update(
            recorded_at=recorded_at,
            expires_at=expires_at,
            is_current=True,
            **self._derive(payload),
        )

        # persist
        return weather_crud.create_snapshot(
            db, data, settings.WEATHER_SUPERSEDE_RADIUS_KM
        )

    def get_snapshot(self, db: Session, snapshot_id: UUID) -> WeatherSnapshot:
        snapshot = weather_crud.get_snapshot_by_id(db, snapshot_id)
        if not snapshot:
            raise NotFoundError(f"weather snapshot {snapshot_id} not found")
        return snapshot

    def update_snapshot(
        self, db: Session, snapshot_id: UUID, payload: UpdateWeatherSnapshot
    ) -> WeatherSnapshot:
        snapshot = self.get_snapshot(db, snapshot_id)

        changes = payload.model_dump(exclude_unset=True)
        cleared = [field for field in REQUIRED_FIELDS if field in changes and changes[field] is None]
        if cleared:
            raise ValidationError(f"required fields cannot be cleared: {', '.join(sorted(cleared))}")

        changes = {field: _enum_value(value) for field, value in changes.items()}

        if changes.keys() & ASSESSED_FIELDS:
            merged = {
                field: changes.get(field, getattr(snapshot, field))
                for field in ASSESSED_FIELDS
            }
            changes.update(self._derive(ConditionInputs(**merged)))

        return weather_crud.update_snapshot(db, snapshot, changes)

    def find_current_weather(
        self,
        db: Session,
        latitude: float,
        longitude: float,
        max_distance_m: float = settings.WEATHER_SEARCH_METERS,
        now: Optional[datetime] = None,
    ) -> Optional[WeatherSnapshot]:
        if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
            raise ValidationError("coordinates out of range")
        if max_distance_m < 0:
            raise ValidationError("max distance cannot be negative")

        now = to_naive_utc(now) if now else utc_now()
        matches = weather_crud.get_current_snapshots_near(
            db, latitude, longitude, max_distance_m / 1000.0, now
        )
        return matches[0][0] if matches else None

    def cleanup_expired(self, db: Session, now: Optional[datetime] = None) -> int:
        now = to_naive_utc(now) if now else utc_now()
        return weather_crud.delete_expired_snapshots(db, now)

    def weather_stats(
        self, db: Session, days: int = 7, now: Optional[datetime] = None
    ) -> WeatherStatistics:
        if days < 1:
            raise ValidationError("window must be at least one day")

        now = to_naive_utc(now) if now else utc_now()
        raw = weather_crud.get_weather_statistics(db, now - timedelta(days=days))

        return WeatherStatistics(
            window_days=days,
            total_records=raw["total_records"],
            avg_temperature_c=round(raw["avg_temperature_c"], 2),
            avg_wind_speed_kmh=round(raw["avg_wind_speed_kmh"], 2),
            avg_wave_height_m=round(raw["avg_wave_height_m"], 2),
            risk_distribution={
                RiskLevel(level).name: count
                for level, count in raw["risk_distribution"].items()
            },
            avg_fishing_score=round(raw["avg_fishing_score"], 2),
        )


weather_service = WeatherService()
