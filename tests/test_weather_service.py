import pytest
import uuid

from datetime import timedelta

from app.core.exceptions import NotFoundError, ValidationError
from app.core.levels import RiskLevel
from app.models.weather_snapshots import WeatherSnapshot
from app.schemas.weather import CreateWeatherSnapshot, UpdateWeatherSnapshot
from app.services.weather_service import weather_service

from tests.conftest import NOW, PORT_LAT, PORT_LNG


def observation(**overrides) -> CreateWeatherSnapshot:
    data = {
        "latitude": PORT_LAT,
        "longitude": PORT_LNG,
        "temperature_c": 29.0,
        "humidity": 70.0,
        "pressure_hpa": 1012.0,
        "wind_speed_kmh": 10.0,
        "condition": "CLEAR",
        "wave_height_m": 0.5,
        "water_temperature_c": 25.0,
        "recorded_at": NOW,
    }
    data.update(overrides)
    return CreateWeatherSnapshot(**data)


def test_record_derives_safety_block(db):
    snapshot = weather_service.record_snapshot(db, observation(), now=NOW)

    assert snapshot.risk_level == RiskLevel.LOW
    assert snapshot.fishing_score == 100
    assert snapshot.fishing_rating == "EXCELLENT"
    assert snapshot.recommendations == ["SAFE_TO_FISH"]
    assert snapshot.expires_at == NOW + timedelta(hours=2)
    assert snapshot.is_current is True


def test_new_snapshot_supersedes_nearby_current_one(db):
    first = weather_service.record_snapshot(db, observation(), now=NOW)
    # ~600 m north and ~50 km away
    near = weather_service.record_snapshot(
        db, observation(latitude=PORT_LAT + 0.0054), now=NOW
    )
    far = weather_service.record_snapshot(
        db, observation(latitude=PORT_LAT + 0.45), now=NOW
    )

    db.refresh(first)
    assert first.is_current is False
    assert near.is_current is True
    assert far.is_current is True
    assert db.query(WeatherSnapshot).count() == 3


def test_stale_observation_is_rejected(db):
    with pytest.raises(ValidationError):
        weather_service.record_snapshot(
            db, observation(recorded_at=NOW - timedelta(hours=3)), now=NOW
        )


def test_update_rederives_when_assessed_field_changes(db):
    snapshot = weather_service.record_snapshot(db, observation(), now=NOW)

    updated = weather_service.update_snapshot(
        db, snapshot.id, UpdateWeatherSnapshot(condition="THUNDERSTORM")
    )

    assert updated.condition == "THUNDERSTORM"
    assert updated.risk_level == RiskLevel.CRITICAL
    assert updated.recommendations == ["AVOID_AREA"]
    assert updated.fishing_score == 75


def test_update_of_other_fields_keeps_safety_block(db):
    snapshot = weather_service.record_snapshot(db, observation(), now=NOW)

    updated = weather_service.update_snapshot(
        db, snapshot.id, UpdateWeatherSnapshot(humidity=90.0)
    )

    assert updated.humidity == 90.0
    assert updated.fishing_score == 100


def test_update_cannot_clear_required_field(db):
    snapshot = weather_service.record_snapshot(db, observation(), now=NOW)

    with pytest.raises(ValidationError):
        weather_service.update_snapshot(
            db, snapshot.id, UpdateWeatherSnapshot(wind_speed_kmh=None)
        )


def test_find_current_prefers_newest_then_nearest(db):
    older = weather_service.record_snapshot(
        db,
        observation(latitude=PORT_LAT + 0.05, recorded_at=NOW - timedelta(minutes=30)),
        now=NOW,
    )
    newer = weather_service.record_snapshot(
        db, observation(latitude=PORT_LAT + 0.2), now=NOW
    )

    found = weather_service.find_current_weather(db, PORT_LAT, PORT_LNG, now=NOW)
    assert found.id == newer.id

    assert found.id != older.id
    assert weather_service.find_current_weather(
        db, PORT_LAT, PORT_LNG, max_distance_m=1000, now=NOW
    ) is None


def test_find_current_ignores_expired(db):
    weather_service.record_snapshot(db, observation(), now=NOW)

    later = NOW + timedelta(hours=2)
    assert weather_service.find_current_weather(db, PORT_LAT, PORT_LNG, now=later) is None


def test_find_current_validates_input(db):
    with pytest.raises(ValidationError):
        weather_service.find_current_weather(db, 91.0, 0.0, now=NOW)
    with pytest.raises(ValidationError):
        weather_service.find_current_weather(db, 0.0, 0.0, max_distance_m=-1, now=NOW)


def test_cleanup_deletes_expired(db):
    weather_service.record_snapshot(
        db, observation(recorded_at=NOW - timedelta(hours=1)), now=NOW
    )
    weather_service.record_snapshot(
        db, observation(latitude=PORT_LAT + 1), now=NOW
    )

    deleted = weather_service.cleanup_expired(db, now=NOW + timedelta(hours=1))

    assert deleted == 1
    assert db.query(WeatherSnapshot).count() == 1


def test_stats_cover_current_snapshots(db):
    weather_service.record_snapshot(db, observation(), now=NOW)
    weather_service.record_snapshot(
        db,
        observation(latitude=PORT_LAT + 1, wind_speed_kmh=40.0, temperature_c=27.0),
        now=NOW,
    )

    stats = weather_service.weather_stats(db, days=7, now=NOW)

    assert stats.total_records == 2
    assert stats.avg_temperature_c == 28.0
    assert stats.avg_wind_speed_kmh == 25.0
    assert stats.risk_distribution == {"LOW": 1, "HIGH": 1}


def test_missing_snapshot(db):
    with pytest.raises(NotFoundError):
        weather_service.get_snapshot(db, uuid.uuid4())
