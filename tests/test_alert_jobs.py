import pytest

from app.jobs import alert_jobs
from app.schemas.weather import CreateWeatherSnapshot
from app.services.alert_service import alert_service
from app.services.weather_service import weather_service

from tests.conftest import NOW, PORT_LAT, PORT_LNG, make_alert_payload


@pytest.fixture(autouse=True)
def job_sessions(monkeypatch, session_factory):
    monkeypatch.setattr(alert_jobs, "SessionLocal", session_factory)


def test_sweep_job_expires_overdue_alerts(db):
    # expired long before the job runs
    alert = alert_service.create_alert(db, make_alert_payload(), now=NOW)

    result = alert_jobs.cleanup_expired_alerts()

    assert result == {"status": "success", "expired_count": 1}
    db.expire_all()
    assert alert_service.get_alert(db, alert.id).status == "EXPIRED"


def test_weather_job_deletes_expired_snapshots(db):
    weather_service.record_snapshot(
        db,
        CreateWeatherSnapshot(
            latitude=PORT_LAT,
            longitude=PORT_LNG,
            temperature_c=28,
            humidity=60,
            pressure_hpa=1011,
            wind_speed_kmh=12,
            condition="CLEAR",
            recorded_at=NOW,
        ),
        now=NOW,
    )

    assert alert_jobs.cleanup_expired_weather() == {"status": "success", "deleted_count": 1}


def test_statistics_job_reports_window(db):
    result = alert_jobs.log_alert_statistics()

    assert result["status"] == "success"
    assert result["statistics"]["total_alerts"] == 0


def test_beat_schedule_points_at_registered_jobs():
    from app.jobs.scheduler import celery_app

    scheduled = {entry["task"] for entry in celery_app.conf.beat_schedule.values()}

    assert scheduled == {
        alert_jobs.cleanup_expired_alerts.name,
        alert_jobs.cleanup_expired_weather.name,
        alert_jobs.log_alert_statistics.name,
    }
