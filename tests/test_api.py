import uuid

import pytest

from datetime import timedelta
from fastapi.testclient import TestClient

from app.api.v1.dependencies import get_notification_fanout
from app.db.connection import get_db
from app.main import app
from app.services.notification_fanout import NotificationFanout
from app.utils.clock import utc_now

from tests.conftest import PORT_LAT, PORT_LNG, RecordingTransport

API = "/api/v1"


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def client(session_factory, transport):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    fanout = NotificationFanout(
        transport, authority_channel="+910000000000", retry_base_delay=0
    )
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_fanout] = lambda: fanout

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


def alert_body(**overrides):
    body = {
        "type": "HAZARD",
        "severity": "HIGH",
        "title": "Rocks exposed at low tide",
        "description": "Submerged rocks near the breakwater",
        "latitude": PORT_LAT,
        "longitude": PORT_LNG,
        "user_id": str(uuid.uuid4()),
        "user_name": "Ravi Patil",
        "expires_at": (utc_now() + timedelta(hours=2)).isoformat(),
    }
    body.update(overrides)
    return body


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert "X-Process-Time" in response.headers


def test_alert_lifecycle(client):
    response = client.post(f"{API}/alerts/", json=alert_body())
    assert response.status_code == 201
    alert = response.json()
    assert alert["severity"] == "HIGH"
    assert alert["status"] == "ACTIVE"
    alert_id = alert["id"]

    viewed = client.get(f"{API}/alerts/{alert_id}").json()
    assert viewed["view_count"] == 1

    helper = str(uuid.uuid4())
    acked = client.post(
        f"{API}/alerts/{alert_id}/acknowledge",
        json={"user_id": helper, "user_name": "Suresh"},
    ).json()
    assert [a["user_name"] for a in acked["acknowledgments"]] == ["Suresh"]
    assert acked["response_time_s"] is not None

    confirmed = client.post(
        f"{API}/alerts/{alert_id}/confirm-hazard",
        json={"user_id": helper, "user_name": "Suresh"},
    ).json()
    assert confirmed["confidence"] == 90

    resolver = {"resolver_id": helper, "resolver_name": "Suresh", "notes": "marked"}
    resolved = client.post(f"{API}/alerts/{alert_id}/resolve", json=resolver)
    assert resolved.status_code == 200
    assert resolved.json()["status"] == "RESOLVED"

    again = client.post(f"{API}/alerts/{alert_id}/resolve", json=resolver)
    assert again.status_code == 409
    assert again.json()["error_code"] == "INVALID_STATE"

    audit = client.get(f"{API}/audit/resources/alert/{alert_id}").json()
    assert [entry["action"] for entry in audit] == ["RESOLVE_ALERT"]


def test_domain_errors_map_to_status_codes(client):
    missing = client.get(f"{API}/alerts/{uuid.uuid4()}")
    assert missing.status_code == 404
    assert missing.json()["error_code"] == "NOT_FOUND"

    past = client.post(
        f"{API}/alerts/",
        json=alert_body(expires_at=(utc_now() - timedelta(minutes=1)).isoformat()),
    )
    assert past.status_code == 422
    assert past.json()["error_code"] == "VALIDATION_ERROR"

    weather_alert = client.post(f"{API}/alerts/", json=alert_body(type="WEATHER")).json()
    conflict = client.post(
        f"{API}/alerts/{weather_alert['id']}/confirm-hazard",
        json={"user_id": str(uuid.uuid4()), "user_name": "A"},
    )
    assert conflict.status_code == 409
    assert conflict.json()["error_code"] == "CONFLICT"

    forbidden = client.post(
        f"{API}/alerts/{weather_alert['id']}/cancel",
        json={"actor_id": str(uuid.uuid4()), "actor_role": 1},
    )
    assert forbidden.status_code == 403


def test_nearby_and_listing(client):
    client.post(f"{API}/alerts/", json=alert_body(severity="LOW"))
    client.post(f"{API}/alerts/", json=alert_body(severity="CRITICAL", latitude=PORT_LAT + 0.1))
    client.post(f"{API}/alerts/", json=alert_body(latitude=PORT_LAT + 3))

    near = client.get(
        f"{API}/alerts/near", params={"lat": PORT_LAT, "lng": PORT_LNG, "max_distance_m": 20000}
    ).json()
    assert [a["severity"] for a in near] == ["CRITICAL", "LOW"]

    severe = client.get(f"{API}/alerts/", params={"min_severity": "HIGH"}).json()
    assert len(severe) == 2

    stats = client.get(f"{API}/alerts/stats").json()
    assert stats["total_alerts"] == 3
    assert stats["by_severity"] == {"LOW": 1, "HIGH": 1, "CRITICAL": 1}


def test_sos_and_location_reports(client, transport):
    user = client.post(
        f"{API}/users/",
        json={
            "first_name": "Ravi",
            "phone": "+919800000001",
            "home_port_latitude": PORT_LAT,
            "home_port_longitude": PORT_LNG,
            "max_offshore_km": 10,
            "emergency_contacts": [{"name": "Asha", "phone": "+919800000010"}],
        },
    )
    assert user.status_code == 201
    user_id = user.json()["id"]

    contact = client.post(
        f"{API}/users/{user_id}/contacts", json={"name": "Vikram", "phone": "+919800000011"}
    )
    assert contact.status_code == 201
    assert len(client.get(f"{API}/users/{user_id}").json()["emergency_contacts"]) == 2

    sos = client.post(
        f"{API}/alerts/sos",
        json=alert_body(type="DISTRESS", severity="CRITICAL", user_id=user_id, user_name="Ravi"),
    )
    assert sos.status_code == 201
    fanout = sos.json()["fanout"]
    assert fanout["contacts"]["enqueued"] == 2
    assert fanout["authorities"]["enqueued"] == 1
    assert sos.json()["alert"]["authorities_notified"] is True

    repeat = client.post(
        f"{API}/alerts/sos",
        json=alert_body(type="DISTRESS", user_id=user_id, user_name="Ravi"),
    ).json()
    assert repeat["fanout"]["suppressed"] is True
    assert repeat["alert"]["id"] == sos.json()["alert"]["id"]

    offshore = client.post(
        f"{API}/users/{user_id}/location",
        json={"latitude": PORT_LAT + 0.2, "longitude": PORT_LNG},
    ).json()
    assert offshore["offshore"] is True
    assert offshore["fanout"]["contacts"]["enqueued"] == 2

    activations = client.get(f"{API}/analytics/users/{user_id}").json()
    assert activations["emergency_activations"] == 1

    assert client.get(f"{API}/users/{uuid.uuid4()}").status_code == 404


def test_plain_create_fans_out_distress(client, transport):
    hazard = client.post(f"{API}/alerts/", json=alert_body())
    assert hazard.status_code == 201
    assert transport.sent == []

    distress = client.post(
        f"{API}/alerts/", json=alert_body(type="DISTRESS", severity="CRITICAL")
    )

    assert distress.status_code == 201
    assert distress.json()["type"] == "DISTRESS"
    assert distress.json()["authorities_notified"] is True
    assert [task.kind for task in transport.sent] == ["AUTHORITY"]
    assert transport.sent[0].alert_id == uuid.UUID(distress.json()["id"])


def test_weather_endpoints(client):
    observation = {
        "latitude": PORT_LAT,
        "longitude": PORT_LNG,
        "temperature_c": 29,
        "humidity": 70,
        "pressure_hpa": 1010,
        "wind_speed_kmh": 40,
        "condition": "RAIN",
        "wave_height_m": 1.0,
        "precipitation_mm": 25,
    }

    created = client.post(f"{API}/weather/", json=observation)
    assert created.status_code == 201
    assert created.json()["risk_level"] == "HIGH"
    assert created.json()["recommendations"] == ["RETURN_TO_SHORE"]

    current = client.get(f"{API}/weather/current", params={"lat": PORT_LAT, "lng": PORT_LNG})
    assert current.status_code == 200
    assert current.json()["id"] == created.json()["id"]

    nothing = client.get(f"{API}/weather/current", params={"lat": 0, "lng": 0})
    assert nothing.status_code == 404

    patched = client.patch(
        f"{API}/weather/{created.json()['id']}", json={"wind_speed_kmh": 5, "condition": "CLEAR"}
    ).json()
    assert patched["risk_level"] == "LOW"

    assessed = client.post(
        f"{API}/weather/assess", json={"wind_speed_kmh": 10, "condition": "THUNDERSTORM"}
    ).json()
    assert assessed["risk_level"] == "CRITICAL"

    stats = client.get(f"{API}/weather/stats").json()
    assert stats["total_records"] == 1


def test_analytics_endpoints(client):
    body = {"weight": 12.5, "day": "2026-03-01"}
    assert client.post(f"{API}/analytics/catch", json=body).status_code == 201
    client.post(f"{API}/analytics/catch", json={"weight": 2.5, "day": "2026-03-01"})

    daily = client.get(f"{API}/analytics/daily/2026-03-01").json()
    assert daily["total_catches"] == 2
    assert daily["total_weight"] == 15.0

    ranged = client.get(
        f"{API}/analytics/daily", params={"start": "2026-02-01", "end": "2026-03-31"}
    ).json()
    assert ranged["total_catches"] == 2

    backwards = client.get(
        f"{API}/analytics/daily", params={"start": "2026-03-31", "end": "2026-02-01"}
    )
    assert backwards.status_code == 422


def test_geo_endpoints(client):
    distance = client.get(
        f"{API}/geo/distance",
        params={"lat1": 19.0760, "lng1": 72.8777, "lat2": 18.9220, "lng2": 72.8347},
    ).json()
    assert abs(distance["distance_km"] - 17.3) <= 0.5

    zone = client.get(
        f"{API}/geo/safe-zone", params={"lat": PORT_LAT, "lng": PORT_LNG, "radius_km": 10}
    ).json()
    inside = client.post(
        f"{API}/geo/safe-zone/contains",
        json={"latitude": PORT_LAT, "longitude": PORT_LNG, "zone": zone},
    ).json()
    assert inside["inside"] is True

    polygon = client.get(
        f"{API}/geo/safe-zone/polygon",
        params={"lat": PORT_LAT, "lng": PORT_LNG, "radius_km": 10, "sides": 6},
    ).json()
    assert len(polygon) == 6

    pole = client.get(f"{API}/geo/safe-zone", params={"lat": 90, "lng": 0, "radius_km": 10})
    assert pole.status_code == 422

    nearest = client.post(
        f"{API}/geo/nearest", json={"latitude": 0, "longitude": 0, "zones": []}
    )
    assert nearest.status_code == 200
    assert nearest.json() is None


def test_sensor_endpoints(client):
    stats = client.get(f"{API}/sensors/stats").json()
    assert stats["registered_sensors"] == 0
    assert stats["running"] is False

    assert client.post(f"{API}/sensors/collect").json() is None
    assert client.post(f"{API}/sensors/transmission/next").json() is None
    assert client.get(f"{API}/sensors/history").json() == []
