import uuid

import pytest

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

from app.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    StateError,
    ValidationError,
)
from app.crud import alert as alert_crud
from app.models.alerts import AlertType
from app.models.users import UserRole
from app.schemas.alert import AlertFilterParams
from app.services.alert_service import alert_service
from app.services.audit_trail_service import audit_trail_service

from tests.conftest import NOW, PORT_LAT, PORT_LNG, make_alert_payload


def test_create_rejects_bad_timing(db):
    with pytest.raises(ValidationError):
        alert_service.create_alert(db, make_alert_payload(expires_at=NOW), now=NOW)

    with pytest.raises(ValidationError):
        alert_service.create_alert(
            db,
            make_alert_payload(triggered_at=NOW + timedelta(minutes=1)),
            now=NOW,
        )


def test_resolve_is_final(db):
    alert = alert_service.create_alert(db, make_alert_payload(), now=NOW)
    resolver = uuid.uuid4()

    resolved = alert_service.resolve(
        db, alert.id, resolver, "Coast Guard", "towed to port", now=NOW
    )

    assert resolved.status == "RESOLVED"
    assert resolved.resolved_at == NOW
    assert resolved.resolved_by_name == "Coast Guard"

    with pytest.raises(StateError):
        alert_service.resolve(db, alert.id, resolver, "Coast Guard", now=NOW)
    with pytest.raises(StateError):
        alert_service.acknowledge(db, alert.id, uuid.uuid4(), "Late Reader", now=NOW)
    with pytest.raises(StateError):
        alert_service.cancel(
            db, alert.id, alert.user_id, now=NOW
        )

    audit = audit_trail_service.select_audit_for_resource(db, "alert", alert.id)
    assert [entry.action for entry in audit] == ["RESOLVE_ALERT"]


def test_expires_lazily_on_read(db):
    alert = alert_service.create_alert(db, make_alert_payload(), now=NOW)

    still_active = alert_service.get_alert(db, alert.id, now=NOW + timedelta(minutes=119))
    assert still_active.status == "ACTIVE"

    expired = alert_service.get_alert(db, alert.id, now=NOW + timedelta(hours=2))
    assert expired.status == "EXPIRED"
    assert expired.resolved_at == NOW + timedelta(hours=2)
    assert expired.resolved_at >= expired.triggered_at

    with pytest.raises(StateError):
        alert_service.resolve(
            db, alert.id, uuid.uuid4(), "Too Late", now=NOW + timedelta(hours=2)
        )


def test_unknown_alert(db):
    with pytest.raises(NotFoundError):
        alert_service.get_alert(db, uuid.uuid4(), now=NOW)


def test_acknowledge_is_idempotent_per_user(db):
    alert = alert_service.create_alert(db, make_alert_payload(), now=NOW)
    user_id = uuid.uuid4()

    alert_service.acknowledge(
        db, alert.id, user_id, "Suresh", now=NOW + timedelta(seconds=90)
    )
    again = alert_service.acknowledge(
        db, alert.id, user_id, "Suresh", now=NOW + timedelta(seconds=300)
    )

    assert len(again.acknowledgments) == 1
    assert again.response_time_s == 90


def test_concurrent_acknowledgments_are_all_kept(db, session_factory):
    alert = alert_service.create_alert(db, make_alert_payload(), now=NOW)
    alert_id = alert.id
    acked_at = NOW + timedelta(minutes=5)

    def acknowledge(index):
        session = session_factory()
        try:
            alert_service.acknowledge(
                session, alert_id, uuid.uuid4(), f"Boat {index}", now=acked_at
            )
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(acknowledge, range(8)))

    db.expire_all()
    alert = alert_service.get_alert(db, alert_id, now=acked_at)
    assert len(alert.acknowledgments) == 8
    assert alert.response_time_s == 300


def test_concurrent_acknowledgments_from_one_user_are_kept_once(db, session_factory):
    alert = alert_service.create_alert(db, make_alert_payload(), now=NOW)
    alert_id = alert.id
    user_id = uuid.uuid4()
    acked_at = NOW + timedelta(seconds=90)

    def acknowledge(_):
        session = session_factory()
        try:
            alert_service.acknowledge(session, alert_id, user_id, "Suresh", now=acked_at)
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=6) as pool:
        list(pool.map(acknowledge, range(6)))

    db.expire_all()
    alert = alert_service.get_alert(db, alert_id, now=acked_at)
    assert len(alert.acknowledgments) == 1
    assert alert.response_time_s == 90

    later = alert_service.acknowledge(
        db, alert_id, user_id, "Suresh", now=NOW + timedelta(minutes=10)
    )
    assert len(later.acknowledgments) == 1
    assert later.response_time_s == 90


def test_assistance_is_recorded(db):
    alert = alert_service.create_alert(
        db, make_alert_payload(type=AlertType.DISTRESS), now=NOW
    )

    updated = alert_service.provide_assistance(
        db, alert.id, uuid.uuid4(), "Mahesh", "TOWING", "on my way", now=NOW
    )

    assert [a.assistance_type for a in updated.assistance] == ["TOWING"]


def test_hazard_confirmations_raise_confidence_up_to_cap(db):
    alert = alert_service.create_alert(db, make_alert_payload(), now=NOW)
    assert alert.confidence == 80

    first_user = uuid.uuid4()
    alert = alert_service.confirm_hazard(db, alert.id, first_user, "A", now=NOW)
    assert alert.confidence == 90

    # same user again changes nothing
    alert = alert_service.confirm_hazard(db, alert.id, first_user, "A", now=NOW)
    assert alert.confidence == 90

    for name in ("B", "C"):
        alert = alert_service.confirm_hazard(db, alert.id, uuid.uuid4(), name, now=NOW)

    assert alert.confidence == 100
    assert len(alert.hazard_confirmations) == 3


def test_confirmation_on_closed_hazard_changes_nothing(db):
    alert = alert_service.create_alert(db, make_alert_payload(), now=NOW)
    alert_service.resolve(db, alert.id, uuid.uuid4(), "CG", now=NOW)

    # write-time guard, as if the alert closed right after it was read
    confirmed = alert_crud.add_hazard_confirmation(db, alert.id, uuid.uuid4(), "A", 10, NOW)

    assert confirmed is False
    db.expire_all()
    alert = alert_crud.get_alert_by_id(db, alert.id)
    assert alert.confidence == 80
    assert alert.hazard_confirmations == []

    with pytest.raises(StateError):
        alert_service.confirm_hazard(db, alert.id, uuid.uuid4(), "B", now=NOW)


def test_confirmation_after_expiry_changes_nothing(db):
    alert = alert_service.create_alert(db, make_alert_payload(), now=NOW)
    later = NOW + timedelta(hours=2)

    confirmed = alert_crud.add_hazard_confirmation(db, alert.id, uuid.uuid4(), "A", 10, later)

    assert confirmed is False
    db.expire_all()
    assert alert_crud.get_alert_by_id(db, alert.id).confidence == 80


def test_only_hazards_can_be_confirmed(db):
    alert = alert_service.create_alert(
        db, make_alert_payload(type=AlertType.WEATHER), now=NOW
    )

    with pytest.raises(ConflictError):
        alert_service.confirm_hazard(db, alert.id, uuid.uuid4(), "A", now=NOW)


def test_cancel_requires_owner_or_admin(db):
    alert = alert_service.create_alert(db, make_alert_payload(), now=NOW)

    with pytest.raises(PermissionDeniedError):
        alert_service.cancel(db, alert.id, uuid.uuid4(), UserRole.USER, now=NOW)

    admin_id = uuid.uuid4()
    cancelled = alert_service.cancel(db, alert.id, admin_id, UserRole.ADMIN, now=NOW)
    assert cancelled.status == "CANCELLED"

    audit = audit_trail_service.select_audit_for_resource(db, "alert", alert.id)
    assert audit[0].action == "CANCEL_ALERT"
    assert audit[0].actor_id == admin_id


def test_owner_can_cancel(db):
    alert = alert_service.create_alert(db, make_alert_payload(), now=NOW)

    cancelled = alert_service.cancel(db, alert.id, alert.user_id, now=NOW)

    assert cancelled.status == "CANCELLED"


def test_active_near_orders_by_severity_then_recency(db):
    def create(severity, minutes_ago, lat_offset=0.0):
        return alert_service.create_alert(
            db,
            make_alert_payload(
                severity=severity,
                latitude=PORT_LAT + lat_offset,
                triggered_at=NOW - timedelta(minutes=minutes_ago),
            ),
            now=NOW,
        )

    high_old = create("HIGH", 30)
    critical = create("CRITICAL", 20, 0.05)
    high_new = create("HIGH", 5, 0.1)
    create("LOW", 1, 2.0)  # ~220 km away
    resolved = create("CRITICAL", 1)
    alert_service.resolve(db, resolved.id, uuid.uuid4(), "CG", now=NOW)

    nearby = alert_service.find_active_near(db, PORT_LAT, PORT_LNG, 50000, now=NOW)

    assert [a.id for a in nearby] == [critical.id, high_new.id, high_old.id]


def test_active_near_validates_input(db):
    with pytest.raises(ValidationError):
        alert_service.find_active_near(db, 95.0, 0.0, now=NOW)
    with pytest.raises(ValidationError):
        alert_service.find_active_near(db, 0.0, 0.0, -5, now=NOW)


def test_sweep_expires_overdue_alerts(db):
    overdue = alert_service.create_alert(
        db, make_alert_payload(expires_at=NOW + timedelta(minutes=10)), now=NOW
    )
    alert_service.create_alert(db, make_alert_payload(), now=NOW)

    later = NOW + timedelta(minutes=10)
    assert [a.id for a in alert_service.find_expired(db, now=later)] == [overdue.id]

    result = alert_service.cleanup_expired(db, now=later)

    assert result.expired_count == 1
    assert alert_service.find_expired(db, now=later) == []
    assert alert_service.cleanup_expired(db, now=later).expired_count == 0

    db.expire_all()
    swept = alert_service.get_alert(db, overdue.id, now=later)
    assert swept.status == "EXPIRED"
    assert swept.resolved_at == later
    assert swept.resolved_at >= swept.triggered_at


def test_list_alerts_filters(db):
    owner = uuid.uuid4()
    alert_service.create_alert(db, make_alert_payload(user_id=owner), now=NOW)
    alert_service.create_alert(
        db, make_alert_payload(type=AlertType.DISTRESS, severity="CRITICAL"), now=NOW
    )

    by_owner = alert_service.list_alerts(db, AlertFilterParams(user_id=owner))
    severe = alert_service.list_alerts(db, AlertFilterParams(min_severity="HIGH"))

    assert [a.user_id for a in by_owner] == [owner]
    assert [a.type for a in severe] == ["DISTRESS"]
    assert len(alert_service.list_alerts(db, limit=1)) == 1


def test_stats(db):
    hazard = alert_service.create_alert(db, make_alert_payload(), now=NOW)
    distress = alert_service.create_alert(
        db, make_alert_payload(type=AlertType.DISTRESS, severity="HIGH"), now=NOW
    )
    alert_service.create_alert(db, make_alert_payload(severity="HIGH"), now=NOW)

    alert_service.acknowledge(
        db, distress.id, uuid.uuid4(), "Helper", now=NOW + timedelta(seconds=120)
    )
    alert_service.resolve(db, hazard.id, uuid.uuid4(), "CG", now=NOW)

    stats = alert_service.stats(db, window_days=30, now=NOW + timedelta(minutes=5))

    assert stats.total_alerts == 3
    assert stats.by_type == {"HAZARD": 2, "DISTRESS": 1}
    assert stats.by_severity == {"MEDIUM": 1, "HIGH": 2}
    assert stats.avg_response_time_s == 120.0
    assert stats.resolution_rate == 33.33
