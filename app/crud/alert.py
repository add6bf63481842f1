import logging

from datetime import datetime
from sqlalchemy import and_, case, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from typing import Dict, List, Optional
from uuid import UUID

from app.models.alerts import (
    Alert,
    AlertAcknowledgment,
    AlertAssistance,
    AlertStatus,
    HazardConfirmation,
)
from app.schemas.alert import AlertFilterParams, CreateAlert
from app.utils import geo_math

logger = logging.getLogger(__name__)
LOG_MSG = "CRUD:"

MAX_CONFIDENCE = 100


def _conditional(statement):
    # every mutation here is a single guarded UPDATE, the session is
    # expired on commit instead of being synchronized in Python
    return statement.execution_options(synchronize_session=False)


def create_alert(db: Session, payload: CreateAlert, triggered_at: datetime) -> Alert:
    """Persist a validated alert payload"""
    alert_data = payload.model_dump(
        exclude={"distress_detail", "weather_detail", "hazard_detail", "triggered_at"}
    )
    alert_data["severity"] = int(payload.severity)
    alert_data["type"] = payload.type.value
    alert_data["priority"] = payload.priority.value
    alert_data["source"] = payload.source.value
    alert_data["triggered_at"] = triggered_at
    alert_data["status"] = AlertStatus.ACTIVE.value

    # JSON columns need plain values
    for detail in ("distress_detail", "weather_detail", "hazard_detail"):
        value = getattr(payload, detail)
        alert_data[detail] = value.model_dump(mode="json") if value else None

    alert = Alert(**alert_data)

    try:
        db.add(alert)
        db.commit()
        db.refresh(alert)

        logger.info(
            f"{LOG_MSG} created {alert.type} alert {alert.id} at ({alert.latitude}, {alert.longitude})"
        )
        return alert
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{LOG_MSG} error creating alert: {str(e)}")
        raise


def get_alert_by_id(db: Session, alert_id: UUID) -> Optional[Alert]:
    query = select(Alert).where(Alert.id == alert_id)

    try:
        return db.execute(query).scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.error(f"{LOG_MSG} error getting alert by id: {str(e)}")
        raise


def expire_if_overdue(db: Session, alert_id: UUID, now: datetime) -> bool:
    """Move one ACTIVE alert to EXPIRED when its lifetime has passed"""
    query = _conditional(
        update(Alert)
        .where(
            and_(
                Alert.id == alert_id,
                Alert.status == AlertStatus.ACTIVE.value,
                Alert.expires_at <= now,
            )
        )
        .values(status=AlertStatus.EXPIRED.value, resolved_at=now, updated_at=now)
    )

    try:
        result = db.execute(query)
        db.commit()

        if result.rowcount > 0:
            logger.info(f"{LOG_MSG} expired alert {alert_id} on read")
            return True
        return False
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{LOG_MSG} error expiring alert: {str(e)}")
        raise


def increment_view_count(db: Session, alert_id: UUID) -> bool:
    query = _conditional(
        update(Alert)
        .where(Alert.id == alert_id)
        .values(view_count=Alert.view_count + 1)
    )

    try:
        result = db.execute(query)
        db.commit()
        return result.rowcount > 0
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{LOG_MSG} error incrementing view count: {str(e)}")
        raise


def add_acknowledgment(
    db: Session,
    alert: Alert,
    user_id: UUID,
    user_name: str,
    role: str,
    now: datetime,
) -> bool:
    """
    Insert one acknowledgment row. Returns False when this user already
    acknowledged; the unique constraint decides, not a prior read.
    The first acknowledgment freezes the response time.
    """
    alert_id = alert.id
    response_time_s = max(0, int((now - alert.triggered_at).total_seconds()))

    try:
        db.add(
            AlertAcknowledgment(
                alert_id=alert_id,
                user_id=user_id,
                user_name=user_name,
                role=role,
                acknowledged_at=now,
            )
        )
        db.flush()
    except IntegrityError:
        db.rollback()
        logger.info(f"{LOG_MSG} user {user_id} already acknowledged alert {alert_id}")
        return False

    query = _conditional(
        update(Alert)
        .where(and_(Alert.id == alert_id, Alert.response_time_s.is_(None)))
        .values(response_time_s=response_time_s, updated_at=now)
    )

    try:
        db.execute(query)
        db.commit()

        logger.info(f"{LOG_MSG} alert {alert_id} acknowledged by {user_id}")
        return True
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{LOG_MSG} error acknowledging alert: {str(e)}")
        raise


def add_assistance(
    db: Session,
    alert_id: UUID,
    provider_id: UUID,
    provider_name: str,
    assistance_type: str,
    notes: Optional[str],
    now: datetime,
) -> AlertAssistance:
    assistance = AlertAssistance(
        alert_id=alert_id,
        provider_id=provider_id,
        provider_name=provider_name,
        assistance_type=assistance_type,
        notes=notes,
        provided_at=now,
    )

    try:
        db.add(assistance)
        db.commit()
        db.refresh(assistance)

        logger.info(f"{LOG_MSG} assistance recorded on alert {alert_id} by {provider_id}")
        return assistance
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{LOG_MSG} error recording assistance: {str(e)}")
        raise


def add_hazard_confirmation(
    db: Session, alert_id: UUID, user_id: UUID, user_name: str, boost: int, now: datetime
) -> bool:
    """
    One confirmation per user; each new one raises confidence, capped at 100.
    False when the user already confirmed or the alert is no longer active.
    """
    try:
        db.add(
            HazardConfirmation(
                alert_id=alert_id, user_id=user_id, user_name=user_name, confirmed_at=now
            )
        )
        db.flush()
    except IntegrityError:
        db.rollback()
        logger.info(f"{LOG_MSG} user {user_id} already confirmed hazard {alert_id}")
        return False

    boosted = Alert.confidence + boost
    query = _conditional(
        update(Alert)
        .where(
            and_(
                Alert.id == alert_id,
                Alert.status == AlertStatus.ACTIVE.value,
                Alert.expires_at > now,
            )
        )
        .values(
            confidence=case((boosted > MAX_CONFIDENCE, MAX_CONFIDENCE), else_=boosted),
            updated_at=now,
        )
    )

    try:
        result = db.execute(query)
        if result.rowcount == 0:
            # alert closed after it was read; keep the confirmation out too
            db.rollback()
            logger.info(f"{LOG_MSG} hazard {alert_id} no longer active, confirmation dropped")
            return False

        db.commit()

        logger.info(f"{LOG_MSG} hazard {alert_id} confirmed by {user_id}")
        return True
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{LOG_MSG} error confirming hazard: {str(e)}")
        raise


def _close_alert(db: Session, alert_id: UUID, now: datetime, values: dict) -> bool:
    query = _conditional(
        update(Alert)
        .where(
            and_(
                Alert.id == alert_id,
                Alert.status == AlertStatus.ACTIVE.value,
                Alert.expires_at > now,
            )
        )
        .values(updated_at=now, **values)
    )

    try:
        result = db.execute(query)
        db.commit()
        return result.rowcount > 0
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{LOG_MSG} error closing alert {alert_id}: {str(e)}")
        raise


def resolve_alert(
    db: Session,
    alert_id: UUID,
    resolver_id: UUID,
    resolver_name: str,
    notes: Optional[str],
    now: datetime,
) -> bool:
    """ACTIVE -> RESOLVED; False when the alert was not ACTIVE at write time"""
    resolved = _close_alert(
        db,
        alert_id,
        now,
        {
            "status": AlertStatus.RESOLVED.value,
            "resolved_at": now,
            "resolved_by_id": resolver_id,
            "resolved_by_name": resolver_name,
            "resolution_notes": notes,
        },
    )
    if resolved:
        logger.info(f"{LOG_MSG} resolved alert {alert_id}")
    return resolved


def cancel_alert(db: Session, alert_id: UUID, now: datetime) -> bool:
    cancelled = _close_alert(
        db, alert_id, now, {"status": AlertStatus.CANCELLED.value}
    )
    if cancelled:
        logger.info(f"{LOG_MSG} cancelled alert {alert_id}")
    return cancelled


def set_notification_flags(db: Session, alert_id: UUID, **flags: bool) -> None:
    if not flags:
        return

    query = _conditional(update(Alert).where(Alert.id == alert_id).values(**flags))

    try:
        db.execute(query)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{LOG_MSG} error updating notification flags: {str(e)}")
        raise


def get_active_alerts_by_location(
    db: Session, latitude: float, longitude: float, radius_km: float, now: datetime
) -> List[Alert]:
    """
    Active alerts within a radius, ordered by severity then recency.
    A bounding box narrows the rows in SQL, the exact haversine
    distance is applied afterwards.
    """
    conditions = [
        Alert.status == AlertStatus.ACTIVE.value,
        Alert.expires_at > now,
    ]

    lat_delta = geo_math.angular_degrees(radius_km)
    conditions.append(
        Alert.latitude.between(max(-90.0, latitude - lat_delta), min(90.0, latitude + lat_delta))
    )

    # the longitude box is only meaningful away from the poles and the antimeridian
    if abs(latitude) + lat_delta < 90:
        zone = geo_math.safe_zone(latitude, longitude, radius_km)
        if zone.west >= -180 and zone.east <= 180:
            conditions.append(Alert.longitude.between(zone.west, zone.east))

    query = select(Alert).where(and_(*conditions))

    try:
        candidates = db.execute(query).scalars().all()
    except SQLAlchemyError as e:
        logger.error(f"{LOG_MSG} error getting alerts by location: {str(e)}")
        raise

    nearby = [
        alert
        for alert in candidates
        if geo_math.distance_km(latitude, longitude, alert.latitude, alert.longitude)
        <= radius_km
    ]
    return sorted(nearby, key=lambda a: (a.severity, a.triggered_at), reverse=True)


def get_overdue_alerts(db: Session, now: datetime) -> List[Alert]:
    """ACTIVE alerts whose expiry has passed but have not been swept yet"""
    query = (
        select(Alert)
        .where(
            and_(
                Alert.status == AlertStatus.ACTIVE.value,
                Alert.expires_at <= now,
            )
        )
        .order_by(Alert.expires_at.asc())
    )

    try:
        return db.execute(query).scalars().all()
    except SQLAlchemyError as e:
        logger.error(f"{LOG_MSG} error getting expired alerts: {str(e)}")
        raise


def expire_overdue_alerts(db: Session, now: datetime) -> int:
    query = _conditional(
        update(Alert)
        .where(
            and_(
                Alert.status == AlertStatus.ACTIVE.value,
                Alert.expires_at <= now,
            )
        )
        .values(status=AlertStatus.EXPIRED.value, resolved_at=now, updated_at=now)
    )

    try:
        result = db.execute(query)
        db.commit()

        logger.info(f"{LOG_MSG} expired {result.rowcount} overdue alerts")
        return result.rowcount
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{LOG_MSG} error expiring overdue alerts: {str(e)}")
        raise


def get_active_alert_for_user(
    db: Session, user_id: UUID, alert_type: str, now: datetime
) -> Optional[Alert]:
    query = (
        select(Alert)
        .where(
            and_(
                Alert.user_id == user_id,
                Alert.type == alert_type,
                Alert.status == AlertStatus.ACTIVE.value,
                Alert.expires_at > now,
            )
        )
        .order_by(Alert.triggered_at.desc())
        .limit(1)
    )

    try:
        return db.execute(query).scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.error(f"{LOG_MSG} error getting active alert for user: {str(e)}")
        raise


def get_all_alerts(
    db: Session,
    filters: Optional[AlertFilterParams] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = 0,
) -> List[Alert]:
    """Get all alerts with optional filtering, newest first"""
    query = select(Alert)

    if filters:
        conditions = []

        if filters.type:
            conditions.append(Alert.type == filters.type.value)

        if filters.status:
            conditions.append(Alert.status == filters.status.value)

        if filters.min_severity:
            conditions.append(Alert.severity >= int(filters.min_severity))

        if filters.user_id:
            conditions.append(Alert.user_id == filters.user_id)

        if filters.start_date:
            conditions.append(Alert.triggered_at >= filters.start_date)

        if filters.end_date:
            conditions.append(Alert.triggered_at <= filters.end_date)

        if conditions:
            query = query.where(and_(*conditions))

    query = query.order_by(Alert.triggered_at.desc())

    if limit:
        query = query.limit(limit).offset(offset)

    try:
        return db.execute(query).scalars().all()
    except SQLAlchemyError as e:
        logger.error(f"{LOG_MSG} error getting all alerts: {str(e)}")
        raise


def get_alert_statistics(db: Session, since: datetime) -> Dict:
    """Summary counts for alerts triggered at or after ``since``"""
    window = Alert.triggered_at >= since

    try:
        total = db.execute(select(func.count(Alert.id)).where(window)).scalar() or 0

        by_type = db.execute(
            select(Alert.type, func.count(Alert.id)).where(window).group_by(Alert.type)
        ).all()

        by_severity = db.execute(
            select(Alert.severity, func.count(Alert.id))
            .where(window)
            .group_by(Alert.severity)
        ).all()

        avg_response = db.execute(
            select(func.avg(Alert.response_time_s)).where(
                and_(window, Alert.response_time_s.is_not(None))
            )
        ).scalar()

        resolved = (
            db.execute(
                select(func.count(Alert.id)).where(
                    and_(window, Alert.status == AlertStatus.RESOLVED.value)
                )
            ).scalar()
            or 0
        )
    except SQLAlchemyError as e:
        logger.error(f"{LOG_MSG} error getting alert statistics: {str(e)}")
        raise

    return {
        "total_alerts": total,
        "by_type": {alert_type: count for alert_type, count in by_type},
        "by_severity": {severity: count for severity, count in by_severity},
        "avg_response_time_s": float(avg_response or 0.0),
        "resolved_alerts": resolved,
    }
