import logging

from datetime import datetime, timedelta
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from app.core.config import settings
from app.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    StateError,
    ValidationError,
)
from app.core.levels import Severity
from app.crud import alert as alert_crud
from app.models.alerts import Alert, AlertStatus, AlertType
from app.models.users import UserRole
from app.schemas.alert import (
    AlertFilterParams,
    AlertStatistics,
    CreateAlert,
    SweepResult,
)
from app.services.audit_trail_service import audit_trail_service
from app.utils.clock import to_naive_utc, utc_now

logger = logging.getLogger(__name__)
LOG_MSG = "Service:"

CANCEL_ROLES = (UserRole.ADMIN, UserRole.SUPER_ADMIN)


def _now(now: Optional[datetime]) -> datetime:
    return to_naive_utc(now) if now else utc_now()


class AlertService:
    """
    Alert lifecycle: ACTIVE -> RESOLVED | CANCELLED | EXPIRED.

    All terminal states are final. Expiry is applied lazily on read and in
    bulk by the periodic sweep; nothing ever moves an alert back to ACTIVE.
    """

    @staticmethod
    def _require_active(alert: Alert) -> None:
        if alert.status != AlertStatus.ACTIVE.value:
            raise StateError(f"alert {alert.id} is {alert.status}, not ACTIVE")

    def create_alert(
        self, db: Session, payload: CreateAlert, now: Optional[datetime] = None
    ) -> Alert:
        now = _now(now)
        expires_at = to_naive_utc(payload.expires_at)
        triggered_at = to_naive_utc(payload.triggered_at) or now

        if expires_at <= now:
            raise ValidationError("expires_at must be in the future")
        if triggered_at > now:
            raise ValidationError("triggered_at cannot be in the future")

        payload = payload.model_copy(update={"expires_at": expires_at})
        return alert_crud.create_alert(db, payload, triggered_at)

    def get_alert(
        self, db: Session, alert_id: UUID, now: Optional[datetime] = None
    ) -> Alert:
        """Load an alert, expiring it first when its lifetime has passed"""
        alert_crud.expire_if_overdue(db, alert_id, _now(now))

        alert = alert_crud.get_alert_by_id(db, alert_id)
        if not alert:
            raise NotFoundError(f"alert {alert_id} not found")
        return alert

    def record_view(
        self, db: Session, alert_id: UUID, now: Optional[datetime] = None
    ) -> Alert:
        alert = self.get_alert(db, alert_id, now)
        alert_crud.increment_view_count(db, alert.id)
        db.refresh(alert)
        return alert

    def acknowledge(
        self,
        db: Session,
        alert_id: UUID,
        user_id: UUID,
        user_name: str,
        role: str = "USER",
        now: Optional[datetime] = None,
    ) -> Alert:
        """Idempotent per user; a repeated acknowledgment changes nothing"""
        now = _now(now)
        alert = self.get_alert(db, alert_id, now)
        self._require_active(alert)

        alert_crud.add_acknowledgment(db, alert, user_id, user_name, role, now)
        return self.get_alert(db, alert_id, now)

    def provide_assistance(
        self,
        db: Session,
        alert_id: UUID,
        provider_id: UUID,
        provider_name: str,
        assistance_type: str,
        notes: Optional[str] = "",
        now: Optional[datetime] = None,
    ) -> Alert:
        now = _now(now)
        alert = self.get_alert(db, alert_id, now)
        self._require_active(alert)

        alert_crud.add_assistance(
            db, alert_id, provider_id, provider_name, assistance_type, notes, now
        )
        return self.get_alert(db, alert_id, now)

    def _closed_or_raise(
        self, db: Session, alert_id: UUID, closed: bool, now: datetime
    ) -> Alert:
        # a concurrent writer may have closed the alert between read and write
        alert = self.get_alert(db, alert_id, now)
        if not closed:
            raise StateError(f"alert {alert_id} is {alert.status}, not ACTIVE")
        return alert

    def resolve(
        self,
        db: Session,
        alert_id: UUID,
        resolver_id: UUID,
        resolver_name: str,
        notes: Optional[str] = "",
        now: Optional[datetime] = None,
    ) -> Alert:
        now = _now(now)
        alert = self.get_alert(db, alert_id, now)
        self._require_active(alert)

        resolved = alert_crud.resolve_alert(
            db, alert_id, resolver_id, resolver_name, notes, now
        )
        alert = self._closed_or_raise(db, alert_id, resolved, now)

        audit_trail_service.record(
            db,
            action="RESOLVE_ALERT",
            resource_type="alert",
            resource_id=alert_id,
            actor_id=resolver_id,
            description=f"{resolver_name} resolved {alert.type} alert",
        )
        return alert

    def cancel(
        self,
        db: Session,
        alert_id: UUID,
        actor_id: UUID,
        actor_role: int = UserRole.USER,
        now: Optional[datetime] = None,
    ) -> Alert:
        """Only the owner or an administrator may cancel"""
        now = _now(now)
        alert = self.get_alert(db, alert_id, now)

        if alert.user_id != actor_id and actor_role not in CANCEL_ROLES:
            raise PermissionDeniedError("only the owner or an admin can cancel an alert")

        self._require_active(alert)

        cancelled = alert_crud.cancel_alert(db, alert_id, now)
        alert = self._closed_or_raise(db, alert_id, cancelled, now)

        audit_trail_service.record(
            db,
            action="CANCEL_ALERT",
            resource_type="alert",
            resource_id=alert_id,
            actor_id=actor_id,
            actor_role=int(actor_role),
            description=f"cancelled {alert.type} alert",
        )
        return alert

    def confirm_hazard(
        self,
        db: Session,
        alert_id: UUID,
        user_id: UUID,
        user_name: str,
        now: Optional[datetime] = None,
    ) -> Alert:
        now = _now(now)
        alert = self.get_alert(db, alert_id, now)

        if alert.type != AlertType.HAZARD.value:
            raise ConflictError("only hazard alerts can be confirmed")

        self._require_active(alert)

        confirmed = alert_crud.add_hazard_confirmation(
            db, alert_id, user_id, user_name, settings.HAZARD_CONFIRMATION_BOOST, now
        )

        alert = self.get_alert(db, alert_id, now)
        if not confirmed:
            self._require_active(alert)
        return alert

    def find_active_near(
        self,
        db: Session,
        latitude: float,
        longitude: float,
        max_distance_m: float = settings.ALERT_NEARBY_SEARCH_METERS,
        now: Optional[datetime] = None,
    ) -> List[Alert]:
        if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
            raise ValidationError("coordinates out of range")
        if max_distance_m < 0:
            raise ValidationError("max distance cannot be negative")

        return alert_crud.get_active_alerts_by_location(
            db, latitude, longitude, max_distance_m / 1000.0, _now(now)
        )

    def find_expired(self, db: Session, now: Optional[datetime] = None) -> List[Alert]:
        return alert_crud.get_overdue_alerts(db, _now(now))

    def cleanup_expired(self, db: Session, now: Optional[datetime] = None) -> SweepResult:
        now = _now(now)
        expired = alert_crud.expire_overdue_alerts(db, now)
        return SweepResult(expired_count=expired, swept_at=now)

    def list_alerts(
        self,
        db: Session,
        filters: Optional[AlertFilterParams] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = 0,
    ) -> List[Alert]:
        return alert_crud.get_all_alerts(db, filters, limit, offset)

    def stats(
        self,
        db: Session,
        window_days: int = settings.ALERT_STATS_WINDOW_DAYS,
        now: Optional[datetime] = None,
    ) -> AlertStatistics:
        if window_days < 1:
            raise ValidationError("window must be at least one day")

        since = _now(now) - timedelta(days=window_days)
        raw = alert_crud.get_alert_statistics(db, since)

        total = raw["total_alerts"]
        resolution_rate = raw["resolved_alerts"] / total * 100 if total else 0.0

        return AlertStatistics(
            window_days=window_days,
            total_alerts=total,
            by_type=raw["by_type"],
            by_severity={
                Severity(rank).name: count for rank, count in raw["by_severity"].items()
            },
            avg_response_time_s=round(raw["avg_response_time_s"], 2),
            resolution_rate=round(resolution_rate, 2),
        )


alert_service = AlertService()
