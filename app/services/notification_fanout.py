"""Emergency notification fan-out.

A distress alert notifies the owner's emergency contacts, online users
nearby and the authority channel. The three branches run concurrently and
fail independently: a message that cannot be queued is logged and counted,
it never aborts the other branches or rolls back the alert.
"""

import asyncio
import logging

from datetime import datetime, timedelta
from sqlalchemy.orm import Session
from typing import Callable, List, Optional, Tuple
from uuid import UUID

from app.core.config import settings
from app.core.exceptions import NotFoundError, TransientSourceError, ValidationError
from app.core.levels import Severity
from app.crud import alert as alert_crud
from app.crud import user as user_crud
from app.db.connection import SessionLocal
from app.models.alerts import Alert, AlertPriority, AlertSource, AlertType
from app.models.outbound_messages import MessageChannel, MessagePriority
from app.models.users import User
from app.schemas.alert import CreateAlert
from app.schemas.notification import (
    BranchReport,
    FanoutReport,
    LocationUpdateResult,
    OutboundMessageTask,
)
from app.services.alert_service import alert_service
from app.services.analytics_service import analytics_service
from app.services.audit_trail_service import audit_trail_service
from app.services.message_transport import (
    MessageTransport,
    QueuedMessageTransport,
    render_message,
)
from app.utils import geo_math
from app.utils.clock import to_naive_utc, utc_now

logger = logging.getLogger(__name__)
LOG_MSG = "Service:"

FANOUT_TYPES = (AlertType.DISTRESS.value, AlertType.OFFSHORE.value)


class NotificationFanout:
    def __init__(
        self,
        transport: MessageTransport,
        nearby_radius_km: float = settings.NEARBY_USER_RADIUS_KM,
        authority_channel: str = settings.AUTHORITY_CHANNEL,
        max_attempts: int = settings.NOTIFY_MAX_ATTEMPTS,
        retry_base_delay: float = settings.NOTIFY_RETRY_BASE_DELAY,
        retry_max_delay: float = settings.NOTIFY_RETRY_MAX_DELAY,
    ):
        if max_attempts < 1:
            raise ValidationError("max_attempts must be at least 1")

        self.transport = transport
        self.nearby_radius_km = nearby_radius_km
        self.authority_channel = authority_channel
        self.max_attempts = max_attempts
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay

    async def _deliver(self, task: OutboundMessageTask) -> bool:
        """Enqueue one message, retrying transient failures with exponential backoff"""
        delay = self.retry_base_delay

        for attempt in range(1, self.max_attempts + 1):
            try:
                await self.transport.enqueue(task)
                return True
            except TransientSourceError as e:
                if attempt == self.max_attempts:
                    logger.error(
                        f"{LOG_MSG} giving up on {task.kind} message to {task.recipient} "
                        f"after {attempt} attempts: {e.message}"
                    )
                    return False

                logger.warning(
                    f"{LOG_MSG} enqueue to {task.recipient} failed "
                    f"(attempt {attempt}), retrying in {delay}s: {e.message}"
                )
                await asyncio.sleep(delay)
                delay = min(self.retry_max_delay, delay * 2)
            except Exception as e:
                logger.error(
                    f"{LOG_MSG} failed to enqueue {task.kind} message to {task.recipient}: {str(e)}"
                )
                return False

        return False

    async def _send_branch(self, tasks: List[OutboundMessageTask]) -> BranchReport:
        report = BranchReport(attempted=len(tasks))
        if not tasks:
            return report

        results = await asyncio.gather(*(self._deliver(task) for task in tasks))

        for task, delivered in zip(tasks, results):
            if delivered:
                report.enqueued += 1
            else:
                report.failed += 1
                report.failed_recipients.append(task.recipient)

        return report

    @staticmethod
    def _template_vars(alert: Alert, user: Optional[User]) -> dict:
        detail = alert.distress_detail or {}
        return {
            "alert_id": str(alert.id),
            "user_name": alert.user_name,
            "boat_name": user.boat_name if user else None,
            "latitude": alert.latitude,
            "longitude": alert.longitude,
            "message": detail.get("message") or alert.description,
            "description": alert.description,
            "triggered_at": alert.triggered_at.strftime("%Y-%m-%d %H:%M"),
        }

    def _contact_tasks(self, db: Session, alert: Alert, template_vars: dict):
        kind = (
            "EMERGENCY_CONTACT"
            if alert.type == AlertType.DISTRESS.value
            else "OFFSHORE_CONTACT"
        )
        priority = (
            MessagePriority.HIGH
            if alert.type == AlertType.DISTRESS.value
            else MessagePriority.NORMAL
        )
        body = render_message(kind, **template_vars)

        return [
            OutboundMessageTask(
                recipient=contact.phone,
                channel=MessageChannel.SMS,
                body=body,
                priority=priority,
                kind=kind,
                alert_id=alert.id,
                payload={"contact_name": contact.name},
            )
            for contact in user_crud.get_emergency_contacts(db, alert.user_id)
        ]

    def _nearby_tasks(self, db: Session, alert: Alert, template_vars: dict):
        nearby = user_crud.get_online_users_near(
            db,
            alert.latitude,
            alert.longitude,
            self.nearby_radius_km,
            exclude_user_id=alert.user_id,
        )

        tasks = []
        for user, distance in nearby:
            distance_km = round(distance, 1)
            tasks.append(
                OutboundMessageTask(
                    recipient=user.phone or str(user.id),
                    channel=MessageChannel.SMS if user.phone else MessageChannel.PUSH,
                    body=render_message(
                        "NEARBY_DISTRESS", distance_km=distance_km, **template_vars
                    ),
                    priority=MessagePriority.HIGH,
                    kind="NEARBY_DISTRESS",
                    alert_id=alert.id,
                    payload={"user_id": str(user.id), "distance_km": distance_km},
                )
            )
        return tasks

    def _authority_tasks(self, alert: Alert, template_vars: dict):
        return [
            OutboundMessageTask(
                recipient=self.authority_channel,
                channel=MessageChannel.SMS,
                body=render_message("AUTHORITY", **template_vars),
                priority=MessagePriority.CRITICAL,
                kind="AUTHORITY",
                alert_id=alert.id,
                payload={"severity": Severity(alert.severity).name},
            )
        ]

    async def _run_branch(
        self, db: Session, name: str, alert: Alert, build: Callable[[], List[OutboundMessageTask]]
    ) -> Tuple[BranchReport, List[OutboundMessageTask]]:
        """Resolve one branch's recipients and send to them"""
        try:
            tasks = build()
        except Exception as e:
            db.rollback()
            logger.error(
                f"{LOG_MSG} could not resolve {name} recipients for alert {alert.id}: {str(e)}"
            )
            raise

        return await self._send_branch(tasks), tasks

    async def dispatch(self, db: Session, alert: Alert) -> FanoutReport:
        """Notify recipients for a freshly created alert"""
        report = FanoutReport(alert_id=alert.id)

        if alert.type not in FANOUT_TYPES:
            return report

        is_distress = alert.type == AlertType.DISTRESS.value

        try:
            user = user_crud.get_user_by_id(db, alert.user_id)
        except Exception as e:
            db.rollback()
            logger.error(f"{LOG_MSG} could not load owner of alert {alert.id}: {str(e)}")
            report.errors.append(f"owner: {str(e)}")
            user = None
        template_vars = self._template_vars(alert, user)

        # each branch looks up its own recipients so a failed lookup only loses that branch
        builders = [("contacts", lambda: self._contact_tasks(db, alert, template_vars))]
        if is_distress:
            builders.append(
                ("nearby_users", lambda: self._nearby_tasks(db, alert, template_vars))
            )
            builders.append(("authorities", lambda: self._authority_tasks(alert, template_vars)))

        branches = await asyncio.gather(
            *(self._run_branch(db, name, alert, build) for name, build in builders),
            return_exceptions=True,
        )

        person_tasks = []
        for (name, _), branch in zip(builders, branches):
            if isinstance(branch, BaseException):
                logger.error(f"{LOG_MSG} {name} branch failed for alert {alert.id}: {str(branch)}")
                report.errors.append(f"{name}: {str(branch)}")
                continue

            branch_report, tasks = branch
            setattr(report, name, branch_report)
            if name != "authorities":
                person_tasks.extend(tasks)

        logger.info(
            f"{LOG_MSG} fan-out for alert {alert.id}: {report.total_enqueued} queued, "
            f"{report.contacts.failed + report.nearby_users.failed + report.authorities.failed} failed"
        )

        self._record_outcome(db, alert, report, person_tasks)
        return report

    def _record_outcome(
        self,
        db: Session,
        alert: Alert,
        report: FanoutReport,
        person_tasks: List[OutboundMessageTask],
    ) -> None:
        alert_id = alert.id
        user_id = alert.user_id
        alert_type = alert.type

        channels = {task.channel for task in person_tasks}
        delivered = report.contacts.enqueued + report.nearby_users.enqueued > 0
        flags = {}
        if delivered and MessageChannel.SMS in channels:
            flags["sms_sent"] = True
        if delivered and MessageChannel.PUSH in channels:
            flags["push_sent"] = True
        if report.authorities.enqueued:
            flags["authorities_notified"] = True
        if report.nearby_users.enqueued:
            flags["community_notified"] = True

        steps = [
            ("notification flags", lambda: alert_crud.set_notification_flags(db, alert_id, **flags)),
            (
                "audit record",
                lambda: audit_trail_service.record(
                    db,
                    action=f"{alert_type}_FANOUT",
                    resource_type="alert",
                    resource_id=alert_id,
                    actor_id=user_id,
                    description=f"queued {report.total_enqueued} notifications",
                ),
            ),
        ]
        if alert_type == AlertType.DISTRESS.value:
            steps.append(
                (
                    "emergency activation count",
                    lambda: analytics_service.record_emergency_activation(db, user_id),
                )
            )

        for name, step in steps:
            try:
                step()
            except Exception as e:
                db.rollback()
                logger.error(f"{LOG_MSG} failed to write {name} for alert {alert_id}: {str(e)}")
                report.errors.append(f"{name}: {str(e)}")

    async def raise_alert(
        self, db: Session, payload: CreateAlert, now: Optional[datetime] = None
    ) -> Tuple[Alert, FanoutReport]:
        """
        Create an alert and fan it out, unless the user already owns an
        active one of the same type; that alert is returned instead and
        nothing is sent.
        """
        now = to_naive_utc(now) if now else utc_now()

        existing = alert_crud.get_active_alert_for_user(
            db, payload.user_id, payload.type.value, now
        )
        if existing:
            logger.info(
                f"{LOG_MSG} suppressing duplicate {payload.type.value} alert for user {payload.user_id}"
            )
            return existing, FanoutReport(alert_id=existing.id, suppressed=True)

        alert = alert_service.create_alert(db, payload, now)
        report = await self.dispatch(db, alert)
        db.refresh(alert)
        return alert, report

    async def handle_location_update(
        self,
        db: Session,
        user_id: UUID,
        latitude: float,
        longitude: float,
        now: Optional[datetime] = None,
    ) -> LocationUpdateResult:
        """Store a position report and raise an offshore alert past the safe distance"""
        if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
            raise ValidationError("coordinates out of range")

        now = to_naive_utc(now) if now else utc_now()

        user = user_crud.get_user_by_id(db, user_id)
        if not user:
            raise NotFoundError(f"user {user_id} not found")

        user_crud.update_location(db, user_id, latitude, longitude, now)
        db.refresh(user)

        result = LocationUpdateResult(user_id=user_id)
        if user.home_port_latitude is None or user.home_port_longitude is None:
            return result

        distance = geo_math.distance_km(
            latitude, longitude, user.home_port_latitude, user.home_port_longitude
        )
        limit_km = user.max_offshore_km or settings.DEFAULT_MAX_OFFSHORE_KM
        result.distance_from_port_km = round(distance, 2)

        if distance <= limit_km:
            return result

        result.offshore = True
        payload = CreateAlert(
            type=AlertType.OFFSHORE,
            severity=Severity.HIGH,
            priority=AlertPriority.HIGH,
            source=AlertSource.SYSTEM,
            title="Offshore limit exceeded",
            description=(
                f"{user.full_name} is {distance:.1f} km from home port "
                f"(limit {limit_km:g} km)"
            ),
            latitude=latitude,
            longitude=longitude,
            radius_km=limit_km,
            user_id=user_id,
            user_name=user.full_name,
            expires_at=now + timedelta(hours=settings.OFFSHORE_ALERT_TTL_HOURS),
        )

        alert, report = await self.raise_alert(db, payload, now)
        result.alert_id = alert.id
        result.fanout = report
        return result


notification_fanout = NotificationFanout(QueuedMessageTransport(SessionLocal))
