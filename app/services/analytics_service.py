import logging

from datetime import date, datetime
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.core.exceptions import NotFoundError, ValidationError
from app.crud import analytics as analytics_crud
from app.models.analytics import DailyAnalytics, UserStatistics
from app.schemas.analytics import (
    CatchReportEvent,
    DailyAnalyticsOut,
    DailyAnalyticsRange,
)
from app.utils.clock import to_naive_utc, utc_now

logger = logging.getLogger(__name__)
LOG_MSG = "Service:"


class AnalyticsService:
    """Community counters; a missing day or user row is created, never an error"""

    def record_catch(
        self, db: Session, event: CatchReportEvent, now: Optional[datetime] = None
    ) -> DailyAnalytics:
        now = to_naive_utc(now) if now else utc_now()
        reported_at = to_naive_utc(event.reported_at) or now
        day = event.day or reported_at.date()
        weight = event.weight or 0.0

        analytics_crud.increment_daily(db, day, weight, now)

        if event.user_id is not None:
            analytics_crud.increment_user_statistics(
                db, event.user_id, now, catch_reports=1, total_catch=weight
            )

        logger.info(f"{LOG_MSG} recorded catch of {weight}kg for {day}")
        return analytics_crud.get_daily(db, day)

    def record_emergency_activation(
        self, db: Session, user_id: UUID, now: Optional[datetime] = None
    ) -> None:
        now = to_naive_utc(now) if now else utc_now()
        analytics_crud.increment_user_statistics(
            db, user_id, now, emergency_activations=1
        )

    def get_daily(self, db: Session, day: date) -> DailyAnalytics:
        row = analytics_crud.get_daily(db, day)
        if not row:
            raise NotFoundError(f"no analytics recorded for {day}")
        return row

    def get_range(self, db: Session, start: date, end: date) -> DailyAnalyticsRange:
        if end < start:
            raise ValidationError("end date must not be before start date")

        rows = analytics_crud.get_daily_range(db, start, end)
        return DailyAnalyticsRange(
            start=start,
            end=end,
            days=[DailyAnalyticsOut.model_validate(row) for row in rows],
            total_catches=sum(row.total_catches for row in rows),
            total_weight=round(sum(row.total_weight for row in rows), 3),
        )

    def get_user_statistics(self, db: Session, user_id: UUID) -> UserStatistics:
        row = analytics_crud.get_user_statistics(db, user_id)
        if not row:
            raise NotFoundError(f"no statistics recorded for user {user_id}")
        return row


analytics_service = AnalyticsService()
