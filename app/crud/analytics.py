import logging

from datetime import date, datetime
from sqlalchemy import and_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from app.models.analytics import DailyAnalytics, UserStatistics

logger = logging.getLogger(__name__)
LOG_MSG = "CRUD:"

UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _upsert(db: Session, model, key: str, key_value, increments: dict, now: datetime):
    """
    Add ``increments`` to the row keyed by ``key_value``, creating it with
    those values when absent. One statement on PostgreSQL and SQLite;
    elsewhere the row is locked and re-read before writing.
    """
    dialect = db.get_bind().dialect.name
    insert = UPSERT_DIALECTS.get(dialect)

    if insert is not None:
        table = model.__table__
        statement = insert(table).values(
            **{key: key_value}, **increments, last_updated=now
        )
        statement = statement.on_conflict_do_update(
            index_elements=[table.c[key]],
            set_={
                **{
                    column: table.c[column] + statement.excluded[column]
                    for column in increments
                },
                "last_updated": now,
            },
        )
        db.execute(statement)
        return

    row = db.execute(
        select(model).where(getattr(model, key) == key_value).with_for_update()
    ).scalar_one_or_none()

    if row is None:
        db.add(model(**{key: key_value}, **increments, last_updated=now))
    else:
        for column, delta in increments.items():
            setattr(row, column, getattr(row, column) + delta)
        row.last_updated = now


def increment_daily(db: Session, day: date, weight: float, now: datetime) -> None:
    try:
        _upsert(
            db,
            DailyAnalytics,
            "day",
            day,
            {"total_catches": 1, "total_weight": weight},
            now,
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{LOG_MSG} error updating daily analytics for {day}: {str(e)}")
        raise


def increment_user_statistics(
    db: Session, user_id: UUID, now: datetime, **increments
) -> None:
    try:
        _upsert(db, UserStatistics, "user_id", user_id, increments, now)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{LOG_MSG} error updating statistics for user {user_id}: {str(e)}")
        raise


def get_daily(db: Session, day: date) -> Optional[DailyAnalytics]:
    query = select(DailyAnalytics).where(DailyAnalytics.day == day)

    try:
        return db.execute(query).scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.error(f"{LOG_MSG} error getting daily analytics: {str(e)}")
        raise


def get_daily_range(db: Session, start: date, end: date) -> List[DailyAnalytics]:
    query = (
        select(DailyAnalytics)
        .where(and_(DailyAnalytics.day >= start, DailyAnalytics.day <= end))
        .order_by(DailyAnalytics.day.asc())
    )

    try:
        return db.execute(query).scalars().all()
    except SQLAlchemyError as e:
        logger.error(f"{LOG_MSG} error getting daily analytics range: {str(e)}")
        raise


def get_user_statistics(db: Session, user_id: UUID) -> Optional[UserStatistics]:
    query = select(UserStatistics).where(UserStatistics.user_id == user_id)

    try:
        return db.execute(query).scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.error(f"{LOG_MSG} error getting user statistics: {str(e)}")
        raise
