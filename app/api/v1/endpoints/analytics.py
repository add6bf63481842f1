import logging

from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from uuid import UUID

from app.core.exceptions import DomainError
from app.db.connection import get_db
from app.schemas.analytics import (
    CatchReportEvent,
    DailyAnalyticsOut,
    DailyAnalyticsRange,
    UserStatisticsOut,
)
from app.services.analytics_service import analytics_service

router = APIRouter()
logger = logging.getLogger(__name__)
LOG_MSG = "Endpoint:"


@router.post(
    "/catch", response_model=DailyAnalyticsOut, status_code=status.HTTP_201_CREATED
)
def report_catch(event: CatchReportEvent, db: Session = Depends(get_db)):
    """Add a catch report to the day's community totals"""
    try:
        return analytics_service.record_catch(db, event)
    except DomainError:
        raise
    except Exception as e:
        logger.error(f"{LOG_MSG} error recording catch report: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record catch report",
        )


@router.get("/daily", response_model=DailyAnalyticsRange)
def get_daily_range(
    start: date = Query(...), end: date = Query(...), db: Session = Depends(get_db)
):
    return analytics_service.get_range(db, start, end)


@router.get("/daily/{day}", response_model=DailyAnalyticsOut)
def get_daily(day: date, db: Session = Depends(get_db)):
    return analytics_service.get_daily(db, day)


@router.get("/users/{user_id}", response_model=UserStatisticsOut)
def get_user_statistics(user_id: UUID, db: Session = Depends(get_db)):
    return analytics_service.get_user_statistics(db, user_id)
