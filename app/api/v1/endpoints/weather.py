import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from uuid import UUID

from app.core.config import settings
from app.core.exceptions import DomainError
from app.db.connection import get_db
from app.schemas.weather import (
    ConditionInputs,
    CreateWeatherSnapshot,
    SafetyAssessment,
    UpdateWeatherSnapshot,
    WeatherSnapshotOut,
    WeatherStatistics,
)
from app.services.weather_service import weather_service

router = APIRouter()
logger = logging.getLogger(__name__)
LOG_MSG = "Endpoint:"


@router.post(
    "/", response_model=WeatherSnapshotOut, status_code=status.HTTP_201_CREATED
)
def record_weather(payload: CreateWeatherSnapshot, db: Session = Depends(get_db)):
    """
    Store an observation as the current weather for its location.
    Risk and fishing scores are derived from the observation before saving.
    """
    try:
        return weather_service.record_snapshot(db, payload)
    except DomainError:
        raise
    except Exception as e:
        logger.error(f"{LOG_MSG} error recording weather: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record weather",
        )


@router.post("/assess", response_model=SafetyAssessment)
def assess_conditions(payload: ConditionInputs):
    return weather_service.assess(payload)


@router.get("/current", response_model=WeatherSnapshotOut)
def get_current_weather(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    max_distance_m: float = Query(settings.WEATHER_SEARCH_METERS, ge=0),
    db: Session = Depends(get_db),
):
    try:
        snapshot = weather_service.find_current_weather(db, lat, lng, max_distance_m)
    except DomainError:
        raise
    except Exception as e:
        logger.error(f"{LOG_MSG} error getting current weather: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get current weather",
        )

    if not snapshot:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="no current weather near this location",
        )
    return snapshot


@router.get("/stats", response_model=WeatherStatistics)
def get_weather_statistics(
    days: int = Query(7, ge=1, le=365), db: Session = Depends(get_db)
):
    try:
        return weather_service.weather_stats(db, days)
    except DomainError:
        raise
    except Exception as e:
        logger.error(f"{LOG_MSG} error getting weather statistics: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get weather statistics",
        )


@router.get("/{snapshot_id}", response_model=WeatherSnapshotOut)
def get_weather_snapshot(snapshot_id: UUID, db: Session = Depends(get_db)):
    return weather_service.get_snapshot(db, snapshot_id)


@router.patch("/{snapshot_id}", response_model=WeatherSnapshotOut)
def update_weather(
    snapshot_id: UUID, payload: UpdateWeatherSnapshot, db: Session = Depends(get_db)
):
    try:
        return weather_service.update_snapshot(db, snapshot_id, payload)
    except DomainError:
        raise
    except Exception as e:
        logger.error(f"{LOG_MSG} error updating weather: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update weather",
        )
