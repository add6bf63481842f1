import logging

from datetime import datetime
from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from app.models.weather_snapshots import WeatherSnapshot
from app.utils import geo_math

logger = logging.getLogger(__name__)
LOG_MSG = "CRUD:"


def _location_conditions(latitude: float, longitude: float, radius_km: float) -> list:
    lat_delta = geo_math.angular_degrees(radius_km)
    conditions = [
        WeatherSnapshot.latitude.between(
            max(-90.0, latitude - lat_delta), min(90.0, latitude + lat_delta)
        )
    ]
    if abs(latitude) + lat_delta < 90:
        zone = geo_math.safe_zone(latitude, longitude, radius_km)
        if zone.west >= -180 and zone.east <= 180:
            conditions.append(WeatherSnapshot.longitude.between(zone.west, zone.east))
    return conditions


def _within(
    snapshots: List[WeatherSnapshot], latitude: float, longitude: float, radius_km: float
) -> List[Tuple[WeatherSnapshot, float]]:
    matches = []
    for snapshot in snapshots:
        distance = geo_math.distance_km(
            latitude, longitude, snapshot.latitude, snapshot.longitude
        )
        if distance <= radius_km:
            matches.append((snapshot, distance))
    return matches


def create_snapshot(
    db: Session, snapshot_data: dict, supersede_radius_km: float
) -> WeatherSnapshot:
    """
    Insert a snapshot as the current one for its location. Older current
    snapshots within ``supersede_radius_km`` stop being current in the
    same transaction.
    """
    latitude = snapshot_data["latitude"]
    longitude = snapshot_data["longitude"]

    try:
        candidates = (
            db.execute(
                select(WeatherSnapshot).where(
                    and_(
                        WeatherSnapshot.is_current.is_(True),
                        WeatherSnapshot.is_forecast.is_(False),
                        *_location_conditions(latitude, longitude, supersede_radius_km),
                    )
                )
            )
            .scalars()
            .all()
        )
        superseded = [
            snapshot.id
            for snapshot, _ in _within(candidates, latitude, longitude, supersede_radius_km)
        ]
        if superseded and not snapshot_data.get("is_forecast"):
            db.execute(
                update(WeatherSnapshot)
                .where(WeatherSnapshot.id.in_(superseded))
                .values(is_current=False)
                .execution_options(synchronize_session=False)
            )

        snapshot = WeatherSnapshot(**snapshot_data)
        db.add(snapshot)
        db.commit()
        db.refresh(snapshot)

        logger.info(
            f"{LOG_MSG} recorded weather snapshot {snapshot.id} at ({latitude}, {longitude})"
        )
        return snapshot
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{LOG_MSG} error recording weather snapshot: {str(e)}")
        raise


def get_snapshot_by_id(db: Session, snapshot_id: UUID) -> Optional[WeatherSnapshot]:
    query = select(WeatherSnapshot).where(WeatherSnapshot.id == snapshot_id)

    try:
        return db.execute(query).scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.error(f"{LOG_MSG} error getting weather snapshot by id: {str(e)}")
        raise


def update_snapshot(
    db: Session, snapshot: WeatherSnapshot, values: dict
) -> WeatherSnapshot:
    for field, value in values.items():
        setattr(snapshot, field, value)

    try:
        db.commit()
        db.refresh(snapshot)

        logger.info(f"{LOG_MSG} updated weather snapshot {snapshot.id}")
        return snapshot
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{LOG_MSG} error updating weather snapshot: {str(e)}")
        raise


def get_current_snapshots_near(
    db: Session, latitude: float, longitude: float, radius_km: float, now: datetime
) -> List[Tuple[WeatherSnapshot, float]]:
    """Current, unexpired snapshots within range, most recent first"""
    query = select(WeatherSnapshot).where(
        and_(
            WeatherSnapshot.is_current.is_(True),
            WeatherSnapshot.expires_at > now,
            *_location_conditions(latitude, longitude, radius_km),
        )
    )

    try:
        candidates = db.execute(query).scalars().all()
    except SQLAlchemyError as e:
        logger.error(f"{LOG_MSG} error getting weather by location: {str(e)}")
        raise

    matches = _within(candidates, latitude, longitude, radius_km)
    # newest first, nearest wins among equally recent
    return sorted(matches, key=lambda pair: (-pair[0].recorded_at.timestamp(), pair[1]))


def delete_expired_snapshots(db: Session, now: datetime) -> int:
    query = delete(WeatherSnapshot).where(WeatherSnapshot.expires_at <= now)

    try:
        result = db.execute(query)
        db.commit()

        logger.info(f"{LOG_MSG} deleted {result.rowcount} expired weather snapshots")
        return result.rowcount
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{LOG_MSG} error deleting expired weather snapshots: {str(e)}")
        raise


def get_weather_statistics(db: Session, since: datetime) -> Dict:
    window = and_(
        WeatherSnapshot.recorded_at >= since, WeatherSnapshot.is_current.is_(True)
    )

    try:
        totals = db.execute(
            select(
                func.count(WeatherSnapshot.id),
                func.avg(WeatherSnapshot.temperature_c),
                func.avg(WeatherSnapshot.wind_speed_kmh),
                func.avg(WeatherSnapshot.wave_height_m),
                func.avg(WeatherSnapshot.fishing_score),
            ).where(window)
        ).one()

        risk_rows = db.execute(
            select(WeatherSnapshot.risk_level, func.count(WeatherSnapshot.id))
            .where(window)
            .group_by(WeatherSnapshot.risk_level)
        ).all()
    except SQLAlchemyError as e:
        logger.error(f"{LOG_MSG} error getting weather statistics: {str(e)}")
        raise

    total, avg_temp, avg_wind, avg_wave, avg_score = totals
    return {
        "total_records": total or 0,
        "avg_temperature_c": float(avg_temp or 0.0),
        "avg_wind_speed_kmh": float(avg_wind or 0.0),
        "avg_wave_height_m": float(avg_wave or 0.0),
        "avg_fishing_score": float(avg_score or 0.0),
        "risk_distribution": {level: count for level, count in risk_rows},
    }
