import logging

from datetime import datetime
from sqlalchemy import and_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional, Tuple
from uuid import UUID

from app.models.users import EmergencyContact, User
from app.schemas.user import CreateEmergencyContact, CreateUser
from app.utils import geo_math

logger = logging.getLogger(__name__)
LOG_MSG = "CRUD:"


def create_user(db: Session, payload: CreateUser) -> User:
    user = User(**payload.model_dump(exclude={"emergency_contacts", "role"}))
    user.role = int(payload.role)
    user.emergency_contacts = [
        EmergencyContact(**contact.model_dump())
        for contact in payload.emergency_contacts
    ]

    try:
        db.add(user)
        db.commit()
        db.refresh(user)

        return user
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{LOG_MSG} error creating new user: {str(e)}")
        raise


def get_user_by_id(db: Session, user_id: UUID) -> Optional[User]:
    query = select(User).where(User.id == user_id)

    try:
        return db.execute(query).scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.error(f"{LOG_MSG} error getting user by id: {str(e)}")
        raise


def add_emergency_contact(
    db: Session, user_id: UUID, payload: CreateEmergencyContact
) -> EmergencyContact:
    contact = EmergencyContact(user_id=user_id, **payload.model_dump())

    try:
        db.add(contact)
        db.commit()
        db.refresh(contact)

        return contact
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{LOG_MSG} error adding emergency contact: {str(e)}")
        raise


def get_emergency_contacts(db: Session, user_id: UUID) -> List[EmergencyContact]:
    query = (
        select(EmergencyContact)
        .where(EmergencyContact.user_id == user_id)
        .order_by(EmergencyContact.created_at.asc())
    )

    try:
        return db.execute(query).scalars().all()
    except SQLAlchemyError as e:
        logger.error(f"{LOG_MSG} error getting emergency contacts: {str(e)}")
        raise


def get_online_users_near(
    db: Session,
    latitude: float,
    longitude: float,
    radius_km: float,
    exclude_user_id: Optional[UUID] = None,
) -> List[Tuple[User, float]]:
    """
    Online, active users with a known position within ``radius_km``,
    paired with their distance and nearest first.
    """
    conditions = [
        User.is_online.is_(True),
        User.is_active.is_(True),
        User.current_latitude.is_not(None),
        User.current_longitude.is_not(None),
    ]
    if exclude_user_id is not None:
        conditions.append(User.id != exclude_user_id)

    lat_delta = geo_math.angular_degrees(radius_km)
    conditions.append(
        User.current_latitude.between(
            max(-90.0, latitude - lat_delta), min(90.0, latitude + lat_delta)
        )
    )
    if abs(latitude) + lat_delta < 90:
        zone = geo_math.safe_zone(latitude, longitude, radius_km)
        if zone.west >= -180 and zone.east <= 180:
            conditions.append(User.current_longitude.between(zone.west, zone.east))

    query = select(User).where(and_(*conditions))

    try:
        candidates = db.execute(query).scalars().all()
    except SQLAlchemyError as e:
        logger.error(f"{LOG_MSG} error getting users by location: {str(e)}")
        raise

    nearby = []
    for user in candidates:
        distance = geo_math.distance_km(
            latitude, longitude, user.current_latitude, user.current_longitude
        )
        if distance <= radius_km:
            nearby.append((user, distance))

    return sorted(nearby, key=lambda pair: pair[1])


def update_location(
    db: Session, user_id: UUID, latitude: float, longitude: float, now: datetime
) -> bool:
    query = (
        update(User)
        .where(User.id == user_id)
        .values(
            current_latitude=latitude,
            current_longitude=longitude,
            location_updated_at=now,
            is_online=True,
        )
        .execution_options(synchronize_session=False)
    )

    try:
        result = db.execute(query)
        db.commit()
        return result.rowcount > 0
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{LOG_MSG} error updating user location: {str(e)}")
        raise
