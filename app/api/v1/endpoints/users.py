import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from uuid import UUID

from app.api.v1.dependencies import get_notification_fanout
from app.db.connection import get_db
from app.schemas.notification import LocationReport, LocationUpdateResult
from app.schemas.user import (
    CreateEmergencyContact,
    CreateUser,
    EmergencyContactOut,
    UserOut,
)
from app.services.notification_fanout import NotificationFanout
from app.services.user_service import user_service

router = APIRouter()
logger = logging.getLogger(__name__)
LOG_MSG = "Endpoint:"


@router.post("/", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(payload: CreateUser, db: Session = Depends(get_db)):
    """
    Registers a fisherman profile.

    <b>Args</b>:
        payload (CreateUser): Name, contact details, home port, safety limit
        and emergency contacts.
        db (Session): Database session dependency.

    <b>Returns</b>:
        UserOut: The newly created profile.
    """

    return user_service.create_user_service(db, payload)


@router.get("/{user_id}", response_model=UserOut)
def get_user_by_id(user_id: UUID, db: Session = Depends(get_db)):
    return user_service.get_user_by_id_service(db, user_id)


@router.post(
    "/{user_id}/contacts",
    response_model=EmergencyContactOut,
    status_code=status.HTTP_201_CREATED,
)
def add_emergency_contact(
    user_id: UUID, payload: CreateEmergencyContact, db: Session = Depends(get_db)
):
    return user_service.add_emergency_contact_service(db, user_id, payload)


@router.post("/{user_id}/location", response_model=LocationUpdateResult)
async def report_location(
    user_id: UUID,
    payload: LocationReport,
    db: Session = Depends(get_db),
    fanout: NotificationFanout = Depends(get_notification_fanout),
):
    """
    Stores the boat's position. Past the user's safe distance from the
    home port an offshore alert is raised and emergency contacts are told.

    <b>Raises</b>:
        NotFoundError: If the user does not exist.
    """

    result = await fanout.handle_location_update(
        db, user_id, payload.latitude, payload.longitude
    )
    if result.offshore:
        logger.info(f"{LOG_MSG} user {user_id} reported an offshore position")
    return result
