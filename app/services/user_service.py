import logging

from sqlalchemy.orm import Session
from uuid import UUID

from app.core.exceptions import NotFoundError
from app.crud import user as user_crud
from app.models.users import EmergencyContact, User
from app.schemas.user import CreateEmergencyContact, CreateUser
from app.services.audit_trail_service import audit_trail_service

logger = logging.getLogger(__name__)
LOG_MSG = "Service:"


class UserService:
    def create_user_service(self, db: Session, user_data: CreateUser) -> User:
        """
        Creates a new fisherman profile, with any emergency contacts given.

        Args:
            user_data (CreateUser): Profile, home port and contacts.
            db (Session): SQLAlchemy database session.

        Returns:
            User: The stored user.
        """

        user = user_crud.create_user(db, user_data)
        audit_trail_service.record(
            db,
            action="CREATE_USER",
            resource_type="user",
            resource_id=user.id,
            actor_id=user.id,
            actor_role=user.role,
            description=f"registered {user.full_name}",
        )
        db.refresh(user)
        return user

    def get_user_by_id_service(self, db: Session, id: UUID) -> User:
        user = user_crud.get_user_by_id(db, id)
        if not user:
            raise NotFoundError(f"user {id} not found")
        return user

    def add_emergency_contact_service(
        self, db: Session, user_id: UUID, payload: CreateEmergencyContact
    ) -> EmergencyContact:
        self.get_user_by_id_service(db, user_id)

        contact = user_crud.add_emergency_contact(db, user_id, payload)
        logger.info(f"{LOG_MSG} added emergency contact for user {user_id}")
        return contact


user_service = UserService()
