import uuid

from enum import IntEnum
from sqlalchemy import (
    Column,
    Integer,
    Index,
    String,
    DateTime,
    Boolean,
    Float,
    ForeignKey,
    Uuid,
    func,
)
from sqlalchemy.orm import relationship

from app.db.base_class import Base


class UserRole(IntEnum):
    USER = 1
    ADMIN = 2
    SUPER_ADMIN = 3


class User(Base):
    __tablename__ = "users"

    # core fields
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(150), nullable=True)

    # fisherman profile
    is_fisherman = Column(Boolean, nullable=False, default=True)
    boat_name = Column(String(100), nullable=True)

    # location
    current_latitude = Column(Float, nullable=True)
    current_longitude = Column(Float, nullable=True)
    location_updated_at = Column(DateTime, nullable=True)
    home_port_latitude = Column(Float, nullable=True)
    home_port_longitude = Column(Float, nullable=True)
    is_online = Column(Boolean, nullable=False, default=False)

    # safety settings
    max_offshore_km = Column(Float, nullable=True)

    # system fields
    role = Column(Integer, nullable=False, default=UserRole.USER)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime,
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    emergency_contacts = relationship(
        "EmergencyContact",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_users_on_is_online", "is_online"),
        Index("idx_users_on_location", "current_latitude", "current_longitude"),
    )

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class EmergencyContact(Base):
    __tablename__ = "emergency_contacts"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(150), nullable=False)
    phone = Column(String(50), nullable=False)
    relationship_to_user = Column(String(50), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="emergency_contacts")
