from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional
from uuid import UUID

from app.models.users import UserRole


class EmergencyContactBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    phone: str = Field(..., min_length=3, max_length=50)
    relationship_to_user: Optional[str] = None


class CreateEmergencyContact(EmergencyContactBase):
    pass


class EmergencyContactOut(EmergencyContactBase):
    id: UUID

    class Config:
        from_attributes = True


class UserBase(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    is_fisherman: bool = True
    boat_name: Optional[str] = None
    home_port_latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    home_port_longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    max_offshore_km: Optional[float] = Field(default=None, gt=0)


class CreateUser(UserBase):
    role: UserRole = UserRole.USER
    is_online: bool = False
    current_latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    current_longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    emergency_contacts: List[CreateEmergencyContact] = []


class UserOut(UserBase):
    id: UUID
    role: int
    is_active: bool
    is_online: bool
    current_latitude: Optional[float] = None
    current_longitude: Optional[float] = None
    location_updated_at: Optional[datetime] = None
    emergency_contacts: List[EmergencyContactOut] = []

    class Config:
        from_attributes = True
