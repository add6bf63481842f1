from datetime import datetime
from pydantic import BaseModel
from typing import Optional
from uuid import UUID


class AuditTrailBase(BaseModel):
    actor_id: Optional[UUID] = None
    actor_role: int = 1
    action: str
    resource_type: str
    resource_id: Optional[UUID] = None
    description: str = ""
    timestamp: Optional[datetime] = None


class CreateAuditTrail(AuditTrailBase):
    pass


class AuditTrailOut(AuditTrailBase):
    id: UUID
    timestamp: datetime

    class Config:
        from_attributes = True
