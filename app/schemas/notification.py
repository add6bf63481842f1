from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from uuid import UUID

from app.models.outbound_messages import MessageChannel, MessagePriority
from app.schemas.alert import AlertOut


class OutboundMessageTask(BaseModel):
    """One message handed to the transport"""

    recipient: str = Field(..., min_length=1)
    channel: MessageChannel = MessageChannel.SMS
    body: str
    priority: MessagePriority = MessagePriority.NORMAL
    kind: str  # EMERGENCY_CONTACT, NEARBY_DISTRESS, AUTHORITY, OFFSHORE_CONTACT
    alert_id: Optional[UUID] = None
    payload: Dict[str, Any] = {}


class BranchReport(BaseModel):
    attempted: int = 0
    enqueued: int = 0
    failed: int = 0
    failed_recipients: List[str] = []


class FanoutReport(BaseModel):
    alert_id: UUID
    suppressed: bool = False
    contacts: BranchReport = BranchReport()
    nearby_users: BranchReport = BranchReport()
    authorities: BranchReport = BranchReport()
    errors: List[str] = []

    @property
    def total_enqueued(self) -> int:
        return (
            self.contacts.enqueued
            + self.nearby_users.enqueued
            + self.authorities.enqueued
        )


class LocationUpdateResult(BaseModel):
    user_id: UUID
    distance_from_port_km: Optional[float] = None
    offshore: bool = False
    alert_id: Optional[UUID] = None
    fanout: Optional[FanoutReport] = None


class LocationReport(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class RaisedAlertOut(BaseModel):
    alert: AlertOut
    fanout: FanoutReport
