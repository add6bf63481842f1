import uuid

from enum import Enum
from sqlalchemy import (
    Column,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    func,
)

from app.db.base_class import Base
from app.models.alerts import JSONType


class MessageChannel(str, Enum):
    SMS = "SMS"
    PUSH = "PUSH"
    EMAIL = "EMAIL"


class MessagePriority(str, Enum):
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class MessageStatus(str, Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"


class OutboundMessage(Base):
    __tablename__ = "outbound_messages"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    recipient = Column(String(150), nullable=False)
    channel = Column(String(20), nullable=False, default=MessageChannel.SMS.value)
    body = Column(Text, nullable=False)
    priority = Column(String(20), nullable=False, default=MessagePriority.NORMAL.value)
    status = Column(String(20), nullable=False, default=MessageStatus.PENDING.value)
    kind = Column(String(50), nullable=False)
    alert_id = Column(Uuid(as_uuid=True), nullable=True)
    payload = Column(JSONType, nullable=True)
    attempts = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_outbound_messages_status", "status"),
        Index("idx_outbound_messages_alert", "alert_id"),
        Index("idx_outbound_messages_created", "created_at"),
    )
