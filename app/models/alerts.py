import uuid

from enum import Enum
from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from app.core.levels import Severity
from app.db.base_class import Base

JSONType = JSON().with_variant(JSONB, "postgresql")


class AlertType(str, Enum):
    DISTRESS = "DISTRESS"
    WEATHER = "WEATHER"
    HAZARD = "HAZARD"
    COMMUNITY = "COMMUNITY"
    SYSTEM = "SYSTEM"
    FISHING_ZONE = "FISHING_ZONE"
    OFFSHORE = "OFFSHORE"


class AlertStatus(str, Enum):
    ACTIVE = "ACTIVE"
    RESOLVED = "RESOLVED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


class AlertPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class AlertSource(str, Enum):
    USER = "USER"
    SYSTEM = "SYSTEM"
    AUTOMATED = "AUTOMATED"
    EXTERNAL = "EXTERNAL"


class Alert(Base):
    __tablename__ = "alerts"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # basic alert information
    type = Column(String(30), nullable=False)
    severity = Column(Integer, nullable=False, default=Severity.MEDIUM)
    status = Column(String(20), nullable=False, default=AlertStatus.ACTIVE.value)
    priority = Column(String(20), nullable=False, default=AlertPriority.MEDIUM.value)
    title = Column(String(200), nullable=False)
    description = Column(String(1000), nullable=False)

    # location information
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    location_name = Column(String(255), nullable=True)
    accuracy_m = Column(Float, nullable=True)
    radius_km = Column(Float, nullable=False, default=50.0)

    # user information
    user_id = Column(Uuid(as_uuid=True), nullable=False)
    user_name = Column(String(150), nullable=False)

    # alert timing
    triggered_at = Column(DateTime, nullable=False, server_default=func.now())
    expires_at = Column(DateTime, nullable=False)
    resolved_at = Column(DateTime, nullable=True)

    # type specific payloads
    distress_detail = Column(JSONType, nullable=True)
    weather_detail = Column(JSONType, nullable=True)
    hazard_detail = Column(JSONType, nullable=True)

    # resolution
    resolution_notes = Column(Text, nullable=True)
    resolved_by_id = Column(Uuid(as_uuid=True), nullable=True)
    resolved_by_name = Column(String(150), nullable=True)

    # notification tracking
    sms_sent = Column(Boolean, nullable=False, default=False)
    push_sent = Column(Boolean, nullable=False, default=False)
    email_sent = Column(Boolean, nullable=False, default=False)
    authorities_notified = Column(Boolean, nullable=False, default=False)
    community_notified = Column(Boolean, nullable=False, default=False)

    # metadata
    source = Column(String(20), nullable=False, default=AlertSource.USER.value)
    confidence = Column(Integer, nullable=False, default=80)
    tags = Column(JSONType, nullable=True)

    # analytics
    view_count = Column(Integer, nullable=False, default=0)
    response_time_s = Column(Integer, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    acknowledgments = relationship(
        "AlertAcknowledgment",
        back_populates="alert",
        cascade="all, delete-orphan",
        order_by="AlertAcknowledgment.acknowledged_at",
    )
    assistance = relationship(
        "AlertAssistance",
        back_populates="alert",
        cascade="all, delete-orphan",
        order_by="AlertAssistance.provided_at",
    )
    hazard_confirmations = relationship(
        "HazardConfirmation",
        back_populates="alert",
        cascade="all, delete-orphan",
        order_by="HazardConfirmation.confirmed_at",
    )

    __table_args__ = (
        CheckConstraint("confidence >= 0 AND confidence <= 100", name="ck_alerts_confidence"),
        Index("idx_alerts_type", "type"),
        Index("idx_alerts_severity", "severity"),
        Index("idx_alerts_status", "status"),
        Index("idx_alerts_user_id", "user_id"),
        Index("idx_alerts_location", "latitude", "longitude"),
        Index("idx_alerts_triggered", "triggered_at"),
        Index("idx_alerts_status_expires", "status", "expires_at"),
    )

    def __repr__(self):
        return f"<Alert {self.id} - {self.type}/{self.status} at ({self.latitude}, {self.longitude})>"


class AlertAcknowledgment(Base):
    __tablename__ = "alert_acknowledgments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    alert_id = Column(
        Uuid(as_uuid=True), ForeignKey("alerts.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(Uuid(as_uuid=True), nullable=False)
    user_name = Column(String(150), nullable=False)
    role = Column(String(50), nullable=False, default="USER")
    acknowledged_at = Column(DateTime, nullable=False, server_default=func.now())

    alert = relationship("Alert", back_populates="acknowledgments")

    __table_args__ = (
        UniqueConstraint("alert_id", "user_id", name="uq_alert_ack_user"),
    )


class AlertAssistance(Base):
    __tablename__ = "alert_assistance"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    alert_id = Column(
        Uuid(as_uuid=True), ForeignKey("alerts.id", ondelete="CASCADE"), nullable=False
    )
    provider_id = Column(Uuid(as_uuid=True), nullable=False)
    provider_name = Column(String(150), nullable=False)
    assistance_type = Column(String(50), nullable=False)
    notes = Column(Text, nullable=True)
    provided_at = Column(DateTime, nullable=False, server_default=func.now())

    alert = relationship("Alert", back_populates="assistance")

    __table_args__ = (Index("idx_alert_assistance_alert", "alert_id"),)


class HazardConfirmation(Base):
    __tablename__ = "hazard_confirmations"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    alert_id = Column(
        Uuid(as_uuid=True), ForeignKey("alerts.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(Uuid(as_uuid=True), nullable=False)
    user_name = Column(String(150), nullable=False)
    confirmed_at = Column(DateTime, nullable=False, server_default=func.now())

    alert = relationship("Alert", back_populates="hazard_confirmations")

    __table_args__ = (
        UniqueConstraint("alert_id", "user_id", name="uq_hazard_confirmation_user"),
    )
