import uuid

from sqlalchemy import Column, DateTime, Index, Integer, String, Text, Uuid, func

from app.db.base_class import Base
from app.models.users import UserRole


class AuditTrail(Base):
    __tablename__ = "audit_trail"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    actor_id = Column(Uuid(as_uuid=True), nullable=True)
    actor_role = Column(Integer, nullable=False, default=UserRole.USER)
    action = Column(String(255), nullable=False, default="")
    resource_type = Column(String(255), nullable=False, default="")
    resource_id = Column(Uuid(as_uuid=True), nullable=True)
    description = Column(Text, nullable=False, default="")
    timestamp = Column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (
        Index("idx_audit_trail_on_actor_id", "actor_id"),
        Index("idx_audit_trail_on_action", "action"),
        Index("idx_audit_trail_on_resource_type", "resource_type"),
        Index("idx_audit_trail_on_timestamp", "timestamp"),
    )
