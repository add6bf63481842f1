import logging

from datetime import datetime
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from app.core.exceptions import NotFoundError
from app.crud.audit_trail import audit_trail_crud
from app.models.audit_trail import AuditTrail
from app.schemas.audit_trail import CreateAuditTrail

logger = logging.getLogger(__name__)
LOG_MSG = "Service:"


class AuditTrailService:
    def insert_audit(self, db: Session, payload: CreateAuditTrail) -> AuditTrail:
        return audit_trail_crud.create_audit(db, payload)

    def record(
        self,
        db: Session,
        action: str,
        resource_type: str,
        resource_id: Optional[UUID] = None,
        actor_id: Optional[UUID] = None,
        actor_role: int = 1,
        description: str = "",
    ) -> AuditTrail:
        return self.insert_audit(
            db,
            CreateAuditTrail(
                actor_id=actor_id,
                actor_role=actor_role,
                action=action,
                resource_type=resource_type,
                resource_id=resource_id,
                description=description,
            ),
        )

    def select_audit_by_id(self, db: Session, id: UUID) -> AuditTrail:
        res = audit_trail_crud.get_audit_by_id(db, id)
        if not res:
            raise NotFoundError("no audit trail found with given id")

        return res

    def select_audit_for_resource(
        self, db: Session, resource_type: str, resource_id: UUID
    ) -> List[AuditTrail]:
        return audit_trail_crud.get_audit_for_resource(db, resource_type, resource_id)

    def select_audit_by_date(
        self, db: Session, start: datetime, end: datetime
    ) -> List[AuditTrail]:
        return audit_trail_crud.get_audit_by_date(db, start, end)


audit_trail_service = AuditTrailService()
