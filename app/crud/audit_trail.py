import logging

from datetime import datetime
from sqlalchemy import select, and_
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional
from uuid import UUID

from app.models.audit_trail import AuditTrail
from app.schemas.audit_trail import CreateAuditTrail

logger = logging.getLogger(__name__)
LOG_MSG = "CRUD:"


class AuditTrailCrud:
    def create_audit(self, db: Session, payload: CreateAuditTrail) -> AuditTrail:
        data = payload.model_dump(exclude_none=True)
        audit = AuditTrail(**data)

        try:
            db.add(audit)
            db.commit()
            db.refresh(audit)

            return audit
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"{LOG_MSG} error inserting logs into audit trail: {str(e)}")
            raise

    def get_audit_by_id(self, db: Session, id: UUID) -> Optional[AuditTrail]:
        query = select(AuditTrail).where(AuditTrail.id == id)

        try:
            return db.execute(query).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"{LOG_MSG} error getting audit by id: {str(e)}")
            raise

    def get_audit_for_resource(
        self, db: Session, resource_type: str, resource_id: UUID
    ) -> List[AuditTrail]:
        query = (
            select(AuditTrail)
            .where(
                and_(
                    AuditTrail.resource_type == resource_type,
                    AuditTrail.resource_id == resource_id,
                )
            )
            .order_by(AuditTrail.timestamp.asc())
        )

        try:
            return db.execute(query).scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"{LOG_MSG} error getting audit for resource: {str(e)}")
            raise

    def get_audit_by_date(
        self, db: Session, start: datetime, end: datetime
    ) -> List[AuditTrail]:
        query = select(AuditTrail).where(
            and_(AuditTrail.timestamp >= start, AuditTrail.timestamp < end)
        )

        try:
            return db.execute(query).scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"{LOG_MSG} error getting audit by time: {str(e)}")
            raise


audit_trail_crud = AuditTrailCrud()
