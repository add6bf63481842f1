import logging

from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from app.core.exceptions import DomainError
from app.db.connection import get_db
from app.schemas.audit_trail import AuditTrailOut
from app.services.audit_trail_service import audit_trail_service

router = APIRouter()
logger = logging.getLogger(__name__)
LOG_MSG = "Endpoint:"


@router.get("/date", response_model=List[AuditTrailOut])
def get_audit_by_date(start: datetime, end: datetime, db: Session = Depends(get_db)):
    try:
        return audit_trail_service.select_audit_by_date(db, start=start, end=end)
    except Exception as e:
        logger.error(f"{LOG_MSG} error getting audit trails by date: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="failed to get audit trails by date",
        )


@router.get("/resources/{resource_type}/{resource_id}", response_model=List[AuditTrailOut])
def get_audit_for_resource(
    resource_type: str, resource_id: UUID, db: Session = Depends(get_db)
):
    try:
        return audit_trail_service.select_audit_for_resource(
            db, resource_type, resource_id
        )
    except Exception as e:
        logger.error(f"{LOG_MSG} error getting audit trails for resource: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="failed to get audit trails",
        )


@router.get("/{audit_id}", response_model=AuditTrailOut)
def get_audit_by_id(audit_id: UUID, db: Session = Depends(get_db)):
    try:
        return audit_trail_service.select_audit_by_id(db, audit_id)
    except DomainError:
        raise
    except Exception as e:
        logger.error(f"{LOG_MSG} error getting audit trail: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="failed to get audit trail",
        )
