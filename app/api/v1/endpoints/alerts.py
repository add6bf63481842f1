import logging

from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from app.api.v1.dependencies import get_notification_fanout
from app.core.config import settings
from app.core.exceptions import DomainError
from app.db.connection import get_db
from app.models.alerts import AlertStatus, AlertType
from app.schemas.alert import (
    AcknowledgeAlert,
    AlertFilterParams,
    AlertOut,
    AlertStatistics,
    CancelAlert,
    ConfirmHazard,
    CreateAlert,
    ProvideAssistance,
    ResolveAlert,
    SweepResult,
)
from app.schemas.notification import RaisedAlertOut
from app.services.alert_service import alert_service
from app.services.notification_fanout import FANOUT_TYPES, NotificationFanout

router = APIRouter()
logger = logging.getLogger(__name__)
LOG_MSG = "Endpoint:"


def _internal_error(action: str, e: Exception) -> HTTPException:
    logger.error(f"{LOG_MSG} error {action}: {str(e)}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed {action}",
    )


@router.post("/", response_model=AlertOut, status_code=status.HTTP_201_CREATED)
async def create_alert(
    payload: CreateAlert,
    db: Session = Depends(get_db),
    fanout: NotificationFanout = Depends(get_notification_fanout),
):
    """
    Create an alert. Distress and offshore alerts are fanned out exactly as
    through ``/sos``; use that route to get the delivery report back.
    """
    try:
        if payload.type.value in FANOUT_TYPES:
            alert, _ = await fanout.raise_alert(db, payload)
            return alert
        return alert_service.create_alert(db, payload)
    except DomainError:
        raise
    except Exception as e:
        raise _internal_error("creating alert", e)


@router.post("/sos", response_model=RaisedAlertOut, status_code=status.HTTP_201_CREATED)
async def raise_sos(
    payload: CreateAlert,
    db: Session = Depends(get_db),
    fanout: NotificationFanout = Depends(get_notification_fanout),
):
    """
    Raise an alert and notify emergency contacts, nearby boats and the
    authorities. A user with an open alert of the same type gets that
    alert back and no new notifications are sent.
    """
    try:
        alert, report = await fanout.raise_alert(db, payload)
        return RaisedAlertOut(alert=AlertOut.model_validate(alert), fanout=report)
    except DomainError:
        raise
    except Exception as e:
        raise _internal_error("raising SOS", e)


@router.get("/", response_model=List[AlertOut])
def get_alerts(
    type: Optional[AlertType] = Query(None, description="Filter by alert type"),
    alert_status: Optional[AlertStatus] = Query(
        None, alias="status", description="Filter by status"
    ),
    min_severity: Optional[str] = Query(
        None, description="Minimum severity, LOW to CRITICAL"
    ),
    user_id: Optional[UUID] = Query(None, description="Filter by owner"),
    start_date: Optional[datetime] = Query(None, description="Triggered at or after"),
    end_date: Optional[datetime] = Query(None, description="Triggered at or before"),
    limit: Optional[int] = Query(None, ge=1, le=500),
    offset: Optional[int] = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    try:
        filters = AlertFilterParams(
            type=type,
            status=alert_status,
            min_severity=min_severity,
            user_id=user_id,
            start_date=start_date,
            end_date=end_date,
        )
        return alert_service.list_alerts(db, filters, limit=limit, offset=offset)
    except DomainError:
        raise
    except Exception as e:
        raise _internal_error("listing alerts", e)


@router.get("/near", response_model=List[AlertOut])
def get_alerts_near(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    max_distance_m: float = Query(settings.ALERT_NEARBY_SEARCH_METERS, ge=0),
    db: Session = Depends(get_db),
):
    """Active alerts around a point, most severe and most recent first"""
    try:
        return alert_service.find_active_near(db, lat, lng, max_distance_m)
    except DomainError:
        raise
    except Exception as e:
        raise _internal_error("finding nearby alerts", e)


@router.get("/stats", response_model=AlertStatistics)
def get_alert_statistics(
    window_days: int = Query(settings.ALERT_STATS_WINDOW_DAYS, ge=1, le=365),
    db: Session = Depends(get_db),
):
    try:
        return alert_service.stats(db, window_days)
    except DomainError:
        raise
    except Exception as e:
        raise _internal_error("getting alert statistics", e)


@router.post("/sweep", response_model=SweepResult)
def sweep_expired_alerts(db: Session = Depends(get_db)):
    try:
        return alert_service.cleanup_expired(db)
    except DomainError:
        raise
    except Exception as e:
        raise _internal_error("sweeping expired alerts", e)


@router.get("/{alert_id}", response_model=AlertOut)
def get_alert(alert_id: UUID, db: Session = Depends(get_db)):
    try:
        return alert_service.record_view(db, alert_id)
    except DomainError:
        raise
    except Exception as e:
        raise _internal_error("getting alert", e)


@router.post("/{alert_id}/acknowledge", response_model=AlertOut)
def acknowledge_alert(
    alert_id: UUID, payload: AcknowledgeAlert, db: Session = Depends(get_db)
):
    try:
        return alert_service.acknowledge(
            db, alert_id, payload.user_id, payload.user_name, payload.role
        )
    except DomainError:
        raise
    except Exception as e:
        raise _internal_error("acknowledging alert", e)


@router.post("/{alert_id}/assist", response_model=AlertOut)
def provide_assistance(
    alert_id: UUID, payload: ProvideAssistance, db: Session = Depends(get_db)
):
    try:
        return alert_service.provide_assistance(
            db,
            alert_id,
            payload.provider_id,
            payload.provider_name,
            payload.assistance_type,
            payload.notes,
        )
    except DomainError:
        raise
    except Exception as e:
        raise _internal_error("recording assistance", e)


@router.post("/{alert_id}/resolve", response_model=AlertOut)
def resolve_alert(alert_id: UUID, payload: ResolveAlert, db: Session = Depends(get_db)):
    try:
        return alert_service.resolve(
            db, alert_id, payload.resolver_id, payload.resolver_name, payload.notes
        )
    except DomainError:
        raise
    except Exception as e:
        raise _internal_error("resolving alert", e)


@router.post("/{alert_id}/cancel", response_model=AlertOut)
def cancel_alert(alert_id: UUID, payload: CancelAlert, db: Session = Depends(get_db)):
    try:
        return alert_service.cancel(db, alert_id, payload.actor_id, payload.actor_role)
    except DomainError:
        raise
    except Exception as e:
        raise _internal_error("cancelling alert", e)


@router.post("/{alert_id}/confirm-hazard", response_model=AlertOut)
def confirm_hazard(
    alert_id: UUID, payload: ConfirmHazard, db: Session = Depends(get_db)
):
    try:
        return alert_service.confirm_hazard(
            db, alert_id, payload.user_id, payload.user_name
        )
    except DomainError:
        raise
    except Exception as e:
        raise _internal_error("confirming hazard", e)
