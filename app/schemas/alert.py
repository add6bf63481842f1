from datetime import datetime
from pydantic import BaseModel, Field, field_serializer, field_validator
from typing import Dict, List, Optional
from uuid import UUID

from app.core.levels import Severity
from app.models.alerts import AlertPriority, AlertSource, AlertStatus, AlertType


class DistressDetail(BaseModel):
    sos_type: Optional[str] = None  # MEDICAL, MECHANICAL, WEATHER, SAFETY, OTHER
    assistance_required: Optional[str] = None  # MEDICAL, TOWING, FUEL, REPAIRS, GUIDANCE, OTHER
    message: Optional[str] = Field(default=None, max_length=500)
    contact_number: Optional[str] = None


class WeatherDetail(BaseModel):
    condition: Optional[str] = None
    wind_speed_kmh: Optional[float] = None
    wave_height_m: Optional[float] = None
    temperature_c: Optional[float] = None
    precipitation: Optional[float] = None
    visibility_km: Optional[float] = None
    storm_distance_km: Optional[float] = None


class HazardDetail(BaseModel):
    hazard_type: Optional[str] = None  # STRONG_CURRENT, ROCKS, DEBRIS, LOW_VISIBILITY, MARINE_LIFE, OTHER
    risk_level: Optional[str] = None
    recommended_action: Optional[str] = None


class BaseAlert(BaseModel):
    type: AlertType
    severity: Severity = Severity.MEDIUM
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=1000)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    location_name: Optional[str] = None
    accuracy_m: Optional[float] = Field(default=None, ge=0)
    radius_km: float = Field(default=50.0, ge=0)
    priority: AlertPriority = AlertPriority.MEDIUM
    source: AlertSource = AlertSource.USER
    tags: List[str] = []

    @field_validator("severity", mode="before")
    @classmethod
    def parse_severity(cls, v):
        """Accept level names ("HIGH") as well as ranks"""
        return Severity.parse(v)

    @field_serializer("severity")
    def serialize_severity(self, severity: Severity) -> str:
        return Severity(severity).name


class CreateAlert(BaseAlert):
    """Schema for creating a new alert"""

    user_id: UUID
    user_name: str = Field(..., min_length=1)
    expires_at: datetime
    triggered_at: Optional[datetime] = None
    confidence: int = Field(default=80, ge=0, le=100)
    distress_detail: Optional[DistressDetail] = None
    weather_detail: Optional[WeatherDetail] = None
    hazard_detail: Optional[HazardDetail] = None


class AcknowledgmentOut(BaseModel):
    user_id: UUID
    user_name: str
    role: str
    acknowledged_at: datetime

    class Config:
        from_attributes = True


class AssistanceOut(BaseModel):
    provider_id: UUID
    provider_name: str
    assistance_type: str
    notes: Optional[str] = None
    provided_at: datetime

    class Config:
        from_attributes = True


class HazardConfirmationOut(BaseModel):
    user_id: UUID
    user_name: str
    confirmed_at: datetime

    class Config:
        from_attributes = True


class AlertOut(BaseAlert):
    """Schema for alert output"""

    id: UUID
    status: AlertStatus
    user_id: UUID
    user_name: str
    triggered_at: datetime
    expires_at: datetime
    resolved_at: Optional[datetime] = None
    distress_detail: Optional[dict] = None
    weather_detail: Optional[dict] = None
    hazard_detail: Optional[dict] = None
    resolution_notes: Optional[str] = None
    resolved_by_id: Optional[UUID] = None
    resolved_by_name: Optional[str] = None
    acknowledgments: List[AcknowledgmentOut] = []
    assistance: List[AssistanceOut] = []
    hazard_confirmations: List[HazardConfirmationOut] = []
    sms_sent: bool = False
    push_sent: bool = False
    email_sent: bool = False
    authorities_notified: bool = False
    community_notified: bool = False
    confidence: int
    view_count: int = 0
    response_time_s: Optional[int] = None
    tags: Optional[List[str]] = None

    class Config:
        from_attributes = True


class AcknowledgeAlert(BaseModel):
    user_id: UUID
    user_name: str = Field(..., min_length=1)
    role: str = "USER"


class ProvideAssistance(BaseModel):
    provider_id: UUID
    provider_name: str = Field(..., min_length=1)
    assistance_type: str = Field(..., min_length=1)
    notes: Optional[str] = ""


class ResolveAlert(BaseModel):
    resolver_id: UUID
    resolver_name: str = Field(..., min_length=1)
    notes: Optional[str] = Field(default="", max_length=1000)


class CancelAlert(BaseModel):
    actor_id: UUID
    actor_role: int = 1


class ConfirmHazard(BaseModel):
    user_id: UUID
    user_name: str = Field(..., min_length=1)


class AlertFilterParams(BaseModel):
    """Parameters for filtering alerts"""

    type: Optional[AlertType] = None
    status: Optional[AlertStatus] = None
    min_severity: Optional[Severity] = None
    user_id: Optional[UUID] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator("min_severity", mode="before")
    @classmethod
    def parse_min_severity(cls, v):
        return None if v is None else Severity.parse(v)


class AlertStatistics(BaseModel):
    """Rolling statistics over a trailing window"""

    window_days: int
    total_alerts: int
    by_type: Dict[str, int]
    by_severity: Dict[str, int]
    avg_response_time_s: float
    resolution_rate: float


class SweepResult(BaseModel):
    expired_count: int
    swept_at: datetime
