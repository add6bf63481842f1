from datetime import date, datetime
from pydantic import BaseModel, Field
from typing import List, Optional
from uuid import UUID


class CatchReportEvent(BaseModel):
    """A fisherman's catch report; weight defaults to 0 when not weighed"""

    user_id: Optional[UUID] = None
    day: Optional[date] = None
    weight: float = Field(default=0.0, ge=0)
    species: Optional[str] = None
    reported_at: Optional[datetime] = None


class DailyAnalyticsOut(BaseModel):
    day: date
    total_catches: int
    total_weight: float
    created_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None

    class Config:
        from_attributes = True


class DailyAnalyticsRange(BaseModel):
    start: date
    end: date
    days: List[DailyAnalyticsOut] = []
    total_catches: int = 0
    total_weight: float = 0.0


class UserStatisticsOut(BaseModel):
    user_id: UUID
    emergency_activations: int
    catch_reports: int
    total_catch: float
    last_updated: Optional[datetime] = None

    class Config:
        from_attributes = True
