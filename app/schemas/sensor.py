from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field, model_validator
from typing import Dict, List, Optional


class SensorType(str, Enum):
    TEMPERATURE = "TEMPERATURE"
    PH = "PH"
    POSITION = "POSITION"


class SensorReading(BaseModel):
    """One reading from one source; position readings carry coordinates instead of a value"""

    sensor_id: str = Field(..., min_length=1)
    sensor_type: SensorType
    value: Optional[float] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    accuracy_m: Optional[float] = Field(default=None, ge=0)
    speed_kmh: Optional[float] = Field(default=None, ge=0)
    heading: Optional[float] = Field(default=None, ge=0, le=360)
    timestamp: Optional[datetime] = None

    @model_validator(mode="after")
    def check_payload(self):
        if self.sensor_type == SensorType.POSITION:
            if self.latitude is None or self.longitude is None:
                raise ValueError("position readings need latitude and longitude")
        elif self.value is None:
            raise ValueError(f"{self.sensor_type.value} readings need a value")
        return self


class PositionSummary(BaseModel):
    latitude: float
    longitude: float
    accuracy_m: Optional[float] = None
    speed_kmh: Optional[float] = None
    heading: Optional[float] = None
    timestamp: Optional[datetime] = None


class TypeSummary(BaseModel):
    average: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None
    sensor_count: int
    water_quality: Optional[str] = None  # pH only
    position: Optional[PositionSummary] = None  # latest position reading


class Anomaly(BaseModel):
    sensor_id: str
    type: str  # HIGH_TEMPERATURE, LOW_TEMPERATURE, UNSAFE_PH
    value: float
    threshold: str
    severity: str


class FailedSensor(BaseModel):
    sensor_id: str
    error: str


class AggregationBatch(BaseModel):
    batch_id: str
    timestamp: datetime
    total_sensors: int
    successful_readings: int
    failed_readings: int
    success_rate: float
    summary: Dict[SensorType, TypeSummary] = {}
    anomalies: List[Anomaly] = []
    failed_sensors: List[FailedSensor] = []


class AggregatorStats(BaseModel):
    total_batches: int
    queued_transmissions: int
    registered_sensors: int
    last_aggregation: Optional[datetime] = None
    running: bool = False
