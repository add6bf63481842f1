from fastapi import HTTPException, Request, status

from app.services.notification_fanout import NotificationFanout, notification_fanout
from app.services.sensor_aggregator import SensorAggregator


def get_notification_fanout() -> NotificationFanout:
    return notification_fanout


def get_sensor_aggregator(request: Request) -> SensorAggregator:
    aggregator = getattr(request.app.state, "sensor_aggregator", None)
    if aggregator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="sensor aggregation is not running",
        )
    return aggregator
