import logging

from fastapi import APIRouter, Depends
from typing import List, Optional

from app.api.v1.dependencies import get_sensor_aggregator
from app.schemas.sensor import AggregationBatch, AggregatorStats
from app.services.sensor_aggregator import SensorAggregator

router = APIRouter()
logger = logging.getLogger(__name__)
LOG_MSG = "Endpoint:"


@router.get("/", response_model=List[dict])
def list_sensors(aggregator: SensorAggregator = Depends(get_sensor_aggregator)):
    return [
        {"sensor_id": source.sensor_id, "sensor_type": source.sensor_type}
        for source in aggregator.registry
    ]


@router.get("/stats", response_model=AggregatorStats)
def get_aggregation_stats(
    aggregator: SensorAggregator = Depends(get_sensor_aggregator),
):
    return aggregator.stats()


@router.get("/history", response_model=List[AggregationBatch])
def get_aggregation_history(
    aggregator: SensorAggregator = Depends(get_sensor_aggregator),
):
    return aggregator.history()


@router.post("/collect", response_model=Optional[AggregationBatch])
async def collect_now(aggregator: SensorAggregator = Depends(get_sensor_aggregator)):
    """Run one aggregation cycle immediately; null when no sensors are registered"""
    batch = await aggregator.collect_and_aggregate()
    if batch:
        logger.info(f"{LOG_MSG} on-demand aggregation produced batch {batch.batch_id}")
    return batch


@router.post("/transmission/next", response_model=Optional[AggregationBatch])
def pop_next_batch(aggregator: SensorAggregator = Depends(get_sensor_aggregator)):
    """
    Take the oldest queued batch for transmission. The batch leaves the
    queue on return; a failed upload must be re-queued by the caller.
    """
    return aggregator.next_transmission_batch()


@router.post("/transmission/requeue", response_model=AggregatorStats)
def requeue_batch(
    batch: AggregationBatch,
    aggregator: SensorAggregator = Depends(get_sensor_aggregator),
):
    aggregator.requeue(batch)
    return aggregator.stats()
