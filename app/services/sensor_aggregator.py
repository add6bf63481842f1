"""Periodic collection and aggregation of on-board sensor readings.

Sources are read concurrently once per cycle. A source that raises or
times out is reported in the batch's ``failed_sensors`` and never aborts
the cycle; the batch is built only after every read has settled.
"""

import asyncio
import logging
import uuid

from collections import deque
from typing import (
    Any,
    Awaitable,
    Callable,
    Deque,
    Dict,
    Iterator,
    List,
    Optional,
    Protocol,
    runtime_checkable,
)

from app.core.exceptions import TransientSourceError, ValidationError
from app.schemas.sensor import (
    AggregationBatch,
    AggregatorStats,
    Anomaly,
    FailedSensor,
    PositionSummary,
    SensorReading,
    SensorType,
    TypeSummary,
)
from app.utils.clock import utc_now

logger = logging.getLogger(__name__)
LOG_MSG = "Service:"

HIGH_TEMPERATURE_C = 35.0
LOW_TEMPERATURE_C = 10.0
SAFE_PH_RANGE = (6.5, 8.5)


@runtime_checkable
class SensorSource(Protocol):
    sensor_id: str
    sensor_type: SensorType

    async def read(self) -> SensorReading: ...


class CallableSensorSource:
    """Adapts an async callable into a sensor source.

    The callable may return a ``SensorReading``, a dict of reading fields,
    or a bare number for temperature and pH sensors.
    """

    def __init__(
        self,
        sensor_id: str,
        sensor_type: SensorType,
        reader: Callable[[], Awaitable[Any]],
    ):
        self.sensor_id = sensor_id
        self.sensor_type = SensorType(sensor_type)
        self._reader = reader

    async def read(self) -> SensorReading:
        raw = await self._reader()

        if isinstance(raw, SensorReading):
            raw = raw.model_dump()
        if isinstance(raw, dict):
            # the registered identity wins over whatever the reader reports
            return SensorReading(
                **{**raw, "sensor_id": self.sensor_id, "sensor_type": self.sensor_type}
            )
        return SensorReading(
            sensor_id=self.sensor_id,
            sensor_type=self.sensor_type,
            value=float(raw),
            timestamp=utc_now(),
        )


class SensorRegistry:
    """Sensor sources keyed by id, owned by whoever builds the aggregator"""

    def __init__(self):
        self._sources: Dict[str, SensorSource] = {}

    def register(self, source: SensorSource) -> None:
        if not source.sensor_id:
            raise ValidationError("sensor id is required")
        if source.sensor_id in self._sources:
            logger.warning(f"{LOG_MSG} replacing sensor {source.sensor_id}")
        self._sources[source.sensor_id] = source
        logger.info(f"{LOG_MSG} sensor registered: {source.sensor_id}")

    def unregister(self, sensor_id: str) -> bool:
        removed = self._sources.pop(sensor_id, None)
        if removed is not None:
            logger.info(f"{LOG_MSG} sensor unregistered: {sensor_id}")
        return removed is not None

    def get(self, sensor_id: str) -> Optional[SensorSource]:
        return self._sources.get(sensor_id)

    def __contains__(self, sensor_id: str) -> bool:
        return sensor_id in self._sources

    def __iter__(self) -> Iterator[SensorSource]:
        # snapshot, so registration during a cycle is safe
        return iter(list(self._sources.values()))

    def __len__(self) -> int:
        return len(self._sources)


def water_quality(ph: float) -> str:
    if 7.0 <= ph <= 8.0:
        return "excellent"
    if 6.5 <= ph <= 8.5:
        return "good"
    if 6.0 <= ph <= 9.0:
        return "fair"
    return "poor"


def detect_anomalies(readings: List[SensorReading]) -> List[Anomaly]:
    anomalies = []

    for reading in readings:
        if reading.sensor_type == SensorType.TEMPERATURE:
            if reading.value > HIGH_TEMPERATURE_C:
                anomalies.append(
                    Anomaly(
                        sensor_id=reading.sensor_id,
                        type="HIGH_TEMPERATURE",
                        value=reading.value,
                        threshold=str(HIGH_TEMPERATURE_C),
                        severity="high",
                    )
                )
            elif reading.value < LOW_TEMPERATURE_C:
                anomalies.append(
                    Anomaly(
                        sensor_id=reading.sensor_id,
                        type="LOW_TEMPERATURE",
                        value=reading.value,
                        threshold=str(LOW_TEMPERATURE_C),
                        severity="high",
                    )
                )
        elif reading.sensor_type == SensorType.PH:
            if not SAFE_PH_RANGE[0] <= reading.value <= SAFE_PH_RANGE[1]:
                anomalies.append(
                    Anomaly(
                        sensor_id=reading.sensor_id,
                        type="UNSAFE_PH",
                        value=reading.value,
                        threshold=f"{SAFE_PH_RANGE[0]}-{SAFE_PH_RANGE[1]}",
                        severity="medium",
                    )
                )

    return anomalies


def summarize(readings: List[SensorReading]) -> Dict[SensorType, TypeSummary]:
    grouped: Dict[SensorType, List[SensorReading]] = {}
    for reading in readings:
        grouped.setdefault(reading.sensor_type, []).append(reading)

    summary = {}
    for sensor_type, group in grouped.items():
        if sensor_type == SensorType.POSITION:
            # readings without a timestamp keep registration order
            latest = group[-1]
            stamped = [r for r in group if r.timestamp is not None]
            if stamped:
                latest = max(stamped, key=lambda r: r.timestamp)
            summary[sensor_type] = TypeSummary(
                sensor_count=len(group),
                position=PositionSummary(
                    latitude=latest.latitude,
                    longitude=latest.longitude,
                    accuracy_m=latest.accuracy_m,
                    speed_kmh=latest.speed_kmh,
                    heading=latest.heading,
                    timestamp=latest.timestamp,
                ),
            )
            continue

        values = [r.value for r in group]
        average = sum(values) / len(values)
        summary[sensor_type] = TypeSummary(
            average=round(average, 2),
            min=min(values),
            max=max(values),
            sensor_count=len(values),
            water_quality=water_quality(average) if sensor_type == SensorType.PH else None,
        )

    return summary


class SensorAggregator:
    def __init__(
        self,
        registry: SensorRegistry,
        interval_seconds: float = 60,
        history_size: int = 50,
        read_timeout_seconds: float = 10,
    ):
        if history_size < 1:
            raise ValidationError("history size must be at least 1")
        if interval_seconds <= 0 or read_timeout_seconds <= 0:
            raise ValidationError("interval and read timeout must be positive")

        self.registry = registry
        self.interval_seconds = interval_seconds
        self.read_timeout_seconds = read_timeout_seconds
        self._history: Deque[AggregationBatch] = deque(maxlen=history_size)
        self._queue: Deque[AggregationBatch] = deque(maxlen=history_size)
        self._stop_event: Optional[asyncio.Event] = None
        self._running = False

    async def _read_source(self, source: SensorSource) -> SensorReading:
        try:
            reading = await asyncio.wait_for(
                source.read(), timeout=self.read_timeout_seconds
            )
        except asyncio.TimeoutError:
            raise TransientSourceError(
                f"read timed out after {self.read_timeout_seconds}s",
                source_id=source.sensor_id,
            )
        except TransientSourceError:
            raise
        except Exception as e:
            raise TransientSourceError(
                str(e) or e.__class__.__name__, source_id=source.sensor_id
            ) from e

        if not isinstance(reading, SensorReading):
            raise TransientSourceError(
                "source returned no reading", source_id=source.sensor_id
            )
        return reading

    async def collect_and_aggregate(self) -> Optional[AggregationBatch]:
        """Run one collection cycle; returns None when no sources are registered"""
        sources = list(self.registry)
        if not sources:
            logger.debug(f"{LOG_MSG} no sensors registered, skipping cycle")
            return None

        results = await asyncio.gather(
            *(self._read_source(source) for source in sources),
            return_exceptions=True,
        )

        readings = []
        failures = []
        for source, result in zip(sources, results):
            if isinstance(result, BaseException):
                message = getattr(result, "message", None) or str(result)
                logger.warning(
                    f"{LOG_MSG} failed to read from sensor {source.sensor_id}: {message}"
                )
                failures.append(FailedSensor(sensor_id=source.sensor_id, error=message))
            else:
                readings.append(result)

        batch = AggregationBatch(
            batch_id=str(uuid.uuid4()),
            timestamp=utc_now(),
            total_sensors=len(sources),
            successful_readings=len(readings),
            failed_readings=len(failures),
            success_rate=round(len(readings) / len(sources) * 100, 2),
            summary=summarize(readings),
            anomalies=detect_anomalies(readings),
            failed_sensors=failures,
        )

        self._history.append(batch)
        self._queue.append(batch)

        logger.info(
            f"{LOG_MSG} aggregated {len(readings)}/{len(sources)} sensor readings "
            f"into batch {batch.batch_id} with {len(batch.anomalies)} anomalies"
        )
        return batch

    def next_transmission_batch(self) -> Optional[AggregationBatch]:
        """Pop the oldest queued batch; it is gone from the queue once returned"""
        if not self._queue:
            return None
        return self._queue.popleft()

    def requeue(self, batch: AggregationBatch) -> bool:
        """Put a batch back at the front after a failed transmission"""
        if len(self._queue) == self._queue.maxlen:
            logger.warning(
                f"{LOG_MSG} transmission queue full, dropping batch {batch.batch_id}"
            )
            return False
        self._queue.appendleft(batch)
        return True

    def history(self) -> List[AggregationBatch]:
        return list(self._history)

    def stats(self) -> AggregatorStats:
        return AggregatorStats(
            total_batches=len(self._history),
            queued_transmissions=len(self._queue),
            registered_sensors=len(self.registry),
            last_aggregation=self._history[-1].timestamp if self._history else None,
            running=self._running,
        )

    async def run(self) -> None:
        """Collect every ``interval_seconds`` until ``stop()`` is called"""
        self._stop_event = asyncio.Event()
        self._running = True
        logger.info(
            f"{LOG_MSG} starting sensor aggregation every {self.interval_seconds}s"
        )

        try:
            while not self._stop_event.is_set():
                try:
                    await self.collect_and_aggregate()
                except Exception as e:
                    logger.error(f"{LOG_MSG} aggregation cycle failed: {str(e)}")

                try:
                    await asyncio.wait_for(
                        self._stop_event.wait(), timeout=self.interval_seconds
                    )
                except asyncio.TimeoutError:
                    pass
        finally:
            self._running = False
            logger.info(f"{LOG_MSG} sensor aggregation stopped")

    def stop(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()
