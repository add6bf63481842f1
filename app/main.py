import asyncio
import logging
import time

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.router import api_router
from app.core.config import settings
from app.core.exceptions import DomainError
from app.services.sensor_aggregator import SensorAggregator, SensorRegistry

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    aggregator = SensorAggregator(
        SensorRegistry(),
        interval_seconds=settings.SENSOR_AGGREGATION_INTERVAL_SECONDS,
        history_size=settings.SENSOR_HISTORY_SIZE,
        read_timeout_seconds=settings.SENSOR_READ_TIMEOUT_SECONDS,
    )
    app.state.sensor_aggregator = aggregator

    task = None
    if settings.SENSOR_AGGREGATION_ENABLED:
        task = asyncio.create_task(aggregator.run())

    yield

    if task is not None:
        aggregator.stop()
        await task


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.middleware("http")
async def middleware(request: Request, call_next):
    start_time = time.perf_counter()
    response = await call_next(request)
    process_time = time.perf_counter() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error_code": exc.error_code},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"unhandled error on {request.url.path}: {str(exc)}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "error_code": "INTERNAL_SERVER_ERROR"},
    )


@app.get("/")
async def root():
    return {"message": f"Welcome to the {settings.APP_NAME} API"}
