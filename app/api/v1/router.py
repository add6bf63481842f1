from fastapi import APIRouter
from app.api.v1.endpoints import (
    alerts,
    analytics,
    audit_trail,
    geo,
    sensors,
    users,
    weather,
)

api_router = APIRouter()

api_router.include_router(alerts.router, prefix="/alerts", tags=["Alerts"])
api_router.include_router(weather.router, prefix="/weather", tags=["Weather"])
api_router.include_router(sensors.router, prefix="/sensors", tags=["Sensors"])
api_router.include_router(analytics.router, prefix="/analytics", tags=["Analytics"])
api_router.include_router(geo.router, prefix="/geo", tags=["Geo"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(audit_trail.router, prefix="/audit", tags=["Audit Trails"])
