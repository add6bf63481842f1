import logging

from celery import shared_task

from app.core.config import settings
from app.db.connection import SessionLocal
from app.services.alert_service import alert_service
from app.services.weather_service import weather_service

logger = logging.getLogger(__name__)


@shared_task
def cleanup_expired_alerts():
    """
    Move every ACTIVE alert past its expiry to EXPIRED.
    Reads expire overdue alerts lazily as well, this sweep keeps
    queries and statistics from seeing stale ACTIVE rows.
    """
    db = SessionLocal()
    try:
        result = alert_service.cleanup_expired(db)

        logger.info(f"Expired {result.expired_count} overdue alerts")
        return {"status": "success", "expired_count": result.expired_count}

    except Exception as e:
        logger.error(f"Error sweeping expired alerts: {str(e)}")
        return {"status": "error", "message": str(e)}
    finally:
        db.close()


@shared_task
def cleanup_expired_weather():
    """Delete weather snapshots whose validity window has passed"""
    db = SessionLocal()
    try:
        deleted_count = weather_service.cleanup_expired(db)

        logger.info(f"Deleted {deleted_count} expired weather snapshots")
        return {"status": "success", "deleted_count": deleted_count}

    except Exception as e:
        logger.error(f"Error cleaning up weather snapshots: {str(e)}")
        return {"status": "error", "message": str(e)}
    finally:
        db.close()


@shared_task
def log_alert_statistics():
    """Daily summary of alert activity over the statistics window"""
    db = SessionLocal()
    try:
        stats = alert_service.stats(db, settings.ALERT_STATS_WINDOW_DAYS)

        logger.info(
            f"Alert statistics for the last {stats.window_days} days: "
            f"{stats.total_alerts} alerts, resolution rate {stats.resolution_rate}%, "
            f"average response {stats.avg_response_time_s}s"
        )
        return {"status": "success", "statistics": stats.model_dump()}

    except Exception as e:
        logger.error(f"Error generating alert statistics: {str(e)}")
        return {"status": "error", "message": str(e)}
    finally:
        db.close()
