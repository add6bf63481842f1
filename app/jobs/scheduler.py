from celery.schedules import crontab

from app.core.celery_app import celery_app

celery_app.conf.beat_schedule = {
    "sweep-expired-alerts": {
        "task": "app.jobs.alert_jobs.cleanup_expired_alerts",
        "schedule": crontab(minute="*/5"),  # Every 5 minutes
        "options": {"queue": "default"},
    },
    "cleanup-expired-weather": {
        "task": "app.jobs.alert_jobs.cleanup_expired_weather",
        "schedule": crontab(minute=0),  # Hourly
        "options": {"queue": "default"},
    },
    "daily-alert-statistics": {
        "task": "app.jobs.alert_jobs.log_alert_statistics",
        "schedule": crontab(hour=1, minute=0),  # Daily at 1 AM
        "options": {"queue": "default"},
    },
}
