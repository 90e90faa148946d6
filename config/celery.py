import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("mishatravel_backoffice")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Remove pending agencies that never uploaded the business registry document
    "expire-pending-agencies": {
        "task": "agencies.expire_pending_agencies",
        "schedule": crontab(minute=30),  # every hour at :30
    },
}

app.conf.timezone = "Europe/Rome"
