"""
Celery app and scheduled jobs.

Run the worker with beat to get the daily inventory sweep:

    celery -A tasks worker --beat
"""
import logging

from celery import Celery
from celery.schedules import crontab

import config
from database import DocumentStore
from services import inventory_monitor

logger = logging.getLogger(__name__)

celery_app = Celery("backoffice", broker=config.CELERY_BROKER_URL)
celery_app.conf.timezone = config.MONITORING_TIMEZONE
celery_app.conf.beat_schedule = {
    "check-inventory-update-frequency": {
        "task": "tasks.check_inventory_update_frequency",
        "schedule": crontab(hour=config.MONITORING_HOUR, minute=config.MONITORING_MINUTE),
    },
}


@celery_app.task(name="tasks.check_inventory_update_frequency")
def check_inventory_update_frequency():
    """
    Daily sweep for inventory items overdue for a count.

    Sends one summary email when anything is outdated. Rerunning it only
    sends the summary again.
    """
    try:
        outdated = inventory_monitor(DocumentStore.from_env()).check_outdated_items()
    except Exception as exc:
        logger.error(f"Error in check_inventory_update_frequency: {exc}")
        raise
    return {"status": "completed", "outdated": len(outdated)}
