"""
Celery worker entry point

Consumes the notifications queue (appointment events) and the appointments
queue (reminder sweep). Run beat alongside for the periodic sweep.
"""
import logging
from celery.signals import worker_ready, worker_shutdown

from autoshop.config.celery_config import celery_app
from autoshop.config.settings import get_settings
from autoshop.utils.my_logging import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


@worker_ready.connect
def worker_ready_handler(sender=None, **kwargs):
    settings = get_settings()
    appointment_tasks = sorted(name for name in celery_app.tasks if name.startswith("autoshop."))
    logger.info(f"Scheduler worker ready, tasks: {appointment_tasks}")
    logger.info(
        f"Reminders {settings.REMINDER_HOURS_AHEAD}h ahead, "
        f"sweep every {settings.REMINDER_SWEEP_MINUTES} minutes"
    )


@worker_shutdown.connect
def worker_shutdown_handler(sender=None, **kwargs):
    logger.info("Scheduler worker shutting down")


if __name__ == "__main__":
    celery_app.start([
        "worker",
        "--loglevel=info",
        "--queues=notifications,appointments",
        "--concurrency=4",
    ])
