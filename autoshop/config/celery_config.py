# autoshop/config/celery_config.py
"""Celery app for appointment notifications and the reminder sweep"""
from datetime import timedelta

from celery import Celery
from kombu import Queue

from autoshop.config.settings import get_settings

settings = get_settings()

NOTIFICATIONS_QUEUE = "notifications"
APPOINTMENTS_QUEUE = "appointments"


def create_celery_app() -> Celery:
    """Create and configure Celery application"""

    celery_app = Celery(
        "autoshop_scheduler",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
    )

    celery_app.conf.update(
        task_serializer=settings.CELERY_TASK_SERIALIZER,
        accept_content=["json"],
        result_serializer="json",
        # Appointment dates and times are shop-local; only broker timestamps are UTC
        timezone="UTC",
        enable_utc=True,

        # Event fan-out and the sweep never share a worker slot
        task_routes={
            "autoshop.tasks.appointment_tasks.dispatch_appointment_event": {"queue": NOTIFICATIONS_QUEUE},
            "autoshop.tasks.appointment_tasks.send_appointment_reminders": {"queue": APPOINTMENTS_QUEUE},
        },
        task_queues=(
            Queue(NOTIFICATIONS_QUEUE, routing_key=NOTIFICATIONS_QUEUE),
            Queue(APPOINTMENTS_QUEUE, routing_key=APPOINTMENTS_QUEUE),
        ),
        task_default_queue=NOTIFICATIONS_QUEUE,

        beat_schedule={
            "send-appointment-reminders": {
                "task": "autoshop.tasks.appointment_tasks.send_appointment_reminders",
                "schedule": timedelta(minutes=settings.REMINDER_SWEEP_MINUTES),
            },
        },

        # A sweep must finish before the next one is due
        task_soft_time_limit=settings.REMINDER_SWEEP_MINUTES * 60 // 2,
        result_expires=timedelta(days=1),

        worker_prefetch_multiplier=1,
        task_acks_late=True,
        broker_connection_retry_on_startup=True,
    )

    celery_app.autodiscover_tasks(["autoshop.tasks"], related_name="appointment_tasks")

    return celery_app


celery_app = create_celery_app()
