# ===== autoshop/tasks/appointment_tasks.py =====
from typing import Any, Dict, Optional
import logging

from pydantic import ValidationError

from autoshop.config.celery_config import celery_app
from autoshop.config.database import SessionLocal
from autoshop.config.settings import get_settings
from autoshop.schemas.task_payloads import AppointmentEventPayload
from autoshop.services.appointment.booking_lock import get_booking_lock
from autoshop.services.appointment.booking_service import BookingService
from autoshop.services.notification.event_publisher import (
    APPOINTMENT_REMINDER,
    CeleryEventPublisher,
    EventPublisher,
)

logger = logging.getLogger(__name__)


@celery_app.task
def dispatch_appointment_event(payload: Dict[str, Any]):
    """
    Hand-off point to the external notification service.

    Validates the event and records it with the fields email/push delivery
    needs. Delivery itself happens outside this system; a malformed payload
    is dropped, not retried.
    """
    try:
        event = AppointmentEventPayload(**payload)
    except ValidationError as e:
        logger.error(f"Dropping malformed appointment event: {e}")
        return {"status": "failed", "reason": "invalid_payload"}

    logger.info(
        f"Dispatching {event.event_type} for appointment {event.appointment_code}",
        extra={
            "event_type": event.event_type,
            "appointment_id": event.appointment_id,
            "customer_email": event.customer_email,
        }
    )
    return {"status": "dispatched", "event_type": event.event_type, "appointment_id": event.appointment_id}


def queue_due_reminders(
        service: BookingService,
        publisher: EventPublisher,
        hours_ahead: int
) -> int:
    """Publish a reminder for every due appointment and flag it as reminded"""
    due = service.get_appointments_for_reminder(hours_ahead)

    for appointment in due:
        publisher.publish(APPOINTMENT_REMINDER, appointment)
        service.mark_reminder_sent(appointment.id)

    if due:
        logger.info(f"Queued {len(due)} appointment reminders")
    return len(due)


@celery_app.task(bind=True, max_retries=3)
def send_appointment_reminders(self, hours_ahead: Optional[int] = None):
    """Periodic sweep for appointments due a reminder"""
    settings = get_settings()
    db = SessionLocal()
    try:
        publisher = CeleryEventPublisher(celery_app)
        service = BookingService.from_settings(
            db,
            settings,
            lock=get_booking_lock(settings),
            publisher=publisher
        )
        count = queue_due_reminders(service, publisher, hours_ahead or settings.REMINDER_HOURS_AHEAD)
        return {"status": "success", "reminders_queued": count}

    except Exception as exc:
        logger.error(f"Reminder sweep failed: {exc}")
        raise self.retry(exc=exc, countdown=60 * (2 ** self.request.retries))

    finally:
        db.close()
