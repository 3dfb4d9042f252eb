# ============================================================================
# autoshop/services/notification/event_publisher.py
# Fire-and-forget appointment events for email/push workers
# ============================================================================
from abc import ABC, abstractmethod
from typing import Optional
import logging

from autoshop.models.appointment import Appointment
from autoshop.schemas.task_payloads import AppointmentEventPayload

logger = logging.getLogger(__name__)

APPOINTMENT_CREATED = "appointment.created"
APPOINTMENT_CONFIRMED = "appointment.confirmed"
APPOINTMENT_RESCHEDULED = "appointment.rescheduled"
APPOINTMENT_CANCELLED = "appointment.cancelled"
APPOINTMENT_STATUS_CHANGED = "appointment.status_changed"
APPOINTMENT_REMINDER = "appointment.reminder"

DISPATCH_TASK = "autoshop.tasks.appointment_tasks.dispatch_appointment_event"


def build_event_payload(
        event_type: str,
        appointment: Appointment,
        previous_status: Optional[str] = None,
        reason: Optional[str] = None
) -> AppointmentEventPayload:
    details = appointment.to_dict()
    return AppointmentEventPayload(
        event_type=event_type,
        appointment_id=details["id"],
        appointment_code=details["appointment_code"],
        appointment_date=appointment.appointment_date,
        appointment_time=details["appointment_time"],
        status=details["status"],
        previous_status=previous_status,
        reason=reason,
        customer_id=details["customer_id"],
        customer_name=details["customer_name"],
        customer_email=details["customer_email"],
        customer_phone=details["customer_phone"],
        service_name=details["service_name"],
        license_plate=details["license_plate"],
    )


class EventPublisher(ABC):
    """Publishes appointment events. Implementations must never raise."""

    @abstractmethod
    def publish(
            self,
            event_type: str,
            appointment: Appointment,
            previous_status: Optional[str] = None,
            reason: Optional[str] = None
    ) -> None:
        ...


class CeleryEventPublisher(EventPublisher):
    """Queues events on the notifications queue"""

    def __init__(self, celery_app):
        self.celery_app = celery_app

    def publish(
            self,
            event_type: str,
            appointment: Appointment,
            previous_status: Optional[str] = None,
            reason: Optional[str] = None
    ) -> None:
        try:
            payload = build_event_payload(event_type, appointment, previous_status, reason)
            self.celery_app.send_task(DISPATCH_TASK, args=[payload.model_dump(mode="json")])
            logger.info(f"Queued {event_type} for appointment {appointment.appointment_code}")
        except Exception as e:
            # Booking already committed; a lost notification must not fail the request
            logger.error(f"Failed to queue {event_type} for appointment {appointment.appointment_code}: {e}")
