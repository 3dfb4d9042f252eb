# autoshop/schemas/task_payloads.py
from pydantic import BaseModel, Field
from typing import Optional, Literal
from datetime import date, datetime, timezone

AppointmentEventType = Literal[
    "appointment.created",
    "appointment.confirmed",
    "appointment.rescheduled",
    "appointment.cancelled",
    "appointment.status_changed",
    "appointment.reminder",
]


class AppointmentEventPayload(BaseModel):
    """Payload handed to notification workers when an appointment changes"""
    event_type: AppointmentEventType = Field(..., description="What happened")
    appointment_id: str = Field(..., description="Appointment ID")
    appointment_code: str = Field(..., description="Booking reference, e.g. LH250314042")
    appointment_date: date
    appointment_time: str = Field(..., description="Slot start, HH:MM")
    status: str
    previous_status: Optional[str] = Field(None, description="Status before a transition")
    reason: Optional[str] = Field(None, description="Cancellation or reschedule reason")
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    service_name: Optional[str] = None
    license_plate: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
