"""
Scheduling error hierarchy.

Every error carries a stable machine-readable ``code``; ``status_code`` is the
HTTP status the API layer answers with.
"""
from typing import Optional


class SchedulingError(Exception):
    """Base class for booking and scheduling failures."""

    code = "scheduling_error"
    status_code = 400
    default_message = "Scheduling request failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {"detail": self.message, "code": self.code}


class AppointmentNotFound(SchedulingError):
    code = "appointment_not_found"
    status_code = 404
    default_message = "Appointment not found"


class SlotUnavailable(SchedulingError):
    code = "slot_unavailable"
    status_code = 409
    default_message = "The requested time slot is not available"


class NonWorkingDay(SchedulingError):
    code = "non_working_day"
    status_code = 422
    default_message = "Appointments can only be booked on working days"


class PastDateTime(SchedulingError):
    code = "past_date_time"
    status_code = 422
    default_message = "Appointments can only be booked for future dates"


class InvalidStatus(SchedulingError):
    code = "invalid_status"
    status_code = 422
    default_message = "Unknown appointment status"


class CodeGenerationExhausted(SchedulingError):
    code = "code_generation_exhausted"
    status_code = 503
    default_message = "Could not generate a unique appointment code"


class BookingLockTimeout(SchedulingError):
    code = "booking_lock_timeout"
    status_code = 503
    default_message = "Another booking for this date is in progress, please retry"


class ServiceUnavailable(SchedulingError):
    code = "service_unavailable"
    status_code = 422
    default_message = "Service not found or no longer offered"


class CustomerNotFound(SchedulingError):
    code = "customer_not_found"
    status_code = 422
    default_message = "Customer not found"


class VehicleNotFound(SchedulingError):
    code = "vehicle_not_found"
    status_code = 422
    default_message = "Vehicle not found"


class VehicleOwnerMismatch(SchedulingError):
    code = "vehicle_owner_mismatch"
    status_code = 422
    default_message = "Vehicle does not belong to the specified customer"
