# ============================================================================
# autoshop/services/appointment/booking_service.py
# The only writer of appointment slots: book, reschedule, cancel, status
# ============================================================================
"""Service for booking and managing appointments"""
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Union
from uuid import UUID
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from autoshop.config.settings import Settings
from autoshop.core.exceptions import (
    AppointmentNotFound,
    CustomerNotFound,
    NonWorkingDay,
    PastDateTime,
    SchedulingError,
    ServiceUnavailable,
    SlotUnavailable,
    VehicleNotFound,
    VehicleOwnerMismatch,
)
from autoshop.models.appointment import Appointment, AppointmentStatus
from autoshop.models.service import Service
from autoshop.schemas.appointment import AppointmentCreate, AppointmentUpdate
from autoshop.services.appointment.appointment_store import AppointmentStore, validate_status
from autoshop.services.appointment.booking_lock import BookingLock
from autoshop.services.availability.availability_service import AvailabilityService
from autoshop.services.notification.event_publisher import (
    APPOINTMENT_CANCELLED,
    APPOINTMENT_CONFIRMED,
    APPOINTMENT_CREATED,
    APPOINTMENT_RESCHEDULED,
    APPOINTMENT_STATUS_CHANGED,
    EventPublisher,
)
from autoshop.services.scheduling.business_calendar import BusinessCalendar
from autoshop.utils.time_utils import normalize_time, parse_time

logger = logging.getLogger(__name__)

CONFIRMED = AppointmentStatus.CONFIRMED.value

# Statuses whose slot is still ahead; a service change re-checks their slot
OPEN_STATUSES = (AppointmentStatus.PENDING.value, CONFIRMED)


class BookingService:
    """
    Validates and writes bookings.

    Every write re-derives availability under a per-date lock, so the
    availability check and the commit cannot interleave with another
    booking for the same date.
    """

    def __init__(
            self,
            store: AppointmentStore,
            availability: AvailabilityService,
            calendar: BusinessCalendar,
            lock: BookingLock,
            publisher: EventPublisher,
            clock: Callable[[], datetime] = datetime.now
    ):
        self.store = store
        self.availability = availability
        self.calendar = calendar
        self.lock = lock
        self.publisher = publisher
        self.clock = clock

    @classmethod
    def from_settings(
            cls,
            db: Session,
            settings: Settings,
            lock: BookingLock,
            publisher: EventPublisher,
            clock: Callable[[], datetime] = datetime.now
    ) -> "BookingService":
        calendar = BusinessCalendar(settings.business_hours())
        store = AppointmentStore(
            db,
            code_prefix=settings.APPOINTMENT_CODE_PREFIX,
            max_code_attempts=settings.APPOINTMENT_CODE_MAX_ATTEMPTS,
            clock=clock
        )
        availability = AvailabilityService(
            db,
            calendar,
            default_duration_minutes=settings.DEFAULT_SERVICE_DURATION_MINUTES
        )
        return cls(store, availability, calendar, lock, publisher, clock=clock)

    # ------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------

    def book(self, data: Union[AppointmentCreate, Dict[str, Any]]) -> Appointment:
        """
        Book an appointment.

        Checks, first failure wins: known customer and vehicle, vehicle owned
        by the customer, known and active service, then the slot free for the
        whole service duration (SlotUnavailable), working day (NonWorkingDay)
        and strictly in the future (PastDateTime).
        """
        if isinstance(data, dict):
            data = AppointmentCreate(**data)

        day = data.appointment_date
        slot_time = data.appointment_time

        with self.lock.hold(day):
            try:
                service = self._resolve_references(data.customer_id, data.vehicle_id, data.service_id)
                self._validate_slot(day, slot_time, self.availability.service_duration(service))
            except SchedulingError as e:
                logger.warning(f"Booking rejected for {day} {slot_time}: {e.code}")
                raise
            appointment = self.store.create(data.model_dump(exclude_none=True))

        logger.info(f"Booked appointment {appointment.appointment_code} for {day} {slot_time}")

        self.publisher.publish(APPOINTMENT_CREATED, appointment)
        if appointment.status == CONFIRMED:
            self.publisher.publish(APPOINTMENT_CONFIRMED, appointment)
        return appointment

    def reschedule(
            self,
            appointment_id: UUID,
            new_date: date,
            new_time: str,
            reason: Optional[str] = None
    ) -> Appointment:
        """
        Move an appointment to a new slot and confirm it.

        Runs the slot checks of book() and requires its service to still be
        offered; the appointment's own current slot does not count as a
        conflict.
        """
        new_time = normalize_time(new_time)
        appointment = self._get_or_raise(appointment_id)
        previous_status = appointment.status
        previous_notes = appointment.notes

        with self.lock.hold(new_date):
            try:
                service = self._resolve_service(appointment.service_id)
                self._validate_slot(
                    new_date,
                    new_time,
                    self.availability.service_duration(service),
                    exclude_appointment_id=appointment.id
                )
            except SchedulingError as e:
                logger.warning(f"Reschedule of {appointment.appointment_code} to {new_date} {new_time} "
                               f"rejected: {e.code}")
                raise

            data: Dict[str, Any] = {
                "appointment_date": new_date,
                "appointment_time": new_time,
                "status": CONFIRMED,
            }
            if reason:
                data["notes"] = self._prefix_notes(f"Rescheduled: {reason}", previous_notes)

            updated = self.store.update_by_id(appointment_id, data)

        if updated is None:
            raise AppointmentNotFound()

        logger.info(f"Rescheduled appointment {updated.appointment_code} to {new_date} {new_time}")

        self.publisher.publish(APPOINTMENT_RESCHEDULED, updated, previous_status=previous_status, reason=reason)
        if previous_status != CONFIRMED:
            self.publisher.publish(APPOINTMENT_CONFIRMED, updated, previous_status=previous_status)
        return updated

    def update(self, appointment_id: UUID, data: Union[AppointmentUpdate, Dict[str, Any]]) -> Appointment:
        """
        Apply a partial edit: customer, vehicle, service, date, time or notes.

        Changed references are validated like book(). Moving the slot, or
        changing the service of a pending/confirmed appointment, re-runs the
        slot checks against the new duration, excluding the appointment itself.
        """
        if isinstance(data, dict):
            data = AppointmentUpdate(**data)

        changes = data.model_dump(exclude_unset=True)
        # Date and time are required columns; null means "leave as is"
        for field in ("appointment_date", "appointment_time"):
            if field in changes and changes[field] is None:
                del changes[field]

        appointment = self._get_or_raise(appointment_id)
        if not changes:
            return appointment

        previous_status = appointment.status
        new_date = changes.get("appointment_date", appointment.appointment_date)
        new_time = changes.get("appointment_time", appointment.appointment_time)
        service_id = changes.get("service_id", appointment.service_id)

        moved = new_date != appointment.appointment_date or new_time != appointment.appointment_time
        resized = service_id != appointment.service_id and appointment.status in OPEN_STATUSES

        with self.lock.hold(new_date):
            try:
                service = self._resolve_references(
                    changes.get("customer_id", appointment.customer_id),
                    changes.get("vehicle_id", appointment.vehicle_id),
                    service_id,
                    require_active_service="service_id" in changes
                )
                if moved or resized:
                    self._validate_slot(
                        new_date,
                        new_time,
                        self.availability.service_duration(service),
                        exclude_appointment_id=appointment.id
                    )
            except SchedulingError as e:
                logger.warning(f"Update of {appointment.appointment_code} rejected: {e.code}")
                raise

            updated = self.store.update_by_id(appointment_id, changes)

        if updated is None:
            raise AppointmentNotFound()

        logger.info(f"Updated appointment {updated.appointment_code}: {', '.join(sorted(changes))}")
        if moved:
            self.publisher.publish(APPOINTMENT_RESCHEDULED, updated, previous_status=previous_status)
        return updated

    def cancel(self, appointment_id: UUID, reason: Optional[str] = None) -> Appointment:
        """Cancel an appointment; its slot is free again once this commits."""
        appointment = self._get_or_raise(appointment_id)
        previous_status = appointment.status

        note = f"Cancelled: {reason}" if reason else "Appointment cancelled"
        updated = self.store.update_status(
            appointment_id,
            AppointmentStatus.CANCELLED,
            self._prefix_notes(note, appointment.notes)
        )
        if updated is None:
            raise AppointmentNotFound()

        logger.info(f"Cancelled appointment {updated.appointment_code}")
        self.publisher.publish(APPOINTMENT_CANCELLED, updated, previous_status=previous_status, reason=reason)
        return updated

    def update_status(
            self,
            appointment_id: UUID,
            status: Union[str, AppointmentStatus],
            notes: Optional[str] = None
    ) -> Appointment:
        """
        Set any of the five statuses, from any status.

        Only the value is checked (InvalidStatus); transitions are not restricted.
        """
        status = validate_status(status)
        appointment = self._get_or_raise(appointment_id)
        previous_status = appointment.status

        updated = self.store.update_status(appointment_id, status, notes)
        if updated is None:
            raise AppointmentNotFound()

        logger.info(f"Appointment {updated.appointment_code} status {previous_status} -> {status}")

        self.publisher.publish(APPOINTMENT_STATUS_CHANGED, updated, previous_status=previous_status)
        if status == CONFIRMED and previous_status != CONFIRMED:
            self.publisher.publish(APPOINTMENT_CONFIRMED, updated, previous_status=previous_status)
        return updated

    def bulk_update_status(
            self,
            appointment_ids: List[UUID],
            status: Union[str, AppointmentStatus],
            notes: Optional[str] = None
    ) -> List[Appointment]:
        """
        update_status() for each id. Unknown ids and failed writes are skipped.

        An unknown status fails the whole call before anything is written.
        """
        status = validate_status(status)
        updated = []

        for appointment_id in appointment_ids:
            try:
                updated.append(self.update_status(appointment_id, status, notes))
            except AppointmentNotFound:
                logger.warning(f"Bulk status update skipped unknown appointment {appointment_id}")
            except SQLAlchemyError as e:
                logger.error(f"Bulk status update failed for appointment {appointment_id}: {e}")

        logger.info(f"Bulk status update to {status}: {len(updated)} of {len(appointment_ids)} updated")
        return updated

    # ------------------------------------------------------------------
    # Reminders
    # ------------------------------------------------------------------

    def get_appointments_for_reminder(self, hours_ahead: int = 24) -> List[Appointment]:
        """Unreminded pending/confirmed appointments dated (now + hours_ahead)"""
        target_date = (self.clock() + timedelta(hours=hours_ahead)).date()
        return self.store.list_due_for_reminder(target_date)

    def mark_reminder_sent(self, appointment_id: UUID) -> bool:
        return self.store.mark_reminder_sent(appointment_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve_references(
            self,
            customer_id: Optional[UUID],
            vehicle_id: Optional[UUID],
            service_id: Optional[UUID],
            require_active_service: bool = True
    ) -> Optional[Service]:
        """Check customer, vehicle and service ids; returns the service, if any"""
        if customer_id is not None and self.store.find_customer(customer_id) is None:
            raise CustomerNotFound(f"Customer {customer_id} not found")

        if vehicle_id is not None:
            vehicle = self.store.find_vehicle(vehicle_id)
            if vehicle is None:
                raise VehicleNotFound(f"Vehicle {vehicle_id} not found")
            # Unowned vehicles can be booked by anyone
            if customer_id is not None and vehicle.customer_id is not None and vehicle.customer_id != customer_id:
                raise VehicleOwnerMismatch()

        if service_id is None:
            return None
        if require_active_service:
            return self._resolve_service(service_id)

        service = self.store.find_service(service_id)
        if service is None:
            raise ServiceUnavailable(f"Service {service_id} not found")
        return service

    def _resolve_service(self, service_id: Optional[UUID]) -> Optional[Service]:
        """The bookable service for service_id; None when no service is attached"""
        if service_id is None:
            return None
        service = self.store.find_service(service_id)
        if service is None:
            raise ServiceUnavailable(f"Service {service_id} not found")
        if not service.is_active:
            raise ServiceUnavailable(f"Service '{service.name}' is not available")
        return service

    def _validate_slot(
            self,
            day: date,
            slot_time: str,
            duration: int,
            exclude_appointment_id: Optional[UUID] = None
    ) -> None:
        if not self.availability.is_slot_available(
                day,
                slot_time,
                duration_minutes=duration,
                exclude_appointment_id=exclude_appointment_id
        ):
            raise SlotUnavailable(f"The requested time slot {day.isoformat()} {slot_time} is not available")

        if not self.calendar.is_working_day(day):
            raise NonWorkingDay(f"{day.strftime('%A')} is not a working day")

        if datetime.combine(day, parse_time(slot_time)) <= self.clock():
            raise PastDateTime()

    def _get_or_raise(self, appointment_id: UUID) -> Appointment:
        appointment = self.store.find_by_id(appointment_id)
        if not appointment:
            raise AppointmentNotFound(f"Appointment {appointment_id} not found")
        return appointment

    @staticmethod
    def _prefix_notes(line: str, existing: Optional[str]) -> str:
        if existing:
            return f"{line}\n{existing}"
        return line
