# ============================================================================
# FILE: autoshop/api/dependencies.py
# Service wiring for the HTTP layer
# ============================================================================
from datetime import datetime
from typing import Callable

from fastapi import Depends
from sqlalchemy.orm import Session

from autoshop.config.celery_config import celery_app
from autoshop.config.database import get_db
from autoshop.config.settings import Settings, get_settings
from autoshop.services.appointment.appointment_store import AppointmentStore
from autoshop.services.appointment.booking_lock import BookingLock, get_booking_lock
from autoshop.services.appointment.booking_service import BookingService
from autoshop.services.availability.availability_service import AvailabilityService
from autoshop.services.calendar.calendar_service import CalendarService
from autoshop.services.notification.event_publisher import CeleryEventPublisher, EventPublisher
from autoshop.services.scheduling.business_calendar import BusinessCalendar


def get_clock() -> Callable[[], datetime]:
    """Shop-local wall clock"""
    return datetime.now


def get_event_publisher() -> EventPublisher:
    return CeleryEventPublisher(celery_app)


def get_lock(settings: Settings = Depends(get_settings)) -> BookingLock:
    return get_booking_lock(settings)


def get_business_calendar(settings: Settings = Depends(get_settings)) -> BusinessCalendar:
    return BusinessCalendar(settings.business_hours())


def get_appointment_store(
        db: Session = Depends(get_db),
        settings: Settings = Depends(get_settings),
        clock: Callable[[], datetime] = Depends(get_clock)
) -> AppointmentStore:
    return AppointmentStore(
        db,
        code_prefix=settings.APPOINTMENT_CODE_PREFIX,
        max_code_attempts=settings.APPOINTMENT_CODE_MAX_ATTEMPTS,
        clock=clock
    )


def get_availability_service(
        db: Session = Depends(get_db),
        calendar: BusinessCalendar = Depends(get_business_calendar),
        settings: Settings = Depends(get_settings)
) -> AvailabilityService:
    return AvailabilityService(
        db,
        calendar,
        default_duration_minutes=settings.DEFAULT_SERVICE_DURATION_MINUTES
    )


def get_booking_service(
        store: AppointmentStore = Depends(get_appointment_store),
        availability: AvailabilityService = Depends(get_availability_service),
        calendar: BusinessCalendar = Depends(get_business_calendar),
        lock: BookingLock = Depends(get_lock),
        publisher: EventPublisher = Depends(get_event_publisher),
        clock: Callable[[], datetime] = Depends(get_clock)
) -> BookingService:
    return BookingService(store, availability, calendar, lock, publisher, clock=clock)


def get_calendar_service(
        db: Session = Depends(get_db),
        store: AppointmentStore = Depends(get_appointment_store),
        calendar: BusinessCalendar = Depends(get_business_calendar),
        clock: Callable[[], datetime] = Depends(get_clock)
) -> CalendarService:
    return CalendarService(db, store, calendar, clock=clock)
