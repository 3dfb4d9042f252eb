"""Shared test fixtures and helpers."""

from datetime import date, datetime
from decimal import Decimal
from itertools import count
from typing import List, Optional, Tuple

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from autoshop.models import Appointment, Base, Customer, Service, Vehicle
from autoshop.schemas.scheduling import BusinessHoursConfig
from autoshop.services.appointment.appointment_store import AppointmentStore
from autoshop.services.appointment.booking_lock import LocalBookingLock
from autoshop.services.appointment.booking_service import BookingService
from autoshop.services.availability.availability_service import AvailabilityService
from autoshop.services.calendar.calendar_service import CalendarService
from autoshop.services.notification.event_publisher import EventPublisher
from autoshop.services.scheduling.business_calendar import BusinessCalendar

# Wednesday
NOW = datetime(2030, 1, 2, 9, 0)

TUESDAY = date(2030, 1, 1)
WEDNESDAY = date(2030, 1, 2)
THURSDAY = date(2030, 1, 3)
FRIDAY = date(2030, 1, 4)
SATURDAY = date(2030, 1, 5)
SUNDAY = date(2030, 1, 6)
MONDAY = date(2030, 1, 7)


_codes = count(1)


def fixed_clock() -> datetime:
    return NOW


class RecordingPublisher(EventPublisher):
    """Collects published events instead of queueing them."""

    def __init__(self):
        self.events: List[Tuple[str, str, Optional[str], Optional[str]]] = []

    def publish(self, event_type, appointment, previous_status=None, reason=None):
        self.events.append((event_type, appointment.appointment_code, previous_status, reason))

    @property
    def event_types(self) -> List[str]:
        return [event[0] for event in self.events]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def hours():
    return BusinessHoursConfig()


@pytest.fixture
def calendar(hours):
    return BusinessCalendar(hours)


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def store(db):
    return AppointmentStore(db, clock=fixed_clock)


@pytest.fixture
def availability(db, calendar):
    return AvailabilityService(db, calendar)


@pytest.fixture
def booking(store, availability, calendar, publisher):
    return BookingService(
        store,
        availability,
        calendar,
        LocalBookingLock(wait_seconds=1.0),
        publisher,
        clock=fixed_clock
    )


@pytest.fixture
def calendar_service(db, store, calendar):
    return CalendarService(db, store, calendar, clock=fixed_clock)


@pytest.fixture
def customer(db):
    customer = Customer(full_name="Nguyen Van An", phone="0901234567", email="an@example.com")
    db.add(customer)
    db.commit()
    return customer


@pytest.fixture
def vehicle(db, customer):
    vehicle = Vehicle(
        customer_id=customer.id,
        brand="Toyota",
        model="Vios",
        year=2020,
        license_plate="51A-12345"
    )
    db.add(vehicle)
    db.commit()
    return vehicle


@pytest.fixture
def oil_change(db):
    service = Service(name="Oil change", price=Decimal("350000.00"), duration_minutes=30)
    db.add(service)
    db.commit()
    return service


@pytest.fixture
def brake_service(db):
    service = Service(name="Brake inspection", price=Decimal("500000.00"), duration_minutes=60)
    db.add(service)
    db.commit()
    return service


@pytest.fixture
def diagnostics(db):
    """Service quoted after inspection: no price, no duration."""
    service = Service(name="Diagnostics")
    db.add(service)
    db.commit()
    return service


@pytest.fixture
def retired_service(db):
    service = Service(name="Engine rebuild", duration_minutes=30, is_active=False)
    db.add(service)
    db.commit()
    return service


@pytest.fixture
def other_customer(db):
    customer = Customer(full_name="Tran Thi Binh", phone="0912345678")
    db.add(customer)
    db.commit()
    return customer


def make_appointment(
    db,
    appointment_date: date,
    appointment_time: str,
    service: Optional[Service] = None,
    customer: Optional[Customer] = None,
    vehicle: Optional[Vehicle] = None,
    status: str = "pending",
    code: Optional[str] = None,
    reminder_sent: bool = False,
) -> Appointment:
    """Helper to insert an appointment directly, bypassing booking checks."""
    appointment = Appointment(
        appointment_code=code or f"TS{next(_codes):06d}",
        appointment_date=appointment_date,
        appointment_time=appointment_time,
        service_id=service.id if service else None,
        customer_id=customer.id if customer else None,
        vehicle_id=vehicle.id if vehicle else None,
        status=status,
        reminder_sent=reminder_sent,
    )
    db.add(appointment)
    db.commit()
    return appointment

