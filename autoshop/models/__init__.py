# autoshop/models/__init__.py
from .base import Base
from .customer import Customer
from .vehicle import Vehicle
from .service import Service
from .appointment import Appointment, AppointmentStatus, REMINDABLE_STATUSES

__all__ = [
    "Base",
    "Customer",
    "Vehicle",
    "Service",
    "Appointment",
    "AppointmentStatus",
    "REMINDABLE_STATUSES",
]
