# autoshop/models/appointment.py
from sqlalchemy import Column, String, Text, Date, DateTime, Boolean, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
import uuid

from autoshop.models.base import Base


class AppointmentStatus(str, enum.Enum):
    """Appointment lifecycle states."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def values(cls):
        return [status.value for status in cls]


# Statuses eligible for a reminder
REMINDABLE_STATUSES = [AppointmentStatus.PENDING.value, AppointmentStatus.CONFIRMED.value]


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("idx_appointments_date_status", "appointment_date", "status"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    appointment_code = Column(String(20), nullable=False, unique=True, index=True)  # LHYYMMDDNNN

    # References (vehicle is optional for guest bookings)
    customer_id = Column(Uuid(as_uuid=True), ForeignKey("customers.id"), nullable=True, index=True)
    vehicle_id = Column(Uuid(as_uuid=True), ForeignKey("vehicles.id"), nullable=True)
    service_id = Column(Uuid(as_uuid=True), ForeignKey("services.id"), nullable=True)

    # Slot
    appointment_date = Column(Date, nullable=False)
    appointment_time = Column(String(5), nullable=False)  # HH:MM format

    status = Column(String(20), nullable=False, default=AppointmentStatus.PENDING.value)
    notes = Column(Text, nullable=True)
    reminder_sent = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    customer = relationship("Customer", back_populates="appointments")
    vehicle = relationship("Vehicle", back_populates="appointments")
    service = relationship("Service", back_populates="appointments")

    def __repr__(self):
        return f"<Appointment(code={self.appointment_code}, date={self.appointment_date}, time={self.appointment_time})>"

    @property
    def is_active(self) -> bool:
        return self.status != AppointmentStatus.CANCELLED.value

    def to_dict(self):
        """Convert to dictionary with customer, vehicle and service display fields"""
        customer = self.customer
        vehicle = self.vehicle
        service = self.service

        return {
            "id": str(self.id),
            "appointment_code": self.appointment_code,
            "customer_id": str(self.customer_id) if self.customer_id else None,
            "vehicle_id": str(self.vehicle_id) if self.vehicle_id else None,
            "service_id": str(self.service_id) if self.service_id else None,
            "appointment_date": self.appointment_date.isoformat(),
            "appointment_time": self.appointment_time,
            "status": self.status,
            "notes": self.notes,
            "reminder_sent": bool(self.reminder_sent),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            # Joined fields
            "customer_name": customer.full_name if customer else None,
            "customer_phone": customer.phone if customer else None,
            "customer_email": customer.email if customer else None,
            "service_name": service.name if service else None,
            "service_duration": service.duration_minutes if service else None,
            "service_price": float(service.price) if service and service.price is not None else None,
            "vehicle_info": vehicle.display_name if vehicle else None,
            "license_plate": vehicle.license_plate if vehicle else None,
        }
