# autoshop/models/vehicle.py
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from autoshop.models.base import Base


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id = Column(Uuid(as_uuid=True), ForeignKey("customers.id"), nullable=True, index=True)

    brand = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    year = Column(Integer, nullable=True)
    license_plate = Column(String(20), nullable=False, unique=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    owner = relationship("Customer", back_populates="vehicles")
    appointments = relationship("Appointment", back_populates="vehicle")

    def __repr__(self):
        return f"<Vehicle(plate={self.license_plate})>"

    @property
    def display_name(self) -> str:
        """e.g. "Toyota Vios (2020)" """
        if self.year:
            return f"{self.brand} {self.model} ({self.year})"
        return f"{self.brand} {self.model}"
