# autoshop/models/customer.py
"""
Customer Model - identity is owned by the accounts system; this table
only carries the display fields used when listing appointments.
"""
from sqlalchemy import Column, String, DateTime, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from autoshop.models.base import Base


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True, index=True)
    email = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    vehicles = relationship("Vehicle", back_populates="owner")
    appointments = relationship("Appointment", back_populates="customer")

    def __repr__(self):
        return f"<Customer(id={self.id}, name={self.full_name})>"
