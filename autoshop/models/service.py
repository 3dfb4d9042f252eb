# autoshop/models/service.py
"""
Service Model - catalog entries that can be booked.
Duration drives how many slots an appointment occupies.
"""
from sqlalchemy import Column, String, Numeric, Integer, Boolean, DateTime, Text, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from autoshop.models.base import Base


class Service(Base):
    __tablename__ = "services"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    # Pricing (nullable - some services are quoted after inspection)
    price = Column(Numeric(12, 2), nullable=True)

    # Duration in minutes (nullable - falls back to the default slot length)
    duration_minutes = Column(Integer, nullable=True)

    is_active = Column(Boolean, default=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )

    appointments = relationship("Appointment", back_populates="service")

    def __repr__(self):
        return f"<Service(id={self.id}, name={self.name})>"
