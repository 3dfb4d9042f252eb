"""
Pydantic schemas for appointment requests, filters and reports
"""
from datetime import date
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from autoshop.models.appointment import AppointmentStatus
from autoshop.utils.time_utils import normalize_time


# ============================================================================
# Request Schemas
# ============================================================================

class AppointmentCreate(BaseModel):
    """Booking request from the public site or staff dashboard"""
    customer_id: Optional[UUID] = None
    vehicle_id: Optional[UUID] = Field(None, description="Omitted for guest bookings")
    service_id: Optional[UUID] = None
    appointment_date: date
    appointment_time: str = Field(..., description="Slot start, HH:MM")
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None

    @field_validator("appointment_time", mode="before")
    @classmethod
    def validate_time(cls, v):
        return normalize_time(v)


class RescheduleRequest(BaseModel):
    appointment_date: date
    appointment_time: str
    reason: Optional[str] = None

    @field_validator("appointment_time", mode="before")
    @classmethod
    def validate_time(cls, v):
        return normalize_time(v)


class CancelRequest(BaseModel):
    reason: Optional[str] = None


class StatusUpdateRequest(BaseModel):
    # Checked in BookingService, unknown values raise InvalidStatus
    status: str
    notes: Optional[str] = None


class AppointmentUpdate(BaseModel):
    """
    Partial edit from the staff dashboard.

    Only fields present in the request are applied. Status has its own
    endpoint; the appointment code never changes.
    """
    customer_id: Optional[UUID] = None
    vehicle_id: Optional[UUID] = None
    service_id: Optional[UUID] = None
    appointment_date: Optional[date] = None
    appointment_time: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("appointment_time", mode="before")
    @classmethod
    def validate_time(cls, v):
        return normalize_time(v) if v is not None else v


class BulkStatusUpdateRequest(BaseModel):
    appointment_ids: List[UUID] = Field(..., min_length=1)
    # Checked in BookingService like the single-appointment update
    status: str
    notes: Optional[str] = None


class AppointmentFilters(BaseModel):
    """Filters shared by search and count"""
    customer_id: Optional[UUID] = None
    vehicle_id: Optional[UUID] = None
    service_id: Optional[UUID] = None
    status: Optional[AppointmentStatus] = None
    appointment_date: Optional[date] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    search: Optional[str] = Field(
        None,
        description="Matches customer name/phone, plate, service name or appointment code"
    )


SortField = Literal[
    "appointment_date",
    "appointment_time",
    "created_at",
    "updated_at",
    "status",
    "appointment_code",
]


class Pagination(BaseModel):
    skip: int = Field(0, ge=0)
    limit: int = Field(10, ge=1, le=100)
    order_by: Optional[SortField] = None
    order_dir: Literal["asc", "desc"] = "desc"


# ============================================================================
# Report Schemas
# ============================================================================

class StatusCount(BaseModel):
    status: str
    count: int


class ServiceCount(BaseModel):
    service_name: Optional[str]
    count: int


class AppointmentStatistics(BaseModel):
    total: int
    by_status: List[StatusCount]
    by_service: List[ServiceCount]
    today: int
    this_week: int
    this_month: int
    completion_rate: float
