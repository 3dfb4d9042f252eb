"""
Pydantic schemas for business hours and derived calendar values
"""
from datetime import date as date_type, time
from typing import Any, Dict, FrozenSet, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


class BusinessHoursConfig(BaseModel):
    """Opening hours, lunch break and slot granularity for the shop"""
    model_config = ConfigDict(frozen=True)

    open_time: time = time(8, 0)
    close_time: time = time(18, 0)
    break_start: time = time(12, 0)
    break_end: time = time(13, 0)
    slot_minutes: int = Field(30, gt=0, description="Slot granularity in minutes")
    working_days: FrozenSet[int] = Field(
        default=frozenset({0, 1, 2, 3, 4, 5}),
        description="Weekday numbers accepting appointments (0=Monday, 6=Sunday)"
    )

    @model_validator(mode="after")
    def validate_hours(self):
        if self.open_time >= self.close_time:
            raise ValueError("open_time must be before close_time")
        if self.break_start > self.break_end:
            raise ValueError("break_start must not be after break_end")
        if self.break_start < self.open_time or self.break_end > self.close_time:
            raise ValueError("break must fall inside opening hours")
        if any(day < 0 or day > 6 for day in self.working_days):
            raise ValueError("working_days must be weekday numbers between 0 and 6")
        return self


class TimeSlot(BaseModel):
    """A bookable slot start on a given day"""
    time: str = Field(..., description="Slot start, HH:MM")
    available: bool
    appointment_id: Optional[UUID] = Field(None, description="Appointment occupying the slot")
    service_duration: Optional[int] = Field(None, description="Duration of the occupying appointment")


class NextAvailableSlot(BaseModel):
    date: date_type
    time: str


class CalendarDay(BaseModel):
    """One day of the calendar view"""
    date: date_type
    appointments: List[Dict[str, Any]] = Field(default_factory=list)
    total_appointments: int = 0
    available_slots: int = 0
