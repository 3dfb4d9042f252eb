from typing import List, Optional, Tuple
from datetime import date, datetime, timedelta
from uuid import UUID
from sqlalchemy.orm import Session
from autoshop.models.appointment import Appointment, AppointmentStatus
from autoshop.models.service import Service
from autoshop.schemas.scheduling import TimeSlot, NextAvailableSlot
from autoshop.services.scheduling.business_calendar import BusinessCalendar
from autoshop.utils.time_utils import time_to_minutes, normalize_time, parse_time
import logging

logger = logging.getLogger(__name__)

# (appointment id, start minute, duration minutes)
BookedInterval = Tuple[UUID, int, int]


class AvailabilityService:
    """Per-slot availability for a day, read straight from the appointments table"""

    def __init__(
            self,
            db: Session,
            calendar: BusinessCalendar,
            default_duration_minutes: int = 30
    ):
        self.db = db
        self.calendar = calendar
        self.default_duration_minutes = default_duration_minutes

    def check_availability(self, day: date, slot_time: Optional[str] = None) -> List[TimeSlot]:
        """
        Mark every slot of the day as available or not.

        A slot is unavailable when its start falls inside
        [start, start + duration) of any non-cancelled appointment that day.
        When slot_time is given the result holds only that slot, or nothing
        if it is not a slot boundary.
        """
        booked = self._booked_intervals(day)
        slots = [self._build_slot(slot, booked) for slot in self.calendar.generate_daily_slots()]

        if slot_time is not None:
            wanted = normalize_time(slot_time)
            return [slot for slot in slots if slot.time == wanted]

        return slots

    def is_slot_available(
            self,
            day: date,
            slot_time: str,
            duration_minutes: Optional[int] = None,
            exclude_appointment_id: Optional[UUID] = None
    ) -> bool:
        """
        True if slot_time is a slot boundary and free.

        Without duration_minutes only the slot start is tested. With it, the
        whole range [slot_time, slot_time + duration) must not overlap any
        other non-cancelled appointment.
        """
        wanted = normalize_time(slot_time)
        if wanted not in self.calendar.generate_daily_slots():
            return False

        start = time_to_minutes(wanted)
        booked = self._booked_intervals(day, exclude_appointment_id=exclude_appointment_id)

        if duration_minutes is None:
            return self._find_conflict(start, booked) is None

        end = start + duration_minutes
        return not any(
            start < booked_start + booked_duration and booked_start < end
            for _, booked_start, booked_duration in booked
        )

    def service_duration(self, service: Optional[Service]) -> int:
        """Duration of a service, or the default when there is none"""
        if service is None or not service.duration_minutes:
            return self.default_duration_minutes
        return service.duration_minutes

    def find_next_available(
            self,
            from_date: date,
            days_ahead: int = 14,
            after: Optional[datetime] = None
    ) -> Optional[NextAvailableSlot]:
        """First free slot on a working day within days_ahead days of from_date"""
        for offset in range(days_ahead + 1):
            day = from_date + timedelta(days=offset)
            if not self.calendar.is_working_day(day):
                continue

            for slot in self.check_availability(day):
                if not slot.available:
                    continue
                if after and datetime.combine(day, parse_time(slot.time)) <= after:
                    continue
                return NextAvailableSlot(date=day, time=slot.time)

        logger.info(f"No free slot between {from_date} and {from_date + timedelta(days=days_ahead)}")
        return None

    def _booked_intervals(
            self,
            day: date,
            exclude_appointment_id: Optional[UUID] = None
    ) -> List[BookedInterval]:
        """Non-cancelled appointments on the day with their service duration"""
        query = self.db.query(
            Appointment.id,
            Appointment.appointment_time,
            Service.duration_minutes
        ).outerjoin(
            Service, Appointment.service_id == Service.id
        ).filter(
            Appointment.appointment_date == day,
            Appointment.status != AppointmentStatus.CANCELLED.value
        )

        if exclude_appointment_id is not None:
            query = query.filter(Appointment.id != exclude_appointment_id)

        rows = query.order_by(Appointment.appointment_time.asc()).all()

        return [
            (appointment_id, time_to_minutes(appointment_time), duration or self.default_duration_minutes)
            for appointment_id, appointment_time, duration in rows
        ]

    @staticmethod
    def _find_conflict(slot_minute: int, booked: List[BookedInterval]) -> Optional[BookedInterval]:
        for interval in booked:
            _, start, duration = interval
            if start <= slot_minute < start + duration:
                return interval
        return None

    def _build_slot(self, slot: str, booked: List[BookedInterval]) -> TimeSlot:
        conflict = self._find_conflict(time_to_minutes(slot), booked)
        if conflict is None:
            return TimeSlot(time=slot, available=True)

        appointment_id, _, duration = conflict
        return TimeSlot(
            time=slot,
            available=False,
            appointment_id=appointment_id,
            service_duration=duration
        )
