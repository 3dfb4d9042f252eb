# ============================================================================
# autoshop/services/scheduling/business_calendar.py
# Pure slot arithmetic - no database, no I/O
# ============================================================================
from datetime import date
from typing import List

from autoshop.schemas.scheduling import BusinessHoursConfig
from autoshop.utils.time_utils import time_to_minutes, minutes_to_time


class BusinessCalendar:
    """
    Turns the business-hours configuration into bookable slot starts.

    Slot generation is identical for every date; whether a date accepts
    bookings at all is answered separately by ``is_working_day``.
    """

    def __init__(self, hours: BusinessHoursConfig):
        self.hours = hours

    @property
    def slot_minutes(self) -> int:
        return self.hours.slot_minutes

    def generate_daily_slots(self) -> List[str]:
        """
        Ordered HH:MM slot starts for a day.

        Starts at opening time and steps by the slot granularity while
        strictly before closing time, skipping starts in [break_start, break_end).
        """
        start = time_to_minutes(self.hours.open_time)
        end = time_to_minutes(self.hours.close_time)
        break_start = time_to_minutes(self.hours.break_start)
        break_end = time_to_minutes(self.hours.break_end)

        slots = []
        for minute in range(start, end, self.hours.slot_minutes):
            if break_start <= minute < break_end:
                continue
            slots.append(minutes_to_time(minute))
        return slots

    def is_working_day(self, day: date) -> bool:
        return day.weekday() in self.hours.working_days

    def count_daily_slots(self) -> int:
        """Slots per day: (close - open - break) // granularity"""
        opening = time_to_minutes(self.hours.close_time) - time_to_minutes(self.hours.open_time)
        break_length = time_to_minutes(self.hours.break_end) - time_to_minutes(self.hours.break_start)
        return max(0, (opening - break_length) // self.hours.slot_minutes)
