"""Tests for slot generation and working days."""

from datetime import time

import pytest
from pydantic import ValidationError

from autoshop.schemas.scheduling import BusinessHoursConfig
from autoshop.services.scheduling.business_calendar import BusinessCalendar
from autoshop.utils.time_utils import iter_dates, normalize_time

from conftest import FRIDAY, MONDAY, SATURDAY, SUNDAY, THURSDAY


class TestDailySlots:

    def test_default_hours_produce_eighteen_slots(self, calendar):
        slots = calendar.generate_daily_slots()
        assert len(slots) == 18
        assert slots[0] == "08:00"
        assert slots[-1] == "17:30"

    def test_lunch_break_is_skipped(self, calendar):
        slots = calendar.generate_daily_slots()
        assert "11:30" in slots
        assert "12:00" not in slots
        assert "12:30" not in slots
        assert "13:00" in slots

    def test_slots_are_ordered(self, calendar):
        slots = calendar.generate_daily_slots()
        assert slots == sorted(slots)

    def test_count_matches_generated(self, calendar):
        assert calendar.count_daily_slots() == len(calendar.generate_daily_slots())

    def test_hourly_granularity(self):
        calendar = BusinessCalendar(BusinessHoursConfig(slot_minutes=60))
        assert calendar.generate_daily_slots() == [
            "08:00", "09:00", "10:00", "11:00", "13:00", "14:00", "15:00", "16:00", "17:00",
        ]

    def test_no_break(self):
        calendar = BusinessCalendar(BusinessHoursConfig(
            open_time=time(9, 0),
            close_time=time(11, 0),
            break_start=time(10, 0),
            break_end=time(10, 0),
        ))
        assert calendar.generate_daily_slots() == ["09:00", "09:30", "10:00", "10:30"]


class TestWorkingDays:

    @pytest.mark.parametrize("day", [MONDAY, THURSDAY, FRIDAY, SATURDAY])
    def test_monday_to_saturday_are_working_days(self, calendar, day):
        assert calendar.is_working_day(day)

    def test_sunday_is_closed(self, calendar):
        assert not calendar.is_working_day(SUNDAY)

    def test_custom_working_days(self):
        calendar = BusinessCalendar(BusinessHoursConfig(working_days=frozenset({0, 1, 2, 3, 4})))
        assert not calendar.is_working_day(SATURDAY)
        assert calendar.is_working_day(FRIDAY)


class TestBusinessHoursConfig:

    def test_open_must_precede_close(self):
        with pytest.raises(ValidationError):
            BusinessHoursConfig(open_time=time(18, 0), close_time=time(8, 0))

    def test_break_must_be_inside_opening_hours(self):
        with pytest.raises(ValidationError):
            BusinessHoursConfig(break_start=time(7, 0), break_end=time(8, 30))

    def test_weekday_numbers_are_bounded(self):
        with pytest.raises(ValidationError):
            BusinessHoursConfig(working_days=frozenset({7}))

    def test_slot_minutes_must_be_positive(self):
        with pytest.raises(ValidationError):
            BusinessHoursConfig(slot_minutes=0)


class TestTimeUtils:

    @pytest.mark.parametrize("value,expected", [
        ("09:00", "09:00"),
        ("9:30", "09:30"),
        ("14:30:00", "14:30"),
        (time(8, 0), "08:00"),
    ])
    def test_normalize_time(self, value, expected):
        assert normalize_time(value) == expected

    @pytest.mark.parametrize("value", ["25:00", "9", "nine", "10:60", ""])
    def test_normalize_time_rejects_garbage(self, value):
        with pytest.raises(ValueError):
            normalize_time(value)

    def test_iter_dates_is_inclusive(self):
        assert list(iter_dates(THURSDAY, SATURDAY)) == [THURSDAY, FRIDAY, SATURDAY]
        assert list(iter_dates(SATURDAY, THURSDAY)) == []
