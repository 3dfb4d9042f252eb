"""Tests for per-slot availability."""

from datetime import datetime

from autoshop.services.availability.availability_service import AvailabilityService

from conftest import FRIDAY, MONDAY, NOW, SUNDAY, THURSDAY, WEDNESDAY, make_appointment


def slot_map(slots):
    return {slot.time: slot for slot in slots}


class TestCheckAvailability:

    def test_empty_day_is_fully_available(self, availability):
        slots = availability.check_availability(THURSDAY)
        assert len(slots) == 18
        assert all(slot.available for slot in slots)

    def test_long_service_blocks_following_slots(self, db, availability, brake_service):
        appointment = make_appointment(db, THURSDAY, "09:00", service=brake_service)

        slots = slot_map(availability.check_availability(THURSDAY))

        assert not slots["09:00"].available
        assert not slots["09:30"].available
        assert slots["09:30"].appointment_id == appointment.id
        assert slots["09:30"].service_duration == 60
        assert slots["10:00"].available
        assert slots["08:30"].available

    def test_service_without_duration_uses_default(self, db, availability, diagnostics):
        make_appointment(db, THURSDAY, "10:00", service=diagnostics)

        slots = slot_map(availability.check_availability(THURSDAY))

        assert not slots["10:00"].available
        assert slots["10:00"].service_duration == 30
        assert slots["10:30"].available

    def test_cancelled_appointments_free_their_slot(self, db, availability, oil_change):
        make_appointment(db, THURSDAY, "09:00", service=oil_change, status="cancelled")

        slots = slot_map(availability.check_availability(THURSDAY))

        assert slots["09:00"].available

    def test_other_days_do_not_interfere(self, db, availability, oil_change):
        make_appointment(db, FRIDAY, "09:00", service=oil_change)

        assert slot_map(availability.check_availability(THURSDAY))["09:00"].available

    def test_single_slot_query(self, db, availability, oil_change):
        make_appointment(db, THURSDAY, "09:30", service=oil_change)

        slots = availability.check_availability(THURSDAY, "09:30")

        assert len(slots) == 1
        assert slots[0].time == "09:30"
        assert not slots[0].available

    def test_non_boundary_time_returns_nothing(self, availability):
        assert availability.check_availability(THURSDAY, "09:15") == []
        assert availability.check_availability(THURSDAY, "12:00") == []

    def test_same_slots_on_non_working_days(self, availability):
        assert len(availability.check_availability(SUNDAY)) == 18


class TestIsSlotAvailable:

    def test_free_slot(self, availability):
        assert availability.is_slot_available(THURSDAY, "09:00")

    def test_break_and_off_grid_times_are_unavailable(self, availability):
        assert not availability.is_slot_available(THURSDAY, "12:00")
        assert not availability.is_slot_available(THURSDAY, "09:10")
        assert not availability.is_slot_available(THURSDAY, "18:00")

    def test_duration_overlap_with_later_booking(self, db, availability, oil_change):
        make_appointment(db, THURSDAY, "10:00", service=oil_change)

        # Start is free, but a one-hour job would run into the 10:00 booking
        assert availability.is_slot_available(THURSDAY, "09:30")
        assert not availability.is_slot_available(THURSDAY, "09:30", duration_minutes=60)
        assert availability.is_slot_available(THURSDAY, "09:00", duration_minutes=60)

    def test_excluded_appointment_does_not_conflict(self, db, availability, brake_service):
        appointment = make_appointment(db, THURSDAY, "09:00", service=brake_service)

        assert not availability.is_slot_available(THURSDAY, "09:30")
        assert availability.is_slot_available(
            THURSDAY, "09:30", duration_minutes=60, exclude_appointment_id=appointment.id
        )


class TestServiceDuration:

    def test_durations(self, availability, brake_service, diagnostics):
        assert availability.service_duration(brake_service) == 60
        assert availability.service_duration(diagnostics) == 30
        assert availability.service_duration(None) == 30

    def test_custom_default(self, db, calendar, diagnostics):
        service = AvailabilityService(db, calendar, default_duration_minutes=45)
        assert service.service_duration(diagnostics) == 45


class TestFindNextAvailable:

    def test_skips_non_working_days(self, availability):
        slot = availability.find_next_available(SUNDAY)
        assert slot.date == MONDAY
        assert slot.time == "08:00"

    def test_skips_slots_not_after_now(self, availability):
        slot = availability.find_next_available(WEDNESDAY, after=NOW)
        assert slot.date == WEDNESDAY
        assert slot.time == "09:30"

    def test_after_end_of_day_moves_to_next_day(self, availability):
        slot = availability.find_next_available(WEDNESDAY, after=datetime(2030, 1, 2, 17, 30))
        assert slot.date == THURSDAY
        assert slot.time == "08:00"

    def test_skips_booked_slots(self, db, availability, brake_service):
        make_appointment(db, THURSDAY, "08:00", service=brake_service)

        slot = availability.find_next_available(THURSDAY)

        assert slot.time == "09:00"

    def test_fully_booked_window_returns_none(self, db, availability, calendar, oil_change):
        for slot_time in calendar.generate_daily_slots():
            make_appointment(db, THURSDAY, slot_time, service=oil_change)

        assert availability.find_next_available(THURSDAY, days_ahead=0) is None
        assert availability.find_next_available(THURSDAY, days_ahead=1).date == FRIDAY
