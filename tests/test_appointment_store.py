"""Tests for the appointment repository."""

import re
import uuid

import pytest

from autoshop.core.exceptions import CodeGenerationExhausted, InvalidStatus
from autoshop.schemas.appointment import AppointmentFilters, Pagination
from autoshop.services.appointment.appointment_store import AppointmentStore

from conftest import FRIDAY, SATURDAY, THURSDAY, fixed_clock, make_appointment


class FixedRandom:
    """Always draws the same number."""

    def __init__(self, value: int):
        self.value = value

    def randint(self, a, b):
        return self.value


class TestCreate:

    def test_assigns_code_and_pending_status(self, store, customer, oil_change):
        appointment = store.create({
            "customer_id": customer.id,
            "service_id": oil_change.id,
            "appointment_date": THURSDAY,
            "appointment_time": "09:00",
        })

        assert re.fullmatch(r"LH300102\d{3}", appointment.appointment_code)
        assert appointment.status == "pending"
        assert appointment.reminder_sent is False
        assert appointment.service.name == "Oil change"

    def test_keeps_explicit_status(self, store):
        appointment = store.create({
            "appointment_date": THURSDAY,
            "appointment_time": "09:00",
            "status": "confirmed",
        })
        assert appointment.status == "confirmed"

    def test_rejects_unknown_status(self, store):
        with pytest.raises(InvalidStatus):
            store.create({"appointment_date": THURSDAY, "appointment_time": "09:00", "status": "done"})


class TestGenerateCode:

    def test_uses_prefix_and_clock_date(self, db):
        store = AppointmentStore(db, code_prefix="XY", clock=fixed_clock, rng=FixedRandom(7))
        assert store.generate_code() == "XY300102007"

    def test_gives_up_after_repeated_collisions(self, db):
        make_appointment(db, THURSDAY, "09:00", code="LH300102042")
        store = AppointmentStore(db, clock=fixed_clock, rng=FixedRandom(42), max_code_attempts=3)

        with pytest.raises(CodeGenerationExhausted):
            store.generate_code()


class TestUpdates:

    def test_partial_update(self, db, store):
        appointment = make_appointment(db, THURSDAY, "09:00")

        updated = store.update_by_id(appointment.id, {"appointment_time": "10:00", "notes": "Bring keys"})

        assert updated.appointment_time == "10:00"
        assert updated.notes == "Bring keys"
        assert updated.appointment_date == THURSDAY

    def test_immutable_fields_are_rejected(self, db, store):
        appointment = make_appointment(db, THURSDAY, "09:00")

        with pytest.raises(ValueError):
            store.update_by_id(appointment.id, {"appointment_code": "LH000000000"})

    def test_missing_appointment_returns_none(self, store):
        assert store.update_by_id(uuid.uuid4(), {"notes": "x"}) is None
        assert store.update_status(uuid.uuid4(), "confirmed") is None

    def test_update_status_validates(self, db, store):
        appointment = make_appointment(db, THURSDAY, "09:00")

        with pytest.raises(InvalidStatus):
            store.update_status(appointment.id, "archived")

        assert store.update_status(appointment.id, "in_progress").status == "in_progress"

    def test_mark_reminder_sent_is_idempotent(self, db, store):
        appointment = make_appointment(db, THURSDAY, "09:00")

        assert store.mark_reminder_sent(appointment.id)
        assert store.mark_reminder_sent(appointment.id)
        assert store.find_by_id(appointment.id).reminder_sent is True
        assert not store.mark_reminder_sent(uuid.uuid4())


class TestLookups:

    def test_find_by_code_returns_display_fields(self, db, store, customer, vehicle, oil_change):
        make_appointment(db, THURSDAY, "09:00", service=oil_change, customer=customer,
                         vehicle=vehicle, code="LH300102001")

        details = store.find_by_code("LH300102001").to_dict()

        assert details["customer_name"] == "Nguyen Van An"
        assert details["customer_phone"] == "0901234567"
        assert details["service_name"] == "Oil change"
        assert details["service_duration"] == 30
        assert details["service_price"] == 350000.0
        assert details["vehicle_info"] == "Toyota Vios (2020)"
        assert details["license_plate"] == "51A-12345"
        assert details["appointment_date"] == "2030-01-03"

    def test_guest_booking_has_empty_display_fields(self, db, store):
        appointment = make_appointment(db, THURSDAY, "09:00")

        details = store.find_by_id(appointment.id).to_dict()

        assert details["customer_name"] is None
        assert details["vehicle_info"] is None
        assert details["service_price"] is None

    def test_unknown_lookups(self, store):
        assert store.find_by_id(uuid.uuid4()) is None
        assert store.find_by_code("LH000000000") is None


class TestSearch:

    @pytest.fixture
    def booked(self, db, customer, vehicle, oil_change, brake_service):
        return [
            make_appointment(db, THURSDAY, "09:00", service=oil_change, customer=customer, vehicle=vehicle),
            make_appointment(db, THURSDAY, "14:00", service=brake_service, status="confirmed"),
            make_appointment(db, FRIDAY, "08:00", service=oil_change, status="cancelled"),
            make_appointment(db, SATURDAY, "10:00", customer=customer, status="completed"),
        ]

    def test_default_order_is_newest_slot_first(self, store, booked):
        results = store.search(AppointmentFilters())
        assert [(a.appointment_date, a.appointment_time) for a in results] == [
            (SATURDAY, "10:00"),
            (FRIDAY, "08:00"),
            (THURSDAY, "14:00"),
            (THURSDAY, "09:00"),
        ]

    def test_explicit_order(self, store, booked):
        results = store.search(
            AppointmentFilters(),
            Pagination(order_by="appointment_time", order_dir="asc")
        )
        assert [a.appointment_time for a in results] == ["08:00", "09:00", "10:00", "14:00"]

    def test_status_filter(self, store, booked):
        results = store.search(AppointmentFilters(status="cancelled"))
        assert [a.appointment_date for a in results] == [FRIDAY]

    def test_date_filters(self, store, booked):
        assert store.count(AppointmentFilters(appointment_date=THURSDAY)) == 2
        assert store.count(AppointmentFilters(date_from=FRIDAY)) == 2
        assert store.count(AppointmentFilters(date_from=THURSDAY, date_to=FRIDAY)) == 3

    def test_customer_and_service_filters(self, store, booked, customer, oil_change):
        assert store.count(AppointmentFilters(customer_id=customer.id)) == 2
        assert store.count(AppointmentFilters(service_id=oil_change.id)) == 2

    @pytest.mark.parametrize("term,expected", [
        ("nguyen", 2),
        ("0901", 2),
        ("51a-123", 1),
        ("BRAKE", 1),
        ("oil", 2),
        ("nobody", 0),
    ])
    def test_text_search(self, store, booked, term, expected):
        assert store.count(AppointmentFilters(search=term)) == expected
        assert len(store.search(AppointmentFilters(search=term))) == expected

    def test_search_by_code(self, store, booked):
        code = booked[1].appointment_code
        results = store.search(AppointmentFilters(search=code.lower()))
        assert [a.id for a in results] == [booked[1].id]

    def test_pagination(self, store, booked):
        page = store.paginate(AppointmentFilters(), Pagination(skip=2, limit=3))

        assert page["total"] == 4
        assert page["page"] == {"skip": 2, "limit": 3, "total_pages": 2}
        assert [item["appointment_date"] for item in page["items"]] == ["2030-01-03", "2030-01-03"]

    def test_empty_page(self, store):
        page = store.paginate(AppointmentFilters())
        assert page == {"items": [], "total": 0, "page": {"skip": 0, "limit": 10, "total_pages": 0}}


class TestReminderQueries:

    def test_only_unreminded_pending_or_confirmed(self, db, store):
        due = make_appointment(db, THURSDAY, "09:00")
        confirmed = make_appointment(db, THURSDAY, "10:00", status="confirmed")
        make_appointment(db, THURSDAY, "11:00", status="cancelled")
        make_appointment(db, THURSDAY, "13:00", status="completed")
        make_appointment(db, THURSDAY, "14:00", reminder_sent=True)
        make_appointment(db, FRIDAY, "09:00")

        assert [a.id for a in store.list_due_for_reminder(THURSDAY)] == [due.id, confirmed.id]

    def test_list_between_includes_every_status(self, db, store):
        make_appointment(db, THURSDAY, "09:00", status="cancelled")
        make_appointment(db, FRIDAY, "09:00")

        assert len(store.list_between(THURSDAY, FRIDAY)) == 2
        assert len(store.list_for_date(FRIDAY)) == 1
