# ============================================================================
# FILE: autoshop/api/v1/appointments.py
# Thin HTTP layer over the scheduling services
# ============================================================================
from fastapi import APIRouter, Depends, HTTPException, Query, Path, status
from datetime import date
from typing import List, Literal, Optional
from uuid import UUID

from autoshop.api.dependencies import (
    get_appointment_store,
    get_availability_service,
    get_booking_service,
    get_calendar_service,
    get_clock,
)
from autoshop.models.appointment import AppointmentStatus
from autoshop.schemas.appointment import (
    AppointmentCreate,
    AppointmentFilters,
    AppointmentStatistics,
    AppointmentUpdate,
    BulkStatusUpdateRequest,
    CancelRequest,
    Pagination,
    RescheduleRequest,
    SortField,
    StatusUpdateRequest,
)
from autoshop.schemas.scheduling import CalendarDay, NextAvailableSlot, TimeSlot
from autoshop.services.appointment.appointment_store import AppointmentStore
from autoshop.services.appointment.booking_service import BookingService
from autoshop.services.availability.availability_service import AvailabilityService
from autoshop.services.calendar.calendar_service import CalendarService
from autoshop.utils.time_utils import normalize_time

router = APIRouter(prefix="/appointments", tags=["appointments"])


# ============================================================================
# Availability
# ============================================================================

@router.get("/availability", response_model=List[TimeSlot])
def check_availability(
        day: date = Query(..., alias="date", description="Day to check"),
        time: Optional[str] = Query(None, description="Restrict to one slot, HH:MM"),
        availability: AvailabilityService = Depends(get_availability_service)
):
    """Every slot of the day with its availability, or just the requested slot."""
    if time is not None:
        try:
            time = normalize_time(time)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
    return availability.check_availability(day, time)


@router.get("/availability/next", response_model=Optional[NextAvailableSlot])
def next_available_slot(
        from_date: Optional[date] = Query(None, description="Defaults to today"),
        days_ahead: int = Query(14, ge=0, le=90),
        availability: AvailabilityService = Depends(get_availability_service),
        clock=Depends(get_clock)
):
    """First free future slot on a working day."""
    now = clock()
    return availability.find_next_available(from_date or now.date(), days_ahead=days_ahead, after=now)


# ============================================================================
# Calendar & statistics
# ============================================================================

@router.get("/calendar", response_model=List[CalendarDay])
def get_calendar_view(
        start_date: date = Query(...),
        end_date: date = Query(...),
        calendar_service: CalendarService = Depends(get_calendar_service)
):
    """Day-by-day appointments and approximate free slots for a date range."""
    if end_date < start_date:
        raise HTTPException(status_code=422, detail="end_date must not be before start_date")
    return calendar_service.get_calendar_view(start_date, end_date)


@router.get("/calendar/{view}", response_model=List[CalendarDay])
def get_calendar_period(
        view: Literal["day", "week", "month"] = Path(...),
        day: Optional[date] = Query(None, alias="date", description="Any day in the period, defaults to today"),
        calendar_service: CalendarService = Depends(get_calendar_service),
        clock=Depends(get_clock)
):
    """The day, Monday-Sunday week or calendar month containing date."""
    day = day or clock().date()
    if view == "day":
        return calendar_service.get_day_view(day)
    if view == "week":
        return calendar_service.get_week_view(day)
    return calendar_service.get_month_view(day.year, day.month)


@router.get("/statistics", response_model=AppointmentStatistics)
def get_statistics(
        date_from: Optional[date] = Query(None),
        date_to: Optional[date] = Query(None),
        calendar_service: CalendarService = Depends(get_calendar_service)
):
    return calendar_service.get_statistics(date_from, date_to)


# ============================================================================
# Reminders
# ============================================================================

@router.get("/reminders/due")
def get_due_reminders(
        hours_ahead: int = Query(24, ge=0, le=24 * 14),
        booking: BookingService = Depends(get_booking_service)
):
    """Appointments whose reminder should go out now."""
    return [appointment.to_dict() for appointment in booking.get_appointments_for_reminder(hours_ahead)]


@router.post("/{appointment_id}/reminder-sent")
def mark_reminder_sent(
        appointment_id: UUID = Path(...),
        booking: BookingService = Depends(get_booking_service)
):
    if not booking.mark_reminder_sent(appointment_id):
        raise HTTPException(status_code=404, detail="Appointment not found")
    return {"id": str(appointment_id), "reminder_sent": True}


# ============================================================================
# Listing & lookup
# ============================================================================

@router.get("")
def search_appointments(
        customer_id: Optional[UUID] = Query(None),
        vehicle_id: Optional[UUID] = Query(None),
        service_id: Optional[UUID] = Query(None),
        status_filter: Optional[AppointmentStatus] = Query(None, alias="status"),
        appointment_date: Optional[date] = Query(None),
        date_from: Optional[date] = Query(None),
        date_to: Optional[date] = Query(None),
        search: Optional[str] = Query(None, description="Customer name/phone, plate, service or code"),
        skip: int = Query(0, ge=0),
        limit: int = Query(10, ge=1, le=100),
        order_by: Optional[SortField] = Query(None),
        order_dir: Literal["asc", "desc"] = Query("desc"),
        store: AppointmentStore = Depends(get_appointment_store)
):
    """Filtered, paginated appointments with the total matching count."""
    filters = AppointmentFilters(
        customer_id=customer_id,
        vehicle_id=vehicle_id,
        service_id=service_id,
        status=status_filter,
        appointment_date=appointment_date,
        date_from=date_from,
        date_to=date_to,
        search=search
    )
    pagination = Pagination(skip=skip, limit=limit, order_by=order_by, order_dir=order_dir)
    return store.paginate(filters, pagination)


@router.get("/today")
def get_today_appointments(
        calendar_service: CalendarService = Depends(get_calendar_service)
):
    """Today's appointments in any status, by time."""
    return [appointment.to_dict() for appointment in calendar_service.get_today()]


@router.get("/upcoming")
def get_upcoming_appointments(
        limit: int = Query(10, ge=1, le=100),
        calendar_service: CalendarService = Depends(get_calendar_service)
):
    """Confirmed appointments from today on, soonest first."""
    return [appointment.to_dict() for appointment in calendar_service.get_upcoming(limit)]


@router.get("/code/{appointment_code}")
def get_appointment_by_code(
        appointment_code: str = Path(..., description="Booking reference, e.g. LH250314042"),
        store: AppointmentStore = Depends(get_appointment_store)
):
    appointment = store.find_by_code(appointment_code.upper())
    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return appointment.to_dict()


@router.get("/{appointment_id}")
def get_appointment(
        appointment_id: UUID = Path(...),
        store: AppointmentStore = Depends(get_appointment_store)
):
    appointment = store.find_by_id(appointment_id)
    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return appointment.to_dict()


# ============================================================================
# Writes
# ============================================================================

@router.post("", status_code=status.HTTP_201_CREATED)
def book_appointment(
        payload: AppointmentCreate,
        booking: BookingService = Depends(get_booking_service)
):
    """Book a slot. Unknown references and taken, closed or past slots are rejected."""
    return booking.book(payload).to_dict()


@router.put("/bulk/status")
def bulk_update_status(
        payload: BulkStatusUpdateRequest,
        booking: BookingService = Depends(get_booking_service)
):
    """Set one status on many appointments; unknown ids are skipped."""
    updated = booking.bulk_update_status(payload.appointment_ids, payload.status, payload.notes)
    return {
        "updated_appointments": [appointment.to_dict() for appointment in updated],
        "updated_count": len(updated),
        "requested_count": len(payload.appointment_ids),
    }


@router.put("/{appointment_id}")
def update_appointment(
        payload: AppointmentUpdate,
        appointment_id: UUID = Path(...),
        booking: BookingService = Depends(get_booking_service)
):
    """Edit customer, vehicle, service, slot or notes."""
    return booking.update(appointment_id, payload).to_dict()


@router.post("/{appointment_id}/reschedule")
def reschedule_appointment(
        payload: RescheduleRequest,
        appointment_id: UUID = Path(...),
        booking: BookingService = Depends(get_booking_service)
):
    appointment = booking.reschedule(
        appointment_id,
        payload.appointment_date,
        payload.appointment_time,
        payload.reason
    )
    return appointment.to_dict()


@router.post("/{appointment_id}/cancel")
def cancel_appointment(
        payload: Optional[CancelRequest] = None,
        appointment_id: UUID = Path(...),
        booking: BookingService = Depends(get_booking_service)
):
    reason = payload.reason if payload else None
    return booking.cancel(appointment_id, reason).to_dict()


@router.patch("/{appointment_id}/status")
def update_appointment_status(
        payload: StatusUpdateRequest,
        appointment_id: UUID = Path(...),
        booking: BookingService = Depends(get_booking_service)
):
    return booking.update_status(appointment_id, payload.status, payload.notes).to_dict()
