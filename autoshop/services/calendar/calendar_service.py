# ============================================================================
# autoshop/services/calendar/calendar_service.py
# Read-only calendar views and appointment statistics
# ============================================================================
from sqlalchemy.orm import Session
from sqlalchemy import func, desc
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Optional, List, Callable
import calendar as month_calendar
import logging

from autoshop.models.appointment import Appointment, AppointmentStatus
from autoshop.models.service import Service
from autoshop.schemas.appointment import AppointmentStatistics, StatusCount, ServiceCount
from autoshop.schemas.scheduling import CalendarDay
from autoshop.services.appointment.appointment_store import AppointmentStore
from autoshop.services.scheduling.business_calendar import BusinessCalendar
from autoshop.utils.time_utils import iter_dates

logger = logging.getLogger(__name__)

TOP_SERVICES_LIMIT = 10


class CalendarService:
    """Day-by-day calendar views and summary statistics"""

    def __init__(
            self,
            db: Session,
            store: AppointmentStore,
            calendar: BusinessCalendar,
            clock: Callable[[], datetime] = datetime.now
    ):
        self.db = db
        self.store = store
        self.calendar = calendar
        self.clock = clock

    def get_calendar_view(self, start_date: date, end_date: date) -> List[CalendarDay]:
        """
        One entry per day in [start_date, end_date], empty days included.

        available_slots counts every non-cancelled appointment as one slot,
        whatever its service duration; use AvailabilityService for exact
        per-slot availability.
        """
        if end_date < start_date:
            raise ValueError("end_date must not be before start_date")

        grouped = defaultdict(list)
        for appointment in self.store.list_between(start_date, end_date):
            grouped[appointment.appointment_date].append(appointment)

        total_slots = self.calendar.count_daily_slots()
        days = []
        for day in iter_dates(start_date, end_date):
            appointments = grouped.get(day, [])
            used_slots = sum(1 for appointment in appointments if appointment.is_active)

            days.append(CalendarDay(
                date=day,
                appointments=[appointment.to_dict() for appointment in appointments],
                total_appointments=len(appointments),
                available_slots=max(0, total_slots - used_slots)
            ))

        return days

    def get_day_view(self, day: date) -> List[CalendarDay]:
        return self.get_calendar_view(day, day)

    def get_week_view(self, day: date) -> List[CalendarDay]:
        """Monday to Sunday of the week containing day"""
        monday = day - timedelta(days=day.weekday())
        return self.get_calendar_view(monday, monday + timedelta(days=6))

    def get_month_view(self, year: int, month: int) -> List[CalendarDay]:
        last_day = month_calendar.monthrange(year, month)[1]
        return self.get_calendar_view(date(year, month, 1), date(year, month, last_day))

    def get_today(self) -> List[Appointment]:
        """Every appointment dated today, any status, by time"""
        return self.store.list_for_date(self.clock().date())

    def get_upcoming(self, limit: int = 10) -> List[Appointment]:
        """Confirmed appointments from today on, soonest first"""
        return self.store.list_upcoming(self.clock().date(), limit=limit)

    def get_statistics(
            self,
            date_from: Optional[date] = None,
            date_to: Optional[date] = None
    ) -> AppointmentStatistics:
        """
        Totals, status and service breakdowns, and today/week/month counts.

        Each figure is its own query. The date filter applies to total,
        by_status, by_service and completion_rate; the today/week/month
        counts always use the current calendar periods.
        """
        today = self.clock().date()
        week_start = today - timedelta(days=today.weekday())
        month_start = today.replace(day=1)
        month_end = today.replace(day=month_calendar.monthrange(today.year, today.month)[1])

        total = self._count(date_from, date_to)

        status_rows = self._date_filter(
            self.db.query(Appointment.status, func.count(Appointment.id).label("count")),
            date_from, date_to
        ).group_by(Appointment.status).order_by(desc("count"), Appointment.status).all()

        service_rows = self._date_filter(
            self.db.query(Service.name, func.count(Appointment.id).label("count"))
            .select_from(Appointment)
            .outerjoin(Service, Appointment.service_id == Service.id),
            date_from, date_to
        ).group_by(Service.id, Service.name).order_by(desc("count"), Service.name).limit(TOP_SERVICES_LIMIT).all()

        completed = self._date_filter(
            self.db.query(func.count(Appointment.id)).filter(
                Appointment.status == AppointmentStatus.COMPLETED.value
            ),
            date_from, date_to
        ).scalar() or 0

        completion_rate = round(completed * 100.0 / total, 2) if total else 0.0

        return AppointmentStatistics(
            total=total,
            by_status=[StatusCount(status=status, count=count) for status, count in status_rows],
            by_service=[ServiceCount(service_name=name, count=count) for name, count in service_rows],
            today=self._count(today, today),
            this_week=self._count(week_start, week_start + timedelta(days=6)),
            this_month=self._count(month_start, month_end),
            completion_rate=completion_rate
        )

    def _count(self, date_from: Optional[date], date_to: Optional[date]) -> int:
        return self._date_filter(
            self.db.query(func.count(Appointment.id)),
            date_from, date_to
        ).scalar() or 0

    @staticmethod
    def _date_filter(query, date_from: Optional[date], date_to: Optional[date]):
        if date_from:
            query = query.filter(Appointment.appointment_date >= date_from)
        if date_to:
            query = query.filter(Appointment.appointment_date <= date_to)
        return query
