# ============================================================================
# autoshop/services/appointment/appointment_store.py
# Repository over the appointments table - no FastAPI dependencies
# ============================================================================
from sqlalchemy.orm import Session, Query, joinedload, contains_eager
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from datetime import date, datetime
from typing import Optional, Dict, Any, List, Callable, Union
from uuid import UUID
import logging
import random

from autoshop.core.exceptions import CodeGenerationExhausted, InvalidStatus
from autoshop.models.appointment import Appointment, AppointmentStatus, REMINDABLE_STATUSES
from autoshop.models.customer import Customer
from autoshop.models.service import Service
from autoshop.models.vehicle import Vehicle
from autoshop.schemas.appointment import AppointmentFilters, Pagination

logger = logging.getLogger(__name__)

_SORT_COLUMNS = {
    "appointment_date": Appointment.appointment_date,
    "appointment_time": Appointment.appointment_time,
    "created_at": Appointment.created_at,
    "updated_at": Appointment.updated_at,
    "status": Appointment.status,
    "appointment_code": Appointment.appointment_code,
}

_IMMUTABLE_FIELDS = {"id", "appointment_code", "created_at", "updated_at"}


def validate_status(status: Union[str, AppointmentStatus]) -> str:
    """Return the status string, or raise InvalidStatus for unknown values"""
    try:
        return AppointmentStatus(status).value
    except ValueError:
        raise InvalidStatus(
            f"Invalid status '{status}', expected one of: {', '.join(AppointmentStatus.values())}"
        )


class AppointmentStore:
    """Create, look up, filter and update appointments."""

    def __init__(
            self,
            db: Session,
            code_prefix: str = "LH",
            max_code_attempts: int = 10,
            clock: Callable[[], datetime] = datetime.now,
            rng: Optional[random.Random] = None
    ):
        self.db = db
        self.code_prefix = code_prefix
        self.max_code_attempts = max_code_attempts
        self.clock = clock
        self.rng = rng or random.Random()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, data: Dict[str, Any]) -> Appointment:
        """Insert an appointment, assigning its code and a pending status by default"""
        payload = dict(data)

        if not payload.get("appointment_code"):
            payload["appointment_code"] = self.generate_code()

        payload["status"] = validate_status(payload.get("status") or AppointmentStatus.PENDING)

        appointment = Appointment(**payload)
        self.db.add(appointment)
        self._commit()

        logger.info(f"Created appointment {appointment.appointment_code} "
                    f"on {appointment.appointment_date} at {appointment.appointment_time}")
        return self.find_by_id(appointment.id)

    def update_by_id(self, appointment_id: UUID, data: Dict[str, Any]) -> Optional[Appointment]:
        """Apply a partial update. Returns None if the appointment does not exist."""
        blocked = _IMMUTABLE_FIELDS.intersection(data)
        if blocked:
            raise ValueError(f"Cannot update immutable fields: {', '.join(sorted(blocked))}")

        appointment = self.db.get(Appointment, appointment_id)
        if not appointment:
            return None

        for field, value in data.items():
            if field == "status":
                value = validate_status(value)
            setattr(appointment, field, value)

        self._commit()
        self.db.refresh(appointment)
        return appointment

    def update_status(
            self,
            appointment_id: UUID,
            status: Union[str, AppointmentStatus],
            notes: Optional[str] = None
    ) -> Optional[Appointment]:
        data: Dict[str, Any] = {"status": validate_status(status)}
        if notes:
            data["notes"] = notes
        return self.update_by_id(appointment_id, data)

    def mark_reminder_sent(self, appointment_id: UUID) -> bool:
        """Set the reminder flag. Safe to call repeatedly."""
        return self.update_by_id(appointment_id, {"reminder_sent": True}) is not None

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_by_id(self, appointment_id: UUID) -> Optional[Appointment]:
        return self._enriched_query().filter(Appointment.id == appointment_id).first()

    def find_by_code(self, appointment_code: str) -> Optional[Appointment]:
        return self._enriched_query().filter(Appointment.appointment_code == appointment_code).first()

    def search(self, filters: AppointmentFilters, pagination: Optional[Pagination] = None) -> List[Appointment]:
        """Filtered, ordered, paginated appointments with joined display fields"""
        pagination = pagination or Pagination()

        query = self._filtered_query(filters).options(
            contains_eager(Appointment.customer),
            contains_eager(Appointment.vehicle),
            contains_eager(Appointment.service),
        )

        if pagination.order_by:
            column = _SORT_COLUMNS[pagination.order_by]
            query = query.order_by(column.asc() if pagination.order_dir == "asc" else column.desc())

        # Tie-break (and default) ordering
        query = query.order_by(Appointment.appointment_date.desc(), Appointment.appointment_time.desc())

        return query.offset(pagination.skip).limit(pagination.limit).all()

    def count(self, filters: AppointmentFilters) -> int:
        """Same filter semantics as search, separate round trip"""
        return self._filtered_query(filters).with_entities(func.count(Appointment.id)).scalar() or 0

    def paginate(self, filters: AppointmentFilters, pagination: Optional[Pagination] = None) -> Dict[str, Any]:
        pagination = pagination or Pagination()
        total = self.count(filters)
        items = self.search(filters, pagination)

        return {
            "items": [appointment.to_dict() for appointment in items],
            "total": total,
            "page": {
                "skip": pagination.skip,
                "limit": pagination.limit,
                "total_pages": (total + pagination.limit - 1) // pagination.limit if total > 0 else 0
            }
        }

    def list_between(self, start_date: date, end_date: date) -> List[Appointment]:
        """All appointments (any status) dated within [start_date, end_date]"""
        return self._enriched_query().filter(
            Appointment.appointment_date >= start_date,
            Appointment.appointment_date <= end_date
        ).order_by(
            Appointment.appointment_date.asc(),
            Appointment.appointment_time.asc()
        ).all()

    def list_for_date(self, day: date) -> List[Appointment]:
        return self.list_between(day, day)

    def list_upcoming(self, from_date: date, limit: int = 10) -> List[Appointment]:
        """Confirmed appointments from from_date on, soonest first"""
        return self._enriched_query().filter(
            Appointment.appointment_date >= from_date,
            Appointment.status == AppointmentStatus.CONFIRMED.value
        ).order_by(
            Appointment.appointment_date.asc(),
            Appointment.appointment_time.asc()
        ).limit(limit).all()

    def list_due_for_reminder(self, day: date) -> List[Appointment]:
        """Pending/confirmed appointments on day that have not been reminded yet"""
        return self._enriched_query().filter(
            Appointment.appointment_date == day,
            Appointment.status.in_(REMINDABLE_STATUSES),
            Appointment.reminder_sent.is_(False)
        ).order_by(Appointment.appointment_time.asc()).all()

    def find_customer(self, customer_id: UUID) -> Optional[Customer]:
        return self.db.get(Customer, customer_id)

    def find_vehicle(self, vehicle_id: UUID) -> Optional[Vehicle]:
        return self.db.get(Vehicle, vehicle_id)

    def find_service(self, service_id: UUID) -> Optional[Service]:
        return self.db.get(Service, service_id)

    # ------------------------------------------------------------------
    # Codes
    # ------------------------------------------------------------------

    def generate_code(self) -> str:
        """
        LH + YYMMDD + three random digits, unique among stored codes.

        Gives up after max_code_attempts collisions with CodeGenerationExhausted.
        """
        date_part = self.clock().strftime("%y%m%d")

        for attempt in range(1, self.max_code_attempts + 1):
            code = f"{self.code_prefix}{date_part}{self.rng.randint(0, 999):03d}"
            exists = self.db.query(Appointment.id).filter(Appointment.appointment_code == code).first()
            if not exists:
                return code
            logger.debug(f"Appointment code collision on {code} (attempt {attempt})")

        logger.error(f"Could not generate a unique appointment code after {self.max_code_attempts} attempts")
        raise CodeGenerationExhausted()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _enriched_query(self) -> Query:
        return self.db.query(Appointment).options(
            joinedload(Appointment.customer),
            joinedload(Appointment.vehicle),
            joinedload(Appointment.service),
        )

    def _filtered_query(self, filters: AppointmentFilters) -> Query:
        query = self.db.query(Appointment).outerjoin(
            Customer, Appointment.customer_id == Customer.id
        ).outerjoin(
            Vehicle, Appointment.vehicle_id == Vehicle.id
        ).outerjoin(
            Service, Appointment.service_id == Service.id
        )

        if filters.customer_id:
            query = query.filter(Appointment.customer_id == filters.customer_id)
        if filters.vehicle_id:
            query = query.filter(Appointment.vehicle_id == filters.vehicle_id)
        if filters.service_id:
            query = query.filter(Appointment.service_id == filters.service_id)
        if filters.status:
            query = query.filter(Appointment.status == AppointmentStatus(filters.status).value)
        if filters.appointment_date:
            query = query.filter(Appointment.appointment_date == filters.appointment_date)
        if filters.date_from:
            query = query.filter(Appointment.appointment_date >= filters.date_from)
        if filters.date_to:
            query = query.filter(Appointment.appointment_date <= filters.date_to)

        if filters.search:
            term = f"%{filters.search.strip()}%"
            query = query.filter(or_(
                Customer.full_name.ilike(term),
                Customer.phone.ilike(term),
                Vehicle.license_plate.ilike(term),
                Service.name.ilike(term),
                Appointment.appointment_code.ilike(term),
            ))

        return query

    def _commit(self):
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
