"""Health checks for the scheduler API"""
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from redis.exceptions import RedisError

from autoshop.config.database import get_db
from autoshop.config.redis import get_redis
from autoshop.config.settings import Settings, get_settings

health_router = APIRouter()


@health_router.get("/")
async def health_check():
    """Liveness only"""
    return {"status": "healthy", "service": "autoshop-scheduler"}


@health_router.get("/detailed")
def detailed_health_check(
        db: Session = Depends(get_db),
        settings: Settings = Depends(get_settings)
):
    """
    Readiness: database, booking lock backend and the active business hours.

    Redis is only checked when it backs the booking lock; with the local
    lock it is reported as "not_used".
    """
    checks = {
        "database": "unknown",
        "booking_lock": settings.BOOKING_LOCK_BACKEND,
        "redis": "not_used",
    }

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except SQLAlchemyError as e:
        checks["database"] = f"unhealthy: {e}"

    if settings.BOOKING_LOCK_BACKEND == "redis":
        try:
            get_redis().ping()
            checks["redis"] = "healthy"
        except RedisError as e:
            checks["redis"] = f"unhealthy: {e}"

    hours = settings.business_hours()
    checks["business_hours"] = {
        "open": hours.open_time.strftime("%H:%M"),
        "close": hours.close_time.strftime("%H:%M"),
        "break": f"{hours.break_start:%H:%M}-{hours.break_end:%H:%M}",
        "slot_minutes": hours.slot_minutes,
        "working_days": sorted(hours.working_days),
    }

    healthy = checks["database"] == "healthy" and checks["redis"] in ("healthy", "not_used")
    checks["overall"] = "healthy" if healthy else "degraded"
    return checks
