"""
API v1 router setup
"""
from fastapi import APIRouter

from autoshop.api.v1 import appointments

api_v1_router = APIRouter()

api_v1_router.include_router(appointments.router)


@api_v1_router.get("/", tags=["Info"])
async def api_info():
    """API information and available endpoints."""
    return {
        "version": "1.0",
        "endpoints": {
            "appointments": "/api/v1/appointments",
            "availability": "/api/v1/appointments/availability",
            "calendar": "/api/v1/appointments/calendar",
            "statistics": "/api/v1/appointments/statistics",
        }
    }
