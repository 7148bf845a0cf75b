"""Health checks and monitoring endpoints"""
from fastapi import APIRouter, Depends

from intellibook.api.dependencies import get_context
from intellibook.core.context import BookingContext

health_router = APIRouter()


@health_router.get("")
def health_check(context: BookingContext = Depends(get_context)):
    """Liveness plus a database round trip"""
    database_ok = context.database.ping()
    return {
        "status": "healthy" if database_ok else "degraded",
        "service": "intellibook-api",
        "database": "healthy" if database_ok else "unhealthy",
        "lock": context.booking_lock.name,
    }
