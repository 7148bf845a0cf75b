"""
API v1 router setup
Organized into: public storefront, businesses and dashboard routes
"""
from fastapi import APIRouter

from intellibook.api.v1 import businesses
from intellibook.api.v1.dashboard import appointments, business
from intellibook.api.v1.public import booking

api_v1_router = APIRouter()

# ============================================================================
# PUBLIC ROUTES (No authentication required)
# ============================================================================
api_v1_router.include_router(
    booking.router,
    prefix="/public",
    tags=["Public"]
)

# ============================================================================
# BUSINESS ROUTES
# ============================================================================
api_v1_router.include_router(
    businesses.router,
    tags=["Businesses"]
)

# ============================================================================
# DASHBOARD ROUTES (scoped by business id)
# ============================================================================
api_v1_router.include_router(
    appointments.router,
    prefix="/dashboard",
    tags=["Dashboard"]
)

api_v1_router.include_router(
    business.router,
    prefix="/dashboard",
    tags=["Dashboard"]
)


# ============================================================================
# ROOT ENDPOINT - API Info
# ============================================================================
@api_v1_router.get("/", tags=["Info"])
async def api_info():
    """API information and available route groups."""
    return {
        "version": "1.0",
        "routes": {
            "public": "/api/v1/public/{slug}",
            "businesses": "/api/v1/businesses",
            "dashboard": "/api/v1/dashboard/{business_id}",
        }
    }
