"""
API v1 Router - Main Entry Point
Aggregates all v1 endpoints of the cubicle booking service
"""

from fastapi import APIRouter, Request

from cubicle_booking.api.v1 import booking_flows, cubicles, reports, students
from cubicle_booking.config.logging import get_logger

logger = get_logger(__name__)

# Create main API v1 router with proper configuration
router = APIRouter(
    responses={
        400: {"description": "Bad Request"},
        404: {"description": "Not Found"},
        409: {"description": "Conflict"},
        422: {"description": "Validation Error"},
        500: {"description": "Internal Server Error"},
        503: {"description": "Backend Unavailable"},
    }
)

router.include_router(students.router)
router.include_router(cubicles.router)
router.include_router(booking_flows.router)
router.include_router(reports.router)


# Health and diagnostic endpoints
@router.get("/health", tags=["System Health"])
def api_health_check(request: Request):
    """
    API health check with change-feed subscription status
    """
    settings = request.app.state.settings
    return {
        "status": "healthy",
        "version": settings.API_VERSION,
        "environment": settings.ENVIRONMENT,
        "subscriptions": request.app.state.feed.get_stats(),
        "open_booking_flows": len(request.app.state.flow_manager),
        "board_cached": request.app.state.board.is_cached,
    }


logger.info(f"API v1 router initialized with {len(router.routes)} routes")
