"""
Practice Panel API Router

Aggregates all domain-specific routers into a single practice panel API.

Domain Routers:
- document_routes: Upload, delete and replace files
- lock_routes: Month and category locks
- notes_routes: Note listing, read tracking and feedback
- assignment_routes: Task assignment lifecycle
- dashboard_routes: Client and employee summaries

All endpoints are prefixed with /api/practice when included in the app.
"""

from fastapi import APIRouter
import logging

logger = logging.getLogger(__name__)

# Create main practice router
practice_router = APIRouter(prefix="/practice", tags=["Practice Panel"])

# Import domain-specific routers
from .document_routes import document_router
from .lock_routes import lock_router
from .notes_routes import notes_router
from .assignment_routes import assignment_router
from .dashboard_routes import dashboard_router

# Include all domain routers
practice_router.include_router(document_router)
practice_router.include_router(lock_router)
practice_router.include_router(notes_router)
practice_router.include_router(assignment_router)
practice_router.include_router(dashboard_router)


# =============================================================================
# HEALTH CHECK
# =============================================================================

@practice_router.get("/health")
async def practice_health_check():
    """Practice panel health check endpoint."""
    return {
        "status": "healthy",
        "module": "practice_panel",
        "routes": {
            "documents": "active",
            "locks": "active",
            "notes": "active",
            "assignments": "active",
            "dashboard": "active",
        },
    }
