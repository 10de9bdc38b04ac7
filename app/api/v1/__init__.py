"""
API v1 Router

Aggregates all v1 endpoint routers.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import admin, courses, videos

router = APIRouter()

# Include learner course routes
router.include_router(courses.router)

# Include video progress and quiz routes
router.include_router(videos.router)

# Include content management routes
router.include_router(admin.router)
