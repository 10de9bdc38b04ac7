"""
Models Module

This module exports all SQLAlchemy models for the application.
Import Base for Alembic migrations.
"""

from app.core.database import Base

# Enums
from app.models.enums import (
    UserRole,
    SubscriptionTier,
    Difficulty,
    CourseVisibility,
)

# Models
from app.models.user import User
from app.models.course import Course
from app.models.course_access import CourseCorporateAccess
from app.models.course_question import CourseQuestion
from app.models.video import CourseVideo
from app.models.question import VideoQuestion
from app.models.video_progress import UserVideoProgress

__all__ = [
    # Base
    "Base",
    # Enums
    "UserRole",
    "SubscriptionTier",
    "Difficulty",
    "CourseVisibility",
    # Models
    "User",
    "Course",
    "CourseCorporateAccess",
    "CourseQuestion",
    "CourseVideo",
    "VideoQuestion",
    "UserVideoProgress",
]
