"""
Database Enums

Python Enums that map to PostgreSQL ENUM types.
"""

import enum


class UserRole(str, enum.Enum):
    """User role enumeration."""
    STUDENT = "STUDENT"
    ADMIN = "ADMIN"


class SubscriptionTier(str, enum.Enum):
    """Subscription tier enumeration (managed by the billing service)."""
    FREE = "free"
    PREMIUM = "premium"
    PREMIUM_PLUS = "premium_plus"


class Difficulty(str, enum.Enum):
    """Course difficulty enumeration."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class CourseVisibility(str, enum.Enum):
    """Who may see and use a course."""
    PUBLIC = "public"
    CORPORATE_EXCLUSIVE = "corporate_exclusive"
