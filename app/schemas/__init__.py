"""
Schemas Module

Pydantic models for request/response validation.
"""

from app.schemas.course import (
    CourseCreate,
    CourseUpdate,
    CourseResponse,
    VideoCreate,
    VideoUpdate,
    VideoResponse,
    QuestionOption,
    QuestionCreate,
    QuestionUpdate,
    QuestionPublic,
    QuestionDetail,
)
from app.schemas.progress import (
    WatchReport,
    QuizSubmission,
    ProgressResponse,
    CourseStateResponse,
    CourseWithProgressResponse,
    WatchResult,
    QuizResult,
    CourseProgressSummary,
    CourseListItem,
)

__all__ = [
    # Course content
    "CourseCreate",
    "CourseUpdate",
    "CourseResponse",
    "VideoCreate",
    "VideoUpdate",
    "VideoResponse",
    "QuestionOption",
    "QuestionCreate",
    "QuestionUpdate",
    "QuestionPublic",
    "QuestionDetail",
    # Progress
    "WatchReport",
    "QuizSubmission",
    "ProgressResponse",
    "CourseStateResponse",
    "CourseWithProgressResponse",
    "WatchResult",
    "QuizResult",
    "CourseProgressSummary",
    "CourseListItem",
]
