"""
Progress Schemas

Pydantic models for video progress tracking and quiz submissions.
"""

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from app.schemas.course import CourseResponse, VideoResponse
from app.services.progression import CourseState, Phase


class WatchReport(BaseModel):
    """Schema for reporting playback progress on a video."""

    watched_seconds: int = Field(..., ge=0, description="Seconds watched so far")


class QuizSubmission(BaseModel):
    """Schema for quiz answer submission."""

    answers: Dict[str, str] = Field(
        ...,
        description="Question ID to selected option label mapping (e.g., {'<question-id>': 'B'})",
    )


class ProgressResponse(BaseModel):
    """Schema for a single progress record."""

    video_id: uuid.UUID
    completed: bool
    quiz_passed: bool
    watched_seconds: int
    last_watched_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CourseStateResponse(BaseModel):
    """Where the learner stands in the course."""

    phase: Phase
    video_index: Optional[int] = None
    video_id: Optional[uuid.UUID] = None

    @classmethod
    def from_state(cls, state: CourseState, videos: List[VideoResponse]) -> "CourseStateResponse":
        video_id = None
        if state.video_index is not None and 0 <= state.video_index < len(videos):
            video_id = videos[state.video_index].id
        return cls(phase=state.phase, video_index=state.video_index, video_id=video_id)


class VideoWithAccess(VideoResponse):
    """Video plus whether the current learner may open it."""

    is_unlocked: bool


class CourseWithProgressResponse(BaseModel):
    """Course metadata, ordered videos and the learner's progress."""

    course: CourseResponse
    videos: List[VideoWithAccess]
    progress: List[ProgressResponse]
    entry_index: Optional[int] = None
    state: CourseStateResponse


class WatchResult(BaseModel):
    """Schema for the result of reporting a finished video."""

    progress: ProgressResponse
    state: CourseStateResponse


class QuizResult(BaseModel):
    """Schema for quiz submission result."""

    video_id: uuid.UUID
    results: Dict[str, bool]
    passed: bool
    correct_count: int
    total_questions: int
    message: str
    explanations: Dict[str, str] = Field(
        default_factory=dict,
        description="Explanations per question, only returned for a passed attempt",
    )
    state: CourseStateResponse


class CourseProgressSummary(BaseModel):
    """Completion summary of one course for the current learner."""

    course_id: uuid.UUID
    completed_videos: int
    total_videos: int
    percent_complete: int
    is_complete: bool


class CourseListItem(CourseResponse):
    """Catalogue entry with the learner's completion."""

    total_videos: int = 0
    completed_videos: int = 0
    percent_complete: int = 0
