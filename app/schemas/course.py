"""
Course Schemas

Pydantic models for course, video and question request/response validation.
"""

import uuid
from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from app.models.enums import CourseVisibility, Difficulty


# ============== Course Schemas ==============

class CourseBase(BaseModel):
    """Base schema for course data."""

    title: str = Field(..., min_length=1, max_length=200, description="Course title")
    description: Optional[str] = None
    program: Optional[str] = Field(default=None, description="Syllabus / programme")
    instructor: Optional[str] = Field(default=None, max_length=200)
    difficulty: Optional[Difficulty] = None
    duration: Optional[str] = Field(default=None, max_length=100, description="Duration estimate")
    thumbnail_url: Optional[str] = None
    is_premium_plus: bool = True
    is_active: bool = True
    sort_order: int = 0
    visibility_type: CourseVisibility = CourseVisibility.PUBLIC


class CourseCreate(CourseBase):
    """Schema for creating a course."""
    pass


class CourseUpdate(BaseModel):
    """Schema for partially updating a course."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    program: Optional[str] = None
    instructor: Optional[str] = Field(default=None, max_length=200)
    difficulty: Optional[Difficulty] = None
    duration: Optional[str] = Field(default=None, max_length=100)
    thumbnail_url: Optional[str] = None
    is_premium_plus: Optional[bool] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None
    visibility_type: Optional[CourseVisibility] = None


class CourseResponse(CourseBase):
    """Schema for course response."""

    id: uuid.UUID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ============== Video Schemas ==============

class VideoBase(BaseModel):
    """Base schema for video data."""

    title: str = Field(..., min_length=1, max_length=200, description="Video title")
    description: Optional[str] = None
    video_url: str = Field(..., min_length=1, description="Playable video URL")
    duration: Optional[int] = Field(default=None, ge=0, description="Duration in seconds")
    sort_order: int = Field(default=0, ge=0, description="Position within the course")
    thumbnail_url: Optional[str] = None
    requires_quiz: bool = Field(default=True, description="Quiz must be passed to unlock the next video")


class VideoCreate(VideoBase):
    """Schema for adding a video to a course."""
    pass


class VideoUpdate(BaseModel):
    """Schema for partially updating a video."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    video_url: Optional[str] = Field(default=None, min_length=1)
    duration: Optional[int] = Field(default=None, ge=0)
    sort_order: Optional[int] = Field(default=None, ge=0)
    thumbnail_url: Optional[str] = None
    requires_quiz: Optional[bool] = None


class VideoResponse(VideoBase):
    """Schema for video response."""

    id: uuid.UUID
    course_id: uuid.UUID

    model_config = {"from_attributes": True}


# ============== Question Schemas ==============

class QuestionOption(BaseModel):
    """A labelled answer option."""

    label: str = Field(..., min_length=1, max_length=10, description="Option label, e.g. 'A'")
    text: str = Field(..., description="Option text")


class QuestionCreate(BaseModel):
    """
    Schema for adding a question to a video.

    Options may be labelled objects or legacy strings ("A) ..."); they are
    normalized to labelled objects before storage.
    """

    question: str = Field(..., min_length=1, description="Prompt text")
    options: List[Union[QuestionOption, str]] = Field(..., min_length=1)
    correct_answer: str = Field(..., min_length=1, max_length=10, description="Label of the correct option")
    explanation: Optional[str] = None
    sort_order: int = 0


class QuestionUpdate(BaseModel):
    """Schema for partially updating a question."""

    question: Optional[str] = Field(default=None, min_length=1)
    options: Optional[List[Union[QuestionOption, str]]] = Field(default=None, min_length=1)
    correct_answer: Optional[str] = Field(default=None, min_length=1, max_length=10)
    explanation: Optional[str] = None
    sort_order: Optional[int] = None


class QuestionPublic(BaseModel):
    """Question as shown to learners. Never carries the correct answer."""

    id: uuid.UUID
    video_id: uuid.UUID
    question: str
    options: List[QuestionOption]
    sort_order: int


class QuestionDetail(QuestionPublic):
    """Full question including the answer key (admin and grading only)."""

    correct_answer: str
    explanation: Optional[str] = None

    def to_public(self) -> QuestionPublic:
        return QuestionPublic(
            id=self.id,
            video_id=self.video_id,
            question=self.question,
            options=self.options,
            sort_order=self.sort_order,
        )


# ============== Course Question Schemas ==============

class CourseQuestionDetail(BaseModel):
    """End-of-course question with its answer key (admin view)."""

    id: uuid.UUID
    course_id: uuid.UUID
    question: str
    options: List[QuestionOption]
    correct_answer: str
    explanation: Optional[str] = None
    sort_order: int


# ============== Corporate Access Schemas ==============

class CorporateAccessGrant(BaseModel):
    """Grant a corporate agreement access to a corporate-exclusive course."""

    corporate_agreement_id: uuid.UUID


class CorporateAccessResponse(BaseModel):
    """Schema for a course/agreement access mapping."""

    id: uuid.UUID
    course_id: uuid.UUID
    corporate_agreement_id: uuid.UUID
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
