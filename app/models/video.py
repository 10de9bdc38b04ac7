"""
Video Model

A single playable unit within a course, optionally gated by a quiz.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base

if TYPE_CHECKING:
    from app.models.course import Course
    from app.models.question import VideoQuestion
    from app.models.video_progress import UserVideoProgress


class CourseVideo(Base):
    """
    Video model representing one step of a course.

    ``sort_order`` is the video's position in the unlock sequence and is
    unique within its course. Once learners have progress on a video its
    position is fixed: admin writes refuse to re-chain it.

    Attributes:
        id: UUID primary key.
        course_id: Foreign key to on_demand_courses.
        title: Video title.
        description: Optional description.
        video_url: Playable URL (YouTube, Vimeo or uploaded file).
        duration: Duration in seconds (optional).
        sort_order: Position within the course.
        thumbnail_url: Optional thumbnail.
        requires_quiz: Quiz must be passed before the next video unlocks.
    """

    __tablename__ = "course_videos"

    __table_args__ = (
        UniqueConstraint("course_id", "sort_order", name="uq_course_video_position"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    course_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("on_demand_courses.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    title: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    video_url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    duration: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
    )
    sort_order: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    thumbnail_url: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    requires_quiz: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    course: Mapped["Course"] = relationship(
        "Course",
        back_populates="videos",
    )
    questions: Mapped[list["VideoQuestion"]] = relationship(
        "VideoQuestion",
        back_populates="video",
        order_by="VideoQuestion.sort_order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    progress_records: Mapped[list["UserVideoProgress"]] = relationship(
        "UserVideoProgress",
        back_populates="video",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<CourseVideo(id={self.id}, position={self.sort_order})>"
