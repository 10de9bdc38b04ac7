"""
Video Progress Model

Per-user, per-video watch completion and quiz pass state.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base

if TYPE_CHECKING:
    from app.models.user import User
    from app.models.video import CourseVideo


class UserVideoProgress(Base):
    """
    Progress record for one (user, video) pair.

    Created lazily on the first interaction with a video and never
    deleted during normal operation. ``completed`` and ``quiz_passed`` only
    ever move from False to True; ``watched_seconds`` never decreases.

    Attributes:
        id: UUID primary key.
        user_id: Foreign key to users.
        course_id: Foreign key to on_demand_courses (denormalized for
            per-course queries).
        video_id: Foreign key to course_videos.
        completed: The user finished watching the video.
        quiz_passed: The user answered every quiz question correctly.
        watched_seconds: Furthest reported playback position.
        last_watched_at: Last time progress was reported.
        completed_at: When the video was first completed.
    """

    __tablename__ = "user_video_progress"

    __table_args__ = (
        UniqueConstraint("user_id", "video_id", name="uq_user_video_progress"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    course_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("on_demand_courses.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    video_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("course_videos.id", ondelete="CASCADE"),
        nullable=False,
    )
    completed: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    quiz_passed: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    watched_seconds: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    last_watched_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    user: Mapped["User"] = relationship(
        "User",
        back_populates="video_progress",
    )
    video: Mapped["CourseVideo"] = relationship(
        "CourseVideo",
        back_populates="progress_records",
    )

    def __repr__(self) -> str:
        return (
            f"<UserVideoProgress(video_id={self.video_id}, "
            f"completed={self.completed}, quiz_passed={self.quiz_passed})>"
        )
