"""
Video Question Model

Multiple-choice quiz item attached to a course video.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any, List, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base

if TYPE_CHECKING:
    from app.models.video import CourseVideo


class VideoQuestion(Base):
    """
    Quiz question for a video.

    Attributes:
        id: UUID primary key.
        video_id: Foreign key to course_videos.
        question: Prompt text.
        options: JSONB list of ``{"label": "A", "text": "..."}`` objects.
            Older rows may store plain strings such as ``"A) ..."``.
        correct_answer: Label of the correct option (e.g. "B").
        explanation: Optional explanation shown after a passed attempt.
        sort_order: Position within the video's quiz.
    """

    __tablename__ = "video_questions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    video_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("course_videos.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    question: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    options: Mapped[List[Any]] = mapped_column(
        JSONB,
        nullable=False,
    )
    correct_answer: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
    )
    explanation: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    sort_order: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    video: Mapped["CourseVideo"] = relationship(
        "CourseVideo",
        back_populates="questions",
    )

    def __repr__(self) -> str:
        return f"<VideoQuestion(id={self.id}, video_id={self.video_id})>"
