"""
Course Model

On-demand course: an ordered sequence of videos forming a learning unit.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, Enum, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.enums import CourseVisibility, Difficulty

if TYPE_CHECKING:
    from app.models.course_access import CourseCorporateAccess
    from app.models.course_question import CourseQuestion
    from app.models.video import CourseVideo


class Course(Base):
    """
    On-demand course container.

    The ``videos`` relationship is ordered by ``sort_order``; that order is
    the unlock sequence learners follow.

    Attributes:
        id: UUID primary key.
        title: Course title.
        description: Short course description.
        program: Syllabus / programme text.
        instructor: Instructor display name.
        difficulty: beginner, intermediate, advanced or expert.
        duration: Free-text total duration estimate (e.g. "6 ore").
        thumbnail_url: Course thumbnail image.
        is_premium_plus: Requires a Premium Plus subscription.
        is_active: Visible to learners.
        sort_order: Position in the course catalogue.
        visibility_type: public, or corporate_exclusive for courses reserved
            to the corporate agreements listed in ``corporate_access``.
    """

    __tablename__ = "on_demand_courses"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    program: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    instructor: Mapped[Optional[str]] = mapped_column(
        String(200),
        nullable=True,
    )
    difficulty: Mapped[Optional[Difficulty]] = mapped_column(
        Enum(
            Difficulty,
            name="course_difficulty",
            create_constraint=True,
            values_callable=lambda levels: [level.value for level in levels],
        ),
        nullable=True,
    )
    duration: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    thumbnail_url: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    is_premium_plus: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    sort_order: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    visibility_type: Mapped[CourseVisibility] = mapped_column(
        Enum(
            CourseVisibility,
            name="course_visibility",
            create_constraint=True,
            values_callable=lambda kinds: [kind.value for kind in kinds],
        ),
        default=CourseVisibility.PUBLIC,
        server_default=CourseVisibility.PUBLIC.value,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # Relationships
    videos: Mapped[list["CourseVideo"]] = relationship(
        "CourseVideo",
        back_populates="course",
        order_by="CourseVideo.sort_order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    questions: Mapped[list["CourseQuestion"]] = relationship(
        "CourseQuestion",
        back_populates="course",
        order_by="CourseQuestion.sort_order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    corporate_access: Mapped[list["CourseCorporateAccess"]] = relationship(
        "CourseCorporateAccess",
        back_populates="course",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Course(id={self.id}, title={self.title[:30]})>"
