"""
Course Corporate Access Model

Maps corporate-exclusive courses to the corporate agreements whose members
may use them.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base

if TYPE_CHECKING:
    from app.models.course import Course


class CourseCorporateAccess(Base):
    """
    One agreement allowed into one corporate-exclusive course.

    Agreements are owned by the platform's corporate service, so
    ``corporate_agreement_id`` carries no foreign key here.
    """

    __tablename__ = "on_demand_course_corporate_access"

    __table_args__ = (
        UniqueConstraint(
            "course_id",
            "corporate_agreement_id",
            name="uq_course_corporate_access",
        ),
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
    corporate_agreement_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        index=True,
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
        back_populates="corporate_access",
    )

    def __repr__(self) -> str:
        return (
            f"<CourseCorporateAccess(course_id={self.course_id}, "
            f"agreement={self.corporate_agreement_id})>"
        )
