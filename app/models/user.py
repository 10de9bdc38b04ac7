"""
User Model

Learner/admin identity as provisioned by the platform's auth service.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, Enum, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.enums import SubscriptionTier, UserRole

if TYPE_CHECKING:
    from app.models.video_progress import UserVideoProgress


class User(Base):
    """
    User model representing learners and admins.

    Accounts are created and authenticated elsewhere; this service reads
    the role and subscription tier to authorize course access.

    Attributes:
        id: UUID primary key (the JWT ``sub`` claim).
        email: Unique email address.
        full_name: Display name.
        role: STUDENT or ADMIN.
        subscription_tier: free, premium or premium_plus.
        corporate_agreement_id: Corporate agreement the user belongs to, if any.
        created_at: Account creation timestamp.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    full_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role", create_constraint=True),
        default=UserRole.STUDENT,
        nullable=False,
    )
    subscription_tier: Mapped[SubscriptionTier] = mapped_column(
        Enum(
            SubscriptionTier,
            name="subscription_tier",
            create_constraint=True,
            values_callable=lambda tiers: [tier.value for tier in tiers],
        ),
        default=SubscriptionTier.FREE,
        nullable=False,
    )
    corporate_agreement_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        index=True,
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    video_progress: Mapped[list["UserVideoProgress"]] = relationship(
        "UserVideoProgress",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
