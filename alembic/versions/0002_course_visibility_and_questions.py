"""Course visibility, corporate access and end-of-course questions

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19 12:00:00
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision: str = "0002"
down_revision: Union[str, None] = "0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


course_visibility = postgresql.ENUM(
    "public", "corporate_exclusive", name="course_visibility", create_type=False
)


def upgrade() -> None:
    bind = op.get_bind()
    course_visibility.create(bind, checkfirst=True)

    op.add_column(
        "on_demand_courses",
        sa.Column("visibility_type", course_visibility, server_default="public", nullable=False),
    )
    op.add_column(
        "users",
        sa.Column("corporate_agreement_id", postgresql.UUID(as_uuid=True), nullable=True),
    )
    op.create_index("ix_users_corporate_agreement_id", "users", ["corporate_agreement_id"])

    op.create_table(
        "on_demand_course_corporate_access",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "course_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("on_demand_courses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("corporate_agreement_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("course_id", "corporate_agreement_id", name="uq_course_corporate_access"),
    )
    op.create_index(
        "ix_on_demand_course_corporate_access_course_id",
        "on_demand_course_corporate_access",
        ["course_id"],
    )
    op.create_index(
        "ix_on_demand_course_corporate_access_corporate_agreement_id",
        "on_demand_course_corporate_access",
        ["corporate_agreement_id"],
    )

    op.create_table(
        "course_questions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "course_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("on_demand_courses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("options", postgresql.JSONB(), nullable=False),
        sa.Column("correct_answer", sa.String(10), nullable=False),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_course_questions_course_id", "course_questions", ["course_id"])


def downgrade() -> None:
    op.drop_index("ix_course_questions_course_id", table_name="course_questions")
    op.drop_table("course_questions")
    op.drop_index(
        "ix_on_demand_course_corporate_access_corporate_agreement_id",
        table_name="on_demand_course_corporate_access",
    )
    op.drop_index(
        "ix_on_demand_course_corporate_access_course_id",
        table_name="on_demand_course_corporate_access",
    )
    op.drop_table("on_demand_course_corporate_access")
    op.drop_index("ix_users_corporate_agreement_id", table_name="users")
    op.drop_column("users", "corporate_agreement_id")
    op.drop_column("on_demand_courses", "visibility_type")

    bind = op.get_bind()
    course_visibility.drop(bind, checkfirst=True)
