"""
Course Routes

Learner-facing course catalogue, course detail with unlock state, and
completion summary.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_active_user
from app.core.database import get_db
from app.models.user import User
from app.schemas.progress import (
    CourseListItem,
    CourseProgressSummary,
    CourseWithProgressResponse,
)
from app.services import progress_service


router = APIRouter(prefix="/courses", tags=["Courses"])


@router.get(
    "",
    response_model=list[CourseListItem],
    summary="List courses",
)
async def list_courses(
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[CourseListItem]:
    """
    List active courses with the current user's completion for each.
    """
    return await progress_service.list_courses(user=current_user, db=db)


@router.get(
    "/{course_id}",
    response_model=CourseWithProgressResponse,
    summary="Get course with progress",
)
async def get_course(
    course_id: uuid.UUID,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CourseWithProgressResponse:
    """
    Get a course, its ordered videos and the user's progress.

    Each video carries ``is_unlocked``; ``entry_index`` and ``state`` tell
    the player where to resume.

    Args:
        course_id: Course ID.
        current_user: Authenticated learner.
        db: Database session.

    Returns:
        Course with videos, progress and resume state.
    """
    return await progress_service.get_course_with_progress(
        user=current_user,
        course_id=course_id,
        db=db,
    )


@router.get(
    "/{course_id}/progress",
    response_model=CourseProgressSummary,
    summary="Get course completion",
)
async def get_course_progress(
    course_id: uuid.UUID,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CourseProgressSummary:
    """Completed versus total videos for the current user."""
    return await progress_service.get_course_progress_summary(
        user=current_user,
        course_id=course_id,
        db=db,
    )
