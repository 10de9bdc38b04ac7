"""
Content Service

Read access to course content (courses, ordered videos, quiz questions) and
course-level authorization. Video lists and question sets are cached per id
and invalidated by admin writes in ``course_service``.
"""

import logging
import uuid
from typing import List, Optional, Set

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import course_videos_cache, video_questions_cache
from app.core.exceptions import AuthorizationError, NotFoundError
from app.models.course import Course
from app.models.course_access import CourseCorporateAccess
from app.models.course_question import CourseQuestion
from app.models.enums import CourseVisibility, SubscriptionTier
from app.models.question import VideoQuestion
from app.models.user import User
from app.models.video import CourseVideo
from app.schemas.course import (
    CourseQuestionDetail,
    QuestionDetail,
    QuestionOption,
    VideoResponse,
)
from app.services.progression import normalize_options


logger = logging.getLogger(__name__)


async def get_course(
    course_id: uuid.UUID,
    db: AsyncSession,
    include_inactive: bool = False,
) -> Course:
    """
    Get a course by ID.

    Args:
        course_id: Course ID.
        db: Database session.
        include_inactive: Also return deactivated courses (admin views).

    Returns:
        Course object.

    Raises:
        NotFoundError: Course does not exist (or is inactive).
    """
    result = await db.execute(
        select(Course).where(Course.id == course_id)
    )
    course = result.scalar_one_or_none()

    if course is None or (not include_inactive and not course.is_active):
        raise NotFoundError("Course not found", "course_not_found")

    return course


async def list_active_courses(db: AsyncSession) -> List[Course]:
    """Active courses in catalogue order."""
    result = await db.execute(
        select(Course)
        .where(Course.is_active.is_(True))
        .order_by(Course.sort_order, Course.created_at)
    )
    return list(result.scalars().all())


async def has_corporate_access(
    course_id: uuid.UUID,
    corporate_agreement_id: Optional[uuid.UUID],
    db: AsyncSession,
) -> bool:
    """Whether an agreement is mapped to a corporate-exclusive course."""
    if corporate_agreement_id is None:
        return False

    result = await db.execute(
        select(CourseCorporateAccess.id).where(
            CourseCorporateAccess.course_id == course_id,
            CourseCorporateAccess.corporate_agreement_id == corporate_agreement_id,
        )
    )
    return result.scalar_one_or_none() is not None


async def get_corporate_course_ids(
    corporate_agreement_id: Optional[uuid.UUID],
    db: AsyncSession,
) -> Set[str]:
    """Ids of the corporate-exclusive courses an agreement may use."""
    if corporate_agreement_id is None:
        return set()

    result = await db.execute(
        select(CourseCorporateAccess.course_id).where(
            CourseCorporateAccess.corporate_agreement_id == corporate_agreement_id,
        )
    )
    return {str(course_id) for course_id in result.scalars().all()}


async def ensure_course_access(user: User, course: Course, db: AsyncSession) -> None:
    """
    Fail closed unless the user may use the course.

    Corporate-exclusive courses are open only to members of a mapped
    corporate agreement; the agreement stands in for the subscription.
    Other Premium Plus courses need a Premium Plus subscription. Admins
    always have access.

    Raises:
        AuthorizationError: No agreement mapping, or the subscription tier
            is insufficient.
    """
    if user is None:
        raise AuthorizationError("Sign in to access this course", "not_authenticated")

    if user.is_admin:
        return

    if course.visibility_type == CourseVisibility.CORPORATE_EXCLUSIVE:
        if not await has_corporate_access(course.id, user.corporate_agreement_id, db):
            logger.info(f"User {user.id} denied corporate course {course.id}")
            raise AuthorizationError(
                "This course is reserved to partner organizations",
                "corporate_access_required",
            )
        return

    if course.is_premium_plus and user.subscription_tier != SubscriptionTier.PREMIUM_PLUS:
        logger.info(f"User {user.id} denied course {course.id}: tier {user.subscription_tier}")
        raise AuthorizationError(
            "A Premium Plus subscription is required for this course",
            "subscription_required",
        )


async def get_course_videos(
    course_id: uuid.UUID,
    db: AsyncSession,
) -> List[VideoResponse]:
    """
    Ordered videos of a course (the unlock sequence).

    Returns:
        List of VideoResponse snapshots ordered by position.
    """
    cached = course_videos_cache.get(course_id)
    if cached is not None:
        return cached

    result = await db.execute(
        select(CourseVideo)
        .where(CourseVideo.course_id == course_id)
        .order_by(CourseVideo.sort_order)
    )
    videos = [VideoResponse.model_validate(video) for video in result.scalars().all()]

    course_videos_cache.set(course_id, videos)
    return videos


async def get_video(
    video_id: uuid.UUID,
    db: AsyncSession,
) -> CourseVideo:
    """
    Get a video by ID.

    Raises:
        NotFoundError: Video does not exist.
    """
    result = await db.execute(
        select(CourseVideo).where(CourseVideo.id == video_id)
    )
    video = result.scalar_one_or_none()

    if video is None:
        raise NotFoundError("Video not found", "video_not_found")

    return video


def to_question_detail(question: VideoQuestion) -> QuestionDetail:
    """Snapshot a question row with normalized option labels."""
    return QuestionDetail(
        id=question.id,
        video_id=question.video_id,
        question=question.question,
        options=[QuestionOption(**option) for option in normalize_options(question.options)],
        correct_answer=question.correct_answer,
        explanation=question.explanation,
        sort_order=question.sort_order,
    )


async def get_video_questions(
    video_id: uuid.UUID,
    db: AsyncSession,
) -> List[QuestionDetail]:
    """
    Ordered questions of a video, including the answer key.

    Only for grading and admin views; learners get ``to_public()`` copies.

    Raises:
        OptionLabelError: A stored question has ambiguous option labels.
    """
    cached = video_questions_cache.get(video_id)
    if cached is not None:
        return cached

    result = await db.execute(
        select(VideoQuestion)
        .where(VideoQuestion.video_id == video_id)
        .order_by(VideoQuestion.sort_order, VideoQuestion.created_at)
    )
    questions = [to_question_detail(question) for question in result.scalars().all()]

    video_questions_cache.set(video_id, questions)
    return questions


def to_course_question_detail(question: CourseQuestion) -> CourseQuestionDetail:
    """Snapshot an end-of-course question row with normalized option labels."""
    return CourseQuestionDetail(
        id=question.id,
        course_id=question.course_id,
        question=question.question,
        options=[QuestionOption(**option) for option in normalize_options(question.options)],
        correct_answer=question.correct_answer,
        explanation=question.explanation,
        sort_order=question.sort_order,
    )


async def get_course_questions(
    course_id: uuid.UUID,
    db: AsyncSession,
) -> List[CourseQuestionDetail]:
    """Ordered end-of-course questions, including the answer key."""
    result = await db.execute(
        select(CourseQuestion)
        .where(CourseQuestion.course_id == course_id)
        .order_by(CourseQuestion.sort_order, CourseQuestion.created_at)
    )
    return [to_course_question_detail(question) for question in result.scalars().all()]
