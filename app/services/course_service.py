"""
Course Service

Admin management of course content: courses, their ordered videos, the
quiz questions attached to each video, end-of-course questions and the
corporate agreements allowed into corporate-exclusive courses.

Every write invalidates the cached content it touches so learners never
grade against a stale answer key or unlock against a stale video order.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import invalidate_course, invalidate_video
from app.core.exceptions import NotFoundError, PersistenceError, ValidationError
from app.models.course import Course
from app.models.course_access import CourseCorporateAccess
from app.models.course_question import CourseQuestion
from app.models.question import VideoQuestion
from app.models.video import CourseVideo
from app.models.video_progress import UserVideoProgress
from app.schemas.course import (
    CourseCreate,
    CourseQuestionDetail,
    CourseUpdate,
    QuestionCreate,
    QuestionDetail,
    QuestionUpdate,
    VideoCreate,
    VideoUpdate,
)
from app.services import content_service
from app.services.progression import normalize_options


logger = logging.getLogger(__name__)


async def _commit(db: AsyncSession, action: str, instance: Optional[Any] = None) -> None:
    """
    Commit an admin write.

    Raises:
        ValidationError: A uniqueness constraint was violated.
        PersistenceError: Any other database failure.
    """
    try:
        await db.commit()
        if instance is not None:
            await db.refresh(instance)
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"Rejected {action}: {e.orig}")
        raise ValidationError(
            "The change conflicts with existing course content",
            "conflict",
        ) from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception(f"Failed to {action}")
        raise PersistenceError("The change could not be saved. Please try again.") from e


def _option_payload(options: List[Any]) -> List[Dict[str, str]]:
    raw = [option.model_dump() if hasattr(option, "model_dump") else option for option in options]
    return normalize_options(raw)


def _check_correct_answer(correct_answer: str, options: List[Dict[str, str]]) -> None:
    labels = [option["label"] for option in options]
    if correct_answer not in labels:
        raise ValidationError(
            f"Correct answer '{correct_answer}' is not one of the option labels {labels}",
            "invalid_correct_answer",
        )


def _apply_question_changes(question: Any, payload: QuestionUpdate) -> None:
    """Validate and apply a partial question update to a video or course question."""
    changes = payload.model_dump(exclude_unset=True)

    if "options" in changes and changes["options"] is not None:
        changes["options"] = _option_payload(payload.options)
    else:
        changes.pop("options", None)

    options = changes.get("options") or normalize_options(question.options)
    correct_answer = changes.get("correct_answer") or question.correct_answer
    _check_correct_answer(correct_answer, options)

    for field, value in changes.items():
        if value is None and field in ("question", "correct_answer", "sort_order"):
            continue
        setattr(question, field, value)


# ============== Courses ==============

async def list_all_courses(db: AsyncSession) -> List[Course]:
    """All courses, including inactive ones."""
    result = await db.execute(
        select(Course).order_by(Course.sort_order, Course.created_at)
    )
    return list(result.scalars().all())


async def create_course(payload: CourseCreate, db: AsyncSession) -> Course:
    """
    Create a course.

    Args:
        payload: Course data.
        db: Database session.

    Returns:
        Created Course object.
    """
    course = Course(id=uuid.uuid4(), **payload.model_dump())
    db.add(course)
    await _commit(db, "create course", course)

    logger.info(f"Created course {course.id}")
    return course


async def update_course(
    course_id: uuid.UUID,
    payload: CourseUpdate,
    db: AsyncSession,
) -> Course:
    """
    Partially update a course.

    Raises:
        NotFoundError: Course does not exist.
    """
    course = await content_service.get_course(course_id, db, include_inactive=True)

    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(course, field, value)

    await _commit(db, "update course", course)
    return course


async def delete_course(course_id: uuid.UUID, db: AsyncSession) -> None:
    """
    Delete a course with its videos, questions and progress.

    Raises:
        NotFoundError: Course does not exist.
    """
    course = await content_service.get_course(course_id, db, include_inactive=True)

    await db.delete(course)
    await _commit(db, "delete course")

    invalidate_course(course_id)
    logger.info(f"Deleted course {course_id}")


# ============== Videos ==============

async def _ensure_position_free(
    course_id: uuid.UUID,
    sort_order: int,
    db: AsyncSession,
    exclude_video_id: Optional[uuid.UUID] = None,
) -> None:
    query = select(CourseVideo).where(
        CourseVideo.course_id == course_id,
        CourseVideo.sort_order == sort_order,
    )
    if exclude_video_id is not None:
        query = query.where(CourseVideo.id != exclude_video_id)

    result = await db.execute(query)
    if result.scalar_one_or_none() is not None:
        raise ValidationError(
            f"Another video already uses position {sort_order} in this course",
            "duplicate_position",
        )


async def _ensure_order_unreferenced(
    course_id: uuid.UUID,
    from_position: int,
    db: AsyncSession,
) -> None:
    """
    Refuse to re-chain videos at or after ``from_position`` once any learner
    has progress on one of them.

    Raises:
        ValidationError: Progress exists from that position on.
    """
    result = await db.execute(
        select(UserVideoProgress.id)
        .join(CourseVideo, CourseVideo.id == UserVideoProgress.video_id)
        .where(
            CourseVideo.course_id == course_id,
            CourseVideo.sort_order >= from_position,
        )
        .limit(1)
    )
    if result.scalar_one_or_none() is not None:
        raise ValidationError(
            f"Learners already have progress on videos from position {from_position}; "
            "their order can no longer change",
            "position_locked",
        )


async def add_video(
    course_id: uuid.UUID,
    payload: VideoCreate,
    db: AsyncSession,
) -> CourseVideo:
    """
    Add a video to a course at ``payload.sort_order``.

    Raises:
        NotFoundError: Course does not exist.
        ValidationError: The position is already taken, or learners have
            progress on videos at or after it.
    """
    course = await content_service.get_course(course_id, db, include_inactive=True)
    await _ensure_position_free(course.id, payload.sort_order, db)
    await _ensure_order_unreferenced(course.id, payload.sort_order, db)

    video = CourseVideo(id=uuid.uuid4(), course_id=course.id, **payload.model_dump())
    db.add(video)
    await _commit(db, "add video", video)

    invalidate_course(course.id)
    logger.info(f"Added video {video.id} to course {course.id} at position {video.sort_order}")
    return video


async def update_video(
    video_id: uuid.UUID,
    payload: VideoUpdate,
    db: AsyncSession,
) -> CourseVideo:
    """
    Partially update a video. Moving it changes the unlock order, so it is
    only allowed while no learner has progress from the affected position on.

    Raises:
        NotFoundError: Video does not exist.
        ValidationError: The new position is already taken, or the move
            would re-chain videos that learners already have progress on.
    """
    video = await content_service.get_video(video_id, db)
    changes = payload.model_dump(exclude_unset=True)

    if changes.get("sort_order") is not None and changes["sort_order"] != video.sort_order:
        await _ensure_position_free(video.course_id, changes["sort_order"], db, video.id)
        await _ensure_order_unreferenced(
            video.course_id, min(video.sort_order, changes["sort_order"]), db
        )

    for field, value in changes.items():
        setattr(video, field, value)

    await _commit(db, "update video", video)

    invalidate_video(video.id, video.course_id)
    return video


async def delete_video(video_id: uuid.UUID, db: AsyncSession) -> None:
    """
    Delete a video with its questions and progress records.

    Raises:
        NotFoundError: Video does not exist.
    """
    video = await content_service.get_video(video_id, db)
    course_id = video.course_id

    await db.delete(video)
    await _commit(db, "delete video")

    invalidate_video(video_id, course_id)
    logger.info(f"Deleted video {video_id} from course {course_id}")


# ============== Questions ==============

async def get_question(question_id: uuid.UUID, db: AsyncSession) -> VideoQuestion:
    """
    Get a question by ID.

    Raises:
        NotFoundError: Question does not exist.
    """
    result = await db.execute(
        select(VideoQuestion).where(VideoQuestion.id == question_id)
    )
    question = result.scalar_one_or_none()

    if question is None:
        raise NotFoundError("Question not found", "question_not_found")

    return question


async def list_questions(video_id: uuid.UUID, db: AsyncSession) -> List[QuestionDetail]:
    """Questions of a video with the answer key (admin view)."""
    video = await content_service.get_video(video_id, db)
    return await content_service.get_video_questions(video.id, db)


async def add_question(
    video_id: uuid.UUID,
    payload: QuestionCreate,
    db: AsyncSession,
) -> QuestionDetail:
    """
    Attach a question to a video.

    Options are normalized to labelled ``{label, text}`` objects before
    storage and the correct answer must name one of those labels.

    Raises:
        NotFoundError: Video does not exist.
        OptionLabelError: Options cannot be labelled unambiguously.
        ValidationError: Correct answer is not an option label.
    """
    video = await content_service.get_video(video_id, db)

    options = _option_payload(payload.options)
    _check_correct_answer(payload.correct_answer, options)

    question = VideoQuestion(
        id=uuid.uuid4(),
        video_id=video.id,
        question=payload.question,
        options=options,
        correct_answer=payload.correct_answer,
        explanation=payload.explanation,
        sort_order=payload.sort_order,
    )
    db.add(question)
    await _commit(db, "add question", question)

    invalidate_video(video.id)
    return content_service.to_question_detail(question)


async def update_question(
    question_id: uuid.UUID,
    payload: QuestionUpdate,
    db: AsyncSession,
) -> QuestionDetail:
    """
    Partially update a question.

    Raises:
        NotFoundError: Question does not exist.
        OptionLabelError: Options cannot be labelled unambiguously.
        ValidationError: Correct answer is not an option label.
    """
    question = await get_question(question_id, db)
    _apply_question_changes(question, payload)

    await _commit(db, "update question", question)

    invalidate_video(question.video_id)
    return content_service.to_question_detail(question)


async def delete_question(question_id: uuid.UUID, db: AsyncSession) -> None:
    """
    Delete a question.

    Raises:
        NotFoundError: Question does not exist.
    """
    question = await get_question(question_id, db)
    video_id = question.video_id

    await db.delete(question)
    await _commit(db, "delete question")

    invalidate_video(video_id)


# ============== Course Questions ==============

async def get_course_question(question_id: uuid.UUID, db: AsyncSession) -> CourseQuestion:
    """
    Get an end-of-course question by ID.

    Raises:
        NotFoundError: Question does not exist.
    """
    result = await db.execute(
        select(CourseQuestion).where(CourseQuestion.id == question_id)
    )
    question = result.scalar_one_or_none()

    if question is None:
        raise NotFoundError("Course question not found", "course_question_not_found")

    return question


async def list_course_questions(course_id: uuid.UUID, db: AsyncSession) -> List[CourseQuestionDetail]:
    """End-of-course questions with the answer key (admin view)."""
    course = await content_service.get_course(course_id, db, include_inactive=True)
    return await content_service.get_course_questions(course.id, db)


async def add_course_question(
    course_id: uuid.UUID,
    payload: QuestionCreate,
    db: AsyncSession,
) -> CourseQuestionDetail:
    """
    Add an end-of-course question.

    Options are normalized like video question options and the correct
    answer must name one of the resulting labels.

    Raises:
        NotFoundError: Course does not exist.
        OptionLabelError: Options cannot be labelled unambiguously.
        ValidationError: Correct answer is not an option label.
    """
    course = await content_service.get_course(course_id, db, include_inactive=True)

    options = _option_payload(payload.options)
    _check_correct_answer(payload.correct_answer, options)

    question = CourseQuestion(
        id=uuid.uuid4(),
        course_id=course.id,
        question=payload.question,
        options=options,
        correct_answer=payload.correct_answer,
        explanation=payload.explanation,
        sort_order=payload.sort_order,
    )
    db.add(question)
    await _commit(db, "add course question", question)

    logger.info(f"Added course question {question.id} to course {course.id}")
    return content_service.to_course_question_detail(question)


async def update_course_question(
    question_id: uuid.UUID,
    payload: QuestionUpdate,
    db: AsyncSession,
) -> CourseQuestionDetail:
    """
    Partially update an end-of-course question.

    Raises:
        NotFoundError, OptionLabelError, ValidationError
    """
    question = await get_course_question(question_id, db)
    _apply_question_changes(question, payload)

    await _commit(db, "update course question", question)
    return content_service.to_course_question_detail(question)


async def delete_course_question(question_id: uuid.UUID, db: AsyncSession) -> None:
    """
    Delete an end-of-course question.

    Raises:
        NotFoundError: Question does not exist.
    """
    question = await get_course_question(question_id, db)

    await db.delete(question)
    await _commit(db, "delete course question")


# ============== Corporate Access ==============

async def list_corporate_access(
    course_id: uuid.UUID,
    db: AsyncSession,
) -> List[CourseCorporateAccess]:
    """Agreements mapped to a course."""
    course = await content_service.get_course(course_id, db, include_inactive=True)
    result = await db.execute(
        select(CourseCorporateAccess)
        .where(CourseCorporateAccess.course_id == course.id)
        .order_by(CourseCorporateAccess.created_at)
    )
    return list(result.scalars().all())


async def grant_corporate_access(
    course_id: uuid.UUID,
    corporate_agreement_id: uuid.UUID,
    db: AsyncSession,
) -> CourseCorporateAccess:
    """
    Let members of a corporate agreement use a course.

    The mapping only matters while the course is corporate-exclusive.

    Raises:
        NotFoundError: Course does not exist.
        ValidationError: The agreement is already mapped.
    """
    course = await content_service.get_course(course_id, db, include_inactive=True)

    access = CourseCorporateAccess(
        id=uuid.uuid4(),
        course_id=course.id,
        corporate_agreement_id=corporate_agreement_id,
    )
    db.add(access)
    await _commit(db, "grant corporate access", access)

    logger.info(f"Granted agreement {corporate_agreement_id} access to course {course.id}")
    return access


async def revoke_corporate_access(
    course_id: uuid.UUID,
    corporate_agreement_id: uuid.UUID,
    db: AsyncSession,
) -> None:
    """
    Remove an agreement's access to a course.

    Raises:
        NotFoundError: No such mapping.
    """
    result = await db.execute(
        select(CourseCorporateAccess).where(
            CourseCorporateAccess.course_id == course_id,
            CourseCorporateAccess.corporate_agreement_id == corporate_agreement_id,
        )
    )
    access = result.scalar_one_or_none()

    if access is None:
        raise NotFoundError("Corporate access not found", "corporate_access_not_found")

    await db.delete(access)
    await _commit(db, "revoke corporate access")

    logger.info(f"Revoked agreement {corporate_agreement_id} access to course {course_id}")
