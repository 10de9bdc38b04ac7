"""
Progress Service

Business logic for learner progress: resuming a course, recording watched
videos and grading quizzes.

Every request rebuilds the learner's position from persisted progress; no
session state is kept between calls. Mutations are committed before success
is reported and a failed commit leaves the stored progress untouched.
Progress rows are upserted, so two tabs writing the same video at once
both succeed and the last write wins.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.dialects.postgresql import Insert, insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, PersistenceError, VideoLockedError
from app.models.course import Course
from app.models.enums import CourseVisibility
from app.models.user import User
from app.models.video_progress import UserVideoProgress
from app.schemas.course import CourseResponse, VideoResponse
from app.schemas.progress import (
    CourseListItem,
    CourseProgressSummary,
    CourseStateResponse,
    CourseWithProgressResponse,
    ProgressResponse,
    QuizResult,
    VideoWithAccess,
)
from app.services import content_service
from app.services.progression import (
    Phase,
    can_access,
    current_state,
    find_video_index,
    grade_quiz,
    index_progress,
    is_video_satisfied,
    on_quiz_submitted,
    on_video_ended,
    resolve_entry_point,
    unlocked_flags,
)


logger = logging.getLogger(__name__)


# ============== Helpers ==============

async def get_user_progress(
    user_id: uuid.UUID,
    course_id: uuid.UUID,
    db: AsyncSession,
) -> List[UserVideoProgress]:
    """
    All progress records of a user within a course.

    Args:
        user_id: User ID.
        course_id: Course ID.
        db: Database session.

    Returns:
        List of UserVideoProgress objects.
    """
    result = await db.execute(
        select(UserVideoProgress).where(
            UserVideoProgress.user_id == user_id,
            UserVideoProgress.course_id == course_id,
        )
    )
    return list(result.scalars().all())


async def get_all_user_progress(
    user_id: uuid.UUID,
    db: AsyncSession,
) -> List[UserVideoProgress]:
    """All progress records of a user across courses."""
    result = await db.execute(
        select(UserVideoProgress).where(UserVideoProgress.user_id == user_id)
    )
    return list(result.scalars().all())


async def _load_video_context(
    user: User,
    video_id: uuid.UUID,
    db: AsyncSession,
) -> Tuple[Course, List[VideoResponse], List[UserVideoProgress], int]:
    """
    Resolve a video into its course, the ordered video list, the user's
    progress and the video's position; refuse locked videos.

    Raises:
        NotFoundError: Video or course does not exist.
        AuthorizationError: User may not use the course.
        VideoLockedError: Video is not unlocked for this user.
    """
    video = await content_service.get_video(video_id, db)
    course = await content_service.get_course(video.course_id, db)
    await content_service.ensure_course_access(user, course, db)

    videos = await content_service.get_course_videos(course.id, db)
    index = find_video_index(videos, video.id)
    if index is None:
        raise NotFoundError("Video not found in this course", "video_not_found")

    records = await get_user_progress(user.id, course.id, db)

    if not can_access(index, videos, records):
        logger.info(f"User {user.id} tried locked video {video.id} (position {index})")
        raise VideoLockedError(video.id)

    return course, videos, records, index


def build_progress_upsert(
    user_id: uuid.UUID,
    course_id: uuid.UUID,
    video_id: uuid.UUID,
    *,
    watched_seconds: int = 0,
    completed: bool = False,
    quiz_passed: bool = False,
) -> Insert:
    """
    INSERT ... ON CONFLICT (user_id, video_id) DO UPDATE for one progress row.

    Concurrent writers for the same video never conflict: the last write
    wins, while ``watched_seconds`` only grows and ``completed`` and
    ``quiz_passed`` are never cleared.
    """
    now = datetime.now(timezone.utc)
    table = UserVideoProgress.__table__

    stmt = pg_insert(UserVideoProgress).values(
        id=uuid.uuid4(),
        user_id=user_id,
        course_id=course_id,
        video_id=video_id,
        completed=completed,
        quiz_passed=quiz_passed,
        watched_seconds=watched_seconds,
        last_watched_at=now,
        completed_at=now if completed else None,
    )
    return stmt.on_conflict_do_update(
        index_elements=[UserVideoProgress.user_id, UserVideoProgress.video_id],
        set_={
            "watched_seconds": func.greatest(table.c.watched_seconds, stmt.excluded.watched_seconds),
            "completed": or_(table.c.completed, stmt.excluded.completed),
            "quiz_passed": or_(table.c.quiz_passed, stmt.excluded.quiz_passed),
            "completed_at": func.coalesce(table.c.completed_at, stmt.excluded.completed_at),
            "last_watched_at": stmt.excluded.last_watched_at,
        },
    ).returning(UserVideoProgress)


async def _save_progress(
    db: AsyncSession,
    stmt: Insert,
    video_id: uuid.UUID,
    action: str,
) -> UserVideoProgress:
    """
    Run a progress upsert and commit it.

    Raises:
        PersistenceError: The write was not stored; the session is rolled back.
    """
    try:
        result = await db.execute(stmt, execution_options={"populate_existing": True})
        progress = result.scalar_one()
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception(f"Failed to persist {action} for video {video_id}")
        raise PersistenceError() from e
    return progress


def _merge_record(
    records: List[UserVideoProgress],
    progress: UserVideoProgress,
) -> List[UserVideoProgress]:
    """Records with the stored row of ``progress.video_id`` replaced."""
    return [r for r in records if str(r.video_id) != str(progress.video_id)] + [progress]


# ============== Queries ==============

async def get_course_with_progress(
    user: User,
    course_id: uuid.UUID,
    db: AsyncSession,
) -> CourseWithProgressResponse:
    """
    Course metadata, ordered videos with access flags, and the user's
    progress and resume point.

    Raises:
        NotFoundError: Course does not exist or is inactive.
        AuthorizationError: User may not use the course.
    """
    course = await content_service.get_course(course_id, db)
    await content_service.ensure_course_access(user, course, db)

    videos = await content_service.get_course_videos(course.id, db)
    records = await get_user_progress(user.id, course.id, db)

    # Ignore records of videos that were removed from the course
    video_ids = {str(video.id) for video in videos}
    records = [record for record in records if str(record.video_id) in video_ids]

    flags = unlocked_flags(videos, records)
    state = current_state(videos, records)

    return CourseWithProgressResponse(
        course=CourseResponse.model_validate(course),
        videos=[
            VideoWithAccess(**video.model_dump(), is_unlocked=flag)
            for video, flag in zip(videos, flags)
        ],
        progress=[ProgressResponse.model_validate(record) for record in records],
        entry_index=resolve_entry_point(videos, records),
        state=CourseStateResponse.from_state(state, videos),
    )


def _summarize(
    course_id: uuid.UUID,
    videos: List[VideoResponse],
    records: List[UserVideoProgress],
) -> CourseProgressSummary:
    by_video = index_progress(records)
    completed = sum(
        1 for video in videos
        if is_video_satisfied(video, by_video.get(str(video.id)))
    )
    total = len(videos)
    percent = int(completed * 100 / total) if total else 0

    return CourseProgressSummary(
        course_id=course_id,
        completed_videos=completed,
        total_videos=total,
        percent_complete=percent,
        is_complete=total > 0 and completed == total,
    )


async def get_course_progress_summary(
    user: User,
    course_id: uuid.UUID,
    db: AsyncSession,
) -> CourseProgressSummary:
    """
    Lifetime completion of a course for the user.

    A video counts as done once it is watched and, where required, its
    quiz is passed.
    """
    course = await content_service.get_course(course_id, db)
    await content_service.ensure_course_access(user, course, db)

    videos = await content_service.get_course_videos(course.id, db)
    records = await get_user_progress(user.id, course.id, db)

    return _summarize(course.id, videos, records)


async def _visible_courses(user: User, courses: List[Course], db: AsyncSession) -> List[Course]:
    corporate = [c for c in courses if c.visibility_type == CourseVisibility.CORPORATE_EXCLUSIVE]
    if not corporate or user.is_admin:
        return courses

    allowed = await content_service.get_corporate_course_ids(user.corporate_agreement_id, db)
    return [
        course for course in courses
        if course.visibility_type != CourseVisibility.CORPORATE_EXCLUSIVE
        or str(course.id) in allowed
    ]


async def list_courses(
    user: User,
    db: AsyncSession,
) -> List[CourseListItem]:
    """
    Active courses with the user's completion for each.

    Corporate-exclusive courses are listed only for members of a mapped
    agreement (and for admins).
    """
    courses = await content_service.list_active_courses(db)
    courses = await _visible_courses(user, courses, db)
    records = await get_all_user_progress(user.id, db)

    items = []
    for course in courses:
        videos = await content_service.get_course_videos(course.id, db)
        course_records = [r for r in records if str(r.course_id) == str(course.id)]
        summary = _summarize(course.id, videos, course_records)
        items.append(
            CourseListItem(
                **CourseResponse.model_validate(course).model_dump(),
                total_videos=summary.total_videos,
                completed_videos=summary.completed_videos,
                percent_complete=summary.percent_complete,
            )
        )

    return items


async def get_questions_for_learner(
    user: User,
    video_id: uuid.UUID,
    db: AsyncSession,
) -> List[Any]:
    """
    Quiz questions of an unlocked video, without the answer key.

    Raises:
        NotFoundError, AuthorizationError, VideoLockedError
    """
    await _load_video_context(user, video_id, db)
    questions = await content_service.get_video_questions(video_id, db)
    return [question.to_public() for question in questions]


# ============== Mutations ==============

async def update_watch_time(
    user: User,
    video_id: uuid.UUID,
    watched_seconds: int,
    db: AsyncSession,
) -> UserVideoProgress:
    """
    Record playback progress without completing the video (heartbeat).

    ``watched_seconds`` never decreases: a lower report than the stored
    value keeps the stored value.

    Raises:
        NotFoundError, AuthorizationError, VideoLockedError, PersistenceError
    """
    course, videos, records, index = await _load_video_context(user, video_id, db)
    stmt = build_progress_upsert(
        user.id, course.id, videos[index].id, watched_seconds=watched_seconds
    )
    return await _save_progress(db, stmt, videos[index].id, "watch time")


async def record_video_watched(
    user: User,
    video_id: uuid.UUID,
    watched_seconds: int,
    db: AsyncSession,
) -> Tuple[UserVideoProgress, CourseStateResponse]:
    """
    Mark a video as watched to the end.

    The reported ``watched_seconds`` comes from the player at natural end
    of playback and is trusted; playback length is not verified. A lower
    value than the stored one keeps the stored value.

    Returns:
        Tuple of (progress, next state). A quiz-gated video with an unpassed
        quiz leads to TAKING_QUIZ, anything else advances.

    Raises:
        NotFoundError, AuthorizationError, VideoLockedError, PersistenceError
    """
    course, videos, records, index = await _load_video_context(user, video_id, db)
    stmt = build_progress_upsert(
        user.id, course.id, videos[index].id,
        watched_seconds=watched_seconds,
        completed=True,
    )
    progress = await _save_progress(db, stmt, videos[index].id, "video completion")

    state = on_video_ended(index, videos, _merge_record(records, progress))
    logger.info(f"User {user.id} watched video {video_id}; next {state.phase.value}")
    return progress, CourseStateResponse.from_state(state, videos)


def _quiz_message(passed: bool, correct: int, total: int, phase: Phase) -> str:
    if not passed:
        return (
            f"You answered {correct}/{total} questions correctly. "
            "Every answer must be correct: review the video and try again."
        )
    if phase == Phase.COURSE_COMPLETE:
        return "Quiz passed! You have completed the course."
    return "Quiz passed! The next video is now unlocked."


async def submit_quiz(
    user: User,
    video_id: uuid.UUID,
    answers: Dict[str, str],
    db: AsyncSession,
) -> QuizResult:
    """
    Grade a quiz attempt and record a pass.

    Only a fully correct attempt is persisted (``quiz_passed`` and
    ``completed`` set to True). A failed attempt changes nothing and never
    revokes an earlier pass; the learner may retry immediately.

    Args:
        user: Current user.
        video_id: Video the quiz belongs to.
        answers: Question ID to selected option label.
        db: Database session.

    Returns:
        QuizResult with per-question correctness and the next state.

    Raises:
        IncompleteSubmissionError: Not every question was answered.
        NotFoundError, AuthorizationError, VideoLockedError, PersistenceError
    """
    course, videos, records, index = await _load_video_context(user, video_id, db)
    questions = await content_service.get_video_questions(videos[index].id, db)

    grade = grade_quiz(questions, answers)

    if grade.passed:
        existing = index_progress(records).get(str(videos[index].id))
        if not (existing is not None and existing.quiz_passed and existing.completed):
            stmt = build_progress_upsert(
                user.id, course.id, videos[index].id,
                completed=True,
                quiz_passed=True,
            )
            await _save_progress(db, stmt, videos[index].id, "quiz pass")
        logger.info(f"User {user.id} passed quiz for video {video_id}")
    else:
        logger.info(
            f"User {user.id} failed quiz for video {video_id} "
            f"({grade.correct_count}/{grade.total})"
        )

    state = on_quiz_submitted(index, grade.passed, videos)

    explanations: Dict[str, str] = {}
    if grade.passed:
        explanations = {
            str(question.id): question.explanation
            for question in questions
            if question.explanation
        }

    return QuizResult(
        video_id=videos[index].id,
        results=grade.results,
        passed=grade.passed,
        correct_count=grade.correct_count,
        total_questions=grade.total,
        message=_quiz_message(grade.passed, grade.correct_count, grade.total, state.phase),
        explanations=explanations,
        state=CourseStateResponse.from_state(state, videos),
    )
