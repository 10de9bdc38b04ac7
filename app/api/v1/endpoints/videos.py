"""
Video Routes

Endpoints for watching videos and taking their quizzes. Every route refuses
videos that are not unlocked for the current user.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_active_user
from app.core.database import get_db
from app.models.user import User
from app.schemas.course import QuestionPublic
from app.schemas.progress import (
    ProgressResponse,
    QuizResult,
    QuizSubmission,
    WatchReport,
    WatchResult,
)
from app.services import progress_service


router = APIRouter(prefix="/videos", tags=["Videos"])


@router.get(
    "/{video_id}/questions",
    response_model=list[QuestionPublic],
    summary="Get quiz questions",
)
async def get_questions(
    video_id: uuid.UUID,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[QuestionPublic]:
    """
    Get the quiz for a video.

    Correct answers are never included.
    """
    return await progress_service.get_questions_for_learner(
        user=current_user,
        video_id=video_id,
        db=db,
    )


@router.post(
    "/{video_id}/progress",
    response_model=ProgressResponse,
    summary="Update watch time",
)
async def heartbeat(
    video_id: uuid.UUID,
    data: WatchReport,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ProgressResponse:
    """
    Update the watch time for a video (heartbeat).

    Sent periodically by the player while the user is watching.
    """
    progress = await progress_service.update_watch_time(
        user=current_user,
        video_id=video_id,
        watched_seconds=data.watched_seconds,
        db=db,
    )
    return ProgressResponse.model_validate(progress)


@router.post(
    "/{video_id}/complete",
    response_model=WatchResult,
    summary="Mark video as watched",
)
async def complete_video(
    video_id: uuid.UUID,
    data: WatchReport,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> WatchResult:
    """
    Mark a video as watched to the end.

    Sent by the player when playback ends naturally. The returned state is
    TAKING_QUIZ when the video's quiz still has to be passed.

    Args:
        video_id: Video ID.
        data: Seconds watched.
        current_user: Authenticated learner.
        db: Database session.

    Returns:
        Stored progress and the next state.
    """
    progress, state = await progress_service.record_video_watched(
        user=current_user,
        video_id=video_id,
        watched_seconds=data.watched_seconds,
        db=db,
    )
    return WatchResult(progress=ProgressResponse.model_validate(progress), state=state)


@router.post(
    "/{video_id}/quiz",
    response_model=QuizResult,
    summary="Submit quiz answers",
)
async def submit_quiz(
    video_id: uuid.UUID,
    data: QuizSubmission,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> QuizResult:
    """
    Submit answers for a video's quiz.

    Every question must be answered. The quiz passes only when every answer
    is correct; a failed attempt can be retried right away.

    Args:
        video_id: Video ID.
        data: Question ID to selected option label.
        current_user: Authenticated learner.
        db: Database session.

    Returns:
        Per-question results, pass/fail and the next state.
    """
    return await progress_service.submit_quiz(
        user=current_user,
        video_id=video_id,
        answers=data.answers,
        db=db,
    )
