"""
Admin Routes

Content management for courses, videos, quiz questions, end-of-course
questions and corporate access. Admin only.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_admin
from app.core.database import get_db
from app.models.user import User
from app.schemas.course import (
    CorporateAccessGrant,
    CorporateAccessResponse,
    CourseCreate,
    CourseQuestionDetail,
    CourseResponse,
    CourseUpdate,
    QuestionCreate,
    QuestionDetail,
    QuestionUpdate,
    VideoCreate,
    VideoResponse,
    VideoUpdate,
)
from app.services import content_service, course_service


router = APIRouter(prefix="/admin", tags=["Admin"])

AdminUser = Annotated[User, Depends(require_admin)]
Session = Annotated[AsyncSession, Depends(get_db)]


# ============== Courses ==============

@router.get("/courses", response_model=list[CourseResponse], summary="List all courses")
async def list_courses(admin: AdminUser, db: Session) -> list[CourseResponse]:
    """List every course, inactive ones included."""
    courses = await course_service.list_all_courses(db)
    return [CourseResponse.model_validate(course) for course in courses]


@router.post(
    "/courses",
    response_model=CourseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create course",
)
async def create_course(data: CourseCreate, admin: AdminUser, db: Session) -> CourseResponse:
    course = await course_service.create_course(data, db)
    return CourseResponse.model_validate(course)


@router.patch("/courses/{course_id}", response_model=CourseResponse, summary="Update course")
async def update_course(
    course_id: uuid.UUID,
    data: CourseUpdate,
    admin: AdminUser,
    db: Session,
) -> CourseResponse:
    course = await course_service.update_course(course_id, data, db)
    return CourseResponse.model_validate(course)


@router.delete(
    "/courses/{course_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete course",
)
async def delete_course(course_id: uuid.UUID, admin: AdminUser, db: Session) -> None:
    """Delete a course together with its videos, questions and progress."""
    await course_service.delete_course(course_id, db)


# ============== Videos ==============

@router.get(
    "/courses/{course_id}/videos",
    response_model=list[VideoResponse],
    summary="List course videos",
)
async def list_videos(course_id: uuid.UUID, admin: AdminUser, db: Session) -> list[VideoResponse]:
    course = await content_service.get_course(course_id, db, include_inactive=True)
    return await content_service.get_course_videos(course.id, db)


@router.post(
    "/courses/{course_id}/videos",
    response_model=VideoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add video",
)
async def add_video(
    course_id: uuid.UUID,
    data: VideoCreate,
    admin: AdminUser,
    db: Session,
) -> VideoResponse:
    """Add a video at ``sort_order``; positions are unique per course."""
    video = await course_service.add_video(course_id, data, db)
    return VideoResponse.model_validate(video)


@router.patch("/videos/{video_id}", response_model=VideoResponse, summary="Update video")
async def update_video(
    video_id: uuid.UUID,
    data: VideoUpdate,
    admin: AdminUser,
    db: Session,
) -> VideoResponse:
    video = await course_service.update_video(video_id, data, db)
    return VideoResponse.model_validate(video)


@router.delete(
    "/videos/{video_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete video",
)
async def delete_video(video_id: uuid.UUID, admin: AdminUser, db: Session) -> None:
    await course_service.delete_video(video_id, db)


# ============== Questions ==============

@router.get(
    "/videos/{video_id}/questions",
    response_model=list[QuestionDetail],
    summary="List questions with answers",
)
async def list_questions(video_id: uuid.UUID, admin: AdminUser, db: Session) -> list[QuestionDetail]:
    return await course_service.list_questions(video_id, db)


@router.post(
    "/videos/{video_id}/questions",
    response_model=QuestionDetail,
    status_code=status.HTTP_201_CREATED,
    summary="Add question",
)
async def add_question(
    video_id: uuid.UUID,
    data: QuestionCreate,
    admin: AdminUser,
    db: Session,
) -> QuestionDetail:
    """
    Add a question to a video.

    Options may be ``{"label", "text"}`` objects or legacy strings such as
    ``"A) Paris"``; the correct answer must be one of the resulting labels.
    """
    return await course_service.add_question(video_id, data, db)


@router.patch(
    "/questions/{question_id}",
    response_model=QuestionDetail,
    summary="Update question",
)
async def update_question(
    question_id: uuid.UUID,
    data: QuestionUpdate,
    admin: AdminUser,
    db: Session,
) -> QuestionDetail:
    return await course_service.update_question(question_id, data, db)


@router.delete(
    "/questions/{question_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete question",
)
async def delete_question(question_id: uuid.UUID, admin: AdminUser, db: Session) -> None:
    await course_service.delete_question(question_id, db)


# ============== Course Questions ==============

@router.get(
    "/courses/{course_id}/questions",
    response_model=list[CourseQuestionDetail],
    summary="List end-of-course questions",
)
async def list_course_questions(
    course_id: uuid.UUID,
    admin: AdminUser,
    db: Session,
) -> list[CourseQuestionDetail]:
    return await course_service.list_course_questions(course_id, db)


@router.post(
    "/courses/{course_id}/questions",
    response_model=CourseQuestionDetail,
    status_code=status.HTTP_201_CREATED,
    summary="Add end-of-course question",
)
async def add_course_question(
    course_id: uuid.UUID,
    data: QuestionCreate,
    admin: AdminUser,
    db: Session,
) -> CourseQuestionDetail:
    """Add a question asked at the end of the course, not tied to a video."""
    return await course_service.add_course_question(course_id, data, db)


@router.patch(
    "/course-questions/{question_id}",
    response_model=CourseQuestionDetail,
    summary="Update end-of-course question",
)
async def update_course_question(
    question_id: uuid.UUID,
    data: QuestionUpdate,
    admin: AdminUser,
    db: Session,
) -> CourseQuestionDetail:
    return await course_service.update_course_question(question_id, data, db)


@router.delete(
    "/course-questions/{question_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete end-of-course question",
)
async def delete_course_question(question_id: uuid.UUID, admin: AdminUser, db: Session) -> None:
    await course_service.delete_course_question(question_id, db)


# ============== Corporate Access ==============

@router.get(
    "/courses/{course_id}/corporate-access",
    response_model=list[CorporateAccessResponse],
    summary="List agreements with access",
)
async def list_corporate_access(
    course_id: uuid.UUID,
    admin: AdminUser,
    db: Session,
) -> list[CorporateAccessResponse]:
    mappings = await course_service.list_corporate_access(course_id, db)
    return [CorporateAccessResponse.model_validate(mapping) for mapping in mappings]


@router.post(
    "/courses/{course_id}/corporate-access",
    response_model=CorporateAccessResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Grant agreement access",
)
async def grant_corporate_access(
    course_id: uuid.UUID,
    data: CorporateAccessGrant,
    admin: AdminUser,
    db: Session,
) -> CorporateAccessResponse:
    """Let members of a corporate agreement use a corporate-exclusive course."""
    mapping = await course_service.grant_corporate_access(course_id, data.corporate_agreement_id, db)
    return CorporateAccessResponse.model_validate(mapping)


@router.delete(
    "/courses/{course_id}/corporate-access/{agreement_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke agreement access",
)
async def revoke_corporate_access(
    course_id: uuid.UUID,
    agreement_id: uuid.UUID,
    admin: AdminUser,
    db: Session,
) -> None:
    await course_service.revoke_corporate_access(course_id, agreement_id, db)
