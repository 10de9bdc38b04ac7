"""
API Tests

Tests for routing, authentication dependencies and the error response
format, with services patched out.
"""

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def learner(make_user):
    return make_user()


@pytest.fixture
def client(learner, mock_async_session):
    """TestClient with the current user and database session overridden."""
    from app.api.deps import get_current_active_user
    from app.core.database import get_db
    from app.main import app

    async def override_db():
        yield mock_async_session

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_current_active_user] = lambda: learner
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealth:
    """Tests for service endpoints."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_missing_token_rejected(self, mock_async_session):
        from app.core.database import get_db
        from app.main import app

        async def override_db():
            yield mock_async_session

        app.dependency_overrides[get_db] = override_db
        try:
            response = TestClient(app).get("/api/v1/courses")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 401

    def test_invalid_token_rejected(self, mock_async_session):
        from app.core.database import get_db
        from app.main import app

        async def override_db():
            yield mock_async_session

        app.dependency_overrides[get_db] = override_db
        try:
            response = TestClient(app).get(
                "/api/v1/courses",
                headers={"Authorization": "Bearer not-a-jwt"},
            )
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 401

    def test_valid_token_loads_user(self, mock_async_session, scalar_result, learner):
        from app.core.database import get_db
        from app.core.security import create_access_token
        from app.main import app

        async def override_db():
            yield mock_async_session

        mock_async_session.execute.return_value = scalar_result(one=learner)
        token = create_access_token(learner.id)

        app.dependency_overrides[get_db] = override_db
        try:
            with patch(
                "app.services.progress_service.list_courses",
                AsyncMock(return_value=[]),
            ) as list_courses:
                response = TestClient(app).get(
                    "/api/v1/courses",
                    headers={"Authorization": f"Bearer {token}"},
                )
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 200
        assert response.json() == []
        assert list_courses.await_args.kwargs["user"] is learner


class TestErrorResponses:
    """Domain errors map to status codes and distinct messages."""

    def test_incomplete_submission(self, client):
        from app.core.exceptions import IncompleteSubmissionError

        with patch(
            "app.services.progress_service.submit_quiz",
            AsyncMock(side_effect=IncompleteSubmissionError(["q2"])),
        ):
            response = client.post(
                f"/api/v1/videos/{uuid.uuid4()}/quiz",
                json={"answers": {"q1": "A"}},
            )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] is True
        assert body["code"] == "incomplete_submission"
        assert body["status_code"] == 400
        assert "answer all questions" in body["message"]

    def test_locked_video(self, client):
        from app.core.exceptions import IncompleteSubmissionError, VideoLockedError

        with patch(
            "app.services.progress_service.record_video_watched",
            AsyncMock(side_effect=VideoLockedError()),
        ):
            response = client.post(
                f"/api/v1/videos/{uuid.uuid4()}/complete",
                json={"watched_seconds": 120},
            )

        assert response.status_code == 403
        body = response.json()
        assert body["code"] == "video_locked"
        assert body["message"] != IncompleteSubmissionError().message

    def test_persistence_failure(self, client):
        from app.core.exceptions import PersistenceError

        with patch(
            "app.services.progress_service.update_watch_time",
            AsyncMock(side_effect=PersistenceError()),
        ):
            response = client.post(
                f"/api/v1/videos/{uuid.uuid4()}/progress",
                json={"watched_seconds": 30},
            )

        assert response.status_code == 503
        assert response.json()["code"] == "persistence_error"

    def test_course_not_found(self, client):
        from app.core.exceptions import NotFoundError

        with patch(
            "app.services.progress_service.get_course_with_progress",
            AsyncMock(side_effect=NotFoundError("Course not found", "course_not_found")),
        ):
            response = client.get(f"/api/v1/courses/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["code"] == "course_not_found"

    def test_negative_watch_time_rejected(self, client):
        response = client.post(
            f"/api/v1/videos/{uuid.uuid4()}/complete",
            json={"watched_seconds": -1},
        )

        assert response.status_code == 422

    def test_admin_routes_need_admin(self, client):
        response = client.get("/api/v1/admin/courses")

        assert response.status_code == 403
        assert response.json()["code"] == "admin_required"


class TestVideoRoutes:
    """Tests for learner video routes."""

    def test_complete_returns_progress_and_state(self, client):
        from app.schemas.progress import CourseStateResponse
        from app.services.progression import Phase

        video_id = uuid.uuid4()
        progress = SimpleNamespace(
            video_id=video_id,
            completed=True,
            quiz_passed=False,
            watched_seconds=120,
            last_watched_at=datetime.now(timezone.utc),
            completed_at=datetime.now(timezone.utc),
        )
        state = CourseStateResponse(phase=Phase.TAKING_QUIZ, video_index=0, video_id=video_id)

        with patch(
            "app.services.progress_service.record_video_watched",
            AsyncMock(return_value=(progress, state)),
        ) as record:
            response = client.post(
                f"/api/v1/videos/{video_id}/complete",
                json={"watched_seconds": 120},
            )

        assert response.status_code == 200
        body = response.json()
        assert body["progress"]["completed"] is True
        assert body["state"]["phase"] == "TAKING_QUIZ"
        assert record.await_args.kwargs["watched_seconds"] == 120

    def test_questions_never_include_answers(self, client):
        from app.schemas.course import QuestionOption, QuestionPublic

        video_id = uuid.uuid4()
        public = [
            QuestionPublic(
                id=uuid.uuid4(),
                video_id=video_id,
                question="Capital of Italy?",
                options=[QuestionOption(label="A", text="Milan"), QuestionOption(label="B", text="Rome")],
                sort_order=0,
            )
        ]

        with patch(
            "app.services.progress_service.get_questions_for_learner",
            AsyncMock(return_value=public),
        ):
            response = client.get(f"/api/v1/videos/{video_id}/questions")

        assert response.status_code == 200
        question = response.json()[0]
        assert "correct_answer" not in question
        assert question["options"][1] == {"label": "B", "text": "Rome"}


class TestAdminRoutes:
    """Tests for admin content routes."""

    @pytest.fixture
    def admin_client(self, make_user, mock_async_session):
        from app.api.deps import get_current_active_user
        from app.core.database import get_db
        from app.main import app
        from app.models.enums import UserRole

        async def override_db():
            yield mock_async_session

        admin = make_user(role=UserRole.ADMIN)
        app.dependency_overrides[get_db] = override_db
        app.dependency_overrides[get_current_active_user] = lambda: admin
        yield TestClient(app)
        app.dependency_overrides.clear()

    def test_add_course_question(self, admin_client):
        from app.schemas.course import CourseQuestionDetail, QuestionOption

        course_id = uuid.uuid4()
        detail = CourseQuestionDetail(
            id=uuid.uuid4(),
            course_id=course_id,
            question="Final check",
            options=[QuestionOption(label="A", text="Yes"), QuestionOption(label="B", text="No")],
            correct_answer="A",
            sort_order=0,
        )

        with patch(
            "app.services.course_service.add_course_question",
            AsyncMock(return_value=detail),
        ) as add:
            response = admin_client.post(
                f"/api/v1/admin/courses/{course_id}/questions",
                json={"question": "Final check", "options": ["Yes", "No"], "correct_answer": "A"},
            )

        assert response.status_code == 201
        assert response.json()["course_id"] == str(course_id)
        assert add.await_args.args[0] == course_id

    def test_position_locked_is_a_bad_request(self, admin_client):
        from app.core.exceptions import ValidationError

        with patch(
            "app.services.course_service.update_video",
            AsyncMock(side_effect=ValidationError("Order is fixed", "position_locked")),
        ):
            response = admin_client.patch(
                f"/api/v1/admin/videos/{uuid.uuid4()}",
                json={"sort_order": 4},
            )

        assert response.status_code == 400
        assert response.json()["code"] == "position_locked"

    def test_revoke_corporate_access(self, admin_client):
        course_id, agreement_id = uuid.uuid4(), uuid.uuid4()

        with patch(
            "app.services.course_service.revoke_corporate_access",
            AsyncMock(return_value=None),
        ) as revoke:
            response = admin_client.delete(
                f"/api/v1/admin/courses/{course_id}/corporate-access/{agreement_id}"
            )

        assert response.status_code == 204
        assert revoke.await_args.args[:2] == (course_id, agreement_id)
