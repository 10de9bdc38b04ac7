"""
Progression Engine Unit Tests

Tests for unlock gating, resume point, quiz grading and the course state
machine.
"""

import itertools

import pytest


class TestEntryPoint:
    """Tests for resolve_entry_point."""

    def test_fresh_user_starts_at_first_video(self, make_course_videos):
        from app.services.progression import resolve_entry_point

        videos = make_course_videos(False, True, False)

        assert resolve_entry_point(videos, []) == 0

    def test_watched_but_unpassed_quiz_is_entry(self, make_course_videos, make_progress):
        from app.services.progression import resolve_entry_point

        videos = make_course_videos(False, True, False)
        progress = [
            make_progress(videos[0], completed=True),
            make_progress(videos[1], completed=True, quiz_passed=False),
        ]

        assert resolve_entry_point(videos, progress) == 1

    def test_all_satisfied_returns_last_index(self, make_course_videos, make_progress):
        from app.services.progression import resolve_entry_point

        videos = make_course_videos(False, True)
        progress = [
            make_progress(videos[0], completed=True),
            make_progress(videos[1], completed=True, quiz_passed=True),
        ]

        assert resolve_entry_point(videos, progress) == 1

    def test_empty_course_has_no_entry(self):
        from app.services.progression import resolve_entry_point

        assert resolve_entry_point([], []) is None

    def test_resolve_is_idempotent(self, make_course_videos, make_progress):
        """Two calls without a mutation in between agree."""
        from app.services.progression import resolve_entry_point

        videos = make_course_videos(True, True, False, True)
        progress = [make_progress(videos[0], completed=True, quiz_passed=True)]

        assert resolve_entry_point(videos, progress) == resolve_entry_point(videos, progress)


class TestCanAccess:
    """Tests for can_access and unlocked_flags."""

    def test_first_video_always_open(self, make_course_videos):
        from app.services.progression import can_access

        videos = make_course_videos(True, True)

        assert can_access(0, videos, []) is True

    def test_quiz_gated_previous_needs_pass(self, make_course_videos, make_progress):
        from app.services.progression import can_access

        videos = make_course_videos(True, False)
        watched = [make_progress(videos[0], completed=True)]
        passed = [make_progress(videos[0], completed=True, quiz_passed=True)]

        assert can_access(1, videos, watched) is False
        assert can_access(1, videos, passed) is True

    def test_ungated_previous_needs_only_watch(self, make_course_videos, make_progress):
        from app.services.progression import can_access

        videos = make_course_videos(False, False)

        assert can_access(1, videos, [make_progress(videos[0], completed=False)]) is False
        assert can_access(1, videos, [make_progress(videos[0], completed=True)]) is True

    @pytest.mark.parametrize("index", [3, 99, -1])
    def test_out_of_range_is_locked(self, make_course_videos, index):
        from app.services.progression import can_access

        videos = make_course_videos(False, False, False)

        assert can_access(index, videos, []) is False

    def test_flags_match_can_access(self, make_course_videos, make_progress):
        from app.services.progression import can_access, unlocked_flags

        videos = make_course_videos(False, True, False)
        progress = [
            make_progress(videos[0], completed=True),
            make_progress(videos[1], completed=True),
        ]

        assert unlocked_flags(videos, progress) == [
            can_access(i, videos, progress) for i in range(len(videos))
        ]
        assert unlocked_flags(videos, progress) == [True, True, False]


def _apply(step, videos, progress_by_id, make_progress):
    """Apply an operation the services allow: only on unlocked videos."""
    from app.services.progression import can_access

    action, index = step
    records = list(progress_by_id.values())
    if not can_access(index, videos, records):
        return False

    video = videos[index]
    record = progress_by_id.get(video.id) or make_progress(video)
    if action == "watch":
        record.completed = True
    elif action == "pass":
        record.quiz_passed = True
        record.completed = True
    progress_by_id[video.id] = record
    return True


class TestGatingProperties:
    """Properties over every short operation sequence."""

    @pytest.mark.parametrize("flags", [(True, True, True), (False, True, False), (False, False, True)])
    def test_sequential_and_monotonic(self, make_course_videos, make_progress, flags):
        from app.services.progression import unlocked_flags

        videos = make_course_videos(*flags)
        steps = [(action, i) for action in ("watch", "pass", "fail") for i in range(len(videos))]

        for sequence in itertools.product(steps, repeat=3):
            progress_by_id = {}
            previous = unlocked_flags(videos, [])

            for step in sequence:
                _apply(step, videos, progress_by_id, make_progress)
                current = unlocked_flags(videos, list(progress_by_id.values()))

                # No skipping: an unlocked video has an unlocked predecessor
                for i in range(1, len(videos)):
                    if current[i]:
                        assert current[i - 1]

                # Never regresses
                for i, was_open in enumerate(previous):
                    if was_open:
                        assert current[i]

                previous = current


class TestOptionLabels:
    """Tests for option label extraction and normalization."""

    def test_explicit_label_object(self):
        from app.services.progression import extract_option_label

        assert extract_option_label({"label": "C", "text": "Rome"}, 0) == "C"

    @pytest.mark.parametrize("text,label", [
        ("A) Paris", "A"),
        ("B. London", "B"),
        ("C: Berlin", "C"),
        ("D)Madrid", "D"),
    ])
    def test_legacy_prefix(self, text, label):
        from app.services.progression import extract_option_label

        assert extract_option_label(text, 3) == label

    def test_positional_fallback(self):
        from app.services.progression import extract_option_label

        assert extract_option_label("Paris", 0) == "A"
        assert extract_option_label("Madrid", 3) == "D"

    def test_positional_fallback_past_four_options_raises(self):
        from app.core.exceptions import OptionLabelError, ValidationError
        from app.services.progression import extract_option_label

        with pytest.raises(OptionLabelError) as exc_info:
            extract_option_label("Lisbon", 4)

        assert isinstance(exc_info.value, ValidationError)
        assert exc_info.value.code == "invalid_option_labels"

    def test_normalize_strips_prefix(self):
        from app.services.progression import normalize_options

        options = normalize_options(["A) Paris", "B) London"])

        assert options == [
            {"label": "A", "text": "Paris"},
            {"label": "B", "text": "London"},
        ]

    def test_normalize_rejects_five_unlabelled_options(self):
        from app.core.exceptions import OptionLabelError
        from app.services.progression import normalize_options

        with pytest.raises(OptionLabelError):
            normalize_options(["one", "two", "three", "four", "five"])

    def test_normalize_rejects_duplicate_labels(self):
        from app.core.exceptions import OptionLabelError
        from app.services.progression import normalize_options

        with pytest.raises(OptionLabelError):
            normalize_options(["A) Paris", "A) London"])

    def test_normalize_rejects_empty(self):
        from app.core.exceptions import OptionLabelError
        from app.services.progression import normalize_options

        with pytest.raises(OptionLabelError):
            normalize_options([])


class TestGradeQuiz:
    """Tests for all-or-nothing grading."""

    def test_all_correct_passes(self, make_question):
        from app.services.progression import grade_quiz

        q1, q2 = make_question("A"), make_question("B")

        grade = grade_quiz([q1, q2], {str(q1.id): "A", str(q2.id): "B"})

        assert grade.passed is True
        assert grade.results == {str(q1.id): True, str(q2.id): True}
        assert grade.correct_count == 2

    @pytest.mark.parametrize("wrong_index", [0, 1, 2])
    def test_single_wrong_answer_fails(self, make_question, wrong_index):
        from app.services.progression import grade_quiz

        questions = [make_question("A"), make_question("B"), make_question("C")]
        answers = {str(q.id): q.correct_answer for q in questions}
        answers[str(questions[wrong_index].id)] = "D"

        grade = grade_quiz(questions, answers)

        assert grade.passed is False
        assert grade.correct_count == 2
        assert grade.results[str(questions[wrong_index].id)] is False

    def test_comparison_is_case_sensitive(self, make_question):
        from app.services.progression import grade_quiz

        q = make_question("A")

        assert grade_quiz([q], {str(q.id): "a"}).passed is False

    def test_uuid_keys_accepted(self, make_question):
        from app.services.progression import grade_quiz

        q = make_question("B")

        assert grade_quiz([q], {q.id: "B"}).passed is True

    def test_missing_answer_raises(self, make_question):
        from app.core.exceptions import IncompleteSubmissionError, ValidationError
        from app.services.progression import grade_quiz

        q1, q2 = make_question("A"), make_question("B")

        with pytest.raises(IncompleteSubmissionError) as exc_info:
            grade_quiz([q1, q2], {str(q1.id): "A"})

        assert isinstance(exc_info.value, ValidationError)
        assert exc_info.value.missing_question_ids == [str(q2.id)]

    def test_blank_answer_counts_as_missing(self, make_question):
        from app.core.exceptions import IncompleteSubmissionError
        from app.services.progression import grade_quiz

        q = make_question("A")

        with pytest.raises(IncompleteSubmissionError):
            grade_quiz([q], {str(q.id): ""})

    def test_unknown_question_ids_ignored(self, make_question):
        from app.services.progression import grade_quiz

        q = make_question("A")

        grade = grade_quiz([q], {str(q.id): "A", "not-a-question": "B"})

        assert grade.passed is True
        assert list(grade.results) == [str(q.id)]

    def test_no_questions_passes(self):
        from app.services.progression import grade_quiz

        grade = grade_quiz([], {})

        assert grade.passed is True
        assert grade.total == 0


class TestStateMachine:
    """Tests for course state transitions."""

    def test_gated_video_end_goes_to_quiz(self, make_course_videos):
        from app.services.progression import CourseState, Phase, on_video_ended

        videos = make_course_videos(True, False)

        assert on_video_ended(0, videos, []) == CourseState(Phase.TAKING_QUIZ, 0)

    def test_ungated_video_end_advances(self, make_course_videos):
        from app.services.progression import CourseState, Phase, on_video_ended

        videos = make_course_videos(False, True)

        assert on_video_ended(0, videos, []) == CourseState(Phase.WATCHING_VIDEO, 1)

    def test_rewatch_of_passed_quiz_advances(self, make_course_videos, make_progress):
        from app.services.progression import Phase, on_video_ended

        videos = make_course_videos(True, False)
        progress = [make_progress(videos[0], completed=True, quiz_passed=True)]

        assert on_video_ended(0, videos, progress).phase == Phase.WATCHING_VIDEO

    def test_last_video_completes_course(self, make_course_videos):
        from app.services.progression import CourseState, Phase, on_video_ended

        videos = make_course_videos(False, False)

        assert on_video_ended(1, videos, []) == CourseState(Phase.COURSE_COMPLETE, 1)

    def test_failed_quiz_stays_on_quiz(self, make_course_videos):
        from app.services.progression import CourseState, Phase, on_quiz_submitted

        videos = make_course_videos(True, True)

        assert on_quiz_submitted(0, False, videos) == CourseState(Phase.TAKING_QUIZ, 0)

    def test_passed_quiz_advances(self, make_course_videos):
        from app.services.progression import CourseState, Phase, on_quiz_submitted

        videos = make_course_videos(True, True)

        assert on_quiz_submitted(0, True, videos) == CourseState(Phase.WATCHING_VIDEO, 1)
        assert on_quiz_submitted(1, True, videos) == CourseState(Phase.COURSE_COMPLETE, 1)

    def test_current_state_rebuilt_from_progress(self, make_course_videos, make_progress):
        from app.services.progression import CourseState, Phase, current_state

        videos = make_course_videos(False, True, False)

        assert current_state(videos, []) == CourseState(Phase.WATCHING_VIDEO, 0)

        progress = [
            make_progress(videos[0], completed=True),
            make_progress(videos[1], completed=True),
        ]
        assert current_state(videos, progress) == CourseState(Phase.TAKING_QUIZ, 1)

        progress[1].quiz_passed = True
        progress.append(make_progress(videos[2], completed=True))
        assert current_state(videos, progress) == CourseState(Phase.COURSE_COMPLETE, 2)

    def test_empty_course_is_complete(self):
        from app.services.progression import CourseState, Phase, current_state

        assert current_state([], []) == CourseState(Phase.COURSE_COMPLETE, None)


class TestThreeVideoScenario:
    """Three videos, only the middle one quiz-gated with two questions."""

    def test_walkthrough(self, make_course_videos, make_progress, make_question):
        from app.services.progression import (
            can_access,
            grade_quiz,
            on_video_ended,
            resolve_entry_point,
            Phase,
        )

        videos = make_course_videos(False, True, False)
        q1, q2 = make_question("A"), make_question("B")
        progress = {}

        # Fresh user
        assert resolve_entry_point(videos, []) == 0
        assert [can_access(i, videos, []) for i in range(3)] == [True, False, False]

        # Watch video 0
        progress[videos[0].id] = make_progress(videos[0], completed=True, watched_seconds=120)
        assert can_access(1, videos, list(progress.values())) is True

        # Watch video 1, then fail its quiz
        progress[videos[1].id] = make_progress(videos[1], completed=True)
        assert on_video_ended(1, videos, list(progress.values())).phase == Phase.TAKING_QUIZ

        failed = grade_quiz([q1, q2], {str(q1.id): "A", str(q2.id): "X"})
        assert failed.passed is False
        assert can_access(2, videos, list(progress.values())) is False

        # Retry with all answers correct
        passed = grade_quiz([q1, q2], {str(q1.id): "A", str(q2.id): "B"})
        assert passed.passed is True
        progress[videos[1].id].quiz_passed = True

        assert progress[videos[1].id].quiz_passed is True
        assert can_access(2, videos, list(progress.values())) is True
