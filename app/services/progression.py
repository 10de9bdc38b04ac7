"""
Course Progression Engine

Pure, synchronous rules for sequential video unlocking and quiz gating.

Nothing here touches the database: callers pass the course's videos in
unlock order (objects exposing ``id`` and ``requires_quiz``) and the user's
progress records (objects exposing ``video_id``, ``completed`` and
``quiz_passed``). The same inputs always produce the same answers, so the
learner's position can be rebuilt from persisted progress on every request.
"""

import enum
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from app.core.exceptions import IncompleteSubmissionError, OptionLabelError


# Labels assigned by position to legacy options that carry no explicit label
POSITIONAL_LABELS = ("A", "B", "C", "D")

# Legacy option text such as "A) ...", "B. ..." or "C: ..."
_LABEL_PREFIX = re.compile(r"^\s*([A-D])[).:]\s*")


# ============== Gating ==============

def index_progress(progress_records: Sequence[Any]) -> Dict[str, Any]:
    """Map progress records by stringified video id."""
    return {str(record.video_id): record for record in progress_records}


def is_video_satisfied(video: Any, progress: Optional[Any]) -> bool:
    """
    A video is satisfied once it was watched and, when it carries a quiz,
    the quiz was passed.
    """
    if progress is None or not progress.completed:
        return False
    if video.requires_quiz and not progress.quiz_passed:
        return False
    return True


def resolve_entry_point(
    videos: Sequence[Any],
    progress_records: Sequence[Any],
) -> Optional[int]:
    """
    Index of the video the user should resume at.

    The first video that has no progress record, is not completed, or has
    an unpassed quiz. When every video is satisfied the last index is
    returned. A course without videos has no entry point (None).
    """
    if not videos:
        return None

    by_video = index_progress(progress_records)
    for index, video in enumerate(videos):
        if not is_video_satisfied(video, by_video.get(str(video.id))):
            return index

    return len(videos) - 1


def can_access(
    video_index: int,
    videos: Sequence[Any],
    progress_records: Sequence[Any],
) -> bool:
    """
    Whether the video at ``video_index`` is unlocked.

    The first video is always open; any other video opens once the video
    just before it is satisfied. Out-of-range indexes are simply not
    accessible.
    """
    if video_index < 0 or video_index >= len(videos):
        return False
    if video_index == 0:
        return True

    previous = videos[video_index - 1]
    by_video = index_progress(progress_records)
    return is_video_satisfied(previous, by_video.get(str(previous.id)))


def unlocked_flags(
    videos: Sequence[Any],
    progress_records: Sequence[Any],
) -> List[bool]:
    """``can_access`` for every video of the course, in order."""
    by_video = index_progress(progress_records)
    flags = []
    for index in range(len(videos)):
        if index == 0:
            flags.append(True)
            continue
        previous = videos[index - 1]
        flags.append(is_video_satisfied(previous, by_video.get(str(previous.id))))
    return flags


def find_video_index(videos: Sequence[Any], video_id: Any) -> Optional[int]:
    """Position of ``video_id`` in the ordered video list, or None."""
    for index, video in enumerate(videos):
        if str(video.id) == str(video_id):
            return index
    return None


# ============== Option labels ==============

def option_text(option: Any) -> str:
    """Display text of an option, without any legacy "A)" prefix."""
    if isinstance(option, Mapping):
        return str(option.get("text") or "")
    return _LABEL_PREFIX.sub("", str(option), count=1)


def extract_option_label(option: Any, index: int) -> str:
    """
    Label token of an option.

    Explicit ``{"label": ...}`` options keep their label. Legacy string
    options use their leading letter ("A) ...") and otherwise fall back to
    their position; only four positions can be mapped that way.

    Raises:
        OptionLabelError: Positional fallback past the fourth option.
    """
    if isinstance(option, Mapping):
        label = str(option.get("label") or "").strip()
        if label:
            return label
        text = str(option.get("text") or "")
    else:
        text = str(option)

    match = _LABEL_PREFIX.match(text)
    if match:
        return match.group(1)

    if index >= len(POSITIONAL_LABELS):
        raise OptionLabelError(
            f"Option {index + 1} has no label; only the first "
            f"{len(POSITIONAL_LABELS)} options can be labelled by position"
        )
    return POSITIONAL_LABELS[index]


def normalize_options(options: Any) -> List[Dict[str, str]]:
    """
    Convert stored options into an ordered ``[{label, text}]`` list.

    Raises:
        OptionLabelError: No options, ambiguous positional labels, or the
            same label used twice.
    """
    if not isinstance(options, (list, tuple)) or not options:
        raise OptionLabelError("A question needs at least one option")

    normalized = []
    seen = set()
    for index, option in enumerate(options):
        label = extract_option_label(option, index)
        if label in seen:
            raise OptionLabelError(f"Option label '{label}' is used more than once")
        seen.add(label)
        normalized.append({"label": label, "text": option_text(option)})

    return normalized


# ============== Quiz grading ==============

@dataclass(frozen=True)
class QuizGrade:
    """Outcome of grading one quiz attempt."""
    results: Dict[str, bool]
    correct_count: int
    total: int

    @property
    def passed(self) -> bool:
        # All or nothing: there is no partial-credit threshold
        return self.correct_count == self.total


def grade_quiz(questions: Sequence[Any], answers: Mapping[Any, Any]) -> QuizGrade:
    """
    Grade a quiz attempt.

    Args:
        questions: The video's questions (objects exposing ``id`` and
            ``correct_answer``).
        answers: Question id to selected option label.

    Returns:
        QuizGrade with a per-question correctness map.

    Raises:
        IncompleteSubmissionError: A question has no (or an empty) answer.
    """
    submitted = {str(question_id): label for question_id, label in answers.items()}

    missing = [str(q.id) for q in questions if not submitted.get(str(q.id))]
    if missing:
        raise IncompleteSubmissionError(missing)

    # Exact, case-sensitive comparison on the label token
    results = {str(q.id): submitted[str(q.id)] == q.correct_answer for q in questions}

    return QuizGrade(
        results=results,
        correct_count=sum(1 for correct in results.values() if correct),
        total=len(questions),
    )


# ============== State machine ==============

class Phase(str, enum.Enum):
    """Where a learner stands in a course."""
    WATCHING_VIDEO = "WATCHING_VIDEO"
    TAKING_QUIZ = "TAKING_QUIZ"
    ADVANCING = "ADVANCING"
    COURSE_COMPLETE = "COURSE_COMPLETE"


@dataclass(frozen=True)
class CourseState:
    """A phase plus the video index it refers to."""
    phase: Phase
    video_index: Optional[int]


def advance(video_index: int, videos: Sequence[Any]) -> CourseState:
    """
    Resolve the ADVANCING transition out of ``video_index``.

    The last video leads to COURSE_COMPLETE, any other to the next video.
    """
    if video_index >= len(videos) - 1:
        return CourseState(Phase.COURSE_COMPLETE, len(videos) - 1)
    return CourseState(Phase.WATCHING_VIDEO, video_index + 1)


def on_video_ended(
    video_index: int,
    videos: Sequence[Any],
    progress_records: Sequence[Any],
) -> CourseState:
    """
    Transition after a video finished playing.

    A quiz-gated video whose quiz is not passed yet moves to TAKING_QUIZ;
    anything else advances.
    """
    video = videos[video_index]
    progress = index_progress(progress_records).get(str(video.id))

    if video.requires_quiz and not (progress is not None and progress.quiz_passed):
        return CourseState(Phase.TAKING_QUIZ, video_index)
    return advance(video_index, videos)


def on_quiz_submitted(
    video_index: int,
    passed: bool,
    videos: Sequence[Any],
) -> CourseState:
    """
    Transition after a quiz attempt.

    A pass advances; a failure stays on the same quiz with a clean answer
    sheet. Retries are unlimited.
    """
    if passed:
        return advance(video_index, videos)
    return CourseState(Phase.TAKING_QUIZ, video_index)


def current_state(
    videos: Sequence[Any],
    progress_records: Sequence[Any],
) -> CourseState:
    """Rebuild the learner's state from persisted progress."""
    if not videos:
        return CourseState(Phase.COURSE_COMPLETE, None)

    by_video = index_progress(progress_records)
    if all(is_video_satisfied(video, by_video.get(str(video.id))) for video in videos):
        return CourseState(Phase.COURSE_COMPLETE, len(videos) - 1)

    index = resolve_entry_point(videos, progress_records)
    progress = by_video.get(str(videos[index].id))
    if progress is not None and progress.completed:
        # Watched but the quiz is still open
        return CourseState(Phase.TAKING_QUIZ, index)
    return CourseState(Phase.WATCHING_VIDEO, index)
