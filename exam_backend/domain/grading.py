"""
Pure helpers for the assignment state machine and for scoring.
Nothing here touches a repository.
"""
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from exam_backend.core.enums import AssignedExamStatus, REFRESH_LOCKED_STATUSES
from exam_backend.core.errors import BusinessRuleError
from exam_backend.core.models import (
    AssignmentStatusSnapshot,
    ExamQuestionRead,
    ExamResponseOutput,
    QuestionDetail,
    SelectedOption,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def calculate_status_for_snapshot(
    snapshot: AssignmentStatusSnapshot,
    now: datetime,
    has_responses: bool,
) -> AssignedExamStatus:
    """
    Status an assignment should be in at `now`.

    Rules are applied in order, first match wins:
    no application date, or a locked status, keeps the current status;
    a grade means GRADED; before the window opens it is PENDING;
    any stored response means SUBMITTED; otherwise ENABLED while the window
    is open and IN_EVALUATION once it has closed.
    """
    if snapshot.application_date is None:
        return snapshot.status

    if snapshot.status in REFRESH_LOCKED_STATUSES:
        return snapshot.status

    if snapshot.is_graded():
        return AssignedExamStatus.GRADED

    now = as_utc(now)
    start = as_utc(snapshot.application_date)
    if now < start:
        return AssignedExamStatus.PENDING

    if has_responses:
        return AssignedExamStatus.SUBMITTED

    duration = snapshot.duration_minutes or 0
    if duration <= 0:
        return AssignedExamStatus.ENABLED

    if now > start + timedelta(minutes=duration):
        return AssignedExamStatus.IN_EVALUATION
    return AssignedExamStatus.ENABLED


def calculate_auto_points(
    question: QuestionDetail,
    selected_options: Optional[Iterable[SelectedOption]],
) -> Optional[float]:
    """
    Penalized-guessing score for objective questions: +1 per selected correct
    option, -1 per selected wrong one, duplicates counted, no floor.
    Questions without options are not auto-scored (None).
    """
    if not question.options:
        return None

    correct = {option.text for option in question.options if option.is_correct}
    score = 0
    for selected in selected_options or []:
        score += 1 if selected.text in correct else -1
    return float(score)


def compute_exam_grade(
    exam_questions: List[ExamQuestionRead],
    responses: List[ExamResponseOutput],
    entity: str = "ExamAssignment",
) -> Tuple[float, float]:
    """
    Returns (final_grade, exam_total_score).

    Each question contributes its manual points when set, else its auto
    points, clamped to [0, question_score]. Unanswered questions count 0.
    """
    if not exam_questions:
        raise BusinessRuleError("The exam has no questions", entity=entity, code="EXAM_HAS_NO_QUESTIONS")

    total_score = sum(question.question_score for question in exam_questions)
    if total_score <= 0:
        raise BusinessRuleError("Invalid exam total score", entity=entity, code="INVALID_EXAM_TOTAL_SCORE")

    by_question: Dict[str, ExamResponseOutput] = {
        response.exam_question_id: response for response in responses
    }

    final_grade = 0.0
    ungraded: List[str] = []
    for question in exam_questions:
        response = by_question.get(question.id)
        if response is None:
            continue

        points = response.manual_points if response.manual_points is not None else response.auto_points
        if points is None:
            ungraded.append(question.id)
            continue

        final_grade += min(max(points, 0.0), question.question_score)

    if ungraded:
        raise BusinessRuleError(
            "There are ungraded questions remaining",
            entity=entity,
            code="UNGRADED_QUESTIONS",
            details={"exam_question_ids": ungraded},
        )

    return final_grade, total_score
