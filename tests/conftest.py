import os

os.environ.setdefault("EXAM_DATABASE_URL", "sqlite:///:memory:")

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from exam_backend.core.database import create_db_engine, get_db, init_db
from exam_backend.core.enums import AssignedExamStatus, ExamRegradeStatus, ExamStatus
from exam_backend.core.models import (
    ExamQuestionRead,
    ExamRead,
    ExamRegradeOutput,
    ExamResponseOutput,
    Page,
    QuestionDetail,
    QuestionOption,
    StudentExamAssignmentItem,
    StudentRead,
    TeacherRead,
    TeacherSubjectAssignments,
)
from exam_backend.database.seed_data import seed_initial_data
from exam_backend.domain.exam_assignment_service import ExamAssignmentService
from exam_backend.domain.exam_response_service import ExamResponseService

NOW = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)
SUBJECT_ID = "subject-1"
EXAM_ID = "exam-1"

TEACHER = TeacherRead(id="teacher-1", user_id="user-teacher-1", name="Ada")
LEADER = TeacherRead(id="teacher-2", user_id="user-teacher-2", name="Alan")
OUTSIDER = TeacherRead(id="teacher-3", user_id="user-teacher-3", name="Grace")
STUDENT = StudentRead(id="student-1", user_id="user-student-1", name="Sam", course=1)
OTHER_STUDENT = StudentRead(id="student-2", user_id="user-student-2", name="Kim", course=1)

SUBJECT_LINKS = {
    TEACHER.id: TeacherSubjectAssignments(teaching_subject_ids=[SUBJECT_ID]),
    LEADER.id: TeacherSubjectAssignments(lead_subject_ids=[SUBJECT_ID]),
}


@pytest.fixture
def anyio_backend():
    return "asyncio"


# ============================================================================
# DTO builders
# ============================================================================

def make_exam(**overrides) -> ExamRead:
    data = dict(
        id=EXAM_ID,
        subject_id=SUBJECT_ID,
        author_id=TEACHER.id,
        title="Midterm",
        question_count=2,
        exam_status=ExamStatus.APPROVED,
    )
    data.update(overrides)
    return ExamRead(**data)


def make_assignment(**overrides) -> StudentExamAssignmentItem:
    data = dict(
        id="assignment-1",
        exam_id=EXAM_ID,
        student_id=STUDENT.id,
        teacher_id=TEACHER.id,
        subject_id=SUBJECT_ID,
        exam_title="Midterm",
        application_date=NOW,
        duration_minutes=60,
        status=AssignedExamStatus.ENABLED,
        grade=None,
    )
    data.update(overrides)
    return StudentExamAssignmentItem(**data)


def make_exam_question(id="eq-1", index=1, score=1.0, question_id=None) -> ExamQuestionRead:
    return ExamQuestionRead(
        id=id,
        exam_id=EXAM_ID,
        question_id=question_id or f"q-{index}",
        question_index=index,
        question_score=score,
    )


def make_response(**overrides) -> ExamResponseOutput:
    data = dict(
        id="response-1",
        exam_id=EXAM_ID,
        exam_question_id="eq-1",
        student_id=STUDENT.id,
        auto_points=None,
        manual_points=None,
        answered_at=NOW,
    )
    data.update(overrides)
    return ExamResponseOutput(**data)


def make_regrade(**overrides) -> ExamRegradeOutput:
    data = dict(
        id="regrade-1",
        exam_id=EXAM_ID,
        student_id=STUDENT.id,
        professor_id=TEACHER.id,
        reason="Question two was graded too harshly",
        status=ExamRegradeStatus.REQUESTED,
        requested_at=NOW,
    )
    data.update(overrides)
    return ExamRegradeOutput(**data)


def make_objective_question(**overrides) -> QuestionDetail:
    data = dict(
        id="q-1",
        subject_id=SUBJECT_ID,
        body="Pick the even numbers",
        question_type="multiple_choice",
        options=[
            QuestionOption(text="2", is_correct=True),
            QuestionOption(text="4", is_correct=True),
            QuestionOption(text="5", is_correct=False),
        ],
    )
    data.update(overrides)
    return QuestionDetail(**data)


# ============================================================================
# Fake repositories
# ============================================================================

class FakeUnitOfWork:
    def __init__(self):
        self.commits = 0
        self.rollbacks = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            await self.rollback()

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1


def people_lister(people):
    def list_people(filters, limit, offset):
        items = [
            person for person in people
            if (filters.user_id is None or person.user_id == filters.user_id)
            and (filters.ids is None or person.id in filters.ids)
        ]
        return Page(items=items[offset:offset + limit], total=len(items))
    return list_people


@pytest.fixture
def uow():
    return FakeUnitOfWork()


@pytest.fixture
def repos():
    teachers = [TEACHER, LEADER, OUTSIDER]

    teacher_repo = AsyncMock()
    teacher_repo.list.side_effect = people_lister(teachers)
    teacher_repo.get_by_id.side_effect = lambda teacher_id: next(
        (teacher for teacher in teachers if teacher.id == teacher_id), None
    )

    student_repo = AsyncMock()
    student_repo.list.side_effect = people_lister([STUDENT, OTHER_STUDENT])

    teacher_subject_link_repo = AsyncMock()
    teacher_subject_link_repo.get_assignments.side_effect = lambda teacher_id: SUBJECT_LINKS.get(
        teacher_id, TeacherSubjectAssignments()
    )

    exam_regrade_repo = AsyncMock()
    exam_regrade_repo.find_active_by_exam_and_student.return_value = None

    exam_response_repo = AsyncMock()
    exam_response_repo.find_by_exam_question_and_student.return_value = None
    exam_response_repo.student_has_responses.return_value = False
    exam_response_repo.list_by_exam_and_student.return_value = []

    return SimpleNamespace(
        exam_repo=AsyncMock(),
        exam_question_repo=AsyncMock(),
        question_repo=AsyncMock(),
        exam_assignment_repo=AsyncMock(),
        exam_response_repo=exam_response_repo,
        exam_regrade_repo=exam_regrade_repo,
        teacher_repo=teacher_repo,
        student_repo=student_repo,
        teacher_subject_link_repo=teacher_subject_link_repo,
    )


@pytest.fixture
def assignment_service(repos, uow):
    return ExamAssignmentService(
        uow=uow,
        exam_repo=repos.exam_repo,
        exam_question_repo=repos.exam_question_repo,
        exam_assignment_repo=repos.exam_assignment_repo,
        exam_response_repo=repos.exam_response_repo,
        exam_regrade_repo=repos.exam_regrade_repo,
        teacher_repo=repos.teacher_repo,
        student_repo=repos.student_repo,
        teacher_subject_link_repo=repos.teacher_subject_link_repo,
        clock=lambda: NOW,
    )


@pytest.fixture
def response_service(repos, uow):
    return ExamResponseService(
        uow=uow,
        exam_response_repo=repos.exam_response_repo,
        exam_assignment_repo=repos.exam_assignment_repo,
        exam_question_repo=repos.exam_question_repo,
        question_repo=repos.question_repo,
        exam_regrade_repo=repos.exam_regrade_repo,
        teacher_repo=repos.teacher_repo,
        student_repo=repos.student_repo,
        teacher_subject_link_repo=repos.teacher_subject_link_repo,
        clock=lambda: NOW,
    )


# ============================================================================
# Database fixtures
# ============================================================================

@pytest.fixture
def engine():
    engine = create_db_engine("sqlite:///:memory:", poolclass=StaticPool)
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seeded(db_session):
    ids = seed_initial_data(db_session)
    db_session.commit()
    return ids


@pytest.fixture
def client(session_factory, seeded):
    from fastapi.testclient import TestClient

    from exam_backend.main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
