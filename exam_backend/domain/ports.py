"""
Repository and unit-of-work ports consumed by the domain services.
Every method is async and returns pydantic DTOs, never ORM rows.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol

from exam_backend.core.enums import AssignedExamStatus, ExamRegradeStatus, ExamStatus
from exam_backend.core.models import (
    AssignmentFilters,
    AssignmentStatusSnapshot,
    CreateExamAssignmentData,
    CreateExamRegradeData,
    CreateExamResponseData,
    ExamQuestionRead,
    ExamRead,
    ExamRegradeOutput,
    ExamResponseOutput,
    Page,
    PersonFilters,
    QuestionDetail,
    RegradeFilters,
    StudentExamAssignmentItem,
    StudentRead,
    TeacherRead,
    TeacherSubjectAssignments,
    UpdateExamResponseData,
)


class ExamRepository(Protocol):
    async def get_by_id(self, exam_id: str) -> Optional[ExamRead]:
        ...

    async def update(self, exam_id: str, *, exam_status: ExamStatus) -> ExamRead:
        ...


class ExamQuestionRepository(Protocol):
    async def get_by_id(self, exam_question_id: str) -> Optional[ExamQuestionRead]:
        ...

    async def find_by_exam_id_and_index(self, exam_id: str, question_index: int) -> Optional[ExamQuestionRead]:
        ...

    async def list_by_exam_id(self, exam_id: str) -> List[ExamQuestionRead]:
        """All questions of the exam ordered by question_index"""
        ...


class QuestionRepository(Protocol):
    async def get_detail_by_id(self, question_id: str, include_correct: bool = False) -> Optional[QuestionDetail]:
        """Question detail; option correctness flags only when include_correct"""
        ...


class ExamAssignmentRepository(Protocol):
    async def create_exam_assignment(self, data: CreateExamAssignmentData) -> StudentExamAssignmentItem:
        ...

    async def list_student_exam_assignments(
        self,
        offset: int,
        limit: int,
        filters: AssignmentFilters,
    ) -> Page[StudentExamAssignmentItem]:
        ...

    async def find_by_exam_id_and_student_id(self, exam_id: str, student_id: str) -> Optional[StudentExamAssignmentItem]:
        ...

    async def update_status(self, assignment_id: str, status: AssignedExamStatus) -> None:
        ...

    async def update_grade(self, assignment_id: str, grade: float, status: AssignedExamStatus) -> None:
        ...

    async def find_detailed_by_id(self, assignment_id: str) -> Optional[StudentExamAssignmentItem]:
        ...

    async def list_assignments_for_status_refresh(self, student_id: str) -> List[AssignmentStatusSnapshot]:
        ...


class ExamResponseRepository(Protocol):
    async def create(self, data: CreateExamResponseData) -> ExamResponseOutput:
        ...

    async def find_by_id(self, response_id: str) -> Optional[ExamResponseOutput]:
        ...

    async def find_by_exam_question_and_student(self, exam_question_id: str, student_id: str) -> Optional[ExamResponseOutput]:
        ...

    async def update(self, data: UpdateExamResponseData) -> ExamResponseOutput:
        """Replaces selected options, text answer, auto points and answered_at"""
        ...

    async def student_has_responses(self, exam_id: str, student_id: str) -> bool:
        ...

    async def list_by_exam_and_student(self, exam_id: str, student_id: str) -> List[ExamResponseOutput]:
        ...

    async def update_manual_points(self, response_id: str, manual_points: float) -> ExamResponseOutput:
        ...


class ExamRegradeRepository(Protocol):
    async def create(self, data: CreateExamRegradeData) -> ExamRegradeOutput:
        ...

    async def find_active_by_exam_and_student(self, exam_id: str, student_id: str) -> Optional[ExamRegradeOutput]:
        """The REQUESTED or IN_REVIEW regrade for the pair, if any"""
        ...

    async def list_pending_by_professor(
        self,
        professor_id: str,
        offset: int,
        limit: int,
        filters: RegradeFilters,
    ) -> Page[ExamRegradeOutput]:
        ...

    async def find_by_id(self, regrade_id: str) -> Optional[ExamRegradeOutput]:
        ...

    async def resolve(
        self,
        regrade_id: str,
        status: ExamRegradeStatus,
        resolved_at: datetime,
        final_grade: Optional[float],
    ) -> ExamRegradeOutput:
        ...


class TeacherRepository(Protocol):
    async def list(self, filters: PersonFilters, limit: int, offset: int) -> Page[TeacherRead]:
        ...

    async def get_by_id(self, teacher_id: str) -> Optional[TeacherRead]:
        ...


class StudentRepository(Protocol):
    async def list(self, filters: PersonFilters, limit: int, offset: int) -> Page[StudentRead]:
        ...


class TeacherSubjectLinkRepository(Protocol):
    async def get_assignments(self, teacher_id: str) -> TeacherSubjectAssignments:
        ...


class UnitOfWork(Protocol):
    """Transaction boundary. Leaving the block with an exception rolls back."""

    async def __aenter__(self) -> "UnitOfWork":
        ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...
