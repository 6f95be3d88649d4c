"""
Pydantic data models: repository read DTOs, command/query inputs,
HTTP request bodies and response envelopes
"""
from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from exam_backend.core.config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from exam_backend.core.enums import AssignedExamStatus, ExamRegradeStatus, ExamStatus

T = TypeVar("T")


class ReadModel(BaseModel):
    """Base for DTOs built from ORM rows"""
    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# Question bank / exam generation DTOs
# ============================================================================

class QuestionOption(BaseModel):
    """One option of an objective question"""
    text: str
    is_correct: Optional[bool] = None


class SelectedOption(BaseModel):
    """An option text picked by a student"""
    text: str


class QuestionDetail(ReadModel):
    id: str
    subject_id: Optional[str] = None
    body: str
    question_type: Optional[str] = None
    options: Optional[List[QuestionOption]] = None
    response: Optional[str] = None


class ExamRead(ReadModel):
    id: str
    subject_id: str
    author_id: str
    validator_id: Optional[str] = None
    title: Optional[str] = None
    difficulty: Optional[str] = None
    question_count: int = 0
    topic_proportion: Optional[Dict[str, Any]] = None
    topic_coverage: Optional[Dict[str, Any]] = None
    exam_status: ExamStatus
    observations: Optional[str] = None


class ExamQuestionRead(ReadModel):
    id: str
    exam_id: str
    question_id: str
    question_index: int
    question_score: float


# ============================================================================
# User DTOs
# ============================================================================

class StudentRead(ReadModel):
    id: str
    user_id: str
    name: Optional[str] = None
    course: Optional[int] = None


class TeacherRead(ReadModel):
    id: str
    user_id: str
    name: Optional[str] = None


class TeacherSubjectAssignments(BaseModel):
    teaching_subject_ids: List[str] = []
    lead_subject_ids: List[str] = []
    teaching_subject_names: List[str] = []
    lead_subject_names: List[str] = []

    def can_review(self, subject_id: Optional[str]) -> bool:
        """True when the teacher teaches or leads the subject"""
        if not subject_id:
            return False
        return subject_id in self.teaching_subject_ids or subject_id in self.lead_subject_ids


# ============================================================================
# Exam application DTOs
# ============================================================================

class StudentExamAssignmentItem(ReadModel):
    id: str
    exam_id: str
    student_id: str
    teacher_id: str
    subject_id: Optional[str] = None
    exam_title: Optional[str] = None
    application_date: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    status: AssignedExamStatus
    grade: Optional[float] = None


class AssignmentStatusSnapshot(BaseModel):
    """The fields the time-driven status refresh looks at"""
    id: Optional[str] = None
    exam_id: Optional[str] = None
    student_id: Optional[str] = None
    status: AssignedExamStatus
    application_date: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    grade: Optional[float] = None

    def is_graded(self) -> bool:
        return self.grade is not None


class ExamResponseOutput(ReadModel):
    id: str
    exam_id: str
    exam_question_id: str
    student_id: str
    selected_options: Optional[List[SelectedOption]] = None
    text_answer: Optional[str] = None
    auto_points: Optional[float] = None
    manual_points: Optional[float] = None
    answered_at: Optional[datetime] = None


class ExamRegradeOutput(ReadModel):
    id: str
    exam_id: str
    student_id: str
    professor_id: str
    reason: Optional[str] = None
    status: ExamRegradeStatus
    requested_at: datetime
    resolved_at: Optional[datetime] = None
    final_grade: Optional[float] = None


class PendingRegradeItem(StudentExamAssignmentItem):
    regrade_id: str
    regrade_status: ExamRegradeStatus
    reason: Optional[str] = None
    requested_at: datetime


class AssignExamToCourseResponse(BaseModel):
    exam_id: str
    assigned_student_ids: List[str]
    assignments_created: int
    application_date: datetime
    duration_minutes: int
    exam_status: ExamStatus


class CalculateExamGradeResult(BaseModel):
    assignment_id: str
    exam_id: str
    student_id: str
    final_grade: float
    exam_total_score: float
    status: AssignedExamStatus


class Page(BaseModel, Generic[T]):
    items: List[T]
    total: int


# ============================================================================
# Repository inputs
# ============================================================================

class CreateExamAssignmentData(BaseModel):
    exam_id: str
    student_id: str
    professor_id: str
    application_date: datetime
    duration_minutes: int


class AssignmentFilters(BaseModel):
    student_id: Optional[str] = None
    teacher_id: Optional[str] = None
    status: Optional[AssignedExamStatus] = None
    subject_id: Optional[str] = None
    exam_title: Optional[str] = None


class CreateExamResponseData(BaseModel):
    exam_id: str
    exam_question_id: str
    student_id: str
    selected_options: Optional[List[SelectedOption]] = None
    text_answer: Optional[str] = None
    auto_points: Optional[float] = None
    manual_points: Optional[float] = None
    answered_at: Optional[datetime] = None


class UpdateExamResponseData(BaseModel):
    response_id: str
    selected_options: Optional[List[SelectedOption]] = None
    text_answer: Optional[str] = None
    auto_points: Optional[float] = None
    answered_at: datetime


class CreateExamRegradeData(BaseModel):
    exam_id: str
    student_id: str
    professor_id: str
    reason: Optional[str] = None
    status: ExamRegradeStatus
    requested_at: datetime


class PersonFilters(BaseModel):
    """Lookup filters shared by the teacher and student repositories"""
    user_id: Optional[str] = None
    ids: Optional[List[str]] = None


class RegradeFilters(BaseModel):
    statuses: Optional[List[ExamRegradeStatus]] = None
    subject_id: Optional[str] = None
    exam_title: Optional[str] = None
    student_id: Optional[str] = None


# ============================================================================
# Command / query inputs
# ============================================================================

class PageInput(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class CreateExamAssignmentInput(BaseModel):
    exam_id: str
    student_ids: List[str]
    current_user_id: str
    application_date: datetime
    duration_minutes: int


class ListStudentExamsInput(PageInput):
    current_user_id: str
    status: Optional[AssignedExamStatus] = None
    subject_id: Optional[str] = None
    teacher_id: Optional[str] = None


class SendExamToEvaluatorInput(BaseModel):
    exam_id: str
    current_user_id: str


class ListEvaluatorExamsInput(PageInput):
    current_user_id: str
    subject_id: Optional[str] = None
    exam_title: Optional[str] = None
    student_id: Optional[str] = None


class RequestExamRegradeInput(BaseModel):
    exam_id: str
    professor_id: str
    reason: Optional[str] = None
    current_user_id: str


class CalculateExamGradeInput(BaseModel):
    current_user_id: str
    assignment_id: Optional[str] = None
    response_id: Optional[str] = None

    @model_validator(mode="after")
    def check_target(self):
        if not self.assignment_id and not self.response_id:
            raise ValueError("assignment_id or response_id is required")
        return self


class ResolveExamRegradeInput(BaseModel):
    regrade_id: str
    current_user_id: str


class ListPendingExamRegradesInput(PageInput):
    current_user_id: str
    statuses: Optional[List[ExamRegradeStatus]] = None
    subject_id: Optional[str] = None
    exam_title: Optional[str] = None
    student_id: Optional[str] = None


class CreateExamResponseInput(BaseModel):
    user_id: str
    exam_id: str
    exam_question_id: str
    selected_options: Optional[List[SelectedOption]] = None
    text_answer: Optional[str] = None


class UpdateExamResponseInput(BaseModel):
    response_id: str
    user_id: str
    selected_options: Optional[List[SelectedOption]] = None
    text_answer: Optional[str] = None


class UpdateManualPointsInput(BaseModel):
    response_id: str
    manual_points: float
    current_user_id: str


class QuestionIndexInput(BaseModel):
    exam_id: str
    question_index: int = Field(ge=1)
    user_id: str
    # Required when the caller is a teacher reading a student's exam
    student_id: Optional[str] = None


class GetExamResponseByIndexInput(QuestionIndexInput):
    pass


class GetExamQuestionDetailInput(QuestionIndexInput):
    pass


# ============================================================================
# HTTP request bodies
# ============================================================================

class AssignExamBody(BaseModel):
    student_ids: List[str] = Field(min_length=1)
    application_date: datetime
    duration_minutes: int = Field(ge=1, le=480)  # 8 hours max


class ExamResponseBody(BaseModel):
    exam_question_id: str
    selected_options: Optional[List[SelectedOption]] = None
    text_answer: Optional[str] = None

    @field_validator("text_answer")
    @classmethod
    def strip_text_answer(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        if not value:
            raise ValueError("text_answer must not be blank")
        return value


class UpdateExamResponseBody(BaseModel):
    selected_options: Optional[List[SelectedOption]] = None
    text_answer: Optional[str] = None


class ManualPointsBody(BaseModel):
    manual_points: float


class RequestRegradeBody(BaseModel):
    exam_id: str
    professor_id: str
    reason: Optional[str] = None

    @field_validator("reason")
    @classmethod
    def check_reason(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        if len(value) < 10:
            raise ValueError("reason must have at least 10 characters")
        return value


class CalculateGradeBody(BaseModel):
    assignment_id: Optional[str] = None
    response_id: Optional[str] = None


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    success: bool
    message: str
    username: Optional[str] = None
    role: Optional[str] = None


# ============================================================================
# Response envelopes
# ============================================================================

class BaseResponse(BaseModel):
    success: bool = True
    message: str = "Operation successful"


class RetrieveOneSchema(BaseResponse, Generic[T]):
    data: Optional[T] = None


class PaginatedSchema(BaseResponse, Generic[T]):
    data: List[T]
    page: int
    limit: int
    offset: int
    total: int


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    code: str
    status_code: int
    entity: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
