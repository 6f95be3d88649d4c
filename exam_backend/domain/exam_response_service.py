"""
Student answers: writing them while the exam window is open, manual
scoring by teachers and index-based reads for students and reviewers
"""
from typing import Callable, NamedTuple, Optional

from exam_backend.core.enums import AssignedExamStatus
from exam_backend.core.models import (
    CreateExamResponseData,
    CreateExamResponseInput,
    ExamQuestionRead,
    ExamResponseOutput,
    GetExamQuestionDetailInput,
    GetExamResponseByIndexInput,
    PersonFilters,
    QuestionDetail,
    QuestionIndexInput,
    StudentExamAssignmentItem,
    StudentRead,
    TeacherRead,
    UpdateExamResponseData,
    UpdateExamResponseInput,
    UpdateManualPointsInput,
)
from exam_backend.domain.base_service import BaseDomainService
from exam_backend.domain.grading import calculate_auto_points, utcnow
from exam_backend.domain.ports import (
    ExamAssignmentRepository,
    ExamQuestionRepository,
    ExamRegradeRepository,
    ExamResponseRepository,
    QuestionRepository,
    StudentRepository,
    TeacherRepository,
    TeacherSubjectLinkRepository,
    UnitOfWork,
)


class Reader(NamedTuple):
    """Whose exam is being read and whether the reader is a teacher"""
    student_id: str
    is_teacher: bool


class ExamResponseService(BaseDomainService):
    def __init__(
        self,
        uow: UnitOfWork,
        exam_response_repo: ExamResponseRepository,
        exam_assignment_repo: ExamAssignmentRepository,
        exam_question_repo: ExamQuestionRepository,
        question_repo: QuestionRepository,
        exam_regrade_repo: ExamRegradeRepository,
        teacher_repo: TeacherRepository,
        student_repo: StudentRepository,
        teacher_subject_link_repo: TeacherSubjectLinkRepository,
        clock: Callable = utcnow,
    ):
        super().__init__()
        self.uow = uow
        self.exam_response_repo = exam_response_repo
        self.exam_assignment_repo = exam_assignment_repo
        self.exam_question_repo = exam_question_repo
        self.question_repo = question_repo
        self.exam_regrade_repo = exam_regrade_repo
        self.teacher_repo = teacher_repo
        self.student_repo = student_repo
        self.teacher_subject_link_repo = teacher_subject_link_repo
        self.clock = clock

    # ========================================================================
    # Student writes
    # ========================================================================

    async def create_exam_response(self, data: CreateExamResponseInput) -> ExamResponseOutput:
        with self.operation("create-exam-response"):
            student = await self._resolve_student(data.user_id)
            assignment = await self._get_assignment(data.exam_id, student.id)
            self._ensure_exam_is_active(assignment)

            exam_question = await self.exam_question_repo.get_by_id(data.exam_question_id)
            if exam_question is None or exam_question.exam_id != data.exam_id:
                self.raise_not_found_error(
                    "Exam question not found",
                    entity="ExamQuestion",
                    code="EXAM_QUESTION_NOT_FOUND",
                )
            question = await self._get_question(exam_question, include_correct=True)

            existing = await self.exam_response_repo.find_by_exam_question_and_student(exam_question.id, student.id)
            if existing is not None:
                self.raise_business_rule_error(
                    "The question was already answered, update the response instead",
                    entity="ExamResponse",
                    code="RESPONSE_ALREADY_EXISTS",
                )

            auto_points = calculate_auto_points(question, data.selected_options)

            async with self.uow:
                response = await self.exam_response_repo.create(
                    CreateExamResponseData(
                        exam_id=data.exam_id,
                        exam_question_id=exam_question.id,
                        student_id=student.id,
                        selected_options=data.selected_options,
                        text_answer=data.text_answer,
                        auto_points=auto_points,
                        manual_points=None,
                        answered_at=self.clock(),
                    )
                )
                await self.uow.commit()
            return response

    async def update_exam_response(self, data: UpdateExamResponseInput) -> ExamResponseOutput:
        """Replace an answer while the window is open; manual points are kept"""
        with self.operation("update-exam-response"):
            student = await self._resolve_student(data.user_id)
            response = await self.exam_response_repo.find_by_id(data.response_id)
            if response is None:
                self.raise_not_found_error("Exam response not found", entity="ExamResponse")
            if response.student_id != student.id:
                self.raise_forbidden_error("The response belongs to another student", entity="ExamResponse")

            assignment = await self._get_assignment(response.exam_id, student.id)
            self._ensure_exam_is_active(assignment)

            exam_question = await self.exam_question_repo.get_by_id(response.exam_question_id)
            if exam_question is None:
                self.raise_not_found_error("Exam question not found", entity="ExamQuestion", code="EXAM_QUESTION_NOT_FOUND")
            question = await self._get_question(exam_question, include_correct=True)
            auto_points = calculate_auto_points(question, data.selected_options)

            async with self.uow:
                updated = await self.exam_response_repo.update(
                    UpdateExamResponseData(
                        response_id=response.id,
                        selected_options=data.selected_options,
                        text_answer=data.text_answer,
                        auto_points=auto_points,
                        answered_at=self.clock(),
                    )
                )
                await self.uow.commit()
            return updated

    # ========================================================================
    # Teacher writes
    # ========================================================================

    async def update_manual_points(self, data: UpdateManualPointsInput) -> None:
        with self.operation("update-manual-points"):
            teacher = await self._resolve_teacher(data.current_user_id)
            response = await self.exam_response_repo.find_by_id(data.response_id)
            if response is None:
                self.raise_not_found_error("Exam response not found", entity="ExamResponse")

            assignment = await self._get_assignment(response.exam_id, response.student_id)
            assignments = await self.teacher_subject_link_repo.get_assignments(teacher.id)
            if not assignments.can_review(assignment.subject_id):
                self.raise_business_rule_error(
                    "The teacher cannot review this subject",
                    entity="Subject",
                    code="TEACHER_CANNOT_REVIEW_SUBJECT",
                )

            async with self.uow:
                await self.exam_response_repo.update_manual_points(response.id, data.manual_points)
                await self.uow.commit()

    # ========================================================================
    # Reads by question index
    # ========================================================================

    async def get_response_by_question_index(self, data: GetExamResponseByIndexInput) -> ExamResponseOutput:
        with self.operation("get-response-by-question-index"):
            reader = await self._resolve_reader(data, require_active=False)
            exam_question = await self._get_exam_question_by_index(data.exam_id, data.question_index)

            response = await self.exam_response_repo.find_by_exam_question_and_student(
                exam_question.id, reader.student_id
            )
            if response is None:
                self.raise_not_found_error(
                    "The question has not been answered yet",
                    entity="ExamResponse",
                    code="RESPONSE_NOT_ANSWERED",
                )
            return response

    async def get_question_detail_by_index(self, data: GetExamQuestionDetailInput) -> QuestionDetail:
        """Students get the options without correctness flags"""
        with self.operation("get-question-detail-by-index"):
            reader = await self._resolve_reader(data, require_active=True)
            exam_question = await self._get_exam_question_by_index(data.exam_id, data.question_index)
            return await self._get_question(exam_question, include_correct=reader.is_teacher)

    async def _resolve_reader(self, data: QuestionIndexInput, require_active: bool) -> Reader:
        """
        A student reads their own exam. A teacher must name the student and
        be either the assigned teacher or the teacher of an active regrade,
        and must be able to review the subject.
        """
        student = await self._find_student(data.user_id)
        if student is not None:
            assignment = await self._get_assignment(data.exam_id, student.id)
            if require_active:
                self._ensure_exam_is_active(assignment)
            return Reader(student_id=student.id, is_teacher=False)

        teacher = await self._resolve_teacher(data.user_id)
        if not data.student_id:
            self.raise_business_rule_error(
                "student_id is required to review a student's exam",
                entity="ExamResponse",
                code="STUDENT_ID_REQUIRED",
            )

        assignment = await self._get_assignment(data.exam_id, data.student_id)
        allowed = assignment.teacher_id == teacher.id
        if not allowed:
            regrade = await self.exam_regrade_repo.find_active_by_exam_and_student(data.exam_id, data.student_id)
            allowed = regrade is not None and regrade.professor_id == teacher.id
        if allowed:
            assignments = await self.teacher_subject_link_repo.get_assignments(teacher.id)
            allowed = assignments.can_review(assignment.subject_id)
        if not allowed:
            self.raise_forbidden_error("The teacher cannot review this exam", entity="ExamAssignment")

        return Reader(student_id=data.student_id, is_teacher=True)

    # ========================================================================
    # Lookups
    # ========================================================================

    def _ensure_exam_is_active(self, assignment: StudentExamAssignmentItem) -> None:
        if assignment.status != AssignedExamStatus.ENABLED:
            self.raise_business_rule_error("The exam is not active", entity="ExamAssignment", code="EXAM_NOT_ACTIVE")

    async def _get_assignment(self, exam_id: str, student_id: str) -> StudentExamAssignmentItem:
        assignment = await self.exam_assignment_repo.find_by_exam_id_and_student_id(exam_id, student_id)
        if assignment is None:
            self.raise_not_found_error("Exam assignment not found", entity="ExamAssignment")
        return assignment

    async def _get_exam_question_by_index(self, exam_id: str, question_index: int) -> ExamQuestionRead:
        exam_question = await self.exam_question_repo.find_by_exam_id_and_index(exam_id, question_index)
        if exam_question is None:
            self.raise_not_found_error(
                "Exam question not found",
                entity="ExamQuestion",
                code="EXAM_QUESTION_NOT_FOUND",
            )
        return exam_question

    async def _get_question(self, exam_question: ExamQuestionRead, include_correct: bool) -> QuestionDetail:
        question = await self.question_repo.get_detail_by_id(exam_question.question_id, include_correct=include_correct)
        if question is None:
            self.raise_not_found_error("Question not found", entity="Question")
        return question

    async def _find_student(self, user_id: str) -> Optional[StudentRead]:
        page = await self.student_repo.list(PersonFilters(user_id=user_id), limit=1, offset=0)
        return page.items[0] if page.items else None

    async def _resolve_student(self, user_id: str) -> StudentRead:
        student = await self._find_student(user_id)
        if student is None:
            self.raise_not_found_error("Student not found", entity="Student")
        return student

    async def _resolve_teacher(self, user_id: str) -> TeacherRead:
        page = await self.teacher_repo.list(PersonFilters(user_id=user_id), limit=1, offset=0)
        if not page.items:
            self.raise_not_found_error("Teacher not found", entity="Teacher")
        return page.items[0]
