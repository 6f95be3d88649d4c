"""
Exam assignment lifecycle: assigning approved exams to students, the
time-driven status refresh, hand-in for evaluation, grading and regrades
"""
import asyncio
from typing import Callable, List, Tuple

from exam_backend.core.enums import (
    ACTIVE_REGRADE_STATUSES,
    AssignedExamStatus,
    ExamRegradeStatus,
    ExamStatus,
    READY_FOR_EVALUATION_STATUSES,
)
from exam_backend.core.models import (
    AssignExamToCourseResponse,
    AssignmentFilters,
    CalculateExamGradeInput,
    CalculateExamGradeResult,
    CreateExamAssignmentData,
    CreateExamAssignmentInput,
    CreateExamRegradeData,
    CreateExamResponseData,
    ExamRead,
    ExamRegradeOutput,
    ListEvaluatorExamsInput,
    ListPendingExamRegradesInput,
    ListStudentExamsInput,
    Page,
    PendingRegradeItem,
    PersonFilters,
    RegradeFilters,
    RequestExamRegradeInput,
    ResolveExamRegradeInput,
    SendExamToEvaluatorInput,
    StudentExamAssignmentItem,
    StudentRead,
    TeacherRead,
)
from exam_backend.domain.base_service import BaseDomainService
from exam_backend.domain.grading import calculate_status_for_snapshot, compute_exam_grade, utcnow
from exam_backend.domain.ports import (
    ExamAssignmentRepository,
    ExamQuestionRepository,
    ExamRegradeRepository,
    ExamRepository,
    ExamResponseRepository,
    StudentRepository,
    TeacherRepository,
    TeacherSubjectLinkRepository,
    UnitOfWork,
)


class ExamAssignmentService(BaseDomainService):
    def __init__(
        self,
        uow: UnitOfWork,
        exam_repo: ExamRepository,
        exam_question_repo: ExamQuestionRepository,
        exam_assignment_repo: ExamAssignmentRepository,
        exam_response_repo: ExamResponseRepository,
        exam_regrade_repo: ExamRegradeRepository,
        teacher_repo: TeacherRepository,
        student_repo: StudentRepository,
        teacher_subject_link_repo: TeacherSubjectLinkRepository,
        clock: Callable = utcnow,
    ):
        super().__init__()
        self.uow = uow
        self.exam_repo = exam_repo
        self.exam_question_repo = exam_question_repo
        self.exam_assignment_repo = exam_assignment_repo
        self.exam_response_repo = exam_response_repo
        self.exam_regrade_repo = exam_regrade_repo
        self.teacher_repo = teacher_repo
        self.student_repo = student_repo
        self.teacher_subject_link_repo = teacher_subject_link_repo
        self.clock = clock

    # ========================================================================
    # Assignment
    # ========================================================================

    async def create_exam_assignment(self, data: CreateExamAssignmentInput) -> AssignExamToCourseResponse:
        """
        Assign an approved exam to a list of students and publish it.
        All assignments and the status flip are committed together.
        """
        with self.operation("create-exam-assignment"):
            exam = await self._ensure_exam_is_approved(data.exam_id)
            teacher = await self._ensure_teacher_can_assign_exam(exam, data.current_user_id)
            students = await self._resolve_students(data.student_ids)

            async with self.uow:
                await asyncio.gather(*[
                    self.exam_assignment_repo.create_exam_assignment(
                        CreateExamAssignmentData(
                            exam_id=exam.id,
                            student_id=student.id,
                            professor_id=teacher.id,
                            application_date=data.application_date,
                            duration_minutes=data.duration_minutes,
                        )
                    )
                    for student in students
                ])
                await self.exam_repo.update(exam.id, exam_status=ExamStatus.PUBLISHED)
                await self.uow.commit()

            return AssignExamToCourseResponse(
                exam_id=exam.id,
                assigned_student_ids=[student.id for student in students],
                assignments_created=len(students),
                application_date=data.application_date,
                duration_minutes=data.duration_minutes,
                exam_status=ExamStatus.PUBLISHED,
            )

    async def _ensure_exam_is_approved(self, exam_id: str) -> ExamRead:
        exam = await self.exam_repo.get_by_id(exam_id)
        if exam is None:
            self.raise_not_found_error("Exam not found", entity="Exam")
        if exam.exam_status != ExamStatus.APPROVED:
            self.raise_business_rule_error("The exam has not been approved yet", entity="Exam", code="EXAM_NOT_APPROVED")
        return exam

    async def _ensure_teacher_can_assign_exam(self, exam: ExamRead, current_user_id: str) -> TeacherRead:
        page = await self.teacher_repo.list(PersonFilters(user_id=current_user_id), limit=1, offset=0)
        if not page.items:
            self.raise_business_rule_error("Teacher not found", entity="Teacher", code="TEACHER_NOT_FOUND")
        teacher = page.items[0]
        assignments = await self.teacher_subject_link_repo.get_assignments(teacher.id)
        if exam.subject_id not in assignments.teaching_subject_ids:
            self.raise_business_rule_error(
                "The teacher is not assigned to the exam's subject",
                entity="Subject",
                code="TEACHER_NOT_ASSIGNED_TO_SUBJECT",
            )
        return teacher

    async def _resolve_students(self, student_ids: List[str]) -> List[StudentRead]:
        unique_ids = list(dict.fromkeys(student_ids))
        if not unique_ids:
            self.raise_business_rule_error("No students were given", entity="Student", code="NO_STUDENTS")

        page = await self.student_repo.list(PersonFilters(ids=unique_ids), limit=len(unique_ids), offset=0)
        if not page.items:
            self.raise_business_rule_error("None of the given students exist", entity="Student", code="NO_STUDENTS")

        found = {student.id: student for student in page.items}
        missing = [student_id for student_id in unique_ids if student_id not in found]
        if missing:
            self.raise_business_rule_error(
                "Some students do not exist",
                entity="Student",
                code="MISSING_STUDENTS",
                details={"missing_student_ids": missing},
            )
        return [found[student_id] for student_id in unique_ids]

    # ========================================================================
    # Student views and hand-in
    # ========================================================================

    async def list_student_exams(self, data: ListStudentExamsInput) -> Page[StudentExamAssignmentItem]:
        with self.operation("list-student-exams"):
            student = await self._resolve_student(data.current_user_id)
            await self.refresh_student_assignments_statuses(student.id)
            return await self.exam_assignment_repo.list_student_exam_assignments(
                offset=data.offset,
                limit=data.limit,
                filters=AssignmentFilters(
                    student_id=student.id,
                    status=data.status,
                    subject_id=data.subject_id,
                    teacher_id=data.teacher_id,
                ),
            )

    async def refresh_student_assignments_statuses(self, student_id: str) -> None:
        """
        Move each of the student's assignments to the status the clock says
        it should be in. Assignments escalated to IN_EVALUATION get a blank
        response for every question the student never answered.
        """
        snapshots = await self.exam_assignment_repo.list_assignments_for_status_refresh(student_id)
        if not snapshots:
            return

        now = self.clock()
        async with self.uow:
            for snapshot in snapshots:
                has_responses = await self.exam_response_repo.student_has_responses(snapshot.exam_id, student_id)
                new_status = calculate_status_for_snapshot(snapshot, now, has_responses)
                if new_status == snapshot.status:
                    continue

                await self.exam_assignment_repo.update_status(snapshot.id, new_status)
                if new_status == AssignedExamStatus.IN_EVALUATION:
                    await self._fill_blank_responses(snapshot.exam_id, student_id)
            await self.uow.commit()

    async def _fill_blank_responses(self, exam_id: str, student_id: str) -> None:
        exam_questions = await self.exam_question_repo.list_by_exam_id(exam_id)
        answered = {
            response.exam_question_id
            for response in await self.exam_response_repo.list_by_exam_and_student(exam_id, student_id)
        }
        for exam_question in exam_questions:
            if exam_question.id in answered:
                continue
            await self.exam_response_repo.create(
                CreateExamResponseData(
                    exam_id=exam_id,
                    exam_question_id=exam_question.id,
                    student_id=student_id,
                    auto_points=0,
                )
            )

    async def send_exam_to_evaluator(self, data: SendExamToEvaluatorInput) -> StudentExamAssignmentItem:
        with self.operation("send-exam-to-evaluator"):
            student = await self._resolve_student(data.current_user_id)
            assignment = await self.exam_assignment_repo.find_by_exam_id_and_student_id(data.exam_id, student.id)
            if assignment is None:
                self.raise_not_found_error("Exam assignment not found", entity="ExamAssignment")
            if assignment.status not in READY_FOR_EVALUATION_STATUSES:
                self.raise_business_rule_error(
                    "The exam is not ready to be sent for evaluation",
                    entity="ExamAssignment",
                    code="NOT_READY_FOR_EVALUATION",
                )

            async with self.uow:
                await self.exam_assignment_repo.update_status(assignment.id, AssignedExamStatus.IN_EVALUATION)
                await self.uow.commit()

            detail = await self.exam_assignment_repo.find_detailed_by_id(assignment.id)
            if detail is None:
                self.raise_not_found_error("Exam assignment not found", entity="ExamAssignment")
            return detail

    # ========================================================================
    # Evaluation
    # ========================================================================

    async def list_evaluator_exams(self, data: ListEvaluatorExamsInput) -> Page[StudentExamAssignmentItem]:
        with self.operation("list-evaluator-exams"):
            teacher = await self._resolve_teacher(data.current_user_id)
            return await self.exam_assignment_repo.list_student_exam_assignments(
                offset=data.offset,
                limit=data.limit,
                filters=AssignmentFilters(
                    teacher_id=teacher.id,
                    status=AssignedExamStatus.IN_EVALUATION,
                    subject_id=data.subject_id,
                    exam_title=data.exam_title,
                    student_id=data.student_id,
                ),
            )

    async def calculate_exam_grade(self, data: CalculateExamGradeInput) -> CalculateExamGradeResult:
        """Grade an exam in evaluation; only its assigned teacher may do it"""
        with self.operation("calculate-exam-grade"):
            teacher = await self._resolve_teacher(data.current_user_id)
            assignment = await self._resolve_assignment_for_grading(data)

            if assignment.teacher_id != teacher.id:
                self.raise_business_rule_error(
                    "Only the assigned teacher can grade this exam",
                    entity="ExamAssignment",
                    code="NOT_ASSIGNED_TEACHER",
                )
            if assignment.status != AssignedExamStatus.IN_EVALUATION:
                self.raise_business_rule_error(
                    "The exam is not in evaluation",
                    entity="ExamAssignment",
                    code="NOT_IN_EVALUATION",
                )

            final_grade, total_score = await self._compute_grade(assignment)

            async with self.uow:
                await self.exam_assignment_repo.update_grade(assignment.id, final_grade, AssignedExamStatus.GRADED)
                await self.uow.commit()

            return CalculateExamGradeResult(
                assignment_id=assignment.id,
                exam_id=assignment.exam_id,
                student_id=assignment.student_id,
                final_grade=final_grade,
                exam_total_score=total_score,
                status=AssignedExamStatus.GRADED,
            )

    async def _resolve_assignment_for_grading(self, data: CalculateExamGradeInput) -> StudentExamAssignmentItem:
        if data.assignment_id:
            assignment = await self.exam_assignment_repo.find_detailed_by_id(data.assignment_id)
        else:
            response = await self.exam_response_repo.find_by_id(data.response_id)
            if response is None:
                self.raise_not_found_error("Exam response not found", entity="ExamResponse")
            assignment = await self.exam_assignment_repo.find_by_exam_id_and_student_id(
                response.exam_id, response.student_id
            )
        if assignment is None:
            self.raise_not_found_error("Exam assignment not found", entity="ExamAssignment")
        return assignment

    async def _compute_grade(self, assignment: StudentExamAssignmentItem) -> Tuple[float, float]:
        exam_questions = await self.exam_question_repo.list_by_exam_id(assignment.exam_id)
        responses = await self.exam_response_repo.list_by_exam_and_student(assignment.exam_id, assignment.student_id)
        return compute_exam_grade(exam_questions, responses)

    # ========================================================================
    # Regrades
    # ========================================================================

    async def request_exam_regrade(self, data: RequestExamRegradeInput) -> ExamRegradeOutput:
        with self.operation("request-exam-regrade"):
            student = await self._resolve_student(data.current_user_id)
            assignment = await self.exam_assignment_repo.find_by_exam_id_and_student_id(data.exam_id, student.id)
            if assignment is None:
                self.raise_not_found_error("Exam assignment not found", entity="ExamAssignment")
            if assignment.status != AssignedExamStatus.GRADED:
                self.raise_business_rule_error(
                    "The exam has not been graded yet",
                    entity="ExamAssignment",
                    code="EXAM_NOT_GRADED",
                )

            active = await self.exam_regrade_repo.find_active_by_exam_and_student(data.exam_id, student.id)
            if active is not None:
                self.raise_business_rule_error(
                    "There is already an active regrade request for this exam",
                    entity="ExamRegrade",
                    code="ACTIVE_REGRADE_EXISTS",
                )

            professor = await self.teacher_repo.get_by_id(data.professor_id)
            if professor is None:
                self.raise_not_found_error("Teacher not found", entity="Teacher")
            if not await self._teacher_can_review_subject(professor.id, assignment.subject_id):
                self.raise_business_rule_error(
                    "The teacher cannot review this subject",
                    entity="Subject",
                    code="TEACHER_CANNOT_REVIEW_SUBJECT",
                )

            async with self.uow:
                regrade = await self.exam_regrade_repo.create(
                    CreateExamRegradeData(
                        exam_id=data.exam_id,
                        student_id=student.id,
                        professor_id=professor.id,
                        reason=data.reason,
                        status=ExamRegradeStatus.REQUESTED,
                        requested_at=self.clock(),
                    )
                )
                await self.exam_assignment_repo.update_status(assignment.id, AssignedExamStatus.REGRADING)
                await self.uow.commit()
            return regrade

    async def resolve_exam_regrade(self, data: ResolveExamRegradeInput) -> CalculateExamGradeResult:
        """Recompute the grade of a regrading exam and close the request"""
        with self.operation("resolve-exam-regrade"):
            regrade, assignment = await self._load_regrade_for_decision(data)
            final_grade, total_score = await self._compute_grade(assignment)

            async with self.uow:
                await self.exam_assignment_repo.update_grade(assignment.id, final_grade, AssignedExamStatus.REGRADED)
                await self.exam_regrade_repo.resolve(
                    regrade.id,
                    status=ExamRegradeStatus.RESOLVED,
                    resolved_at=self.clock(),
                    final_grade=final_grade,
                )
                await self.uow.commit()

            return CalculateExamGradeResult(
                assignment_id=assignment.id,
                exam_id=assignment.exam_id,
                student_id=assignment.student_id,
                final_grade=final_grade,
                exam_total_score=total_score,
                status=AssignedExamStatus.REGRADED,
            )

    async def reject_exam_regrade(self, data: ResolveExamRegradeInput) -> ExamRegradeOutput:
        """Close the request keeping the current grade"""
        with self.operation("reject-exam-regrade"):
            regrade, assignment = await self._load_regrade_for_decision(data)

            async with self.uow:
                await self.exam_assignment_repo.update_status(assignment.id, AssignedExamStatus.GRADED)
                rejected = await self.exam_regrade_repo.resolve(
                    regrade.id,
                    status=ExamRegradeStatus.REJECTED,
                    resolved_at=self.clock(),
                    final_grade=assignment.grade,
                )
                await self.uow.commit()
            return rejected

    async def _load_regrade_for_decision(
        self, data: ResolveExamRegradeInput
    ) -> Tuple[ExamRegradeOutput, StudentExamAssignmentItem]:
        teacher = await self._resolve_teacher(data.current_user_id)
        regrade = await self.exam_regrade_repo.find_by_id(data.regrade_id)
        if regrade is None:
            self.raise_not_found_error("Regrade request not found", entity="ExamRegrade")
        if regrade.professor_id != teacher.id:
            self.raise_business_rule_error(
                "The regrade request is assigned to another teacher",
                entity="ExamRegrade",
                code="NOT_REGRADE_PROFESSOR",
            )
        if regrade.status not in ACTIVE_REGRADE_STATUSES:
            self.raise_business_rule_error(
                "The regrade request is already closed",
                entity="ExamRegrade",
                code="REGRADE_CLOSED",
            )

        assignment = await self.exam_assignment_repo.find_by_exam_id_and_student_id(regrade.exam_id, regrade.student_id)
        if assignment is None:
            self.raise_not_found_error("Exam assignment not found", entity="ExamAssignment")
        if assignment.status != AssignedExamStatus.REGRADING:
            self.raise_business_rule_error(
                "The exam is not being regraded",
                entity="ExamAssignment",
                code="NOT_REGRADING",
            )
        return regrade, assignment

    async def list_pending_exam_regrades(self, data: ListPendingExamRegradesInput) -> Page[PendingRegradeItem]:
        with self.operation("list-pending-exam-regrades"):
            teacher = await self._resolve_teacher(data.current_user_id)
            page = await self.exam_regrade_repo.list_pending_by_professor(
                teacher.id,
                offset=data.offset,
                limit=data.limit,
                filters=RegradeFilters(
                    statuses=data.statuses or sorted(ACTIVE_REGRADE_STATUSES),
                    subject_id=data.subject_id,
                    exam_title=data.exam_title,
                    student_id=data.student_id,
                ),
            )

            items = []
            for regrade in page.items:
                assignment = await self.exam_assignment_repo.find_by_exam_id_and_student_id(
                    regrade.exam_id, regrade.student_id
                )
                if assignment is None:
                    continue
                items.append(PendingRegradeItem(
                    **assignment.model_dump(),
                    regrade_id=regrade.id,
                    regrade_status=regrade.status,
                    reason=regrade.reason,
                    requested_at=regrade.requested_at,
                ))
            return Page[PendingRegradeItem](items=items, total=page.total)

    # ========================================================================
    # Actor resolution
    # ========================================================================

    async def _resolve_teacher(self, user_id: str) -> TeacherRead:
        page = await self.teacher_repo.list(PersonFilters(user_id=user_id), limit=1, offset=0)
        if not page.items:
            self.raise_not_found_error("Teacher not found", entity="Teacher")
        return page.items[0]

    async def _resolve_student(self, user_id: str) -> StudentRead:
        page = await self.student_repo.list(PersonFilters(user_id=user_id), limit=1, offset=0)
        if not page.items:
            self.raise_not_found_error("Student not found", entity="Student")
        return page.items[0]

    async def _teacher_can_review_subject(self, teacher_id: str, subject_id: str) -> bool:
        assignments = await self.teacher_subject_link_repo.get_assignments(teacher_id)
        return assignments.can_review(subject_id)
