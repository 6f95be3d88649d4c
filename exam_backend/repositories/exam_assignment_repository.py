"""
Exam assignments, read together with the exam they point at
"""
from typing import List, Optional

from exam_backend.core.db_models import Exam, ExamAssignment
from exam_backend.core.enums import AssignedExamStatus
from exam_backend.core.errors import NotFoundError
from exam_backend.core.models import (
    AssignmentFilters,
    AssignmentStatusSnapshot,
    CreateExamAssignmentData,
    Page,
    StudentExamAssignmentItem,
)
from exam_backend.repositories.base import SqlAlchemyRepository


def to_assignment_item(assignment: ExamAssignment, exam: Exam) -> StudentExamAssignmentItem:
    return StudentExamAssignmentItem(
        id=assignment.id,
        exam_id=assignment.exam_id,
        student_id=assignment.student_id,
        teacher_id=assignment.professor_id,
        subject_id=exam.subject_id if exam else None,
        exam_title=exam.title if exam else None,
        application_date=assignment.application_date,
        duration_minutes=assignment.duration_minutes,
        status=assignment.status,
        grade=assignment.grade,
    )


class SqlAlchemyExamAssignmentRepository(SqlAlchemyRepository):
    entity = "ExamAssignment"

    def _detailed_query(self):
        return self.session.query(ExamAssignment, Exam).join(Exam, ExamAssignment.exam_id == Exam.id)

    def _get_row(self, assignment_id: str) -> ExamAssignment:
        assignment = self.session.query(ExamAssignment).filter(ExamAssignment.id == assignment_id).first()
        if assignment is None:
            raise NotFoundError("Exam assignment not found", entity=self.entity)
        return assignment

    async def create_exam_assignment(self, data: CreateExamAssignmentData) -> StudentExamAssignmentItem:
        with self.guard("create-exam-assignment"):
            assignment = ExamAssignment(
                exam_id=data.exam_id,
                student_id=data.student_id,
                professor_id=data.professor_id,
                application_date=data.application_date,
                duration_minutes=data.duration_minutes,
                status=AssignedExamStatus.PENDING.value,
            )
            self.session.add(assignment)
            self.session.flush()
            exam = self.session.query(Exam).filter(Exam.id == data.exam_id).first()
        return to_assignment_item(assignment, exam)

    async def list_student_exam_assignments(
        self,
        offset: int,
        limit: int,
        filters: AssignmentFilters,
    ) -> Page[StudentExamAssignmentItem]:
        with self.guard("list-exam-assignments"):
            query = self._detailed_query()
            if filters.student_id:
                query = query.filter(ExamAssignment.student_id == filters.student_id)
            if filters.teacher_id:
                query = query.filter(ExamAssignment.professor_id == filters.teacher_id)
            if filters.status:
                query = query.filter(ExamAssignment.status == AssignedExamStatus(filters.status).value)
            if filters.subject_id:
                query = query.filter(Exam.subject_id == filters.subject_id)
            if filters.exam_title:
                query = query.filter(Exam.title.ilike(f"%{filters.exam_title}%"))

            total = query.count()
            rows = query.order_by(ExamAssignment.application_date.desc(), ExamAssignment.id)\
                .offset(offset).limit(limit).all()
        return Page[StudentExamAssignmentItem](
            items=[to_assignment_item(assignment, exam) for assignment, exam in rows],
            total=total,
        )

    async def find_by_exam_id_and_student_id(self, exam_id: str, student_id: str) -> Optional[StudentExamAssignmentItem]:
        with self.guard("find-exam-assignment"):
            row = self._detailed_query().filter(
                ExamAssignment.exam_id == exam_id,
                ExamAssignment.student_id == student_id,
            ).order_by(ExamAssignment.created_at.desc()).first()
        return to_assignment_item(*row) if row else None

    async def find_detailed_by_id(self, assignment_id: str) -> Optional[StudentExamAssignmentItem]:
        with self.guard("find-exam-assignment"):
            row = self._detailed_query().filter(ExamAssignment.id == assignment_id).first()
        return to_assignment_item(*row) if row else None

    async def update_status(self, assignment_id: str, status: AssignedExamStatus) -> None:
        with self.guard("update-exam-assignment-status"):
            assignment = self._get_row(assignment_id)
            assignment.status = AssignedExamStatus(status).value
            self.session.flush()

    async def update_grade(self, assignment_id: str, grade: float, status: AssignedExamStatus) -> None:
        with self.guard("update-exam-assignment-grade"):
            assignment = self._get_row(assignment_id)
            assignment.grade = grade
            assignment.status = AssignedExamStatus(status).value
            self.session.flush()

    async def list_assignments_for_status_refresh(self, student_id: str) -> List[AssignmentStatusSnapshot]:
        with self.guard("list-assignments-for-status-refresh"):
            rows = self.session.query(ExamAssignment).filter(ExamAssignment.student_id == student_id).all()
        return [
            AssignmentStatusSnapshot(
                id=row.id,
                exam_id=row.exam_id,
                student_id=row.student_id,
                status=row.status,
                application_date=row.application_date,
                duration_minutes=row.duration_minutes,
                grade=row.grade,
            )
            for row in rows
        ]
