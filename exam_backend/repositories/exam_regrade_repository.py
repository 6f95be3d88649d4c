"""
Regrade requests
"""
from datetime import datetime
from typing import Optional

from exam_backend.core.db_models import Exam, ExamRegrade
from exam_backend.core.enums import ACTIVE_REGRADE_STATUSES, ExamRegradeStatus
from exam_backend.core.errors import NotFoundError
from exam_backend.core.models import CreateExamRegradeData, ExamRegradeOutput, Page, RegradeFilters
from exam_backend.repositories.base import SqlAlchemyRepository


class SqlAlchemyExamRegradeRepository(SqlAlchemyRepository):
    entity = "ExamRegrade"

    async def create(self, data: CreateExamRegradeData) -> ExamRegradeOutput:
        with self.guard("create-exam-regrade"):
            regrade = ExamRegrade(
                exam_id=data.exam_id,
                student_id=data.student_id,
                professor_id=data.professor_id,
                reason=data.reason,
                status=ExamRegradeStatus(data.status).value,
                requested_at=data.requested_at,
            )
            self.session.add(regrade)
            self.session.flush()
        return ExamRegradeOutput.model_validate(regrade)

    async def find_active_by_exam_and_student(self, exam_id: str, student_id: str) -> Optional[ExamRegradeOutput]:
        with self.guard("find-active-exam-regrade"):
            regrade = self.session.query(ExamRegrade).filter(
                ExamRegrade.exam_id == exam_id,
                ExamRegrade.student_id == student_id,
                ExamRegrade.status.in_([status.value for status in ACTIVE_REGRADE_STATUSES]),
            ).first()
        return ExamRegradeOutput.model_validate(regrade) if regrade else None

    async def list_pending_by_professor(
        self,
        professor_id: str,
        offset: int,
        limit: int,
        filters: RegradeFilters,
    ) -> Page[ExamRegradeOutput]:
        statuses = filters.statuses or sorted(ACTIVE_REGRADE_STATUSES)
        with self.guard("list-pending-exam-regrades"):
            query = self.session.query(ExamRegrade).join(Exam, ExamRegrade.exam_id == Exam.id).filter(
                ExamRegrade.professor_id == professor_id,
                ExamRegrade.status.in_([ExamRegradeStatus(status).value for status in statuses]),
            )
            if filters.subject_id:
                query = query.filter(Exam.subject_id == filters.subject_id)
            if filters.exam_title:
                query = query.filter(Exam.title.ilike(f"%{filters.exam_title}%"))
            if filters.student_id:
                query = query.filter(ExamRegrade.student_id == filters.student_id)

            total = query.count()
            rows = query.order_by(ExamRegrade.requested_at, ExamRegrade.id).offset(offset).limit(limit).all()
        return Page[ExamRegradeOutput](
            items=[ExamRegradeOutput.model_validate(row) for row in rows],
            total=total,
        )

    async def find_by_id(self, regrade_id: str) -> Optional[ExamRegradeOutput]:
        with self.guard("find-exam-regrade"):
            regrade = self.session.query(ExamRegrade).filter(ExamRegrade.id == regrade_id).first()
        return ExamRegradeOutput.model_validate(regrade) if regrade else None

    async def resolve(
        self,
        regrade_id: str,
        status: ExamRegradeStatus,
        resolved_at: datetime,
        final_grade: Optional[float],
    ) -> ExamRegradeOutput:
        with self.guard("resolve-exam-regrade"):
            regrade = self.session.query(ExamRegrade).filter(ExamRegrade.id == regrade_id).first()
            if regrade is None:
                raise NotFoundError("Regrade request not found", entity=self.entity)
            regrade.status = ExamRegradeStatus(status).value
            regrade.resolved_at = resolved_at
            regrade.final_grade = final_grade
            self.session.flush()
        return ExamRegradeOutput.model_validate(regrade)
