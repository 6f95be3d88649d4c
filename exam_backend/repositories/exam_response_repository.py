"""
Student answers to exam questions
"""
from typing import List, Optional

from exam_backend.core.db_models import ExamResponse
from exam_backend.core.errors import NotFoundError
from exam_backend.core.models import CreateExamResponseData, ExamResponseOutput, UpdateExamResponseData
from exam_backend.repositories.base import SqlAlchemyRepository


def dump_options(selected_options):
    if selected_options is None:
        return None
    return [option.model_dump() for option in selected_options]


class SqlAlchemyExamResponseRepository(SqlAlchemyRepository):
    entity = "ExamResponse"

    def _get_row(self, response_id: str) -> ExamResponse:
        response = self.session.query(ExamResponse).filter(ExamResponse.id == response_id).first()
        if response is None:
            raise NotFoundError("Exam response not found", entity=self.entity)
        return response

    async def create(self, data: CreateExamResponseData) -> ExamResponseOutput:
        with self.guard("create-exam-response"):
            response = ExamResponse(
                exam_id=data.exam_id,
                exam_question_id=data.exam_question_id,
                student_id=data.student_id,
                selected_options=dump_options(data.selected_options),
                text_answer=data.text_answer,
                auto_points=data.auto_points,
                manual_points=data.manual_points,
                answered_at=data.answered_at,
            )
            self.session.add(response)
            self.session.flush()
        return ExamResponseOutput.model_validate(response)

    async def find_by_id(self, response_id: str) -> Optional[ExamResponseOutput]:
        with self.guard("find-exam-response"):
            response = self.session.query(ExamResponse).filter(ExamResponse.id == response_id).first()
        return ExamResponseOutput.model_validate(response) if response else None

    async def find_by_exam_question_and_student(self, exam_question_id: str, student_id: str) -> Optional[ExamResponseOutput]:
        with self.guard("find-exam-response"):
            response = self.session.query(ExamResponse).filter(
                ExamResponse.exam_question_id == exam_question_id,
                ExamResponse.student_id == student_id,
            ).first()
        return ExamResponseOutput.model_validate(response) if response else None

    async def update(self, data: UpdateExamResponseData) -> ExamResponseOutput:
        with self.guard("update-exam-response"):
            response = self._get_row(data.response_id)
            response.selected_options = dump_options(data.selected_options)
            response.text_answer = data.text_answer
            response.auto_points = data.auto_points
            response.answered_at = data.answered_at
            self.session.flush()
        return ExamResponseOutput.model_validate(response)

    async def student_has_responses(self, exam_id: str, student_id: str) -> bool:
        """Only real answers count, not the blanks written when a window closes"""
        with self.guard("student-has-responses"):
            count = self.session.query(ExamResponse).filter(
                ExamResponse.exam_id == exam_id,
                ExamResponse.student_id == student_id,
                ExamResponse.answered_at.isnot(None),
            ).count()
        return count > 0

    async def list_by_exam_and_student(self, exam_id: str, student_id: str) -> List[ExamResponseOutput]:
        with self.guard("list-exam-responses"):
            rows = self.session.query(ExamResponse).filter(
                ExamResponse.exam_id == exam_id,
                ExamResponse.student_id == student_id,
            ).all()
        return [ExamResponseOutput.model_validate(row) for row in rows]

    async def update_manual_points(self, response_id: str, manual_points: float) -> ExamResponseOutput:
        with self.guard("update-manual-points"):
            response = self._get_row(response_id)
            response.manual_points = manual_points
            self.session.flush()
        return ExamResponseOutput.model_validate(response)
