"""
Exams, the questions placed in them and the question bank entries behind those
"""
from typing import List, Optional

from exam_backend.core.db_models import Exam, ExamQuestion, Question
from exam_backend.core.enums import ExamStatus
from exam_backend.core.errors import NotFoundError
from exam_backend.core.models import ExamQuestionRead, ExamRead, QuestionDetail, QuestionOption
from exam_backend.repositories.base import SqlAlchemyRepository


class SqlAlchemyExamRepository(SqlAlchemyRepository):
    entity = "Exam"

    async def get_by_id(self, exam_id: str) -> Optional[ExamRead]:
        with self.guard("get-exam"):
            exam = self.session.query(Exam).filter(Exam.id == exam_id).first()
        return ExamRead.model_validate(exam) if exam else None

    async def update(self, exam_id: str, *, exam_status: ExamStatus) -> ExamRead:
        with self.guard("update-exam"):
            exam = self.session.query(Exam).filter(Exam.id == exam_id).first()
            if exam is None:
                raise NotFoundError("Exam not found", entity=self.entity)
            exam.exam_status = ExamStatus(exam_status).value
            self.session.flush()
        return ExamRead.model_validate(exam)


class SqlAlchemyExamQuestionRepository(SqlAlchemyRepository):
    entity = "ExamQuestion"

    async def get_by_id(self, exam_question_id: str) -> Optional[ExamQuestionRead]:
        with self.guard("get-exam-question"):
            row = self.session.query(ExamQuestion).filter(ExamQuestion.id == exam_question_id).first()
        return ExamQuestionRead.model_validate(row) if row else None

    async def find_by_exam_id_and_index(self, exam_id: str, question_index: int) -> Optional[ExamQuestionRead]:
        with self.guard("find-exam-question-by-index"):
            row = self.session.query(ExamQuestion).filter(
                ExamQuestion.exam_id == exam_id,
                ExamQuestion.question_index == question_index,
            ).first()
        return ExamQuestionRead.model_validate(row) if row else None

    async def list_by_exam_id(self, exam_id: str) -> List[ExamQuestionRead]:
        with self.guard("list-exam-questions"):
            rows = self.session.query(ExamQuestion).filter(ExamQuestion.exam_id == exam_id)\
                .order_by(ExamQuestion.question_index).all()
        return [ExamQuestionRead.model_validate(row) for row in rows]


class SqlAlchemyQuestionRepository(SqlAlchemyRepository):
    entity = "Question"

    async def get_detail_by_id(self, question_id: str, include_correct: bool = False) -> Optional[QuestionDetail]:
        with self.guard("get-question-detail"):
            question = self.session.query(Question).filter(Question.id == question_id).first()
        if question is None:
            return None

        options = None
        if question.options:
            options = [
                QuestionOption(
                    text=option["text"],
                    is_correct=bool(option.get("is_correct")) if include_correct else None,
                )
                for option in question.options
            ]

        return QuestionDetail(
            id=question.id,
            subject_id=question.subject_id,
            body=question.body,
            question_type=question.question_type,
            options=options,
            # model answer only for reviewers
            response=question.response if include_correct else None,
        )
