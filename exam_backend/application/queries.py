"""
Read use cases. Listings come back as PaginatedSchema, single reads as
RetrieveOneSchema.
"""
from exam_backend.application.base import BaseQuery
from exam_backend.core.models import (
    ExamResponseOutput,
    GetExamQuestionDetailInput,
    GetExamResponseByIndexInput,
    ListEvaluatorExamsInput,
    ListPendingExamRegradesInput,
    ListStudentExamsInput,
    PaginatedSchema,
    PendingRegradeItem,
    QuestionDetail,
    RetrieveOneSchema,
    StudentExamAssignmentItem,
)
from exam_backend.domain.exam_assignment_service import ExamAssignmentService
from exam_backend.domain.exam_response_service import ExamResponseService


class ListStudentExamsQuery(BaseQuery[ListStudentExamsInput, PaginatedSchema[StudentExamAssignmentItem]]):
    def __init__(self, service: ExamAssignmentService):
        super().__init__()
        self.service = service

    async def execute_business_logic(self, data):
        page = await self.service.list_student_exams(data)
        return PaginatedSchema[StudentExamAssignmentItem](
            data=page.items,
            page=data.page,
            limit=data.limit,
            offset=data.offset,
            total=page.total,
        )


class ListEvaluatorExamsQuery(BaseQuery[ListEvaluatorExamsInput, PaginatedSchema[StudentExamAssignmentItem]]):
    def __init__(self, service: ExamAssignmentService):
        super().__init__()
        self.service = service

    async def execute_business_logic(self, data):
        page = await self.service.list_evaluator_exams(data)
        return PaginatedSchema[StudentExamAssignmentItem](
            data=page.items,
            page=data.page,
            limit=data.limit,
            offset=data.offset,
            total=page.total,
        )


class ListPendingExamRegradesQuery(BaseQuery[ListPendingExamRegradesInput, PaginatedSchema[PendingRegradeItem]]):
    def __init__(self, service: ExamAssignmentService):
        super().__init__()
        self.service = service

    async def execute_business_logic(self, data):
        page = await self.service.list_pending_exam_regrades(data)
        return PaginatedSchema[PendingRegradeItem](
            data=page.items,
            page=data.page,
            limit=data.limit,
            offset=data.offset,
            total=page.total,
        )


class GetExamResponseByIndexQuery(BaseQuery[GetExamResponseByIndexInput, RetrieveOneSchema[ExamResponseOutput]]):
    def __init__(self, service: ExamResponseService):
        super().__init__()
        self.service = service

    async def execute_business_logic(self, data):
        response = await self.service.get_response_by_question_index(data)
        return RetrieveOneSchema[ExamResponseOutput](data=response)


class GetExamQuestionDetailQuery(BaseQuery[GetExamQuestionDetailInput, RetrieveOneSchema[QuestionDetail]]):
    def __init__(self, service: ExamResponseService):
        super().__init__()
        self.service = service

    async def execute_business_logic(self, data):
        question = await self.service.get_question_detail_by_index(data)
        return RetrieveOneSchema[QuestionDetail](data=question)
