"""
Write use cases. Each wraps one service call in a RetrieveOneSchema.
"""
from exam_backend.application.base import BaseCommand
from exam_backend.core.errors import ValidationError
from exam_backend.core.models import (
    AssignExamToCourseResponse,
    CalculateExamGradeInput,
    CalculateExamGradeResult,
    CreateExamAssignmentInput,
    CreateExamResponseInput,
    ExamRegradeOutput,
    ExamResponseOutput,
    RequestExamRegradeInput,
    ResolveExamRegradeInput,
    RetrieveOneSchema,
    SendExamToEvaluatorInput,
    StudentExamAssignmentItem,
    UpdateExamResponseInput,
    UpdateManualPointsInput,
)
from exam_backend.domain.exam_assignment_service import ExamAssignmentService
from exam_backend.domain.exam_response_service import ExamResponseService


# ============================================================================
# Exam assignments
# ============================================================================

class CreateExamAssignmentCommand(BaseCommand[CreateExamAssignmentInput, RetrieveOneSchema[AssignExamToCourseResponse]]):
    def __init__(self, service: ExamAssignmentService):
        super().__init__()
        self.service = service

    def validate_input(self, data: CreateExamAssignmentInput) -> None:
        if data.duration_minutes <= 0:
            raise ValidationError("duration_minutes must be positive", entity="ExamAssignment")

    async def execute_business_logic(self, data):
        item = await self.service.create_exam_assignment(data)
        return RetrieveOneSchema[AssignExamToCourseResponse](data=item, message="Exam assigned to students")


class SendExamToEvaluatorCommand(BaseCommand[SendExamToEvaluatorInput, RetrieveOneSchema[StudentExamAssignmentItem]]):
    def __init__(self, service: ExamAssignmentService):
        super().__init__()
        self.service = service

    async def execute_business_logic(self, data):
        item = await self.service.send_exam_to_evaluator(data)
        return RetrieveOneSchema[StudentExamAssignmentItem](data=item, message="Exam sent for evaluation")


class CalculateExamGradeCommand(BaseCommand[CalculateExamGradeInput, RetrieveOneSchema[CalculateExamGradeResult]]):
    def __init__(self, service: ExamAssignmentService):
        super().__init__()
        self.service = service

    async def execute_business_logic(self, data):
        result = await self.service.calculate_exam_grade(data)
        return RetrieveOneSchema[CalculateExamGradeResult](data=result, message="Exam graded")


# ============================================================================
# Regrades
# ============================================================================

class RequestExamRegradeCommand(BaseCommand[RequestExamRegradeInput, RetrieveOneSchema[ExamRegradeOutput]]):
    def __init__(self, service: ExamAssignmentService):
        super().__init__()
        self.service = service

    async def execute_business_logic(self, data):
        regrade = await self.service.request_exam_regrade(data)
        return RetrieveOneSchema[ExamRegradeOutput](data=regrade, message="Regrade requested")


class ResolveExamRegradeCommand(BaseCommand[ResolveExamRegradeInput, RetrieveOneSchema[CalculateExamGradeResult]]):
    def __init__(self, service: ExamAssignmentService):
        super().__init__()
        self.service = service

    async def execute_business_logic(self, data):
        result = await self.service.resolve_exam_regrade(data)
        return RetrieveOneSchema[CalculateExamGradeResult](data=result, message="Regrade resolved")


class RejectExamRegradeCommand(BaseCommand[ResolveExamRegradeInput, RetrieveOneSchema[ExamRegradeOutput]]):
    def __init__(self, service: ExamAssignmentService):
        super().__init__()
        self.service = service

    async def execute_business_logic(self, data):
        regrade = await self.service.reject_exam_regrade(data)
        return RetrieveOneSchema[ExamRegradeOutput](data=regrade, message="Regrade rejected")


# ============================================================================
# Exam responses
# ============================================================================

class CreateExamResponseCommand(BaseCommand[CreateExamResponseInput, RetrieveOneSchema[ExamResponseOutput]]):
    def __init__(self, service: ExamResponseService):
        super().__init__()
        self.service = service

    async def execute_business_logic(self, data):
        response = await self.service.create_exam_response(data)
        return RetrieveOneSchema[ExamResponseOutput](data=response, message="Response saved")


class UpdateExamResponseCommand(BaseCommand[UpdateExamResponseInput, RetrieveOneSchema[ExamResponseOutput]]):
    def __init__(self, service: ExamResponseService):
        super().__init__()
        self.service = service

    async def execute_business_logic(self, data):
        response = await self.service.update_exam_response(data)
        return RetrieveOneSchema[ExamResponseOutput](data=response, message="Response updated")


class UpdateManualPointsCommand(BaseCommand[UpdateManualPointsInput, RetrieveOneSchema]):
    def __init__(self, service: ExamResponseService):
        super().__init__()
        self.service = service

    async def execute_business_logic(self, data):
        await self.service.update_manual_points(data)
        return RetrieveOneSchema(data=None, message="Manual points updated")
