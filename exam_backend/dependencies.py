"""
Composition root: wires repositories, services and use cases for one session
"""
from dataclasses import dataclass

from fastapi import Depends
from sqlalchemy.orm import Session

from exam_backend.application.commands import (
    CalculateExamGradeCommand,
    CreateExamAssignmentCommand,
    CreateExamResponseCommand,
    RejectExamRegradeCommand,
    RequestExamRegradeCommand,
    ResolveExamRegradeCommand,
    SendExamToEvaluatorCommand,
    UpdateExamResponseCommand,
    UpdateManualPointsCommand,
)
from exam_backend.application.queries import (
    GetExamQuestionDetailQuery,
    GetExamResponseByIndexQuery,
    ListEvaluatorExamsQuery,
    ListPendingExamRegradesQuery,
    ListStudentExamsQuery,
)
from exam_backend.core.database import get_db
from exam_backend.domain.exam_assignment_service import ExamAssignmentService
from exam_backend.domain.exam_response_service import ExamResponseService
from exam_backend.repositories.exam_assignment_repository import SqlAlchemyExamAssignmentRepository
from exam_backend.repositories.exam_regrade_repository import SqlAlchemyExamRegradeRepository
from exam_backend.repositories.exam_repository import (
    SqlAlchemyExamQuestionRepository,
    SqlAlchemyExamRepository,
    SqlAlchemyQuestionRepository,
)
from exam_backend.repositories.exam_response_repository import SqlAlchemyExamResponseRepository
from exam_backend.repositories.unit_of_work import SqlAlchemyUnitOfWork
from exam_backend.repositories.user_repository import (
    SqlAlchemyStudentRepository,
    SqlAlchemyTeacherRepository,
    SqlAlchemyTeacherSubjectLinkRepository,
)


@dataclass
class Application:
    create_exam_assignment: CreateExamAssignmentCommand
    send_exam_to_evaluator: SendExamToEvaluatorCommand
    calculate_exam_grade: CalculateExamGradeCommand
    request_exam_regrade: RequestExamRegradeCommand
    resolve_exam_regrade: ResolveExamRegradeCommand
    reject_exam_regrade: RejectExamRegradeCommand
    create_exam_response: CreateExamResponseCommand
    update_exam_response: UpdateExamResponseCommand
    update_manual_points: UpdateManualPointsCommand
    list_student_exams: ListStudentExamsQuery
    list_evaluator_exams: ListEvaluatorExamsQuery
    list_pending_exam_regrades: ListPendingExamRegradesQuery
    get_exam_response_by_index: GetExamResponseByIndexQuery
    get_exam_question_detail: GetExamQuestionDetailQuery


def build_application(session: Session) -> Application:
    """Build every use case over one session and one unit of work"""
    uow = SqlAlchemyUnitOfWork(session)

    exam_repo = SqlAlchemyExamRepository(session)
    exam_question_repo = SqlAlchemyExamQuestionRepository(session)
    question_repo = SqlAlchemyQuestionRepository(session)
    exam_assignment_repo = SqlAlchemyExamAssignmentRepository(session)
    exam_response_repo = SqlAlchemyExamResponseRepository(session)
    exam_regrade_repo = SqlAlchemyExamRegradeRepository(session)
    teacher_repo = SqlAlchemyTeacherRepository(session)
    student_repo = SqlAlchemyStudentRepository(session)
    teacher_subject_link_repo = SqlAlchemyTeacherSubjectLinkRepository(session)

    assignment_service = ExamAssignmentService(
        uow=uow,
        exam_repo=exam_repo,
        exam_question_repo=exam_question_repo,
        exam_assignment_repo=exam_assignment_repo,
        exam_response_repo=exam_response_repo,
        exam_regrade_repo=exam_regrade_repo,
        teacher_repo=teacher_repo,
        student_repo=student_repo,
        teacher_subject_link_repo=teacher_subject_link_repo,
    )
    response_service = ExamResponseService(
        uow=uow,
        exam_response_repo=exam_response_repo,
        exam_assignment_repo=exam_assignment_repo,
        exam_question_repo=exam_question_repo,
        question_repo=question_repo,
        exam_regrade_repo=exam_regrade_repo,
        teacher_repo=teacher_repo,
        student_repo=student_repo,
        teacher_subject_link_repo=teacher_subject_link_repo,
    )

    return Application(
        create_exam_assignment=CreateExamAssignmentCommand(assignment_service),
        send_exam_to_evaluator=SendExamToEvaluatorCommand(assignment_service),
        calculate_exam_grade=CalculateExamGradeCommand(assignment_service),
        request_exam_regrade=RequestExamRegradeCommand(assignment_service),
        resolve_exam_regrade=ResolveExamRegradeCommand(assignment_service),
        reject_exam_regrade=RejectExamRegradeCommand(assignment_service),
        create_exam_response=CreateExamResponseCommand(response_service),
        update_exam_response=UpdateExamResponseCommand(response_service),
        update_manual_points=UpdateManualPointsCommand(response_service),
        list_student_exams=ListStudentExamsQuery(assignment_service),
        list_evaluator_exams=ListEvaluatorExamsQuery(assignment_service),
        list_pending_exam_regrades=ListPendingExamRegradesQuery(assignment_service),
        get_exam_response_by_index=GetExamResponseByIndexQuery(response_service),
        get_exam_question_detail=GetExamQuestionDetailQuery(response_service),
    )


def get_application(db: Session = Depends(get_db)) -> Application:
    """FastAPI dependency: a fresh application per request"""
    return build_application(db)
