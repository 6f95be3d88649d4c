"""
All API endpoints of the exam backend.
Each route builds an input model, adds the caller's user id and runs one
command or query.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from exam_backend.core.auth import authenticate, create_session, delete_session, get_session_token, require_auth
from exam_backend.core.config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT, SESSION_COOKIE_NAME, SESSION_MAX_AGE_SECONDS
from exam_backend.core.database import get_db
from exam_backend.core.db_models import User
from exam_backend.core.enums import AssignedExamStatus, ExamRegradeStatus
from exam_backend.core.errors import UnauthorizedError
from exam_backend.core.models import (
    AssignExamBody,
    CalculateExamGradeInput,
    CalculateGradeBody,
    CreateExamAssignmentInput,
    CreateExamResponseInput,
    ExamResponseBody,
    GetExamQuestionDetailInput,
    GetExamResponseByIndexInput,
    ListEvaluatorExamsInput,
    ListPendingExamRegradesInput,
    ListStudentExamsInput,
    LoginRequest,
    LoginResponse,
    ManualPointsBody,
    RequestExamRegradeInput,
    RequestRegradeBody,
    ResolveExamRegradeInput,
    SendExamToEvaluatorInput,
    UpdateExamResponseBody,
    UpdateExamResponseInput,
    UpdateManualPointsInput,
)
from exam_backend.dependencies import Application, get_application

router = APIRouter()


# ============================================================================
# Authentication Endpoints
# ============================================================================

@router.post("/api/login", tags=["auth"], response_model=LoginResponse)
async def login(request: LoginRequest, response: Response, db: Session = Depends(get_db)):
    """Login endpoint - validates username/password from database"""
    user = authenticate(db, request.username, request.password)
    if not user:
        raise UnauthorizedError("Invalid username or password", entity="User")

    session_token = create_session(user.id, user.username)
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session_token,
        httponly=True,
        samesite="lax",
        max_age=SESSION_MAX_AGE_SECONDS,
    )

    return LoginResponse(
        success=True,
        message="Login successful",
        username=user.username,
        role=user.role,
    )


@router.post("/api/logout", tags=["auth"])
async def logout(response: Response, session_token: Optional[str] = Depends(get_session_token)):
    """Logout endpoint - clears session"""
    if session_token:
        delete_session(session_token)
    response.delete_cookie(key=SESSION_COOKIE_NAME, samesite="lax")
    return {"success": True, "message": "Logged out successfully"}


@router.get("/api/me", tags=["auth"])
async def get_current_user_info(current_user: User = Depends(require_auth)):
    """Get current user information"""
    return {
        "id": current_user.id,
        "username": current_user.username,
        "role": current_user.role,
        "teacher_id": current_user.teacher.id if current_user.teacher else None,
        "student_id": current_user.student.id if current_user.student else None,
    }


# ============================================================================
# Exam Assignment Endpoints
# ============================================================================

@router.post("/api/exam-assignments/exams/{exam_id}/assign", tags=["exam-assignments"], status_code=201)
async def assign_exam(
    exam_id: str,
    body: AssignExamBody,
    current_user: User = Depends(require_auth),
    app: Application = Depends(get_application),
):
    """Assign an approved exam to students and publish it"""
    return await app.create_exam_assignment.execute(CreateExamAssignmentInput(
        exam_id=exam_id,
        student_ids=body.student_ids,
        current_user_id=current_user.id,
        application_date=body.application_date,
        duration_minutes=body.duration_minutes,
    ))


@router.get("/api/exam-assignments/me", tags=["exam-assignments"])
async def list_my_exams(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    status: Optional[AssignedExamStatus] = None,
    subject_id: Optional[str] = None,
    teacher_id: Optional[str] = None,
    current_user: User = Depends(require_auth),
    app: Application = Depends(get_application),
):
    """The caller's assignments, with statuses refreshed against the clock"""
    return await app.list_student_exams.execute(ListStudentExamsInput(
        current_user_id=current_user.id,
        page=page,
        limit=limit,
        status=status,
        subject_id=subject_id,
        teacher_id=teacher_id,
    ))


@router.post("/api/exam-assignments/exams/{exam_id}/send-to-evaluator", tags=["exam-assignments"])
async def send_exam_to_evaluator(
    exam_id: str,
    current_user: User = Depends(require_auth),
    app: Application = Depends(get_application),
):
    return await app.send_exam_to_evaluator.execute(SendExamToEvaluatorInput(
        exam_id=exam_id,
        current_user_id=current_user.id,
    ))


@router.get("/api/exam-assignments/evaluator", tags=["exam-assignments"])
async def list_evaluator_exams(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    subject_id: Optional[str] = None,
    exam_title: Optional[str] = None,
    student_id: Optional[str] = None,
    current_user: User = Depends(require_auth),
    app: Application = Depends(get_application),
):
    """Exams waiting for the calling teacher to grade them"""
    return await app.list_evaluator_exams.execute(ListEvaluatorExamsInput(
        current_user_id=current_user.id,
        page=page,
        limit=limit,
        subject_id=subject_id,
        exam_title=exam_title,
        student_id=student_id,
    ))


@router.post("/api/exam-assignments/grade", tags=["exam-assignments"])
async def calculate_exam_grade(
    body: CalculateGradeBody,
    current_user: User = Depends(require_auth),
    app: Application = Depends(get_application),
):
    return await app.calculate_exam_grade.execute(CalculateExamGradeInput(
        current_user_id=current_user.id,
        assignment_id=body.assignment_id,
        response_id=body.response_id,
    ))


# ============================================================================
# Regrade Endpoints
# ============================================================================

@router.post("/api/exam-regrades", tags=["exam-regrades"], status_code=201)
async def request_exam_regrade(
    body: RequestRegradeBody,
    current_user: User = Depends(require_auth),
    app: Application = Depends(get_application),
):
    return await app.request_exam_regrade.execute(RequestExamRegradeInput(
        exam_id=body.exam_id,
        professor_id=body.professor_id,
        reason=body.reason,
        current_user_id=current_user.id,
    ))


@router.get("/api/exam-regrades/pending", tags=["exam-regrades"])
async def list_pending_exam_regrades(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    statuses: Optional[List[ExamRegradeStatus]] = Query(None),
    subject_id: Optional[str] = None,
    exam_title: Optional[str] = None,
    student_id: Optional[str] = None,
    current_user: User = Depends(require_auth),
    app: Application = Depends(get_application),
):
    return await app.list_pending_exam_regrades.execute(ListPendingExamRegradesInput(
        current_user_id=current_user.id,
        page=page,
        limit=limit,
        statuses=statuses,
        subject_id=subject_id,
        exam_title=exam_title,
        student_id=student_id,
    ))


@router.post("/api/exam-regrades/{regrade_id}/resolve", tags=["exam-regrades"])
async def resolve_exam_regrade(
    regrade_id: str,
    current_user: User = Depends(require_auth),
    app: Application = Depends(get_application),
):
    return await app.resolve_exam_regrade.execute(ResolveExamRegradeInput(
        regrade_id=regrade_id,
        current_user_id=current_user.id,
    ))


@router.post("/api/exam-regrades/{regrade_id}/reject", tags=["exam-regrades"])
async def reject_exam_regrade(
    regrade_id: str,
    current_user: User = Depends(require_auth),
    app: Application = Depends(get_application),
):
    return await app.reject_exam_regrade.execute(ResolveExamRegradeInput(
        regrade_id=regrade_id,
        current_user_id=current_user.id,
    ))


# ============================================================================
# Exam Response Endpoints
# ============================================================================

@router.post("/api/exam-responses/exams/{exam_id}", tags=["exam-responses"], status_code=201)
async def create_exam_response(
    exam_id: str,
    body: ExamResponseBody,
    current_user: User = Depends(require_auth),
    app: Application = Depends(get_application),
):
    return await app.create_exam_response.execute(CreateExamResponseInput(
        user_id=current_user.id,
        exam_id=exam_id,
        exam_question_id=body.exam_question_id,
        selected_options=body.selected_options,
        text_answer=body.text_answer,
    ))


@router.put("/api/exam-responses/{response_id}", tags=["exam-responses"])
async def update_exam_response(
    response_id: str,
    body: UpdateExamResponseBody,
    current_user: User = Depends(require_auth),
    app: Application = Depends(get_application),
):
    return await app.update_exam_response.execute(UpdateExamResponseInput(
        response_id=response_id,
        user_id=current_user.id,
        selected_options=body.selected_options,
        text_answer=body.text_answer,
    ))


@router.patch("/api/exam-responses/{response_id}/manual-points", tags=["exam-responses"])
async def update_manual_points(
    response_id: str,
    body: ManualPointsBody,
    current_user: User = Depends(require_auth),
    app: Application = Depends(get_application),
):
    return await app.update_manual_points.execute(UpdateManualPointsInput(
        response_id=response_id,
        manual_points=body.manual_points,
        current_user_id=current_user.id,
    ))


@router.get("/api/exam-responses/exams/{exam_id}/questions/{question_index}/response", tags=["exam-responses"])
async def get_response_by_question_index(
    exam_id: str,
    question_index: int,
    student_id: Optional[str] = None,
    current_user: User = Depends(require_auth),
    app: Application = Depends(get_application),
):
    """Students read their own answer; teachers pass student_id"""
    return await app.get_exam_response_by_index.execute(GetExamResponseByIndexInput(
        exam_id=exam_id,
        question_index=question_index,
        user_id=current_user.id,
        student_id=student_id,
    ))


@router.get("/api/exam-responses/exams/{exam_id}/questions/{question_index}", tags=["exam-responses"])
async def get_question_detail_by_index(
    exam_id: str,
    question_index: int,
    student_id: Optional[str] = None,
    current_user: User = Depends(require_auth),
    app: Application = Depends(get_application),
):
    return await app.get_exam_question_detail.execute(GetExamQuestionDetailInput(
        exam_id=exam_id,
        question_index=question_index,
        user_id=current_user.id,
        student_id=student_id,
    ))


# ============================================================================
# Health
# ============================================================================

@router.get("/health", tags=["health"])
async def health_check():
    return {"status": "ok", "timestamp": datetime.now().isoformat()}
