from datetime import timedelta

import pytest

from exam_backend.core.enums import ACTIVE_REGRADE_STATUSES, AssignedExamStatus, ExamRegradeStatus, ExamStatus
from exam_backend.core.errors import BusinessRuleError, DatabaseError, NotFoundError
from exam_backend.core.models import (
    AssignmentStatusSnapshot,
    CalculateExamGradeInput,
    CreateExamAssignmentInput,
    ListEvaluatorExamsInput,
    ListPendingExamRegradesInput,
    ListStudentExamsInput,
    Page,
    RequestExamRegradeInput,
    ResolveExamRegradeInput,
    SendExamToEvaluatorInput,
)

from conftest import (
    EXAM_ID,
    LEADER,
    NOW,
    OTHER_STUDENT,
    OUTSIDER,
    STUDENT,
    TEACHER,
    make_assignment,
    make_exam,
    make_exam_question,
    make_regrade,
    make_response,
)

pytestmark = pytest.mark.anyio


def assign_input(student_ids, user_id=TEACHER.user_id):
    return CreateExamAssignmentInput(
        exam_id=EXAM_ID,
        student_ids=student_ids,
        current_user_id=user_id,
        application_date=NOW + timedelta(days=1),
        duration_minutes=90,
    )


# ============================================================================
# create_exam_assignment
# ============================================================================

async def test_assigning_creates_one_assignment_per_unique_student_and_publishes(assignment_service, repos, uow):
    repos.exam_repo.get_by_id.return_value = make_exam()

    result = await assignment_service.create_exam_assignment(
        assign_input([OTHER_STUDENT.id, STUDENT.id, OTHER_STUDENT.id])
    )

    assert result.assigned_student_ids == [OTHER_STUDENT.id, STUDENT.id]
    assert result.assignments_created == 2
    assert result.exam_status == ExamStatus.PUBLISHED
    assert result.duration_minutes == 90

    created = [call.args[0] for call in repos.exam_assignment_repo.create_exam_assignment.await_args_list]
    assert sorted(data.student_id for data in created) == sorted([OTHER_STUDENT.id, STUDENT.id])
    assert {data.professor_id for data in created} == {TEACHER.id}
    repos.exam_repo.update.assert_awaited_once_with(EXAM_ID, exam_status=ExamStatus.PUBLISHED)
    assert uow.commits == 1


async def test_assigning_unknown_exam_fails(assignment_service, repos):
    repos.exam_repo.get_by_id.return_value = None

    with pytest.raises(NotFoundError) as exc_info:
        await assignment_service.create_exam_assignment(assign_input([STUDENT.id]))

    assert exc_info.value.entity == "Exam"
    repos.exam_assignment_repo.create_exam_assignment.assert_not_awaited()


@pytest.mark.parametrize("status", [ExamStatus.DRAFT, ExamStatus.IN_REVIEW, ExamStatus.REJECTED, ExamStatus.PUBLISHED])
async def test_only_approved_exams_can_be_assigned(assignment_service, repos, status):
    repos.exam_repo.get_by_id.return_value = make_exam(exam_status=status)

    with pytest.raises(BusinessRuleError) as exc_info:
        await assignment_service.create_exam_assignment(assign_input([STUDENT.id]))

    assert exc_info.value.code == "EXAM_NOT_APPROVED"
    repos.teacher_repo.list.assert_not_awaited()
    repos.exam_assignment_repo.create_exam_assignment.assert_not_awaited()
    repos.exam_repo.update.assert_not_awaited()


async def test_caller_must_be_a_teacher(assignment_service, repos):
    repos.exam_repo.get_by_id.return_value = make_exam()

    with pytest.raises(BusinessRuleError) as exc_info:
        await assignment_service.create_exam_assignment(assign_input([STUDENT.id], user_id=STUDENT.user_id))

    assert exc_info.value.entity == "Teacher"
    assert exc_info.value.code == "TEACHER_NOT_FOUND"
    repos.exam_assignment_repo.create_exam_assignment.assert_not_awaited()
    repos.exam_repo.update.assert_not_awaited()


async def test_subject_leader_without_teaching_link_cannot_assign(assignment_service, repos):
    repos.exam_repo.get_by_id.return_value = make_exam()

    with pytest.raises(BusinessRuleError) as exc_info:
        await assignment_service.create_exam_assignment(assign_input([STUDENT.id], user_id=LEADER.user_id))

    assert exc_info.value.code == "TEACHER_NOT_ASSIGNED_TO_SUBJECT"


async def test_empty_student_list_is_rejected_without_lookup(assignment_service, repos):
    repos.exam_repo.get_by_id.return_value = make_exam()

    with pytest.raises(BusinessRuleError) as exc_info:
        await assignment_service.create_exam_assignment(assign_input([]))

    assert exc_info.value.code == "NO_STUDENTS"
    repos.student_repo.list.assert_not_awaited()


async def test_no_resolvable_students_is_rejected(assignment_service, repos):
    repos.exam_repo.get_by_id.return_value = make_exam()

    with pytest.raises(BusinessRuleError) as exc_info:
        await assignment_service.create_exam_assignment(assign_input(["ghost-1", "ghost-2"]))

    assert exc_info.value.code == "NO_STUDENTS"


async def test_unknown_students_are_reported(assignment_service, repos, uow):
    repos.exam_repo.get_by_id.return_value = make_exam()

    with pytest.raises(BusinessRuleError) as exc_info:
        await assignment_service.create_exam_assignment(assign_input([STUDENT.id, "ghost"]))

    assert exc_info.value.details == {"missing_student_ids": ["ghost"]}
    repos.exam_assignment_repo.create_exam_assignment.assert_not_awaited()
    repos.exam_repo.update.assert_not_awaited()
    assert uow.commits == 0


async def test_failed_insert_rolls_everything_back(assignment_service, repos, uow):
    repos.exam_repo.get_by_id.return_value = make_exam()
    repos.exam_assignment_repo.create_exam_assignment.side_effect = [
        make_assignment(),
        DatabaseError("insert failed", entity="ExamAssignment"),
    ]

    with pytest.raises(DatabaseError):
        await assignment_service.create_exam_assignment(assign_input([STUDENT.id, OTHER_STUDENT.id]))

    repos.exam_repo.update.assert_not_awaited()
    assert uow.commits == 0
    assert uow.rollbacks == 1


# ============================================================================
# list_student_exams and the status refresh
# ============================================================================

def snapshot(id, status, start, duration=60, exam_id=EXAM_ID):
    return AssignmentStatusSnapshot(
        id=id,
        exam_id=exam_id,
        student_id=STUDENT.id,
        status=status,
        application_date=start,
        duration_minutes=duration,
    )


async def test_listing_refreshes_statuses_and_fills_blank_responses(assignment_service, repos, uow):
    repos.exam_assignment_repo.list_assignments_for_status_refresh.return_value = [
        snapshot("expired", AssignedExamStatus.ENABLED, NOW - timedelta(hours=2)),
        snapshot("upcoming", AssignedExamStatus.PENDING, NOW + timedelta(hours=1), exam_id="exam-2"),
        snapshot("open", AssignedExamStatus.ENABLED, NOW - timedelta(minutes=5), exam_id="exam-3"),
    ]
    repos.exam_question_repo.list_by_exam_id.return_value = [
        make_exam_question("eq-1", 1),
        make_exam_question("eq-2", 2),
    ]
    repos.exam_assignment_repo.list_student_exam_assignments.return_value = Page(items=[make_assignment()], total=7)

    page = await assignment_service.list_student_exams(
        ListStudentExamsInput(current_user_id=STUDENT.user_id, page=2, limit=5)
    )

    repos.exam_assignment_repo.update_status.assert_awaited_once_with("expired", AssignedExamStatus.IN_EVALUATION)
    blanks = [call.args[0] for call in repos.exam_response_repo.create.await_args_list]
    assert [blank.exam_question_id for blank in blanks] == ["eq-1", "eq-2"]
    assert all(blank.auto_points == 0 and blank.answered_at is None for blank in blanks)
    assert uow.commits == 1

    kwargs = repos.exam_assignment_repo.list_student_exam_assignments.await_args.kwargs
    assert kwargs["offset"] == 5
    assert kwargs["limit"] == 5
    assert kwargs["filters"].student_id == STUDENT.id
    assert page.total == 7


async def test_blank_responses_skip_answered_questions(assignment_service, repos):
    repos.exam_assignment_repo.list_assignments_for_status_refresh.return_value = [
        snapshot("expired", AssignedExamStatus.ENABLED, NOW - timedelta(hours=2)),
    ]
    repos.exam_question_repo.list_by_exam_id.return_value = [
        make_exam_question("eq-1", 1),
        make_exam_question("eq-2", 2),
    ]
    repos.exam_response_repo.list_by_exam_and_student.return_value = [
        make_response(exam_question_id="eq-1", answered_at=None, auto_points=0),
    ]
    repos.exam_assignment_repo.list_student_exam_assignments.return_value = Page(items=[], total=0)

    await assignment_service.list_student_exams(ListStudentExamsInput(current_user_id=STUDENT.user_id))

    blanks = [call.args[0] for call in repos.exam_response_repo.create.await_args_list]
    assert [blank.exam_question_id for blank in blanks] == ["eq-2"]


async def test_refresh_without_transitions_writes_nothing(assignment_service, repos):
    repos.exam_assignment_repo.list_assignments_for_status_refresh.return_value = [
        snapshot("graded", AssignedExamStatus.GRADED, NOW - timedelta(days=2)),
        snapshot("open", AssignedExamStatus.ENABLED, NOW - timedelta(minutes=5)),
    ]
    repos.exam_assignment_repo.list_student_exam_assignments.return_value = Page(items=[], total=0)

    await assignment_service.list_student_exams(ListStudentExamsInput(current_user_id=STUDENT.user_id))

    repos.exam_assignment_repo.update_status.assert_not_awaited()
    repos.exam_response_repo.create.assert_not_awaited()


async def test_listing_requires_a_student(assignment_service, repos):
    with pytest.raises(NotFoundError):
        await assignment_service.list_student_exams(ListStudentExamsInput(current_user_id=TEACHER.user_id))

    repos.exam_assignment_repo.list_assignments_for_status_refresh.assert_not_awaited()


# ============================================================================
# send_exam_to_evaluator / list_evaluator_exams
# ============================================================================

@pytest.mark.parametrize("status", [
    AssignedExamStatus.ENABLED,
    AssignedExamStatus.DURING_SOLUTION,
    AssignedExamStatus.SUBMITTED,
])
async def test_ready_exams_go_to_evaluation(assignment_service, repos, uow, status):
    repos.exam_assignment_repo.find_by_exam_id_and_student_id.return_value = make_assignment(status=status)
    detail = make_assignment(status=AssignedExamStatus.IN_EVALUATION)
    repos.exam_assignment_repo.find_detailed_by_id.return_value = detail

    result = await assignment_service.send_exam_to_evaluator(
        SendExamToEvaluatorInput(exam_id=EXAM_ID, current_user_id=STUDENT.user_id)
    )

    repos.exam_assignment_repo.update_status.assert_awaited_once_with("assignment-1", AssignedExamStatus.IN_EVALUATION)
    assert uow.commits == 1
    assert result == detail


@pytest.mark.parametrize("status", [AssignedExamStatus.PENDING, AssignedExamStatus.GRADED, AssignedExamStatus.IN_EVALUATION])
async def test_exams_not_ready_cannot_be_sent(assignment_service, repos, status):
    repos.exam_assignment_repo.find_by_exam_id_and_student_id.return_value = make_assignment(status=status)

    with pytest.raises(BusinessRuleError) as exc_info:
        await assignment_service.send_exam_to_evaluator(
            SendExamToEvaluatorInput(exam_id=EXAM_ID, current_user_id=STUDENT.user_id)
        )

    assert exc_info.value.code == "NOT_READY_FOR_EVALUATION"
    repos.exam_assignment_repo.update_status.assert_not_awaited()


async def test_sending_missing_assignment_fails(assignment_service, repos):
    repos.exam_assignment_repo.find_by_exam_id_and_student_id.return_value = None

    with pytest.raises(NotFoundError):
        await assignment_service.send_exam_to_evaluator(
            SendExamToEvaluatorInput(exam_id=EXAM_ID, current_user_id=STUDENT.user_id)
        )


async def test_evaluator_listing_is_scoped_to_teacher_and_evaluation(assignment_service, repos):
    repos.exam_assignment_repo.list_student_exam_assignments.return_value = Page(items=[], total=0)

    await assignment_service.list_evaluator_exams(
        ListEvaluatorExamsInput(current_user_id=TEACHER.user_id, exam_title="Mid", limit=20)
    )

    kwargs = repos.exam_assignment_repo.list_student_exam_assignments.await_args.kwargs
    assert kwargs["filters"].teacher_id == TEACHER.id
    assert kwargs["filters"].status == AssignedExamStatus.IN_EVALUATION
    assert kwargs["filters"].exam_title == "Mid"
    assert kwargs["offset"] == 0
    assert kwargs["limit"] == 20


# ============================================================================
# request_exam_regrade
# ============================================================================

def regrade_input(professor_id=LEADER.id):
    return RequestExamRegradeInput(
        exam_id=EXAM_ID,
        professor_id=professor_id,
        reason="Question two was graded too harshly",
        current_user_id=STUDENT.user_id,
    )


async def test_regrade_request_moves_assignment_to_regrading(assignment_service, repos, uow):
    repos.exam_assignment_repo.find_by_exam_id_and_student_id.return_value = make_assignment(
        status=AssignedExamStatus.GRADED, grade=3.0
    )
    repos.exam_regrade_repo.create.return_value = make_regrade(professor_id=LEADER.id)

    result = await assignment_service.request_exam_regrade(regrade_input())

    data = repos.exam_regrade_repo.create.await_args.args[0]
    assert data.status == ExamRegradeStatus.REQUESTED
    assert data.professor_id == LEADER.id
    assert data.student_id == STUDENT.id
    assert data.requested_at == NOW
    repos.exam_assignment_repo.update_status.assert_awaited_once_with("assignment-1", AssignedExamStatus.REGRADING)
    assert uow.commits == 1
    assert result.professor_id == LEADER.id


async def test_regrade_needs_a_graded_exam(assignment_service, repos):
    repos.exam_assignment_repo.find_by_exam_id_and_student_id.return_value = make_assignment(
        status=AssignedExamStatus.IN_EVALUATION
    )

    with pytest.raises(BusinessRuleError) as exc_info:
        await assignment_service.request_exam_regrade(regrade_input())

    assert exc_info.value.code == "EXAM_NOT_GRADED"
    repos.exam_regrade_repo.create.assert_not_awaited()


async def test_only_one_active_regrade_per_exam(assignment_service, repos):
    repos.exam_assignment_repo.find_by_exam_id_and_student_id.return_value = make_assignment(
        status=AssignedExamStatus.GRADED, grade=3.0
    )
    repos.exam_regrade_repo.find_active_by_exam_and_student.return_value = make_regrade()

    with pytest.raises(BusinessRuleError) as exc_info:
        await assignment_service.request_exam_regrade(regrade_input())

    assert exc_info.value.code == "ACTIVE_REGRADE_EXISTS"
    repos.exam_regrade_repo.create.assert_not_awaited()


async def test_regrade_professor_must_exist(assignment_service, repos):
    repos.exam_assignment_repo.find_by_exam_id_and_student_id.return_value = make_assignment(
        status=AssignedExamStatus.GRADED, grade=3.0
    )

    with pytest.raises(NotFoundError) as exc_info:
        await assignment_service.request_exam_regrade(regrade_input(professor_id="nobody"))

    assert exc_info.value.entity == "Teacher"


async def test_regrade_professor_must_review_the_subject(assignment_service, repos):
    repos.exam_assignment_repo.find_by_exam_id_and_student_id.return_value = make_assignment(
        status=AssignedExamStatus.GRADED, grade=3.0
    )

    with pytest.raises(BusinessRuleError) as exc_info:
        await assignment_service.request_exam_regrade(regrade_input(professor_id=OUTSIDER.id))

    assert exc_info.value.code == "TEACHER_CANNOT_REVIEW_SUBJECT"
    repos.exam_regrade_repo.create.assert_not_awaited()


# ============================================================================
# calculate_exam_grade
# ============================================================================

def stub_gradable_exam(repos):
    repos.exam_question_repo.list_by_exam_id.return_value = [
        make_exam_question("eq-1", 1, 2.0),
        make_exam_question("eq-2", 2, 3.0),
    ]
    repos.exam_response_repo.list_by_exam_and_student.return_value = [
        make_response(id="r-1", exam_question_id="eq-1", manual_points=1.0),
        make_response(id="r-2", exam_question_id="eq-2", auto_points=5.0),
    ]


async def test_grading_by_assignment(assignment_service, repos, uow):
    repos.exam_assignment_repo.find_detailed_by_id.return_value = make_assignment(status=AssignedExamStatus.IN_EVALUATION)
    stub_gradable_exam(repos)

    result = await assignment_service.calculate_exam_grade(
        CalculateExamGradeInput(current_user_id=TEACHER.user_id, assignment_id="assignment-1")
    )

    repos.exam_assignment_repo.update_grade.assert_awaited_once_with("assignment-1", 4.0, AssignedExamStatus.GRADED)
    assert uow.commits == 1
    assert result.final_grade == 4.0
    assert result.exam_total_score == 5.0
    assert result.status == AssignedExamStatus.GRADED


async def test_grading_by_response(assignment_service, repos):
    repos.exam_response_repo.find_by_id.return_value = make_response(id="r-1")
    repos.exam_assignment_repo.find_by_exam_id_and_student_id.return_value = make_assignment(
        status=AssignedExamStatus.IN_EVALUATION
    )
    stub_gradable_exam(repos)

    result = await assignment_service.calculate_exam_grade(
        CalculateExamGradeInput(current_user_id=TEACHER.user_id, response_id="r-1")
    )

    repos.exam_assignment_repo.find_by_exam_id_and_student_id.assert_awaited_once_with(EXAM_ID, STUDENT.id)
    assert result.assignment_id == "assignment-1"


async def test_only_the_assigned_teacher_grades(assignment_service, repos):
    repos.exam_assignment_repo.find_detailed_by_id.return_value = make_assignment(status=AssignedExamStatus.IN_EVALUATION)

    with pytest.raises(BusinessRuleError) as exc_info:
        await assignment_service.calculate_exam_grade(
            CalculateExamGradeInput(current_user_id=LEADER.user_id, assignment_id="assignment-1")
        )

    assert exc_info.value.code == "NOT_ASSIGNED_TEACHER"
    repos.exam_assignment_repo.update_grade.assert_not_awaited()


async def test_grading_needs_evaluation_status(assignment_service, repos):
    repos.exam_assignment_repo.find_detailed_by_id.return_value = make_assignment(status=AssignedExamStatus.ENABLED)

    with pytest.raises(BusinessRuleError) as exc_info:
        await assignment_service.calculate_exam_grade(
            CalculateExamGradeInput(current_user_id=TEACHER.user_id, assignment_id="assignment-1")
        )

    assert exc_info.value.code == "NOT_IN_EVALUATION"


async def test_grading_with_ungraded_answers_fails(assignment_service, repos, uow):
    repos.exam_assignment_repo.find_detailed_by_id.return_value = make_assignment(status=AssignedExamStatus.IN_EVALUATION)
    repos.exam_question_repo.list_by_exam_id.return_value = [make_exam_question("eq-1", 1, 2.0)]
    repos.exam_response_repo.list_by_exam_and_student.return_value = [make_response(exam_question_id="eq-1")]

    with pytest.raises(BusinessRuleError) as exc_info:
        await assignment_service.calculate_exam_grade(
            CalculateExamGradeInput(current_user_id=TEACHER.user_id, assignment_id="assignment-1")
        )

    assert exc_info.value.code == "UNGRADED_QUESTIONS"
    repos.exam_assignment_repo.update_grade.assert_not_awaited()
    assert uow.commits == 0


async def test_grading_missing_assignment_fails(assignment_service, repos):
    repos.exam_assignment_repo.find_detailed_by_id.return_value = None

    with pytest.raises(NotFoundError):
        await assignment_service.calculate_exam_grade(
            CalculateExamGradeInput(current_user_id=TEACHER.user_id, assignment_id="missing")
        )


# ============================================================================
# resolve / reject regrades
# ============================================================================

def stub_open_regrade(repos, regrade_status=ExamRegradeStatus.REQUESTED, assignment_status=AssignedExamStatus.REGRADING):
    repos.exam_regrade_repo.find_by_id.return_value = make_regrade(status=regrade_status)
    repos.exam_assignment_repo.find_by_exam_id_and_student_id.return_value = make_assignment(
        status=assignment_status, grade=2.0
    )


async def test_resolving_regrade_recomputes_grade(assignment_service, repos, uow):
    stub_open_regrade(repos)
    stub_gradable_exam(repos)
    repos.exam_regrade_repo.resolve.return_value = make_regrade(status=ExamRegradeStatus.RESOLVED, final_grade=4.0)

    result = await assignment_service.resolve_exam_regrade(
        ResolveExamRegradeInput(regrade_id="regrade-1", current_user_id=TEACHER.user_id)
    )

    repos.exam_assignment_repo.update_grade.assert_awaited_once_with("assignment-1", 4.0, AssignedExamStatus.REGRADED)
    repos.exam_regrade_repo.resolve.assert_awaited_once_with(
        "regrade-1",
        status=ExamRegradeStatus.RESOLVED,
        resolved_at=NOW,
        final_grade=4.0,
    )
    assert uow.commits == 1
    assert result.status == AssignedExamStatus.REGRADED
    assert result.final_grade == 4.0


async def test_rejecting_regrade_keeps_grade(assignment_service, repos, uow):
    stub_open_regrade(repos)
    repos.exam_regrade_repo.resolve.return_value = make_regrade(status=ExamRegradeStatus.REJECTED, final_grade=2.0)

    result = await assignment_service.reject_exam_regrade(
        ResolveExamRegradeInput(regrade_id="regrade-1", current_user_id=TEACHER.user_id)
    )

    repos.exam_assignment_repo.update_status.assert_awaited_once_with("assignment-1", AssignedExamStatus.GRADED)
    repos.exam_regrade_repo.resolve.assert_awaited_once_with(
        "regrade-1",
        status=ExamRegradeStatus.REJECTED,
        resolved_at=NOW,
        final_grade=2.0,
    )
    repos.exam_assignment_repo.update_grade.assert_not_awaited()
    assert uow.commits == 1
    assert result.status == ExamRegradeStatus.REJECTED


async def test_regrade_belongs_to_its_professor(assignment_service, repos):
    stub_open_regrade(repos)

    with pytest.raises(BusinessRuleError) as exc_info:
        await assignment_service.resolve_exam_regrade(
            ResolveExamRegradeInput(regrade_id="regrade-1", current_user_id=LEADER.user_id)
        )

    assert exc_info.value.code == "NOT_REGRADE_PROFESSOR"


@pytest.mark.parametrize("status", [ExamRegradeStatus.RESOLVED, ExamRegradeStatus.REJECTED])
async def test_closed_regrades_are_immutable(assignment_service, repos, status):
    stub_open_regrade(repos, regrade_status=status)

    with pytest.raises(BusinessRuleError) as exc_info:
        await assignment_service.reject_exam_regrade(
            ResolveExamRegradeInput(regrade_id="regrade-1", current_user_id=TEACHER.user_id)
        )

    assert exc_info.value.code == "REGRADE_CLOSED"
    repos.exam_regrade_repo.resolve.assert_not_awaited()


async def test_resolving_needs_regrading_assignment(assignment_service, repos):
    stub_open_regrade(repos, assignment_status=AssignedExamStatus.GRADED)

    with pytest.raises(BusinessRuleError) as exc_info:
        await assignment_service.resolve_exam_regrade(
            ResolveExamRegradeInput(regrade_id="regrade-1", current_user_id=TEACHER.user_id)
        )

    assert exc_info.value.code == "NOT_REGRADING"


async def test_resolving_unknown_regrade_fails(assignment_service, repos):
    repos.exam_regrade_repo.find_by_id.return_value = None

    with pytest.raises(NotFoundError):
        await assignment_service.resolve_exam_regrade(
            ResolveExamRegradeInput(regrade_id="missing", current_user_id=TEACHER.user_id)
        )


# ============================================================================
# list_pending_exam_regrades
# ============================================================================

async def test_pending_regrades_skip_missing_assignments(assignment_service, repos):
    repos.exam_regrade_repo.list_pending_by_professor.return_value = Page(
        items=[make_regrade(), make_regrade(id="regrade-2", student_id=OTHER_STUDENT.id)],
        total=2,
    )
    repos.exam_assignment_repo.find_by_exam_id_and_student_id.side_effect = [
        make_assignment(status=AssignedExamStatus.REGRADING, grade=2.0),
        None,
    ]

    page = await assignment_service.list_pending_exam_regrades(
        ListPendingExamRegradesInput(current_user_id=TEACHER.user_id)
    )

    assert page.total == 2
    assert len(page.items) == 1
    item = page.items[0]
    assert item.regrade_id == "regrade-1"
    assert item.id == "assignment-1"
    assert item.status == AssignedExamStatus.REGRADING

    args = repos.exam_regrade_repo.list_pending_by_professor.await_args
    assert args.args[0] == TEACHER.id
    assert set(args.kwargs["filters"].statuses) == {ExamRegradeStatus.REQUESTED, ExamRegradeStatus.IN_REVIEW}


async def test_pending_regrades_default_to_active_statuses_in_stable_order(assignment_service, repos):
    repos.exam_regrade_repo.list_pending_by_professor.return_value = Page(items=[], total=0)

    await assignment_service.list_pending_exam_regrades(ListPendingExamRegradesInput(current_user_id=TEACHER.user_id))
    await assignment_service.list_pending_exam_regrades(ListPendingExamRegradesInput(current_user_id=TEACHER.user_id))

    first, second = [
        call.kwargs["filters"].statuses
        for call in repos.exam_regrade_repo.list_pending_by_professor.await_args_list
    ]
    assert isinstance(ACTIVE_REGRADE_STATUSES, frozenset)
    assert first == second == [ExamRegradeStatus.IN_REVIEW, ExamRegradeStatus.REQUESTED]
