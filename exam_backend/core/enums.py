"""
Status vocabularies for exams, assignments and regrade requests
"""
from enum import Enum


class ExamStatus(str, Enum):
    """Lifecycle of an authored exam"""
    DRAFT = "draft"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    PUBLISHED = "published"


class AssignedExamStatus(str, Enum):
    """Lifecycle of one exam assigned to one student"""
    PENDING = "pending"
    ENABLED = "enabled"
    DURING_SOLUTION = "during_solution"
    IN_PROGRESS = "during_solution"
    SUBMITTED = "submitted"
    IN_EVALUATION = "in_evaluation"
    GRADED = "graded"
    REGRADING = "regrading"
    REGRADED = "regraded"
    CANCELLED = "cancelled"


class ExamRegradeStatus(str, Enum):
    """Lifecycle of a student's regrade request"""
    REQUESTED = "requested"
    IN_REVIEW = "in_review"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class UserRole(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


class SubjectRole(str, Enum):
    """How a teacher is linked to a subject"""
    TEACHING = "teaching"
    LEAD = "lead"


# Statuses the time-driven refresh never moves away from.
# REGRADING and REGRADED carry a grade and must not fall back to GRADED.
REFRESH_LOCKED_STATUSES = frozenset({
    AssignedExamStatus.CANCELLED,
    AssignedExamStatus.GRADED,
    AssignedExamStatus.IN_EVALUATION,
    AssignedExamStatus.REGRADING,
    AssignedExamStatus.REGRADED,
})

# Statuses a student may hand in for evaluation from
READY_FOR_EVALUATION_STATUSES = frozenset({
    AssignedExamStatus.ENABLED,
    AssignedExamStatus.DURING_SOLUTION,
    AssignedExamStatus.SUBMITTED,
})

ACTIVE_REGRADE_STATUSES = frozenset({
    ExamRegradeStatus.REQUESTED,
    ExamRegradeStatus.IN_REVIEW,
})
