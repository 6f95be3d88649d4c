"""
SQLAlchemy ORM tables
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column, DateTime, Float, ForeignKey, Index, Integer, JSON, String, Text,
    TypeDecorator, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from exam_backend.core.database import Base
from exam_backend.core.enums import (
    AssignedExamStatus, ExamRegradeStatus, ExamStatus, SubjectRole, UserRole,
)


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Stores naive UTC, hands back aware UTC (SQLite drops tzinfo)"""
    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


# ============================================================================
# Users
# ============================================================================

class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    username = Column(String(100), nullable=False, unique=True)
    password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.STUDENT.value)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    teacher = relationship("Teacher", back_populates="user", uselist=False)
    student = relationship("Student", back_populates="user", uselist=False)


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False, unique=True)


class Teacher(Base):
    __tablename__ = "teachers"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, unique=True)
    name = Column(String(200))

    user = relationship("User", back_populates="teacher")
    subject_links = relationship("TeacherSubject", back_populates="teacher")


class Student(Base):
    __tablename__ = "students"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, unique=True)
    name = Column(String(200))
    course = Column(Integer)

    user = relationship("User", back_populates="student")


class TeacherSubject(Base):
    """Links a teacher to a subject either as teacher or as subject leader"""
    __tablename__ = "teacher_subjects"
    __table_args__ = (
        UniqueConstraint("teacher_id", "subject_id", "role", name="uq_teacher_subject_role"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    teacher_id = Column(String(36), ForeignKey("teachers.id"), nullable=False, index=True)
    subject_id = Column(String(36), ForeignKey("subjects.id"), nullable=False, index=True)
    role = Column(String(20), nullable=False, default=SubjectRole.TEACHING.value)

    teacher = relationship("Teacher", back_populates="subject_links")
    subject = relationship("Subject")


# ============================================================================
# Question bank and exams
# ============================================================================

class Question(Base):
    __tablename__ = "questions"

    id = Column(String(36), primary_key=True, default=new_id)
    subject_id = Column(String(36), ForeignKey("subjects.id"), index=True)
    body = Column(Text, nullable=False)
    question_type = Column(String(50))
    # [{"text": ..., "is_correct": ...}]; empty or null for essay questions
    options = Column(JSON)
    response = Column(Text)


class Exam(Base):
    __tablename__ = "exams"

    id = Column(String(36), primary_key=True, default=new_id)
    subject_id = Column(String(36), ForeignKey("subjects.id"), nullable=False, index=True)
    author_id = Column(String(36), ForeignKey("teachers.id"), nullable=False)
    validator_id = Column(String(36), ForeignKey("teachers.id"))
    title = Column(String(255))
    difficulty = Column(String(20))
    question_count = Column(Integer, nullable=False, default=0)
    topic_proportion = Column(JSON)
    topic_coverage = Column(JSON)
    exam_status = Column(String(20), nullable=False, default=ExamStatus.DRAFT.value)
    observations = Column(Text)

    exam_questions = relationship("ExamQuestion", back_populates="exam", order_by="ExamQuestion.question_index")


class ExamQuestion(Base):
    __tablename__ = "exam_questions"
    __table_args__ = (
        UniqueConstraint("exam_id", "question_index", name="uq_exam_question_index"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    exam_id = Column(String(36), ForeignKey("exams.id"), nullable=False, index=True)
    question_id = Column(String(36), ForeignKey("questions.id"), nullable=False)
    question_index = Column(Integer, nullable=False)
    question_score = Column(Float, nullable=False, default=1.0)

    exam = relationship("Exam", back_populates="exam_questions")


# ============================================================================
# Exam application
# ============================================================================

class ExamAssignment(Base):
    __tablename__ = "exam_assignments"
    __table_args__ = (
        UniqueConstraint("student_id", "exam_id", "professor_id", name="uq_assignment_student_exam_professor"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    exam_id = Column(String(36), ForeignKey("exams.id"), nullable=False, index=True)
    student_id = Column(String(36), ForeignKey("students.id"), nullable=False, index=True)
    professor_id = Column(String(36), ForeignKey("teachers.id"), nullable=False, index=True)
    application_date = Column(UTCDateTime)
    duration_minutes = Column(Integer)
    status = Column(String(20), nullable=False, default=AssignedExamStatus.PENDING.value)
    grade = Column(Float)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    exam = relationship("Exam")


class ExamResponse(Base):
    __tablename__ = "exam_responses"
    __table_args__ = (
        UniqueConstraint("student_id", "exam_question_id", name="uq_response_student_question"),
        Index("ix_exam_responses_exam_student", "exam_id", "student_id"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    exam_id = Column(String(36), ForeignKey("exams.id"), nullable=False)
    exam_question_id = Column(String(36), ForeignKey("exam_questions.id"), nullable=False, index=True)
    student_id = Column(String(36), ForeignKey("students.id"), nullable=False, index=True)
    selected_options = Column(JSON)
    text_answer = Column(Text)
    auto_points = Column(Float)
    manual_points = Column(Float)
    answered_at = Column(UTCDateTime)


class ExamRegrade(Base):
    __tablename__ = "exam_regrades"
    __table_args__ = (
        Index("ix_exam_regrades_exam_student", "exam_id", "student_id"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    exam_id = Column(String(36), ForeignKey("exams.id"), nullable=False)
    student_id = Column(String(36), ForeignKey("students.id"), nullable=False)
    professor_id = Column(String(36), ForeignKey("teachers.id"), nullable=False, index=True)
    reason = Column(Text)
    status = Column(String(20), nullable=False, default=ExamRegradeStatus.REQUESTED.value)
    requested_at = Column(UTCDateTime, nullable=False, default=utcnow)
    resolved_at = Column(UTCDateTime)
    final_grade = Column(Float)

    exam = relationship("Exam")
