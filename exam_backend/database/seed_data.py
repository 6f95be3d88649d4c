"""
Seed data script - Creates initial users and an approved exam
Run this after database initialization:
    python -m exam_backend.database.seed_data
"""
from sqlalchemy.orm import Session

from exam_backend.core.database import get_db_session, init_db
from exam_backend.core.db_models import (
    Exam, ExamQuestion, Question, Student, Subject, Teacher, TeacherSubject, User,
)
from exam_backend.core.enums import ExamStatus, SubjectRole, UserRole

SUBJECT_NAME = "Programming"
EXAM_TITLE = "Programming Midterm"

TEACHERS = [
    {"username": "teacher1", "password": "teacher123", "name": "Ada Teacher",
     "roles": [SubjectRole.TEACHING, SubjectRole.LEAD]},
    {"username": "teacher2", "password": "teacher123", "name": "Alan Leader",
     "roles": [SubjectRole.LEAD]},
]

STUDENTS = [
    {"username": "student1", "password": "password123", "name": "Test Student 1", "course": 1},
    {"username": "student2", "password": "password123", "name": "Test Student 2", "course": 1},
]

QUESTIONS = [
    {
        "body": "What does len([1, 2, 3]) return?",
        "question_type": "multiple_choice",
        "options": [
            {"text": "3", "is_correct": True},
            {"text": "2", "is_correct": False},
            {"text": "4", "is_correct": False},
        ],
        "response": "3",
        "score": 2.0,
    },
    {
        "body": "Explain the difference between a list and a tuple.",
        "question_type": "essay",
        "options": None,
        "response": "Lists are mutable, tuples are not.",
        "score": 3.0,
    },
]


def _get_or_create_user(db: Session, username: str, password: str, role: UserRole) -> User:
    user = db.query(User).filter(User.username == username).first()
    if user:
        print(f"[OK] User account already exists: {username}")
        return user
    user = User(username=username, password=password, role=role.value)
    db.add(user)
    db.flush()
    print(f"[OK] Created user account: {username}")
    return user


def seed_initial_data(db: Session) -> dict:
    """Create initial users and test data; returns the ids tests and clients need"""
    subject = db.query(Subject).filter(Subject.name == SUBJECT_NAME).first()
    if not subject:
        subject = Subject(name=SUBJECT_NAME)
        db.add(subject)
        db.flush()
        print(f"[OK] Created subject: {SUBJECT_NAME}")

    teachers = {}
    for data in TEACHERS:
        user = _get_or_create_user(db, data["username"], data["password"], UserRole.TEACHER)
        teacher = db.query(Teacher).filter(Teacher.user_id == user.id).first()
        if not teacher:
            teacher = Teacher(user_id=user.id, name=data["name"])
            db.add(teacher)
            db.flush()
        for role in data["roles"]:
            link = db.query(TeacherSubject).filter(
                TeacherSubject.teacher_id == teacher.id,
                TeacherSubject.subject_id == subject.id,
                TeacherSubject.role == role.value,
            ).first()
            if not link:
                db.add(TeacherSubject(teacher_id=teacher.id, subject_id=subject.id, role=role.value))
        teachers[data["username"]] = teacher

    students = {}
    for data in STUDENTS:
        user = _get_or_create_user(db, data["username"], data["password"], UserRole.STUDENT)
        student = db.query(Student).filter(Student.user_id == user.id).first()
        if not student:
            student = Student(user_id=user.id, name=data["name"], course=data["course"])
            db.add(student)
            db.flush()
        students[data["username"]] = student

    exam = db.query(Exam).filter(Exam.title == EXAM_TITLE).first()
    if not exam:
        exam = Exam(
            subject_id=subject.id,
            author_id=teachers["teacher1"].id,
            validator_id=teachers["teacher2"].id,
            title=EXAM_TITLE,
            difficulty="medium",
            question_count=len(QUESTIONS),
            topic_proportion={"basics": 1.0},
            topic_coverage={"basics": ["collections"]},
            exam_status=ExamStatus.APPROVED.value,
        )
        db.add(exam)
        db.flush()

        for index, data in enumerate(QUESTIONS, start=1):
            question = Question(
                subject_id=subject.id,
                body=data["body"],
                question_type=data["question_type"],
                options=data["options"],
                response=data["response"],
            )
            db.add(question)
            db.flush()
            db.add(ExamQuestion(
                exam_id=exam.id,
                question_id=question.id,
                question_index=index,
                question_score=data["score"],
            ))
        db.flush()
        print(f"[OK] Created approved exam: {EXAM_TITLE}")
    else:
        print(f"[OK] Exam already exists: {EXAM_TITLE}")

    exam_questions = db.query(ExamQuestion).filter(ExamQuestion.exam_id == exam.id)\
        .order_by(ExamQuestion.question_index).all()

    return {
        "subject_id": subject.id,
        "teacher_ids": {username: teacher.id for username, teacher in teachers.items()},
        "teacher_user_ids": {username: teacher.user_id for username, teacher in teachers.items()},
        "student_ids": {username: student.id for username, student in students.items()},
        "student_user_ids": {username: student.user_id for username, student in students.items()},
        "exam_id": exam.id,
        "exam_question_ids": [exam_question.id for exam_question in exam_questions],
    }


def main():
    print("=" * 60)
    print("Seeding initial database data...")
    print("=" * 60)

    init_db()
    with get_db_session() as db:
        seed_initial_data(db)

    print("=" * 60)
    print("Seed data creation complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
