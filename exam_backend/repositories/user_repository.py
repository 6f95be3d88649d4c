"""
Teachers, students and the subjects teachers are linked to
"""
from typing import Optional

from exam_backend.core.db_models import Student, Subject, Teacher, TeacherSubject
from exam_backend.core.enums import SubjectRole
from exam_backend.core.models import Page, PersonFilters, StudentRead, TeacherRead, TeacherSubjectAssignments
from exam_backend.repositories.base import SqlAlchemyRepository


class SqlAlchemyTeacherRepository(SqlAlchemyRepository):
    entity = "Teacher"

    async def list(self, filters: PersonFilters, limit: int, offset: int) -> Page[TeacherRead]:
        with self.guard("list-teachers"):
            query = self.session.query(Teacher)
            if filters.user_id:
                query = query.filter(Teacher.user_id == filters.user_id)
            if filters.ids is not None:
                query = query.filter(Teacher.id.in_(filters.ids))
            total = query.count()
            rows = query.order_by(Teacher.id).offset(offset).limit(limit).all()
        return Page[TeacherRead](items=[TeacherRead.model_validate(row) for row in rows], total=total)

    async def get_by_id(self, teacher_id: str) -> Optional[TeacherRead]:
        with self.guard("get-teacher"):
            teacher = self.session.query(Teacher).filter(Teacher.id == teacher_id).first()
        return TeacherRead.model_validate(teacher) if teacher else None


class SqlAlchemyStudentRepository(SqlAlchemyRepository):
    entity = "Student"

    async def list(self, filters: PersonFilters, limit: int, offset: int) -> Page[StudentRead]:
        with self.guard("list-students"):
            query = self.session.query(Student)
            if filters.user_id:
                query = query.filter(Student.user_id == filters.user_id)
            if filters.ids is not None:
                query = query.filter(Student.id.in_(filters.ids))
            total = query.count()
            rows = query.order_by(Student.id).offset(offset).limit(limit).all()
        return Page[StudentRead](items=[StudentRead.model_validate(row) for row in rows], total=total)


class SqlAlchemyTeacherSubjectLinkRepository(SqlAlchemyRepository):
    entity = "TeacherSubject"

    async def get_assignments(self, teacher_id: str) -> TeacherSubjectAssignments:
        with self.guard("get-teacher-subject-assignments"):
            rows = self.session.query(TeacherSubject, Subject)\
                .join(Subject, TeacherSubject.subject_id == Subject.id)\
                .filter(TeacherSubject.teacher_id == teacher_id).all()

        result = TeacherSubjectAssignments()
        for link, subject in rows:
            if link.role == SubjectRole.LEAD.value:
                result.lead_subject_ids.append(subject.id)
                result.lead_subject_names.append(subject.name)
            else:
                result.teaching_subject_ids.append(subject.id)
                result.teaching_subject_names.append(subject.name)
        return result
