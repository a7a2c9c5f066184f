"""Student management service."""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.models.base import generate_id
from app.models.classroom import Classroom
from app.models.exam import ExamResult
from app.models.student import Student
from app.schemas.student import (
    StudentCreate,
    StudentFilter,
    StudentResponse,
    StudentUpdate,
)
from app.services.entity_store import SqlEntityStore
from app.services.parsing import normalize

logger = logging.getLogger(__name__)


class StudentService:
    """Student management service."""

    def __init__(self, db: Session):
        self.db = db
        self.store = SqlEntityStore(db)

    def _classroom_names(self) -> dict[str, str]:
        result = self.db.execute(select(Classroom.id, Classroom.name))
        return {row[0]: row[1] for row in result.all()}

    def _to_response(self, student: Student, classroom_names: dict[str, str] | None = None) -> StudentResponse:
        """Convert Student to response, resolving the class name when it still exists."""
        if classroom_names is None:
            classroom_names = self._classroom_names()
        response = StudentResponse.model_validate(student)
        response.classroom_name = classroom_names.get(student.classroom_id)
        return response

    def create_student(self, request: StudentCreate) -> StudentResponse:
        """Create a new student."""
        student = StudentResponse(
            id=generate_id(),
            name=request.name,
            surname=request.surname,
            classroom_id=request.classroom_id,
            target_correct=(
                request.target_correct
                if request.target_correct is not None
                else settings.DEFAULT_TARGET_CORRECT
            ),
        )
        self.store.create_student(student)
        return self.get_student(student.id)

    def _get_model(self, student_id: str) -> Student:
        student = self.db.get(Student, student_id)
        if not student:
            raise NotFoundError("Student", student_id)
        return student

    def get_student(self, student_id: str) -> StudentResponse:
        """Get student by ID."""
        return self._to_response(self._get_model(student_id))

    def update_student(self, student_id: str, request: StudentUpdate) -> StudentResponse:
        """Update a student."""
        current = self.get_student(student_id)
        updated = current.model_copy(update=request.model_dump(exclude_unset=True))
        self.store.update_student(updated)
        return self.get_student(student_id)

    def delete_student(self, student_id: str) -> int:
        """Delete a student and their results. Returns how many results went with them."""
        self._get_model(student_id)
        self.store.delete_student(student_id)
        return self._delete_results_of([student_id])

    def delete_students(self, student_ids: list[str]) -> int:
        """Delete several students and their results. Returns how many students were deleted."""
        existing = self.db.execute(
            select(Student.id).where(Student.id.in_(student_ids))
        ).scalars().all()
        if not existing:
            return 0
        self.store.delete_students(list(existing))
        self._delete_results_of(list(existing))
        return len(existing)

    def _delete_results_of(self, student_ids: list[str]) -> int:
        result_ids = self.db.execute(
            select(ExamResult.id).where(ExamResult.student_id.in_(student_ids))
        ).scalars().all()
        if result_ids:
            self.store.delete_exam_results(list(result_ids))
        logger.info(f"[STUDENT] Deleted {len(result_ids)} results of {len(student_ids)} removed students")
        return len(result_ids)

    def list_students(self, filters: StudentFilter | None = None) -> list[StudentResponse]:
        """List students with filtering."""
        query = select(Student)
        if filters and filters.classroom_id:
            query = query.where(Student.classroom_id == filters.classroom_id)

        query = query.order_by(Student.name, Student.surname)
        students = self.db.execute(query).scalars().all()

        if filters and filters.search:
            # Matched with normalize, SQL LIKE does not fold Turkish casing
            term = normalize(filters.search)
            students = [
                s for s in students
                if term in normalize(s.name) or term in normalize(s.surname)
            ]

        classroom_names = self._classroom_names()
        return [self._to_response(s, classroom_names) for s in students]
