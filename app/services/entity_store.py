"""Entity store: the four collections behind the dashboard."""

import logging
from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.models.classroom import Classroom
from app.models.exam import ExamDefinition, ExamResult
from app.models.student import Student
from app.schemas.batch_import import Snapshot
from app.schemas.classroom import ClassroomResponse
from app.schemas.exam import ExamDefinitionResponse, ExamResultResponse
from app.schemas.student import StudentResponse

logger = logging.getLogger(__name__)


class EntityStore(Protocol):
    """Operations the import and CRUD services need from persistence."""

    def load_all(self) -> Snapshot: ...

    def create_classroom(self, classroom: ClassroomResponse) -> None: ...

    def update_classroom(self, classroom: ClassroomResponse) -> None: ...

    def delete_classroom(self, classroom_id: str) -> None: ...

    def create_student(self, student: StudentResponse) -> None: ...

    def update_student(self, student: StudentResponse) -> None: ...

    def delete_student(self, student_id: str) -> None: ...

    def delete_students(self, student_ids: list[str]) -> None: ...

    def create_exam_result(self, result: ExamResultResponse) -> None: ...

    def update_exam_result(self, result: ExamResultResponse) -> None: ...

    def delete_exam_result(self, result_id: str) -> None: ...

    def delete_exam_results(self, result_ids: list[str]) -> None: ...

    def create_exam_definition(self, definition: ExamDefinitionResponse) -> None: ...

    def update_exam_definition(self, definition: ExamDefinitionResponse) -> None: ...

    def delete_exam_definition(self, definition_id: str) -> None: ...


class SqlEntityStore:
    """EntityStore backed by a SQLAlchemy session.

    Every write is flushed immediately so a failure surfaces at the
    mutation that caused it.
    """

    def __init__(self, db: Session):
        self.db = db

    def load_all(self) -> Snapshot:
        """Read every collection, each in creation order."""
        classrooms = self.db.execute(select(Classroom).order_by(Classroom.id)).scalars().all()
        students = self.db.execute(select(Student).order_by(Student.id)).scalars().all()
        definitions = self.db.execute(select(ExamDefinition).order_by(ExamDefinition.id)).scalars().all()
        results = self.db.execute(select(ExamResult).order_by(ExamResult.id)).scalars().all()
        logger.debug(
            f"[STORE] Loaded {len(classrooms)} classrooms, {len(students)} students, "
            f"{len(definitions)} exam definitions, {len(results)} exam results"
        )
        return Snapshot(
            classrooms=[ClassroomResponse.model_validate(c) for c in classrooms],
            students=[StudentResponse.model_validate(s) for s in students],
            exam_definitions=[ExamDefinitionResponse.model_validate(d) for d in definitions],
            exam_results=[ExamResultResponse.model_validate(r) for r in results],
        )

    def _get(self, model, entity_id: str, resource: str):
        instance = self.db.get(model, entity_id)
        if instance is None:
            raise NotFoundError(resource, entity_id)
        return instance

    def _create(self, model, values: dict) -> None:
        self.db.add(model(**values))
        self.db.flush()

    def _update(self, model, entity_id: str, resource: str, values: dict) -> None:
        instance = self._get(model, entity_id, resource)
        for field, value in values.items():
            setattr(instance, field, value)
        self.db.flush()

    def _delete(self, model, entity_ids: list[str]) -> None:
        self.db.execute(delete(model).where(model.id.in_(entity_ids)))
        self.db.flush()

    # Classrooms

    def create_classroom(self, classroom: ClassroomResponse) -> None:
        self._create(Classroom, classroom.model_dump())

    def update_classroom(self, classroom: ClassroomResponse) -> None:
        self._update(Classroom, classroom.id, "Classroom", classroom.model_dump(exclude={"id"}))

    def delete_classroom(self, classroom_id: str) -> None:
        self.db.delete(self._get(Classroom, classroom_id, "Classroom"))
        self.db.flush()

    # Students

    def create_student(self, student: StudentResponse) -> None:
        self._create(Student, student.model_dump(exclude={"classroom_name"}))

    def update_student(self, student: StudentResponse) -> None:
        self._update(Student, student.id, "Student", student.model_dump(exclude={"id", "classroom_name"}))

    def delete_student(self, student_id: str) -> None:
        self.db.delete(self._get(Student, student_id, "Student"))
        self.db.flush()

    def delete_students(self, student_ids: list[str]) -> None:
        self._delete(Student, student_ids)

    # Exam results

    def create_exam_result(self, result: ExamResultResponse) -> None:
        self._create(ExamResult, result.model_dump())

    def update_exam_result(self, result: ExamResultResponse) -> None:
        self._update(ExamResult, result.id, "Exam result", result.model_dump(exclude={"id"}))

    def delete_exam_result(self, result_id: str) -> None:
        self.db.delete(self._get(ExamResult, result_id, "Exam result"))
        self.db.flush()

    def delete_exam_results(self, result_ids: list[str]) -> None:
        self._delete(ExamResult, result_ids)

    # Exam definitions

    def create_exam_definition(self, definition: ExamDefinitionResponse) -> None:
        self._create(ExamDefinition, definition.model_dump())

    def update_exam_definition(self, definition: ExamDefinitionResponse) -> None:
        self._update(ExamDefinition, definition.id, "Exam definition", definition.model_dump(exclude={"id"}))

    def delete_exam_definition(self, definition_id: str) -> None:
        self.db.delete(self._get(ExamDefinition, definition_id, "Exam definition"))
        self.db.flush()
