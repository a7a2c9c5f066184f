"""Classroom management service."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ValidationError
from app.models.base import generate_id
from app.models.classroom import Classroom
from app.schemas.classroom import ClassroomCreate, ClassroomResponse, ClassroomUpdate
from app.services.entity_store import SqlEntityStore
from app.services.parsing import normalize


class ClassroomService:
    """Classroom management service."""

    def __init__(self, db: Session):
        self.db = db
        self.store = SqlEntityStore(db)

    def list_classrooms(self) -> list[ClassroomResponse]:
        result = self.db.execute(select(Classroom).order_by(Classroom.name))
        return [ClassroomResponse.model_validate(c) for c in result.scalars().all()]

    def get_classroom(self, classroom_id: str) -> ClassroomResponse:
        """Get classroom by ID."""
        classroom = self.db.get(Classroom, classroom_id)
        if not classroom:
            raise NotFoundError("Classroom", classroom_id)
        return ClassroomResponse.model_validate(classroom)

    def _ensure_unique_name(self, name: str, exclude_id: str | None = None) -> None:
        """Imports match classes by normalized name, so names must not collide."""
        key = normalize(name)
        for existing in self.list_classrooms():
            if existing.id != exclude_id and normalize(existing.name) == key:
                raise ValidationError(
                    f"A class named '{existing.name}' already exists",
                    details={"classroom_id": existing.id},
                )

    def create_classroom(self, request: ClassroomCreate) -> ClassroomResponse:
        """Create a new classroom."""
        self._ensure_unique_name(request.name)
        classroom = ClassroomResponse(id=generate_id(), name=request.name)
        self.store.create_classroom(classroom)
        return classroom

    def update_classroom(self, classroom_id: str, request: ClassroomUpdate) -> ClassroomResponse:
        """Rename a classroom."""
        classroom = self.get_classroom(classroom_id)
        self._ensure_unique_name(request.name, exclude_id=classroom_id)
        updated = classroom.model_copy(update={"name": request.name})
        self.store.update_classroom(updated)
        return updated

    def delete_classroom(self, classroom_id: str) -> None:
        """Delete a classroom. Its students keep the now dangling reference."""
        self.get_classroom(classroom_id)
        self.store.delete_classroom(classroom_id)
