"""Student model."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.models.base import IDMixin, TimestampMixin


class Student(Base, IDMixin, TimestampMixin):
    """Student model for managing student records."""

    __tablename__ = "students"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    surname: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    # Non-owning reference; the classroom may have been deleted
    classroom_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    target_correct: Mapped[int | None] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        return f"<Student(id={self.id}, name={self.name} {self.surname}, classroom={self.classroom_id})>"
