"""Classroom model."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.models.base import IDMixin, TimestampMixin


class Classroom(Base, IDMixin, TimestampMixin):
    """A tutoring group students are assigned to."""

    __tablename__ = "classrooms"

    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Classroom(id={self.id}, name={self.name})>"
