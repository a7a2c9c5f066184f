"""Exam definition and exam result models."""

import datetime
import enum

from sqlalchemy import Date, Enum, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.models.base import IDMixin, TimestampMixin


class ResultStatus(str, enum.Enum):
    """Participation status of an exam result."""

    ATTENDED = "ATTENDED"
    MISSING = "MISSING"


class ExamDefinition(Base, IDMixin, TimestampMixin):
    """A scheduled exam that results are recorded against."""

    __tablename__ = "exam_definitions"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)

    def __repr__(self) -> str:
        return f"<ExamDefinition(id={self.id}, name={self.name}, date={self.date})>"


class ExamResult(Base, IDMixin, TimestampMixin):
    """One student's score on one exam.

    Uniqueness of (student_id, exam_id) is maintained by the importers,
    not by a table constraint.
    """

    __tablename__ = "exam_results"

    student_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    exam_id: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)
    exam_name: Mapped[str] = mapped_column(String(255), nullable=False)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False, index=True)
    correct: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    incorrect: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    empty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    net: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    status: Mapped[ResultStatus] = mapped_column(
        Enum(ResultStatus),
        nullable=False,
        default=ResultStatus.ATTENDED,
    )

    def __repr__(self) -> str:
        return f"<ExamResult(student_id={self.student_id}, exam={self.exam_name}, status={self.status})>"
