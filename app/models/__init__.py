"""Database models package."""

from app.models.classroom import Classroom
from app.models.exam import ExamDefinition, ExamResult, ResultStatus
from app.models.student import Student

__all__ = [
    # Classroom
    "Classroom",
    # Student
    "Student",
    # Exam
    "ExamDefinition",
    "ExamResult",
    "ResultStatus",
]
