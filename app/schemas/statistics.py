"""Derived statistics schemas."""

import datetime

from app.schemas.common import BaseSchema
from app.schemas.exam import ExamResultResponse
from app.schemas.student import StudentResponse


class StudentStatistics(StudentResponse):
    """A student with aggregates over attended results."""

    exam_count: int = 0
    average_net: float = 0.0
    average_correct: float = 0.0
    average_incorrect: float = 0.0
    last_net: float = 0.0
    # Latest result by date, absences included
    last_result: ExamResultResponse | None = None
    # Second latest attended result, for the trend arrow
    previous_result: ExamResultResponse | None = None
    trend: float | None = None


class ExamAverage(BaseSchema):
    """Average net of one exam across attended results."""

    exam_id: str
    name: str
    date: datetime.date
    attended: int
    average_net: float


class OverviewStatistics(BaseSchema):
    """Dashboard headline numbers."""

    total_students: int
    total_results: int
    total_exam_definitions: int
    global_average_net: float
    exams: list[ExamAverage]
