"""Exam definition and exam result schemas."""

import datetime

from pydantic import Field, field_validator, model_validator

from app.core.config import settings
from app.models.exam import ResultStatus
from app.schemas.common import BaseSchema


# ==========================================
# Exam Definition Schemas
# ==========================================

class ExamDefinitionBase(BaseSchema):
    """Base exam definition schema."""

    name: str = Field(..., min_length=1, max_length=255)
    date: datetime.date


class ExamDefinitionCreate(ExamDefinitionBase):
    """Exam definition creation schema."""

    pass


class ExamDefinitionUpdate(BaseSchema):
    """Exam definition update schema."""

    name: str | None = Field(None, min_length=1, max_length=255)
    date: datetime.date | None = None

    @field_validator("name", "date")
    @classmethod
    def reject_null(cls, v):
        """Fields may be left out of an update but not cleared."""
        if v is None:
            raise ValueError("may not be null")
        return v


class ExamDefinitionResponse(ExamDefinitionBase):
    """Exam definition response schema."""

    id: str


# ==========================================
# Exam Result Schemas
# ==========================================

class ExamResultCreate(BaseSchema):
    """Manual result entry for one student on one exam."""

    student_id: str = Field(..., min_length=1)
    exam_id: str = Field(..., min_length=1)
    correct: int = Field(0, ge=0)
    incorrect: int = Field(0, ge=0)
    status: ResultStatus = ResultStatus.ATTENDED

    @model_validator(mode="after")
    def validate_question_count(self) -> "ExamResultCreate":
        """correct + incorrect may not exceed the question count."""
        if self.correct + self.incorrect > settings.QUESTION_COUNT:
            raise ValueError(
                f"correct + incorrect must not exceed {settings.QUESTION_COUNT}"
            )
        return self


class ExamResultUpdate(BaseSchema):
    """Exam result update schema."""

    correct: int | None = Field(None, ge=0)
    incorrect: int | None = Field(None, ge=0)
    status: ResultStatus | None = None

    @field_validator("correct", "incorrect", "status")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class ExamResultResponse(BaseSchema):
    """Exam result response schema."""

    id: str
    student_id: str
    exam_id: str | None = None
    exam_name: str
    date: datetime.date
    correct: int = 0
    incorrect: int = 0
    empty: int = 0
    net: float = 0.0
    status: ResultStatus = ResultStatus.ATTENDED

    @property
    def attended(self) -> bool:
        return self.status != ResultStatus.MISSING


class ExamResultFilter(BaseSchema):
    """Exam result filtering options."""

    student_id: str | None = None
    exam_id: str | None = None
    status: ResultStatus | None = None
