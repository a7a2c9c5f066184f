"""Student schemas."""

from pydantic import Field, field_validator

from app.schemas.common import BaseSchema


class StudentBase(BaseSchema):
    """Base student schema."""

    name: str = Field(..., min_length=1, max_length=255)
    surname: str = Field("", max_length=255)
    classroom_id: str = Field(..., min_length=1, max_length=32)
    target_correct: int | None = Field(None, ge=0, le=10)


class StudentCreate(StudentBase):
    """Student creation schema."""

    pass


class StudentUpdate(BaseSchema):
    """Student update schema."""

    name: str | None = Field(None, min_length=1, max_length=255)
    surname: str | None = Field(None, max_length=255)
    classroom_id: str | None = Field(None, min_length=1, max_length=32)
    target_correct: int | None = Field(None, ge=0, le=10)

    @field_validator("name", "surname", "classroom_id")
    @classmethod
    def reject_null(cls, v):
        """Only target_correct can be cleared."""
        if v is None:
            raise ValueError("may not be null")
        return v


class StudentResponse(StudentBase):
    """Student response schema."""

    id: str
    # Empty for readers when the classroom_id no longer resolves
    classroom_name: str | None = None


class StudentBulkDelete(BaseSchema):
    """Ids of students to delete in one request."""

    ids: list[str] = Field(..., min_length=1)


class StudentFilter(BaseSchema):
    """Student filter options."""

    classroom_id: str | None = None
    search: str | None = None  # Search by name or surname
