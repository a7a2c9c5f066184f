"""Classroom schemas."""

from pydantic import Field

from app.schemas.common import BaseSchema


class ClassroomBase(BaseSchema):
    """Base classroom schema."""

    name: str = Field(..., min_length=1, max_length=100)


class ClassroomCreate(ClassroomBase):
    """Classroom creation schema."""

    pass


class ClassroomUpdate(ClassroomBase):
    """Classroom rename schema."""

    pass


class ClassroomResponse(ClassroomBase):
    """Classroom response schema."""

    id: str
