"""Student management endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.common import MessageResponse
from app.schemas.student import (
    StudentBulkDelete,
    StudentCreate,
    StudentFilter,
    StudentResponse,
    StudentUpdate,
)
from app.services.student import StudentService

router = APIRouter()


@router.post("", response_model=StudentResponse)
def create_student(
    request: StudentCreate,
    db: Annotated[Session, Depends(get_db)],
):
    """Create a new student."""
    service = StudentService(db)
    return service.create_student(request)


@router.get("", response_model=list[StudentResponse])
def list_students(
    db: Annotated[Session, Depends(get_db)],
    classroom_id: str | None = None,
    search: str | None = None,
):
    """List students, optionally by classroom or matching a name."""
    service = StudentService(db)
    filters = StudentFilter(classroom_id=classroom_id, search=search)
    return service.list_students(filters)


@router.post("/bulk-delete", response_model=MessageResponse)
def bulk_delete_students(
    request: StudentBulkDelete,
    db: Annotated[Session, Depends(get_db)],
):
    """Delete several students together with their exam results."""
    service = StudentService(db)
    deleted = service.delete_students(request.ids)
    return MessageResponse(message=f"{deleted} students deleted")


@router.get("/{student_id}", response_model=StudentResponse)
def get_student(
    student_id: str,
    db: Annotated[Session, Depends(get_db)],
):
    """Get a student by ID."""
    service = StudentService(db)
    return service.get_student(student_id)


@router.patch("/{student_id}", response_model=StudentResponse)
def update_student(
    student_id: str,
    request: StudentUpdate,
    db: Annotated[Session, Depends(get_db)],
):
    """Update a student."""
    service = StudentService(db)
    return service.update_student(student_id, request)


@router.delete("/{student_id}", response_model=MessageResponse)
def delete_student(
    student_id: str,
    db: Annotated[Session, Depends(get_db)],
):
    """Delete a student together with their exam results."""
    service = StudentService(db)
    removed_results = service.delete_student(student_id)
    return MessageResponse(
        message=f"Student deleted successfully ({removed_results} results removed)"
    )
