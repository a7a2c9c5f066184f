"""Classroom management endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.classroom import ClassroomCreate, ClassroomResponse, ClassroomUpdate
from app.schemas.common import MessageResponse
from app.services.classroom import ClassroomService

router = APIRouter()


@router.get("", response_model=list[ClassroomResponse])
def list_classrooms(
    db: Annotated[Session, Depends(get_db)],
):
    """List all classrooms by name."""
    return ClassroomService(db).list_classrooms()


@router.post("", response_model=ClassroomResponse)
def create_classroom(
    request: ClassroomCreate,
    db: Annotated[Session, Depends(get_db)],
):
    """Create a new classroom. Names are unique ignoring case and spacing."""
    return ClassroomService(db).create_classroom(request)


@router.get("/{classroom_id}", response_model=ClassroomResponse)
def get_classroom(
    classroom_id: str,
    db: Annotated[Session, Depends(get_db)],
):
    """Get a classroom by ID."""
    return ClassroomService(db).get_classroom(classroom_id)


@router.patch("/{classroom_id}", response_model=ClassroomResponse)
def update_classroom(
    classroom_id: str,
    request: ClassroomUpdate,
    db: Annotated[Session, Depends(get_db)],
):
    """Rename a classroom."""
    return ClassroomService(db).update_classroom(classroom_id, request)


@router.delete("/{classroom_id}", response_model=MessageResponse)
def delete_classroom(
    classroom_id: str,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Delete a classroom.
    Students in it are kept and show up without a class.
    """
    ClassroomService(db).delete_classroom(classroom_id)
    return MessageResponse(message="Classroom deleted successfully")
