"""Exam definition and result endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models.exam import ResultStatus
from app.schemas.common import MessageResponse
from app.schemas.exam import (
    ExamDefinitionCreate,
    ExamDefinitionResponse,
    ExamDefinitionUpdate,
    ExamResultCreate,
    ExamResultFilter,
    ExamResultResponse,
    ExamResultUpdate,
)
from app.services.exam import ExamService

router = APIRouter()


# ==========================================
# Exam Definitions
# ==========================================

@router.get("/definitions", response_model=list[ExamDefinitionResponse])
def list_exam_definitions(
    db: Annotated[Session, Depends(get_db)],
):
    """List exam definitions in date order."""
    return ExamService(db).list_definitions()


@router.post("/definitions", response_model=ExamDefinitionResponse)
def create_exam_definition(
    request: ExamDefinitionCreate,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Define an exam.
    Result imports only accept exams defined here.
    """
    return ExamService(db).create_definition(request)


@router.get("/definitions/{definition_id}", response_model=ExamDefinitionResponse)
def get_exam_definition(
    definition_id: str,
    db: Annotated[Session, Depends(get_db)],
):
    """Get an exam definition by ID."""
    return ExamService(db).get_definition(definition_id)


@router.patch("/definitions/{definition_id}", response_model=ExamDefinitionResponse)
def update_exam_definition(
    definition_id: str,
    request: ExamDefinitionUpdate,
    db: Annotated[Session, Depends(get_db)],
):
    """Rename or reschedule an exam."""
    return ExamService(db).update_definition(definition_id, request)


@router.delete("/definitions/{definition_id}", response_model=MessageResponse)
def delete_exam_definition(
    definition_id: str,
    db: Annotated[Session, Depends(get_db)],
):
    """Delete an exam definition together with its results."""
    removed = ExamService(db).delete_definition(definition_id)
    return MessageResponse(message=f"Exam deleted successfully ({removed} results removed)")


# ==========================================
# Exam Results
# ==========================================

@router.get("/results", response_model=list[ExamResultResponse])
def list_exam_results(
    db: Annotated[Session, Depends(get_db)],
    student_id: str | None = None,
    exam_id: str | None = None,
    status: ResultStatus | None = None,
):
    """List exam results, newest first."""
    filters = ExamResultFilter(student_id=student_id, exam_id=exam_id, status=status)
    return ExamService(db).list_results(filters)


@router.post("/results", response_model=ExamResultResponse)
def create_exam_result(
    request: ExamResultCreate,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Record a result by hand.
    Validates that correct + incorrect does not exceed the question count.
    """
    return ExamService(db).create_result(request)


@router.get("/results/{result_id}", response_model=ExamResultResponse)
def get_exam_result(
    result_id: str,
    db: Annotated[Session, Depends(get_db)],
):
    """Get an exam result by ID."""
    return ExamService(db).get_result(result_id)


@router.patch("/results/{result_id}", response_model=ExamResultResponse)
def update_exam_result(
    result_id: str,
    request: ExamResultUpdate,
    db: Annotated[Session, Depends(get_db)],
):
    """Update scores or mark a result absent."""
    return ExamService(db).update_result(result_id, request)


@router.delete("/results/{result_id}", response_model=MessageResponse)
def delete_exam_result(
    result_id: str,
    db: Annotated[Session, Depends(get_db)],
):
    """Delete an exam result."""
    ExamService(db).delete_result(result_id)
    return MessageResponse(message="Exam result deleted successfully")
