"""Paste import endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.batch_import import (
    ClassChangeImportSummary,
    ImportRequest,
    ResultImportSummary,
    RosterImportSummary,
)
from app.services.batch_import import ImportService

router = APIRouter()


@router.post("/roster", response_model=RosterImportSummary)
def import_roster(
    request: ImportRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Import students pasted as `Name Surname ClassName`, one per line.

    Missing classes are created. Known students are moved to the listed class.
    """
    return ImportService(db).import_roster(request.text)


@router.post("/results", response_model=ResultImportSummary)
def import_results(
    request: ImportRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Import results pasted as `ExamName StudentName Correct Incorrect`.

    Tab separated columns are preferred. Exams must be defined first; names
    that do not match are returned in `unresolved_exams`. Classmates of
    listed students without a result are marked absent.
    """
    return ImportService(db).import_results(request.text)


@router.post("/class-changes", response_model=ClassChangeImportSummary)
def import_class_changes(
    request: ImportRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """Move existing students pasted as `Name Surname NewClassName`."""
    return ImportService(db).import_class_changes(request.text)
