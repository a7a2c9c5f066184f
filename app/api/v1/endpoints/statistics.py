"""Statistics endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.statistics import OverviewStatistics, StudentStatistics
from app.services.statistics import StatisticsService

router = APIRouter()


@router.get("/overview", response_model=OverviewStatistics)
def get_overview(
    db: Annotated[Session, Depends(get_db)],
):
    """Totals, global average net and per-exam averages."""
    return StatisticsService(db).get_overview()


@router.get("/students", response_model=list[StudentStatistics])
def list_student_statistics(
    db: Annotated[Session, Depends(get_db)],
    classroom_id: str | None = None,
    exam_id: str | None = None,
    search: str | None = None,
    sort: str = Query("average_net", description="Field or dotted path, e.g. last_result.net"),
    descending: bool = True,
):
    """
    Ranked student list.
    Absent results are excluded from every average.
    """
    return StatisticsService(db).list_student_statistics(
        classroom_id=classroom_id,
        exam_id=exam_id,
        search=search,
        sort=sort,
        descending=descending,
    )
