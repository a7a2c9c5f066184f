"""Derived statistics: averages, trends and rankings.

Absent (MISSING) results never count toward an average.
"""

from typing import Any

from sqlalchemy.orm import Session

from app.core.exceptions import ValidationError
from app.schemas.batch_import import Snapshot
from app.schemas.exam import ExamResultResponse
from app.schemas.statistics import ExamAverage, OverviewStatistics, StudentStatistics
from app.services.entity_store import SqlEntityStore
from app.services.parsing import normalize

SORTABLE_KEYS = {
    "name",
    "surname",
    "classroom_name",
    "exam_count",
    "average_net",
    "average_correct",
    "average_incorrect",
    "last_net",
    "trend",
    "last_result.net",
    "last_result.correct",
    "last_result.incorrect",
    "last_result.date",
}


def _mean(values: list[float], digits: int) -> float:
    return round(sum(values) / len(values), digits) if values else 0.0


def student_statistics(
    snapshot: Snapshot,
    exam_id: str | None = None,
) -> list[StudentStatistics]:
    """Per-student aggregates, optionally restricted to one exam."""
    classroom_names = {c.id: c.name for c in snapshot.classrooms}
    results_by_student: dict[str, list[ExamResultResponse]] = {}
    for result in snapshot.exam_results:
        results_by_student.setdefault(result.student_id, []).append(result)

    rows = []
    for student in snapshot.students:
        results = results_by_student.get(student.id, [])
        counted = [r for r in results if r.attended]
        if exam_id is not None:
            counted = [r for r in counted if r.exam_id == exam_id]

        latest_first = sorted(results, key=lambda r: r.date, reverse=True)
        last_result = latest_first[0] if latest_first else None
        attended = [r for r in latest_first if r.attended]
        previous_result = attended[1] if len(attended) > 1 else None

        trend = None
        if previous_result is not None and last_result.attended:
            trend = round(last_result.net - previous_result.net, 2)

        rows.append(
            StudentStatistics(
                **student.model_dump(exclude={"classroom_name"}),
                classroom_name=classroom_names.get(student.classroom_id),
                exam_count=len(counted),
                average_net=_mean([r.net for r in counted], 2),
                average_correct=_mean([r.correct for r in counted], 1),
                average_incorrect=_mean([r.incorrect for r in counted], 1),
                last_net=last_result.net if last_result else 0.0,
                last_result=last_result,
                previous_result=previous_result,
                trend=trend,
            )
        )
    return rows


def overview(snapshot: Snapshot) -> OverviewStatistics:
    """Headline totals and per-exam averages in date order."""
    attended = [r for r in snapshot.exam_results if r.attended]

    exams = []
    for definition in snapshot.exam_definitions:
        # Older results may carry only the exam name
        results = [
            r for r in attended
            if r.exam_id == definition.id or (r.exam_id is None and r.exam_name == definition.name)
        ]
        exams.append(
            ExamAverage(
                exam_id=definition.id,
                name=definition.name,
                date=definition.date,
                attended=len(results),
                average_net=_mean([r.net for r in results], 2),
            )
        )
    exams.sort(key=lambda e: e.date)

    return OverviewStatistics(
        total_students=len(snapshot.students),
        total_results=len(attended),
        total_exam_definitions=len(snapshot.exam_definitions),
        global_average_net=_mean([r.net for r in attended], 2),
        exams=exams,
    )


def _lookup(item: Any, dotted_key: str) -> Any:
    value = item
    for part in dotted_key.split("."):
        if value is None:
            return None
        value = getattr(value, part, None)
    return value


def sort_by_key(items: list, dotted_key: str, descending: bool = False) -> list:
    """Sort by a dotted attribute path; items without a value go last."""
    present = [i for i in items if _lookup(i, dotted_key) is not None]
    absent = [i for i in items if _lookup(i, dotted_key) is None]

    def sort_value(item):
        value = _lookup(item, dotted_key)
        return normalize(value) if isinstance(value, str) else value

    return sorted(present, key=sort_value, reverse=descending) + absent


class StatisticsService:
    """Statistics over a fresh snapshot of the store."""

    def __init__(self, db: Session):
        self.db = db
        self.store = SqlEntityStore(db)

    def list_student_statistics(
        self,
        classroom_id: str | None = None,
        exam_id: str | None = None,
        search: str | None = None,
        sort: str = "average_net",
        descending: bool = True,
    ) -> list[StudentStatistics]:
        """Ranked student list for the dashboard."""
        if sort not in SORTABLE_KEYS:
            raise ValidationError(
                f"Cannot sort by '{sort}'",
                details={"allowed": sorted(SORTABLE_KEYS)},
            )
        rows = student_statistics(self.store.load_all(), exam_id=exam_id)
        if classroom_id:
            rows = [r for r in rows if r.classroom_id == classroom_id]
        if search:
            query = normalize(search)
            rows = [r for r in rows if query in normalize(r.name) or query in normalize(r.surname)]
        return sort_by_key(rows, sort, descending=descending)

    def get_overview(self) -> OverviewStatistics:
        return overview(self.store.load_all())
