"""Exam service for exam definitions and results."""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.models.base import generate_id
from app.models.exam import ExamDefinition, ExamResult, ResultStatus
from app.models.student import Student
from app.schemas.exam import (
    ExamDefinitionCreate,
    ExamDefinitionResponse,
    ExamDefinitionUpdate,
    ExamResultCreate,
    ExamResultFilter,
    ExamResultResponse,
    ExamResultUpdate,
)
from app.services.entity_store import SqlEntityStore
from app.services.parsing import compute_empty, compute_net

logger = logging.getLogger(__name__)


class ExamService:
    """Exam definition and result management service."""

    def __init__(self, db: Session):
        self.db = db
        self.store = SqlEntityStore(db)

    # ==========================================
    # Exam Definitions
    # ==========================================

    def list_definitions(self) -> list[ExamDefinitionResponse]:
        result = self.db.execute(
            select(ExamDefinition).order_by(ExamDefinition.date, ExamDefinition.name)
        )
        return [ExamDefinitionResponse.model_validate(d) for d in result.scalars().all()]

    def get_definition(self, definition_id: str) -> ExamDefinitionResponse:
        """Get exam definition by ID."""
        definition = self.db.get(ExamDefinition, definition_id)
        if not definition:
            raise NotFoundError("Exam definition", definition_id)
        return ExamDefinitionResponse.model_validate(definition)

    def create_definition(self, request: ExamDefinitionCreate) -> ExamDefinitionResponse:
        """Define a new exam. Results can only be imported for defined exams."""
        definition = ExamDefinitionResponse(id=generate_id(), name=request.name, date=request.date)
        self.store.create_exam_definition(definition)
        return definition

    def update_definition(
        self,
        definition_id: str,
        request: ExamDefinitionUpdate,
    ) -> ExamDefinitionResponse:
        """Rename or reschedule an exam."""
        current = self.get_definition(definition_id)
        updated = current.model_copy(update=request.model_dump(exclude_unset=True))
        self.store.update_exam_definition(updated)
        return updated

    def delete_definition(self, definition_id: str) -> int:
        """Delete an exam definition and its results. Returns how many results were removed."""
        self.get_definition(definition_id)
        self.store.delete_exam_definition(definition_id)

        result_ids = self.db.execute(
            select(ExamResult.id).where(ExamResult.exam_id == definition_id)
        ).scalars().all()
        if result_ids:
            self.store.delete_exam_results(list(result_ids))
        logger.info(f"[EXAM] Deleted definition {definition_id} and {len(result_ids)} results")
        return len(result_ids)

    # ==========================================
    # Exam Results
    # ==========================================

    def _scored_fields(self, correct: int, incorrect: int, status: ResultStatus) -> dict:
        """Derived numeric fields; absent students score nothing."""
        if status == ResultStatus.MISSING:
            return {"correct": 0, "incorrect": 0, "empty": 0, "net": 0.0, "status": status}
        if correct + incorrect > settings.QUESTION_COUNT:
            raise ValidationError(
                f"correct + incorrect ({correct + incorrect}) exceeds {settings.QUESTION_COUNT} questions"
            )
        return {
            "correct": correct,
            "incorrect": incorrect,
            "empty": compute_empty(correct, incorrect),
            "net": compute_net(correct, incorrect),
            "status": status,
        }

    def _get_existing_result(self, student_id: str, exam_id: str) -> ExamResult | None:
        """Results are unique per (student, exam)."""
        result = self.db.execute(
            select(ExamResult).where(
                ExamResult.student_id == student_id,
                ExamResult.exam_id == exam_id,
            )
        )
        return result.scalars().first()

    def create_result(self, request: ExamResultCreate) -> ExamResultResponse:
        """Record one student's result by hand."""
        student = self.db.get(Student, request.student_id)
        if not student:
            raise NotFoundError("Student", request.student_id)
        definition = self.get_definition(request.exam_id)

        if self._get_existing_result(request.student_id, request.exam_id):
            raise ValidationError(
                f"A result already exists for {student.name} {student.surname} - {definition.name}"
            )

        result = ExamResultResponse(
            id=generate_id(),
            student_id=request.student_id,
            exam_id=definition.id,
            exam_name=definition.name,
            date=definition.date,
            **self._scored_fields(request.correct, request.incorrect, request.status),
        )
        self.store.create_exam_result(result)
        return result

    def get_result(self, result_id: str) -> ExamResultResponse:
        """Get exam result by ID."""
        result = self.db.get(ExamResult, result_id)
        if not result:
            raise NotFoundError("Exam result", result_id)
        return ExamResultResponse.model_validate(result)

    def update_result(self, result_id: str, request: ExamResultUpdate) -> ExamResultResponse:
        """Update scores or status, recomputing the derived fields."""
        current = self.get_result(result_id)
        update_data = request.model_dump(exclude_unset=True)
        updated = current.model_copy(
            update=self._scored_fields(
                update_data.get("correct", current.correct),
                update_data.get("incorrect", current.incorrect),
                update_data.get("status") or current.status,
            )
        )
        self.store.update_exam_result(updated)
        return updated

    def delete_result(self, result_id: str) -> None:
        """Delete an exam result."""
        self.get_result(result_id)
        self.store.delete_exam_result(result_id)

    def list_results(self, filters: ExamResultFilter | None = None) -> list[ExamResultResponse]:
        """List exam results, newest exam first."""
        query = select(ExamResult)

        if filters:
            if filters.student_id:
                query = query.where(ExamResult.student_id == filters.student_id)
            if filters.exam_id:
                query = query.where(ExamResult.exam_id == filters.exam_id)
            if filters.status:
                query = query.where(ExamResult.status == filters.status)

        query = query.order_by(ExamResult.date.desc(), ExamResult.exam_name)
        result = self.db.execute(query)
        return [ExamResultResponse.model_validate(r) for r in result.scalars().all()]
